"""Tests for per-dimension budget selection."""

import pytest

from lore_bootstrap.budget import (
    BASE_BUDGET,
    DIGEST_ONLY_BUDGET,
    LARGE_BUDGET,
    MEDIUM_BUDGET,
    compute_budget,
)
from lore_bootstrap.dimensions import Dimension

CANDIDATE = Dimension(id="code-pattern", label="Patterns")
DUAL = Dimension(id="architecture", label="Architecture", skill_worthy=True, dual_output=True)
DIGEST_ONLY = Dimension(id="agent-guidelines", label="Guidelines", skill_worthy=True)


@pytest.mark.parametrize("count,expected", [
    (0, BASE_BUDGET),
    (5, BASE_BUDGET),
    (6, MEDIUM_BUDGET),
    (15, MEDIUM_BUDGET),
    (16, LARGE_BUDGET),
    (200, LARGE_BUDGET),
])
def test_signal_count_thresholds(count, expected):
    assert compute_budget(CANDIDATE, count) == expected
    assert compute_budget(DUAL, count) == expected


def test_digest_only_ignores_signal_count():
    for count in (0, 6, 100):
        budget = compute_budget(DIGEST_ONLY, count)
        assert budget == DIGEST_ONLY_BUDGET
        assert budget.max_submits == 0


def test_profiles():
    assert MEDIUM_BUDGET.max_submits == 10 and MEDIUM_BUDGET.soft_submit_limit == 6
    assert LARGE_BUDGET.max_submits == 15 and LARGE_BUDGET.idle_rounds_to_exit == 3
    assert LARGE_BUDGET.search_budget < MEDIUM_BUDGET.search_budget < BASE_BUDGET.search_budget
    assert DIGEST_ONLY_BUDGET.max_iterations == 15


def test_to_dict_uses_camel_case():
    d = BASE_BUDGET.to_dict()
    assert d == {
        "maxIterations": 30,
        "searchBudget": 8,
        "searchBudgetGrace": 4,
        "maxSubmits": 6,
        "softSubmitLimit": 4,
        "idleRoundsToExit": 2,
    }
