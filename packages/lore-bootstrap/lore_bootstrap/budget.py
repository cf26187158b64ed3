"""Per-dimension production budget.

Richer dimensions get more submission headroom and less search effort so
production cost stays bounded while shallow output is avoided.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, TYPE_CHECKING

if TYPE_CHECKING:
    from .dimensions import Dimension

# ── Profile thresholds ─────────────────────────────────────────────────────

LARGE_SIGNAL_THRESHOLD = 15
MEDIUM_SIGNAL_THRESHOLD = 5


@dataclass(frozen=True)
class Budget:
    """Resource-limit record bounding one dimension's production effort."""

    max_iterations: int = 30
    search_budget: int = 8
    search_budget_grace: int = 4
    max_submits: int = 6
    soft_submit_limit: int = 4
    idle_rounds_to_exit: int = 2

    def to_dict(self) -> Dict[str, int]:
        """camelCase record handed to the production agent."""
        d = asdict(self)
        return {
            "maxIterations": d["max_iterations"],
            "searchBudget": d["search_budget"],
            "searchBudgetGrace": d["search_budget_grace"],
            "maxSubmits": d["max_submits"],
            "softSubmitLimit": d["soft_submit_limit"],
            "idleRoundsToExit": d["idle_rounds_to_exit"],
        }


BASE_BUDGET = Budget()

# Digest-only dimensions produce no candidates
DIGEST_ONLY_BUDGET = Budget(
    max_iterations=15,
    search_budget=5,
    max_submits=0,
    soft_submit_limit=0,
)

MEDIUM_BUDGET = Budget(
    max_submits=10,
    soft_submit_limit=6,
    search_budget=6,
)

LARGE_BUDGET = Budget(
    max_submits=15,
    soft_submit_limit=8,
    search_budget=5,
    idle_rounds_to_exit=3,
)


def compute_budget(dimension: "Dimension", signal_count: int) -> Budget:
    """Map (dimension output type, signal count) to a budget. Pure and total."""
    if dimension.is_digest_only:
        return DIGEST_ONLY_BUDGET
    if signal_count > LARGE_SIGNAL_THRESHOLD:
        return LARGE_BUDGET
    if signal_count > MEDIUM_SIGNAL_THRESHOLD:
        return MEDIUM_BUDGET
    return BASE_BUDGET
