"""Tests for the attempt/on_success/on_failure stage template."""

import pytest

from lore_bootstrap.stages import Stage, run_stage


def test_success_routes_value():
    result = run_stage(Stage(
        name="ok",
        attempt=lambda: 21,
        on_success=lambda v: v * 2,
        on_failure=lambda e: -1,
    ))
    assert result == 42


def test_failure_routes_error():
    seen = []

    def boom():
        raise ValueError("nope")

    result = run_stage(Stage(
        name="boom",
        attempt=boom,
        on_success=lambda v: "unreachable",
        on_failure=lambda e: seen.append(e) or "recovered",
    ))
    assert result == "recovered"
    assert isinstance(seen[0], ValueError)


def test_success_hook_errors_are_not_swallowed():
    def bad_success(v):
        raise KeyError("hook")

    with pytest.raises(KeyError):
        run_stage(Stage(name="s", attempt=lambda: 1, on_success=bad_success, on_failure=lambda e: None))
