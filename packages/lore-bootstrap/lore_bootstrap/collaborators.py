"""Interfaces for the orchestrator's external collaborators.

Optional collaborators (task tracker, prompt builder, aggregator) have a
documented no-op default so call sites never check for their existence.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Protocol, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .budget import Budget
    from .dimension_context import ContextSnapshot
    from .dimensions import Dimension
    from .signals import Signal


class EvidenceSupplier(Protocol):
    """Heuristic scanner producing raw candidates for one dimension.

    Must be safe to call more than once for the same dimension.
    """

    def extract(
        self,
        dimension: "Dimension",
        file_set: Sequence[Any],
        target_map: Dict[str, Any],
        context: Dict[str, Any],
    ) -> List[Dict[str, Any]]:
        ...


class CandidateSink(Protocol):
    """Persistence layer for candidates. Each call may fail independently."""

    def create_from_tool_params(
        self,
        fields: Dict[str, Any],
        source_tag: str,
        opts: Dict[str, Any],
        actor: Dict[str, Any],
    ) -> Any:
        ...


class TaskTracker(Protocol):
    """Session/task observer."""

    def is_session_valid(self, session_id: str) -> bool: ...

    def mark_task_filling(self, task_id: str) -> None: ...

    def mark_task_completed(self, task_id: str, info: Dict[str, Any]) -> None: ...

    def mark_task_failed(self, task_id: str, info: Dict[str, Any]) -> None: ...

    def emit_progress(self, event: str, payload: Dict[str, Any]) -> None: ...

    def wait_for_user_decision(self, session_id: str, timeout: float) -> Optional[str]:
        """Block until the user answers or ``timeout`` elapses (None)."""
        ...


class PromptBuilder(Protocol):
    def build(
        self,
        dimension: "Dimension",
        signals: List["Signal"],
        snapshot: "ContextSnapshot",
        budget: "Budget",
    ) -> str:
        ...


class SkillAggregator(Protocol):
    """Turns digest-worthy dimensions' raw candidates into skill documents."""

    def aggregate(
        self,
        dimensions: List["Dimension"],
        candidates_by_dimension: Dict[str, List[Dict[str, Any]]],
        snapshot: "ContextSnapshot",
    ) -> Dict[str, Dict[str, Any]]:
        """Return ``dim_id -> info`` for each skill produced."""
        ...


# ── Defaults ───────────────────────────────────────────────────────────────


class NullTaskTracker:
    """No-op tracker: every session is valid, no user ever answers."""

    def is_session_valid(self, session_id: str) -> bool:
        return True

    def mark_task_filling(self, task_id: str) -> None:
        pass

    def mark_task_completed(self, task_id: str, info: Dict[str, Any]) -> None:
        pass

    def mark_task_failed(self, task_id: str, info: Dict[str, Any]) -> None:
        pass

    def emit_progress(self, event: str, payload: Dict[str, Any]) -> None:
        pass

    def wait_for_user_decision(self, session_id: str, timeout: float) -> Optional[str]:
        return None


class JsonPromptBuilder:
    """Fallback briefing: the signals, snapshot and budget as JSON."""

    def build(self, dimension, signals, snapshot, budget) -> str:
        return json.dumps({
            "dimension": dimension.to_meta(),
            "budget": budget.to_dict(),
            "context": snapshot.to_dict(),
            "signals": [s.to_dict() for s in signals],
        }, ensure_ascii=False, indent=2, default=str)


class CountingAggregator:
    """Records each qualifying dimension's candidate count without rendering."""

    def aggregate(self, dimensions, candidates_by_dimension, snapshot):
        return {
            dim.id: {
                "skillName": f"project-{dim.id}",
                "sourceCount": len(candidates_by_dimension.get(dim.id, [])),
            }
            for dim in dimensions
        }
