"""Run-level records: counters, per-dimension stats and the final summary."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

# Provenance tags passed to the candidate sink
PROVENANCE_HEURISTIC = "heuristic-only"
PROVENANCE_FALLBACK = "fallback"

SINK_ACTOR = {"userId": "bootstrap_agent"}

# Tool names whose calls count as candidate submissions
SUBMIT_TOOLS = ("submit_candidate", "submit_knowledge", "submit_with_check")


class RunMode(str, Enum):
    AI = "ai"
    DEGRADED = "degraded"
    ABORTED = "aborted"


class DimensionStatus(str, Enum):
    COMPLETE = "complete"
    FALLBACK = "fallback"
    FAILED = "failed"
    EMPTY = "empty"
    SKIPPED = "skipped"
    RESTORED = "checkpoint-restored"


@dataclass
class ErrorRecord:
    dimension: str
    error: str
    sub_topic: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"dimension": self.dimension, "error": self.error}
        if self.sub_topic is not None:
            d["subTopic"] = self.sub_topic
        return d


@dataclass
class CandidateResults:
    """Monotonic run-wide counters."""

    created: int = 0
    failed: int = 0
    errors: List[ErrorRecord] = field(default_factory=list)

    def record_error(self, dimension: str, error: Any, sub_topic: Optional[str] = None) -> None:
        self.errors.append(ErrorRecord(dimension=dimension, error=str(error), sub_topic=sub_topic))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "created": self.created,
            "failed": self.failed,
            "errors": [e.to_dict() for e in self.errors],
        }


@dataclass
class DimensionStats:
    status: DimensionStatus = DimensionStatus.COMPLETE
    signal_count: int = 0
    extracted: int = 0
    candidate_count: int = 0
    fallback_count: int = 0
    tool_call_count: int = 0
    duration_ms: int = 0
    token_usage: Dict[str, int] = field(default_factory=lambda: {"input": 0, "output": 0})
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "signalCount": self.signal_count,
            "extracted": self.extracted,
            "candidateCount": self.candidate_count,
            "fallbackCount": self.fallback_count,
            "toolCallCount": self.tool_call_count,
            "durationMs": self.duration_ms,
            "tokenUsage": dict(self.token_usage),
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DimensionStats":
        try:
            status = DimensionStatus(data.get("status") or DimensionStatus.COMPLETE.value)
        except ValueError:
            status = DimensionStatus.COMPLETE
        usage = data.get("tokenUsage") or {}
        return cls(
            status=status,
            signal_count=int(data.get("signalCount") or 0),
            extracted=int(data.get("extracted") or 0),
            candidate_count=int(data.get("candidateCount") or 0),
            fallback_count=int(data.get("fallbackCount") or 0),
            tool_call_count=int(data.get("toolCallCount") or 0),
            duration_ms=int(data.get("durationMs") or 0),
            token_usage={
                "input": int(usage.get("input") or 0),
                "output": int(usage.get("output") or 0),
            },
            error=data.get("error"),
        )


@dataclass
class RunSummary:
    """Outcome of one pipeline run. Always produced, even on partial failure."""

    session_id: str
    mode: RunMode
    candidate_results: CandidateResults = field(default_factory=CandidateResults)
    dimension_stats: Dict[str, DimensionStats] = field(default_factory=dict)
    skills: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    restored_dimensions: List[str] = field(default_factory=list)
    superseded: bool = False
    duration_ms: int = 0

    @property
    def token_usage(self) -> Dict[str, int]:
        total = {"input": 0, "output": 0}
        for stats in self.dimension_stats.values():
            total["input"] += stats.token_usage.get("input", 0)
            total["output"] += stats.token_usage.get("output", 0)
        return total

    @property
    def tool_call_count(self) -> int:
        return sum(s.tool_call_count for s in self.dimension_stats.values())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "mode": self.mode.value,
            "candidates": self.candidate_results.to_dict(),
            "dimensions": {k: v.to_dict() for k, v in self.dimension_stats.items()},
            "skills": self.skills,
            "restoredDimensions": list(self.restored_dimensions),
            "superseded": self.superseded,
            "durationMs": self.duration_ms,
            "totals": {
                "candidates": self.candidate_results.created,
                "failed": self.candidate_results.failed,
                "errors": len(self.candidate_results.errors),
                "skills": len(self.skills),
                "toolCalls": self.tool_call_count,
                "tokenUsage": self.token_usage,
            },
        }
