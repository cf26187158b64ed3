"""Cross-dimension context.

Holds the immutable project facts, the digests of completed dimensions and
the flat list of already-submitted candidate summaries. Each dimension's
production call is briefed with a snapshot built from this state, so later
dimensions see earlier conclusions and avoid duplicate submissions.
"""

from __future__ import annotations

import copy
import json
import logging
import re
import time
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

DIGEST_MARKER = "dimensionDigest"


@dataclass
class DimensionDigest:
    """Structured self-report of one dimension's production step."""

    summary: str = ""
    candidate_count: int = 0
    candidate_titles: List[str] = field(default_factory=list)
    key_findings: List[str] = field(default_factory=list)
    cross_refs: Dict[str, str] = field(default_factory=dict)
    gaps: List[str] = field(default_factory=list)
    remaining_tasks: List[Any] = field(default_factory=list)
    dim_id: str = ""
    completed_at: Optional[float] = None

    # ── Synthesized digests ────────────────────────────────────────────

    @classmethod
    def stub(cls, candidate_count: int) -> "DimensionDigest":
        """Minimal digest when the agent reported none."""
        return cls(
            summary=f"{candidate_count} candidate(s) submitted; no digest reported",
            candidate_count=candidate_count,
        )

    @classmethod
    def failure(cls, error: str) -> "DimensionDigest":
        """Digest recorded for a failed dimension so later ones see the gap."""
        return cls(
            summary="Production failed; heuristic candidates used instead",
            gaps=[f"production failed: {error}"],
        )

    @classmethod
    def empty(cls) -> "DimensionDigest":
        return cls(summary="No evidence found for this dimension", gaps=["no signals extracted"])

    # ── Serialization ──────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "summary": self.summary,
            "candidateCount": self.candidate_count,
            "candidateTitles": list(self.candidate_titles),
            "keyFindings": list(self.key_findings),
            "crossRefs": dict(self.cross_refs),
            "gaps": list(self.gaps),
            "remainingTasks": list(self.remaining_tasks),
        }
        if self.dim_id:
            d["dimId"] = self.dim_id
        if self.completed_at is not None:
            d["completedAt"] = self.completed_at
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DimensionDigest":
        cross_refs = data.get("crossRefs") or {}
        return cls(
            summary=str(data.get("summary") or ""),
            candidate_count=_as_int(data.get("candidateCount")),
            candidate_titles=[str(t) for t in data.get("candidateTitles") or []],
            key_findings=[str(k) for k in data.get("keyFindings") or []],
            cross_refs={str(k): str(v) for k, v in cross_refs.items()} if isinstance(cross_refs, dict) else {},
            gaps=[str(g) for g in data.get("gaps") or []],
            remaining_tasks=list(data.get("remainingTasks") or []),
            dim_id=str(data.get("dimId") or ""),
            completed_at=data.get("completedAt"),
        )


@dataclass
class CandidateSummary:
    """De-duplication record for one accepted candidate."""

    dim_id: str
    title: str = ""
    sub_topic: str = ""
    summary: str = ""

    def to_dict(self) -> Dict[str, str]:
        return {
            "dimId": self.dim_id,
            "title": self.title,
            "subTopic": self.sub_topic,
            "summary": self.summary,
        }


@dataclass(frozen=True)
class ContextSnapshot:
    """What one dimension's production call sees of earlier dimensions."""

    project: Dict[str, Any]
    previous_dimensions: Dict[str, Dict[str, Any]]
    existing_candidates: List[Dict[str, str]]
    current_dimension: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project": copy.deepcopy(self.project),
            "previousDimensions": copy.deepcopy(self.previous_dimensions),
            "existingCandidates": copy.deepcopy(self.existing_candidates),
            "currentDimension": self.current_dimension,
        }


class DimensionContext:
    """Cross-dimension accumulator. The only writer to digests and summaries."""

    def __init__(self, project_context: Optional[Dict[str, Any]] = None):
        self.project_context: Dict[str, Any] = dict(project_context or {})
        self.completed_dimensions: Dict[str, DimensionDigest] = {}
        self.submitted_candidates: List[CandidateSummary] = []

    def add_dimension_digest(self, dim_id: str, digest: DimensionDigest | Dict[str, Any]) -> None:
        """Store a digest; a re-run dimension replaces its previous entry."""
        if isinstance(digest, dict):
            digest = DimensionDigest.from_dict(digest)
        self.completed_dimensions[dim_id] = replace(
            digest,
            candidate_titles=list(digest.candidate_titles),
            key_findings=list(digest.key_findings),
            cross_refs=dict(digest.cross_refs),
            gaps=list(digest.gaps),
            remaining_tasks=list(digest.remaining_tasks),
            dim_id=dim_id,
            completed_at=time.time(),
        )

    def add_submitted_candidate(self, dim_id: str, info: Dict[str, Any]) -> None:
        """Append a candidate summary.

        Entries are never removed: re-running a dimension leaves its earlier
        entries in place alongside the new ones.
        """
        self.submitted_candidates.append(CandidateSummary(
            dim_id=dim_id,
            title=str(info.get("title") or ""),
            sub_topic=str(info.get("subTopic") or ""),
            summary=str(info.get("summary") or ""),
        ))

    def has_digest(self, dim_id: str) -> bool:
        return dim_id in self.completed_dimensions

    def build_context_for_dimension(self, current_dim_id: str) -> ContextSnapshot:
        """Snapshot of the state accumulated so far."""
        previous = {
            dim_id: {
                "summary": d.summary,
                "candidateCount": d.candidate_count,
                "keyFindings": list(d.key_findings),
                "crossRefs": dict(d.cross_refs),
                "gaps": list(d.gaps),
                "remainingTasks": copy.deepcopy(d.remaining_tasks),
            }
            for dim_id, d in self.completed_dimensions.items()
        }
        return ContextSnapshot(
            project=copy.deepcopy(self.project_context),
            previous_dimensions=previous,
            existing_candidates=[
                {"dimId": c.dim_id, "title": c.title, "subTopic": c.sub_topic}
                for c in self.submitted_candidates
            ],
            current_dimension=current_dim_id,
        )

    def get_existing_candidates_for_dimension(self, dim_id: str) -> List[CandidateSummary]:
        return [c for c in self.submitted_candidates if c.dim_id == dim_id]

    def get_digests_summary_text(self) -> str:
        """Compact text of all digests, one block per dimension."""
        if not self.completed_dimensions:
            return "(no completed dimensions yet)"

        lines: List[str] = []
        for dim_id, d in self.completed_dimensions.items():
            lines.append(f"### {dim_id}")
            lines.append(f"- Summary: {d.summary or '(none)'}")
            lines.append(f"- Candidates: {d.candidate_count}")
            if d.key_findings:
                lines.append(f"- Key findings: {'; '.join(d.key_findings)}")
            for target, suggestion in d.cross_refs.items():
                lines.append(f"- -> {target}: {suggestion}")
            if d.gaps:
                lines.append(f"- Gaps: {'; '.join(d.gaps)}")
            if d.remaining_tasks:
                tasks = [
                    str(t.get("signal", t)) if isinstance(t, dict) else str(t)
                    for t in d.remaining_tasks
                ]
                lines.append(f"- Remaining: {'; '.join(tasks)}")
            lines.append("")
        return "\n".join(lines)

    # ── Serialization ──────────────────────────────────────────────────

    def to_json(self) -> Dict[str, Any]:
        return {
            "projectContext": copy.deepcopy(self.project_context),
            "completedDimensions": {
                dim_id: d.to_dict() for dim_id, d in self.completed_dimensions.items()
            },
            "submittedCandidates": [c.to_dict() for c in self.submitted_candidates],
        }

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "DimensionContext":
        ctx = cls(data.get("projectContext") or {})
        for dim_id, raw in (data.get("completedDimensions") or {}).items():
            ctx.completed_dimensions[dim_id] = DimensionDigest.from_dict(raw)
        ctx.submitted_candidates = [
            CandidateSummary(
                dim_id=str(c.get("dimId") or ""),
                title=str(c.get("title") or ""),
                sub_topic=str(c.get("subTopic") or ""),
                summary=str(c.get("summary") or ""),
            )
            for c in data.get("submittedCandidates") or []
        ]
        return ctx


# ── Digest parsing ─────────────────────────────────────────────────────────

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL)
_BARE_RE = re.compile(r"\{\s*\"dimensionDigest\"\s*:")


def parse_dimension_digest(reply: Any) -> Optional[DimensionDigest]:
    """Extract the trailing digest from a free-form agent reply.

    Looks for a fenced block mentioning the marker, then for a bare inline
    ``{"dimensionDigest": {...}}``. Returns None when nothing usable is
    found; never raises.
    """
    if not reply or not isinstance(reply, str):
        return None

    parsed: Optional[Dict[str, Any]] = None
    for block in _FENCE_RE.findall(reply):
        if DIGEST_MARKER not in block:
            continue
        parsed = _decode_object(block, block.find("{"))
        if parsed is not None:
            break

    if parsed is None:
        m = _BARE_RE.search(reply)
        if m:
            parsed = _decode_object(reply, m.start())

    if not isinstance(parsed, dict):
        return None

    raw = parsed.get(DIGEST_MARKER, parsed)
    if not isinstance(raw, dict):
        return None
    if not raw.get("summary") and not raw.get("candidateCount"):
        return None

    try:
        digest = DimensionDigest.from_dict(raw)
    except Exception as e:
        logger.debug("Digest block rejected: %s", e)
        return None
    # dimId/completedAt are assigned when the digest is stored
    return replace(digest, dim_id="", completed_at=None)


def _decode_object(text: str, start: int) -> Optional[Dict[str, Any]]:
    if start < 0:
        return None
    try:
        obj, _ = json.JSONDecoder().raw_decode(text[start:])
    except ValueError:
        return None
    return obj if isinstance(obj, dict) else None


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
