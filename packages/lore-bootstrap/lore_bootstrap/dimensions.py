"""Dimension definitions in fixed topological order.

Later dimensions read the digests of earlier ones, so list order is the
execution order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import DimensionConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Dimension:
    """One analysis topic. Immutable for the run."""

    id: str
    label: str
    guide: str = ""
    skill_worthy: bool = False
    dual_output: bool = False
    knowledge_types: tuple = ()
    skill_enhanced: bool = False

    @property
    def is_digest_only(self) -> bool:
        """Aggregated into a skill only; no discrete candidates."""
        return self.skill_worthy and not self.dual_output

    @property
    def output_type(self) -> str:
        if self.is_digest_only:
            return "skill"
        if self.skill_worthy:
            return "dual"
        return "candidate"

    @property
    def default_knowledge_type(self) -> str:
        return self.knowledge_types[0] if self.knowledge_types else ""

    def to_meta(self) -> Dict[str, Any]:
        """Dimension metadata handed to the production agent."""
        return {
            "id": self.id,
            "label": self.label,
            "guide": self.guide,
            "outputType": self.output_type,
            "skillWorthy": self.skill_worthy,
            "dualOutput": self.dual_output,
            "knowledgeTypes": list(self.knowledge_types),
            "skillEnhanced": self.skill_enhanced,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Dimension":
        if not isinstance(data, dict):
            raise DimensionConfigError(f"Dimension entry must be a mapping, got {type(data).__name__}")
        dim_id = str(data.get("id") or "").strip()
        if not dim_id:
            raise DimensionConfigError("Dimension entry is missing 'id'")
        kt = data.get("knowledgeTypes", data.get("knowledge_types")) or []
        if isinstance(kt, str):
            kt = [kt]
        return cls(
            id=dim_id,
            label=str(data.get("label") or dim_id),
            guide=str(data.get("guide") or ""),
            skill_worthy=bool(data.get("skillWorthy", data.get("skill_worthy", False))),
            dual_output=bool(data.get("dualOutput", data.get("dual_output", False))),
            knowledge_types=tuple(str(k) for k in kt),
            skill_enhanced=bool(data.get("skillEnhanced", data.get("skill_enhanced", False))),
        )


# ── Standard dimensions ────────────────────────────────────────────────────
# Tier 1: base data, Tier 2: conventions/architecture/patterns,
# Tier 3: flows, practices, guidelines.

DEFAULT_DIMENSIONS: List[Dimension] = [
    Dimension(
        id="project-profile",
        label="Project profile",
        guide="Describe overall structure, tech stack, module split and entry points.",
        skill_worthy=True,
        dual_output=True,
        knowledge_types=("architecture",),
    ),
    Dimension(
        id="objc-deep-scan",
        label="Deep scan (constants / hooks)",
        guide="Scan #define macros, extern/static constants and method swizzling hooks.",
        skill_worthy=True,
        dual_output=True,
        knowledge_types=("code-standard", "code-pattern"),
    ),
    Dimension(
        id="category-scan",
        label="Base class category methods",
        guide="Scan Foundation/UIKit category and extension methods and their usage.",
        knowledge_types=("code-standard", "code-pattern"),
    ),
    Dimension(
        id="code-standard",
        label="Code standards",
        guide="Analyse naming conventions, comment style and file organisation.",
        skill_worthy=True,
        dual_output=True,
        knowledge_types=("code-standard", "code-style"),
    ),
    Dimension(
        id="architecture",
        label="Architecture",
        guide="Analyse layering, module responsibilities and dependencies.",
        skill_worthy=True,
        dual_output=True,
        knowledge_types=("architecture", "module-dependency", "boundary-constraint"),
    ),
    Dimension(
        id="code-pattern",
        label="Design patterns",
        guide="Identify creational, structural and behavioural patterns in use.",
        knowledge_types=("code-pattern", "code-relation", "inheritance"),
    ),
    Dimension(
        id="event-and-data-flow",
        label="Event and data flow",
        guide="Analyse event propagation and state management.",
        knowledge_types=("call-chain", "data-flow", "event-and-data-flow"),
    ),
    Dimension(
        id="best-practice",
        label="Best practices",
        guide="Analyse error handling, concurrency safety and memory management.",
        knowledge_types=("best-practice",),
    ),
    Dimension(
        id="agent-guidelines",
        label="Agent guidelines",
        guide="Summarise rules an agent must follow when changing this project.",
        skill_worthy=True,
        dual_output=False,
        knowledge_types=("boundary-constraint", "code-standard"),
    ),
]


def validate_dimensions(dimensions: Sequence[Dimension]) -> List[Dimension]:
    """Reject empty lists and duplicate ids; return the list unchanged otherwise."""
    dims = list(dimensions)
    if not dims:
        raise DimensionConfigError("At least one dimension is required")
    seen = set()
    for dim in dims:
        if dim.id in seen:
            raise DimensionConfigError(f"Duplicate dimension id: {dim.id}")
        seen.add(dim.id)
    return dims


def load_dimensions(path: str | Path) -> List[Dimension]:
    """Load an ordered dimension list from YAML.

    Accepts either a top-level list or a mapping with a ``dimensions`` list.
    """
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise DimensionConfigError(f"Invalid YAML in {path}: {e}") from e

    if isinstance(raw, dict):
        raw = raw.get("dimensions")
    if not isinstance(raw, list):
        raise DimensionConfigError(f"{path}: expected a list of dimensions")

    dims = validate_dimensions([Dimension.from_dict(entry) for entry in raw])
    logger.debug("Loaded %d dimensions from %s", len(dims), path)
    return dims


def enhance_dimensions(
    dimensions: Sequence[Dimension],
    guides: Optional[Dict[str, str]],
) -> List[Dimension]:
    """Append extra reference guidance to matching dimensions.

    Returns a new list; enhanced dimensions carry ``skill_enhanced=True``.
    """
    if not guides:
        return list(dimensions)
    out: List[Dimension] = []
    for dim in dimensions:
        extra = guides.get(dim.id)
        if not extra:
            out.append(dim)
            continue
        out.append(Dimension(
            id=dim.id,
            label=dim.label,
            guide=f"{dim.guide} [Reference] {extra}".strip(),
            skill_worthy=dim.skill_worthy,
            dual_output=dim.dual_output,
            knowledge_types=dim.knowledge_types,
            skill_enhanced=True,
        ))
    return out
