"""Signal extraction: raw scan evidence → bounded briefing signals.

Structured scanner output (``_scanResult`` with variants) is preferred.
Without it the extractor degrades to metrics parsed from the candidate's
summary text plus static search hints.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:
    from .collaborators import EvidenceSupplier
    from .dimensions import Dimension

logger = logging.getLogger(__name__)

MAX_SAMPLES_PER_SIGNAL = 2
MAX_TOP_FILES = 5
MAX_RELATED_SIGNALS = 3
MAX_SEARCH_HINTS = 3
MIN_SAMPLE_CHARS = 6
SKILL_REFERENCE_CHARS = 120


@dataclass
class Signal:
    """Bounded evidence summary for one (dimension, sub-topic)."""

    dim_id: str
    sub_topic: str
    evidence: Dict[str, Any] = field(default_factory=dict)
    heuristic_hints: List[str] = field(default_factory=list)
    related_signals: List[str] = field(default_factory=list)
    meta: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_structured(self) -> bool:
        return "distribution" in self.evidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "dimId": self.dim_id,
            "subTopic": self.sub_topic,
            "evidence": self.evidence,
            "heuristicHints": list(self.heuristic_hints),
            "relatedSignals": list(self.related_signals),
            "_meta": self.meta,
        }


@dataclass
class SignalBatch:
    """Signals plus the raw candidates they came from (kept for fallback)."""

    signals: List[Signal] = field(default_factory=list)
    candidates: List[Dict[str, Any]] = field(default_factory=list)


# ── Degraded-mode tables ───────────────────────────────────────────────────

_CN_UNITS = (
    "文件", "类", "协议", "方法", "模块", "Target", "边", "违规", "写法",
    "框架", "测试", "错误", "警告", "常量", "宏", "Category", "Extension",
)
_EN_UNITS = (
    "files", "file", "classes", "class", "protocols", "protocol", "methods",
    "method", "modules", "module", "targets", "target", "edges", "edge",
    "violations", "violation", "variants", "variant", "frameworks",
    "framework", "tests", "test", "errors", "error", "warnings", "warning",
    "constants", "constant", "macros", "macro", "categories", "category",
    "extensions", "extension",
)

_METRIC_RE = re.compile(
    r"(\d+)\s*(?:个|条|处|种|层)?\s*("
    + "|".join(re.escape(u) for u in _CN_UNITS)
    + r"|(?:"
    + "|".join(re.escape(u) for u in _EN_UNITS)
    + r")(?![A-Za-z]))",
    re.IGNORECASE,
)
_PCT_RE = re.compile(r"(\d+)\s*%")
_PREFERRED_RE = re.compile(r"(?:首选|[Pp]referred:?)\s+(.+?)(?:\s*[（(]|$)")

SEARCH_HINTS: Dict[str, List[str]] = {
    "naming": ["@interface", "@protocol", "NS_SWIFT_NAME"],
    "file-organization": ["#pragma mark", "// MARK:", "MARK: -"],
    "api-naming": ["- (void)", "- (BOOL)", "func "],
    "comment-style": ["///", "/**", "// TODO", "// FIXME"],
    "layer-overview": ["@interface", "ViewController", "Manager", "Service"],
    "dependency-graph": ["#import", "@import", "import "],
    "boundary-rules": ["#import", "import Foundation"],
    "overview": ["AppDelegate", "main.m", "@UIApplicationMain"],
    "tech-stack": ["UIKit", "SwiftUI", "Alamofire", "Masonry"],
    "third-party-deps": ["pod ", "Podfile", "Cartfile", "Package.swift"],
    "base-extensions": ["@implementation.*\\(", "extension "],
    "base-classes": ["#define", "extern NSString", "static let", "static NSString"],
    "event-hooks": ["+load", "+initialize", "applicationDidFinishLaunching", "viewDidLoad"],
    "infra-services": ["sharedInstance", "Manager", "Service", "Engine"],
    "runtime-and-interop": ["method_exchangeImplementations", "objc_setAssociatedObject", "@objc"],
    "todo-fixme": ["TODO", "FIXME", "HACK", "XXX"],
    "deprecated-api": ["__deprecated", "API_DEPRECATED", "@available"],
    "swizzle-hooks": ["method_exchangeImplementations", "class_replaceMethod", "Aspects"],
}

KNOWLEDGE_TYPE_HINTS: Dict[str, List[str]] = {
    "architecture": ["@interface", "import "],
    "code-standard": ["@interface", "#pragma mark"],
    "call-chain": ["NSNotification", "addObserver", "delegate"],
    "data-flow": ["NSNotification", "addObserver", "delegate"],
}


# ── Public API ─────────────────────────────────────────────────────────────


def extract_signals(dimension: "Dimension", raw_candidates: Any) -> SignalBatch:
    """Convert raw candidates into signals. Never raises.

    A candidate that fails conversion is logged and skipped; the others in
    the same call still produce signals. The raw candidates are returned
    untouched for later fallback persistence and aggregation.
    """
    if not isinstance(raw_candidates, (list, tuple)):
        if raw_candidates is not None:
            logger.warning(
                "Signals[%s]: expected a list of candidates, got %s",
                dimension.id, type(raw_candidates).__name__,
            )
        return SignalBatch()

    batch = SignalBatch(candidates=list(raw_candidates))
    for idx, candidate in enumerate(raw_candidates):
        try:
            batch.signals.append(candidate_to_signal(candidate, dimension.id))
        except Exception as e:
            logger.warning(
                "Signals[%s]: candidate #%d skipped: %s", dimension.id, idx, e,
            )
    return batch


def extract_dimension_signals(
    dimension: "Dimension",
    supplier: "EvidenceSupplier",
    file_set: Sequence[Any],
    target_map: Dict[str, Any],
    context: Dict[str, Any],
) -> SignalBatch:
    """Pull raw candidates from the supplier and convert them.

    Supplier errors propagate so the caller can fall back.
    """
    raw = supplier.extract(dimension, file_set, target_map, context)
    if not raw:
        return SignalBatch()
    return extract_signals(dimension, raw)


def candidate_to_signal(candidate: Dict[str, Any], dim_id: str) -> Signal:
    """Build one signal. Raises on a candidate that is not a mapping."""
    if not isinstance(candidate, dict):
        raise TypeError(f"candidate must be a mapping, got {type(candidate).__name__}")

    signal = Signal(dim_id=dim_id, sub_topic=str(candidate.get("subTopic") or "unknown"))

    scan = candidate.get("_scanResult")
    if isinstance(scan, dict) and isinstance(scan.get("variants"), list):
        signal.evidence = _structured_evidence(scan)
    else:
        signal.evidence = _textual_evidence(candidate)

    summary = candidate.get("summary")
    if summary:
        signal.heuristic_hints.append(str(summary))

    signal.related_signals = _related(candidate.get("relations"))

    if candidate.get("_skillEnhanced"):
        reference = str(candidate.get("_skillReference") or "")[:SKILL_REFERENCE_CHARS]
        signal.heuristic_hints.append(f"[Skill-enhanced] {reference}")

    signal.meta = {
        "knowledgeType": candidate.get("knowledgeType"),
        "tags": candidate.get("tags") or [],
        "language": candidate.get("language"),
        "title": candidate.get("title") or "",
    }
    return signal


# ── Structured evidence ────────────────────────────────────────────────────


def _structured_evidence(scan: Dict[str, Any]) -> Dict[str, Any]:
    variants = [v for v in scan["variants"] if isinstance(v, dict)]
    counted = [(v, _as_int(v.get("fileCount"))) for v in variants]
    counted = [(v, n) for v, n in counted if n > 0]

    # Overlapping variants must not push a share above 100%
    match_count = max(_as_int(scan.get("totalFiles")), sum(n for _, n in counted))

    distribution = [
        {
            "label": str(v.get("label") or ""),
            "fileCount": n,
            # Rounded independently, so ties can sum slightly past 100
            "pct": round(n / match_count * 100) if match_count > 0 else 0,
            "boilerplate": bool(v.get("boilerplate")),
        }
        for v, n in counted
    ]

    preferred = [v for v in variants if not v.get("boilerplate")]
    boilerplate = [v for v in variants if v.get("boilerplate")]
    samples = [
        s for s in _samples(preferred) + _samples(boilerplate)
        if len(s["code"]) >= MIN_SAMPLE_CHARS
    ][:MAX_SAMPLES_PER_SIGNAL]

    top_files: List[str] = []
    for v in variants:
        for ex in v.get("examples") or []:
            f = ex.get("file") if isinstance(ex, dict) else None
            if f and f not in top_files:
                top_files.append(f)

    return {
        "matchCount": match_count,
        "topFiles": top_files[:MAX_TOP_FILES],
        "distribution": distribution,
        "samples": samples,
    }


def _samples(variants: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    out = []
    for v in variants:
        for ex in v.get("examples") or []:
            if not isinstance(ex, dict):
                continue
            out.append({
                "file": ex.get("file") or "",
                "line": _as_int(ex.get("lineNum", ex.get("line"))),
                "code": _block_to_str(ex.get("block", ex.get("code"))),
                "variant": str(v.get("label") or ""),
            })
    return out


def _block_to_str(block: Any) -> str:
    if isinstance(block, (list, tuple)):
        return "\n".join(str(line) for line in block).strip()
    return str(block or "").strip()


# ── Degraded (textual) evidence ────────────────────────────────────────────


def _textual_evidence(candidate: Dict[str, Any]) -> Dict[str, Any]:
    evidence: Dict[str, Any] = {"matchCount": 0, "topFiles": []}

    sources = candidate.get("sources")
    if isinstance(sources, (list, tuple)):
        evidence["topFiles"] = list(sources[:MAX_TOP_FILES])
        evidence["matchCount"] = len(sources)

    metrics = extract_metrics(str(candidate.get("summary") or ""))
    if metrics:
        evidence["metrics"] = metrics

    hints = search_hints_for(candidate)
    if hints:
        evidence["searchHints"] = hints
    return evidence


def extract_metrics(summary: str) -> Optional[Dict[str, Any]]:
    """Parse number+unit counts, percentages and a preferred style.

    ``"naming: BIL prefix, 36 个类, 18 个协议"`` → ``{"类": 36, "协议": 18}``
    """
    if not summary or len(summary) < 5:
        return None

    metrics: Dict[str, Any] = {}
    for m in _METRIC_RE.finditer(summary):
        key = re.sub(r"\s+", "_", m.group(2).lower())
        metrics[key] = int(m.group(1))

    pcts = [int(m.group(1)) for m in _PCT_RE.finditer(summary)]
    if pcts:
        metrics["_pct"] = pcts

    preferred = _PREFERRED_RE.search(summary)
    if preferred:
        metrics["_preferred"] = preferred.group(1).strip()

    return metrics or None


def search_hints_for(candidate: Dict[str, Any]) -> List[str]:
    """At most three search terms chosen by sub-topic, then knowledge type."""
    sub_topic = str(candidate.get("subTopic") or "")
    hints: List[str] = []
    for key, terms in SEARCH_HINTS.items():
        if key in sub_topic:
            hints.extend(terms)
            break
    if not hints:
        hints.extend(KNOWLEDGE_TYPE_HINTS.get(str(candidate.get("knowledgeType") or ""), []))
    return hints[:MAX_SEARCH_HINTS]


def _related(relations: Any) -> List[str]:
    if not isinstance(relations, (list, tuple)):
        return []
    out = []
    for r in relations:
        if isinstance(r, str):
            name = r
        elif isinstance(r, dict):
            name = r.get("target") or r.get("title") or ""
        else:
            name = ""
        if name:
            out.append(str(name))
    return out[:MAX_RELATED_SIGNALS]


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
