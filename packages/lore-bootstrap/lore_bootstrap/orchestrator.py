"""Bootstrap orchestrator: availability check → AI or degraded path → aggregation.

Dimensions run strictly in list order, one at a time: each production call
is briefed with the digests of every dimension before it. The only
concurrency is the race between one production call and its timer; the
losing call is abandoned, not cancelled.
"""

from __future__ import annotations

import logging
import time
import uuid
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from lore_shared.agent import AgentReply, has_real_capability
from lore_shared.config import Settings, VALID_DECISIONS, get_settings

from .budget import Budget, compute_budget
from .checkpoint import CheckpointStore
from .collaborators import (
    CandidateSink,
    CountingAggregator,
    EvidenceSupplier,
    JsonPromptBuilder,
    NullTaskTracker,
    PromptBuilder,
    SkillAggregator,
    TaskTracker,
)
from .dimension_context import DimensionContext, DimensionDigest, parse_dimension_digest
from .dimensions import Dimension, enhance_dimensions, validate_dimensions
from .errors import ProductionTimeout
from .pipeline_context import PipelineContext
from .schemas import (
    PROVENANCE_FALLBACK,
    PROVENANCE_HEURISTIC,
    SINK_ACTOR,
    SUBMIT_TOOLS,
    CandidateResults,
    DimensionStats,
    DimensionStatus,
    RunMode,
    RunSummary,
)
from .signals import Signal, SignalBatch, extract_dimension_signals
from .stages import Stage, run_stage
from .tracker import EventType

logger = logging.getLogger(__name__)

# Extraction-context keys holding large buffers released at the end of a run
TRANSIENT_CONTEXT_KEYS = ("depGraph", "depGraphData", "astProjectSummary", "guardAudit")


# ── Run inputs and state ───────────────────────────────────────────────────


@dataclass
class BootstrapInputs:
    """What one run reads. ``file_set`` and graph data are dropped at Done."""

    dimensions: List[Dimension]
    file_set: Optional[List[Any]] = None
    target_map: Dict[str, Any] = field(default_factory=dict)
    extraction_context: Dict[str, Any] = field(default_factory=dict)
    project_root: Optional[Path] = None
    project_facts: Dict[str, Any] = field(default_factory=dict)
    # Extra reference guidance per dimension id, appended to its guide
    skill_guides: Dict[str, str] = field(default_factory=dict)

    def build_project_facts(self) -> Dict[str, Any]:
        if self.project_facts:
            return dict(self.project_facts)
        name = Path(self.project_root).name if self.project_root else ""
        return {
            "projectName": name,
            "primaryLang": self.extraction_context.get("primaryLang") or "",
            "fileCount": len(self.file_set or []),
            "targetCount": len(self.target_map),
            "modules": list(self.target_map),
        }


@dataclass
class RunState:
    """Everything owned by a single run."""

    session_id: str
    inputs: BootstrapInputs
    summary: RunSummary
    pipeline_ctx: PipelineContext = field(default_factory=PipelineContext)
    dim_context: DimensionContext = field(default_factory=DimensionContext)
    signals: Dict[str, List[Signal]] = field(default_factory=dict)
    heuristic_candidates: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    dimension_candidates: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)

    @property
    def results(self) -> CandidateResults:
        return self.summary.candidate_results


def accepted_submissions(tool_calls: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Submission tool calls that were not rejected, in call order."""
    accepted = []
    for tc in tool_calls or []:
        if not isinstance(tc, dict):
            continue
        if (tc.get("tool") or tc.get("name")) not in SUBMIT_TOOLS:
            continue
        if tc.get("error"):
            continue
        result = tc.get("result")
        if isinstance(result, dict) and (
            result.get("error") or result.get("status") in ("rejected", "error")
        ):
            continue
        params = tc.get("params")
        # Nothing to record for a submission without usable params
        if not isinstance(params, dict) or not params:
            continue
        accepted.append(params)
    return accepted


@dataclass
class Production:
    """A production reply reduced to what the run records."""

    submissions: List[Dict[str, Any]]
    digest: DimensionDigest
    tool_call_count: int
    token_usage: Dict[str, int]

    @classmethod
    def from_reply(cls, value: Any) -> "Production":
        reply = AgentReply.coerce(value)
        submissions = accepted_submissions(reply.tool_calls)
        digest = parse_dimension_digest(reply.reply)
        if digest is None:
            digest = DimensionDigest.stub(len(submissions))
        return cls(
            submissions=submissions,
            digest=digest,
            tool_call_count=len(reply.tool_calls),
            token_usage={
                "input": reply.usage.get("input", 0),
                "output": reply.usage.get("output", 0),
            },
        )


# ── Orchestrator ───────────────────────────────────────────────────────────


class BootstrapOrchestrator:
    """Drives one knowledge-bootstrap run over a fixed dimension order."""

    def __init__(
        self,
        supplier: EvidenceSupplier,
        sink: CandidateSink,
        agent: Optional[Any] = None,
        tracker: Optional[TaskTracker] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        aggregator: Optional[SkillAggregator] = None,
        settings: Optional[Settings] = None,
        checkpoints: Optional[CheckpointStore] = None,
    ) -> None:
        self.supplier = supplier
        self.sink = sink
        self.agent = agent
        self.tracker: TaskTracker = tracker or NullTaskTracker()
        self.prompt_builder: PromptBuilder = prompt_builder or JsonPromptBuilder()
        self.aggregator: SkillAggregator = aggregator or CountingAggregator()
        self.settings = settings or get_settings()
        self.checkpoints = checkpoints

    # ── Entry point ────────────────────────────────────────────────────

    def run(self, inputs: BootstrapInputs, session_id: Optional[str] = None) -> RunSummary:
        """Run the whole pipeline. Always returns a summary; never raises for
        collaborator failures."""
        inputs.dimensions = enhance_dimensions(
            validate_dimensions(inputs.dimensions), inputs.skill_guides,
        )
        session_id = session_id or uuid.uuid4().hex[:12]
        state = RunState(
            session_id=session_id,
            inputs=inputs,
            summary=RunSummary(session_id=session_id, mode=RunMode.AI),
            dim_context=DimensionContext(inputs.build_project_facts()),
        )
        inputs.extraction_context.setdefault("pipelineCtx", state.pipeline_ctx)
        store = self._checkpoint_store(inputs)
        # An injected store always resumes; a derived one only when enabled
        resume = store if (self.checkpoints is not None or self.settings.enable_checkpoints) else None
        t0 = time.monotonic()

        logger.info(
            "Bootstrap[%s]: %d dimensions: [%s]",
            session_id, len(inputs.dimensions), ", ".join(d.id for d in inputs.dimensions),
        )

        try:
            agent = self._available_agent()
            if agent is None:
                if self._decide_without_agent(state) == "abort":
                    self._abort(state)
                    return state.summary
                state.summary.mode = RunMode.DEGRADED
                self._run_degraded(state)
            else:
                state.summary.mode = RunMode.AI
                self._run_ai(state, agent, resume)

            if state.summary.superseded:
                logger.warning("Bootstrap[%s]: superseded, aggregation skipped", session_id)
            else:
                self._aggregate(state)
                if resume is not None and state.summary.mode == RunMode.AI:
                    resume.clear()
        except Exception as e:
            logger.exception("Bootstrap[%s]: pipeline error: %s", session_id, e)
            state.results.record_error("pipeline", e)
        finally:
            state.summary.duration_ms = int((time.monotonic() - t0) * 1000)
            self._release(state)
            self._write_report(state, store)

        self._log_summary(state)
        return state.summary

    # ── Step 1: availability ───────────────────────────────────────────

    def _available_agent(self) -> Optional[Any]:
        if not has_real_capability(self.agent):
            return None
        reset = getattr(self.agent, "reset_submitted_titles", None)
        if callable(reset):
            reset()
        return self.agent

    def _decide_without_agent(self, state: RunState) -> str:
        default = self.settings.resolved_default_decision
        logger.info("Bootstrap[%s]: no production agent available", state.session_id)
        self.tracker.emit_progress(EventType.AI_UNAVAILABLE.value, {
            "message": "No production agent available; continue with heuristic extraction only?",
            "options": list(VALID_DECISIONS),
            "default": default,
            "timeoutSeconds": self.settings.decision_timeout_seconds,
        })
        decision = self.tracker.wait_for_user_decision(
            state.session_id, self.settings.decision_timeout_seconds,
        )
        if decision not in VALID_DECISIONS:
            decision = default
        logger.info("Bootstrap[%s]: decision=%s", state.session_id, decision)
        return decision

    def _abort(self, state: RunState) -> None:
        state.summary.mode = RunMode.ABORTED
        for dim in state.inputs.dimensions:
            self.tracker.mark_task_completed(dim.id, {"type": "skipped", "reason": "ai-unavailable"})
            state.summary.dimension_stats[dim.id] = DimensionStats(status=DimensionStatus.SKIPPED)

    def _session_valid(self, state: RunState) -> bool:
        if self.tracker.is_session_valid(state.session_id):
            return True
        if not state.summary.superseded:
            logger.warning("Bootstrap[%s]: session superseded, stopping", state.session_id)
        state.summary.superseded = True
        return False

    # ── Step 2: degraded path ──────────────────────────────────────────

    def _run_degraded(self, state: RunState) -> None:
        for dim in state.inputs.dimensions:
            if not self._session_valid(state):
                break
            self.tracker.mark_task_filling(dim.id)
            start = time.monotonic()
            run_stage(Stage(
                name=f"extract:{dim.id}",
                attempt=lambda dim=dim: self._extract_raw(state, dim),
                on_success=lambda cands, dim=dim: self._persist_degraded(state, dim, cands, start),
                on_failure=lambda e, dim=dim: self._extraction_failed(state, dim, e),
            ), logger)

    def _persist_degraded(
        self, state: RunState, dim: Dimension, candidates: List[Dict[str, Any]], start: float,
    ) -> None:
        stats = DimensionStats(extracted=len(candidates))
        self._retain_for_aggregation(state, dim, candidates)

        if dim.is_digest_only:
            # Finished by the aggregation pass
            stats.status = DimensionStatus.COMPLETE
        elif not candidates:
            stats.status = DimensionStatus.EMPTY
            self.tracker.mark_task_completed(dim.id, {
                "type": dim.output_type, "reason": "empty", "extracted": 0, "sourceCount": 0,
            })
        else:
            stats.candidate_count = self._persist(state, dim, candidates, PROVENANCE_HEURISTIC)
            self.tracker.mark_task_completed(dim.id, {
                "type": dim.output_type,
                "extracted": len(candidates),
                "created": stats.candidate_count,
                "sourceCount": len(candidates),
                "status": PROVENANCE_HEURISTIC,
            })

        stats.duration_ms = int((time.monotonic() - start) * 1000)
        state.summary.dimension_stats[dim.id] = stats
        logger.info(
            "Bootstrap[%s] %s: %d extracted, %d persisted (heuristic)",
            state.session_id, dim.id, stats.extracted, stats.candidate_count,
        )

    def _extraction_failed(self, state: RunState, dim: Dimension, error: Exception) -> None:
        state.results.failed += 1
        state.results.record_error(dim.id, error)
        state.summary.dimension_stats[dim.id] = DimensionStats(
            status=DimensionStatus.FAILED, error=str(error),
        )
        self.tracker.mark_task_failed(dim.id, {"error": str(error)})

    # ── Step 3: AI path ────────────────────────────────────────────────

    def _run_ai(self, state: RunState, agent: Any, store: Optional[CheckpointStore]) -> None:
        # 3a: signals for every dimension before any production starts
        for dim in state.inputs.dimensions:
            if not self._session_valid(state):
                return
            run_stage(Stage(
                name=f"signals:{dim.id}",
                attempt=lambda dim=dim: extract_dimension_signals(
                    dim,
                    self.supplier,
                    state.inputs.file_set or [],
                    state.inputs.target_map,
                    state.inputs.extraction_context,
                ),
                on_success=lambda batch, dim=dim: self._keep_signals(state, dim, batch),
                on_failure=lambda e, dim=dim: self._signals_failed(state, dim, e),
            ), logger)

        checkpoints = store.load() if store is not None else {}
        restored_ctx = store.load_context() if checkpoints else None

        # 3b: production, strictly in order
        for dim in state.inputs.dimensions:
            if not self._session_valid(state):
                return
            if dim.id in checkpoints:
                self._restore_dimension(state, dim, checkpoints[dim.id], restored_ctx)
                continue
            self._produce_dimension(state, agent, dim, store)

    def _keep_signals(self, state: RunState, dim: Dimension, batch: SignalBatch) -> None:
        state.signals[dim.id] = batch.signals
        state.heuristic_candidates[dim.id] = batch.candidates
        self._retain_for_aggregation(state, dim, batch.candidates)
        logger.info(
            "Bootstrap[%s] %s: %d signals from %d candidates",
            state.session_id, dim.id, len(batch.signals), len(batch.candidates),
        )

    def _signals_failed(self, state: RunState, dim: Dimension, error: Exception) -> None:
        """Keep already-scanned evidence: fall back to raw heuristic candidates."""
        logger.warning("Bootstrap[%s] %s: signal extraction failed: %s", state.session_id, dim.id, error)
        state.signals[dim.id] = []
        candidates = run_stage(Stage(
            name=f"extract-fallback:{dim.id}",
            attempt=lambda: self._extract_raw(state, dim),
            on_success=lambda cands: cands,
            on_failure=lambda e: self._fallback_extraction_failed(state, dim, e),
        ), logger)
        state.heuristic_candidates[dim.id] = candidates
        self._retain_for_aggregation(state, dim, candidates)

    def _fallback_extraction_failed(
        self, state: RunState, dim: Dimension, error: Exception,
    ) -> List[Dict[str, Any]]:
        state.results.record_error(dim.id, error)
        return []

    def _restore_dimension(
        self,
        state: RunState,
        dim: Dimension,
        checkpoint: Dict[str, Any],
        restored_ctx: Optional[DimensionContext],
    ) -> None:
        stats = DimensionStats.from_dict(checkpoint.get("stats") or {})
        stats.status = DimensionStatus.RESTORED
        digest = checkpoint.get("digest")
        state.dim_context.add_dimension_digest(
            dim.id, digest if isinstance(digest, dict) else DimensionDigest.stub(stats.candidate_count),
        )
        if restored_ctx is not None:
            for c in restored_ctx.get_existing_candidates_for_dimension(dim.id):
                state.dim_context.add_submitted_candidate(dim.id, {
                    "title": c.title, "subTopic": c.sub_topic, "summary": c.summary,
                })
        state.results.created += stats.candidate_count
        state.summary.dimension_stats[dim.id] = stats
        state.summary.restored_dimensions.append(dim.id)
        if not dim.is_digest_only:
            self.tracker.mark_task_completed(dim.id, {
                "type": "checkpoint-restored",
                "extracted": stats.extracted,
                "created": stats.candidate_count,
                "sourceCount": stats.signal_count,
            })
        logger.info("Bootstrap[%s] %s: restored from checkpoint", state.session_id, dim.id)

    def _produce_dimension(
        self, state: RunState, agent: Any, dim: Dimension, store: Optional[CheckpointStore],
    ) -> None:
        self.tracker.mark_task_filling(dim.id)
        start = time.monotonic()
        signals = state.signals.get(dim.id) or []
        heuristics = state.heuristic_candidates.get(dim.id) or []
        stats = DimensionStats(signal_count=len(signals), extracted=len(heuristics))

        if not signals:
            self._finish_without_signals(state, dim, heuristics, stats, start)
            return

        snapshot = state.dim_context.build_context_for_dimension(dim.id)
        budget = compute_budget(dim, len(signals))
        logger.info(
            "Bootstrap[%s] %s: producing from %d signals (maxSubmits=%d)",
            state.session_id, dim.id, len(signals), budget.max_submits,
        )

        digest = run_stage(Stage(
            name=f"produce:{dim.id}",
            attempt=lambda: Production.from_reply(
                self._call_agent(state, agent, dim, signals, snapshot, budget),
            ),
            on_success=lambda production: self._on_produced(state, dim, production, heuristics, stats),
            on_failure=lambda e: self._on_production_failed(state, dim, e, heuristics, stats),
        ), logger)

        stats.duration_ms = int((time.monotonic() - start) * 1000)
        state.summary.dimension_stats[dim.id] = stats
        if store is not None and stats.status != DimensionStatus.FAILED:
            store.save_dimension(state.session_id, dim.id, stats.to_dict(), digest.to_dict())
            store.save_context(state.dim_context)

    def _call_agent(
        self,
        state: RunState,
        agent: Any,
        dim: Dimension,
        signals: List[Signal],
        snapshot: Any,
        budget: Budget,
    ) -> Any:
        prompt = self.prompt_builder.build(dim, signals, snapshot, budget)
        timeout_s = self.settings.production_timeout_seconds
        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"produce-{dim.id}")
        try:
            future = pool.submit(
                agent.execute,
                prompt,
                budget=budget.to_dict(),
                dimension_meta=dim.to_meta(),
                conversation_id=f"bootstrap-{state.session_id}-{dim.id}",
            )
            try:
                raw = future.result(timeout=timeout_s)
            except FuturesTimeoutError:
                raise ProductionTimeout(dim.id, timeout_s) from None
        finally:
            # The losing call keeps running; its side effects are accepted as-is
            pool.shutdown(wait=False)
        return raw

    def _on_produced(
        self,
        state: RunState,
        dim: Dimension,
        production: Production,
        heuristics: List[Dict[str, Any]],
        stats: DimensionStats,
    ) -> DimensionDigest:
        submissions = production.submissions
        for params in submissions:
            state.dim_context.add_submitted_candidate(dim.id, {
                "title": params.get("title"),
                "subTopic": params.get("subTopic") or params.get("category"),
                "summary": params.get("summary"),
            })

        digest = production.digest
        state.dim_context.add_dimension_digest(dim.id, digest)

        state.results.created += len(submissions)
        stats.candidate_count = len(submissions)
        stats.tool_call_count = production.tool_call_count
        stats.token_usage = dict(production.token_usage)

        fallback = False
        if not submissions and not dim.is_digest_only and heuristics:
            stats.fallback_count = self._persist(state, dim, heuristics, PROVENANCE_FALLBACK)
            stats.status = DimensionStatus.FALLBACK
            fallback = True

        # Digest-only dimensions are finished by the aggregation pass
        if not dim.is_digest_only:
            self.tracker.mark_task_completed(dim.id, {
                "type": dim.output_type,
                "extracted": stats.extracted,
                "created": stats.candidate_count,
                "sourceCount": stats.signal_count,
                "digest": digest.summary,
                "fallback": fallback,
            })
        logger.info(
            "Bootstrap[%s] %s: %d accepted, %d tool calls%s",
            state.session_id, dim.id, stats.candidate_count, stats.tool_call_count,
            f", {stats.fallback_count} fallback" if fallback else "",
        )
        return digest

    def _on_production_failed(
        self,
        state: RunState,
        dim: Dimension,
        error: Exception,
        heuristics: List[Dict[str, Any]],
        stats: DimensionStats,
    ) -> DimensionDigest:
        logger.error("Bootstrap[%s] %s: production failed: %s", state.session_id, dim.id, error)
        state.results.record_error(dim.id, error)

        fallback = False
        if not dim.is_digest_only and heuristics:
            stats.fallback_count = self._persist(state, dim, heuristics, PROVENANCE_FALLBACK)
            fallback = True

        digest = DimensionDigest.failure(str(error))
        state.dim_context.add_dimension_digest(dim.id, digest)
        stats.status = DimensionStatus.FAILED
        stats.error = str(error)

        self.tracker.mark_task_failed(dim.id, {
            "error": str(error),
            "extracted": stats.extracted,
            "created": stats.fallback_count,
            "sourceCount": stats.signal_count,
            "digest": digest.summary,
            "fallback": fallback,
        })
        return digest

    def _finish_without_signals(
        self,
        state: RunState,
        dim: Dimension,
        heuristics: List[Dict[str, Any]],
        stats: DimensionStats,
        start: float,
    ) -> None:
        digest = DimensionDigest.empty()
        state.dim_context.add_dimension_digest(dim.id, digest)

        if heuristics and not dim.is_digest_only:
            stats.fallback_count = self._persist(state, dim, heuristics, PROVENANCE_FALLBACK)
            stats.status = DimensionStatus.FALLBACK
            info = {"fallback": True, "created": stats.fallback_count}
        else:
            stats.status = DimensionStatus.EMPTY
            info = {"reason": "empty"}

        if not dim.is_digest_only:
            self.tracker.mark_task_completed(dim.id, {
                "type": dim.output_type,
                "extracted": stats.extracted,
                "sourceCount": 0,
                "digest": digest.summary,
                **info,
            })
        stats.duration_ms = int((time.monotonic() - start) * 1000)
        state.summary.dimension_stats[dim.id] = stats

    # ── Step 4: aggregation ────────────────────────────────────────────

    def _aggregate(self, state: RunState) -> None:
        skill_dims = [d for d in state.inputs.dimensions if d.skill_worthy]
        qualifying = [d for d in skill_dims if state.dimension_candidates.get(d.id)]

        for dim in skill_dims:
            if dim in qualifying:
                continue
            self._notify_skill(dim, {"type": "skill", "reason": "empty", "sourceCount": 0})

        if not qualifying:
            return

        candidates_by_dim = {d.id: state.dimension_candidates[d.id] for d in qualifying}
        snapshot = state.dim_context.build_context_for_dimension("skills")
        logger.info(
            "Bootstrap[%s]: aggregating %d skill dimension(s): [%s]",
            state.session_id, len(qualifying), ", ".join(d.id for d in qualifying),
        )

        try:
            produced = self.aggregator.aggregate(qualifying, candidates_by_dim, snapshot) or {}
        except Exception as e:
            logger.warning("Bootstrap[%s]: aggregation failed: %s", state.session_id, e)
            state.results.record_error("aggregation", e)
            for dim in qualifying:
                if dim.is_digest_only:
                    self.tracker.mark_task_failed(dim.id, {"error": str(e)})
            return

        for dim in qualifying:
            info = dict(produced.get(dim.id) or {})
            info.setdefault("sourceCount", len(candidates_by_dim[dim.id]))
            state.summary.skills[dim.id] = info
            self._notify_skill(dim, {"type": "skill", **info})

    def _notify_skill(self, dim: Dimension, info: Dict[str, Any]) -> None:
        # Dual-output dimensions already reported their candidate outcome
        if dim.is_digest_only:
            self.tracker.mark_task_completed(dim.id, info)
        else:
            self.tracker.emit_progress(EventType.PROGRESS.value, {"skill": dim.id, **info})

    # ── Shared helpers ─────────────────────────────────────────────────

    def _extract_raw(self, state: RunState, dim: Dimension) -> List[Dict[str, Any]]:
        raw = self.supplier.extract(
            dim,
            state.inputs.file_set or [],
            state.inputs.target_map,
            state.inputs.extraction_context,
        )
        return list(raw or [])

    @staticmethod
    def _retain_for_aggregation(
        state: RunState, dim: Dimension, candidates: List[Dict[str, Any]],
    ) -> None:
        if dim.skill_worthy and candidates:
            state.dimension_candidates[dim.id] = list(candidates)

    def _persist(
        self,
        state: RunState,
        dim: Dimension,
        candidates: List[Dict[str, Any]],
        provenance: str,
    ) -> int:
        """Persist each candidate independently; returns the number created."""
        created = 0
        for candidate in candidates:
            sub_topic = candidate.get("subTopic") if isinstance(candidate, dict) else None
            try:
                self.sink.create_from_tool_params(
                    candidate_fields(dim, candidate, provenance), provenance, {}, dict(SINK_ACTOR),
                )
            except Exception as e:
                state.results.failed += 1
                state.results.record_error(dim.id, e, sub_topic=sub_topic)
                logger.warning(
                    "Bootstrap[%s] %s/%s: persist failed: %s",
                    state.session_id, dim.id, sub_topic or "?", e,
                )
                continue
            created += 1
            state.results.created += 1
        return created

    def _checkpoint_store(self, inputs: BootstrapInputs) -> Optional[CheckpointStore]:
        if self.checkpoints is not None:
            return self.checkpoints
        if inputs.project_root is None:
            return None
        if not (self.settings.enable_checkpoints or self.settings.write_report):
            return None
        return CheckpointStore(
            self.settings.state_path(inputs.project_root),
            ttl_seconds=self.settings.checkpoint_ttl_seconds,
        )

    @staticmethod
    def _release(state: RunState) -> None:
        """Drop large transient buffers so they do not outlive the run."""
        state.inputs.file_set = None
        for key in TRANSIENT_CONTEXT_KEYS:
            state.inputs.extraction_context.pop(key, None)
        if state.inputs.extraction_context.get("pipelineCtx") is state.pipeline_ctx:
            del state.inputs.extraction_context["pipelineCtx"]
        state.pipeline_ctx.clear()
        state.signals.clear()
        state.heuristic_candidates.clear()
        state.dimension_candidates.clear()

    def _write_report(self, state: RunState, store: Optional[CheckpointStore]) -> None:
        if store is None or not self.settings.write_report:
            return
        path = store.write_report(state.summary.to_dict())
        if path is not None:
            logger.info("Bootstrap[%s]: report saved to %s", state.session_id, path)

    @staticmethod
    def _log_summary(state: RunState) -> None:
        s = state.summary
        usage = s.token_usage
        logger.info(
            "Bootstrap[%s] complete (%s): %d created, %d failed, %d errors, "
            "%d skills, %d tool calls, tokens in=%d out=%d, %.1fs%s",
            s.session_id, s.mode.value,
            s.candidate_results.created, s.candidate_results.failed,
            len(s.candidate_results.errors), len(s.skills), s.tool_call_count,
            usage["input"], usage["output"], s.duration_ms / 1000,
            f", restored [{', '.join(s.restored_dimensions)}]" if s.restored_dimensions else "",
        )


def candidate_fields(dim: Dimension, candidate: Dict[str, Any], provenance: str) -> Dict[str, Any]:
    """Sink parameters for a heuristic candidate."""
    summary = candidate.get("summary") or ""
    fields: Dict[str, Any] = {
        "code": candidate.get("code") or "",
        "language": candidate.get("language") or "",
        "category": "bootstrap",
        "title": candidate.get("title") or candidate.get("subTopic") or dim.label,
        "knowledgeType": candidate.get("knowledgeType") or dim.default_knowledge_type,
        "tags": ["bootstrap", dim.id, *(candidate.get("tags") or [])],
        "scope": "project",
        "summary": summary,
        "reasoning": {
            "whyStandard": summary,
            "sources": list(candidate.get("sources") or []),
            "confidence": 0.6,
            "qualitySignals": {"completeness": "partial", "origin": provenance},
        },
    }
    if candidate.get("relations"):
        fields["relations"] = candidate["relations"]
    return fields
