"""Lore Bootstrap: cold-start knowledge extraction for a code project.

Pipeline:
1. Availability: production agent present? Otherwise ask degrade/abort.
2. Signals:      heuristic scan → bounded evidence per dimension
3. Production:   one agent call per dimension, strictly in order, each
                 briefed with the digests of every earlier dimension
4. Fallback:     heuristic candidates persisted when production yields nothing
5. Aggregation:  skill-worthy dimensions folded into skill documents

Usage:
    from lore_bootstrap import BootstrapOrchestrator, BootstrapInputs, DEFAULT_DIMENSIONS

    orchestrator = BootstrapOrchestrator(supplier, sink, agent=agent, tracker=board)
    summary = orchestrator.run(BootstrapInputs(
        dimensions=DEFAULT_DIMENSIONS,
        file_set=files,
        target_map=targets,
        project_root=root,
    ))
"""

from .budget import Budget, compute_budget
from .checkpoint import CheckpointStore
from .dimension_context import (
    ContextSnapshot,
    DimensionContext,
    DimensionDigest,
    parse_dimension_digest,
)
from .dimensions import DEFAULT_DIMENSIONS, Dimension, load_dimensions
from .errors import DimensionConfigError, LoreError, ProductionTimeout
from .orchestrator import BootstrapInputs, BootstrapOrchestrator
from .pipeline_context import PipelineContext
from .schemas import DimensionStats, RunMode, RunSummary
from .signals import Signal, extract_signals
from .tracker import EventBus, EventType, TaskBoard

__all__ = [
    "Budget",
    "compute_budget",
    "CheckpointStore",
    "ContextSnapshot",
    "DimensionContext",
    "DimensionDigest",
    "parse_dimension_digest",
    "DEFAULT_DIMENSIONS",
    "Dimension",
    "load_dimensions",
    "DimensionConfigError",
    "LoreError",
    "ProductionTimeout",
    "BootstrapInputs",
    "BootstrapOrchestrator",
    "PipelineContext",
    "DimensionStats",
    "RunMode",
    "RunSummary",
    "Signal",
    "extract_signals",
    "EventBus",
    "EventType",
    "TaskBoard",
]
