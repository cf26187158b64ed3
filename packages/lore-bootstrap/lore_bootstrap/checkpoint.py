"""Dimension-level checkpoints for resuming an interrupted run.

Layout under the state directory::

    bootstrap-checkpoint/
        <dim_id>.json          per-dimension stats + digest
        _context.json          DimensionContext snapshot
    bootstrap-report.json      last run summary
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .dimension_context import DimensionContext

logger = logging.getLogger(__name__)

CHECKPOINT_DIRNAME = "bootstrap-checkpoint"
CONTEXT_FILENAME = "_context.json"
REPORT_FILENAME = "bootstrap-report.json"


def _safe_name(dim_id: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]", "_", dim_id)


class CheckpointStore:
    """Reads and writes checkpoints under ``state_dir``. Never raises on I/O."""

    def __init__(self, state_dir: str | Path, ttl_seconds: float = 3600):
        self.state_dir = Path(state_dir)
        self.ttl_seconds = ttl_seconds

    @property
    def checkpoint_dir(self) -> Path:
        return self.state_dir / CHECKPOINT_DIRNAME

    @property
    def report_path(self) -> Path:
        return self.state_dir / REPORT_FILENAME

    def save_dimension(
        self,
        session_id: str,
        dim_id: str,
        stats: Dict[str, Any],
        digest: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload = {
            "dimId": dim_id,
            "sessionId": session_id,
            "stats": stats,
            "digest": digest,
            "completedAt": time.time(),
        }
        try:
            self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
            (self.checkpoint_dir / f"{_safe_name(dim_id)}.json").write_text(
                json.dumps(payload, ensure_ascii=False, default=str)
            )
        except OSError as e:
            logger.warning("Checkpoint save failed for '%s': %s", dim_id, e)

    def load(self) -> Dict[str, Dict[str, Any]]:
        """Return ``dim_id -> checkpoint`` for entries younger than the TTL."""
        checkpoints: Dict[str, Dict[str, Any]] = {}
        if not self.checkpoint_dir.is_dir():
            return checkpoints
        now = time.time()
        for path in sorted(self.checkpoint_dir.glob("*.json")):
            if path.name == CONTEXT_FILENAME:
                continue
            try:
                data = json.loads(path.read_text())
            except (OSError, ValueError) as e:
                logger.debug("Skipping corrupt checkpoint %s: %s", path.name, e)
                continue
            if not isinstance(data, dict) or not data.get("dimId"):
                continue
            completed_at = data.get("completedAt")
            if not isinstance(completed_at, (int, float)):
                continue
            if now - completed_at < self.ttl_seconds:
                checkpoints[data["dimId"]] = data
        return checkpoints

    def save_context(self, ctx: DimensionContext) -> None:
        try:
            self.checkpoint_dir.mkdir(parents=True, exist_ok=True)
            (self.checkpoint_dir / CONTEXT_FILENAME).write_text(
                json.dumps(ctx.to_json(), ensure_ascii=False, default=str)
            )
        except OSError as e:
            logger.warning("Context snapshot save failed: %s", e)

    def load_context(self) -> Optional[DimensionContext]:
        path = self.checkpoint_dir / CONTEXT_FILENAME
        if not path.exists():
            return None
        try:
            return DimensionContext.from_json(json.loads(path.read_text()))
        except (OSError, ValueError, AttributeError) as e:
            logger.warning("Context snapshot unreadable: %s", e)
            return None

    def clear(self) -> None:
        try:
            shutil.rmtree(self.checkpoint_dir, ignore_errors=True)
        except OSError as e:
            logger.debug("Checkpoint clear failed: %s", e)

    def write_report(self, report: Dict[str, Any]) -> Optional[Path]:
        try:
            self.state_dir.mkdir(parents=True, exist_ok=True)
            self.report_path.write_text(json.dumps(report, indent=2, ensure_ascii=False, default=str))
        except OSError as e:
            logger.warning("Bootstrap report write failed: %s", e)
            return None
        return self.report_path

    def read_report(self) -> Optional[Dict[str, Any]]:
        if not self.report_path.exists():
            return None
        try:
            data = json.loads(self.report_path.read_text())
        except (OSError, ValueError) as e:
            logger.warning("Bootstrap report unreadable: %s", e)
            return None
        return data if isinstance(data, dict) else None
