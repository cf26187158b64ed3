"""Per-run cache shared between dimensions.

Late dimensions reuse expensive lookups computed by earlier ones. Lifetime
is one run; there is no eviction.
"""

from __future__ import annotations

import threading
from typing import Any, Callable, Dict, TypeVar

T = TypeVar("T")

_MISSING = object()


class PipelineContext:
    """Result cache keyed by (dimension, sub-topic) plus a memo cache."""

    def __init__(self) -> None:
        self._results: Dict[str, Any] = {}
        self._computed: Dict[str, Any] = {}
        self._lock = threading.RLock()

    @staticmethod
    def _key(dimension_id: str, sub_topic: str) -> str:
        return f"{dimension_id}:{sub_topic}"

    # ── (dimension, sub-topic) results ─────────────────────────────────

    def cache_result(self, dimension_id: str, sub_topic: str, data: Any) -> None:
        """Store a scan result. Last write wins."""
        self._results[self._key(dimension_id, sub_topic)] = data

    def get_cached_result(self, dimension_id: str, sub_topic: str, default: Any = None) -> Any:
        return self._results.get(self._key(dimension_id, sub_topic), default)

    def has_cached_result(self, dimension_id: str, sub_topic: str) -> bool:
        return self._key(dimension_id, sub_topic) in self._results

    # ── Computed values ────────────────────────────────────────────────

    def set_computed(self, key: str, value: Any) -> None:
        self._computed[key] = value

    def get_computed(self, key: str, default: Any = None) -> Any:
        return self._computed.get(key, default)

    def get_or_compute(self, key: str, fn: Callable[[], T]) -> T:
        """Return the memoized value, calling ``fn`` at most once per key."""
        value = self._computed.get(key, _MISSING)
        if value is not _MISSING:
            return value
        with self._lock:
            value = self._computed.get(key, _MISSING)
            if value is _MISSING:
                value = fn()
                self._computed[key] = value
        return value

    def clear(self) -> None:
        """Drop everything; called when the run ends."""
        self._results.clear()
        self._computed.clear()

    def __len__(self) -> int:
        return len(self._results) + len(self._computed)
