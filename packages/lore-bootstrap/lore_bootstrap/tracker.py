"""In-process task board: session lifecycle, task states and progress events.

Task states flow skeleton → filling → completed / failed. Starting a new
session supersedes the previous one; a running pipeline notices on its next
session check and stops.
"""

from __future__ import annotations

import json
import logging
import queue
import threading
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, TYPE_CHECKING

from lore_shared.config import VALID_DECISIONS

if TYPE_CHECKING:
    from .dimensions import Dimension

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    STARTED = "bootstrap:started"
    TASK_STARTED = "bootstrap:task-started"
    TASK_COMPLETED = "bootstrap:task-completed"
    TASK_FAILED = "bootstrap:task-failed"
    ALL_COMPLETED = "bootstrap:all-completed"
    AI_UNAVAILABLE = "bootstrap:ai-unavailable"
    DECISION_REQUIRED = "bootstrap:decision-required"
    PROGRESS = "bootstrap:progress"


class TaskStatus(str, Enum):
    SKELETON = "skeleton"
    FILLING = "filling"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class BoardEvent:
    type: str
    data: Dict[str, Any] = field(default_factory=dict)
    session_id: Optional[str] = None
    timestamp: float = field(default_factory=time.time)

    def to_json(self) -> str:
        return json.dumps({
            "type": self.type,
            "sessionId": self.session_id,
            "data": self.data,
            "timestamp": self.timestamp,
        }, default=str)


class EventBus:
    """Thread-safe event queue for pipeline → observer communication.

    Every event is stamped with the session bound at emit time, so an
    observer draining after a restart can skip whatever the previous
    session left queued.
    """

    def __init__(self, maxsize: int = 1000) -> None:
        self._queue: queue.Queue[BoardEvent] = queue.Queue(maxsize=maxsize)
        self._session_id: Optional[str] = None
        self.dropped = 0

    @property
    def session_id(self) -> Optional[str]:
        return self._session_id

    def bind(self, session_id: Optional[str]) -> None:
        """Stamp subsequent events with ``session_id``."""
        self._session_id = session_id

    def emit(self, event_type: EventType | str, **data: Any) -> None:
        """Non-blocking put. Drop event if queue is full."""
        name = event_type.value if isinstance(event_type, EventType) else str(event_type)
        event = BoardEvent(type=name, data=data, session_id=self._session_id)
        try:
            self._queue.put_nowait(event)
        except queue.Full:
            # Observers that fall behind lose events; the pipeline never blocks
            self.dropped += 1
            if self.dropped == 1:
                logger.warning("EventBus: queue full, dropping events (first: %s)", name)

    def get_event(self, timeout: float = 0.1) -> Optional[BoardEvent]:
        """Blocking get with timeout. Returns None if no event available."""
        try:
            return self._queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self, max_events: int = 50, session_id: Optional[str] = None) -> List[BoardEvent]:
        """Non-blocking batch get of up to ``max_events``.

        With ``session_id``, events stamped with another session are
        consumed and discarded.
        """
        events: List[BoardEvent] = []
        while len(events) < max_events:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                break
            if session_id is not None and event.session_id != session_id:
                continue
            events.append(event)
        return events


@dataclass
class TaskInfo:
    id: str
    meta: Dict[str, Any] = field(default_factory=dict)
    status: TaskStatus = TaskStatus.SKELETON
    started_at: Optional[float] = None
    completed_at: Optional[float] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status.value,
            "meta": self.meta,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
            "result": self.result,
            "error": self.error,
        }


@dataclass
class BoardSession:
    id: str
    tasks: Dict[str, TaskInfo] = field(default_factory=dict)
    started_at: float = field(default_factory=time.time)
    completed_at: Optional[float] = None
    status: str = "running"

    def count(self, status: TaskStatus) -> int:
        return sum(1 for t in self.tasks.values() if t.status == status)

    @property
    def is_all_done(self) -> bool:
        return self.count(TaskStatus.SKELETON) == 0 and self.count(TaskStatus.FILLING) == 0

    @property
    def progress(self) -> int:
        total = len(self.tasks)
        if total == 0:
            return 100
        done = self.count(TaskStatus.COMPLETED) + self.count(TaskStatus.FAILED)
        return round(done / total * 100)


class TaskBoard:
    """Concrete task tracker backed by an EventBus."""

    def __init__(self, event_bus: Optional[EventBus] = None) -> None:
        self.event_bus = event_bus or EventBus()
        self._session: Optional[BoardSession] = None
        self._lock = threading.Lock()
        self._decision_ready = threading.Event()
        self._decision: Optional[str] = None

    # ── Session management ─────────────────────────────────────────────

    def start_session(self, dimensions: Sequence["Dimension"]) -> str:
        """Create a new session, superseding any running one."""
        session = BoardSession(id=uuid.uuid4().hex[:12])
        for dim in dimensions:
            session.tasks[dim.id] = TaskInfo(
                id=dim.id,
                meta={
                    "type": "dimension",
                    "dimId": dim.id,
                    "label": dim.label,
                    "skillWorthy": dim.skill_worthy,
                },
            )
        with self._lock:
            previous = self._session
            self._session = session
            self._decision = None
            self._decision_ready.clear()
            self.event_bus.bind(session.id)
        if previous is not None and previous.status == "running":
            logger.info("TaskBoard: session %s superseded by %s", previous.id, session.id)
        self.event_bus.emit(
            EventType.STARTED,
            tasks=[t.to_dict() for t in session.tasks.values()],
        )
        return session.id

    @property
    def session_id(self) -> Optional[str]:
        return self._session.id if self._session else None

    def is_session_valid(self, session_id: str) -> bool:
        session = self._session
        return session is not None and session.id == session_id

    def get_task(self, task_id: str) -> Optional[TaskInfo]:
        session = self._session
        return session.tasks.get(task_id) if session else None

    # ── Task transitions ───────────────────────────────────────────────

    def mark_task_filling(self, task_id: str) -> None:
        task = self._task(task_id)
        if task is None:
            return
        task.status = TaskStatus.FILLING
        task.started_at = time.time()
        self.event_bus.emit(EventType.TASK_STARTED, taskId=task_id)

    def mark_task_completed(self, task_id: str, info: Dict[str, Any]) -> None:
        task = self._task(task_id)
        if task is None:
            return
        task.status = TaskStatus.COMPLETED
        task.completed_at = time.time()
        task.result = dict(info or {})
        self.event_bus.emit(
            EventType.TASK_COMPLETED,
            taskId=task_id, result=task.result,
        )
        self._check_all_done()

    def mark_task_failed(self, task_id: str, info: Dict[str, Any]) -> None:
        task = self._task(task_id)
        if task is None:
            return
        task.status = TaskStatus.FAILED
        task.completed_at = time.time()
        task.result = dict(info or {})
        task.error = str((info or {}).get("error") or (info or {}).get("reason") or "")
        self.event_bus.emit(
            EventType.TASK_FAILED,
            taskId=task_id, error=task.error,
        )
        self._check_all_done()

    def emit_progress(self, event: str, payload: Dict[str, Any]) -> None:
        self.event_bus.emit(event, **(payload or {}))

    # ── User decision gate ─────────────────────────────────────────────

    def wait_for_user_decision(self, session_id: str, timeout: float) -> Optional[str]:
        """Block until ``resolve_decision`` is called or ``timeout`` elapses."""
        if not self.is_session_valid(session_id):
            return None
        self.event_bus.emit(
            EventType.DECISION_REQUIRED,
            options=list(VALID_DECISIONS), timeoutSeconds=timeout,
        )
        if not self._decision_ready.wait(timeout=timeout):
            return None
        with self._lock:
            decision = self._decision
            self._decision = None
            self._decision_ready.clear()
        return decision

    def resolve_decision(self, decision: str) -> None:
        """Answer a pending (or the next) decision request."""
        decision = (decision or "").strip().lower()
        if decision not in VALID_DECISIONS:
            raise ValueError(f"Unknown decision {decision!r}; expected one of {VALID_DECISIONS}")
        with self._lock:
            self._decision = decision
            self._decision_ready.set()

    # ── Reporting ──────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        session = self._session
        if session is None:
            return {}
        return {
            "id": session.id,
            "status": session.status,
            "startedAt": session.started_at,
            "completedAt": session.completed_at,
            "progress": session.progress,
            "total": len(session.tasks),
            "completed": session.count(TaskStatus.COMPLETED),
            "failed": session.count(TaskStatus.FAILED),
            "filling": session.count(TaskStatus.FILLING),
            "skeleton": session.count(TaskStatus.SKELETON),
            "tasks": [t.to_dict() for t in session.tasks.values()],
        }

    def _task(self, task_id: str) -> Optional[TaskInfo]:
        task = self.get_task(task_id)
        if task is None:
            logger.debug("TaskBoard: unknown task %r", task_id)
        return task

    def _check_all_done(self) -> None:
        session = self._session
        if session is None or session.status != "running" or not session.is_all_done:
            return
        session.status = "completed"
        session.completed_at = time.time()
        self.event_bus.emit(
            EventType.ALL_COMPLETED,
            completed=session.count(TaskStatus.COMPLETED),
            failed=session.count(TaskStatus.FAILED),
        )
