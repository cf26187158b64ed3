"""Tests for TaskBoard and its EventBus."""

import json
import threading
import time

import pytest

from lore_bootstrap.dimensions import Dimension
from lore_bootstrap.tracker import EventBus, EventType, TaskBoard, TaskStatus

DIMS = [Dimension(id="a", label="A"), Dimension(id="b", label="B", skill_worthy=True)]


@pytest.fixture
def board():
    return TaskBoard()


def _types(board):
    return [ev.type for ev in board.event_bus.drain(100)]


class TestEventBus:
    def test_emit_and_get(self):
        bus = EventBus()
        bus.emit(EventType.PROGRESS, step="signals")
        ev = bus.get_event(timeout=1.0)
        assert ev.type == "bootstrap:progress"
        assert ev.data["step"] == "signals"

    def test_get_returns_none_on_empty(self):
        assert EventBus().get_event(timeout=0.01) is None

    def test_full_queue_drops(self):
        bus = EventBus(maxsize=2)
        for i in range(3):
            bus.emit("custom", i=i)
        assert [ev.data["i"] for ev in bus.drain()] == [0, 1]

    def test_full_queue_counts_drops(self):
        bus = EventBus(maxsize=1)
        for i in range(3):
            bus.emit("custom", i=i)
        assert bus.dropped == 2

    def test_events_stamped_with_bound_session(self):
        bus = EventBus()
        bus.emit("custom", i=0)
        bus.bind("s1")
        bus.emit("custom", i=1)
        events = bus.drain()
        assert [ev.session_id for ev in events] == [None, "s1"]
        assert json.loads(events[1].to_json())["sessionId"] == "s1"

    def test_drain_skips_other_sessions(self):
        bus = EventBus()
        bus.bind("old")
        bus.emit("custom", i=0)
        bus.emit("custom", i=1)
        bus.bind("new")
        bus.emit("custom", i=2)
        assert [ev.data["i"] for ev in bus.drain(session_id="new")] == [2]
        assert bus.drain() == []


class TestSessions:
    def test_start_session_creates_skeleton_tasks(self, board):
        sid = board.start_session(DIMS)
        assert board.session_id == sid
        assert board.is_session_valid(sid)
        assert board.get_task("a").status == TaskStatus.SKELETON
        assert board.get_task("b").meta["skillWorthy"] is True
        assert _types(board) == [EventType.STARTED.value]

    def test_new_session_supersedes(self, board):
        old = board.start_session(DIMS)
        new = board.start_session(DIMS)
        assert old != new
        assert not board.is_session_valid(old)
        assert board.is_session_valid(new)

    def test_restart_leaves_only_new_session_events(self, board):
        old = board.start_session(DIMS)
        board.mark_task_filling("a")
        new = board.start_session(DIMS)
        board.mark_task_filling("b")

        events = board.event_bus.drain(100, session_id=new)
        assert [ev.type for ev in events] == [
            EventType.STARTED.value, EventType.TASK_STARTED.value,
        ]
        assert events[1].data == {"taskId": "b"}
        assert old != new

    def test_lifecycle_and_all_completed(self, board):
        board.start_session(DIMS)
        board.mark_task_filling("a")
        assert board.get_task("a").status == TaskStatus.FILLING
        board.mark_task_completed("a", {"sourceCount": 2})
        board.mark_task_failed("b", {"error": "boom"})

        assert board.get_task("a").result == {"sourceCount": 2}
        assert board.get_task("b").error == "boom"
        types = _types(board)
        assert types[-1] == EventType.ALL_COMPLETED.value
        assert types.count(EventType.ALL_COMPLETED.value) == 1

        state = board.to_dict()
        assert state["progress"] == 100
        assert state["completed"] == 1 and state["failed"] == 1
        assert state["status"] == "completed"

    def test_unknown_task_is_ignored(self, board):
        board.start_session(DIMS)
        board.mark_task_completed("zzz", {})
        assert board.get_task("zzz") is None

    def test_no_session(self, board):
        assert board.to_dict() == {}
        assert not board.is_session_valid("nope")


class TestDecisionGate:
    def test_timeout_returns_none(self, board):
        sid = board.start_session(DIMS)
        t0 = time.monotonic()
        assert board.wait_for_user_decision(sid, timeout=0.05) is None
        assert time.monotonic() - t0 < 1
        assert EventType.DECISION_REQUIRED.value in _types(board)

    def test_resolved_from_another_thread(self, board):
        sid = board.start_session(DIMS)
        timer = threading.Timer(0.05, board.resolve_decision, args=["Abort"])
        timer.start()
        try:
            assert board.wait_for_user_decision(sid, timeout=5) == "abort"
        finally:
            timer.cancel()

    def test_invalid_decision_rejected(self, board):
        with pytest.raises(ValueError):
            board.resolve_decision("maybe")

    def test_stale_session_gets_no_decision(self, board):
        old = board.start_session(DIMS)
        board.start_session(DIMS)
        assert board.wait_for_user_decision(old, timeout=5) is None
