"""Pytest configuration and fixtures for lore-bootstrap tests."""

import threading
from typing import Any, Dict, List, Optional

import pytest

from lore_shared.agent import AgentReply
from lore_shared.config import Settings

from lore_bootstrap.dimensions import Dimension


# =============================================================================
# CANDIDATE HELPERS
# =============================================================================

def make_candidate(title: str, sub_topic: str = "naming", **extra) -> Dict[str, Any]:
    cand = {
        "title": title,
        "subTopic": sub_topic,
        "summary": f"{title}: 36 个类 use the BIL prefix",
        "code": "@interface BILFoo : NSObject",
        "language": "objectivec",
        "knowledgeType": "code-standard",
        "sources": ["Foo.h", "Bar.h"],
        "tags": ["naming"],
    }
    cand.update(extra)
    return cand


def make_candidates(prefix: str, n: int) -> List[Dict[str, Any]]:
    return [make_candidate(f"{prefix}-{i}", sub_topic=f"{prefix}-topic-{i}") for i in range(n)]


def submission(title: str, tool: str = "submit_knowledge", **result) -> Dict[str, Any]:
    return {
        "tool": tool,
        "params": {"title": title, "category": "naming", "summary": f"{title} summary"},
        "result": result or {"status": "created"},
    }


def digest_reply(summary: str, count: int = 0, **fields) -> str:
    import json

    payload = {"summary": summary, "candidateCount": count, **fields}
    return "Done.\n```json\n" + json.dumps({"dimensionDigest": payload}) + "\n```"


# =============================================================================
# COLLABORATOR FAKES
# =============================================================================

class FakeSupplier:
    """Returns a fixed candidate list per dimension; an Exception value is raised."""

    def __init__(self, by_dim: Optional[Dict[str, Any]] = None):
        self.by_dim = by_dim or {}
        self.calls: List[str] = []

    def extract(self, dimension, file_set, target_map, context):
        self.calls.append(dimension.id)
        value = self.by_dim.get(dimension.id, [])
        if callable(value):
            value = value()
        if isinstance(value, Exception):
            raise value
        return [dict(c) for c in value]


class FakeAgent:
    """Production agent whose reply per dimension is configurable.

    A reply value may be an AgentReply, a str, a dict, an Exception (raised)
    or a callable taking the call kwargs.
    """

    has_real_capability = True

    def __init__(self, replies: Optional[Dict[str, Any]] = None):
        self.replies = replies or {}
        self.calls: List[Dict[str, Any]] = []
        self.resets = 0

    def reset_submitted_titles(self):
        self.resets += 1

    def execute(self, prompt, *, budget, dimension_meta, conversation_id):
        call = {
            "prompt": prompt,
            "budget": budget,
            "dimension_meta": dimension_meta,
            "conversation_id": conversation_id,
        }
        self.calls.append(call)
        value = self.replies.get(dimension_meta["id"], AgentReply())
        if isinstance(value, Exception):
            raise value
        if callable(value):
            return value(call)
        return value

    @property
    def called_dims(self) -> List[str]:
        return [c["dimension_meta"]["id"] for c in self.calls]

    def prompt_for(self, dim_id: str) -> Dict[str, Any]:
        import json

        for c in self.calls:
            if c["dimension_meta"]["id"] == dim_id:
                return json.loads(c["prompt"])
        raise KeyError(dim_id)


class RecordingSink:
    """Candidate sink that records every call; titles in ``fail_titles`` raise."""

    def __init__(self, fail_titles=()):
        self.fail_titles = set(fail_titles)
        self.calls: List[Dict[str, Any]] = []

    def create_from_tool_params(self, fields, source_tag, opts, actor):
        if fields["title"] in self.fail_titles:
            raise RuntimeError(f"duplicate title {fields['title']}")
        self.calls.append({"fields": fields, "source_tag": source_tag, "actor": actor})
        return {"id": len(self.calls)}

    @property
    def titles(self) -> List[str]:
        return [c["fields"]["title"] for c in self.calls]

    @property
    def tags(self) -> List[str]:
        return [c["source_tag"] for c in self.calls]


class RecordingTracker:
    """Task tracker recording transitions.

    ``valid_checks`` limits how many session checks succeed (None = always).
    """

    def __init__(self, decision: Optional[str] = None, valid_checks: Optional[int] = None):
        self.decision = decision
        self.valid_checks = valid_checks
        self.checks = 0
        self.filling: List[str] = []
        self.completed: Dict[str, Dict[str, Any]] = {}
        self.completion_log: List[str] = []
        self.failed: Dict[str, Dict[str, Any]] = {}
        self.events: List[tuple] = []
        self.decision_requests: List[float] = []

    def is_session_valid(self, session_id):
        self.checks += 1
        return self.valid_checks is None or self.checks <= self.valid_checks

    def mark_task_filling(self, task_id):
        self.filling.append(task_id)

    def mark_task_completed(self, task_id, info):
        self.completed[task_id] = dict(info)
        self.completion_log.append(task_id)

    def mark_task_failed(self, task_id, info):
        self.failed[task_id] = dict(info)

    def emit_progress(self, event, payload):
        self.events.append((event, dict(payload)))

    def wait_for_user_decision(self, session_id, timeout):
        self.decision_requests.append(timeout)
        return self.decision


class RecordingAggregator:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.calls: List[Dict[str, Any]] = []

    def aggregate(self, dimensions, candidates_by_dimension, snapshot):
        self.calls.append({
            "dims": [d.id for d in dimensions],
            "candidates": {k: len(v) for k, v in candidates_by_dimension.items()},
            "snapshot": snapshot,
        })
        if self.error is not None:
            raise self.error
        return {d.id: {"skillName": f"skill-{d.id}"} for d in dimensions}


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Fast timeouts, no on-disk state."""
    return Settings(
        _env_file=None,
        production_timeout_seconds=2.0,
        decision_timeout_seconds=0.05,
        default_decision="degrade",
        enable_checkpoints=False,
        write_report=False,
    )


@pytest.fixture
def three_dims() -> List[Dimension]:
    """Three candidate-only dimensions A, B, C in order."""
    return [
        Dimension(id="alpha", label="Alpha", knowledge_types=("code-standard",)),
        Dimension(id="beta", label="Beta", knowledge_types=("code-pattern",)),
        Dimension(id="gamma", label="Gamma", knowledge_types=("best-practice",)),
    ]


@pytest.fixture
def skill_dims() -> List[Dimension]:
    """One dual-output, one candidate-only and one digest-only dimension."""
    return [
        Dimension(id="profile", label="Profile", skill_worthy=True, dual_output=True,
                  knowledge_types=("architecture",)),
        Dimension(id="patterns", label="Patterns", knowledge_types=("code-pattern",)),
        Dimension(id="guidelines", label="Guidelines", skill_worthy=True,
                  knowledge_types=("boundary-constraint",)),
    ]


@pytest.fixture
def release_event():
    """Event for releasing blocked fake agent calls at teardown."""
    ev = threading.Event()
    yield ev
    ev.set()
