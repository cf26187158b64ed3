"""Protocol definition for production agents.

All production agent implementations should implement this protocol.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol


@dataclass
class AgentReply:
    """Result of one production call.

    Construction normalizes whatever the agent handed back: non-dict tool
    calls are dropped, a non-dict ``params`` becomes ``{}`` and usage
    counts that are not integers become 0.

    Attributes:
        reply: Free-form final text. May end with a dimension digest block.
        tool_calls: Side effects observed during the call, each a dict with
            ``tool`` (or ``name``), ``params`` and an optional ``result``.
        usage: Token usage for the call, e.g. ``{"input": 1200, "output": 300}``.
    """

    reply: str = ""
    tool_calls: List[Dict[str, Any]] = field(default_factory=list)
    usage: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.reply = self.reply if isinstance(self.reply, str) else str(self.reply or "")
        calls = self.tool_calls if isinstance(self.tool_calls, (list, tuple)) else []
        self.tool_calls = [_normalize_call(tc) for tc in calls if isinstance(tc, dict)]
        usage = self.usage if isinstance(self.usage, dict) else {}
        self.usage = {str(k): _as_int(v) for k, v in usage.items()}

    @classmethod
    def coerce(cls, value: Any) -> "AgentReply":
        """Accept an AgentReply, a plain dict, or a bare string."""
        if isinstance(value, cls):
            # Fields may have been reassigned after construction
            return cls(reply=value.reply, tool_calls=value.tool_calls, usage=value.usage)
        if isinstance(value, str):
            return cls(reply=value)
        if isinstance(value, dict):
            return cls(
                reply=value.get("reply") or "",
                tool_calls=value.get("toolCalls") or value.get("tool_calls") or [],
                usage=value.get("usage") or {},
            )
        return cls()


def _normalize_call(call: Dict[str, Any]) -> Dict[str, Any]:
    params = call.get("params")
    if isinstance(params, dict):
        return dict(call)
    return {**call, "params": {}}


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


class ProductionAgent(Protocol):
    """Protocol for production agent implementations.

    Attributes:
        has_real_capability: False for mock/placeholder agents. The pipeline
            treats such an agent exactly like a missing one.
    """

    has_real_capability: bool

    def execute(
        self,
        prompt: str,
        *,
        budget: Dict[str, int],
        dimension_meta: Dict[str, Any],
        conversation_id: str,
    ) -> AgentReply:
        """Run one dimension's production and return its reply.

        Args:
            prompt: Briefing text for the dimension
            budget: Resource-limit record (see ``lore_bootstrap.budget``)
            dimension_meta: Id, label, output type and allowed knowledge types
            conversation_id: Stable id for this dimension within the run

        Returns:
            The agent's reply and the tool calls it made
        """
        ...


def has_real_capability(agent: Optional[Any]) -> bool:
    """True when ``agent`` exists and reports genuine capability."""
    if agent is None:
        return False
    if not callable(getattr(agent, "execute", None)):
        return False
    return bool(getattr(agent, "has_real_capability", False))
