"""Production agent interface for Lore.

The pipeline never talks to a model provider directly; it delegates to an
injected object implementing ``ProductionAgent``.
"""

from .protocol import AgentReply, ProductionAgent, has_real_capability

__all__ = [
    "AgentReply",
    "ProductionAgent",
    "has_real_capability",
]
