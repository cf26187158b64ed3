"""Lore Shared Infrastructure.

This package provides shared components for Lore products:
- config: Shared settings management
- agent: Production agent protocol and reply record
"""

__version__ = "0.1.0"

from .config.settings import Settings, get_settings
from .agent.protocol import AgentReply, ProductionAgent

__all__ = [
    "Settings",
    "get_settings",
    "AgentReply",
    "ProductionAgent",
]
