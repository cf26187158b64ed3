"""Shared application configuration for Lore products."""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Answers accepted from the user when no production agent is available
VALID_DECISIONS = ("degrade", "abort")


class Settings(BaseSettings):
    """Shared application settings loaded from environment.

    Product-specific settings should be defined in their respective packages.
    """

    model_config = SettingsConfigDict(
        env_prefix="LORE_",
        env_file=".env",
        extra="ignore",
    )

    # Production agent
    agent_provider: str = ""
    agent_model: str = ""
    production_timeout_seconds: float = 180.0

    # Availability gate
    decision_timeout_seconds: float = 30.0
    default_decision: str = "degrade"

    # Run state on disk
    state_dir: str = ".lore"
    enable_checkpoints: bool = True
    checkpoint_ttl_seconds: int = 3600
    write_report: bool = True

    @property
    def has_agent_provider(self) -> bool:
        """Check if a production agent provider is configured."""
        return bool(self.agent_provider)

    @property
    def resolved_default_decision(self) -> str:
        """Default decision, falling back to degrade for unknown values."""
        decision = (self.default_decision or "").strip().lower()
        return decision if decision in VALID_DECISIONS else "degrade"

    def state_path(self, project_root: str | Path) -> Path:
        """Absolute state directory for a project root."""
        state = Path(self.state_dir)
        if state.is_absolute():
            return state
        return Path(project_root) / state


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
