"""Configuration module for Lore shared settings."""

from .settings import Settings, get_settings, VALID_DECISIONS

__all__ = ["Settings", "get_settings", "VALID_DECISIONS"]
