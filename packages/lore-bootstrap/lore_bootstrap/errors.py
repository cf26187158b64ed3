"""Exceptions raised inside the bootstrap pipeline."""


class LoreError(Exception):
    """Base class for pipeline errors."""


class ProductionTimeout(LoreError):
    """The production call lost its race against the per-dimension timer."""

    def __init__(self, dim_id: str, timeout_s: float):
        self.dim_id = dim_id
        self.timeout_s = timeout_s
        super().__init__(f"Production timeout for '{dim_id}' after {timeout_s:g}s")


class DimensionConfigError(LoreError, ValueError):
    """Dimension configuration is malformed."""
