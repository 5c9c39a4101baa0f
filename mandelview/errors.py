from __future__ import annotations


class ConfigError(ValueError):
    """Rejected parameter value. The previous valid state is kept."""


class AllocationError(MemoryError):
    """The pixel buffer could not be (re)allocated."""
