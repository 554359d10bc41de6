from __future__ import annotations


class LayoutError(Exception):
    """Base class for layout engine errors."""


class ConfigError(LayoutError, ValueError):
    """Raised when a simulation parameter is out of range."""
