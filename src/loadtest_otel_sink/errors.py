"""Error types raised by the OpenTelemetry sink."""

from __future__ import annotations

from typing import Optional


class SinkError(Exception):
    """Base class for sink failures that are surfaced to the host."""


class SinkConfigurationError(SinkError):
    """Raised when the sink configuration cannot be used."""

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class MissingContextError(SinkError):
    """Raised when the host context lacks information needed to build tags."""

    def __init__(self, missing: str) -> None:
        super().__init__(f"{missing} is not available in the current context.")
        self.missing = missing


class SinkLifecycleError(SinkError):
    """Raised when a hook is invoked in a state that does not allow it."""


__all__ = [
    "SinkError",
    "SinkConfigurationError",
    "MissingContextError",
    "SinkLifecycleError",
]
