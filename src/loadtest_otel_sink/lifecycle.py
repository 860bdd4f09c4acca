"""Sink lifecycle state machine."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Optional, Set

from loadtest_otel_sink.errors import SinkLifecycleError

logger = logging.getLogger(__name__)


class SinkState(Enum):
    UNINITIALIZED = "uninitialized"
    CONFIGURED = "configured"
    RUNNING = "running"
    STOPPED = "stopped"


_ALLOWED_TRANSITIONS: Dict[SinkState, Set[SinkState]] = {
    SinkState.UNINITIALIZED: {SinkState.CONFIGURED},
    SinkState.CONFIGURED: {SinkState.RUNNING, SinkState.STOPPED},
    SinkState.RUNNING: {SinkState.STOPPED},
    SinkState.STOPPED: set(),
}


class SinkLifecycle:
    """Tracks ``Uninitialized -> Configured -> Running -> Stopped``."""

    def __init__(self, sink_name: str) -> None:
        self.sink_name = sink_name
        self._state = SinkState.UNINITIALIZED

    @property
    def state(self) -> SinkState:
        return self._state

    @property
    def is_stopped(self) -> bool:
        return self._state is SinkState.STOPPED

    def transition_to(self, next_state: SinkState) -> SinkState:
        if not isinstance(next_state, SinkState):
            raise TypeError("next_state must be a SinkState")

        previous = self._state
        if next_state not in _ALLOWED_TRANSITIONS[previous]:
            raise SinkLifecycleError(
                f"Illegal lifecycle transition {previous.value} -> {next_state.value} for {self.sink_name}."
            )
        self._state = next_state
        logger.info(
            "sink.lifecycle.transition",
            extra={"sink": self.sink_name, "from": previous.name, "to": next_state.name},
        )
        return previous

    def ensure_running(self, hook: Optional[str] = None) -> None:
        """Enter ``Running`` on the first emission; reject emissions outside it."""

        if self._state is SinkState.RUNNING:
            return
        if self._state is SinkState.CONFIGURED:
            self.transition_to(SinkState.RUNNING)
            return
        where = f" in {hook}" if hook else ""
        raise SinkLifecycleError(
            f"{self.sink_name} cannot record metrics{where} while {self._state.value}."
        )


__all__ = ["SinkState", "SinkLifecycle"]
