"""
Engine events.

The façade announces compactions, newly pinned context and detected drift
through an EventBus supplied by the host (an MCP tool layer, a terminal UI).
Publishing is synchronous and happens while the session lock is held, so a
bus must not call back into the session.
"""

from typing import Any, Protocol

from pydantic import BaseModel, Field

COMPACTED = "context.compacted"
CRITICAL_MARKED = "context.critical_marked"
DRIFT_DETECTED = "context.drift_detected"


class Event(BaseModel):
    """A named notification with a flat payload."""

    type: str
    properties: dict[str, Any] = Field(default_factory=dict)


class EventBus(Protocol):
    def publish(self, event: Event) -> None:
        ...


class NullEventBus:
    """Drops every event; used when the host does not listen."""

    def publish(self, event: Event) -> None:
        return None
