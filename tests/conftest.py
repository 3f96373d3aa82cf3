"""
Shared pytest fixtures for all tests.
"""
import tempfile
from pathlib import Path
from typing import Callable, Iterator

import pytest

from context_rot import (
    ContextChunk,
    ContextHealthMonitor,
    ContextRotPrevention,
    Event,
    InMemoryContextStore,
    StorageError,
    estimate_tokens,
)


@pytest.fixture
def temp_dir() -> Iterator[Path]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def make_chunk() -> Callable[..., ContextChunk]:
    """Factory for chunks whose token count matches their content."""

    def _make(
        content: str = "Some ordinary context about the project layout and build.",
        relevance: float = 1.0,
        critical: bool = False,
        type: str = "message",
    ) -> ContextChunk:
        return ContextChunk(
            content=content,
            tokens=estimate_tokens(content),
            relevance_score=relevance,
            is_critical=critical,
            type=type,
        )

    return _make


@pytest.fixture
def monitor() -> ContextHealthMonitor:
    """Monitor with a small budget so utilization moves visibly."""
    return ContextHealthMonitor(token_limit=1000)


class RecordingEventBus:
    """EventBus that keeps every published event."""

    def __init__(self) -> None:
        self.events: list[Event] = []

    def publish(self, event: Event) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.type for e in self.events]


class FailingStore(InMemoryContextStore):
    """Store whose every operation fails, as if the database were unreachable."""

    def insert_critical(self, item):
        raise StorageError("database is locked")

    def list_critical(self):
        raise StorageError("database is locked")

    def delete_critical(self, critical_id):
        raise StorageError("database is locked")

    def append_health(self, snapshot):
        raise StorageError("database is locked")

    def list_health(self, limit):
        raise StorageError("database is locked")


@pytest.fixture
def event_bus() -> RecordingEventBus:
    return RecordingEventBus()


@pytest.fixture
def failing_store() -> FailingStore:
    return FailingStore()


@pytest.fixture
def session(event_bus: RecordingEventBus) -> Iterator[ContextRotPrevention]:
    """In-memory session with a recording event bus."""
    with ContextRotPrevention(store=InMemoryContextStore(), event_bus=event_bus) as s:
        yield s
