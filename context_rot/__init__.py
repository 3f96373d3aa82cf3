"""
Context health and compaction engine.

This package tracks how much of an agent's context budget is consumed,
detects drift from the session's stated requirements, pins critical
context, and compacts the disposable remainder. It is transport-agnostic;
tool servers and CLIs wrap ContextRotPrevention.
"""

from .compaction import CompactionEngine
from .critical_context import CriticalContextStore
from .drift import DriftDetector
from .events import Event, EventBus, NullEventBus
from .exceptions import (
    ConfigurationError,
    ContextRotError,
    InvalidOperationError,
    NotFoundError,
    StorageError,
)
from .health import ContextHealthMonitor
from .models import (
    STRATEGY_ORDER,
    ChunkType,
    CompactionOptions,
    CompactionResult,
    CompactionStrategy,
    CompactionSuggestion,
    ContextChunk,
    ContextHealth,
    Contradiction,
    ConversationMessage,
    CriticalContext,
    CriticalMatch,
    CriticalType,
    DriftResult,
    HealthSnapshot,
    HealthStatus,
    gen_id,
)
from .prevention import ContextRotPrevention, open_session
from .storage import ContextStore, InMemoryContextStore, SQLiteContextStore
from .tokens import estimate_tokens

__all__ = [
    # Exceptions
    "ContextRotError",
    "NotFoundError",
    "InvalidOperationError",
    "ConfigurationError",
    "StorageError",
    # Events
    "Event",
    "EventBus",
    "NullEventBus",
    # Models
    "ChunkType",
    "ContextChunk",
    "CriticalType",
    "CriticalContext",
    "CriticalMatch",
    "ConversationMessage",
    "Contradiction",
    "DriftResult",
    "HealthStatus",
    "ContextHealth",
    "HealthSnapshot",
    "CompactionStrategy",
    "STRATEGY_ORDER",
    "CompactionOptions",
    "CompactionSuggestion",
    "CompactionResult",
    "gen_id",
    # Storage
    "ContextStore",
    "InMemoryContextStore",
    "SQLiteContextStore",
    # Components
    "estimate_tokens",
    "CriticalContextStore",
    "ContextHealthMonitor",
    "DriftDetector",
    "CompactionEngine",
    # Façade
    "ContextRotPrevention",
    "open_session",
]
