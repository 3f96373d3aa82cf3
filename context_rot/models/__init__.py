"""
Domain models for the context engine.

These are the core data structures used throughout the package.
"""

from .compaction_options import STRATEGY_ORDER, CompactionOptions, CompactionStrategy
from .compaction_result import CompactionResult, CompactionSuggestion
from .context_chunk import ChunkType, ContextChunk
from .context_health import ContextHealth, HealthSnapshot, HealthStatus
from .conversation_message import ConversationMessage, Role
from .critical_context import CriticalContext, CriticalMatch, CriticalType
from .drift_result import Contradiction, DriftResult
from .utils import gen_id

__all__ = [
    # Utils
    "gen_id",
    # Chunks
    "ChunkType",
    "ContextChunk",
    # Critical context
    "CriticalType",
    "CriticalContext",
    "CriticalMatch",
    # Conversation
    "Role",
    "ConversationMessage",
    # Drift
    "Contradiction",
    "DriftResult",
    # Health
    "HealthStatus",
    "ContextHealth",
    "HealthSnapshot",
    # Compaction
    "CompactionStrategy",
    "STRATEGY_ORDER",
    "CompactionOptions",
    "CompactionSuggestion",
    "CompactionResult",
]
