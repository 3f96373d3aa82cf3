"""Compaction plan and result models."""

from pydantic import BaseModel, Field

from .compaction_options import CompactionStrategy
from .context_chunk import ContextChunk


class CompactionSuggestion(BaseModel):
    """Non-destructive compaction plan."""

    critical: list[ContextChunk] = Field(default_factory=list)
    summarizable: list[ContextChunk] = Field(default_factory=list)
    removable: list[ContextChunk] = Field(default_factory=list)
    tokens_saved: int = 0
    new_utilization: float = 0.0


class CompactionResult(BaseModel):
    """Result of an applied compaction."""

    success: bool = True
    strategy: CompactionStrategy = Field(
        description="Strategy of the final pass"
    )
    strategies_applied: list[CompactionStrategy] = Field(
        default_factory=list,
        description="Every pass run, in order, including escalations",
    )
    tokens_before: int = 0
    tokens_after: int = 0
    tokens_saved: int = 0
    preserved_critical: int = Field(
        default=0,
        description="Critical chunks kept verbatim from the older region",
    )
    kept_chunks: int = 0
    summarized_chunks: int = 0
    removed_chunks: int = 0
    summaries: list[str] = Field(default_factory=list)
