"""ContextChunk model."""

import time
from typing import Literal

from pydantic import BaseModel, Field

from .utils import gen_id

ChunkType = Literal["message", "decision", "requirement", "instruction", "code"]


class ContextChunk(BaseModel):
    """A token-costed unit of context counted against the budget."""

    id: str = Field(default_factory=lambda: gen_id("chk_"))
    content: str
    tokens: int = Field(
        ge=0,
        description="Estimated token cost, fixed at insertion time",
    )
    timestamp: float = Field(default_factory=time.time)
    type: ChunkType = "message"
    relevance_score: float = Field(
        default=1.0,
        ge=0.0,
        le=1.0,
        description="How relevant the chunk still is (1.0 = fresh)",
    )
    is_critical: bool = Field(
        default=False,
        description="Pinned chunks are never removed or rewritten by compaction",
    )
