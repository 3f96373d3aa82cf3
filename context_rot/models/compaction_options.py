"""Compaction options model."""

from typing import Literal

from pydantic import BaseModel, Field

CompactionStrategy = Literal["summarize", "selective", "aggressive"]

# Escalation order, least to most destructive
STRATEGY_ORDER: tuple[CompactionStrategy, ...] = ("summarize", "selective", "aggressive")


class CompactionOptions(BaseModel):
    """Options for an applied compaction."""

    model_config = {"extra": "forbid"}

    strategy: CompactionStrategy = "summarize"
    preserve_recent: int = Field(
        default=5,
        ge=0,
        description="Number of newest chunks always kept verbatim",
    )
    target_utilization: float | None = Field(
        default=None,
        gt=0,
        le=100,
        description="Escalate strategy until utilization (percent) is at or below this",
    )
    preserve_critical: bool = Field(
        default=True,
        description="Never remove or rewrite critical chunks",
    )
