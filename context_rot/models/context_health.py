"""Context health models."""

import time
from typing import Literal

from pydantic import BaseModel, Field

HealthStatus = Literal["good", "warning", "critical"]


class ContextHealth(BaseModel):
    """Derived budget and drift classification."""

    tokens_used: int
    tokens_limit: int
    utilization_percent: float
    health: HealthStatus
    relevance_score: float = Field(
        default=1.0,
        description="Mean relevance of chunks currently in scope",
    )
    drift_score: float = 0.0
    critical_context_count: int = 0
    drift_detected: bool = False
    compaction_needed: bool = False
    suggestions: list[str] = Field(default_factory=list)


class HealthSnapshot(BaseModel):
    """One row of the rolling health history log."""

    timestamp: float = Field(default_factory=time.time)
    health: HealthStatus
    utilization_percent: float
    drift_score: float
    tokens_used: int = 0
    tokens_limit: int = 0
    relevance_score: float = 1.0
    compaction_triggered: bool = False
