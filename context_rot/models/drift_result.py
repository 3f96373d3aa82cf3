"""Drift assessment models."""

from typing import Literal

from pydantic import BaseModel, Field


class Contradiction(BaseModel):
    """Two assistant statements that disagree about the same choice."""

    earlier: str
    later: str
    severity: Literal["low", "medium", "high"]


class DriftResult(BaseModel):
    """Point-in-time drift assessment; recomputed on demand, never stored."""

    drift_score: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="0 = on task, 1 = fully drifted",
    )
    drift_detected: bool = False
    missing_requirements: list[str] = Field(default_factory=list)
    contradictions: list[Contradiction] = Field(default_factory=list)
    suggested_reminders: list[str] = Field(default_factory=list)
    topic_shift: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="1 - Jaccard similarity of early and recent topics",
    )
