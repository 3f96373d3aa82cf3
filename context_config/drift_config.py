"""DriftConfig model."""

from pydantic import BaseModel, Field

from .defaults import (
    DRIFT_WINDOW_MESSAGES,
    MAX_CONTRADICTIONS,
    MAX_HISTORY_MESSAGES,
    MAX_REMINDERS_PER_SOURCE,
    REQUIREMENT_CAPTURE_USER_MESSAGES,
)


class DriftConfig(BaseModel):
    """Drift detection windows."""

    model_config = {"extra": "forbid"}

    max_history: int = Field(
        default=MAX_HISTORY_MESSAGES, ge=1,
        description="Rolling conversation history size",
    )
    requirement_capture_messages: int = Field(
        default=REQUIREMENT_CAPTURE_USER_MESSAGES, ge=0,
        description="Requirements are captured from this many leading user messages",
    )
    window: int = Field(
        default=DRIFT_WINDOW_MESSAGES, ge=1,
        description="Early/recent window size for adherence and topic shift",
    )
    max_contradictions: int = Field(default=MAX_CONTRADICTIONS, ge=0)
    max_reminders: int = Field(default=MAX_REMINDERS_PER_SOURCE, ge=0)
