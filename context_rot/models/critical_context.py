"""Critical (pinned) context models."""

import time
from typing import Literal

from pydantic import BaseModel, Field

CriticalType = Literal["decision", "requirement", "instruction", "custom"]


class CriticalContext(BaseModel):
    """A permanently pinned item, independent of the chunk collection."""

    id: str
    type: CriticalType
    content: str
    reason: str | None = None
    source: str | None = Field(
        default=None,
        description="Where this came from (file, message, tool call)",
    )
    created_at: float = Field(default_factory=time.time)
    never_compress: bool = True


class CriticalMatch(BaseModel):
    """A sentence recognised as critical, tagged with its inferred type."""

    content: str
    type: CriticalType
