"""ConversationMessage model."""

import time
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant", "system"]


class ConversationMessage(BaseModel):
    role: Role
    content: str
    timestamp: float = Field(default_factory=time.time)
