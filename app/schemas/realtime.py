from typing import Any

from pydantic import BaseModel, Field


class RealtimeMessage(BaseModel):
    """One frame on the real-time channel: ``{"event": ..., "data": ...}``."""

    event: str = Field(min_length=1, max_length=64)
    data: Any = None


class EngagementEvent(BaseModel):
    """Payload of ``new_like`` / ``new_comment``. Ids are validated by the fan-out."""

    sender: Any = None
    receiver: Any = None
    post: Any = None
    senderName: Any = None
