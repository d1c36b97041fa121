from datetime import datetime

from pydantic import BaseModel, Field


class NotificationCreate(BaseModel):
    receiver_id: int = Field(gt=0)
    content_id: int = Field(gt=0)
    type: str = Field(min_length=1, max_length=100)


class NotificationResponse(BaseModel):
    id: int
    receiver_id: int
    sender_id: int
    content_id: int
    type: str
    sender_name: str | None
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationList(BaseModel):
    read: list[NotificationResponse]
    unread: list[NotificationResponse]


class MarkReadResponse(BaseModel):
    updated: int
