from datetime import datetime

from pydantic import BaseModel, Field


class FriendshipRequest(BaseModel):
    receiver_id: int = Field(gt=0)


class FriendshipStatusUpdate(BaseModel):
    sender_id: int = Field(gt=0)
    status: str = Field(pattern=r"^(accepted|declined|blocked)$")


class FriendshipResponse(BaseModel):
    id: int
    user_id_1: int
    user_id_2: int
    initiated_by: int
    recipient_id: int
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class FriendResponse(BaseModel):
    id: int  # friendship id
    user_id: int
    username: str
    profile_pic: str | None
    status: str
    since: datetime
