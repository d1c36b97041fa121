from datetime import datetime

from pydantic import BaseModel, EmailStr, Field


class UserProfile(BaseModel):
    """Public view of a user; never carries the email address."""

    id: int
    username: str
    bio: str
    profile_pic: str | None
    created_at: datetime

    model_config = {"from_attributes": True}


class UserUpdate(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=50)
    email: EmailStr | None = None
    bio: str | None = Field(default=None, max_length=500)
    profile_pic: str | None = Field(default=None, max_length=1024)


class UserDeleteRequest(BaseModel):
    password: str
