from datetime import datetime

from pydantic import BaseModel, Field


class AuthorSummary(BaseModel):
    id: int
    username: str
    profile_pic: str | None

    model_config = {"from_attributes": True}


class PostCreate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)
    image_url: str | None = Field(default=None, max_length=1024)


class PostUpdate(BaseModel):
    content: str | None = Field(default=None, min_length=1, max_length=1000)
    image_url: str | None = Field(default=None, max_length=1024)


class PostResponse(BaseModel):
    id: int
    author_id: int
    content: str
    image_url: str | None
    created_at: datetime
    updated_at: datetime
    author: AuthorSummary | None = None

    model_config = {"from_attributes": True}


class CommentCreate(BaseModel):
    post_id: int = Field(gt=0)
    content: str = Field(min_length=1, max_length=1000)


class CommentUpdate(BaseModel):
    content: str = Field(min_length=1, max_length=1000)


class CommentResponse(BaseModel):
    id: int
    post_id: int
    author_id: int
    content: str
    created_at: datetime

    model_config = {"from_attributes": True}


class LikeRequest(BaseModel):
    post_id: int | None = Field(default=None, gt=0)
    comment_id: int | None = Field(default=None, gt=0)


class LikeResponse(BaseModel):
    id: int
    author_id: int
    post_id: int | None
    comment_id: int | None
    created_at: datetime

    model_config = {"from_attributes": True}
