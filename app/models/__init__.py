from app.models.base import Base
from app.models.comment import Comment
from app.models.friendship import Friendship
from app.models.like import Like
from app.models.notification import Notification
from app.models.post import Post
from app.models.user import User

__all__ = [
    "Base",
    "Comment",
    "Friendship",
    "Like",
    "Notification",
    "Post",
    "User",
]
