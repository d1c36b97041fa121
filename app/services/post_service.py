from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.config import settings
from app.models.comment import Comment
from app.models.like import Like
from app.models.post import Post


def _check_content(content: str) -> str:
    content = (content or "").strip()
    if not content:
        raise ValueError("Missing parameters: content cannot be empty")
    if len(content) > settings.POST_MAX_LENGTH:
        raise ValueError(
            f"Content exceeds the maximum length of {settings.POST_MAX_LENGTH} characters."
        )
    return content


async def create_post(
    db: AsyncSession, author_id: int, content: str, image_url: str | None = None
) -> Post:
    post = Post(author_id=author_id, content=_check_content(content), image_url=image_url)
    db.add(post)
    await db.flush()
    return await get_post(db, post.id)


async def get_post(db: AsyncSession, post_id: int) -> Post | None:
    result = await db.execute(
        select(Post)
        .options(selectinload(Post.author))
        .where(Post.id == post_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def get_posts_by_author(db: AsyncSession, author_id: int) -> list[Post]:
    """All posts of one author, newest first."""
    result = await db.execute(
        select(Post)
        .options(selectinload(Post.author))
        .where(Post.author_id == author_id)
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    return list(result.scalars().all())


async def get_all_posts(db: AsyncSession, limit: int = 50, offset: int = 0) -> list[Post]:
    result = await db.execute(
        select(Post)
        .options(selectinload(Post.author))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(limit)
        .offset(offset)
    )
    return list(result.scalars().all())


async def update_post(
    db: AsyncSession, user_id: int, post_id: int, data: dict
) -> Post | None:
    result = await db.execute(
        select(Post).where(Post.id == post_id, Post.author_id == user_id)
    )
    post = result.scalar_one_or_none()
    if post is None:
        return None

    if data.get("content") is not None:
        post.content = _check_content(data["content"])
    if "image_url" in data:
        post.image_url = data["image_url"]
    post.updated_at = datetime.now(timezone.utc)

    await db.flush()
    return await get_post(db, post.id)


async def delete_post(db: AsyncSession, user_id: int, post_id: int) -> bool:
    result = await db.execute(
        select(Post).where(Post.id == post_id, Post.author_id == user_id)
    )
    post = result.scalar_one_or_none()
    if post is None:
        return False
    await db.delete(post)
    await db.flush()
    return True


async def create_comment(
    db: AsyncSession, author_id: int, post_id: int, content: str
) -> Comment:
    if await db.get(Post, post_id) is None:
        raise ValueError(f"Post with ID {post_id} not found.")

    comment = Comment(author_id=author_id, post_id=post_id, content=_check_content(content))
    db.add(comment)
    await db.flush()
    await db.refresh(comment)
    return comment


async def get_comments_for_post(db: AsyncSession, post_id: int) -> list[Comment]:
    result = await db.execute(
        select(Comment)
        .where(Comment.post_id == post_id)
        .order_by(Comment.created_at, Comment.id)
    )
    return list(result.scalars().all())


async def update_comment(
    db: AsyncSession, user_id: int, comment_id: int, content: str
) -> Comment | None:
    result = await db.execute(
        select(Comment).where(Comment.id == comment_id, Comment.author_id == user_id)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        return None

    comment.content = _check_content(content)
    await db.flush()
    await db.refresh(comment)
    return comment


async def delete_comment(db: AsyncSession, user_id: int, comment_id: int) -> bool:
    result = await db.execute(
        select(Comment).where(Comment.id == comment_id, Comment.author_id == user_id)
    )
    comment = result.scalar_one_or_none()
    if comment is None:
        return False
    await db.delete(comment)
    await db.flush()
    return True


def _like_target(post_id: int | None, comment_id: int | None):
    if (post_id is None) == (comment_id is None):
        raise ValueError("Missing parameters: like needs exactly one of post_id or comment_id")
    if post_id is not None:
        return Like.post_id == post_id
    return Like.comment_id == comment_id


async def create_like(
    db: AsyncSession,
    author_id: int,
    post_id: int | None = None,
    comment_id: int | None = None,
) -> Like:
    target = _like_target(post_id, comment_id)

    existing = await db.execute(select(Like).where(Like.author_id == author_id, target))
    if existing.scalar_one_or_none() is not None:
        raise ValueError("You have already liked this post or comment.")

    like = Like(author_id=author_id, post_id=post_id, comment_id=comment_id)
    db.add(like)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ValueError("You have already liked this post or comment.")
    await db.refresh(like)
    return like


async def remove_like(
    db: AsyncSession,
    author_id: int,
    post_id: int | None = None,
    comment_id: int | None = None,
) -> bool:
    target = _like_target(post_id, comment_id)
    result = await db.execute(select(Like).where(Like.author_id == author_id, target))
    like = result.scalar_one_or_none()
    if like is None:
        return False
    await db.delete(like)
    await db.flush()
    return True


async def get_likes_for_post(db: AsyncSession, post_id: int) -> list[Like]:
    result = await db.execute(
        select(Like).where(Like.post_id == post_id).order_by(Like.created_at, Like.id)
    )
    return list(result.scalars().all())


async def get_likes_for_comment(db: AsyncSession, comment_id: int) -> list[Like]:
    result = await db.execute(
        select(Like).where(Like.comment_id == comment_id).order_by(Like.created_at, Like.id)
    )
    return list(result.scalars().all())


async def get_likes_by_user(db: AsyncSession, user_id: int) -> list[Like]:
    """Everything a user has liked, newest first."""
    result = await db.execute(
        select(Like)
        .where(Like.author_id == user_id)
        .order_by(Like.created_at.desc(), Like.id.desc())
    )
    return list(result.scalars().all())
