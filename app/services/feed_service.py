"""Reverse-chronological feed of a user's accepted friends' posts."""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.config import settings
from app.models.post import Post
from app.services import post_service, social_service

logger = logging.getLogger(__name__)

PostFetcher = Callable[[int], Awaitable[Sequence[Post]]]


class NoFriendsError(LookupError):
    """The user has no accepted friendships, so there is nobody to show."""


def _session_fetcher(db: AsyncSession) -> PostFetcher:
    # Each friend reads through its own short-lived session on the request's
    # engine. A failed or cancelled query then cannot abort the request
    # transaction or the other friends' reads.
    session_factory = async_sessionmaker(
        db.bind, class_=AsyncSession, expire_on_commit=False
    )

    async def fetch(friend_id: int) -> list[Post]:
        async with session_factory() as session:
            return await post_service.get_posts_by_author(session, friend_id)

    return fetch


def _bounded_fetcher(fetch_posts: PostFetcher, timeout: float | None) -> PostFetcher:
    async def fetch(friend_id: int) -> Sequence[Post]:
        return await asyncio.wait_for(fetch_posts(friend_id), timeout)

    return fetch


def _sort_newest_first(posts: list[Post]) -> list[Post]:
    # Equal timestamps fall back to the higher (later) post id first
    return sorted(posts, key=lambda p: (p.created_at, p.id), reverse=True)


async def generate_feed(
    db: AsyncSession,
    user_id: int,
    fetch_posts: PostFetcher | None = None,
    timeout: float | None = None,
) -> list[Post]:
    """Merge the posts of every accepted friend, newest first.

    Raises NoFriendsError when the user has no accepted friendships. A failed
    or timed-out fetch for one friend contributes no posts instead of failing
    the feed; a failure looking up the friendships themselves propagates.
    """
    friend_ids = await social_service.get_accepted_friend_ids(db, user_id)
    if not friend_ids:
        raise NoFriendsError("No friends found")

    if timeout is None:
        timeout = settings.FEED_FETCH_TIMEOUT_SECONDS or None
    if fetch_posts is None:
        fetch_posts = _session_fetcher(db)
    fetch = _bounded_fetcher(fetch_posts, timeout)

    results = await asyncio.gather(
        *(fetch(friend_id) for friend_id in friend_ids),
        return_exceptions=True,
    )

    posts: list[Post] = []
    for friend_id, result in zip(friend_ids, results):
        if isinstance(result, BaseException):
            logger.warning(
                "Skipping posts of friend %s in feed for user %s: %r",
                friend_id, user_id, result,
            )
            continue
        posts.extend(result)

    return _sort_newest_first(posts)
