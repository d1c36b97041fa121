from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.config import settings
from app.models.friendship import ACCEPTED, BLOCKED, DECLINED, PENDING, Friendship
from app.models.user import User

STATUS_TRANSITIONS = (ACCEPTED, DECLINED, BLOCKED)


def _canonical(user_a: int, user_b: int) -> tuple[int, int]:
    return (min(user_a, user_b), max(user_a, user_b))


async def get_friendship(
    db: AsyncSession, user_a: int, user_b: int
) -> Friendship | None:
    """Find the friendship between two users regardless of who initiated it."""
    uid1, uid2 = _canonical(user_a, user_b)
    result = await db.execute(
        select(Friendship).where(
            Friendship.user_id_1 == uid1,
            Friendship.user_id_2 == uid2,
        )
    )
    return result.scalar_one_or_none()


async def create_friendship(
    db: AsyncSession, sender_id: int, receiver_id: int, redis_client
) -> Friendship:
    """Send a friend request. Rate limited per sender per day."""
    if not sender_id or not receiver_id:
        raise ValueError("Missing parameters for creating a friendship.")
    if sender_id == receiver_id:
        raise ValueError("Cannot send a friend request to yourself")

    today_key = f"friend_requests:{sender_id}:{datetime.now(timezone.utc).date()}"
    count = await redis_client.get(today_key)
    if count and int(count) >= settings.FRIEND_REQUEST_DAILY_LIMIT:
        raise ValueError(
            f"Daily friend request limit reached ({settings.FRIEND_REQUEST_DAILY_LIMIT}/day)"
        )

    receiver = await db.get(User, receiver_id)
    if receiver is None:
        raise ValueError("User not found")

    if await get_friendship(db, sender_id, receiver_id) is not None:
        raise ValueError("Friendship request already exists.")

    uid1, uid2 = _canonical(sender_id, receiver_id)
    friendship = Friendship(
        user_id_1=uid1,
        user_id_2=uid2,
        status=PENDING,
        initiated_by=sender_id,
    )
    db.add(friendship)
    try:
        # The pair constraint catches a concurrent request that passed the check above
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise ValueError("Friendship request already exists.")

    await redis_client.incr(today_key)
    await redis_client.expire(today_key, 86400)

    await db.refresh(friendship)
    return friendship


async def update_friendship_status(
    db: AsyncSession, sender_id: int, receiver_id: int, status: str
) -> Friendship | None:
    """Recipient answers a request from ``sender_id``."""
    if not sender_id or not receiver_id or not status:
        raise ValueError("Missing parameters for updating friendship status.")
    if status not in STATUS_TRANSITIONS:
        raise ValueError("Invalid status.")

    friendship = await get_friendship(db, sender_id, receiver_id)
    # Only the recipient of the original request may change its status
    if friendship is None or friendship.initiated_by != sender_id:
        return None

    friendship.status = status
    friendship.updated_at = datetime.now(timezone.utc)
    await db.flush()
    await db.refresh(friendship)
    return friendship


async def get_accepted_friendships(db: AsyncSession, user_id: int) -> list[Friendship]:
    """All accepted friendships the user takes part in, either side."""
    result = await db.execute(
        select(Friendship)
        .where(
            or_(
                Friendship.user_id_1 == user_id,
                Friendship.user_id_2 == user_id,
            ),
            Friendship.status == ACCEPTED,
        )
        .order_by(Friendship.id)
    )
    return list(result.scalars().all())


async def get_accepted_friend_ids(db: AsyncSession, user_id: int) -> list[int]:
    """Get all accepted friend user IDs for a user."""
    friendships = await get_accepted_friendships(db, user_id)
    return [f.other_user_id(user_id) for f in friendships]


async def get_friends(db: AsyncSession, user_id: int) -> list[dict]:
    """Accepted friends with their public profile fields."""
    friend = aliased(User)
    result = await db.execute(
        select(Friendship, friend)
        .join(
            friend,
            or_(
                (Friendship.user_id_1 == user_id) & (friend.id == Friendship.user_id_2),
                (Friendship.user_id_2 == user_id) & (friend.id == Friendship.user_id_1),
            ),
        )
        .where(Friendship.status == ACCEPTED)
        .order_by(Friendship.id)
    )

    friends = []
    for f, user in result.all():
        friends.append({
            "id": f.id,
            "user_id": user.id,
            "username": user.username,
            "profile_pic": user.profile_pic,
            "status": f.status,
            "since": f.created_at,
        })
    return friends
