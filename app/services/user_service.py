import logging
from datetime import datetime, timezone

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User
from app.services.auth_service import USERNAME_PATTERN, verify_password

logger = logging.getLogger(__name__)

SEARCH_LIMIT = 20


async def get_user(db: AsyncSession, user_id: int) -> User | None:
    return await db.get(User, user_id)


async def update_user(db: AsyncSession, user_id: int, data: dict) -> User | None:
    """Apply profile changes. Unset or None fields are left alone."""
    user = await db.get(User, user_id)
    if user is None:
        return None

    changes = {key: value for key, value in data.items() if value is not None}
    if not changes:
        return user

    username = changes.get("username")
    if username is not None and not USERNAME_PATTERN.match(username):
        raise ValueError("Username may not contain any special characters")

    clashes = []
    if username is not None and username != user.username:
        clashes.append(User.username == username)
    if changes.get("email") is not None and changes["email"] != user.email:
        clashes.append(User.email == changes["email"])
    if clashes:
        result = await db.execute(select(User).where(or_(*clashes), User.id != user_id))
        existing = result.scalars().first()
        if existing is not None:
            if existing.username == username:
                raise ValueError("That username is already taken. Please choose a different username.")
            raise ValueError("That email is already in use. Please choose a different email.")

    for key, value in changes.items():
        setattr(user, key, value)
    user.updated_at = datetime.now(timezone.utc)

    await db.flush()
    await db.refresh(user)
    return user


async def delete_user(db: AsyncSession, user_id: int, password: str) -> bool:
    """Delete the account after re-checking its password.

    Raises PermissionError when the password does not match.
    """
    user = await db.get(User, user_id)
    if user is None:
        return False
    if not verify_password(password, user.password_hash):
        raise PermissionError("Forbidden action: Password does not match")

    await db.delete(user)
    await db.flush()
    logger.info("Deleted user %s", user_id)
    return True


async def search_users(db: AsyncSession, query: str | None) -> list[User]:
    """Users whose username contains ``query``, case-insensitively."""
    query = (query or "").strip()
    if not query:
        raise ValueError("No search query or empty query provided")

    result = await db.execute(
        select(User)
        .where(User.username.icontains(query, autoescape=True))
        .order_by(User.username)
        .limit(SEARCH_LIMIT)
    )
    return list(result.scalars().all())
