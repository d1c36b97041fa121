import re
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.models.user import User

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def issue_tokens(user_id: int) -> dict:
    """Issue a JWT access token."""
    now = datetime.now(timezone.utc)

    access_payload = {
        "sub": str(user_id),
        "type": "access",
        "iat": now,
        "exp": now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    access_token = jwt.encode(access_payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    }


def decode_access_token(token: str) -> int:
    """Verify an access token. Returns the user id it was issued for."""
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        raise ValueError("Invalid or expired token")

    if payload.get("type") != "access":
        raise ValueError("Invalid token type")

    try:
        return int(payload["sub"])
    except (KeyError, ValueError):
        raise ValueError("Invalid token subject")


async def register_user(
    db: AsyncSession,
    username: str,
    email: str,
    password: str,
    bio: str = "",
) -> User:
    """Register a new user with username, email and password."""
    if not USERNAME_PATTERN.match(username):
        raise ValueError("Username may not contain any special characters")

    result = await db.execute(
        select(User).where(or_(User.email == email, User.username == username))
    )
    existing = result.scalars().first()
    if existing:
        if existing.email == email:
            raise ValueError("That email is already in use. Please choose a different email.")
        raise ValueError("That username is already taken. Please choose a different username.")

    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        bio=bio,
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)
    return user


async def login_with_email(
    db: AsyncSession,
    email: str,
    password: str,
) -> User:
    """Authenticate user with email/password."""
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()

    if user is None or not verify_password(password, user.password_hash):
        raise ValueError("Invalid email or password")

    return user
