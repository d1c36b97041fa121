"""Event dispatch for the real-time notification channel.

Client -> server events:
    register_user            user id, or {"userId": id}
    new_like, new_comment    {"sender", "receiver", "post", "senderName"}
    mark_notifications_read  user id, or {"userId": id}

Server -> client events:
    unread_notifications     backlog sent right after register_user
    like_notification        {"sender", "post", "type", "senderName"}
    comment_notification     same shape as like_notification
"""
import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.schemas.realtime import EngagementEvent
from app.services import notification_service
from app.services.notification_service import (
    COMMENT_EVENT,
    COMMENT_NOTIFICATION,
    LIKE_EVENT,
    LIKE_NOTIFICATION,
    coerce_id,
)
from app.services.presence_service import PresenceRegistry

logger = logging.getLogger(__name__)

ENGAGEMENT_EVENTS = {
    "new_like": (LIKE_NOTIFICATION, LIKE_EVENT),
    "new_comment": (COMMENT_NOTIFICATION, COMMENT_EVENT),
}


def _user_id_from(data: Any) -> int | None:
    if isinstance(data, dict):
        data = data.get("userId", data.get("user_id"))
    return coerce_id(data)


async def register_user(
    db: AsyncSession, presence: PresenceRegistry, connection: Any, data: Any
) -> None:
    user_id = _user_id_from(data)
    if user_id is None:
        logger.warning("register_user without a valid user id: %r", data)
        return

    presence.register(user_id, connection)
    delivered = await notification_service.deliver_backlog(db, user_id, connection)
    if delivered:
        logger.info("Delivered %d unread notifications to user %s", delivered, user_id)


async def relay_engagement(
    db: AsyncSession, presence: PresenceRegistry, event: str, data: Any
) -> notification_service.FanoutResult:
    label, push_event_name = ENGAGEMENT_EVENTS[event]
    try:
        payload = EngagementEvent.model_validate(data)
    except ValidationError:
        logger.warning("Dropping %s with malformed payload: %r", event, data)
        return notification_service.FanoutResult(error="Malformed payload")

    return await notification_service.handle_event(
        db,
        presence,
        sender_id=payload.sender,
        receiver_id=payload.receiver,
        content_id=payload.post,
        notification_type=label,
        push_event_name=push_event_name,
        sender_name=payload.senderName,
    )


async def mark_notifications_read(db: AsyncSession, data: Any) -> None:
    user_id = _user_id_from(data)
    if user_id is None:
        logger.warning("mark_notifications_read without a valid user id: %r", data)
        return

    try:
        updated = await notification_service.mark_all_read(db, user_id)
        await db.commit()
    except SQLAlchemyError:
        logger.exception("Failed to mark notifications read for user %s", user_id)
        await db.rollback()
        return
    logger.debug("Marked %d notifications read for user %s", updated, user_id)


async def dispatch(
    db: AsyncSession,
    presence: PresenceRegistry,
    connection: Any,
    event: str,
    data: Any,
) -> None:
    """Route one client event. Never raises: every outcome is best effort."""
    if event == "register_user":
        await register_user(db, presence, connection, data)
    elif event in ENGAGEMENT_EVENTS:
        result = await relay_engagement(db, presence, event, data)
        # The triggering HTTP action already succeeded; the result is only logged
        if not result.ok:
            logger.info("%s dropped: %s", event, result.error)
    elif event == "mark_notifications_read":
        await mark_notifications_read(db, data)
    else:
        logger.warning("Unknown real-time event %r", event)
