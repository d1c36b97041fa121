import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification
from app.schemas.notification import NotificationResponse
from app.services.presence_service import PresenceRegistry

logger = logging.getLogger(__name__)

LIKE_NOTIFICATION = "liked your post!"
COMMENT_NOTIFICATION = "commented on your post!"

LIKE_EVENT = "like_notification"
COMMENT_EVENT = "comment_notification"
BACKLOG_EVENT = "unread_notifications"

# Push event used for each notification label
PUSH_EVENTS = {
    LIKE_NOTIFICATION: LIKE_EVENT,
    COMMENT_NOTIFICATION: COMMENT_EVENT,
}


@dataclass
class FanoutResult:
    """Outcome of a single fan-out attempt.

    ``error`` is set when the event was dropped or could not be persisted.
    A self-notification is neither an error nor persisted.
    """

    notification: Notification | None = None
    pushed: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def persisted(self) -> bool:
        return self.notification is not None


def coerce_id(value: Any) -> int | None:
    """Coerce an incoming identifier to a positive int, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        candidate = value
    elif isinstance(value, float) and value.is_integer():
        candidate = int(value)
    elif isinstance(value, str):
        try:
            candidate = int(value.strip(), 10)
        except ValueError:
            return None
    else:
        return None
    return candidate if candidate > 0 else None


async def push_event(connection: Any, event: str, data: Any) -> bool:
    """Send one event over a live connection. Best effort, never raises."""
    try:
        await connection.send_json({"event": event, "data": data})
    except Exception:
        logger.warning("Push of %s failed", event, exc_info=True)
        return False
    return True


async def create_notification(
    db: AsyncSession,
    sender_id: int,
    receiver_id: int,
    content_id: int,
    notification_type: str,
    sender_name: str | None = None,
) -> Notification:
    notification = Notification(
        sender_id=sender_id,
        receiver_id=receiver_id,
        content_id=content_id,
        type=notification_type,
        sender_name=sender_name,
        read=False,
    )
    db.add(notification)
    # Committed before any push so an undelivered notification is still retrievable
    await db.commit()
    await db.refresh(notification)
    return notification


async def handle_event(
    db: AsyncSession,
    presence: PresenceRegistry,
    *,
    sender_id: Any,
    receiver_id: Any,
    content_id: Any,
    notification_type: Any,
    push_event_name: str = LIKE_EVENT,
    sender_name: Any = None,
) -> FanoutResult:
    """Persist a notification for a like/comment and push it if the receiver is online."""
    sender = coerce_id(sender_id)
    receiver = coerce_id(receiver_id)
    content = coerce_id(content_id)
    label = notification_type.strip() if isinstance(notification_type, str) else ""

    if sender is None or receiver is None or content is None or not label:
        logger.warning(
            "Dropping %s event: invalid payload sender=%r receiver=%r content=%r type=%r",
            push_event_name, sender_id, receiver_id, content_id, notification_type,
        )
        return FanoutResult(error="Missing or invalid parameters for notification creation.")

    if sender == receiver:
        return FanoutResult()

    name = sender_name[:50] if isinstance(sender_name, str) and sender_name else None

    try:
        notification = await create_notification(db, sender, receiver, content, label, name)
    except SQLAlchemyError:
        logger.exception("Failed to create notification for user %s", receiver)
        await db.rollback()
        return FanoutResult(error="Failed to create notification.")

    connection = presence.lookup(receiver)
    if connection is None:
        return FanoutResult(notification=notification)

    pushed = await push_event(
        connection,
        push_event_name,
        {
            "sender": sender,
            "post": content,
            "type": label,
            "senderName": name,
        },
    )
    if not pushed:
        # A handle that cannot be written to is dead; the notification waits as backlog
        presence.unregister(connection)
    return FanoutResult(notification=notification, pushed=pushed)


async def list_notifications(
    db: AsyncSession, receiver_id: int | None
) -> dict[str, list[Notification]]:
    """All notifications for a receiver, split by read flag, newest first."""
    if not receiver_id:
        raise ValueError(
            "Missing parameter: Receiver ID is required for reading notifications."
        )

    result = await db.execute(
        select(Notification)
        .where(Notification.receiver_id == receiver_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    read: list[Notification] = []
    unread: list[Notification] = []
    for notification in result.scalars().all():
        (read if notification.read else unread).append(notification)
    return {"read": read, "unread": unread}


async def get_unread_notifications(db: AsyncSession, receiver_id: int) -> list[Notification]:
    result = await db.execute(
        select(Notification)
        .where(
            Notification.receiver_id == receiver_id,
            Notification.read == False,  # noqa: E712
        )
        .order_by(Notification.created_at.desc(), Notification.id.desc())
    )
    return list(result.scalars().all())


async def mark_all_read(db: AsyncSession, receiver_id: int | None) -> int:
    """Flip every unread notification of a receiver to read. Returns rows changed."""
    if not receiver_id:
        raise ValueError(
            "Missing parameter: Receiver ID is required for marking notifications read."
        )

    result = await db.execute(
        update(Notification)
        .where(
            Notification.receiver_id == receiver_id,
            Notification.read == False,  # noqa: E712
        )
        .values(read=True)
    )
    await db.flush()
    return result.rowcount or 0


async def deliver_backlog(db: AsyncSession, user_id: int, connection: Any) -> int:
    """Push unread notifications to a freshly registered connection.

    Returns the number delivered. Failures are logged, never raised.
    """
    try:
        unread = await get_unread_notifications(db, user_id)
    except SQLAlchemyError:
        logger.exception("Failed to load unread notifications for user %s", user_id)
        return 0

    if not unread:
        return 0

    payload = [
        NotificationResponse.model_validate(n).model_dump(mode="json") for n in unread
    ]
    if await push_event(connection, BACKLOG_EVENT, payload):
        return len(payload)
    return 0
