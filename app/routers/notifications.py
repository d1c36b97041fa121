from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user, get_presence
from app.models.user import User
from app.schemas.notification import (
    MarkReadResponse,
    NotificationCreate,
    NotificationList,
    NotificationResponse,
)
from app.services import notification_service
from app.services.presence_service import PresenceRegistry

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("/read", response_model=NotificationList)
async def read_notifications(
    id: int | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
):
    """Notifications for receiver ``id``, split into read and unread."""
    # Missing id -> ValueError -> 400 via the global handler
    return await notification_service.list_notifications(db, id)


@router.post(
    "/new",
    response_model=NotificationResponse,
    status_code=201,
    responses={204: {"description": "Self-notification suppressed"}},
)
async def create_notification(
    data: NotificationCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
):
    """Notify ``receiver_id`` on behalf of the current user and push if they are online."""
    push_event_name = notification_service.PUSH_EVENTS.get(data.type.strip())
    if push_event_name is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown notification type: {data.type!r}",
        )

    result = await notification_service.handle_event(
        db,
        presence,
        sender_id=user.id,
        receiver_id=data.receiver_id,
        content_id=data.content_id,
        notification_type=data.type,
        push_event_name=push_event_name,
        sender_name=user.username,
    )
    if not result.ok:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error)
    if not result.persisted:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return result.notification


@router.put("/mark-read", response_model=MarkReadResponse)
async def mark_notifications_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    updated = await notification_service.mark_all_read(db, user.id)
    return {"updated": updated}
