import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_presence
from app.schemas.realtime import RealtimeMessage
from app.services import realtime_service
from app.services.presence_service import PresenceRegistry

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


@router.websocket("/ws")
async def notifications_socket(
    websocket: WebSocket,
    db: AsyncSession = Depends(get_db),
    presence: PresenceRegistry = Depends(get_presence),
):
    """Live notification channel. Frames are JSON ``{"event": ..., "data": ...}``."""
    await websocket.accept()

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = RealtimeMessage.model_validate_json(raw)
            except ValidationError:
                logger.warning("Ignoring malformed real-time frame: %r", raw)
                continue
            await realtime_service.dispatch(
                db, presence, websocket, message.event, message.data
            )
            # Each event runs in its own transaction on the connection-long session
            await db.commit()
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("Real-time connection failed")
    finally:
        user_id = presence.unregister(websocket)
        if user_id is not None:
            logger.info("User %s went offline", user_id)
