from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.social import (
    FriendResponse,
    FriendshipRequest,
    FriendshipResponse,
    FriendshipStatusUpdate,
)
from app.services import social_service

router = APIRouter(prefix="/friendships", tags=["friendships"])


@router.post("/new", response_model=FriendshipResponse, status_code=201)
async def create_friendship(
    data: FriendshipRequest,
    req: Request,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await social_service.create_friendship(
            db, user.id, data.receiver_id, req.app.state.redis
        )
    except ValueError as e:
        message = str(e)
        if "limit" in message:
            code = status.HTTP_429_TOO_MANY_REQUESTS
        elif "already exists" in message:
            code = status.HTTP_409_CONFLICT
        elif "not found" in message:
            code = status.HTTP_404_NOT_FOUND
        else:
            code = status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=message)


@router.get("/status", response_model=FriendshipResponse)
async def get_friendship_status(
    sender_id: int = Query(gt=0),
    receiver_id: int = Query(gt=0),
    db: AsyncSession = Depends(get_db),
):
    friendship = await social_service.get_friendship(db, sender_id, receiver_id)
    if friendship is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Friendship not found."
        )
    return friendship


@router.get("/all/{user_id}", response_model=list[FriendResponse])
async def list_accepted_friendships(user_id: int, db: AsyncSession = Depends(get_db)):
    friends = await social_service.get_friends(db, user_id)
    if not friends:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="No accepted friendships yet"
        )
    return friends


@router.put("/update", response_model=FriendshipResponse)
async def update_friendship_status(
    data: FriendshipStatusUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """The current user answers a request that ``sender_id`` sent them."""
    friendship = await social_service.update_friendship_status(
        db, data.sender_id, user.id, data.status
    )
    if friendship is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Friendship not found."
        )
    return friendship
