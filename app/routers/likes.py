from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.post import LikeRequest, LikeResponse
from app.services import post_service

router = APIRouter(prefix="/likes", tags=["likes"])


@router.post("/new", response_model=LikeResponse, status_code=201)
async def create_like(
    data: LikeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await post_service.create_like(
            db, user.id, post_id=data.post_id, comment_id=data.comment_id
        )
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.delete("/remove")
async def remove_like(
    data: LikeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    removed = await post_service.remove_like(
        db, user.id, post_id=data.post_id, comment_id=data.comment_id
    )
    if not removed:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Like not found.")
    return {"message": "Like removed successfully."}


@router.get("/post/{post_id}", response_model=list[LikeResponse])
async def list_likes_for_post(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_likes_for_post(db, post_id)


@router.get("/comment/{comment_id}", response_model=list[LikeResponse])
async def list_likes_for_comment(comment_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_likes_for_comment(db, comment_id)


@router.get("/user/{user_id}", response_model=list[LikeResponse])
async def list_likes_by_user(user_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_likes_by_user(db, user_id)
