from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.post import CommentCreate, CommentResponse, CommentUpdate
from app.services import post_service

router = APIRouter(prefix="/comments", tags=["comments"])


@router.post("/new", response_model=CommentResponse, status_code=201)
async def create_comment(
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    try:
        return await post_service.create_comment(db, user.id, data.post_id, data.content)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND
            if "not found" in str(e)
            else status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )


@router.get("/post/{post_id}", response_model=list[CommentResponse])
async def list_comments(post_id: int, db: AsyncSession = Depends(get_db)):
    return await post_service.get_comments_for_post(db, post_id)


@router.put("/update/{comment_id}", response_model=CommentResponse)
async def update_comment(
    comment_id: int,
    data: CommentUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = await post_service.update_comment(db, user.id, comment_id, data.content)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
    return comment


@router.delete("/{comment_id}", status_code=204)
async def delete_comment(
    comment_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await post_service.delete_comment(db, user.id, comment_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found")
