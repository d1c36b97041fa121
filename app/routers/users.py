from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.user import UserDeleteRequest, UserProfile, UserUpdate
from app.services import user_service

router = APIRouter(prefix="/users", tags=["users"])


def _require_self(user: User, user_id: int) -> None:
    if user.id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Forbidden action: you can only change your own account",
        )


@router.get("/search", response_model=list[UserProfile])
async def search_users(
    q: str | None = Query(default=None, max_length=50),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.search_users(db, q)


@router.get("/read/{user_id}", response_model=UserProfile)
async def read_user(user_id: int, db: AsyncSession = Depends(get_db)):
    user = await user_service.get_user(db, user_id)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail=f"User with ID {user_id} not found."
        )
    return user


@router.put("/update/{user_id}", response_model=UserProfile)
async def update_user(
    user_id: int,
    data: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_self(user, user_id)
    try:
        updated = await user_service.update_user(
            db, user_id, data.model_dump(exclude_unset=True)
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT
            if "already" in str(e)
            else status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return updated


@router.delete("/delete/{user_id}", status_code=204)
async def delete_user(
    user_id: int,
    data: UserDeleteRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    _require_self(user, user_id)
    try:
        deleted = await user_service.delete_user(db, user_id, data.password)
    except PermissionError as e:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
