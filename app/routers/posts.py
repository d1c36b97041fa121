from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.dependencies import get_current_user
from app.models.user import User
from app.schemas.post import PostCreate, PostResponse, PostUpdate
from app.services import feed_service, post_service

router = APIRouter(prefix="/posts", tags=["posts"])


@router.post("/new", response_model=PostResponse, status_code=201)
async def create_post(
    data: PostCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await post_service.create_post(db, user.id, data.content, data.image_url)


@router.get("/read", response_model=list[PostResponse])
async def read_posts(
    id: int | None = Query(default=None, gt=0),
    author_id: int | None = Query(default=None, gt=0),
    limit: int = Query(default=50, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """One post by ``id``, every post of ``author_id``, or the latest posts."""
    if id is not None:
        post = await post_service.get_post(db, id)
        if post is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail=f"Post with ID {id} not found."
            )
        return [post]
    if author_id is not None:
        return await post_service.get_posts_by_author(db, author_id)
    return await post_service.get_all_posts(db, limit=limit, offset=offset)


@router.get("/feed/{user_id}", response_model=list[PostResponse])
async def generate_feed(user_id: int, db: AsyncSession = Depends(get_db)):
    try:
        return await feed_service.generate_feed(db, user_id)
    except feed_service.NoFriendsError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


@router.put("/update/{post_id}", response_model=PostResponse)
async def update_post(
    post_id: int,
    data: PostUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.update_post(
        db, user.id, post_id, data.model_dump(exclude_unset=True)
    )
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
    return post


@router.delete("/delete/{post_id}", status_code=204)
async def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if not await post_service.delete_post(db, user.id, post_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Post not found")
