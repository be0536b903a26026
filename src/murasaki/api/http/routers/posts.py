"""Posts owned by the authenticated user."""

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from src.murasaki.api.http.deps import get_current_user, get_post_service
from src.murasaki.core.errors import PersistenceError
from src.murasaki.core.services import PostService
from src.murasaki.entities.core.user import User
from src.murasaki.entities.service.post import Post

router = APIRouter(prefix="/posts", tags=["posts"])


class PostCreate(BaseModel):
    title: str
    content: str | None = None


@router.post("", response_model=Post, status_code=status.HTTP_201_CREATED)
async def create_post(
    body: PostCreate,
    user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> Post:
    """Create a post owned by the caller."""
    try:
        return await post_service.create_post(user, body.title, body.content)
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message
        ) from exc


@router.get("", response_model=list[Post])
async def list_posts(
    user: User = Depends(get_current_user),
    post_service: PostService = Depends(get_post_service),
) -> list[Post]:
    """List the caller's posts, newest first."""
    try:
        return await post_service.list_posts(user)
    except PersistenceError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message
        ) from exc
