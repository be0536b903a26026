"""Post operations for authenticated users."""

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.murasaki.core.errors import PersistenceError
from src.murasaki.entities.core.user import User
from src.murasaki.entities.service.post import Post, PostRepository


class PostService:
    def __init__(self, db_session: AsyncSession):
        self._db = db_session
        self._post_repo = PostRepository(db_session)

    async def create_post(self, author: User, title: str, content: str | None) -> Post:
        """Create a post owned by ``author``."""
        try:
            post = await self._post_repo.create(
                Post(title=title, content=content, author_id=author.id)
            )
            await self._db.commit()
        except SQLAlchemyError as exc:
            await self._db.rollback()
            logger.exception("Failed to create post for user {}", author.id)
            raise PersistenceError("Failed to create post") from exc

        logger.info("User {} created post {}", author.id, post.id)
        return post

    async def list_posts(self, author: User) -> list[Post]:
        """Return the author's posts, newest first."""
        try:
            return await self._post_repo.list_by_author(author.id)
        except SQLAlchemyError as exc:
            logger.exception("Failed to list posts for user {}", author.id)
            raise PersistenceError("Failed to list posts") from exc
