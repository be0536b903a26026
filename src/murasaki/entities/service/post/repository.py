"""Post data-access layer."""

from sqlalchemy import func
from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.murasaki.entities.service.post.entity import Post
from src.murasaki.entities.service.post.table import PostTable


class PostRepository:
    """Data-access layer for posts."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    @staticmethod
    def _to_entity(row: PostTable) -> Post:
        return Post.model_validate(row.model_dump())

    async def create(self, post: Post) -> Post:
        row = PostTable(
            id=post.id,
            title=post.title,
            content=post.content,
            author_id=post.author_id,
            created_at=post.created_at,
            updated_at=post.updated_at,
        )
        self._session.add(row)
        await self._session.flush()
        await self._session.refresh(row)
        return self._to_entity(row)

    async def count(self) -> int:
        statement = select(func.count()).select_from(PostTable)
        return (await self._session.exec(statement)).one()

    async def list_by_author(self, author_id: str) -> list[Post]:
        statement = (
            select(PostTable)
            .where(PostTable.author_id == author_id)
            .order_by(col(PostTable.created_at).desc())
        )
        rows = (await self._session.exec(statement)).all()
        return [self._to_entity(row) for row in rows]
