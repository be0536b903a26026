"""Post database table model."""

from sqlmodel import Field

from src.murasaki.entities.core._base import EntityTable


class PostTable(EntityTable, table=True):
    """Database persistence model for posts."""

    title: str
    content: str | None = None
    author_id: str = Field(foreign_key="usertable.id", index=True)
