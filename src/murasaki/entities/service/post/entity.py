"""Entity: Post."""

from pydantic import ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.murasaki.entities.core._base import Entity


class Post(Entity):
    """A post owned by a local user.

    Serialized with camelCase keys (``authorId``, ``createdAt``) on the wire.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(description="Title")
    content: str | None = Field(default=None, description="Body text")
    author_id: str = Field(description="ID of the owning user")
