"""User database table model."""

from sqlalchemy import Column, String, UniqueConstraint
from sqlmodel import Field

from src.murasaki.entities.core._base import EntityTable


class UserTable(EntityTable, table=True):
    """Database persistence model for users.

    The unique constraint on ``subject`` is what makes the login-time upsert
    atomic under concurrent first logins.
    """

    __table_args__ = (UniqueConstraint("subject", name="uq_user_subject"),)

    subject: str = Field(sa_column=Column(String(512), nullable=False, index=True))
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
