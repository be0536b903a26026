"""User domain entity."""

from pydantic import Field

from src.murasaki.entities.core._base import Entity


class User(Entity):
    """Local mirror of an identity asserted by the identity provider.

    ``subject`` is the provider's ``sub`` claim and the join key between the
    external identity and locally owned records; it never changes once the
    record exists. Email and names are copies of the latest token's claims.
    """

    subject: str = Field(description="External subject identifier (token sub claim)")
    email: str | None = Field(default=None, description="User's email address")
    first_name: str | None = Field(default=None, description="User's first name")
    last_name: str | None = Field(default=None, description="User's last name")
