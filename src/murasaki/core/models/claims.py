"""Typed representation of a verified access token."""

from typing import Any

from pydantic import BaseModel, Field


class VerifiedClaims(BaseModel):
    """Claims of a bearer token whose signature, issuer and lifetime were checked.

    Only ``subject`` and ``issuer`` are guaranteed. Profile claims are optional
    and their absence is a normal state, not an error.
    """

    subject: str = Field(description="Subject (stable user ID at the provider)")
    issuer: str = Field(description="Issuer")
    audience: str | list[str] | None = Field(default=None, description="Audience")
    expires_at: int = Field(description="Expiration time")
    issued_at: int | None = Field(default=None, description="Issued at")
    not_before: int | None = Field(default=None, description="Not before")

    email: str | None = Field(default=None, description="Email address")
    given_name: str | None = Field(default=None, description="First name")
    family_name: str | None = Field(default=None, description="Last name")
    preferred_username: str | None = Field(default=None, description="Username")

    raw: dict[str, Any] = Field(default_factory=dict, description="All claims as received")

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "VerifiedClaims":
        """Build claims from a decoded JWT payload, dropping non-string profile values."""

        def _str_or_none(key: str) -> str | None:
            value = payload.get(key)
            return value if isinstance(value, str) and value else None

        return cls(
            subject=payload["sub"],
            issuer=payload["iss"],
            audience=payload.get("aud"),
            expires_at=int(payload["exp"]),
            issued_at=int(payload["iat"]) if payload.get("iat") is not None else None,
            not_before=int(payload["nbf"]) if payload.get("nbf") is not None else None,
            email=_str_or_none("email"),
            given_name=_str_or_none("given_name"),
            family_name=_str_or_none("family_name"),
            preferred_username=_str_or_none("preferred_username"),
            raw=dict(payload),
        )
