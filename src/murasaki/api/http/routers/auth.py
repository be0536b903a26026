"""Login endpoint delegating credential checks to the identity provider."""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from src.murasaki.api.http.deps import get_oidc_client_service
from src.murasaki.core.errors import IdentityProviderError
from src.murasaki.core.services import OidcClientService

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    email: str = Field(description="Login name at the identity provider")
    password: str


@router.post("/login")
async def login(
    body: LoginRequest,
    oidc_client: OidcClientService = Depends(get_oidc_client_service),
) -> dict[str, Any]:
    """Exchange credentials for tokens and return the provider's response as is."""
    try:
        return await oidc_client.password_grant(body.email, body.password)
    except IdentityProviderError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=exc.message
        ) from exc
