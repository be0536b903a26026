"""OIDC client service for the resource owner password grant."""

from typing import Any

import httpx
from loguru import logger

from src.murasaki.core.errors import IdentityProviderError
from src.murasaki.runtime.context import get_config

GENERIC_LOGIN_FAILURE = "Authentication failed"


def _provider_error_message(response: httpx.Response) -> str:
    """Prefer the provider's own error description, then its error code."""
    try:
        body = response.json()
    except ValueError:
        return GENERIC_LOGIN_FAILURE
    if not isinstance(body, dict):
        return GENERIC_LOGIN_FAILURE
    return body.get("error_description") or body.get("error") or GENERIC_LOGIN_FAILURE


class OidcClientService:
    """Talks to the identity provider's token endpoint on behalf of end users."""

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def password_grant(self, email: str, password: str) -> dict[str, Any]:
        """Exchange end-user credentials for tokens.

        Args:
            email: Login name; Keycloak receives it as ``username``
            password: End-user password

        Returns:
            The provider's token response, unmodified

        Raises:
            IdentityProviderError: If the provider rejects the credentials or
                cannot be reached
        """
        provider_config = get_config().oidc

        token_data = {
            "grant_type": "password",
            "client_id": provider_config.client_id,
            "username": email,
            "password": password,
        }
        # public clients have no secret
        if provider_config.client_secret:
            token_data["client_secret"] = provider_config.client_secret

        headers = {"Content-Type": "application/x-www-form-urlencoded"}

        try:
            async with httpx.AsyncClient(
                timeout=provider_config.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    provider_config.token_endpoint, data=token_data, headers=headers
                )
        except httpx.HTTPError as exc:
            logger.error(
                "Token request to {} failed: {}", provider_config.token_endpoint, exc
            )
            raise IdentityProviderError(GENERIC_LOGIN_FAILURE) from exc

        if not response.is_success:
            message = _provider_error_message(response)
            logger.warning(
                "Identity provider rejected login for {} ({}): {}",
                email,
                response.status_code,
                message,
            )
            raise IdentityProviderError(message, status_code=response.status_code)

        try:
            token_response = response.json()
        except ValueError as exc:
            logger.error("Identity provider returned a non-JSON token response")
            raise IdentityProviderError(GENERIC_LOGIN_FAILURE) from exc

        if not isinstance(token_response, dict):
            raise IdentityProviderError(GENERIC_LOGIN_FAILURE)
        return token_response
