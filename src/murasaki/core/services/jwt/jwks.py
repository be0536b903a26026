import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
from cachetools import TTLCache
from loguru import logger

from src.murasaki.core.errors import KeySetUnavailable, UnknownSigningKey


class JWKSCache(ABC):
    @abstractmethod
    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        """
        Get JWKS for the given JWKS URI from cache.
        Args:
            jwks_uri: The key set endpoint

        Returns:
            JWKS dictionary, empty when nothing is cached
        """
        raise NotImplementedError

    @abstractmethod
    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        """
        Set JWKS for the given JWKS URI in cache.

        Args:
            jwks_uri: The key set endpoint
            jwks: The JWKS dictionary to cache
        """
        raise NotImplementedError

    @abstractmethod
    def clear_jwks_cache(self) -> None:
        """Clear the JWKS cache."""
        raise NotImplementedError


class JWKSCacheInMemory(JWKSCache):
    """Per-instance TTL cache; the application owns one and injects it."""

    def __init__(self, ttl_seconds: int = 3600, maxsize: int = 10) -> None:
        self._cache: TTLCache[str, dict[str, Any]] = TTLCache(
            maxsize=maxsize, ttl=ttl_seconds
        )

    def get_jwks(self, jwks_uri: str) -> dict[str, Any]:
        return self._cache.get(jwks_uri, {})

    def set_jwks(self, jwks_uri: str, jwks: dict[str, Any]) -> None:
        # last writer wins when refreshes race
        self._cache[jwks_uri] = jwks

    def clear_jwks_cache(self) -> None:
        self._cache.clear()


def _find_key(jwks: dict[str, Any], kid: str) -> dict[str, Any] | None:
    for key in jwks.get("keys", []):
        if isinstance(key, dict) and key.get("kid") == kid:
            return key
    return None


class JwksService:
    """Read-through access to the identity provider's signing keys.

    A kid that is not in the cached key set forces one refetch before the key
    is declared unknown, which is how provider key rotation is picked up.
    """

    def __init__(
        self,
        cache: JWKSCache,
        *,
        timeout: float = 5.0,
        refresh_cooldown: float = 0.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cache = cache
        self._timeout = timeout
        self._refresh_cooldown = refresh_cooldown
        self._transport = transport
        self._last_fetch: dict[str, float] = {}

    async def fetch_jwks(self, jwks_uri: str, *, force: bool = False) -> dict[str, Any]:
        if not jwks_uri:
            raise KeySetUnavailable("No JWKS URI configured")

        if not force:
            jwks = self._cache.get_jwks(jwks_uri)
            if jwks:
                return jwks

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.get(jwks_uri)
                resp.raise_for_status()
                jwks = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise KeySetUnavailable(f"Failed to fetch JWKS: {exc}") from exc

        if not isinstance(jwks, dict) or not isinstance(jwks.get("keys"), list):
            raise KeySetUnavailable("JWKS response has no 'keys' list")

        self._last_fetch[jwks_uri] = time.monotonic()
        self._cache.set_jwks(jwks_uri, jwks)
        logger.debug("Fetched JWKS from {} ({} keys)", jwks_uri, len(jwks["keys"]))
        return jwks

    def _refresh_allowed(self, jwks_uri: str) -> bool:
        last = self._last_fetch.get(jwks_uri)
        if last is None or self._refresh_cooldown <= 0:
            return True
        return time.monotonic() - last >= self._refresh_cooldown

    async def get_signing_key(self, jwks_uri: str, kid: str) -> dict[str, Any]:
        """Return the JWK for ``kid``, refetching the key set once on a miss."""
        jwks = await self.fetch_jwks(jwks_uri)
        key = _find_key(jwks, kid)
        if key is not None:
            return key

        if not self._refresh_allowed(jwks_uri):
            raise UnknownSigningKey(f"No JWK matches kid={kid} (refresh cooling down)")

        logger.info("kid {} not in cached key set, refreshing {}", kid, jwks_uri)
        jwks = await self.fetch_jwks(jwks_uri, force=True)
        key = _find_key(jwks, kid)
        if key is None:
            raise UnknownSigningKey(f"No JWK matches kid={kid}")
        return key
