import base64
import json
import time
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import parse_qs

import httpx
from authlib.jose import JsonWebKey, jwt


@dataclass
class SigningKey:
    """RSA key pair standing in for one of Keycloak's realm keys."""

    kid: str
    key: Any

    @classmethod
    def generate(cls, kid: str) -> "SigningKey":
        return cls(kid=kid, key=JsonWebKey.generate_key("RSA", 2048, is_private=True))

    @property
    def public_jwk(self) -> dict[str, Any]:
        jwk = dict(self.key.as_dict(is_private=False))
        jwk.update({"kid": self.kid, "alg": "RS256", "use": "sig"})
        return jwk

    def sign(
        self,
        claims: dict[str, Any],
        *,
        alg: str = "RS256",
        include_kid: bool = True,
    ) -> str:
        header: dict[str, Any] = {"alg": alg, "typ": "JWT"}
        if include_kid:
            header["kid"] = self.kid
        token = jwt.encode(header, claims, self.key.as_pem(is_private=True))
        return token.decode("ascii") if isinstance(token, bytes) else token


def token_claims(issuer: str, subject: str = "kc-user-1", **overrides: Any) -> dict[str, Any]:
    """Claims shaped like a Keycloak access token, valid for five minutes."""
    now = int(time.time())
    claims: dict[str, Any] = {
        "iss": issuer,
        "sub": subject,
        "aud": "account",
        "azp": "murasaki-backend",
        "typ": "Bearer",
        "iat": now,
        "exp": now + 300,
        "email": "testuser@example.com",
        "given_name": "Test",
        "family_name": "User",
        "preferred_username": "testuser",
    }
    claims.update(overrides)
    return {k: v for k, v in claims.items() if v is not None}


def _b64(data: dict[str, Any]) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def unsigned_token(header: dict[str, Any], claims: dict[str, Any]) -> str:
    """Compact token with a junk signature, for header-level rejections."""
    return f"{_b64(header)}.{_b64(claims)}.c2ln"


@dataclass
class FakeKeycloak:
    """Answers JWKS and token-endpoint calls through an httpx.MockTransport."""

    jwks_uri: str
    token_endpoint: str
    jwks: dict[str, Any]
    token_status: int = 200
    token_body: Any = field(
        default_factory=lambda: {
            "access_token": "access.token.value",
            "refresh_token": "refresh.token.value",
            "token_type": "Bearer",
            "expires_in": 300,
            "scope": "profile email",
        }
    )
    jwks_available: bool = True
    token_error: Exception | None = None
    jwks_requests: int = 0
    token_requests: list[dict[str, str]] = field(default_factory=list)

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if request.method == "GET" and url == self.jwks_uri:
            self.jwks_requests += 1
            if not self.jwks_available:
                return httpx.Response(503, text="Service Unavailable")
            return httpx.Response(200, json=self.jwks)

        if request.method == "POST" and url == self.token_endpoint:
            form = parse_qs(request.content.decode("utf-8"))
            self.token_requests.append({k: v[0] for k, v in form.items()})
            if self.token_error is not None:
                raise self.token_error
            if isinstance(self.token_body, (dict, list)):
                return httpx.Response(self.token_status, json=self.token_body)
            return httpx.Response(self.token_status, text=str(self.token_body))

        return httpx.Response(404, json={"error": "not_found"})

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)
