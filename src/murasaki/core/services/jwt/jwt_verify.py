"""JWT verification service."""

import time

from authlib.jose import JoseError, JsonWebKey, JsonWebToken
from authlib.jose.errors import BadSignatureError
from loguru import logger
from pydantic import ValidationError

from src.murasaki.core.errors import (
    AudienceMismatch,
    BadSignature,
    DisallowedAlgorithm,
    IssuerMismatch,
    MalformedToken,
    MissingSubject,
    TokenExpired,
    TokenNotYetValid,
    UnknownSigningKey,
)
from src.murasaki.core.models.claims import VerifiedClaims
from src.murasaki.core.services.jwt.jwks import JwksService
from src.murasaki.core.services.jwt.jwt_utils import as_list, preview_jwt
from src.murasaki.runtime.context import get_config


# JWK key type each signing algorithm family needs
_KEY_TYPES = {"RS": "RSA", "PS": "RSA", "ES": "EC", "Ed": "OKP"}


def _check_key_matches_alg(jwk: dict, alg: str) -> None:
    if _KEY_TYPES.get(alg[:2]) != jwk.get("kty"):
        raise BadSignature(f"Key {jwk.get('kid')} cannot verify {alg}")
    published = jwk.get("alg")
    if published and published != alg:
        raise BadSignature(f"Key {jwk.get('kid')} is published for {published}, not {alg}")


def _audience_claim(claims) -> list[str]:
    aud = claims.get("aud")
    if aud is None or isinstance(aud, str):
        return as_list(aud)
    if isinstance(aud, list) and all(isinstance(item, str) for item in aud):
        return aud
    raise MalformedToken("aud claim must be a string or a list of strings")


def _numeric_claim(claims, name: str) -> int | None:
    value = claims.get(name)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedToken(f"Non-numeric {name} claim")
    return int(value)


class JwtVerificationService:
    """Validates bearer tokens issued by the trusted identity provider.

    Checks run in a fixed order: structure, algorithm, signing key, signature,
    issuer, lifetime, audience, subject. Each failure raises its own
    ``TokenRejected`` subclass.
    """

    def __init__(self, jwks_service: JwksService):
        self._jwks_service = jwks_service

    async def verify_jwt(
        self,
        token: str,
        *,
        expected_issuer: str | None = None,
    ) -> VerifiedClaims:
        cfg = get_config()
        pv = preview_jwt(token)

        # alg allowlist
        if pv.alg not in cfg.jwt.allowed_algorithms:
            raise DisallowedAlgorithm(f"Disallowed JWT algorithm: {pv.alg}")

        if not pv.kid:
            raise UnknownSigningKey("JWT header has no kid")

        jwk = await self._jwks_service.get_signing_key(cfg.oidc.jwks_uri, pv.kid)
        _check_key_matches_alg(jwk, pv.alg)

        try:
            verification_key = JsonWebKey.import_key_set({"keys": [jwk]})
            claims = JsonWebToken(cfg.jwt.allowed_algorithms).decode(
                token, verification_key
            )
        except BadSignatureError as exc:
            raise BadSignature("JWT signature verification failed") from exc
        except (JoseError, ValueError) as exc:
            raise MalformedToken(f"JWT error: {exc}") from exc
        except Exception as exc:
            # authlib can fail outside its own error types on odd headers
            raise MalformedToken(f"JWT could not be decoded: {exc!r}") from exc

        trusted = (expected_issuer or cfg.oidc.issuer).rstrip("/")
        iss = claims.get("iss")
        if not isinstance(iss, str) or iss.rstrip("/") != trusted:
            raise IssuerMismatch(f"Issuer {iss!r} is not {trusted!r}")

        now = int(time.time())
        skew = cfg.jwt.clock_skew
        exp = _numeric_claim(claims, "exp")
        if exp is None:
            raise TokenExpired("Missing exp claim")
        if now > exp + skew:
            raise TokenExpired(f"Token expired at {exp}")
        nbf = _numeric_claim(claims, "nbf")
        if nbf is not None and now < nbf - skew:
            raise TokenNotYetValid(f"Token not valid before {nbf}")
        iat = _numeric_claim(claims, "iat")
        if iat is not None and iat > now + skew:
            raise TokenNotYetValid(f"Token issued in the future ({iat})")

        aud_values = _audience_claim(claims)
        if cfg.jwt.audiences:
            if not set(aud_values) & set(cfg.jwt.audiences):
                raise AudienceMismatch(f"Audience {aud_values} not accepted")

        if not claims.get("sub") or not isinstance(claims.get("sub"), str):
            raise MissingSubject("Missing sub claim")

        try:
            verified = VerifiedClaims.from_payload(dict(claims))
        except ValidationError as exc:
            raise MalformedToken(f"Unexpected claim shape: {exc}") from exc

        logger.debug("Verified JWT for sub={} from {}", verified.subject, iss)
        return verified
