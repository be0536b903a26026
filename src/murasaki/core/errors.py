"""Domain exceptions for token verification, identity mirroring and login.

Every verification failure is a ``TokenRejected`` with a distinct ``reason``.
The reason is meant for logs only; the HTTP layer collapses all of them into
a single generic 401.
"""


class MurasakiError(Exception):
    """Base exception for the application."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class TokenRejected(MurasakiError):
    """A bearer token failed verification."""

    reason = "rejected"


class MalformedToken(TokenRejected):
    reason = "malformed_token"


class DisallowedAlgorithm(TokenRejected):
    reason = "disallowed_algorithm"


class UnknownSigningKey(TokenRejected):
    reason = "unknown_signing_key"


class KeySetUnavailable(TokenRejected):
    reason = "key_set_unavailable"


class BadSignature(TokenRejected):
    reason = "bad_signature"


class IssuerMismatch(TokenRejected):
    reason = "issuer_mismatch"


class AudienceMismatch(TokenRejected):
    reason = "audience_mismatch"


class TokenExpired(TokenRejected):
    reason = "token_expired"


class TokenNotYetValid(TokenRejected):
    reason = "token_not_yet_valid"


class MissingSubject(TokenRejected):
    reason = "missing_subject"


class IdentityMirrorError(MurasakiError):
    """The local user record could not be created or updated."""


class IdentityProviderError(MurasakiError):
    """The identity provider refused the login or could not be reached."""

    def __init__(
        self, message: str = "Authentication failed", status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(MurasakiError):
    """A resource could not be stored or read."""
