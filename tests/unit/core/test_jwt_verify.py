import time

import pytest
from authlib.jose import jwt

from src.murasaki.core.errors import (
    AudienceMismatch,
    BadSignature,
    DisallowedAlgorithm,
    IssuerMismatch,
    KeySetUnavailable,
    MalformedToken,
    MissingSubject,
    TokenExpired,
    TokenNotYetValid,
    TokenRejected,
    UnknownSigningKey,
)
from src.murasaki.core.services import JwtVerificationService
from src.murasaki.runtime.config.config_data import ConfigData
from src.murasaki.runtime.context import with_context
from tests.utils import FakeKeycloak, SigningKey, token_claims, unsigned_token


class TestValidTokens:
    async def test_valid_token_yields_typed_claims(
        self, jwt_verify_service: JwtVerificationService, make_token, issuer: str
    ):
        claims = await jwt_verify_service.verify_jwt(make_token("kc-user-1"))

        assert claims.subject == "kc-user-1"
        assert claims.issuer == issuer
        assert claims.email == "testuser@example.com"
        assert claims.given_name == "Test"
        assert claims.family_name == "User"
        assert claims.raw["azp"] == "murasaki-backend"

    async def test_optional_profile_claims_may_be_absent(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        token = make_token(
            "kc-user-2", email=None, given_name=None, family_name=None
        )

        claims = await jwt_verify_service.verify_jwt(token)

        assert claims.subject == "kc-user-2"
        assert claims.email is None
        assert claims.given_name is None
        assert claims.family_name is None

    async def test_trailing_slash_on_issuer_is_ignored(
        self, jwt_verify_service: JwtVerificationService, make_token, issuer: str
    ):
        claims = await jwt_verify_service.verify_jwt(make_token(iss=issuer + "/"))
        assert claims.subject == "kc-user-1"

    async def test_key_rotation_is_picked_up(
        self,
        jwt_verify_service: JwtVerificationService,
        fake_keycloak: FakeKeycloak,
        make_token,
        rotated_key: SigningKey,
        issuer: str,
    ):
        await jwt_verify_service.verify_jwt(make_token())
        fake_keycloak.jwks = {"keys": [rotated_key.public_jwk]}

        claims = await jwt_verify_service.verify_jwt(
            rotated_key.sign(token_claims(issuer, "kc-user-3"))
        )

        assert claims.subject == "kc-user-3"


class TestRejectedTokens:
    async def test_foreign_key_is_unknown(
        self,
        jwt_verify_service: JwtVerificationService,
        fake_keycloak: FakeKeycloak,
        foreign_key: SigningKey,
        issuer: str,
    ):
        token = foreign_key.sign(token_claims(issuer))

        with pytest.raises(UnknownSigningKey):
            await jwt_verify_service.verify_jwt(token)
        # one read plus one forced refresh
        assert fake_keycloak.jwks_requests == 2

    async def test_foreign_key_reusing_published_kid_fails_signature(
        self,
        jwt_verify_service: JwtVerificationService,
        signing_key: SigningKey,
        foreign_key: SigningKey,
        issuer: str,
    ):
        impostor = SigningKey(kid=signing_key.kid, key=foreign_key.key)

        with pytest.raises(BadSignature):
            await jwt_verify_service.verify_jwt(impostor.sign(token_claims(issuer)))

    async def test_wrong_issuer(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        token = make_token(iss="https://keycloak.test/realms/other-realm")

        with pytest.raises(IssuerMismatch):
            await jwt_verify_service.verify_jwt(token)

    async def test_expired(self, jwt_verify_service: JwtVerificationService, make_token):
        now = int(time.time())
        token = make_token(iat=now - 600, exp=now - 60)

        with pytest.raises(TokenExpired):
            await jwt_verify_service.verify_jwt(token)

    async def test_missing_exp_is_treated_as_expired(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        with pytest.raises(TokenExpired):
            await jwt_verify_service.verify_jwt(make_token(exp=None))

    async def test_clock_skew_tolerates_recent_expiry(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        now = int(time.time())
        token = make_token(iat=now - 600, exp=now - 10)
        override = ConfigData()
        override.jwt.clock_skew = 60

        with with_context(override):
            claims = await jwt_verify_service.verify_jwt(token)

        assert claims.expires_at == now - 10

    async def test_not_yet_valid(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        token = make_token(nbf=int(time.time()) + 600)

        with pytest.raises(TokenNotYetValid):
            await jwt_verify_service.verify_jwt(token)

    async def test_issued_in_the_future(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        now = int(time.time())
        token = make_token(iat=now + 600, exp=now + 900)

        with pytest.raises(TokenNotYetValid):
            await jwt_verify_service.verify_jwt(token)

    async def test_missing_subject(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        with pytest.raises(MissingSubject):
            await jwt_verify_service.verify_jwt(make_token(sub=None))

    async def test_alg_none_is_refused(
        self, jwt_verify_service: JwtVerificationService, issuer: str
    ):
        token = unsigned_token(
            {"alg": "none", "kid": "realm-key-1"}, token_claims(issuer)
        )

        with pytest.raises(DisallowedAlgorithm):
            await jwt_verify_service.verify_jwt(token)

    async def test_hmac_is_refused(
        self, jwt_verify_service: JwtVerificationService, issuer: str
    ):
        token = jwt.encode(
            {"alg": "HS256", "kid": "realm-key-1"},
            token_claims(issuer),
            b"shared-secret-guessed-by-attacker",
        ).decode("ascii")

        with pytest.raises(DisallowedAlgorithm):
            await jwt_verify_service.verify_jwt(token)

    async def test_missing_kid(
        self,
        jwt_verify_service: JwtVerificationService,
        signing_key: SigningKey,
        issuer: str,
    ):
        token = signing_key.sign(token_claims(issuer), include_kid=False)

        with pytest.raises(UnknownSigningKey):
            await jwt_verify_service.verify_jwt(token)

    async def test_garbage(self, jwt_verify_service: JwtVerificationService):
        with pytest.raises(MalformedToken):
            await jwt_verify_service.verify_jwt("definitely not a token")

    async def test_key_set_unavailable(
        self,
        jwt_verify_service: JwtVerificationService,
        fake_keycloak: FakeKeycloak,
        make_token,
    ):
        fake_keycloak.jwks_available = False

        with pytest.raises(KeySetUnavailable) as exc_info:
            await jwt_verify_service.verify_jwt(make_token())
        assert isinstance(exc_info.value, TokenRejected)


class TestAudience:
    async def test_audience_skipped_by_default(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        claims = await jwt_verify_service.verify_jwt(make_token(aud="anything"))
        assert claims.audience == "anything"

    async def test_configured_audience_must_match(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        override = ConfigData()
        override.jwt.audiences = ["murasaki-backend"]

        with with_context(override):
            with pytest.raises(AudienceMismatch):
                await jwt_verify_service.verify_jwt(make_token(aud="account"))

            claims = await jwt_verify_service.verify_jwt(
                make_token(aud=["account", "murasaki-backend"])
            )

        assert claims.subject == "kc-user-1"


class TestKeyAlgorithmMismatch:
    async def test_header_alg_for_other_key_type(
        self,
        jwt_verify_service: JwtVerificationService,
        signing_key: SigningKey,
        issuer: str,
    ):
        # RSA realm key, EC algorithm, junk signature
        token = unsigned_token(
            {"alg": "ES256", "kid": signing_key.kid}, token_claims(issuer)
        )

        with pytest.raises(BadSignature):
            await jwt_verify_service.verify_jwt(token)

    async def test_header_alg_differs_from_published_alg(
        self,
        jwt_verify_service: JwtVerificationService,
        signing_key: SigningKey,
        issuer: str,
    ):
        token = signing_key.sign(token_claims(issuer), alg="RS384")

        with pytest.raises(BadSignature):
            await jwt_verify_service.verify_jwt(token)


class TestClaimShapes:
    async def test_audience_list_of_numbers(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        with pytest.raises(MalformedToken):
            await jwt_verify_service.verify_jwt(make_token(aud=[1, 2]))

    async def test_numeric_audience_with_configured_audiences(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        override = ConfigData()
        override.jwt.audiences = ["murasaki-backend"]

        with with_context(override):
            with pytest.raises(MalformedToken):
                await jwt_verify_service.verify_jwt(make_token(aud=5))

    async def test_non_string_profile_claims_are_dropped(
        self, jwt_verify_service: JwtVerificationService, make_token
    ):
        claims = await jwt_verify_service.verify_jwt(
            make_token(email=42, given_name=["Test"])
        )

        assert claims.email is None
        assert claims.given_name is None
