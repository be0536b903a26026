from dataclasses import dataclass

from src.murasaki.core.services import (
    DbSessionService,
    JWKSCacheInMemory,
    JwksService,
    JwtVerificationService,
    OidcClientService,
)


@dataclass
class ApplicationDependencies:
    jwks_cache: JWKSCacheInMemory
    jwks_service: JwksService
    jwt_verify_service: JwtVerificationService
    oidc_client_service: OidcClientService
    database_service: DbSessionService
