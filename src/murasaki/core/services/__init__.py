"""Core services exports."""

# Database Service
from .database.db_session import DbSessionService

# JWT Services
from .jwt.jwks import JWKSCache, JWKSCacheInMemory, JwksService
from .jwt.jwt_verify import JwtVerificationService

# OIDC Services
from .oidc_client_service import OidcClientService

# Post Services
from .post.post_service import PostService

# User Services
from .user.user_management import UserManagementService

__all__ = [
    # JWT Services
    "JWKSCache",
    "JWKSCacheInMemory",
    "JwksService",
    "JwtVerificationService",
    # User Services
    "UserManagementService",
    # Post Services
    "PostService",
    # OIDC Services
    "OidcClientService",
    # Database Service
    "DbSessionService",
]
