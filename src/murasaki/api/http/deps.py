"""FastAPI dependency implementations."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from loguru import logger
from sqlmodel.ext.asyncio.session import AsyncSession

from src.murasaki.api.http.app_data import ApplicationDependencies
from src.murasaki.core.errors import IdentityMirrorError, TokenRejected
from src.murasaki.core.services import (
    JwtVerificationService,
    OidcClientService,
    PostService,
    UserManagementService,
)
from src.murasaki.entities.core.user import User

bearer_scheme = HTTPBearer(
    auto_error=False,
    bearerFormat="JWT",
    scheme_name="BearerAuth",
    description="Access token issued by Keycloak",
)


def _app_deps(request: Request) -> ApplicationDependencies:
    return request.app.state.app_dependencies


async def get_db_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield a database session scoped to the request."""
    async with _app_deps(request).database_service.get_session() as session:
        yield session


def get_jwt_verify_service(request: Request) -> JwtVerificationService:
    """Get the JWT verification service instance."""
    return _app_deps(request).jwt_verify_service


def get_oidc_client_service(request: Request) -> OidcClientService:
    """Get the OIDC Client service instance."""
    return _app_deps(request).oidc_client_service


def get_user_management_service(
    db_session: AsyncSession = Depends(get_db_session),
) -> UserManagementService:
    return UserManagementService(db_session)


def get_post_service(db_session: AsyncSession = Depends(get_db_session)) -> PostService:
    return PostService(db_session)


def unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    jwt_verify: JwtVerificationService = Depends(get_jwt_verify_service),
    user_mgmt: UserManagementService = Depends(get_user_management_service),
) -> User:
    """Authenticate the request with a Bearer token and mirror its identity.

    The token is fully verified before the local user is touched, so a
    rejected token never creates or updates a record. Every failure is the
    same 401; the specific reason only goes to the log.
    """
    if credentials is None:
        raise unauthorized()

    try:
        claims = await jwt_verify.verify_jwt(credentials.credentials)
    except TokenRejected as exc:
        logger.warning("Bearer token rejected ({}): {}", exc.reason, exc.message)
        raise unauthorized() from exc

    try:
        user = await user_mgmt.mirror_identity(claims)
    except IdentityMirrorError as exc:
        raise unauthorized() from exc

    request.state.claims = claims
    request.state.user = user
    return user
