"""FastAPI application factory and setup."""

import time
import uuid
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse

from src.murasaki import __version__
from src.murasaki.api.http.app_data import ApplicationDependencies
from src.murasaki.api.http.routers.auth import router as auth_router
from src.murasaki.api.http.routers.posts import router as posts_router
from src.murasaki.api.utils.app_startup import configure_logging
from src.murasaki.core.errors import KeySetUnavailable
from src.murasaki.core.services import (
    DbSessionService,
    JWKSCacheInMemory,
    JwksService,
    JwtVerificationService,
    OidcClientService,
)
from src.murasaki.core.services.database.db_manage import create_all
from src.murasaki.runtime.config.config_data import ConfigData
from src.murasaki.runtime.context import get_config

# Initialize logging
configure_logging()


# --- Security middleware ---
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault(
            "Referrer-Policy", "strict-origin-when-cross-origin"
        )
        # HSTS only in prod
        if get_config().app.environment == "production":
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=31536000; includeSubDomains"
            )
        return response


def build_dependencies(
    config: ConfigData | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> ApplicationDependencies:
    """Wire the process-wide services.

    ``transport`` is handed to every outbound HTTP client, which lets tests
    stand in for Keycloak without a network.
    """
    config = config or get_config()

    jwks_cache = JWKSCacheInMemory(ttl_seconds=config.jwt.jwks_cache_ttl_seconds)
    jwks_service = JwksService(
        jwks_cache,
        timeout=config.oidc.timeout_seconds,
        refresh_cooldown=config.jwt.jwks_refresh_cooldown_seconds,
        transport=transport,
    )
    return ApplicationDependencies(
        jwks_cache=jwks_cache,
        jwks_service=jwks_service,
        jwt_verify_service=JwtVerificationService(jwks_service),
        oidc_client_service=OidcClientService(transport=transport),
        database_service=DbSessionService(config),
    )


# --- Lifecycle hooks ---
async def startup() -> None:
    config = get_config()
    logger.info("Starting up application in {} environment", config.app.environment)

    deps = build_dependencies(config)
    app.state.app_dependencies = deps

    await create_all(deps.database_service.engine)

    # Surface an unreachable Keycloak early; requests still get a clean 401
    try:
        await deps.jwks_service.fetch_jwks(config.oidc.jwks_uri)
        logger.info("Fetched signing keys from {}", config.oidc.jwks_uri)
    except KeySetUnavailable as exc:
        logger.warning("Could not prefetch signing keys: {}", exc.message)


async def shutdown() -> None:
    logger.info("Shutting down application")
    app_dependencies: ApplicationDependencies | None = getattr(
        app.state, "app_dependencies", None
    )
    if app_dependencies is not None:
        await app_dependencies.database_service.dispose()


@asynccontextmanager
async def lifespan(app: FastAPI):
    await startup()
    try:
        yield
    finally:
        await shutdown()


_is_production = get_config().app.environment == "production"

app = FastAPI(
    title=get_config().app.title,
    version=__version__,
    lifespan=lifespan,
    docs_url=None if _is_production else "/docs",
    redoc_url=None if _is_production else "/redoc",
    openapi_url=None if _is_production else "/openapi.json",
)

# expose startup for tests
__all__ = ["app", "build_dependencies", "startup", "shutdown"]

app.add_middleware(SecurityHeadersMiddleware)

# --- CORS configuration ---
if _is_production and get_config().app.cors.allow_credentials and (
    "*" in get_config().app.cors.origins
):
    raise RuntimeError(
        "CORS misconfigured: cannot use '*' with allow_credentials=True in production"
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_config().app.cors.origins,
    allow_credentials=get_config().app.cors.allow_credentials,
    allow_methods=get_config().app.cors.allow_methods,
    allow_headers=get_config().app.cors.allow_headers,
)


# --- Error envelope ---
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=exc.headers,
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    logger.info("Rejected invalid request body: {}", exc.errors())
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
        },
    )


# --- Request logging middleware ---
@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

    xff = request.headers.get("x-forwarded-for")
    client_ip = (
        xff.split(",")[0].strip()
        if xff
        else request.client.host
        if request.client
        else "unknown"
    )

    base_ctx = {
        "request_id": request_id,
        "method": request.method,
        "path": request.url.path,
        "client_ip": client_ip,
        "user_agent": request.headers.get("user-agent", "unknown"),
    }

    start = time.perf_counter()

    # Everything that logs within this block inherits base_ctx
    with logger.contextualize(**base_ctx):
        try:
            logger.info("request.start")
            response = await call_next(request)

            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=response.status_code,
                duration_ms=round(duration_ms, 1),
            ).info("request.end")

            response.headers.setdefault("X-Request-ID", request_id)
            return response

        except Exception as exc:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.bind(
                status_code=500,
                duration_ms=round(duration_ms, 1),
                error_type=type(exc).__name__,
            ).exception("request.error")
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "Internal Server Error"},
                headers={"X-Request-ID": request_id},
            )


# --- Router registration ---
app.include_router(auth_router)
app.include_router(posts_router)


# --- Route handlers ---
@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Liveness check; does not touch Keycloak or the database."""
    return {"status": "ok"}


def main() -> None:
    import uvicorn

    config = get_config()
    uvicorn.run(
        app,
        host=config.app.host,
        port=config.app.port,
        access_log=False,  # We handle access logging in middleware
    )


if __name__ == "__main__":
    main()
