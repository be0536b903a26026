"""Pydantic models for parsing the config.yaml configuration file.

This module contains Pydantic models that correspond to the structure of config.yaml.
These models handle validation and type conversion of the YAML configuration data.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, computed_field


class CORSConfig(BaseModel):
    """CORS configuration for the application."""

    origins: list[str] = Field(default=["*"])
    allow_credentials: bool = False
    allow_methods: list[str] = Field(default=["GET", "POST", "OPTIONS"])
    allow_headers: list[str] = Field(default=["*"])


class OIDCProviderConfig(BaseModel):
    """Keycloak realm and client this API trusts and logs in against."""

    issuer: str = Field(
        default="http://localhost:8080/realms/murasaki-poc",
        description="Trusted issuer URL; compared against the token's iss claim",
    )
    realm: str = Field(default="murasaki-poc", description="Keycloak realm name")
    client_id: str = Field(
        default="murasaki-backend", description="Client ID for the password grant"
    )
    client_secret: str | None = Field(
        default=None,
        description="Client secret; only sent when set (confidential clients)",
    )
    token_endpoint_override: str | None = Field(
        default=None, description="Explicit token endpoint, bypassing derivation"
    )
    jwks_uri_override: str | None = Field(
        default=None, description="Explicit JWKS endpoint, bypassing derivation"
    )
    timeout_seconds: float = Field(
        default=5.0, description="Timeout for token and JWKS requests"
    )

    @computed_field
    @property
    def server_url(self) -> str:
        """Keycloak base URL, i.e. the issuer without its /realms/... suffix."""
        return self.issuer.split("/realms")[0].rstrip("/")

    @computed_field
    @property
    def token_endpoint(self) -> str:
        if self.token_endpoint_override:
            return self.token_endpoint_override
        return (
            f"{self.server_url}/realms/{self.realm}/protocol/openid-connect/token"
        )

    @computed_field
    @property
    def jwks_uri(self) -> str:
        if self.jwks_uri_override:
            return self.jwks_uri_override
        return f"{self.issuer.rstrip('/')}/protocol/openid-connect/certs"


class JWTConfig(BaseModel):
    """JWT validation configuration."""

    allowed_algorithms: list[str] = Field(
        default_factory=lambda: ["RS256", "RS384", "RS512", "ES256", "ES384", "PS256"],
        description="JWT algorithms allowed for token validation",
    )
    audiences: list[str] = Field(
        default_factory=list,
        description="Accepted audiences (empty = skip audience check)",
    )
    clock_skew: int = Field(default=0, description="Clock skew tolerance in seconds")
    jwks_cache_ttl_seconds: int = Field(
        default=3600, description="How long a fetched key set stays cached"
    )
    jwks_refresh_cooldown_seconds: float = Field(
        default=0.0,
        description="Minimum delay between forced key set refreshes on kid miss",
    )


class LoggingConfig(BaseModel):
    """Logging configuration model."""

    level: str = Field(default="INFO", description="Logging level")
    format: Literal["json", "plain"] = Field(default="json", description="Log format")
    file: str | None = Field(default=None, description="Log file path")
    max_size_mb: int = Field(default=10, description="Maximum log file size in MB")
    backup_count: int = Field(
        default=5, description="Number of backup log files to keep"
    )


class DatabaseConfig(BaseModel):
    """Database configuration model."""

    url: str = Field(
        default="sqlite+aiosqlite:///./murasaki.db",
        description="Async SQLAlchemy database URL",
    )
    pool_size: int = Field(default=20, description="Connection pool size")
    max_overflow: int = Field(default=10, description="Maximum pool overflow")
    pool_timeout: int = Field(default=30, description="Pool timeout in seconds")
    pool_recycle: int = Field(default=1800, description="Pool recycle time in seconds")
    echo: bool = Field(default=False, description="Echo SQL statements")

    @computed_field
    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class AppConfig(BaseModel):
    """Application configuration model."""

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )
    title: str = Field(default="Keycloak POC API", description="OpenAPI title")
    host: str = Field(default="0.0.0.0", description="Application host")
    port: int = Field(default=5556, description="Application port")
    cors: CORSConfig = Field(
        default_factory=CORSConfig, description="CORS configuration"
    )


class ConfigData(BaseModel):
    """Root configuration model that matches the config.yaml structure."""

    oidc: OIDCProviderConfig = Field(
        default_factory=OIDCProviderConfig, description="Identity provider configuration"
    )
    jwt: JWTConfig = Field(
        default_factory=JWTConfig, description="JWT validation configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )
    database: DatabaseConfig = Field(
        default_factory=DatabaseConfig, description="Database configuration"
    )
    app: AppConfig = Field(
        default_factory=AppConfig, description="Application configuration"
    )
