"""Configuration models and loaders."""

from .config_data import (
    AppConfig,
    ConfigData,
    CORSConfig,
    DatabaseConfig,
    JWTConfig,
    LoggingConfig,
    OIDCProviderConfig,
)

__all__ = [
    "AppConfig",
    "ConfigData",
    "CORSConfig",
    "DatabaseConfig",
    "JWTConfig",
    "LoggingConfig",
    "OIDCProviderConfig",
]
