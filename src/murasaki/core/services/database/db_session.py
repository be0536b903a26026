"""Database engine and session factory used across the application."""

from typing import Any

from loguru import logger
from sqlalchemy import make_url, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel.ext.asyncio.session import AsyncSession

from src.murasaki.runtime.config.config_data import ConfigData
from src.murasaki.runtime.context import get_config

# backends with INSERT ... ON CONFLICT ... RETURNING, needed by the user upsert
SUPPORTED_BACKENDS = ("postgresql", "sqlite")


class DbSessionService:
    def __init__(self, config: ConfigData | None = None):
        """Initialize the shared async engine and session factory."""
        main_config = config or get_config()
        db_config = main_config.database

        backend = make_url(db_config.url).get_backend_name()
        if backend not in SUPPORTED_BACKENDS:
            raise ValueError(
                f"Unsupported database backend {backend!r}; "
                f"expected one of {', '.join(SUPPORTED_BACKENDS)}"
            )

        logger.info(
            "Configuring database engine for environment: {}",
            main_config.app.environment,
        )
        engine_kwargs: dict[str, Any] = {
            "echo": db_config.echo,
            "pool_pre_ping": True,
            "connect_args": self._get_connect_args(main_config),
        }
        # a fresh sqlite connection per session never outlives its event loop
        if db_config.is_sqlite:
            engine_kwargs["poolclass"] = NullPool
        else:
            engine_kwargs.update(
                {
                    "pool_size": db_config.pool_size,
                    "max_overflow": db_config.max_overflow,
                    "pool_timeout": db_config.pool_timeout,
                    "pool_recycle": db_config.pool_recycle,
                }
            )

        self._engine: AsyncEngine = create_async_engine(db_config.url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=True,
        )

    @staticmethod
    def _get_connect_args(config: ConfigData) -> dict[str, Any]:
        """Get database-specific connection arguments."""
        connect_args: dict[str, Any] = {}

        if config.database.is_sqlite:
            connect_args.update({"check_same_thread": False, "timeout": 20})
            if config.app.environment == "production":
                logger.warning(
                    "SQLite is not recommended for production use. "
                    "Consider PostgreSQL for better performance and reliability."
                )
        elif "asyncpg" in config.database.url:
            connect_args.update(
                {
                    "server_settings": {
                        "application_name": f"murasaki_{config.app.environment}"
                    },
                    "timeout": 30,
                }
            )

        return connect_args

    @property
    def engine(self) -> AsyncEngine:
        return self._engine

    def get_session(self) -> AsyncSession:
        """Return a new async session bound to the shared engine."""
        return self._session_factory()

    async def health_check(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.error("Database health check failed: {}", e)
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()
