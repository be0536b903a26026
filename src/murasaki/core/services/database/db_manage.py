"""Schema management for the application database."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel


async def create_all(engine: AsyncEngine) -> None:
    """Create all database tables."""
    from src.murasaki.entities.core.user import UserTable  # noqa: F401
    from src.murasaki.entities.service.post import PostTable  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database initialized with tables.")

