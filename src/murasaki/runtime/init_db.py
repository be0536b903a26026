"""Database initialization script."""

import asyncio

from src.murasaki.core.services.database.db_manage import create_all
from src.murasaki.core.services.database.db_session import DbSessionService


async def _init_db() -> None:
    db_service = DbSessionService()
    try:
        await create_all(db_service.engine)
    finally:
        await db_service.dispose()


def init_db() -> None:
    """Create all database tables."""
    asyncio.run(_init_db())


if __name__ == "__main__":
    init_db()
