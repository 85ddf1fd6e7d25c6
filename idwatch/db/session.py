"""
Database Session Management
===========================

Async SQLAlchemy session factory and dependency injection.

Author: idwatch Team
Version: 1.0.0
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from idwatch.config import settings
from idwatch.logging import get_logger

logger = get_logger(__name__)

engine = create_async_engine(
    settings.database_dsn,
    echo=settings.debug,
    pool_pre_ping=True,
)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides a database session.

    Commits when the request handler returns, rolls back on error.

    Yields:
        AsyncSession: Database session that auto-closes
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Verify the database is reachable. Called during application startup."""
    logger.info("Initializing database connection...")

    async with engine.begin() as conn:
        await conn.run_sync(lambda _: None)

    logger.info("Database connection established")


async def close_db() -> None:
    """Dispose the connection pool. Called during application shutdown."""
    logger.info("Closing database connections...")
    await engine.dispose()
    logger.info("Database connections closed")


__all__ = [
    "engine",
    "async_session_factory",
    "get_db",
    "init_db",
    "close_db",
    "AsyncSession",
]
