"""
Database session management for PyCatalog.

Provides async database sessions using SQLAlchemy 2.0 async features.
The engine is created on first use so importing the package never opens
a connection or requires a database driver.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from pycatalog.core.config import settings
from pycatalog.core.logging import get_logger
from pycatalog.db.base import Base

logger = get_logger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def create_engine(database_url: str | None = None) -> AsyncEngine:
    """
    Create async database engine.

    Uses connection pooling for PostgreSQL and NullPool for testing.
    """
    database_url = database_url or settings.database_url

    engine_kwargs: dict[str, Any] = {
        "echo": settings.debug and settings.environment == "development",
    }

    if settings.environment == "test":
        engine_kwargs["poolclass"] = NullPool
    elif not database_url.startswith("sqlite"):
        engine_kwargs["pool_size"] = settings.db_pool_size
        engine_kwargs["max_overflow"] = settings.db_max_overflow
        engine_kwargs["pool_timeout"] = settings.db_pool_timeout
        engine_kwargs["pool_pre_ping"] = True

    return create_async_engine(database_url, **engine_kwargs)


def get_engine() -> AsyncEngine:
    """Return the shared engine, creating it on first use."""
    global _engine
    if _engine is None:
        _engine = create_engine()
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the shared session factory."""
    global _session_factory
    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """
    Context manager for database sessions.

    Usage:
        async with get_db_context() as db:
            ...
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(create_tables: bool = True) -> None:
    """
    Initialize database connection.

    Called during application startup to verify database connectivity and
    create the formula and record tables if they are missing.
    """
    import pycatalog.models  # noqa: F401  registers tables on Base.metadata

    try:
        async with get_engine().begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
        logger.info("Database connection established")
    except Exception as e:
        logger.error(f"Failed to connect to database: {e}")
        raise


async def close_db() -> None:
    """
    Close database connections.

    Called during application shutdown.
    """
    global _engine, _session_factory
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _session_factory = None
    logger.info("Database connections closed")
