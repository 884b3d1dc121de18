"""Async database session management for SQLAlchemy 2.0+.

PostgreSQL is reached through asyncpg; SQLite (aiosqlite) is supported for
local development and tests. The engine and session maker are built by the
application factory from its settings and kept on ``app.state``.
"""

from typing import AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from inventory.app.core.config import Settings, settings as default_settings
from inventory.app.core.logging import get_logger

logger = get_logger(__name__)


def build_async_engine(url: str, config: Optional[Settings] = None) -> AsyncEngine:
    """Create an async engine with pool settings suited to the dialect.

    Args:
        url: Database URL
        config: Settings providing pool sizes, defaults to the global settings
    """
    config = config or default_settings

    if "sqlite" in url.lower():
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in url or url.rstrip("/").endswith("sqlite+aiosqlite:"):
            # One shared connection, otherwise every checkout sees an empty DB
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=False, **kwargs)
        logger.info("Created SQLite async engine")
        return engine

    engine = create_async_engine(
        url,
        echo=False,
        pool_size=config.db_pool_size,
        max_overflow=config.db_max_overflow,
        pool_timeout=config.db_pool_timeout,
        pool_recycle=config.db_pool_recycle,
        pool_pre_ping=config.db_pool_pre_ping,
    )
    logger.info(
        f"Created PostgreSQL async engine (pool_size={config.db_pool_size}, "
        f"max_overflow={config.db_max_overflow})"
    )
    return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session maker used for requests and startup seeding."""
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def close_async_engine(engine: AsyncEngine) -> None:
    """Dispose the async engine on application shutdown."""
    try:
        await engine.dispose()
        logger.debug("Async engine disposed successfully")
    except RuntimeError:
        # Event loop mismatch - connection already closed or different loop
        logger.debug("Engine dispose encountered RuntimeError (event loop mismatch)")


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Item mutations commit inside the store, before the cache is touched;
    anything left pending is rolled back if the request fails.
    """
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
