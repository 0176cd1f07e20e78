"""
Engine and session wiring.

The engine is built lazily from settings on first use, so importing this module
(or anything that depends on it) never opens a connection or requires a database
driver to be configured.
"""

import logging
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from catalog.config import get_settings
from catalog.database.base import Base

logger = logging.getLogger(__name__)


@lru_cache()
def get_engine() -> AsyncEngine:
    settings = get_settings()
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.SQLALCHEMY_ECHO,
        pool_pre_ping=True,  # connection health checks
    )


def make_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    Build a session factory bound to `engine`.

    - expire_on_commit=False: entities stay readable after commit (response serialization
      happens after the service commits).
    - autoflush=False: the binder and validator query the database while an entity is
      half-populated; nothing may reach storage until the repository flushes explicitly.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache()
def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    return make_sessionmaker(get_engine())


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency. Yields a session and closes it after the request.

    Usage:
        async def endpoint(db: AsyncSession = Depends(get_async_session)):
            await db.execute(...)
    """
    async with get_sessionmaker()() as session:
        yield session


async def init_models(engine: AsyncEngine | None = None) -> None:
    """Create all tables registered on Base.metadata (idempotent)."""
    # registers the mapped classes on Base.metadata
    import catalog.models  # noqa: F401

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db.init_models.done", extra={"tables": sorted(Base.metadata.tables)})


async def dispose_engine() -> None:
    if get_engine.cache_info().currsize:
        await get_engine().dispose()
        get_engine.cache_clear()
        get_sessionmaker.cache_clear()
