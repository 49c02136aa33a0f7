"""Async engine and session management for the local SQLite database."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from tripsplit.config import settings
from tripsplit.db.models import Base

logger = logging.getLogger(__name__)


def make_engine(database_url: str | None = None) -> AsyncEngine:
    """Create an async engine for *database_url* (default: settings)."""
    return create_async_engine(database_url or settings.database_url)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False)


engine = make_engine()
session_factory = make_session_factory(engine)


async def init_db(target: AsyncEngine | None = None) -> None:
    """Create missing tables.  Safe to call on every startup."""
    target = target or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.debug("Local database schema ready (%s)", target.url)


@asynccontextmanager
async def get_session(
    factory: async_sessionmaker[AsyncSession] | None = None,
) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error."""
    async with (factory or session_factory)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
