"""Async engine and sessions for the player mirror.

Models live in ``playmaker.db.sports``. Routes take a session through the
``get_db`` dependency; the seed CLI opens one with ``get_async_session``.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncGenerator, AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from ..config import settings
from ..logging import logger
from .base import Base

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine


class _Database:
    """Holds the engine and session factory, both built on first use."""

    def __init__(self) -> None:
        self.engine: "AsyncEngine | None" = None
        self.sessions: async_sessionmaker[AsyncSession] | None = None

    def get_engine(self) -> "AsyncEngine":
        if self.engine is None:
            self.engine = create_async_engine(
                settings.database_url,
                echo=settings.sql_echo,
                pool_size=settings.db_pool_size,
                pool_recycle=settings.db_pool_recycle_seconds,
                pool_pre_ping=True,
            )
        return self.engine

    def get_sessions(self) -> async_sessionmaker[AsyncSession]:
        if self.sessions is None:
            self.sessions = async_sessionmaker(
                self.get_engine(), expire_on_commit=False, autoflush=False
            )
        return self.sessions

    async def dispose(self) -> None:
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("db_engine_disposed")
        self.engine = None
        self.sessions = None


_database = _Database()


@asynccontextmanager
async def _session_scope() -> AsyncIterator[AsyncSession]:
    async with _database.get_sessions()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency; commits on success and rolls back on error."""
    async with _session_scope() as session:
        yield session


def get_async_session():
    return _session_scope()


async def init_db() -> None:
    """Create missing tables. Local development only."""
    if settings.environment in {"production", "staging"}:
        raise RuntimeError("init_db is disabled in production/staging.")
    async with _database.get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("db_tables_created")


async def close_db() -> None:
    await _database.dispose()


__all__ = ["Base", "AsyncSession", "get_db", "get_async_session", "init_db", "close_db"]
