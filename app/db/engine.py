"""Async SQLAlchemy engine and session scope.

With DATABASE_URL set this builds an asyncpg engine and a session
factory; without it both are None and the service runs on in-memory
repositories (see app/api/providers.py).
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.core.config import SETTINGS

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all table models."""


if SETTINGS.database_url:
    engine = create_async_engine(
        SETTINGS.database_url,
        echo=SETTINGS.is_dev,
        pool_size=5,
        max_overflow=10,
    )
    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )
else:
    engine = None
    async_session_factory = None


class AfterCommit:
    """Side effects held back until the request's transaction has committed.

    Cache invalidation and queue messages describe rows other requests
    must be able to read; run earlier, a concurrent reader can cache the
    pre-commit row again.  Callbacks are dropped when the request fails.
    """

    def __init__(self) -> None:
        self._callbacks: list[Callable[[], Awaitable[object]]] = []

    def add(self, callback: Callable[[], Awaitable[object]]) -> None:
        self._callbacks.append(callback)

    def __len__(self) -> int:
        return len(self._callbacks)

    async def run(self) -> None:
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            await callback()


@asynccontextmanager
async def session_scope() -> AsyncIterator[AsyncSession]:
    """One transaction: commit when the block exits cleanly, roll back otherwise."""
    if async_session_factory is None:
        raise RuntimeError(
            "DATABASE_URL is not configured: cannot create database session"
        )
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def lifespan_db():
    if engine is None:
        logger.info("No DATABASE_URL configured: using in-memory repositories")
        yield
        return

    logger.info("Database engine created: %s", engine.url)
    yield
    await engine.dispose()
    logger.info("Database engine disposed")
