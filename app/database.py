"""
Kindred — Async Database Engine & Session Factory

The engine is built lazily from ``DATABASE_URL`` on first use so that the
pure scoring / transformation modules (and their tests) can import the ORM
models without a reachable database.  ``get_db`` is the async generator used
for FastAPI dependency injection.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import get_settings

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------ #
# Declarative base for all ORM models
# ------------------------------------------------------------------ #

class Base(DeclarativeBase):
    """Shared declarative base for the ``profiles``, ``support_requests``
    and ``peer_support_chats`` tables."""
    pass


# ------------------------------------------------------------------ #
# Engine construction
# ------------------------------------------------------------------ #

def _normalise_url(url: str) -> str:
    """Upgrade a plain ``postgresql://`` (or Heroku-style ``postgres://``)
    scheme to the asyncpg dialect."""
    for prefix in ("postgresql://", "postgres://"):
        if url.startswith(prefix):
            return url.replace(prefix, "postgresql+asyncpg://", 1)
    return url


@lru_cache(maxsize=1)
def get_engine() -> AsyncEngine:
    settings = get_settings()

    engine = create_async_engine(
        _normalise_url(settings.DATABASE_URL),
        echo=(settings.LOG_LEVEL == "DEBUG"),
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_timeout=30,
        pool_recycle=1800,
        pool_pre_ping=True,
    )

    logger.info("Database engine created from DATABASE_URL")
    return engine


@lru_cache(maxsize=1)
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=get_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
    )


# ------------------------------------------------------------------ #
# FastAPI dependency
# ------------------------------------------------------------------ #

async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Yield an ``AsyncSession``, committing on success and rolling back on
    error.

    Usage in a FastAPI route::

        @router.get("/profile")
        async def read_profile(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with get_session_factory()() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
