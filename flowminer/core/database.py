"""Async PostgreSQL access for FlowMiner.

One engine per process: the API opens it in its lifespan, while the mining
CLI and the seed script open and dispose of their own. Pool sizing comes
from ``Settings`` (``db_pool_size``, ``db_max_overflow``,
``db_pool_recycle_seconds``).
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from flowminer.core.config import Settings


class Base(DeclarativeBase):
    """Declarative base for the events, profiles, patterns and template tables."""


def create_engine(settings: Settings) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Build the asyncpg engine and a session factory bound to it.

    Sessions keep their objects loaded after commit so mined patterns and
    catalog rows can still be read once the transaction ends.
    """
    engine = create_async_engine(
        settings.database_url or "",
        echo=settings.debug,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle_seconds,
        pool_pre_ping=True,
    )
    session_factory = async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
    return engine, session_factory
