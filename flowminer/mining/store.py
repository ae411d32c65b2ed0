"""Event source and pattern sink for the miner.

Wraps the async SQLAlchemy session: reads a user's recent events in
timestamp order, lists users with recent activity, and upserts mined
patterns keyed by (user_id, sequence). Driver failures are raised as
``FetchError`` / ``PersistenceError``.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flowminer.core.models import BrowserEvent, MinedPattern
from flowminer.mining.sequence_mining import MinedSequence
from flowminer.sequences.events import ObservedEvent

logger = logging.getLogger(__name__)

DEFAULT_EVENT_LIMIT = 10_000

_STORE_ERRORS = (SQLAlchemyError, ConnectionError, OSError)


# -- Exceptions ---


class MiningStoreError(Exception):
    """Base exception for store failures during mining."""


class FetchError(MiningStoreError):
    """Raised when events or users cannot be read from the store."""


class PersistenceError(MiningStoreError):
    """Raised when a pattern upsert fails.

    Attributes:
        sequence: The step sequence that could not be stored.
    """

    def __init__(self, message: str, sequence: tuple[str, ...] = ()) -> None:
        self.sequence = sequence
        super().__init__(message)


# -- Event source ---


async def fetch_recent_events(
    session: AsyncSession,
    user_id: uuid.UUID,
    since: datetime,
    limit: int = DEFAULT_EVENT_LIMIT,
) -> list[ObservedEvent]:
    """Fetch up to ``limit`` events for a user with ``ts >= since``, oldest first."""
    stmt = (
        select(BrowserEvent)
        .where(BrowserEvent.user_id == user_id, BrowserEvent.ts >= since)
        .order_by(BrowserEvent.ts.asc())
        .limit(limit)
    )
    try:
        result = await session.execute(stmt)
        records = list(result.scalars().all())
    except _STORE_ERRORS as exc:
        raise FetchError(f"Failed to fetch events for user {user_id}: {exc}") from exc
    return [ObservedEvent.from_record(record) for record in records]


async def list_active_users(session: AsyncSession, since: datetime) -> list[uuid.UUID]:
    """Return distinct user ids with at least one event at or after ``since``."""
    stmt = select(BrowserEvent.user_id).where(BrowserEvent.ts >= since).distinct()
    try:
        result = await session.execute(stmt)
        return list(result.scalars().all())
    except _STORE_ERRORS as exc:
        raise FetchError(f"Failed to list active users: {exc}") from exc


# -- Pattern sink ---


async def upsert_pattern(
    session: AsyncSession,
    pattern: MinedSequence,
    now: datetime | None = None,
) -> None:
    """Insert a pattern, or refresh support/confidence/last_seen if it exists.

    Runs inside a SAVEPOINT so a failure leaves the enclosing transaction usable.
    """
    if now is None:
        now = datetime.now(UTC)
    stmt = pg_insert(MinedPattern).values(
        user_id=uuid.UUID(pattern.user_id),
        pattern_type="frequency",
        sequence=list(pattern.sequence),
        support=pattern.support,
        confidence=pattern.confidence,
        frequency=pattern.support,
        first_seen=pattern.first_seen,
        last_seen=pattern.last_seen,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[MinedPattern.user_id, MinedPattern.sequence],
        set_={
            "support": stmt.excluded.support,
            "confidence": stmt.excluded.confidence,
            "frequency": stmt.excluded.frequency,
            "last_seen": stmt.excluded.last_seen,
            "updated_at": now,
        },
    )
    try:
        async with session.begin_nested():
            await session.execute(stmt)
    except _STORE_ERRORS as exc:
        raise PersistenceError(
            f"Failed to upsert pattern {pattern.key} for user {pattern.user_id}: {exc}",
            sequence=pattern.sequence,
        ) from exc


async def store_patterns(
    session: AsyncSession,
    patterns: Iterable[MinedSequence],
    now: datetime | None = None,
) -> int:
    """Upsert each pattern and return how many succeeded.

    A failed upsert is logged and skipped; the remaining patterns are still written.
    """
    stored = 0
    for pattern in patterns:
        try:
            await upsert_pattern(session, pattern, now=now)
        except PersistenceError:
            logger.exception("Error storing pattern %s", pattern.key)
            continue
        stored += 1
    return stored


async def list_user_patterns(
    session: AsyncSession,
    user_id: uuid.UUID,
    limit: int = 50,
) -> list[MinedPattern]:
    """Stored patterns for a user, highest support first."""
    stmt = (
        select(MinedPattern)
        .where(MinedPattern.user_id == user_id)
        .order_by(MinedPattern.support.desc(), MinedPattern.confidence.desc())
        .limit(limit)
    )
    try:
        result = await session.execute(stmt)
        return list(result.scalars().all())
    except _STORE_ERRORS as exc:
        raise FetchError(f"Failed to list patterns for user {user_id}: {exc}") from exc
