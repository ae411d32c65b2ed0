"""Per-user and all-users pattern mining entry points.

``mine_patterns_for_user`` runs one mining pass: fetch the last week of
events, segment into context runs, count subsequences, upsert the
frequent ones. ``mine_all_users`` is the batch entry point an external
scheduler invokes; a failure for one user never aborts the others.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from flowminer.mining.sequence_mining import MinerConfig, mine_sequences
from flowminer.mining.store import (
    FetchError,
    MiningStoreError,
    fetch_recent_events,
    list_active_users,
    store_patterns,
)
from flowminer.sequences.context import drop_ignored_domains, segment_context_runs

logger = logging.getLogger(__name__)


@dataclass
class UserMiningOutcome:
    """Per-user entry in the batch log."""

    user_id: str
    patterns_stored: int = 0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class BatchMiningResult:
    """Summary of one ``mine_all_users`` run."""

    users_processed: int = 0
    patterns_stored: int = 0
    users_failed: int = 0
    outcomes: list[UserMiningOutcome] = field(default_factory=list)
    run_at: str = ""
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def mine_patterns_for_user(
    session: AsyncSession,
    user_id: uuid.UUID,
    config: MinerConfig | None = None,
    now: datetime | None = None,
) -> int:
    """Mine and store patterns for one user.

    Args:
        session: Database session; the caller owns commit/rollback.
        user_id: User to mine.
        config: Mining policy (defaults to ``MinerConfig()``).
        now: Override for current time (useful for testing). Defaults to UTC now.

    Returns:
        Number of patterns successfully upserted.

    Raises:
        FetchError: The store was unreachable or the fetch timed out.
    """
    if config is None:
        config = MinerConfig()
    if now is None:
        now = datetime.now(UTC)
    since = now - timedelta(days=config.lookback_days)

    logger.info("Mining patterns for user %s", user_id)
    try:
        events = await asyncio.wait_for(
            fetch_recent_events(session, user_id, since, limit=config.max_events),
            timeout=config.fetch_timeout_seconds,
        )
    except TimeoutError as exc:
        raise FetchError(
            f"Timed out after {config.fetch_timeout_seconds}s fetching events for user {user_id}"
        ) from exc

    events = drop_ignored_domains(events, config.ignored_domains)
    if len(events) < config.min_run_length:
        logger.info("Not enough events for user %s (%d)", user_id, len(events))
        return 0

    runs = list(segment_context_runs(events, min_length=config.min_run_length))
    logger.info("Found %d context runs for user %s", len(runs), user_id)

    result = mine_sequences(
        runs,
        str(user_id),
        min_support=config.min_support,
        min_length=config.min_length,
        max_length=config.max_length,
    )
    stored = await store_patterns(session, result.patterns, now=now)
    logger.info(
        "Stored %d of %d patterns for user %s", stored, len(result.patterns), user_id
    )
    return stored


async def mine_all_users(
    session_factory: Callable[[], Any],
    config: MinerConfig | None = None,
    now: datetime | None = None,
    concurrency: int = 1,
) -> BatchMiningResult:
    """Mine patterns for every user with activity in the lookback window.

    Each user is mined in its own session and committed independently.
    With ``concurrency > 1`` users are processed in parallel; per-user
    state is local so no locking is needed.

    Raises:
        FetchError: The list of active users could not be read.
    """
    if config is None:
        config = MinerConfig()
    if now is None:
        now = datetime.now(UTC)
    since = now - timedelta(days=config.lookback_days)
    start = time.monotonic()

    async with session_factory() as session:
        user_ids = await list_active_users(session, since)
    logger.info("Mining patterns for %d users", len(user_ids))

    semaphore = asyncio.Semaphore(max(concurrency, 1))

    async def _bounded(user_id: uuid.UUID) -> UserMiningOutcome:
        async with semaphore:
            return await _mine_one_user(session_factory, user_id, config, now)

    outcomes = list(await asyncio.gather(*(_bounded(user_id) for user_id in user_ids)))

    elapsed_ms = (time.monotonic() - start) * 1000
    result = BatchMiningResult(
        users_processed=len(user_ids),
        patterns_stored=sum(o.patterns_stored for o in outcomes),
        users_failed=sum(1 for o in outcomes if not o.succeeded),
        outcomes=outcomes,
        run_at=now.isoformat(),
        duration_ms=round(elapsed_ms, 2),
    )
    logger.info(
        "Pattern mining complete: %d users, %d patterns stored, %d failures in %.1fms",
        result.users_processed,
        result.patterns_stored,
        result.users_failed,
        elapsed_ms,
    )
    return result


async def _mine_one_user(
    session_factory: Callable[[], Any],
    user_id: uuid.UUID,
    config: MinerConfig,
    now: datetime,
) -> UserMiningOutcome:
    try:
        async with session_factory() as session:
            stored = await mine_patterns_for_user(session, user_id, config=config, now=now)
            await session.commit()
    except MiningStoreError as exc:
        logger.error("Mining failed for user %s: %s", user_id, exc)
        return UserMiningOutcome(user_id=str(user_id), error=str(exc))
    except Exception as exc:  # Intentionally broad: one user must not abort the batch
        logger.exception("Unexpected error mining patterns for user %s", user_id)
        return UserMiningOutcome(user_id=str(user_id), error=f"{type(exc).__name__}: {exc}")
    return UserMiningOutcome(user_id=str(user_id), patterns_stored=stored)
