"""CLI entry point for the pattern mining batch job.

Usage::

    python -m flowminer.mining.cli [--user-id <UUID>] [--log-level INFO]

Without ``--user-id`` every user with activity in the lookback window is
mined. An external scheduler (cron, Kubernetes CronJob, ...) decides when
this runs.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
import uuid

from flowminer.core.config import get_settings
from flowminer.core.database import create_engine
from flowminer.mining.miner import BatchMiningResult, mine_all_users, mine_patterns_for_user
from flowminer.mining.sequence_mining import MinerConfig
from flowminer.mining.store import FetchError

logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="flowminer-mine",
        description="Mine recurring browsing patterns from the last week of activity.",
    )
    parser.add_argument(
        "--user-id",
        type=uuid.UUID,
        default=None,
        help="Mine a single user instead of every active user.",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Users mined in parallel (default: MINING_BATCH_CONCURRENCY).",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level.",
    )
    return parser.parse_args(argv)


def _print_summary(result: BatchMiningResult) -> None:
    """Print a human-readable batch summary to stdout."""
    print(f"\nPattern mining run at {result.run_at}")
    print("-" * 60)
    print(f"  Users processed:   {result.users_processed}")
    print(f"  Patterns stored:   {result.patterns_stored}")
    print(f"  Users failed:      {result.users_failed}")
    print(f"  Duration:          {result.duration_ms:.1f}ms")
    failures = [o for o in result.outcomes if not o.succeeded]
    if failures:
        print(f"\n  Failures ({len(failures)}):")
        for outcome in failures:
            print(f"    - {outcome.user_id}: {outcome.error}")
    print()


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()
    config = MinerConfig.from_settings(settings)
    engine, session_factory = create_engine(settings)
    try:
        if args.user_id is not None:
            async with session_factory() as session:
                try:
                    stored = await mine_patterns_for_user(session, args.user_id, config=config)
                except FetchError:
                    logger.exception("Could not fetch events for user %s", args.user_id)
                    return 1
                await session.commit()
            print(f"Stored {stored} patterns for user {args.user_id}")
            return 0

        concurrency = args.concurrency or settings.mining_batch_concurrency
        try:
            result = await mine_all_users(session_factory, config=config, concurrency=concurrency)
        except FetchError:
            logger.exception("Could not list active users")
            return 1
        _print_summary(result)
        return 1 if result.users_failed > 0 else 0
    finally:
        await engine.dispose()


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    args = _parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    exit_code = asyncio.run(_run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
