"""Seed script: loads the built-in workflow templates into pattern_templates.

Templates already present (matched by their stable id) are left untouched,
so the script is safe to re-run.

Usage:
    python -m scripts.seed_templates
    python -m scripts.seed_templates --database-url postgresql+asyncpg://...

Requires: running PostgreSQL with the pattern_templates table.
"""

from __future__ import annotations

import argparse
import asyncio
import logging

from flowminer.core.config import get_settings
from flowminer.core.database import create_engine
from flowminer.templates.catalog import seed_builtin_templates

logging.basicConfig(level=logging.INFO, format="%(levelname)s  %(message)s")
logger = logging.getLogger(__name__)


async def main(database_url: str | None = None) -> None:
    settings = get_settings()
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})
    engine, session_factory = create_engine(settings)

    try:
        async with session_factory() as session:
            added = await seed_builtin_templates(session)
            await session.commit()
    finally:
        await engine.dispose()

    if added:
        logger.info("Added %d templates", added)
    else:
        logger.info("Template catalog already seeded; nothing to do")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed FlowMiner built-in workflow templates")
    parser.add_argument("--database-url", default=None, help="Override DATABASE_URL")
    args = parser.parse_args()
    asyncio.run(main(database_url=args.database_url))
