"""Health check endpoint."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from flowminer import __version__

router = APIRouter(tags=["health"])
logger = logging.getLogger(__name__)


@router.get("/api/v1/health")
async def health_check(request: Request) -> dict[str, Any]:
    """Report PostgreSQL reachability.

    Returns:
        {"status": "healthy" | "unhealthy", "services": {"postgres": "up" | "down"}, ...}
    """
    services: dict[str, str] = {}

    try:
        db_session_factory = request.app.state.db_session_factory
        async with db_session_factory() as session:
            result = await session.execute(text("SELECT 1"))
            result.scalar()
            services["postgres"] = "up"
    except (SQLAlchemyError, ConnectionError, OSError):
        logger.warning("PostgreSQL health check failed")
        services["postgres"] = "down"

    return {
        "status": "healthy" if services["postgres"] == "up" else "unhealthy",
        "services": services,
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }
