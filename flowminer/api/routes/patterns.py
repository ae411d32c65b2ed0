"""Pattern mining routes.

Endpoints:
- POST /mine/{user_id}: Run one mining pass for a user
- POST /mine          : Run the all-users batch
- GET  ""             : List stored patterns for a user
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from flowminer.api.deps import get_session
from flowminer.api.schemas.patterns import (
    BatchMiningResponse,
    PatternList,
    UserMiningResponse,
)
from flowminer.core.config import Settings, get_settings
from flowminer.core.models import MinedPattern
from flowminer.mining.miner import mine_all_users, mine_patterns_for_user
from flowminer.mining.sequence_mining import MinerConfig
from flowminer.mining.store import FetchError, list_user_patterns

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/patterns", tags=["patterns"])


def _pattern_to_response(p: MinedPattern) -> dict[str, Any]:
    return {
        "id": str(p.id),
        "user_id": str(p.user_id),
        "pattern_type": p.pattern_type,
        "sequence": list(p.sequence),
        "support": p.support,
        "confidence": p.confidence,
        "first_seen": p.first_seen.isoformat() if p.first_seen else None,
        "last_seen": p.last_seen.isoformat() if p.last_seen else None,
    }


@router.post("/mine/{user_id}", response_model=UserMiningResponse)
async def mine_user_patterns(
    user_id: UUID,
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Mine and store patterns from the user's last week of activity."""
    try:
        stored = await mine_patterns_for_user(session, user_id, config=MinerConfig.from_settings(settings))
    except FetchError as exc:
        logger.error("Pattern mining failed for user %s: %s", user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Event store unavailable",
        ) from exc
    await session.commit()
    return {"user_id": str(user_id), "patterns_stored": stored}


@router.post("/mine", response_model=BatchMiningResponse)
async def mine_patterns_for_all_users(
    request: Request,
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Mine every user with activity in the lookback window."""
    try:
        result = await mine_all_users(
            request.app.state.db_session_factory,
            config=MinerConfig.from_settings(settings),
            concurrency=settings.mining_batch_concurrency,
        )
    except FetchError as exc:
        logger.error("Pattern mining batch could not list users: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch users",
        ) from exc
    return result.to_dict()


@router.get("", response_model=PatternList)
async def list_patterns(
    user_id: UUID,
    limit: int = Query(default=50, ge=1, le=500),
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """List a user's stored patterns, highest support first."""
    try:
        patterns = await list_user_patterns(session, user_id, limit=limit)
    except FetchError as exc:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Pattern store unavailable",
        ) from exc
    items = [_pattern_to_response(p) for p in patterns]
    return {"items": items, "total": len(items)}
