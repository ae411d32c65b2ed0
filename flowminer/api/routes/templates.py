"""Workflow template routes.

Endpoints:
- GET /            : Active template catalog
- GET /suggestions : Templates matching a user's recent activity
"""

from __future__ import annotations

import logging
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flowminer.api.deps import get_session
from flowminer.api.schemas.templates import TemplateList, TemplateSuggestionsResponse
from flowminer.core.config import Settings, get_settings
from flowminer.mining.store import FetchError
from flowminer.templates.catalog import load_active_templates
from flowminer.templates.service import suggest_templates_for_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/templates", tags=["templates"])


@router.get("", response_model=TemplateList)
async def list_templates(
    session: AsyncSession = Depends(get_session),
) -> dict[str, Any]:
    """List active catalog templates."""
    try:
        templates = await load_active_templates(session)
    except SQLAlchemyError as exc:
        logger.error("Failed to load template catalog: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Template catalog unavailable",
        ) from exc
    items = [t.to_dict() for t in templates]
    return {"items": items, "total": len(items)}


@router.get("/suggestions", response_model=TemplateSuggestionsResponse)
async def get_template_suggestions(
    user_id: UUID,
    days: int | None = Query(default=None, ge=1),
    limit: int | None = Query(default=None, ge=1),
    session: AsyncSession = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """Suggest templates for a user, with relaxed thresholds for new accounts.

    ``days`` is capped at 30 and ``limit`` at 10 by default settings.
    """
    try:
        result = await suggest_templates_for_user(session, user_id, days=days, limit=limit, settings=settings)
    except FetchError as exc:
        logger.error("Template suggestions failed for user %s: %s", user_id, exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Failed to fetch events",
        ) from exc
    return result.to_dict()
