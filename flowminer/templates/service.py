"""Template suggestions for a user.

Loads the user's recent events, account age and the active catalog,
then runs standard matching for established accounts or the cold-start
variant for accounts younger than a week.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from flowminer.core.config import Settings, get_settings
from flowminer.core.models import UserProfile
from flowminer.mining.store import FetchError, fetch_recent_events
from flowminer.templates.catalog import builtin_templates, load_active_templates
from flowminer.templates.matcher import (
    MatchingConfig,
    get_template_suggestions_for_new_users,
    match_templates,
)
from flowminer.templates.models import TemplateMatch

logger = logging.getLogger(__name__)

# Account age assumed when the profile is missing: treated as established.
UNKNOWN_ACCOUNT_AGE_DAYS = 999


@dataclass
class TemplateSuggestions:
    """Suggestions plus the context they were computed from."""

    suggestions: list[TemplateMatch] = field(default_factory=list)
    user_age_in_days: int = UNKNOWN_ACCOUNT_AGE_DAYS
    events_analyzed: int = 0
    days_analyzed: int = 7
    is_new_user: bool = False
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "user_age_in_days": self.user_age_in_days,
            "events_analyzed": self.events_analyzed,
            "days_analyzed": self.days_analyzed,
            "is_new_user": self.is_new_user,
            "message": self.message,
        }


async def get_account_age_days(
    session: AsyncSession,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> int:
    """Whole days since the user's profile was created."""
    if now is None:
        now = datetime.now(UTC)
    try:
        result = await session.execute(select(UserProfile.created_at).where(UserProfile.id == user_id))
        created_at = result.scalar_one_or_none()
    except SQLAlchemyError as exc:
        raise FetchError(f"Failed to read profile for user {user_id}: {exc}") from exc
    if created_at is None:
        return UNKNOWN_ACCOUNT_AGE_DAYS
    return max((now - created_at) // timedelta(days=1), 0)


async def suggest_templates_for_user(
    session: AsyncSession,
    user_id: uuid.UUID,
    days: int | None = None,
    limit: int | None = None,
    settings: Settings | None = None,
    now: datetime | None = None,
) -> TemplateSuggestions:
    """Suggest catalog templates that fit a user's recent activity.

    Args:
        session: Database session.
        user_id: User to suggest for.
        days: History window, capped at ``suggestion_max_days``.
        limit: Maximum suggestions, capped at ``suggestion_max_limit``.
        settings: Overrides the cached application settings.
        now: Override for current time (useful for testing).

    Raises:
        FetchError: Events or the profile could not be read.
    """
    if settings is None:
        settings = get_settings()
    if now is None:
        now = datetime.now(UTC)
    days = min(max(days or settings.suggestion_default_days, 1), settings.suggestion_max_days)
    limit = min(max(limit or settings.suggestion_default_limit, 1), settings.suggestion_max_limit)

    age_days = await get_account_age_days(session, user_id, now=now)
    is_new_user = age_days <= settings.matching_new_user_days

    events = await fetch_recent_events(
        session, user_id, now - timedelta(days=days), limit=settings.suggestion_event_limit
    )
    if not events:
        return TemplateSuggestions(
            user_age_in_days=age_days,
            days_analyzed=days,
            is_new_user=is_new_user,
            message="No activity yet. Start browsing to get automation suggestions!",
        )

    try:
        templates = await load_active_templates(session)
    except SQLAlchemyError as exc:
        raise FetchError(f"Failed to load template catalog: {exc}") from exc
    if not templates:
        logger.info("Template catalog is empty; using built-in templates")
        templates = builtin_templates()

    config = MatchingConfig.from_settings(settings)
    if is_new_user:
        suggestions = get_template_suggestions_for_new_users(events, templates, age_days, config)
    else:
        suggestions = match_templates(events, templates, config)
    suggestions = suggestions[:limit]

    logger.info(
        "Template suggestions: user %s (%d days old), %d suggestions from %d events",
        user_id, age_days, len(suggestions), len(events),
    )
    return TemplateSuggestions(
        suggestions=suggestions,
        user_age_in_days=age_days,
        events_analyzed=len(events),
        days_analyzed=days,
        is_new_user=is_new_user,
    )
