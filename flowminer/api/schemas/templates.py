"""Pydantic schemas for template catalog and suggestion routes."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel


class TemplateResponse(BaseModel):
    id: str
    name: str
    description: str
    category: str
    template_pattern: dict[str, Any]
    match_criteria: dict[str, Any]
    confidence_threshold: float
    tags: list[str]


class TemplateList(BaseModel):
    items: list[TemplateResponse]
    total: int


class TemplateMatchResponse(BaseModel):
    template_id: str
    template_name: str
    category: str
    confidence: float
    matched_events: list[str]
    match_reason: str
    support: int


class TemplateSuggestionsResponse(BaseModel):
    suggestions: list[TemplateMatchResponse]
    user_age_in_days: int
    events_analyzed: int
    days_analyzed: int
    is_new_user: bool
    message: str | None = None
