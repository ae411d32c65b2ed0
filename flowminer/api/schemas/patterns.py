"""Pydantic schemas for pattern mining routes."""

from __future__ import annotations

from pydantic import BaseModel


class PatternResponse(BaseModel):
    id: str
    user_id: str
    pattern_type: str
    sequence: list[str]
    support: int
    confidence: float
    first_seen: str | None = None
    last_seen: str | None = None


class PatternList(BaseModel):
    items: list[PatternResponse]
    total: int


class UserMiningResponse(BaseModel):
    user_id: str
    patterns_stored: int


class UserMiningOutcomeResponse(BaseModel):
    user_id: str
    patterns_stored: int
    error: str | None = None


class BatchMiningResponse(BaseModel):
    users_processed: int
    patterns_stored: int
    users_failed: int
    outcomes: list[UserMiningOutcomeResponse]
    run_at: str
    duration_ms: float
