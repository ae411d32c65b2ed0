"""Mined pattern model: recurring step sequences per user."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import ARRAY, DateTime, Float, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from flowminer.core.database import Base


class MinedPattern(Base):
    """A frequent ``kind:domain`` step sequence mined from one user's history.

    Upserted by every mining pass, keyed by (user_id, sequence). Confidence
    is stored unclamped: support / run count can exceed 1 when one run
    yields the same subsequence several times.
    """

    __tablename__ = "patterns"
    __table_args__ = (
        UniqueConstraint("user_id", "sequence", name="uq_patterns_user_sequence"),
        Index("ix_patterns_user_id", "user_id"),
        Index("ix_patterns_support", "support"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    pattern_type: Mapped[str] = mapped_column(String(32), nullable=False, default="frequency")
    sequence: Mapped[list[str]] = mapped_column(ARRAY(String), nullable=False)
    support: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    confidence: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    frequency: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    first_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<MinedPattern(id={self.id}, user_id={self.user_id}, support={self.support})>"
