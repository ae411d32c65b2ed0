"""Activity models: captured browser events and user profiles.

Both tables are owned by the ingestion pipeline; this package only reads
them. Only the fields the miner and matcher consume are mapped.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, Enum, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from flowminer.core.database import Base


class EventType(enum.StrEnum):
    """Kinds of browser events captured by the extension."""

    CLICK = "click"
    SEARCH = "search"
    FORM = "form"
    NAV = "nav"
    FOCUS = "focus"
    BLUR = "blur"
    IDLE = "idle"
    ERROR = "error"
    FRICTION = "friction"


class BrowserEvent(Base):
    """A single observed user action.

    Events are immutable once written by the ingestion pipeline. They are
    read in timestamp order per user.
    """

    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_user_id", "user_id"),
        Index("ix_events_user_ts", "user_id", "ts"),
        Index("ix_events_type", "type"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)
    device_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    ts: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    type: Mapped[EventType] = mapped_column(
        Enum(EventType, values_callable=lambda e: [x.value for x in e], native_enum=False), nullable=False
    )
    url: Mapped[str | None] = mapped_column(Text, nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    dom_path: Mapped[str | None] = mapped_column(Text, nullable=True)
    text: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict | None] = mapped_column(JSON, nullable=True, default=dict)
    dwell_ms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<BrowserEvent(id={self.id}, type={self.type}, url='{self.url}')>"


class UserProfile(Base):
    """A user account. Only the creation time is used (account age for cold start)."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<UserProfile(id={self.id}, created_at={self.created_at})>"
