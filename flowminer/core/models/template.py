"""Workflow template model: the hand-authored catalog matched against activity."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import ARRAY, Boolean, DateTime, Float, Index, String, Text, func
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from flowminer.core.database import Base


class WorkflowTemplate(Base):
    """A catalog template.

    ``template_pattern`` holds ``{"sequence": [step, ...]}`` where each step
    is a predicate bundle; ``match_criteria`` holds min_support,
    min_confidence and fuzzy_match.
    """

    __tablename__ = "pattern_templates"
    __table_args__ = (
        Index("ix_pattern_templates_category", "category"),
        Index("ix_pattern_templates_active", "is_active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True)
    template_pattern: Mapped[dict] = mapped_column(JSON, nullable=False)
    match_criteria: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    confidence_threshold: Mapped[float] = mapped_column(Float, nullable=False, default=0.7)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(String), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return f"<WorkflowTemplate(id={self.id}, name='{self.name}', category={self.category})>"
