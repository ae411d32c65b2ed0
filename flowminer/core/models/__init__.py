"""SQLAlchemy models for FlowMiner.

Re-exports all models and enums so callers can use
``from flowminer.core.models import X``.
"""

from flowminer.core.models.activity import BrowserEvent, EventType, UserProfile
from flowminer.core.models.pattern import MinedPattern
from flowminer.core.models.template import WorkflowTemplate

__all__ = [
    "BrowserEvent",
    "EventType",
    "MinedPattern",
    "UserProfile",
    "WorkflowTemplate",
]
