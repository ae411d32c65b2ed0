"""Template value types: step matchers, match criteria, templates and match results."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

# Keys understood by StepMatcher.from_dict; anything else is kept as an inert extra.
_STEP_KEYS = {
    "type",
    "domain_contains",
    "url_contains",
    "text_contains",
    "tagName",
    "tag_name",
    "dom_path",
    "min_dwell_ms",
}


def _alternatives(value: Any) -> tuple[str, ...]:
    """Normalize a substring predicate to a tuple of non-empty alternatives."""
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,) if value else ()
    if isinstance(value, Iterable):
        return tuple(str(v) for v in value if v)
    return (str(value),)


@dataclass(frozen=True)
class StepMatcher:
    """A predicate bundle for one template step.

    Every defined predicate must hold for an event to pass. Substring
    predicates hold when any of their alternatives is found. A step with
    no predicates matches every event.
    """

    type: str | None = None
    domain_contains: tuple[str, ...] = ()
    url_contains: tuple[str, ...] = ()
    text_contains: tuple[str, ...] = ()
    tag_name: str | None = None
    dom_path: str | None = None
    min_dwell_ms: float | None = None
    extra: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StepMatcher:
        min_dwell = data.get("min_dwell_ms")
        return cls(
            type=data.get("type") or None,
            domain_contains=_alternatives(data.get("domain_contains")),
            url_contains=_alternatives(data.get("url_contains")),
            text_contains=_alternatives(data.get("text_contains")),
            tag_name=data.get("tagName") or data.get("tag_name") or None,
            dom_path=data.get("dom_path") or None,
            min_dwell_ms=float(min_dwell) if min_dwell else None,
            extra={k: v for k, v in data.items() if k not in _STEP_KEYS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        if self.type:
            data["type"] = self.type
        for name in ("domain_contains", "url_contains", "text_contains"):
            values = getattr(self, name)
            if values:
                data[name] = values[0] if len(values) == 1 else list(values)
        if self.tag_name:
            data["tagName"] = self.tag_name
        if self.dom_path:
            data["dom_path"] = self.dom_path
        if self.min_dwell_ms:
            data["min_dwell_ms"] = self.min_dwell_ms
        return data


@dataclass(frozen=True)
class MatchCriteria:
    """Per-template matching rules."""

    min_support: int | None = None
    min_confidence: float | None = None
    fuzzy_match: bool = False
    temporal_pattern: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> MatchCriteria:
        data = data or {}
        min_support = data.get("min_support")
        min_confidence = data.get("min_confidence")
        return cls(
            min_support=int(min_support) if min_support is not None else None,
            min_confidence=float(min_confidence) if min_confidence is not None else None,
            fuzzy_match=bool(data.get("fuzzy_match", False)),
            temporal_pattern=data.get("temporal_pattern"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"fuzzy_match": self.fuzzy_match}
        if self.min_support is not None:
            data["min_support"] = self.min_support
        if self.min_confidence is not None:
            data["min_confidence"] = self.min_confidence
        if self.temporal_pattern is not None:
            data["temporal_pattern"] = self.temporal_pattern
        return data


@dataclass(frozen=True)
class Template:
    """A catalog workflow template."""

    id: str
    name: str
    steps: tuple[StepMatcher, ...]
    match_criteria: MatchCriteria = field(default_factory=MatchCriteria)
    confidence_threshold: float = 0.7
    description: str = ""
    category: str = ""
    tags: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Template:
        """Build from a catalog mapping.

        Steps are read from ``template_pattern.sequence`` (the stored shape)
        or from a flat ``steps`` list.
        """
        pattern = data.get("template_pattern") or {}
        raw_steps = pattern.get("sequence") if isinstance(pattern, Mapping) else None
        if raw_steps is None:
            raw_steps = data.get("steps") or []
        threshold = data.get("confidence_threshold")
        return cls(
            id=str(data["id"]),
            name=data["name"],
            steps=tuple(StepMatcher.from_dict(step) for step in raw_steps),
            match_criteria=MatchCriteria.from_dict(data.get("match_criteria")),
            confidence_threshold=float(threshold) if threshold is not None else 0.7,
            description=data.get("description") or "",
            category=data.get("category") or "",
            tags=tuple(data.get("tags") or ()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "template_pattern": {"sequence": [step.to_dict() for step in self.steps]},
            "match_criteria": self.match_criteria.to_dict(),
            "confidence_threshold": self.confidence_threshold,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class TemplateMatch:
    """A template that matched a user's activity."""

    template_id: str
    template_name: str
    category: str
    confidence: float
    matched_events: tuple[str, ...]
    match_reason: str
    support: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "template_id": self.template_id,
            "template_name": self.template_name,
            "category": self.category,
            "confidence": self.confidence,
            "matched_events": list(self.matched_events),
            "match_reason": self.match_reason,
            "support": self.support,
        }
