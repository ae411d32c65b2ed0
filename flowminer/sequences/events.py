"""Immutable view of a captured browser event.

The miner and the matcher operate on ``ObservedEvent`` values rather than
ORM rows so that the algorithms stay pure and callers may supply events
from any source.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flowminer.sequences.context import context_key, extract_domain


@dataclass(frozen=True)
class ObservedEvent:
    """One observed user action."""

    id: str
    user_id: str
    type: str
    ts: datetime
    url: str | None = None
    title: str | None = None
    text: str | None = None
    dom_path: str | None = None
    meta: Mapping[str, Any] = field(default_factory=dict)

    @property
    def context_key(self) -> str:
        """Segmentation key: URL host without ``www.``, or the raw URL."""
        return context_key(self.url)

    @property
    def domain(self) -> str:
        """Parsed host without ``www.``; empty when the URL has no host."""
        return extract_domain(self.url) or ""

    @property
    def step_token(self) -> str:
        return f"{self.type}:{self.context_key}"

    @property
    def tag_name(self) -> str | None:
        return self.meta.get("tagName") or self.meta.get("tag_name")

    @property
    def dwell_ms(self) -> float | None:
        value = self.meta.get("dwell_ms")
        if value is None or isinstance(value, bool):
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            return None

    @classmethod
    def from_record(cls, record: Any) -> ObservedEvent:
        """Build from a ``BrowserEvent`` row (or any object with the same attributes)."""
        meta = dict(record.meta or {})
        dwell_ms = getattr(record, "dwell_ms", None)
        if dwell_ms is not None:
            meta.setdefault("dwell_ms", dwell_ms)
        return cls(
            id=str(record.id),
            user_id=str(record.user_id),
            type=_enum_value(record.type),
            ts=record.ts,
            url=record.url,
            title=record.title,
            text=record.text,
            dom_path=record.dom_path,
            meta=meta,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ObservedEvent:
        """Build from a plain mapping, e.g. a decoded JSON payload."""
        meta = dict(data.get("meta") or {})
        if data.get("dwell_ms") is not None:
            meta.setdefault("dwell_ms", data["dwell_ms"])
        return cls(
            id=str(data["id"]),
            user_id=str(data.get("user_id", "")),
            type=_enum_value(data["type"]),
            ts=_parse_timestamp(data["ts"]),
            url=data.get("url"),
            title=data.get("title"),
            text=data.get("text"),
            dom_path=data.get("dom_path"),
            meta=meta,
        )


def _enum_value(value: Any) -> str:
    return str(getattr(value, "value", value))


def _parse_timestamp(ts: str | datetime) -> datetime:
    """Parse an ISO 8601 timestamp string or return a datetime as-is."""
    if isinstance(ts, datetime):
        return ts
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    return datetime.fromisoformat(ts)
