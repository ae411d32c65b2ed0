"""Domain context extraction and segmentation into context runs.

A context run is a maximal contiguous stretch of one user's events that
share the same context key. Runs shorter than ``MIN_RUN_LENGTH`` are
dropped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

if TYPE_CHECKING:
    from flowminer.sequences.events import ObservedEvent

logger = logging.getLogger(__name__)

MIN_RUN_LENGTH = 3


def extract_domain(url: str | None) -> str | None:
    """Return the URL's hostname with a leading ``www.`` removed, or None if it has none."""
    if not url:
        return None
    try:
        hostname = urlsplit(url).hostname
    except ValueError:
        return None
    if not hostname:
        return None
    return hostname.removeprefix("www.")


def context_key(url: str | None) -> str:
    """Context key for segmentation.

    Never raises: a missing or malformed URL falls back to the raw string.
    """
    return extract_domain(url) or (url or "")


def segment_context_runs(
    events: Iterable[ObservedEvent],
    min_length: int = MIN_RUN_LENGTH,
) -> Iterator[list[ObservedEvent]]:
    """Yield maximal same-context runs of at least ``min_length`` events.

    Events must already be sorted by timestamp. The generator is single
    pass; every input event lands in exactly one candidate run, and runs
    are emitted in input order.
    """
    current: list[ObservedEvent] = []
    current_key: str | None = None

    for event in events:
        key = event.context_key
        if current and key == current_key:
            current.append(event)
            continue
        if len(current) >= min_length:
            yield current
        current = [event]
        current_key = key

    if len(current) >= min_length:
        yield current


def drop_ignored_domains(
    events: Iterable[ObservedEvent],
    ignored: Iterable[str],
) -> list[ObservedEvent]:
    """Filter out events whose context key is in ``ignored``."""
    ignored_keys = {d.removeprefix("www.").lower() for d in ignored}
    events = list(events)
    if not ignored_keys:
        return events
    kept = [e for e in events if e.context_key.lower() not in ignored_keys]
    if len(kept) != len(events):
        logger.debug("Dropped %d events from ignored domains", len(events) - len(kept))
    return kept
