"""Tests for domain context extraction and context-run segmentation."""

from __future__ import annotations

import inspect
from datetime import UTC, datetime, timedelta

from flowminer.sequences.context import (
    context_key,
    drop_ignored_domains,
    extract_domain,
    segment_context_runs,
)
from flowminer.sequences.events import ObservedEvent


def _event(index: int, url: str | None, event_type: str = "click", user_id: str = "u1") -> ObservedEvent:
    """Helper: build an event one minute after the previous one."""
    base = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)
    return ObservedEvent(
        id=f"e{index}",
        user_id=user_id,
        type=event_type,
        ts=base + timedelta(minutes=index),
        url=url,
    )


def _events(*urls: str | None) -> list[ObservedEvent]:
    return [_event(i, url) for i, url in enumerate(urls)]


class TestExtractDomain:
    def test_strips_leading_www(self):
        assert extract_domain("https://www.example.com/path?q=1") == "example.com"

    def test_keeps_other_subdomains(self):
        assert extract_domain("https://mail.google.com/mail/u/0") == "mail.google.com"

    def test_hostname_is_lowercased(self):
        assert extract_domain("https://WWW.Example.COM/") == "example.com"

    def test_missing_url(self):
        assert extract_domain(None) is None
        assert extract_domain("") is None

    def test_url_without_host(self):
        assert extract_domain("not a url") is None

    def test_malformed_url_does_not_raise(self):
        assert extract_domain("http://[::1") is None


class TestContextKey:
    def test_uses_domain_when_parsable(self):
        assert context_key("https://www.a.com/x") == "a.com"

    def test_falls_back_to_raw_string(self):
        assert context_key("chrome://newtab") == "newtab"
        assert context_key("about:blank") == "about:blank"
        assert context_key("http://[::1") == "http://[::1"

    def test_missing_url_is_empty(self):
        assert context_key(None) == ""


class TestSegmentContextRuns:
    """Scenario: contiguous same-domain events form runs of at least three."""

    def test_is_lazy(self):
        runs = segment_context_runs(_events("https://a.com", "https://a.com", "https://a.com"))
        assert inspect.isgenerator(runs)

    def test_splits_on_domain_change(self):
        events = _events(
            "https://a.com/1", "https://a.com/2", "https://www.a.com/3",
            "https://b.com/1", "https://b.com/2",
            "https://a.com/4", "https://a.com/5", "https://a.com/6", "https://a.com/7",
        )
        runs = list(segment_context_runs(events))
        assert [len(run) for run in runs] == [3, 4]
        assert [e.id for e in runs[0]] == ["e0", "e1", "e2"]
        assert [e.id for e in runs[1]] == ["e5", "e6", "e7", "e8"]

    def test_alternating_domains_yield_nothing(self):
        events = _events("https://a.com", "https://b.com", "https://a.com", "https://b.com")
        assert list(segment_context_runs(events)) == []

    def test_trailing_run_is_emitted(self):
        events = _events("https://b.com", "https://a.com", "https://a.com", "https://a.com")
        runs = list(segment_context_runs(events))
        assert len(runs) == 1
        assert runs[0][0].id == "e1"

    def test_runs_keyed_by_raw_string_without_host(self):
        events = _events(None, None, None, "https://a.com")
        runs = list(segment_context_runs(events))
        assert len(runs) == 1
        assert all(e.context_key == "" for e in runs[0])

    def test_custom_min_length(self):
        events = _events("https://a.com", "https://a.com", "https://b.com")
        assert [len(r) for r in segment_context_runs(events, min_length=2)] == [2]

    def test_every_event_lands_in_at_most_one_run(self):
        events = _events(*(["https://a.com"] * 3 + ["https://b.com"] * 3 + ["https://a.com"] * 3))
        runs = list(segment_context_runs(events))
        ids = [e.id for run in runs for e in run]
        assert len(ids) == len(set(ids)) == 9

    def test_empty_input(self):
        assert list(segment_context_runs([])) == []


class TestDropIgnoredDomains:
    def test_no_ignored_domains_keeps_everything(self):
        events = _events("https://a.com", "https://b.com")
        assert drop_ignored_domains(events, []) == events

    def test_drops_matching_context_keys(self):
        events = _events("https://www.facebook.com/feed", "https://a.com", "https://facebook.com/x")
        kept = drop_ignored_domains(events, ["www.Facebook.com"])
        assert [e.id for e in kept] == ["e1"]
