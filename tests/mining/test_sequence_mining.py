"""Tests for frequent subsequence mining over context runs."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from flowminer.mining.sequence_mining import (
    MinedSequence,
    MinerConfig,
    count_subsequences,
    mine_sequences,
)
from flowminer.sequences.context import segment_context_runs
from flowminer.sequences.events import ObservedEvent

USER = "7b0c2d5e-4a1f-4c39-9f0e-2d8a6b1c3e57"
_BASE = datetime(2026, 3, 2, 9, 0, 0, tzinfo=UTC)


def _run(kinds: list[str], domain: str = "a.com", start: int = 0, user_id: str = USER) -> list[ObservedEvent]:
    """Helper: a context run of events on one domain, one minute apart."""
    return [
        ObservedEvent(
            id=f"{domain}-{start + i}",
            user_id=user_id,
            type=kind,
            ts=_BASE + timedelta(minutes=start + i),
            url=f"https://{domain}/page/{i}",
        )
        for i, kind in enumerate(kinds)
    ]


class TestCountSubsequences:
    def test_counts_every_length_in_range(self):
        counts = count_subsequences([_run(["nav", "click", "form", "search"])], USER)
        assert set(counts) == {
            ("nav:a.com", "click:a.com", "form:a.com"),
            ("click:a.com", "form:a.com", "search:a.com"),
            ("nav:a.com", "click:a.com", "form:a.com", "search:a.com"),
        }

    def test_counts_repeats_within_one_run(self):
        counts = count_subsequences([_run(["click"] * 5)], USER)
        assert counts[("click:a.com",) * 3].count == 3
        assert counts[("click:a.com",) * 4].count == 2
        assert counts[("click:a.com",) * 5].count == 1

    def test_respects_max_length(self):
        counts = count_subsequences([_run(["click"] * 8)], USER)
        assert max(len(key) for key in counts) == 5

    def test_tracks_first_and_last_seen(self):
        runs = [_run(["nav", "click", "form"], start=0), _run(["nav", "click", "form"], start=30)]
        entry = count_subsequences(runs, USER)[("nav:a.com", "click:a.com", "form:a.com")]
        assert entry.count == 2
        assert entry.first_seen == _BASE
        assert entry.last_seen == _BASE + timedelta(minutes=32)

    def test_mixed_users_rejected(self):
        runs = [_run(["click"] * 3), _run(["click"] * 3, user_id="someone-else")]
        with pytest.raises(ValueError, match="someone-else"):
            count_subsequences(runs, USER)


class TestMineSequences:
    """Scenario: frequent kind:domain sequences are kept with support and confidence."""

    def test_four_clicks_on_one_domain_yield_nothing(self):
        runs = list(segment_context_runs(_run(["click"] * 4)))
        result = mine_sequences(runs, USER)
        assert result.patterns == []
        assert result.runs_analyzed == 1
        assert result.distinct_sequences == 2

    def test_sequence_repeated_across_runs(self):
        runs = [_run(["nav", "click", "form"], start=i * 10) for i in range(3)]
        result = mine_sequences(runs, USER)
        assert len(result.patterns) == 1
        pattern = result.patterns[0]
        assert pattern.sequence == ("nav:a.com", "click:a.com", "form:a.com")
        assert pattern.support == 3
        assert pattern.confidence == 1.0
        assert pattern.user_id == USER

    def test_confidence_can_exceed_one(self, caplog):
        runs = [_run(["click"] * 12)]
        with caplog.at_level(logging.WARNING, logger="flowminer.mining.sequence_mining"):
            result = mine_sequences(runs, USER)
        assert [p.support for p in result.patterns] == [10, 9, 8]
        assert result.patterns[0].confidence == 10.0
        assert "confidence 10.000 > 1" in caplog.text

    def test_sorted_by_support_descending(self):
        runs = [
            _run(["click"] * 6, domain="a.com", start=0),
            _run(["nav", "click", "form"], domain="b.com", start=10),
            _run(["nav", "click", "form"], domain="b.com", start=20),
            _run(["nav", "click", "form"], domain="b.com", start=30),
        ]
        result = mine_sequences(runs, USER)
        supports = [p.support for p in result.patterns]
        assert supports == sorted(supports, reverse=True)
        assert result.patterns[0].sequence == ("click:a.com",) * 3

    def test_ties_keep_first_seen_order(self):
        runs = [_run(["nav", "click", "form", "search"], start=i * 10) for i in range(3)]
        result = mine_sequences(runs, USER)
        assert [p.sequence for p in result.patterns] == [
            ("nav:a.com", "click:a.com", "form:a.com"),
            ("click:a.com", "form:a.com", "search:a.com"),
            ("nav:a.com", "click:a.com", "form:a.com", "search:a.com"),
        ]
        assert all(p.confidence == 1.0 for p in result.patterns)

    def test_confidence_tie_rounds_up(self):
        runs = [_run(["nav", "click", "form"], start=i * 10) for i in range(3)]
        runs += [_run(["click"] * 3, domain=f"d{i}.com", start=100 + i * 10) for i in range(45)]
        result = mine_sequences(runs, USER)
        assert result.runs_analyzed == 48
        [pattern] = result.patterns
        # 3 / 48 = 0.0625
        assert pattern.confidence == 0.063

    def test_min_support_is_configurable(self):
        runs = [_run(["nav", "click", "form"])]
        assert mine_sequences(runs, USER, min_support=1).patterns
        assert not mine_sequences(runs, USER, min_support=2).patterns

    def test_no_runs(self):
        result = mine_sequences([], USER)
        assert result.patterns == []
        assert result.runs_analyzed == 0

    def test_deterministic(self):
        runs = [_run(["nav", "click", "form", "click", "form"], start=i * 10) for i in range(4)]
        assert mine_sequences(runs, USER).patterns == mine_sequences(runs, USER).patterns


class TestMinedSequence:
    def test_key_joins_steps(self):
        pattern = MinedSequence(
            user_id=USER,
            sequence=("nav:a.com", "click:a.com", "form:a.com"),
            support=3,
            confidence=1.0,
            first_seen=_BASE,
            last_seen=_BASE,
        )
        assert pattern.key == "nav:a.com->click:a.com->form:a.com"


class TestMinerConfig:
    def test_defaults(self):
        config = MinerConfig()
        assert config.lookback_days == 7
        assert config.max_events == 10_000
        assert config.min_support == 3
        assert (config.min_length, config.max_length) == (3, 5)

    def test_from_settings(self, test_settings):
        test_settings.mining_min_support = 5
        test_settings.mining_ignored_domains = ["facebook.com"]
        config = MinerConfig.from_settings(test_settings)
        assert config.min_support == 5
        assert config.ignored_domains == ("facebook.com",)
        assert config.fetch_timeout_seconds == 30.0
