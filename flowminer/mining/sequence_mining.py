"""Frequent subsequence mining over context runs.

Counts every contiguous ``kind:domain`` subsequence of bounded length
across one user's context runs and keeps those whose occurrence count
clears the support threshold.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from flowminer.sequences.context import MIN_RUN_LENGTH
from flowminer.sequences.events import ObservedEvent
from flowminer.sequences.scoring import sliding_windows, support_confidence

logger = logging.getLogger(__name__)

SEQUENCE_SEPARATOR = "->"


@dataclass(frozen=True)
class MinerConfig:
    """Policy knobs for one mining pass."""

    lookback_days: int = 7
    max_events: int = 10_000
    min_support: int = 3
    min_length: int = 3
    max_length: int = 5
    min_run_length: int = MIN_RUN_LENGTH
    fetch_timeout_seconds: float = 30.0
    ignored_domains: tuple[str, ...] = ()

    @classmethod
    def from_settings(cls, settings: Any) -> MinerConfig:
        return cls(
            lookback_days=settings.mining_lookback_days,
            max_events=settings.mining_max_events,
            min_support=settings.mining_min_support,
            min_length=settings.mining_min_sequence_length,
            max_length=settings.mining_max_sequence_length,
            min_run_length=settings.mining_min_run_length,
            fetch_timeout_seconds=settings.mining_fetch_timeout_seconds,
            ignored_domains=tuple(settings.mining_ignored_domains),
        )


@dataclass
class SubsequenceCount:
    """Running tally for one distinct step sequence."""

    count: int
    user_id: str
    first_seen: datetime
    last_seen: datetime


@dataclass(frozen=True)
class MinedSequence:
    """A frequent step sequence ready to be stored."""

    user_id: str
    sequence: tuple[str, ...]
    support: int
    confidence: float
    first_seen: datetime
    last_seen: datetime

    @property
    def key(self) -> str:
        return SEQUENCE_SEPARATOR.join(self.sequence)


@dataclass
class SequenceMiningResult:
    """Result of mining one user's runs."""

    patterns: list[MinedSequence] = field(default_factory=list)
    runs_analyzed: int = 0
    distinct_sequences: int = 0


def count_subsequences(
    runs: Sequence[Sequence[ObservedEvent]],
    user_id: str,
    min_length: int = 3,
    max_length: int = 5,
) -> dict[tuple[str, ...], SubsequenceCount]:
    """Count every contiguous step subsequence of length ``min_length..max_length``.

    Every occurrence counts, including repeats inside one run. Keys are the
    ordered step-token tuples. All runs must belong to ``user_id``; mining
    a mixture of users in one pass raises ``ValueError``.
    """
    counts: dict[tuple[str, ...], SubsequenceCount] = {}

    for run in runs:
        if not run:
            continue
        run_user = run[0].user_id
        if run_user != user_id:
            raise ValueError(f"Context run belongs to user {run_user}, expected {user_id}")

        tokens = [event.step_token for event in run]
        for length in range(min_length, min(max_length, len(run)) + 1):
            for start, window in enumerate(sliding_windows(tokens, length)):
                key = tuple(window)
                started_at = run[start].ts
                ended_at = run[start + length - 1].ts
                entry = counts.get(key)
                if entry is None:
                    counts[key] = SubsequenceCount(
                        count=1, user_id=user_id, first_seen=started_at, last_seen=ended_at
                    )
                    continue
                entry.count += 1
                entry.first_seen = min(entry.first_seen, started_at)
                entry.last_seen = max(entry.last_seen, ended_at)

    return counts


def mine_sequences(
    runs: Sequence[Sequence[ObservedEvent]],
    user_id: str,
    min_support: int = 3,
    min_length: int = 3,
    max_length: int = 5,
) -> SequenceMiningResult:
    """Extract frequent step subsequences from one user's context runs.

    Args:
        runs: Context runs for a single user, each at least 3 events long.
        user_id: Owner of every run.
        min_support: Minimum occurrence count for a sequence to be kept.
        min_length: Shortest subsequence considered (default 3).
        max_length: Longest subsequence considered (default 5).

    Returns:
        SequenceMiningResult with patterns sorted by support descending.
        Confidence is support divided by the number of runs.
    """
    if not runs:
        return SequenceMiningResult()

    total_runs = len(runs)
    counts = count_subsequences(runs, user_id, min_length=min_length, max_length=max_length)

    patterns: list[MinedSequence] = []
    for sequence, entry in counts.items():
        if entry.count < min_support:
            continue
        confidence = support_confidence(entry.count, total_runs)
        if confidence > 1:
            logger.warning(
                "Pattern %s for user %s has confidence %.3f > 1 (support=%d, runs=%d)",
                SEQUENCE_SEPARATOR.join(sequence), user_id, confidence, entry.count, total_runs,
            )
        patterns.append(MinedSequence(
            user_id=entry.user_id,
            sequence=sequence,
            support=entry.count,
            confidence=confidence,
            first_seen=entry.first_seen,
            last_seen=entry.last_seen,
        ))

    # Stable: ties keep first-seen order
    patterns.sort(key=lambda p: -p.support)

    logger.info(
        "Sequence mining: user %s, %d runs, %d distinct sequences, %d patterns (min_support=%d)",
        user_id, total_runs, len(counts), len(patterns), min_support,
    )
    return SequenceMiningResult(
        patterns=patterns,
        runs_analyzed=total_runs,
        distinct_sequences=len(counts),
    )
