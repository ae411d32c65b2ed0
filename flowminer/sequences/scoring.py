"""Window scanning and ratio/confidence arithmetic."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from decimal import ROUND_HALF_UP, Decimal
from typing import TypeVar

T = TypeVar("T")

FUZZY_MATCH_THRESHOLD = 0.7
EXACT_MATCH_THRESHOLD = 1.0
SUPPORT_WEIGHT = 0.7
COVERAGE_WEIGHT = 0.3


def round_half_up(value: float, ndigits: int) -> float:
    """Round to `ndigits` decimals, ties away from zero.

    Works on the exact binary value, so 0.0625 becomes 0.063 where the
    built-in `round` would give 0.062.
    """
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def sliding_windows(items: Sequence[T], width: int) -> Iterator[Sequence[T]]:
    """Yield every contiguous window of ``width`` items, stride 1.

    Yields nothing when ``width`` is not positive or exceeds ``len(items)``.
    """
    if width <= 0 or width > len(items):
        return
    for start in range(len(items) - width + 1):
        yield items[start:start + width]


def match_ratio(passed: int, total: int) -> float:
    """Fraction of position-aligned predicates that passed."""
    if total <= 0:
        return 0.0
    return passed / total


def acceptance_threshold(fuzzy: bool, fuzzy_threshold: float = FUZZY_MATCH_THRESHOLD) -> float:
    """Minimum match ratio for a window to be accepted."""
    return fuzzy_threshold if fuzzy else EXACT_MATCH_THRESHOLD


def support_confidence(support: int, total_runs: int, ndigits: int = 3) -> float:
    """Mined-pattern confidence: support divided by the number of context runs.

    Not clamped. A run can contain the same subsequence several times, so
    the ratio may exceed 1.
    """
    if total_runs <= 0:
        return 0.0
    return round_half_up(support / total_runs, ndigits)


def weighted_confidence(
    support: int,
    min_support: int,
    covered_events: int,
    total_events: int,
    support_weight: float = SUPPORT_WEIGHT,
    coverage_weight: float = COVERAGE_WEIGHT,
    ndigits: int = 2,
) -> float:
    """Combine a support score and a coverage score into one confidence.

    supportScore = min(support / min_support, 1)
    coverageScore = min(covered_events / total_events, 1)
    """
    if support <= 0 or total_events <= 0:
        return 0.0
    support_score = min(support / max(min_support, 1), 1.0)
    coverage_score = min(covered_events / total_events, 1.0)
    return round_half_up(support_score * support_weight + coverage_score * coverage_weight, ndigits)
