"""Structural template matching against a user's recent events.

For each template a window as wide as its step pattern slides over the
event list. A window is accepted when enough position-aligned steps pass
their predicates (70% with fuzzy matching, 100% otherwise). Accepted
windows are scored on support and coverage, and templates clearing their
confidence threshold are returned, highest confidence first.

Matching is a pure function of its inputs: identical events and
templates always produce identical output.
"""

from __future__ import annotations

import dataclasses
import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from flowminer.sequences.events import ObservedEvent
from flowminer.sequences.scoring import (
    COVERAGE_WEIGHT,
    FUZZY_MATCH_THRESHOLD,
    SUPPORT_WEIGHT,
    acceptance_threshold,
    match_ratio,
    sliding_windows,
    weighted_confidence,
)
from flowminer.templates.models import StepMatcher, Template, TemplateMatch

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchingConfig:
    """Matching and cold-start policy constants."""

    fuzzy_threshold: float = FUZZY_MATCH_THRESHOLD
    support_weight: float = SUPPORT_WEIGHT
    coverage_weight: float = COVERAGE_WEIGHT
    default_min_support: int = 1
    # min_support assumed when scaling a template that does not set one
    cold_start_default_min_support: int = 3
    very_new_user_days: int = 3
    very_new_user_multiplier: float = 0.5
    new_user_days: int = 7
    new_user_multiplier: float = 0.7

    @classmethod
    def from_settings(cls, settings: Any) -> MatchingConfig:
        return cls(
            fuzzy_threshold=settings.matching_fuzzy_threshold,
            support_weight=settings.matching_support_weight,
            coverage_weight=settings.matching_coverage_weight,
            very_new_user_days=settings.matching_very_new_user_days,
            very_new_user_multiplier=settings.matching_very_new_user_multiplier,
            new_user_days=settings.matching_new_user_days,
            new_user_multiplier=settings.matching_new_user_multiplier,
        )


_DEFAULT_CONFIG = MatchingConfig()


def event_matches_step(event: ObservedEvent, step: StepMatcher) -> bool:
    """Check every predicate the step defines against one event."""
    if step.type and event.type != step.type:
        return False

    if step.domain_contains:
        domain = event.domain
        if not domain or not any(part in domain for part in step.domain_contains):
            return False

    if step.url_contains:
        if not event.url or not any(part in event.url for part in step.url_contains):
            return False

    if step.text_contains:
        text = (event.text or "").lower()
        if not text or not any(part.lower() in text for part in step.text_contains):
            return False

    if step.tag_name and event.tag_name != step.tag_name:
        return False

    if step.dom_path and event.dom_path != step.dom_path:
        return False

    # Dwell is only enforced when the event reports one
    dwell_ms = event.dwell_ms
    if step.min_dwell_ms and dwell_ms:
        if dwell_ms < step.min_dwell_ms:
            return False

    return True


def find_matching_sequences(
    events: Sequence[ObservedEvent],
    template: Template,
    config: MatchingConfig = _DEFAULT_CONFIG,
) -> list[Sequence[ObservedEvent]]:
    """Return every accepted window for a template, in event order.

    Windows may overlap. A template with no steps, or with more steps than
    there are events, yields no windows.
    """
    steps = template.steps
    if not steps:
        logger.debug("Template %s has no steps; skipping", template.id)
        return []

    threshold = acceptance_threshold(template.match_criteria.fuzzy_match, config.fuzzy_threshold)
    matches: list[Sequence[ObservedEvent]] = []

    for window in sliding_windows(events, len(steps)):
        passed = sum(1 for event, step in zip(window, steps) if event_matches_step(event, step))
        if match_ratio(passed, len(steps)) >= threshold:
            matches.append(window)

    return matches


def calculate_confidence(
    matching_sequences: Sequence[Sequence[ObservedEvent]],
    template: Template,
    total_events: int,
    config: MatchingConfig = _DEFAULT_CONFIG,
) -> float:
    """Score accepted windows on support and coverage, rounded to 2 decimals.

    Coverage sums window lengths, so overlapping windows count shared
    events more than once.
    """
    if not matching_sequences:
        return 0.0
    min_support = template.match_criteria.min_support or config.default_min_support
    return weighted_confidence(
        support=len(matching_sequences),
        min_support=min_support,
        covered_events=sum(len(window) for window in matching_sequences),
        total_events=total_events,
        support_weight=config.support_weight,
        coverage_weight=config.coverage_weight,
    )


def match_templates(
    events: Sequence[ObservedEvent],
    templates: Sequence[Template],
    config: MatchingConfig = _DEFAULT_CONFIG,
) -> list[TemplateMatch]:
    """Match user events against all templates.

    Args:
        events: The user's recent events, oldest first.
        templates: Catalog templates to try.
        config: Matching policy.

    Returns:
        Matches whose confidence meets the template threshold, sorted by
        confidence descending.
    """
    matches: list[TemplateMatch] = []

    for template in templates:
        windows = find_matching_sequences(events, template, config)
        if not windows:
            continue

        confidence = calculate_confidence(windows, template, len(events), config)
        if confidence < template.confidence_threshold:
            logger.debug(
                "Template %s below threshold (%.2f < %.2f)",
                template.id, confidence, template.confidence_threshold,
            )
            continue

        # dict keys: an insertion-ordered hash set of event ids
        matched_ids = dict.fromkeys(event.id for window in windows for event in window)
        matches.append(TemplateMatch(
            template_id=template.id,
            template_name=template.name,
            category=template.category,
            confidence=confidence,
            matched_events=tuple(matched_ids),
            match_reason=(
                f"Found {len(windows)} matching sequences "
                f"({round(confidence * 100)}% confidence)"
            ),
            support=len(windows),
        ))

    matches.sort(key=lambda m: m.confidence, reverse=True)
    return matches


def get_top_template_suggestions(
    events: Sequence[ObservedEvent],
    templates: Sequence[Template],
    limit: int = 5,
    config: MatchingConfig = _DEFAULT_CONFIG,
) -> list[TemplateMatch]:
    """The ``limit`` best template matches."""
    return match_templates(events, templates, config)[:limit]


def confidence_multiplier(account_age_days: float, config: MatchingConfig = _DEFAULT_CONFIG) -> float:
    """Threshold multiplier for an account of the given age."""
    if account_age_days <= config.very_new_user_days:
        return config.very_new_user_multiplier
    if account_age_days <= config.new_user_days:
        return config.new_user_multiplier
    return 1.0


def adjust_templates_for_account_age(
    templates: Sequence[Template],
    account_age_days: float,
    config: MatchingConfig = _DEFAULT_CONFIG,
) -> list[Template]:
    """Return copies of the templates with cold-start thresholds.

    confidence_threshold and min_support are scaled by the age multiplier;
    min_support is floored with a minimum of 1. The input templates are
    never modified. For established accounts the copies equal the originals.
    """
    multiplier = confidence_multiplier(account_age_days, config)
    if multiplier == 1.0:
        return [dataclasses.replace(template) for template in templates]

    adjusted: list[Template] = []
    for template in templates:
        criteria = template.match_criteria
        base_support = criteria.min_support or config.cold_start_default_min_support
        adjusted.append(dataclasses.replace(
            template,
            confidence_threshold=template.confidence_threshold * multiplier,
            match_criteria=dataclasses.replace(
                criteria,
                min_support=max(1, math.floor(base_support * multiplier)),
            ),
        ))
    return adjusted


def get_template_suggestions_for_new_users(
    events: Sequence[ObservedEvent],
    templates: Sequence[Template],
    account_age_days: float,
    config: MatchingConfig = _DEFAULT_CONFIG,
) -> list[TemplateMatch]:
    """Match with thresholds relaxed in proportion to account age."""
    adjusted = adjust_templates_for_account_age(templates, account_age_days, config)
    return match_templates(events, adjusted, config)
