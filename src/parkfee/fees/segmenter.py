"""Splitting a stay into segments of constant applicable rules.

The scan walks forward from entry to exit, one rule boundary at a time.
A segment only ends at a boundary where the applicable rule subset
actually changes, so every emitted segment is maximal.
"""

import logging
from datetime import datetime, time, timedelta
from enum import Enum

from ..daytype import DayTypeResolver, weekend_day_type
from ..models import RateRule, RateRuleSet, RuleKind, StayInterval, TimeSegment

logger = logging.getLogger(__name__)


class MatchingPolicy(Enum):
    """How time-scoped rules interact with rules that have no time range."""

    # Any matching time-scoped rule suppresses all unscoped (default) rules
    TIME_SCOPED_EXCLUSIVE = "time_scoped_exclusive"
    # Time-scoped and default rules apply together
    COMBINED = "combined"


DEFAULT_MATCHING_POLICY = MatchingPolicy.TIME_SCOPED_EXCLUSIVE


def minute_of_day(instant: datetime) -> int:
    return instant.hour * 60 + instant.minute


def is_activated(rule: RateRule, instant: datetime, entry: datetime) -> bool:
    """Check a rule's apply_after threshold against the time elapsed since entry."""
    if rule.apply_after is None or rule.kind is RuleKind.CONDITIONAL_FREE:
        return True
    return instant - entry >= timedelta(minutes=rule.apply_after)


def rule_matches(
    rule: RateRule,
    instant: datetime,
    entry: datetime,
    resolver: DayTypeResolver = weekend_day_type,
) -> bool:
    """Check whether a single rule applies at an instant of a stay."""
    if rule.malformed:
        return False
    if not is_activated(rule, instant, entry):
        return False
    if rule.day_type is not None and resolver(instant) is not rule.day_type:
        return False
    if rule.time_range is not None and not rule.time_range.contains(minute_of_day(instant)):
        return False
    return True


def applicable_rules(
    rules: RateRuleSet,
    instant: datetime,
    entry: datetime,
    resolver: DayTypeResolver = weekend_day_type,
    policy: MatchingPolicy = DEFAULT_MATCHING_POLICY,
) -> RateRuleSet:
    """Return the rules applicable at an instant, in rule-set order."""
    matches = [r for r in rules if rule_matches(r, instant, entry, resolver)]
    if policy is MatchingPolicy.COMBINED:
        return tuple(matches)

    scoped_hit = any(r.is_time_scoped and r.kind is not RuleKind.CONDITIONAL_FREE for r in matches)
    if scoped_hit:
        return tuple(r for r in matches if r.is_time_scoped or r.kind is RuleKind.CONDITIONAL_FREE)
    return tuple(r for r in matches if not r.is_time_scoped)


def _next_time_of_day(cursor: datetime, minute: int) -> datetime:
    """The first occurrence of a time of day strictly after the cursor."""
    candidate = datetime.combine(
        cursor.date(), time(minute // 60, minute % 60), tzinfo=cursor.tzinfo
    )
    if candidate <= cursor:
        candidate += timedelta(days=1)
    return candidate


def next_boundary(rules: RateRuleSet, cursor: datetime, entry: datetime) -> datetime | None:
    """Soonest instant after the cursor at which some rule may start or stop applying."""
    candidates = []
    has_day_types = False

    for rule in rules:
        if rule.malformed:
            continue
        if rule.time_range is not None and not rule.time_range.is_all_day:
            candidates.append(_next_time_of_day(cursor, rule.time_range.start_minute))
            candidates.append(_next_time_of_day(cursor, rule.time_range.end_minute))
        if rule.day_type is not None:
            has_day_types = True
        if rule.apply_after is not None and rule.kind is not RuleKind.CONDITIONAL_FREE:
            activation = entry + timedelta(minutes=rule.apply_after)
            if activation > cursor:
                candidates.append(activation)

    if has_day_types:
        candidates.append(_next_time_of_day(cursor, 0))

    return min(candidates) if candidates else None


def split_into_segments(
    rules: RateRuleSet,
    interval: StayInterval,
    resolver: DayTypeResolver = weekend_day_type,
    policy: MatchingPolicy = DEFAULT_MATCHING_POLICY,
) -> list[TimeSegment]:
    """Split a stay into maximal segments of constant applicable rules.

    Segment durations always sum to the stay duration, with no gaps or
    overlaps.
    """
    entry, exit_ = interval.entry, interval.exit
    segments = []
    cursor = entry

    while cursor < exit_:
        current = applicable_rules(rules, cursor, entry, resolver, policy)
        end = cursor
        while True:
            boundary = next_boundary(rules, end, entry)
            if boundary is None or boundary >= exit_:
                end = exit_
                break
            end = boundary
            if applicable_rules(rules, end, entry, resolver, policy) != current:
                break

        segments.append(TimeSegment(start=cursor, end=end, applicable_rules=current))
        cursor = end

    logger.debug("Split %s -> %s into %d segment(s)", entry, exit_, len(segments))
    return segments
