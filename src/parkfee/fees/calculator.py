"""Parking fee calculation for a stay at a single facility."""

import logging
import math
from datetime import datetime, timedelta
from typing import Any, Iterable

from ..daytype import DayTypeResolver, weekend_day_type
from ..models import UNAVAILABLE, FeeResult, RateRuleSet, StayInterval, TimeSegment
from ..rates import RuleSetStatus, classify_rule_set, is_standalone_max, parse_rule_set
from .accumulator import accumulate_fees, cap_window, iter_segment_fees
from .segmenter import DEFAULT_MATCHING_POLICY, MatchingPolicy, split_into_segments
from .validator import validate_fee

logger = logging.getLogger(__name__)

Rules = RateRuleSet | Iterable[dict[str, Any]]


def _as_rule_set(rules: Rules) -> RateRuleSet:
    if isinstance(rules, tuple):
        return rules
    return parse_rule_set(rules)


def flat_max_fee(rules: RateRuleSet, minutes: int) -> int:
    """Charge a max-only facility one cap price per started window."""
    fees = [
        math.ceil(minutes / cap_window(rule)) * rule.unit_price
        for rule in rules
        if is_standalone_max(rule)
    ]
    return min(fees)


def calculate_fee(
    rules: Rules,
    interval: StayInterval,
    resolver: DayTypeResolver = weekend_day_type,
    policy: MatchingPolicy = DEFAULT_MATCHING_POLICY,
) -> FeeResult:
    """Calculate the fee for a stay.

    Args:
        rules: Parsed rule set, or the facility's raw rule records
        interval: The stay window
        resolver: Classifies instants as weekday or weekend/holiday
        policy: How time-scoped rules interact with default rules

    Returns:
        The fee in whole currency units, or UNAVAILABLE when the facility
        data cannot support a reliable figure.
    """
    rule_set = _as_rule_set(rules)
    duration = interval.duration_minutes
    status = classify_rule_set(rule_set, duration)
    logger.debug("Rule set of %d rule(s) for %d min classified %s", len(rule_set), duration, status.value)

    if status is RuleSetStatus.FREE:
        return 0
    if status is RuleSetStatus.UNAVAILABLE:
        return UNAVAILABLE
    if status is RuleSetStatus.FLAT_MAX:
        return flat_max_fee(rule_set, duration)

    segments = split_into_segments(rule_set, interval, resolver, policy)
    raw_total = accumulate_fees(segments)
    result = validate_fee(raw_total, rule_set)
    logger.debug("Raw total %d -> %r", raw_total, result)
    return result


def calculate_fee_for_minutes(
    rules: Rules,
    entry: datetime,
    minutes: int,
    resolver: DayTypeResolver = weekend_day_type,
    policy: MatchingPolicy = DEFAULT_MATCHING_POLICY,
) -> FeeResult:
    """Calculate the fee for a stay given as entry time plus duration."""
    if minutes <= 0:
        raise ValueError(f"Stay duration must be positive, got {minutes} minutes")
    interval = StayInterval(entry=entry, exit=entry + timedelta(minutes=minutes))
    return calculate_fee(rules, interval, resolver, policy)


def segment_breakdown(
    rules: Rules,
    interval: StayInterval,
    resolver: DayTypeResolver = weekend_day_type,
    policy: MatchingPolicy = DEFAULT_MATCHING_POLICY,
) -> list[tuple[TimeSegment, int]]:
    """Per-segment fees for a stay, before the final validation pass."""
    rule_set = _as_rule_set(rules)
    segments = split_into_segments(rule_set, interval, resolver, policy)
    return list(iter_segment_fees(segments))
