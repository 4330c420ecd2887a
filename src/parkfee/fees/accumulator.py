"""Folding time segments into a total fee.

Each segment is billed from its own base rate (ceiling units) and capped
by its applicable max rules. A capped window that is not used up in one
segment carries into the next ones, where it suppresses charges until it
runs out.
"""

import logging
import math
from datetime import datetime, timedelta
from typing import Iterable, Iterator

from ..models import MINUTES_PER_DAY, CarryState, RateRule, RateRuleSet, RuleKind, TimeSegment
from .segmenter import minute_of_day

logger = logging.getLogger(__name__)


def base_fee(rule: RateRule | None, minutes: int) -> int:
    """Linear fee: every started unit is a billed unit."""
    if rule is None or minutes <= 0 or rule.unit_minutes <= 0 or rule.unit_price is None:
        return 0
    return math.ceil(minutes / rule.unit_minutes) * rule.unit_price


def cap_window(rule: RateRule, start: datetime | None = None) -> int:
    """Length of the window a max rule caps.

    0 and 1440 both mean a whole day, except for a time-scoped cap such as
    a night maximum, whose window ends with its own time range. Given the
    instant billing starts, the window runs from there to the range end.
    """
    if not rule.is_whole_day:
        return rule.unit_minutes
    time_range = rule.time_range
    if time_range is None or time_range.is_all_day:
        return MINUTES_PER_DAY

    length = (time_range.end_minute - time_range.start_minute) % MINUTES_PER_DAY
    if start is None:
        return length
    return (time_range.end_minute - minute_of_day(start)) % MINUTES_PER_DAY or length


def segment_roles(rules: RateRuleSet) -> tuple[RateRule | None, list[RateRule]]:
    """Pick the billing rate and the caps for a segment.

    An activated progressive rule takes over from the base rate. The first
    matching base rule wins when several match.
    """
    base = None
    progressive = None
    caps = []
    for rule in rules:
        if rule.kind is RuleKind.BASE:
            if base is None:
                base = rule
        elif rule.kind is RuleKind.PROGRESSIVE:
            if progressive is None:
                progressive = rule
        elif rule.kind is RuleKind.MAX:
            if rule.unit_price is not None and rule.unit_minutes >= 0:
                caps.append(rule)
        elif rule.kind is RuleKind.CONDITIONAL_FREE:
            continue  # settled when the rule set is classified
        else:
            raise ValueError(f"Unhandled rule kind: {rule.kind}")
    return progressive or base, caps


def capped_fee(
    minutes: int, rate: RateRule | None, cap: RateRule, start: datetime | None = None
) -> tuple[int, int]:
    """Fee for a run of minutes under one max rule.

    Returns (fee, remaining capped minutes to carry forward).
    """
    window = cap_window(cap, start)
    price = cap.unit_price
    linear = base_fee(rate, minutes)

    if minutes <= window:
        if linear > price:
            return price, window - minutes
        return linear, 0

    full_windows, rest = divmod(minutes, window)
    rest_fee = base_fee(rate, rest)
    if rest_fee > price:
        fee, remaining = (full_windows + 1) * price, window - rest
    else:
        fee, remaining = full_windows * price + rest_fee, 0

    # A cap is an upper bound, never a surcharge
    if linear <= fee:
        return linear, 0
    return fee, remaining


def fee_for_minutes(
    minutes: int, rate: RateRule | None, caps: list[RateRule], start: datetime | None = None
) -> tuple[int, int]:
    if not caps:
        return base_fee(rate, minutes), 0
    outcomes = [capped_fee(minutes, rate, cap, start) for cap in caps]
    # Cheapest cap wins; on a tie keep the longer carried window
    return min(outcomes, key=lambda outcome: (outcome[0], -outcome[1]))


def segment_fee(segment: TimeSegment, carry: CarryState) -> int:
    """Bill one segment and update the carry state in place."""
    minutes = segment.minutes
    rate, caps = segment_roles(segment.applicable_rules)
    remaining = carry.remaining_capped_minutes

    if remaining > 0:
        excess = max(0, minutes - remaining)
        carry.remaining_capped_minutes = max(0, remaining - minutes)
        if excess == 0:
            return 0
        excess_start = segment.start + timedelta(minutes=remaining)
        fee, new_remaining = fee_for_minutes(excess, rate, caps, excess_start)
        if new_remaining:
            carry.remaining_capped_minutes = new_remaining
        return fee

    fee, carry.remaining_capped_minutes = fee_for_minutes(minutes, rate, caps, segment.start)
    return fee


def iter_segment_fees(segments: Iterable[TimeSegment]) -> Iterator[tuple[TimeSegment, int]]:
    """Yield (segment, fee) pairs left to right, threading the carry state."""
    carry = CarryState()
    for segment in segments:
        fee = segment_fee(segment, carry)
        logger.debug(
            "Segment %s -> %s (%d min): %d, carry %d min",
            segment.start,
            segment.end,
            segment.minutes,
            fee,
            carry.remaining_capped_minutes,
        )
        yield segment, fee


def accumulate_fees(segments: Iterable[TimeSegment]) -> int:
    """Raw total fee over an ordered segment list."""
    return sum(fee for _, fee in iter_segment_fees(segments))
