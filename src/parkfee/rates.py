"""Rate rule parsing and rule-set validation."""

import logging
import re
from enum import Enum
from typing import Any, Iterable

from .models import DayType, RateRule, RateRuleSet, RuleKind, TimeRange

logger = logging.getLogger(__name__)

# "8:00～22:00", "22:00-8:00", "08:00 〜 24:00"
TIME_RANGE_PATTERN = re.compile(
    r"^\s*(\d{1,2}):(\d{2})\s*[-~～〜－–—ー]\s*(\d{1,2}):(\d{2})\s*$"
)

DAY_TYPE_TAGS = {
    "weekday": DayType.WEEKDAY,
    "weekdays": DayType.WEEKDAY,
    "平日": DayType.WEEKDAY,
    "月～金": DayType.WEEKDAY,
    "weekend_holiday": DayType.WEEKEND_HOLIDAY,
    "weekend": DayType.WEEKEND_HOLIDAY,
    "weekends": DayType.WEEKEND_HOLIDAY,
    "holiday": DayType.WEEKEND_HOLIDAY,
    "土日祝": DayType.WEEKEND_HOLIDAY,
    "土日": DayType.WEEKEND_HOLIDAY,
    "休日": DayType.WEEKEND_HOLIDAY,
}

# Tags meaning "every day"; the rule carries no day restriction
UNRESTRICTED_DAY_TAGS = {"", "*", "all", "daily", "全日", "毎日"}


class RuleSetStatus(Enum):
    """Outcome of validating a rule set before segmentation."""

    FREE = "free"
    BILLABLE = "billable"
    FLAT_MAX = "flat_max"
    UNAVAILABLE = "unavailable"


def parse_time_range(value: str) -> TimeRange | None:
    """Parse an "HH:MM<sep>HH:MM" string. Returns None if malformed."""
    match = TIME_RANGE_PATTERN.match(value)
    if not match:
        return None

    start_hour, start_minute, end_hour, end_minute = (int(g) for g in match.groups())
    if start_minute >= 60 or end_minute >= 60 or start_hour > 24 or end_hour > 24:
        return None

    start = start_hour * 60 + start_minute
    end = end_hour * 60 + end_minute
    if start > 1440 or end > 1440:
        return None

    # 24:00 is the end of the day, i.e. midnight
    return TimeRange(start_minute=start % 1440, end_minute=end % 1440)


def parse_day_type(value: str) -> DayType | None:
    """Map a day-type tag to a DayType.

    Raises ValueError for tags that are neither a known day type nor an
    "every day" marker.
    """
    tag = value.strip().lower()
    if tag in UNRESTRICTED_DAY_TAGS:
        return None
    if tag in DAY_TYPE_TAGS:
        return DAY_TYPE_TAGS[tag]
    raise ValueError(f"Unknown day type: {value!r}")


def _first(raw: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def parse_rule(raw: dict[str, Any]) -> RateRule | None:
    """Build a RateRule from a raw facility record entry.

    Returns None for entries of an unknown type. Bad time ranges or day
    types do not fail the rule; it is kept but marked as never matching.
    """
    try:
        kind = RuleKind(str(raw.get("type", "")).strip().lower())
    except ValueError:
        logger.warning("Skipping rule with unknown type: %r", raw.get("type"))
        return None

    minutes = _first(raw, "minutes", "unit_minutes")
    price = _first(raw, "price", "unit_price")
    apply_after = _first(raw, "apply_after", "applyAfter")
    malformed = False

    time_range = None
    range_text = _first(raw, "time_range", "timeRange")
    if range_text:
        time_range = parse_time_range(str(range_text))
        if time_range is None:
            logger.warning("Unparseable time range %r; rule will never match", range_text)
            malformed = True

    day_type = None
    day_text = _first(raw, "day_type", "dayType", "days")
    if day_text is not None:
        try:
            day_type = parse_day_type(str(day_text))
        except ValueError:
            logger.warning("Unknown day type %r; rule will never match", day_text)
            malformed = True

    try:
        unit_minutes = int(minutes) if minutes is not None else 0
        unit_price = int(price) if price is not None else None
        apply_after = int(apply_after) if apply_after is not None else None
    except (TypeError, ValueError):
        logger.warning("Skipping %s rule with non-numeric fields: %r", kind.value, raw)
        return None

    return RateRule(
        kind=kind,
        unit_minutes=unit_minutes,
        unit_price=unit_price,
        time_range=time_range,
        day_type=day_type,
        apply_after=apply_after,
        malformed=malformed,
    )


def parse_rule_set(raw_rules: Iterable[dict[str, Any]] | None) -> RateRuleSet:
    """Parse a facility's raw rule list, skipping entries that cannot be used."""
    rules = []
    for raw in raw_rules or []:
        rule = parse_rule(raw)
        if rule is not None:
            rules.append(rule)
    return tuple(rules)


def is_free_rule(rule: RateRule) -> bool:
    """A Base rule of zero price and zero minutes marks a fully free facility."""
    return rule.kind is RuleKind.BASE and rule.unit_price == 0 and rule.unit_minutes == 0


def is_usable_base(rule: RateRule) -> bool:
    return rule.kind is RuleKind.BASE and rule.unit_minutes > 0 and rule.unit_price is not None


def is_standalone_max(rule: RateRule) -> bool:
    """A Max rule that applies at any time and can be charged as a flat fee."""
    return (
        rule.kind is RuleKind.MAX
        and rule.unit_price is not None
        and rule.unit_minutes >= 0
        and rule.time_range is None
        and rule.day_type is None
        and not rule.malformed
    )


def conditional_free_threshold(rule: RateRule) -> int:
    return rule.apply_after if rule.apply_after is not None else rule.unit_minutes


def classify_rule_set(rules: RateRuleSet, duration_minutes: int) -> RuleSetStatus:
    """Classify a rule set as free, billable, flat-max or unavailable for a stay."""
    if any(is_free_rule(r) for r in rules):
        return RuleSetStatus.FREE

    for rule in rules:
        # The free condition cannot be verified, so the fee is unknown
        if rule.kind is RuleKind.CONDITIONAL_FREE and conditional_free_threshold(rule) >= duration_minutes:
            return RuleSetStatus.UNAVAILABLE

    if any(is_usable_base(r) for r in rules):
        return RuleSetStatus.BILLABLE
    if any(is_standalone_max(r) for r in rules):
        return RuleSetStatus.FLAT_MAX
    return RuleSetStatus.UNAVAILABLE


def rule_to_record(rule: RateRule) -> dict[str, Any] | None:
    """Inverse of parse_rule, for storage.

    Malformed rules never match anything, so they have no record.
    """
    if rule.malformed:
        return None
    record: dict[str, Any] = {
        "type": rule.kind.value,
        "minutes": rule.unit_minutes,
        "price": rule.unit_price,
    }
    if rule.time_range is not None:
        record["time_range"] = str(rule.time_range)
    if rule.day_type is not None:
        record["day_type"] = rule.day_type.value
    if rule.apply_after is not None:
        record["apply_after"] = rule.apply_after
    return record
