"""Human-readable rate summaries for display."""

from ..models import MINUTES_PER_DAY, RateRule, RateRuleSet, RuleKind
from ..rates import conditional_free_threshold

NO_RATE_INFO = "No rate information"

DAY_TYPE_LABELS = {
    "weekday": "Weekdays",
    "weekend_holiday": "Weekends/holidays",
}


def _duration_label(minutes: int) -> str:
    if minutes % 60 == 0:
        return f"{minutes // 60} h"
    return f"{minutes} min"


def _price_label(price: int | None) -> str:
    return "¥?" if price is None else f"¥{price:,}"


def _scope_suffix(rule: RateRule) -> str:
    parts = []
    if rule.day_type is not None:
        parts.append(DAY_TYPE_LABELS[rule.day_type.value])
    if rule.time_range is not None:
        parts.append(str(rule.time_range))
    if rule.malformed:
        parts.append("unreadable schedule")
    return f" ({', '.join(parts)})" if parts else ""


def format_rule(rule: RateRule) -> str:
    """Format a single rule as one display line."""
    if rule.kind is RuleKind.BASE:
        if rule.unit_price == 0 and rule.unit_minutes == 0:
            text = "Free"
        else:
            text = f"{_price_label(rule.unit_price)} per {_duration_label(rule.unit_minutes)}"
        if rule.apply_after:
            text += f" after the first {rule.apply_after} min (free until then)"
    elif rule.kind is RuleKind.MAX:
        if rule.is_whole_day and rule.time_range is None:
            window = "per day" if rule.unit_minutes == MINUTES_PER_DAY else "all day"
        elif rule.is_whole_day:
            window = "per period"
        else:
            window = f"per {_duration_label(rule.unit_minutes)}"
        text = f"Max {_price_label(rule.unit_price)} {window}"
    elif rule.kind is RuleKind.PROGRESSIVE:
        text = (
            f"{_price_label(rule.unit_price)} per {_duration_label(rule.unit_minutes)}"
            f" after {rule.apply_after or 0} min"
        )
    elif rule.kind is RuleKind.CONDITIONAL_FREE:
        text = f"Free for {conditional_free_threshold(rule)} min with qualifying purchase"
    else:
        raise ValueError(f"Unhandled rule kind: {rule.kind}")
    return text + _scope_suffix(rule)


def format_rate_summary(rules: RateRuleSet) -> str:
    """Format a rule set as a multi-line summary, one line per rule."""
    if not rules:
        return NO_RATE_INFO
    return "\n".join(format_rule(rule) for rule in rules)
