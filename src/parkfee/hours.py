"""Opening-hours checks for parking facilities."""

import re
from datetime import datetime, time, timedelta

from .models import OpeningHours, StayInterval, TimeRange

# "8:00～22:00", "08:00-22:00", "8時～22時"
HOURS_PATTERN = re.compile(
    r"(\d{1,2})[:時](\d{0,2})分?\s*[-~～〜－]\s*(\d{1,2})[:時](\d{0,2})分?"
)
ALWAYS_OPEN_MARKERS = ("24時間", "24h", "24 hours")


def parse_hours(hours: str) -> TimeRange | None:
    """Parse an opening-hours string. Returns None if it cannot be parsed."""
    if any(marker in hours for marker in ALWAYS_OPEN_MARKERS):
        return TimeRange(0, 0)

    match = HOURS_PATTERN.search(hours)
    if not match:
        return None

    start_hour = int(match.group(1))
    start_minute = int(match.group(2) or 0)
    end_hour = int(match.group(3))
    end_minute = int(match.group(4) or 0)
    if start_hour > 24 or end_hour > 24 or start_minute >= 60 or end_minute >= 60:
        return None

    return TimeRange((start_hour * 60 + start_minute) % 1440, (end_hour * 60 + end_minute) % 1440)


def is_open_for_stay(hours: OpeningHours | None, interval: StayInterval) -> bool:
    """Check whether a facility is open for the whole stay.

    Unknown or unparseable hours are treated as open.
    """
    if hours is None or hours.is_24h:
        return True

    text = hours.hours
    if not text:
        return True

    window = parse_hours(text)
    if window is None or window.is_all_day:
        return True

    entry = interval.entry
    if not window.contains(entry.hour * 60 + entry.minute):
        return False

    # The stay must end no later than the first closing time after entry
    closing = datetime.combine(
        entry.date(),
        time(window.end_minute // 60, window.end_minute % 60),
        tzinfo=entry.tzinfo,
    )
    if closing <= entry:
        closing += timedelta(days=1)
    return interval.exit <= closing


def operating_status(hours: OpeningHours | None, interval: StayInterval) -> str:
    """Human-readable opening status for a stay."""
    if hours is None or hours.is_24h:
        return "Open 24 hours"

    text = hours.hours
    if not text:
        return "Hours unknown"

    if is_open_for_stay(hours, interval):
        return f"Open ({text})"
    return f"Closed during stay ({text})"
