"""Data models for parking facilities, rate rules and fee calculation."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

MINUTES_PER_DAY = 1440


class RuleKind(Enum):
    """The four kinds of rate rule found in facility data."""

    BASE = "base"
    MAX = "max"
    CONDITIONAL_FREE = "conditional_free"
    PROGRESSIVE = "progressive"


class DayType(Enum):
    """Day classification used by day-restricted rules."""

    WEEKDAY = "weekday"
    WEEKEND_HOLIDAY = "weekend_holiday"


class Unavailable:
    """Sentinel for a fee that cannot be computed from the facility data.

    Arithmetic, ordering and truth-testing all raise so the sentinel can
    never be mistaken for a zero (free) or cheapest fee.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self):
        raise TypeError("UNAVAILABLE fee has no truth value; check is_unavailable() first")

    def __lt__(self, other):
        raise TypeError("UNAVAILABLE fee cannot be ordered")

    __le__ = __gt__ = __ge__ = __lt__

    def __repr__(self) -> str:
        return "UNAVAILABLE"


UNAVAILABLE = Unavailable()

FeeResult = int | Unavailable


def is_unavailable(result: FeeResult) -> bool:
    """Return True if a fee result is the UNAVAILABLE sentinel."""
    return result is UNAVAILABLE


@dataclass(frozen=True)
class TimeRange:
    """A daily time-of-day window in minutes since midnight.

    start == end covers the whole day; end < start wraps past midnight.
    """

    start_minute: int
    end_minute: int

    @property
    def is_all_day(self) -> bool:
        return self.start_minute == self.end_minute

    @property
    def wraps_midnight(self) -> bool:
        return self.end_minute < self.start_minute

    def contains(self, minute_of_day: int) -> bool:
        """Check if a minute of the day falls within the range (handles overnight ranges)."""
        if self.is_all_day:
            return True
        if self.wraps_midnight:
            return minute_of_day >= self.start_minute or minute_of_day < self.end_minute
        return self.start_minute <= minute_of_day < self.end_minute

    def __str__(self) -> str:
        return f"{_hhmm(self.start_minute)}-{_hhmm(self.end_minute)}"


def _hhmm(minute_of_day: int) -> str:
    return f"{minute_of_day // 60:02d}:{minute_of_day % 60:02d}"


@dataclass(frozen=True)
class RateRule:
    """A single billing rule of a facility."""

    kind: RuleKind
    unit_minutes: int
    unit_price: int | None
    time_range: TimeRange | None = None
    day_type: DayType | None = None
    apply_after: int | None = None
    malformed: bool = False  # unparseable time_range/day_type; never matches

    @property
    def is_time_scoped(self) -> bool:
        return self.time_range is not None

    @property
    def is_whole_day(self) -> bool:
        return self.unit_minutes in (0, MINUTES_PER_DAY)


RateRuleSet = tuple[RateRule, ...]


@dataclass(frozen=True)
class StayInterval:
    """A continuous stay from entry to exit."""

    entry: datetime
    exit: datetime

    def __post_init__(self):
        if self.exit <= self.entry:
            raise ValueError(f"Stay exit {self.exit} must be after entry {self.entry}")

    @property
    def duration_minutes(self) -> int:
        return whole_minutes(self.entry, self.exit)


@dataclass(frozen=True)
class TimeSegment:
    """A maximal sub-interval during which the applicable rule subset is constant."""

    start: datetime
    end: datetime
    applicable_rules: RateRuleSet

    @property
    def minutes(self) -> int:
        return whole_minutes(self.start, self.end)


@dataclass
class CarryState:
    """Unconsumed part of a capped window that suppresses charges in later segments."""

    remaining_capped_minutes: int = 0


@dataclass
class OpeningHours:
    """Opening hours of a facility as recorded in the source data."""

    is_24h: bool = False
    hours: str | None = None  # e.g. "8:00～22:00"


@dataclass
class Facility:
    """A parking facility with its rate rules."""

    id: str
    name: str
    rules: RateRuleSet
    hours: OpeningHours | None = None
    latitude: float | None = None
    longitude: float | None = None
    category: str = "coin_parking"


def whole_minutes(start: datetime, end: datetime) -> int:
    """Whole minutes between two instants, rounded half up."""
    seconds = (end - start).total_seconds()
    return int(seconds / 60 + 0.5)
