"""Day-type classification for day-restricted rate rules."""

from datetime import date, datetime
from typing import Callable, Iterable

from .models import DayType

DayTypeResolver = Callable[[datetime], DayType]


def weekend_day_type(instant: datetime) -> DayType:
    """Saturday and Sunday are WEEKEND_HOLIDAY, every other day is WEEKDAY.

    Public holidays are not consulted; use HolidayCalendar for that.
    """
    if instant.weekday() >= 5:
        return DayType.WEEKEND_HOLIDAY
    return DayType.WEEKDAY


class HolidayCalendar:
    """Resolver that also treats the given dates as holidays."""

    def __init__(self, holidays: Iterable[date]):
        self.holidays = frozenset(holidays)

    def __call__(self, instant: datetime) -> DayType:
        if instant.date() in self.holidays:
            return DayType.WEEKEND_HOLIDAY
        return weekend_day_type(instant)
