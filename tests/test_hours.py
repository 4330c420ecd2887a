from datetime import datetime, timedelta

from parkfee.hours import is_open_for_stay, operating_status, parse_hours
from parkfee.models import OpeningHours, StayInterval, TimeRange

MONDAY = datetime(2025, 9, 22)


def stay(hour: int, minutes: int) -> StayInterval:
    entry = MONDAY.replace(hour=hour)
    return StayInterval(entry, entry + timedelta(minutes=minutes))


def test_parse_hours_variants():
    assert parse_hours("8:00～22:00") == TimeRange(480, 1320)
    assert parse_hours("8時～22時") == TimeRange(480, 1320)
    assert parse_hours("営業時間 7:30-23:00") == TimeRange(450, 1380)
    assert parse_hours("24時間営業").is_all_day
    assert parse_hours("要問合せ") is None


def test_unknown_hours_are_open():
    assert is_open_for_stay(None, stay(3, 60))
    assert is_open_for_stay(OpeningHours(is_24h=True), stay(3, 60))
    assert is_open_for_stay(OpeningHours(hours=""), stay(3, 60))
    assert is_open_for_stay(OpeningHours(hours="要問合せ"), stay(3, 60))


def test_stay_inside_opening_hours():
    hours = OpeningHours(hours="8:00～22:00")
    assert is_open_for_stay(hours, stay(10, 120))
    assert is_open_for_stay(hours, stay(20, 120))


def test_stay_outside_opening_hours():
    hours = OpeningHours(hours="8:00～22:00")
    assert not is_open_for_stay(hours, stay(7, 120))
    assert not is_open_for_stay(hours, stay(21, 120))
    # Closed overnight even though both ends fall inside the window
    assert not is_open_for_stay(hours, stay(10, 24 * 60))


def test_overnight_opening_hours():
    hours = OpeningHours(hours="20:00-6:00")
    assert is_open_for_stay(hours, stay(23, 300))
    assert not is_open_for_stay(hours, stay(23, 480))
    assert not is_open_for_stay(hours, stay(12, 60))


def test_operating_status():
    assert operating_status(None, stay(10, 60)) == "Open 24 hours"
    assert operating_status(OpeningHours(), stay(10, 60)) == "Hours unknown"
    assert operating_status(OpeningHours(hours="8:00～22:00"), stay(10, 60)) == "Open (8:00～22:00)"
    assert operating_status(OpeningHours(hours="8:00～22:00"), stay(21, 120)).startswith("Closed")
