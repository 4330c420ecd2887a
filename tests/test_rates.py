import pytest

from parkfee.models import DayType, RateRule, RuleKind, TimeRange
from parkfee.rates import (
    RuleSetStatus,
    classify_rule_set,
    parse_day_type,
    parse_rule,
    parse_rule_set,
    parse_time_range,
    rule_to_record,
)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("08:00-22:00", TimeRange(480, 1320)),
        ("8:00～22:00", TimeRange(480, 1320)),
        ("22:00〜8:00", TimeRange(1320, 480)),
        ("22:00~08:00", TimeRange(1320, 480)),
        (" 9:30 - 17:45 ", TimeRange(570, 1065)),
        ("8:00-24:00", TimeRange(480, 0)),
        ("0:00-24:00", TimeRange(0, 0)),
    ],
)
def test_parse_time_range(text, expected):
    assert parse_time_range(text) == expected


@pytest.mark.parametrize("text", ["", "late night", "25:00-3:00", "8:75-9:00", "8:00/22:00"])
def test_parse_time_range_malformed(text):
    assert parse_time_range(text) is None


def test_parse_day_type_tags():
    assert parse_day_type("平日") is DayType.WEEKDAY
    assert parse_day_type("Weekday") is DayType.WEEKDAY
    assert parse_day_type("土日祝") is DayType.WEEKEND_HOLIDAY
    assert parse_day_type("weekend_holiday") is DayType.WEEKEND_HOLIDAY
    assert parse_day_type("全日") is None
    with pytest.raises(ValueError):
        parse_day_type("第2火曜")


def test_parse_rule_accepts_camel_case_keys():
    rule = parse_rule(
        {"type": "base", "minutes": 30, "price": 300, "timeRange": "8:00～20:00", "dayType": "平日", "applyAfter": 30}
    )
    assert rule == RateRule(
        kind=RuleKind.BASE,
        unit_minutes=30,
        unit_price=300,
        time_range=TimeRange(480, 1200),
        day_type=DayType.WEEKDAY,
        apply_after=30,
    )


def test_parse_rule_marks_bad_time_range_as_malformed():
    """A rule with an unreadable time range is kept but never matches."""
    rule = parse_rule({"type": "base", "minutes": 30, "price": 300, "time_range": "夜間"})
    assert rule.malformed
    assert rule.time_range is None


def test_parse_rule_set_skips_unknown_and_non_numeric():
    rules = parse_rule_set(
        [
            {"type": "base", "minutes": 20, "price": 200},
            {"type": "coupon", "minutes": 60, "price": 0},
            {"type": "max", "minutes": "all day", "price": 1200},
        ]
    )
    assert len(rules) == 1
    assert rules[0].kind is RuleKind.BASE


def test_parse_rule_missing_price():
    rule = parse_rule({"type": "max", "minutes": 1440})
    assert rule.unit_price is None


def test_classify_free_facility():
    rules = parse_rule_set([{"type": "base", "minutes": 0, "price": 0}])
    assert classify_rule_set(rules, 600) is RuleSetStatus.FREE


def test_classify_conditional_free_within_threshold_is_unavailable():
    rules = parse_rule_set(
        [
            {"type": "base", "minutes": 30, "price": 300},
            {"type": "conditional_free", "minutes": 60, "price": 0},
        ]
    )
    assert classify_rule_set(rules, 60) is RuleSetStatus.UNAVAILABLE
    assert classify_rule_set(rules, 61) is RuleSetStatus.BILLABLE


def test_classify_max_only():
    rules = parse_rule_set([{"type": "max", "minutes": 1440, "price": 1000}])
    assert classify_rule_set(rules, 60) is RuleSetStatus.FLAT_MAX


def test_classify_time_scoped_max_only_is_unavailable():
    rules = parse_rule_set([{"type": "max", "minutes": 0, "price": 500, "time_range": "20:00-8:00"}])
    assert classify_rule_set(rules, 60) is RuleSetStatus.UNAVAILABLE


def test_classify_base_without_minutes_is_unavailable():
    rules = parse_rule_set([{"type": "base", "minutes": 0, "price": 300}])
    assert classify_rule_set(rules, 60) is RuleSetStatus.UNAVAILABLE


def test_rule_to_record_round_trip():
    raw = {"type": "base", "minutes": 60, "price": 100, "time_range": "22:00-08:00", "day_type": "weekday"}
    rule = parse_rule(raw)
    assert parse_rule(rule_to_record(rule)) == rule


def test_rule_to_record_drops_malformed():
    rule = parse_rule({"type": "base", "minutes": 30, "price": 300, "time_range": "??"})
    assert rule_to_record(rule) is None
