from parkfee.rates import parse_rule_set
from parkfee.reports.rate_summary import NO_RATE_INFO, format_rate_summary


def test_empty_rule_set():
    assert format_rate_summary(()) == NO_RATE_INFO


def test_day_night_with_caps():
    rules = parse_rule_set(
        [
            {"type": "base", "minutes": 20, "price": 200, "time_range": "8:00-22:00"},
            {"type": "base", "minutes": 60, "price": 100, "time_range": "22:00-8:00"},
            {"type": "max", "minutes": 480, "price": 1500},
            {"type": "max", "minutes": 1440, "price": 1200},
        ]
    )
    assert format_rate_summary(rules).splitlines() == [
        "¥200 per 20 min (08:00-22:00)",
        "¥100 per 1 h (22:00-08:00)",
        "Max ¥1,500 per 8 h",
        "Max ¥1,200 per day",
    ]


def test_free_and_conditional_rules():
    rules = parse_rule_set(
        [
            {"type": "base", "minutes": 0, "price": 0},
            {"type": "conditional_free", "minutes": 60, "price": 0},
            {"type": "base", "minutes": 30, "price": 300, "apply_after": 30, "day_type": "weekday"},
            {"type": "progressive", "minutes": 60, "price": 100, "apply_after": 120},
        ]
    )
    assert format_rate_summary(rules).splitlines() == [
        "Free",
        "Free for 60 min with qualifying purchase",
        "¥300 per 30 min after the first 30 min (free until then) (Weekdays)",
        "¥100 per 1 h after 120 min",
    ]


def test_malformed_schedule_is_flagged():
    rules = parse_rule_set([{"type": "max", "minutes": 0, "price": 800, "time_range": "夜間"}])
    assert format_rate_summary(rules) == "Max ¥800 all day (unreadable schedule)"
