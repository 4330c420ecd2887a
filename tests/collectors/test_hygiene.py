from parkfee.collectors.hygiene import clamp_anomalous_rates, clamp_facility
from parkfee.models import Facility
from parkfee.rates import parse_rule_set


def prices(rules):
    return [r.unit_price for r in rules]


def test_anomalous_base_price_is_clamped():
    rules = parse_rule_set([{"type": "base", "minutes": 30, "price": 12000}])
    assert prices(clamp_anomalous_rates(rules)) == [1000]


def test_max_below_base_is_raised():
    rules = parse_rule_set(
        [
            {"type": "base", "minutes": 30, "price": 300},
            {"type": "max", "minutes": 1440, "price": 200},
        ]
    )
    assert prices(clamp_anomalous_rates(rules)) == [300, 2400]


def test_max_compared_with_clamped_base():
    rules = parse_rule_set(
        [
            {"type": "base", "minutes": 30, "price": 15000},
            {"type": "max", "minutes": 1440, "price": 1500},
        ]
    )
    assert prices(clamp_anomalous_rates(rules)) == [1000, 1500]


def test_plausible_rates_untouched():
    rules = parse_rule_set(
        [
            {"type": "base", "minutes": 20, "price": 200},
            {"type": "max", "minutes": 0, "price": 1200, "time_range": "8:00-22:00"},
        ]
    )
    assert clamp_anomalous_rates(rules) == rules


def test_clamp_facility_keeps_identity():
    facility = Facility(id="x", name="X", rules=parse_rule_set([{"type": "base", "minutes": 30, "price": 50000}]))
    clamped = clamp_facility(facility)
    assert clamped.id == "x"
    assert prices(clamped.rules) == [1000]
    assert prices(facility.rules) == [50000]
