"""Tests for facility loading and persistence."""

import pytest

from parkfee import db
from parkfee.facilities import (
    DEFAULT_CONFIG_PATH,
    FacilityDataError,
    facility_from_record,
    get_facilities,
    get_facility,
    load_facilities_from_yaml,
    save_facilities_to_db,
)
from parkfee.models import OpeningHours, RuleKind

YAML = """
facilities:
  - id: "p1"
    name: "Station Parking"
    lat: 35.68
    lng: 139.76
    hours: "8:00～22:00"
    rates:
      - type: base
        minutes: 20
        price: 200
        time_range: "8:00～22:00"
      - type: base
        minutes: 60
        price: 100
        time_range: "22:00～8:00"
      - type: max
        minutes: 1440
        price: 1500
        day_type: 土日祝
  - id: 2
    name: "Riverside"
    hours:
      is_24h: true
    rates: []
"""


@pytest.fixture
def db_path(tmp_path):
    path = tmp_path / "parkfee.db"
    db.init_db(path)
    return path


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "facilities.yaml"
    path.write_text(YAML, encoding="utf-8")
    return path


def test_load_facilities_from_yaml(config_path):
    facilities = load_facilities_from_yaml(config_path)

    assert [f.id for f in facilities] == ["p1", "2"]
    assert facilities[0].hours == OpeningHours(is_24h=False, hours="8:00～22:00")
    assert [r.kind for r in facilities[0].rules] == [RuleKind.BASE, RuleKind.BASE, RuleKind.MAX]
    assert facilities[1].hours.is_24h
    assert facilities[1].rules == ()


def test_bundled_config_loads():
    facilities = load_facilities_from_yaml(DEFAULT_CONFIG_PATH)
    assert len(facilities) == 4
    assert all(f.rules for f in facilities)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FacilityDataError):
        load_facilities_from_yaml(tmp_path / "missing.yaml")


def test_record_without_name_raises():
    with pytest.raises(FacilityDataError, match="name"):
        facility_from_record({"id": "x", "rates": []})


def test_save_and_reload(db_path, config_path):
    facilities = load_facilities_from_yaml(config_path)
    assert save_facilities_to_db(facilities, db_path) == 2

    reloaded = get_facilities(db_path)
    assert [f.name for f in reloaded] == ["Riverside", "Station Parking"]

    station = get_facility("p1", db_path)
    assert station.rules == facilities[0].rules
    assert station.hours == facilities[0].hours
    assert station.latitude == pytest.approx(35.68)


def test_save_replaces_rates(db_path, config_path):
    facilities = load_facilities_from_yaml(config_path)
    save_facilities_to_db(facilities, db_path)

    updated = facility_from_record({"id": "p1", "name": "Station Parking", "rates": [{"type": "base", "minutes": 30, "price": 250}]})
    save_facilities_to_db([updated], db_path)

    assert len(get_facility("p1", db_path).rules) == 1
    assert get_facility("missing", db_path) is None


def test_get_stats(db_path, config_path):
    save_facilities_to_db(load_facilities_from_yaml(config_path), db_path)
    stats = db.get_stats(db_path)

    assert stats["facilities"]["count"] == 2
    assert stats["rates_by_type"] == {"base": 2, "max": 1}
    assert stats["facilities_without_rates"]["count"] == 1
