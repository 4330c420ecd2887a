"""Facility loading and persistence."""

from pathlib import Path
from typing import Any

import yaml

from .db import get_connection
from .models import Facility, OpeningHours
from .rates import parse_rule_set, rule_to_record

DEFAULT_CONFIG_PATH = Path(__file__).parent.parent.parent / "config" / "facilities.yaml"


class FacilityDataError(Exception):
    """Raised when a facility file or record cannot be read."""

    pass


def _parse_hours(value: Any) -> OpeningHours | None:
    if value is None:
        return None
    if isinstance(value, str):
        return OpeningHours(is_24h=False, hours=value)
    return OpeningHours(
        is_24h=bool(value.get("is_24h") or value.get("access_24h")),
        hours=value.get("hours") or value.get("original_hours"),
    )


def facility_from_record(record: dict[str, Any]) -> Facility:
    """Build a Facility from a raw record (YAML entry or API row)."""
    try:
        facility_id = str(record["id"])
        name = record["name"]
    except KeyError as e:
        raise FacilityDataError(f"Facility record missing field {e}") from e

    latitude = record.get("latitude", record.get("lat"))
    longitude = record.get("longitude", record.get("lng"))
    try:
        latitude = float(latitude) if latitude is not None else None
        longitude = float(longitude) if longitude is not None else None
    except (TypeError, ValueError) as e:
        raise FacilityDataError(f"Facility {facility_id} has invalid coordinates") from e

    return Facility(
        id=facility_id,
        name=name,
        rules=parse_rule_set(record.get("rates") or []),
        hours=_parse_hours(record.get("hours")),
        latitude=latitude,
        longitude=longitude,
        category=record.get("category") or "coin_parking",
    )


def load_facilities_from_yaml(config_path: Path | None = None) -> list[Facility]:
    """Load facility definitions from YAML config file."""
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise FacilityDataError(f"Cannot read {path}: {e}") from e

    return [facility_from_record(record) for record in data.get("facilities", [])]


def save_facilities_to_db(facilities: list[Facility], db_path: Path | None = None) -> int:
    """Save facilities and their rates to the database. Returns number saved."""
    count = 0
    with get_connection(db_path) as conn:
        for facility in facilities:
            hours = facility.hours
            conn.execute(
                """INSERT OR REPLACE INTO facilities
                   (id, name, category, latitude, longitude, is_24h, hours)
                   VALUES (?, ?, ?, ?, ?, ?, ?)""",
                (
                    facility.id,
                    facility.name,
                    facility.category,
                    facility.latitude,
                    facility.longitude,
                    int(hours.is_24h) if hours else 0,
                    hours.hours if hours else None,
                ),
            )

            # Replace the rate table wholesale
            conn.execute("DELETE FROM facility_rates WHERE facility_id = ?", (facility.id,))

            records = [r for r in (rule_to_record(rule) for rule in facility.rules) if r]
            for position, record in enumerate(records):
                conn.execute(
                    """INSERT INTO facility_rates
                       (facility_id, position, type, minutes, price, time_range, day_type, apply_after)
                       VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                    (
                        facility.id,
                        position,
                        record["type"],
                        record["minutes"],
                        record["price"],
                        record.get("time_range"),
                        record.get("day_type"),
                        record.get("apply_after"),
                    ),
                )
            count += 1
        conn.commit()
    return count


def _facility_from_row(conn, row) -> Facility:
    rates = conn.execute(
        """SELECT type, minutes, price, time_range, day_type, apply_after
           FROM facility_rates WHERE facility_id = ? ORDER BY position""",
        (row["id"],),
    ).fetchall()
    has_hours = row["is_24h"] or row["hours"]
    return Facility(
        id=row["id"],
        name=row["name"],
        rules=parse_rule_set(dict(r) for r in rates),
        hours=OpeningHours(is_24h=bool(row["is_24h"]), hours=row["hours"]) if has_hours else None,
        latitude=row["latitude"],
        longitude=row["longitude"],
        category=row["category"],
    )


def get_facilities(db_path: Path | None = None) -> list[Facility]:
    """Load every stored facility with its rules."""
    with get_connection(db_path) as conn:
        rows = conn.execute("SELECT * FROM facilities ORDER BY name").fetchall()
        return [_facility_from_row(conn, row) for row in rows]


def get_facility(facility_id: str, db_path: Path | None = None) -> Facility | None:
    """Load one stored facility, or None if it does not exist."""
    with get_connection(db_path) as conn:
        row = conn.execute("SELECT * FROM facilities WHERE id = ?", (facility_id,)).fetchone()
        if not row:
            return None
        return _facility_from_row(conn, row)
