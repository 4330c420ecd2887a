"""Database connection and schema management."""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

DEFAULT_DB_PATH = Path.home() / ".local" / "share" / "parkfee" / "parkfee.db"

SCHEMA = """
-- Parking facilities
CREATE TABLE IF NOT EXISTS facilities (
    id TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'coin_parking',
    latitude REAL,
    longitude REAL,
    is_24h INTEGER NOT NULL DEFAULT 0,
    hours TEXT
);

-- Rate rules, kept in their original order per facility
CREATE TABLE IF NOT EXISTS facility_rates (
    id INTEGER PRIMARY KEY,
    facility_id TEXT NOT NULL,
    position INTEGER NOT NULL,
    type TEXT NOT NULL,
    minutes INTEGER NOT NULL DEFAULT 0,
    price INTEGER,
    time_range TEXT,
    day_type TEXT,
    apply_after INTEGER,
    FOREIGN KEY (facility_id) REFERENCES facilities(id),
    UNIQUE(facility_id, position)
);

CREATE INDEX IF NOT EXISTS idx_rates_facility ON facility_rates(facility_id, position);
CREATE INDEX IF NOT EXISTS idx_facilities_location ON facilities(latitude, longitude);
"""


def get_db_path() -> Path:
    """Get the database path, creating parent directories if needed."""
    db_path = Path(os.environ.get("PARKFEE_DB_PATH", DEFAULT_DB_PATH))
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return db_path


@contextmanager
def get_connection(db_path: Path | None = None) -> Iterator[sqlite3.Connection]:
    """Get a database connection with row factory enabled."""
    path = db_path or get_db_path()
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Path | None = None) -> None:
    """Initialize the database schema."""
    with get_connection(db_path) as conn:
        conn.executescript(SCHEMA)
        conn.commit()


def get_stats(db_path: Path | None = None) -> dict:
    """Get database statistics."""
    with get_connection(db_path) as conn:
        stats = {}

        row = conn.execute("SELECT COUNT(*) as count FROM facilities").fetchone()
        stats["facilities"] = {"count": row["count"]}

        rows = conn.execute(
            "SELECT type, COUNT(*) as count FROM facility_rates GROUP BY type"
        ).fetchall()
        stats["rates_by_type"] = {row["type"]: row["count"] for row in rows}

        row = conn.execute(
            "SELECT COUNT(*) as count FROM facilities WHERE id NOT IN (SELECT DISTINCT facility_id FROM facility_rates)"
        ).fetchone()
        stats["facilities_without_rates"] = {"count": row["count"]}

        return stats
