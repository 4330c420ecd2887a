"""Supabase facility collector.

Fetches parking facility records, including their rate tables, from the
`parking_spots` table through Supabase's PostgREST API.
"""

import logging
import os
from typing import Any

import httpx
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from ..facilities import FacilityDataError, facility_from_record
from ..models import Facility

logger = logging.getLogger(__name__)

TABLE_NAME = "parking_spots"
SELECT_COLUMNS = "id,name,lat,lng,category,rates,hours"
PAGE_SIZE = 1000


class SupabaseError(Exception):
    """Base exception for Supabase collector errors."""

    pass


def get_config() -> tuple[str, str]:
    """Get the Supabase URL and API key from environment."""
    url = os.environ.get("SUPABASE_URL")
    key = os.environ.get("SUPABASE_KEY") or os.environ.get("SUPABASE_ANON_KEY")
    if not url or not key:
        raise SupabaseError(
            "SUPABASE_URL and SUPABASE_KEY environment variables must be set.\n"
            "Find them in your Supabase project under Settings > API."
        )
    return url.rstrip("/"), key


def fetch_records(
    limit: int | None = None,
    url: str | None = None,
    key: str | None = None,
) -> list[dict[str, Any]]:
    """Fetch raw facility rows, paging through the table.

    Args:
        limit: Maximum number of rows to fetch (all rows if None)
        url: Supabase project URL (defaults to SUPABASE_URL env var)
        key: API key (defaults to SUPABASE_KEY env var)

    Returns:
        List of raw row dicts
    """
    if url is None or key is None:
        env_url, env_key = get_config()
        url = url or env_url
        key = key or env_key

    headers = {"apikey": key, "Authorization": f"Bearer {key}"}
    endpoint = f"{url.rstrip('/')}/rest/v1/{TABLE_NAME}"

    rows: list[dict[str, Any]] = []
    offset = 0
    while limit is None or len(rows) < limit:
        page_size = PAGE_SIZE if limit is None else min(PAGE_SIZE, limit - len(rows))
        params = {
            "select": SELECT_COLUMNS,
            "order": "id",
            "limit": page_size,
            "offset": offset,
        }
        try:
            response = httpx.get(endpoint, params=params, headers=headers, timeout=30.0)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise SupabaseError(f"HTTP Error {e.response.status_code}: {e.response.text}") from e
        except httpx.HTTPError as e:
            raise SupabaseError(f"Network error: {e}") from e

        page = response.json()
        rows.extend(page)
        logger.debug("Fetched %d row(s) at offset %d", len(page), offset)
        if len(page) < page_size:
            break
        offset += len(page)

    return rows


def fetch_facilities(
    limit: int | None = None,
    url: str | None = None,
    key: str | None = None,
) -> list[Facility]:
    """Fetch facilities, skipping rows that cannot be turned into a Facility."""
    facilities = []
    for record in fetch_records(limit=limit, url=url, key=key):
        try:
            facilities.append(facility_from_record(record))
        except FacilityDataError as e:
            logger.warning("Skipping row %r: %s", record.get("id"), e)
    return facilities
