"""Database helpers for the destination explorer."""

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import extras, pool

from destination_explorer.core.config import get_settings
from destination_explorer.core.errors import PersistenceError
from destination_explorer.models import Destination, Place

logger = logging.getLogger(__name__)

EXCLUDED_CATEGORY = "travel_agency"

_connection_pool: Optional[pool.ThreadedConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 10) -> pool.ThreadedConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.ThreadedConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_SCHEMA = """
CREATE TABLE IF NOT EXISTS destinations (
    key TEXT PRIMARY KEY,
    name TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS places (
    spot_id TEXT PRIMARY KEY,
    destination_key TEXT NOT NULL REFERENCES destinations (key),
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    address TEXT NOT NULL DEFAULT '',
    business_status TEXT NOT NULL DEFAULT '',
    rating DOUBLE PRECISION,
    categories TEXT[] NOT NULL DEFAULT '{}',
    review_count INTEGER NOT NULL DEFAULT 0,
    opening_hours TEXT[] NOT NULL DEFAULT '{}',
    phone TEXT NOT NULL DEFAULT '',
    website TEXT NOT NULL DEFAULT '',
    photo_url TEXT NOT NULL DEFAULT '',
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_places_destination_key ON places (destination_key);

CREATE TABLE IF NOT EXISTS destination_refreshes (
    destination_key TEXT PRIMARY KEY REFERENCES destinations (key),
    refreshed_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""


def init_schema() -> None:
    """Create the destinations and places tables when they are missing."""
    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_SCHEMA)
        conn.commit()
    logger.info("Database schema ensured")


_INSERT_DESTINATION = """
INSERT INTO destinations (key, name)
VALUES (%(key)s, %(name)s)
ON CONFLICT (key) DO NOTHING;
"""

_INSERT_PLACE = """
INSERT INTO places (
    spot_id,
    destination_key,
    name,
    description,
    address,
    business_status,
    rating,
    categories,
    review_count,
    opening_hours,
    phone,
    website,
    photo_url
) VALUES (
    %(spot_id)s,
    %(destination_key)s,
    %(name)s,
    %(description)s,
    %(address)s,
    %(business_status)s,
    %(rating)s,
    %(categories)s,
    %(review_count)s,
    %(opening_hours)s,
    %(phone)s,
    %(website)s,
    %(photo_url)s
)
ON CONFLICT (spot_id) DO NOTHING;
"""

_SELECT_DESTINATION = "SELECT key, name, created_at FROM destinations WHERE key = %(key)s LIMIT 1;"

_MARK_DESTINATION_REFRESHED = """
INSERT INTO destination_refreshes (destination_key, refreshed_at)
VALUES (%(key)s, NOW())
ON CONFLICT (destination_key) DO UPDATE SET refreshed_at = EXCLUDED.refreshed_at;
"""

_SELECT_DESTINATION_REFRESHED_AT = """
SELECT COALESCE(r.refreshed_at, d.created_at) AS refreshed_at
FROM destinations d
LEFT JOIN destination_refreshes r ON r.destination_key = d.key
WHERE d.key = %(key)s;
"""

_SELECT_DESTINATION_PLACES = """
SELECT
    spot_id,
    destination_key,
    name,
    description,
    address,
    business_status,
    rating,
    categories,
    review_count,
    opening_hours,
    phone,
    website,
    photo_url,
    created_at
FROM places
WHERE destination_key = %(key)s
  AND NOT (categories @> ARRAY[%(excluded)s]::TEXT[])
ORDER BY created_at, spot_id;
"""

_SELECT_PLACE = "SELECT * FROM places WHERE spot_id = %(spot_id)s;"


def _prepare_place_params(place: Place) -> Dict[str, Any]:
    return {
        "spot_id": place.spot_id,
        "destination_key": place.destination_key,
        "name": place.name,
        "description": place.description or "",
        "address": place.address or "",
        "business_status": place.business_status or "",
        "rating": place.rating,
        "categories": list(place.categories or []),
        "review_count": place.review_count or 0,
        "opening_hours": list(place.opening_hours or []),
        "phone": place.phone or "",
        "website": place.website or "",
        "photo_url": place.photo_url or "",
    }


def _execute_create(sql: str, params: Dict[str, Any], label: str) -> bool:
    try:
        with get_connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, params)
                    created = cur.rowcount == 1
                conn.commit()
            except psycopg2.Error:
                conn.rollback()
                raise
    except psycopg2.Error as exc:
        raise PersistenceError(f"failed to write {label}: {exc}") from exc
    return created


def create_destination(destination: Destination) -> bool:
    """Insert a destination if absent.

    Existing rows are never updated. Returns True when a new row was written.
    """
    if not destination.key or not destination.name:
        raise ValueError("key and name are required to create a destination")
    params = {"key": destination.key, "name": destination.name}
    created = _execute_create(_INSERT_DESTINATION, params, f"destination {destination.key}")
    logger.debug("Destination %s %s", destination.key, "created" if created else "already present")
    return created


def create_place(place: Place) -> bool:
    """Insert a place keyed by spot id; the first successful write wins.

    Conflicting writes for an existing spot id are discarded, not merged.
    Returns True when a new row was written.
    """
    params = _prepare_place_params(place)
    if not params["spot_id"] or not params["destination_key"]:
        raise ValueError("spot_id and destination_key are required to create a place")
    created = _execute_create(_INSERT_PLACE, params, f"place {place.spot_id}")
    logger.debug("Place %s %s", place.spot_id, "created" if created else "already present")
    return created


def load_destination_places(key: str) -> Optional[List[Dict[str, Any]]]:
    """Return the non-excluded place rows of a destination.

    Returns None when the destination itself has never been stored.
    """
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_SELECT_DESTINATION, {"key": key})
            if cur.fetchone() is None:
                return None
            cur.execute(_SELECT_DESTINATION_PLACES, {"key": key, "excluded": EXCLUDED_CATEGORY})
            rows = cur.fetchall()
        conn.rollback()
    return [dict(row) for row in rows]


def get_place(spot_id: str) -> Optional[Dict[str, Any]]:
    """Read a single place row by spot id."""
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_SELECT_PLACE, {"spot_id": spot_id})
            row = cur.fetchone()
        conn.rollback()
    return dict(row) if row is not None else None


def mark_destination_refreshed(key: str) -> None:
    """Record that a destination was just fetched from the providers.

    Kept apart from the destination row, which is never updated.
    """
    _execute_create(_MARK_DESTINATION_REFRESHED, {"key": key}, f"refresh marker for {key}")


def destination_refreshed_at(key: str) -> Optional[datetime]:
    """Time of the last provider fetch, falling back to when the destination was created."""
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_SELECT_DESTINATION_REFRESHED_AT, {"key": key})
            row = cur.fetchone()
        conn.rollback()
    return row["refreshed_at"] if row is not None else None
