"""Utilities for transforming Google Places responses into places and back from rows."""

import logging
from typing import Any, Dict, Iterable, Optional, Tuple

from destination_explorer.core.db import EXCLUDED_CATEGORY
from destination_explorer.models import Place
from destination_explorer.vendors import google_places

logger = logging.getLogger(__name__)


def has_required_fields(candidate: Optional[Dict[str, Any]]) -> bool:
    """A raw candidate needs an id, a name and a coordinate to be enriched."""
    if not candidate:
        return False
    return bool(candidate.get("place_id") and candidate.get("name") and extract_location(candidate))


def extract_location(candidate: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    location = (candidate.get("geometry") or {}).get("location") or {}
    lat = location.get("lat")
    lng = location.get("lng")
    if lat is None or lng is None:
        return None
    return lat, lng


def is_excluded(categories: Optional[Iterable[str]]) -> bool:
    return EXCLUDED_CATEGORY in set(categories or [])


def _first_photo_reference(record: Dict[str, Any]) -> Optional[str]:
    photos = record.get("photos") or []
    if not photos:
        return None
    return photos[0].get("photo_reference") or None


def resolve_photo_url(details: Dict[str, Any], candidate: Dict[str, Any], api_key: str) -> Optional[str]:
    """Prefer the detail record's photo, then the raw candidate's own photo."""
    reference = _first_photo_reference(details) or _first_photo_reference(candidate)
    if not reference:
        return None
    return google_places.photo_url(reference, api_key)


def to_place(
    candidate: Dict[str, Any],
    details: Dict[str, Any],
    *,
    destination_key: str,
    description: str = "",
    photo_url: str = "",
) -> Place:
    """Merge a raw candidate with its (possibly empty) detail record."""
    opening_hours = (details.get("opening_hours") or {}).get("weekday_text") or []
    return Place(
        spot_id=candidate["place_id"],
        destination_key=destination_key,
        name=candidate["name"],
        description=description or "",
        address=details.get("formatted_address") or "",
        business_status=details.get("business_status") or "",
        rating=details.get("rating"),
        categories=list(details.get("types") or []),
        review_count=details.get("user_ratings_total") or 0,
        opening_hours=list(opening_hours),
        phone=details.get("formatted_phone_number") or "",
        website=details.get("website") or "",
        photo_url=photo_url or "",
    )


def row_to_place(row: Dict[str, Any]) -> Place:
    """Build a place from a ``places`` table row."""
    rating = row.get("rating")
    return Place(
        spot_id=row["spot_id"],
        destination_key=row["destination_key"],
        name=row.get("name") or "",
        description=row.get("description") or "",
        address=row.get("address") or "",
        business_status=row.get("business_status") or "",
        rating=float(rating) if rating is not None else None,
        categories=list(row.get("categories") or []),
        review_count=row.get("review_count") or 0,
        opening_hours=list(row.get("opening_hours") or []),
        phone=row.get("phone") or "",
        website=row.get("website") or "",
        photo_url=row.get("photo_url") or "",
    )
