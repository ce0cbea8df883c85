"""Client utilities for the Google Places API."""

import logging
from typing import Any, Dict, Optional

import requests

from destination_explorer.core.errors import ProviderError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://maps.googleapis.com/maps/api/place"
_SUCCESS_STATUSES = {"OK", "ZERO_RESULTS"}

DETAIL_FIELDS = (
    "formatted_address,business_status,rating,user_ratings_total,types,"
    "opening_hours/weekday_text,formatted_phone_number,website,photos,name"
)
PHOTO_MAX_WIDTH = 1024


class GooglePlacesError(ProviderError):
    """Raised when the Places API returns a non-successful response."""


def text_search(query: Optional[str], api_key: str, pagetoken: Optional[str] = None) -> Dict[str, Any]:
    """Run a text search; a page token replaces the query on follow-up pages."""
    params = {"key": api_key}
    if pagetoken:
        params["pagetoken"] = pagetoken
    else:
        params["query"] = query
    response = _SESSION.get(f"{_BASE_URL}/textsearch/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status not in _SUCCESS_STATUSES:
        logger.error("text_search failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload


def place_details(place_id: str, api_key: str, fields: str = DETAIL_FIELDS) -> Dict[str, Any]:
    params = {"place_id": place_id, "key": api_key, "fields": fields}
    response = _SESSION.get(f"{_BASE_URL}/details/json", params=params, timeout=10)
    response.raise_for_status()
    payload = response.json()
    status = payload.get("status")
    if status != "OK":
        logger.warning("place_details failed: status=%s, error_message=%s", status, payload.get("error_message"))
        raise GooglePlacesError(payload.get("error_message") or status)
    return payload.get("result", {})


def photo_url(photo_reference: str, api_key: str, max_width: int = PHOTO_MAX_WIDTH) -> str:
    """Build the fixed-size photo-serving URL for a photo reference."""
    return f"{_BASE_URL}/photo?maxwidth={max_width}&photoreference={photo_reference}&key={api_key}"
