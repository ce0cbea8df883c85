"""Client utilities for the Wikipedia search and page summary APIs."""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from destination_explorer.core.config import get_settings
from destination_explorer.core.errors import ProviderError

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_ACTION_URL = "https://en.wikipedia.org/w/api.php"
_SUMMARY_URL = "https://en.wikipedia.org/api/rest_v1/page/summary"

GEOSEARCH_RADIUS_METERS = 1000
GEOSEARCH_LIMIT = 5


class WikipediaError(ProviderError):
    """Raised when Wikipedia returns an error payload."""


def _headers() -> Dict[str, str]:
    return {"User-Agent": get_settings().wikipedia_user_agent}


def _query(params: Dict[str, Any]) -> Dict[str, Any]:
    params = {"action": "query", "format": "json", **params}
    response = _SESSION.get(_ACTION_URL, params=params, headers=_headers(), timeout=10)
    response.raise_for_status()
    payload = response.json()
    if "error" in payload:
        error = payload["error"]
        logger.warning("wikipedia query failed: code=%s info=%s", error.get("code"), error.get("info"))
        raise WikipediaError(error.get("info") or error.get("code") or "unknown error")
    return payload.get("query", {})


def search_title(name: str) -> Optional[str]:
    """Return the title of the top full-text search hit for ``name``."""
    hits = _query({"list": "search", "srsearch": name}).get("search") or []
    if not hits:
        return None
    return hits[0].get("title") or None


def nearby_title(
    lat: float,
    lng: float,
    radius: int = GEOSEARCH_RADIUS_METERS,
    limit: int = GEOSEARCH_LIMIT,
) -> Optional[str]:
    """Return the title of the nearest article around a coordinate."""
    hits = _query({"list": "geosearch", "gscoord": f"{lat}|{lng}", "gsradius": radius, "gslimit": limit}).get(
        "geosearch"
    ) or []
    if not hits:
        return None
    return hits[0].get("title") or None


def page_summary(title: str) -> Dict[str, Any]:
    """Fetch the summary record for an article title.

    Returns a dict with ``title``, ``description`` (possibly empty) and
    ``image`` (thumbnail URL or None).
    """
    url = f"{_SUMMARY_URL}/{quote(title.replace(' ', '_'), safe='')}"
    response = _SESSION.get(url, headers=_headers(), timeout=10)
    response.raise_for_status()
    payload = response.json()
    thumbnail = payload.get("thumbnail") or {}
    return {
        "title": title,
        "description": payload.get("extract") or "",
        "image": thumbnail.get("source") or None,
    }
