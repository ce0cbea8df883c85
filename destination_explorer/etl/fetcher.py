"""Paginated broad search against Google Places for a destination."""

import logging
import time
from typing import Any, Dict, List

from destination_explorer.vendors import google_places

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 3
DEFAULT_PAGE_TOKEN_DELAY = 2.0


def build_query(city_name: str) -> str:
    return f"places to visit in {city_name.strip()}"


def fetch_raw_places(
    city_name: str,
    api_key: str,
    *,
    max_pages: int = DEFAULT_MAX_PAGES,
    page_token_delay: float = DEFAULT_PAGE_TOKEN_DELAY,
) -> List[Dict[str, Any]]:
    """Collect raw text-search candidates for a city, page by page.

    A continuation token only becomes valid a short while after the page that
    produced it, so we wait ``page_token_delay`` seconds before following it.
    Any provider or network failure stops pagination and returns what has been
    gathered so far; this function never raises.
    """
    query = build_query(city_name)
    logger.info("Running Places text search for query=%s", query)

    results: List[Dict[str, Any]] = []
    page_token = None
    processed_pages = 0

    while processed_pages < max_pages:
        try:
            response = google_places.text_search(query=query, api_key=api_key, pagetoken=page_token)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Stopping pagination after page %d: %s", processed_pages, exc)
            break

        page_results = response.get("results") or []
        results.extend(page_results)
        processed_pages += 1
        logger.info("Fetched %d results on page %d", len(page_results), processed_pages)

        page_token = response.get("next_page_token")
        if not page_token or processed_pages >= max_pages:
            break
        time.sleep(page_token_delay)

    logger.info("Total raw places fetched: %d (pages=%d)", len(results), processed_pages)
    return results
