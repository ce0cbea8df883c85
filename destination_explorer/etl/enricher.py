"""Concurrent enrichment of raw Places candidates with details and Wikipedia data."""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, Iterable, List, Optional

from destination_explorer.etl import transform
from destination_explorer.models import ENRICHED, FAILED, SKIPPED, EnrichmentOutcome, Place
from destination_explorer.vendors import google_places, wikipedia

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def fetch_details(place_id: str, api_key: str) -> Dict[str, Any]:
    """Fetch the detail record, substituting an empty one when Places reports a failure status.

    Transport errors propagate so the candidate is dropped rather than stored
    with hollow details.
    """
    try:
        return google_places.place_details(place_id=place_id, api_key=api_key)
    except google_places.GooglePlacesError as exc:
        logger.warning("Failed to fetch details for %s, continuing with empty details: %s", place_id, exc)
        return {}


def lookup_wikipedia(name: str, lat: float, lng: float) -> Dict[str, Any]:
    """Best-effort description and thumbnail for a place.

    Tries a full-text search on the name first and falls back to the nearest
    article around the coordinate. Any failure yields an empty result.
    """
    empty: Dict[str, Any] = {"description": "", "image": None}
    try:
        title = wikipedia.search_title(name)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Wikipedia search failed for %s: %s", name, exc)
        title = None

    try:
        if not title:
            title = wikipedia.nearby_title(lat, lng)
        if not title:
            return empty
        summary = wikipedia.page_summary(title)
    except Exception as exc:  # noqa: BLE001
        logger.debug("Wikipedia lookup failed for %s: %s", name, exc)
        return empty

    return {"description": summary.get("description") or "", "image": summary.get("image")}


def enrich_candidate(candidate: Optional[Dict[str, Any]], *, destination_key: str, api_key: str) -> EnrichmentOutcome:
    """Turn one raw candidate into a place, or explain why it was dropped."""
    if not transform.has_required_fields(candidate):
        name = (candidate or {}).get("name") or "Unknown"
        logger.debug("Skipping place due to missing essential info: %s", name)
        return EnrichmentOutcome.skipped("missing id, name or coordinates")

    name = candidate["name"]
    if transform.is_excluded(candidate.get("types")):
        logger.debug("Skipping excluded category: %s", name)
        return EnrichmentOutcome.skipped("excluded category")

    try:
        details = fetch_details(candidate["place_id"], api_key)
        if transform.is_excluded(details.get("types")):
            logger.debug("Skipping excluded category based on details: %s", name)
            return EnrichmentOutcome.skipped("excluded category")

        google_photo = transform.resolve_photo_url(details, candidate, api_key)
        lat, lng = transform.extract_location(candidate)
        wiki = lookup_wikipedia(name, lat, lng)

        place = transform.to_place(
            candidate,
            details,
            destination_key=destination_key,
            description=wiki["description"],
            photo_url=google_photo or wiki["image"] or "",
        )
    except Exception as exc:  # noqa: BLE001
        logger.warning("Skipping place %r due to processing error: %s", name, exc)
        return EnrichmentOutcome.failed(str(exc))

    return EnrichmentOutcome.enriched(place)


def enrich_candidates(
    candidates: Iterable[Optional[Dict[str, Any]]],
    *,
    destination_key: str,
    api_key: str,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> List[Place]:
    """Enrich every candidate on a bounded pool and keep the successful ones.

    Outcomes are joined in input order; a failing task never affects its
    siblings.
    """
    candidates = list(candidates)
    if not candidates:
        return []

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="enrich") as executor:
        futures = [
            executor.submit(enrich_candidate, candidate, destination_key=destination_key, api_key=api_key)
            for candidate in candidates
        ]
        outcomes = []
        for future in futures:
            try:
                outcomes.append(future.result())
            except Exception as exc:  # noqa: BLE001
                logger.warning("Enrichment task crashed: %s", exc)
                outcomes.append(EnrichmentOutcome.failed(str(exc)))

    counts = Counter(outcome.status for outcome in outcomes)
    logger.info(
        "Enriched %d of %d candidates (skipped=%d, failed=%d)",
        counts[ENRICHED],
        len(candidates),
        counts[SKIPPED],
        counts[FAILED],
    )
    return [outcome.place for outcome in outcomes if outcome.status == ENRICHED and outcome.place is not None]
