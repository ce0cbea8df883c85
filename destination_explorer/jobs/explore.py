"""Build the ranked list of places to visit for a destination."""

from __future__ import annotations

import argparse
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from destination_explorer.core import db
from destination_explorer.core.cache import CacheGate
from destination_explorer.core.config import Settings, get_settings
from destination_explorer.core.errors import BuildError, PersistenceError, ValidationError
from destination_explorer.etl.enricher import enrich_candidates
from destination_explorer.etl.fetcher import fetch_raw_places
from destination_explorer.etl.ranking import rank_places
from destination_explorer.models import Destination, Place

logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to build destination result"


@dataclass
class BuildResult:
    places: List[Place]
    cache_hit: bool
    persist_failures: List[str] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "data": [place.to_dict() for place in self.places],
            "meta": {
                "cache": "hit" if self.cache_hit else "miss",
                "persistFailures": list(self.persist_failures),
            },
        }


def validate_request(destination_key: Optional[str], city_name: Optional[str]) -> Tuple[str, str]:
    destination_key = str(destination_key or "").strip()
    city_name = str(city_name or "").strip()
    if not destination_key or not city_name:
        raise ValidationError("Missing cityName or destinationKey")
    return destination_key, city_name


def persist_places(places: List[Place]) -> List[str]:
    """Write each place independently and return the spot ids that failed."""
    failures = []
    for place in places:
        try:
            db.create_place(place)
        except (PersistenceError, ValueError) as exc:
            logger.error("Failed to persist place %s: %s", place.spot_id, exc)
            failures.append(place.spot_id)
    return failures


def _build(destination_key: str, city_name: str, settings: Settings) -> BuildResult:
    cache = CacheGate.from_settings(settings)
    lookup = cache.lookup(destination_key)
    if lookup.hit:
        return BuildResult(places=rank_places(lookup.places), cache_hit=True)
    logger.info("Cache miss for destination %s (%s); fetching from providers", destination_key, lookup.reason)

    if not settings.google_api_key:
        raise RuntimeError("GOOGLE_API_KEY is required")

    db.create_destination(Destination(key=destination_key, name=city_name))

    raw_places = fetch_raw_places(
        city_name,
        settings.google_api_key,
        max_pages=settings.max_pages,
        page_token_delay=settings.page_token_delay_seconds,
    )
    places = enrich_candidates(
        raw_places,
        destination_key=destination_key,
        api_key=settings.google_api_key,
        max_workers=settings.enrich_max_workers,
    )
    persist_failures = persist_places(places)
    if persist_failures:
        logger.warning("%d places could not be stored for destination %s", len(persist_failures), destination_key)

    try:
        db.mark_destination_refreshed(destination_key)
    except PersistenceError as exc:
        logger.error("Failed to record refresh for destination %s: %s", destination_key, exc)

    return BuildResult(places=rank_places(places), cache_hit=False, persist_failures=persist_failures)


def build_destination_result(
    destination_key: Optional[str],
    city_name: Optional[str],
    *,
    settings: Optional[Settings] = None,
) -> BuildResult:
    """Serve a destination from the store, or fetch, enrich and store it.

    Raises ValidationError before touching the store or any provider when a
    field is missing. Anything else that escapes is reported as a single
    BuildError with no partial data.
    """
    destination_key, city_name = validate_request(destination_key, city_name)
    logger.info("Building destination result for key=%s city=%s", destination_key, city_name)

    try:
        result = _build(destination_key, city_name, settings or get_settings())
    except Exception as exc:  # noqa: BLE001
        logger.exception("Error building destination result for %s: %s", destination_key, exc)
        raise BuildError(GENERIC_FAILURE_MESSAGE) from exc

    logger.info(
        "Returning %d %s places for destination %s",
        len(result.places),
        "cached" if result.cache_hit else "freshly fetched",
        destination_key,
    )
    return result


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build the ranked places list for a destination")
    parser.add_argument("--destination-key", dest="destination_key", required=True, help="Provider id of the destination")
    parser.add_argument("--city", dest="city_name", required=True, help="Destination display name used for search")
    parser.add_argument("--init-schema", dest="init_schema", action="store_true", help="Create tables before running")
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    if args.init_schema:
        db.init_schema()

    try:
        result = build_destination_result(args.destination_key, args.city_name)
    except ValidationError as exc:
        logger.error("Invalid request: %s", exc)
        raise SystemExit(2) from exc
    except BuildError as exc:
        raise SystemExit(1) from exc

    print(json.dumps(result.to_payload(), ensure_ascii=False, indent=2))


if __name__ == "__main__":
    main()
