"""Cache-aside lookup of previously built destinations."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from destination_explorer.core import db
from destination_explorer.etl.transform import is_excluded, row_to_place
from destination_explorer.models import Place

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class CacheLookup:
    hit: bool
    places: List[Place] = field(default_factory=list)
    reason: str = ""


class CacheGate:
    """Decides whether a destination can be served from stored rows.

    Stored rows are never updated, so a stale or disabled cache only changes
    whether a request re-fetches; it never rewrites what is stored. Freshness
    is measured from the last provider fetch, which every miss records.
    """

    def __init__(self, enabled: bool = True, max_age: Optional[timedelta] = None) -> None:
        self.enabled = enabled
        self.max_age = max_age if max_age and max_age.total_seconds() > 0 else None

    @classmethod
    def from_settings(cls, settings) -> "CacheGate":
        max_age = timedelta(seconds=settings.cache_max_age_seconds) if settings.cache_max_age_seconds > 0 else None
        return cls(enabled=settings.use_cache, max_age=max_age)

    def is_fresh(self, refreshed_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
        """Destinations stay fresh forever unless a max age is configured."""
        if self.max_age is None or refreshed_at is None:
            return True
        now = now or datetime.now(timezone.utc)
        if refreshed_at.tzinfo is None:
            refreshed_at = refreshed_at.replace(tzinfo=timezone.utc)
        return now - refreshed_at < self.max_age

    def lookup(self, destination_key: str) -> CacheLookup:
        if not self.enabled:
            return CacheLookup(hit=False, reason="cache disabled")

        rows = db.load_destination_places(destination_key)
        if rows is None:
            return CacheLookup(hit=False, reason="destination not stored")

        rows = [row for row in rows if not is_excluded(row.get("categories"))]
        if not rows:
            return CacheLookup(hit=False, reason="no stored places")
        if self.max_age is not None and not self.is_fresh(db.destination_refreshed_at(destination_key)):
            return CacheLookup(hit=False, reason="stored places are stale")

        logger.info("Cache hit for destination %s with %d places", destination_key, len(rows))
        return CacheLookup(hit=True, places=[row_to_place(row) for row in rows], reason="stored")
