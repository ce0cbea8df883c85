"""Core data models shared by the destination explorer pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

ENRICHED = "enriched"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass(slots=True)
class Destination:
    """Searchable area (usually a city) a request is scoped to."""

    key: str
    name: str


@dataclass(slots=True)
class Place:
    """Point of interest belonging to a destination, ready to persist or return."""

    spot_id: str
    destination_key: str
    name: str
    description: str = ""
    address: str = ""
    business_status: str = ""
    rating: Optional[float] = None
    categories: List[str] = field(default_factory=list)
    review_count: int = 0
    opening_hours: List[str] = field(default_factory=list)
    phone: str = ""
    website: str = ""
    photo_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Serialise using the field names the mobile client expects."""
        return {
            "spotId": self.spot_id,
            "destinationKey": self.destination_key,
            "name": self.name,
            "description": self.description,
            "address": self.address,
            "businessStatus": self.business_status,
            "rating": self.rating,
            "categories": list(self.categories),
            "reviewCount": self.review_count,
            "openingHours": list(self.opening_hours),
            "phone": self.phone,
            "website": self.website,
            "photoUrl": self.photo_url,
        }


@dataclass(slots=True)
class EnrichmentOutcome:
    """Result of enriching a single raw candidate."""

    status: str
    place: Optional[Place] = None
    reason: str = ""

    @classmethod
    def enriched(cls, place: Place) -> "EnrichmentOutcome":
        return cls(status=ENRICHED, place=place)

    @classmethod
    def skipped(cls, reason: str) -> "EnrichmentOutcome":
        return cls(status=SKIPPED, reason=reason)

    @classmethod
    def failed(cls, reason: str) -> "EnrichmentOutcome":
        return cls(status=FAILED, reason=reason)
