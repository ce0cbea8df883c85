"""Deterministic ordering of places before they are returned."""

from typing import Iterable, List, Tuple

from destination_explorer.models import Place


def _rank_key(place: Place) -> Tuple[float, float, int, int]:
    review_count = place.review_count if place.review_count is not None else -1
    rating = place.rating if place.rating is not None else -1
    return (
        -review_count,
        -rating,
        0 if place.phone else 1,
        0 if place.website else 1,
    )


def rank_places(places: Iterable[Place]) -> List[Place]:
    """Sort by review count, rating, phone presence then website presence.

    All keys sort descending, missing numbers rank below any real value and
    ties keep their input order.
    """
    return sorted(places, key=_rank_key)
