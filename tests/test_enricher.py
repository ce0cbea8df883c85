import threading

import pytest
import requests

from destination_explorer.etl import enricher
from destination_explorer.models import ENRICHED, FAILED, SKIPPED
from destination_explorer.vendors import google_places, wikipedia


def _candidate(place_id, **overrides):
    candidate = {
        "place_id": place_id,
        "name": f"Place {place_id}",
        "geometry": {"location": {"lat": 48.85, "lng": 2.35}},
        "types": ["tourist_attraction"],
    }
    candidate.update(overrides)
    return candidate


@pytest.fixture
def providers(monkeypatch):
    state = {
        "details": {},
        "detail_calls": [],
        "search": {},
        "nearby": None,
        "summaries": {},
        "wiki_calls": [],
    }

    def fake_place_details(place_id, api_key):
        state["detail_calls"].append(place_id)
        value = state["details"].get(place_id, {})
        if isinstance(value, Exception):
            raise value
        return value

    def fake_search_title(name):
        state["wiki_calls"].append(("search", name))
        value = state["search"].get(name)
        if isinstance(value, Exception):
            raise value
        return value

    def fake_nearby_title(lat, lng):
        state["wiki_calls"].append(("nearby", lat, lng))
        if isinstance(state["nearby"], Exception):
            raise state["nearby"]
        return state["nearby"]

    def fake_page_summary(title):
        state["wiki_calls"].append(("summary", title))
        value = state["summaries"].get(title)
        if isinstance(value, Exception):
            raise value
        return value or {"title": title, "description": "", "image": None}

    monkeypatch.setattr(enricher.google_places, "place_details", fake_place_details)
    monkeypatch.setattr(enricher.wikipedia, "search_title", fake_search_title)
    monkeypatch.setattr(enricher.wikipedia, "nearby_title", fake_nearby_title)
    monkeypatch.setattr(enricher.wikipedia, "page_summary", fake_page_summary)
    return state


def _enrich(candidate):
    return enricher.enrich_candidate(candidate, destination_key="city-42", api_key="key")


def test_missing_essentials_are_skipped_without_calls(providers):
    for candidate in (None, _candidate(None), _candidate("1", name=""), _candidate("1", geometry={})):
        outcome = _enrich(candidate)
        assert outcome.status == SKIPPED
        assert outcome.place is None

    assert providers["detail_calls"] == []
    assert providers["wiki_calls"] == []


def test_excluded_raw_category_skips_detail_call(providers):
    outcome = _enrich(_candidate("1", types=["travel_agency"]))

    assert outcome.status == SKIPPED
    assert providers["detail_calls"] == []


def test_excluded_detail_category_is_dropped(providers):
    providers["details"]["1"] = {"types": ["travel_agency", "point_of_interest"]}

    outcome = _enrich(_candidate("1"))

    assert outcome.status == SKIPPED
    assert providers["detail_calls"] == ["1"]
    assert providers["wiki_calls"] == []


def test_detail_failure_keeps_candidate_with_defaults(providers):
    providers["details"]["1"] = google_places.GooglePlacesError("NOT_FOUND")

    outcome = _enrich(_candidate("1"))

    assert outcome.status == ENRICHED
    place = outcome.place
    assert place.spot_id == "1"
    assert place.address == ""
    assert place.rating is None
    assert place.review_count == 0
    assert place.categories == []
    assert place.phone == ""


def test_detail_transport_error_fails_candidate(providers):
    providers["details"]["1"] = requests.Timeout("read timed out")

    outcome = _enrich(_candidate("1"))

    assert outcome.status == FAILED
    assert outcome.place is None
    assert providers["wiki_calls"] == []


def test_detail_http_error_fails_candidate(providers):
    providers["details"]["1"] = requests.HTTPError("503 Server Error")

    assert _enrich(_candidate("1")).status == FAILED


def test_google_photo_wins_over_wikipedia_thumbnail(providers):
    providers["details"]["1"] = {"photos": [{"photo_reference": "g-ref"}]}
    providers["search"]["Place 1"] = "Article"
    providers["summaries"]["Article"] = {"title": "Article", "description": "Text", "image": "https://wiki/thumb.jpg"}

    place = _enrich(_candidate("1")).place

    assert "photoreference=g-ref" in place.photo_url
    assert place.description == "Text"


def test_raw_photo_used_when_details_have_none(providers):
    place = _enrich(_candidate("1", photos=[{"photo_reference": "raw-ref"}])).place
    assert "photoreference=raw-ref" in place.photo_url


def test_wikipedia_thumbnail_is_photo_fallback(providers):
    providers["search"]["Place 1"] = "Article"
    providers["summaries"]["Article"] = {"title": "Article", "description": "Text", "image": "https://wiki/thumb.jpg"}

    place = _enrich(_candidate("1")).place

    assert place.photo_url == "https://wiki/thumb.jpg"


def test_nearby_lookup_used_when_search_has_no_hit(providers):
    providers["nearby"] = "Nearby Article"
    providers["summaries"]["Nearby Article"] = {"title": "Nearby Article", "description": "Close by", "image": None}

    place = _enrich(_candidate("1")).place

    assert ("nearby", 48.85, 2.35) in providers["wiki_calls"]
    assert place.description == "Close by"
    assert place.photo_url == ""


def test_nearby_lookup_used_when_search_fails(providers):
    providers["search"]["Place 1"] = wikipedia.WikipediaError("search down")
    providers["nearby"] = "Nearby Article"
    providers["summaries"]["Nearby Article"] = {"title": "Nearby Article", "description": "Close by", "image": None}

    assert _enrich(_candidate("1")).place.description == "Close by"


def test_wikipedia_failures_yield_empty_description(providers):
    providers["search"]["Place 1"] = "Article"
    providers["summaries"]["Article"] = RuntimeError("summary down")

    outcome = _enrich(_candidate("1"))

    assert outcome.status == ENRICHED
    assert outcome.place.description == ""
    assert outcome.place.photo_url == ""


def test_unexpected_error_fails_single_candidate(providers, monkeypatch):
    def broken_to_place(*args, **kwargs):
        raise KeyError("boom")

    monkeypatch.setattr(enricher.transform, "to_place", broken_to_place)

    outcome = _enrich(_candidate("1"))

    assert outcome.status == FAILED
    assert outcome.place is None


def test_enrich_candidates_isolates_failures_and_keeps_input_order(providers, monkeypatch):
    original = enricher.enrich_candidate

    def flaky(candidate, **kwargs):
        if candidate and candidate.get("place_id") == "boom":
            raise RuntimeError("task crashed")
        return original(candidate, **kwargs)

    monkeypatch.setattr(enricher, "enrich_candidate", flaky)
    candidates = [
        _candidate("a"),
        {"name": "no id"},
        _candidate("boom"),
        _candidate("agency", types=["travel_agency"]),
        _candidate("b"),
        _candidate("c"),
    ]

    places = enricher.enrich_candidates(candidates, destination_key="city-42", api_key="key", max_workers=3)

    assert [place.spot_id for place in places] == ["a", "b", "c"]
    assert all(place.destination_key == "city-42" for place in places)


def test_enrich_candidates_respects_worker_bound(providers, monkeypatch):
    lock = threading.Lock()
    active = {"now": 0, "peak": 0}
    original = enricher.enrich_candidate

    def tracking(candidate, **kwargs):
        with lock:
            active["now"] += 1
            active["peak"] = max(active["peak"], active["now"])
        try:
            return original(candidate, **kwargs)
        finally:
            with lock:
                active["now"] -= 1

    monkeypatch.setattr(enricher, "enrich_candidate", tracking)

    places = enricher.enrich_candidates(
        [_candidate(str(i)) for i in range(20)], destination_key="city-42", api_key="key", max_workers=2
    )

    assert len(places) == 20
    assert active["peak"] <= 2


def test_enrich_candidates_empty_input(providers):
    assert enricher.enrich_candidates([], destination_key="city-42", api_key="key") == []
