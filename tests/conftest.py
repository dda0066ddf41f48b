"""Shared fixtures for the plotwise test suite.

Factories build places and distance maps without any network access.
Trace and intelligence-cache state is reset around every test.
"""

import os

import pytest

# No artificial delay between place queries in tests.
os.environ.setdefault("PLACE_SEARCH_DELAY_S", "0")

from analysis_models import DistanceDuration, LocationIntelligence, Place  # noqa: E402
from analysis_trace import clear_trace  # noqa: E402


def make_place(place_id, name="", types=(), rating=None, vicinity="", lat=None, lng=None):
    return Place(
        place_id=place_id,
        name=name or place_id,
        types=tuple(types),
        rating=rating,
        vicinity=vicinity,
        lat=lat,
        lng=lng,
    )


def at_km(*pairs):
    """Build (places, distances) from (Place, distance_km) pairs."""
    places = []
    distances = {}
    for place, km in pairs:
        places.append(place)
        if km is not None:
            distances[place.place_id] = DistanceDuration(distance_m=km * 1000.0)
    return places, distances


def make_intelligence(**overrides):
    values = dict(
        location_type="town",
        development_stage="developing",
        investment_potential=50.0,
        area_classification="Urban Areas",
        priority_score=50.0,
        safety_score=5.0,
        source="ai",
    )
    values.update(overrides)
    return LocationIntelligence(**values)


@pytest.fixture(autouse=True)
def _reset_request_state():
    clear_trace()
    import location_analyzer

    location_analyzer.clear_intelligence_cache()
    yield
    clear_trace()
    location_analyzer.clear_intelligence_cache()
