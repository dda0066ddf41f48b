"""Economic market signals detected among nearby places."""

from dataclasses import dataclass
from typing import Iterable, Mapping

from analysis_models import DistanceDuration, InfrastructureScores, Place, resolved_distance_km
from keyword_rules import count_matching_places, place_categories
from scoring_config import SCORING_MODEL, ScoringModel


@dataclass(frozen=True)
class MarketSignals:
    tech: int = 0
    financial: int = 0
    premium_residential: int = 0
    metropolitan: bool = False


def detect_market_signals(
    places: Iterable[Place],
    distances: Mapping[str, DistanceDuration],
    infrastructure: InfrastructureScores,
    model: ScoringModel = SCORING_MODEL,
) -> MarketSignals:
    """Count tech, financial and premium-residential matches within the scoring radius.

    The metropolitan heuristic needs a dense amenity set together with
    substantial transport and commercial totals.
    """
    cfg = model.signals
    radius = model.infrastructure.scoring_radius_km
    nearby = []
    for place in places:
        distance_km = resolved_distance_km(distances, place.place_id)
        if distance_km is not None and distance_km <= radius:
            nearby.append(place)

    premium_residential = sum(
        1
        for p in nearby
        if "premium_residential" in place_categories(cfg.rules, p)
        or (p.rating or 0.0) >= cfg.premium_residential_min_rating
    )
    metropolitan = (
        infrastructure.amenity_count >= cfg.metropolitan_min_places
        and infrastructure.transport.total >= cfg.metropolitan_min_transport
        and infrastructure.commercial.total >= cfg.metropolitan_min_commercial
    )
    return MarketSignals(
        tech=count_matching_places(cfg.rules, nearby, "tech"),
        financial=count_matching_places(cfg.rules, nearby, "financial"),
        premium_residential=premium_residential,
        metropolitan=metropolitan,
    )
