"""
Infrastructure aggregation: turns the nearby place list into seven
weighted category accumulators plus the essential-services bucket.

Category assignment is not exclusive.  A rated hotel tagged both
"lodging" and "restaurant" contributes to lifestyle once per category it
qualifies for, and also to commercial if it carries a commercial tag.
"""

import logging
from typing import FrozenSet, Iterable, Mapping

from analysis_models import (
    DistanceDuration,
    InfrastructureScores,
    Place,
    resolved_distance_km,
)
from keyword_rules import place_categories
from scoring_config import (
    SCORING_MODEL,
    CategoryConfig,
    DistanceDecayConfig,
    InfrastructureConfig,
    RatingConfig,
    ScoringModel,
)

logger = logging.getLogger(__name__)

PREMIUM = "premium"
GOOD = "good"
STANDARD = "standard"


def distance_multiplier(distance_km: float, decay: DistanceDecayConfig) -> float:
    """Step bands close in, then linear decay past decay_start_km.

    With decay.floor set the result never drops below the floor; with
    floor=None the historical curve can go negative.
    """
    for band in decay.bands:
        if distance_km <= band.max_km:
            return band.multiplier
    value = 1.0 - (distance_km - decay.decay_start_km) * decay.decay_per_km
    if decay.floor is not None:
        value = max(decay.floor, value)
    return value


def rating_multiplier(rating, cfg: RatingConfig) -> float:
    if not rating:
        return cfg.unrated_multiplier
    return min(rating / cfg.divisor, cfg.cap)


def quality_tier(place: Place, cfg: InfrastructureConfig) -> str:
    """premium / good / standard from rating thresholds or name keywords."""
    keyword_hits = place_categories(cfg.quality_rules, place)
    rating = place.rating or 0.0
    if rating >= cfg.rating.premium_min_rating or PREMIUM in keyword_hits:
        return PREMIUM
    if rating >= cfg.rating.good_min_rating or GOOD in keyword_hits:
        return GOOD
    return STANDARD


def place_flags(place: Place, cfg: InfrastructureConfig) -> FrozenSet[str]:
    """Flags consulted by category amplifiers (hub types, quality tier, ...)."""
    flags = set(place_categories(cfg.flag_rules, place))
    tier = quality_tier(place, cfg)
    if tier != STANDARD:
        flags.add(tier)
    if (place.rating or 0.0) >= cfg.rating.good_min_rating:
        flags.add("rated_good")
    return frozenset(flags)


def category_multiplier(category: CategoryConfig, flags: FrozenSet[str]) -> float:
    for amplifier in category.amplifiers:
        if all(flag in flags for flag in amplifier.when):
            return amplifier.multiplier
    return category.flat_multiplier


def _essential_proximity(distance_km: float, cfg: InfrastructureConfig) -> float:
    for band in cfg.essential.proximity_steps:
        if distance_km <= band.max_km:
            return band.multiplier
    return cfg.essential.far_multiplier


def aggregate_infrastructure(
    places: Iterable[Place],
    distances: Mapping[str, DistanceDuration],
    model: ScoringModel = SCORING_MODEL,
) -> InfrastructureScores:
    """Accumulate every place with a resolved distance inside the scoring radius."""
    cfg = model.infrastructure
    scores = InfrastructureScores()
    skipped = 0

    for place in places:
        distance_km = resolved_distance_km(distances, place.place_id)
        if distance_km is None:
            skipped += 1
            continue
        if distance_km > cfg.scoring_radius_km:
            continue

        scores.amenity_count += 1
        is_close = distance_km <= cfg.close_radius_km
        rating_mult = rating_multiplier(place.rating, cfg.rating)
        base_score = rating_mult * distance_multiplier(distance_km, cfg.decay)
        flags = place_flags(place, cfg)
        is_premium = PREMIUM in flags

        types = set(place.types)
        for category in cfg.categories:
            if not types & category.place_types:
                continue
            score = base_score * category_multiplier(category, flags)
            hub = any(flag in flags for flag in category.hub_flags)
            scores.category(category.name).add(score, is_close, is_premium or hub)

        if types:
            scores.essential.add(
                rating_mult * _essential_proximity(distance_km, cfg),
                is_close,
                is_premium,
            )

    if skipped:
        logger.debug("Skipped %d places without a resolved distance", skipped)
    return scores
