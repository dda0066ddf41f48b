"""
Location score: folds category accumulators, the connectivity index,
market signals and intelligence factors into a bounded quality score.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict

from analysis_models import CATEGORY_NAMES, CategoryAccumulator, InfrastructureScores, clamp
from location_intelligence import IntelligenceFactors
from market_signals import MarketSignals
from scoring_config import (
    SCORING_MODEL,
    CategoryNormalization,
    DensityTier,
    LocationScoreConfig,
    ScoringModel,
    apply_steps,
)

logger = logging.getLogger(__name__)


@dataclass
class LocationScoreBreakdown:
    normalized: Dict[str, float] = field(default_factory=dict)
    distance_quality_factor: float = 0.0
    economic_multiplier: float = 1.0
    density_multiplier: float = 1.0
    base_infrastructure_bonus: float = 0.0
    base_infrastructure_score: float = 0.0
    raw_score: float = 0.0
    bonuses_applied: bool = False
    score: float = 0.0


def normalize_category(acc: CategoryAccumulator, norm: CategoryNormalization) -> float:
    base = min(acc.total / norm.divisor, norm.base_cap)
    return min(base + acc.premium * norm.premium_bonus, norm.cap)


def normalize_connectivity(index: float, norm: CategoryNormalization) -> float:
    return min(index / norm.divisor, norm.cap)


def distance_quality_factor(infra: InfrastructureScores, cfg: LocationScoreConfig) -> float:
    return sum(
        infra.category(name).close_ratio * weight
        for name, weight in cfg.proximity_weights.items()
    )


def economic_multiplier(signals: MarketSignals, cfg: LocationScoreConfig) -> float:
    multiplier = 1.0
    multiplier += apply_steps(cfg.tech_steps, signals.tech)
    multiplier += apply_steps(cfg.financial_steps, signals.financial)
    multiplier += apply_steps(cfg.premium_residential_steps, signals.premium_residential)
    if signals.metropolitan:
        multiplier += cfg.metropolitan_bonus
    return multiplier


def density_tier(amenity_count: int, cfg: LocationScoreConfig) -> DensityTier:
    for tier in cfg.density_tiers:
        if amenity_count >= tier.min_amenities:
            return tier
    return cfg.density_tiers[-1]


def calculate_location_score(
    infra: InfrastructureScores,
    connectivity_index: float,
    signals: MarketSignals,
    factors: IntelligenceFactors,
    model: ScoringModel = SCORING_MODEL,
) -> LocationScoreBreakdown:
    cfg = model.location_score
    out = LocationScoreBreakdown()

    for name in CATEGORY_NAMES:
        out.normalized[name] = normalize_category(infra.category(name), cfg.normalization[name])
    out.normalized["connectivity"] = normalize_connectivity(
        connectivity_index, cfg.connectivity_normalization
    )

    out.distance_quality_factor = distance_quality_factor(infra, cfg)
    out.economic_multiplier = economic_multiplier(signals, cfg)
    tier = density_tier(infra.amenity_count, cfg)
    out.density_multiplier = tier.multiplier
    out.base_infrastructure_bonus = tier.bonus

    out.base_infrastructure_score = sum(
        out.normalized[name] * weight for name, weight in cfg.category_weights.items()
    ) + tier.bonus

    out.raw_score = (
        out.base_infrastructure_score
        * out.economic_multiplier
        * out.density_multiplier
        * out.distance_quality_factor
        * factors.multiplier
        * factors.potential_multiplier
    )

    score = out.raw_score * cfg.final_multiplier
    # Metadata-only bonuses never lift a location with no real infrastructure.
    if score > cfg.bonus_guard:
        score += factors.baseline_bonus * cfg.baseline_bonus_weight
        score += factors.priority_bonus * cfg.priority_bonus_weight
        out.bonuses_applied = True

    out.score = clamp(score, cfg.min_score, cfg.max_score)
    logger.debug(
        "Location score %.2f (raw %.3f, dqf %.2f, econ %.2f, density %.1f)",
        out.score, out.raw_score, out.distance_quality_factor,
        out.economic_multiplier, out.density_multiplier,
    )
    return out
