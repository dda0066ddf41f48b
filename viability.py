"""
Investment viability: tier classification plus the bounded 0-100
viability percentage.

Score tiers ("very poor" below 1.5, "poor" below 2.0) take priority over
the area classification for every tier-dependent term: the baseline
floor and multiplier, the priority bonus and the tier multiplier.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Dict

from analysis_models import InfrastructureScores, LocationIntelligence, clamp
from keyword_rules import rule_matches_text
from market_signals import MarketSignals
from scoring_config import SCORING_MODEL, AreaTier, ScoringModel, ViabilityConfig, apply_steps

logger = logging.getLogger(__name__)

DEFAULT_AREA_CLASSIFICATION = "Urban Areas"


@dataclass
class ViabilityBreakdown:
    tier: AreaTier
    area_tier: AreaTier
    baseline: float = 0.0
    market_fundamentals: Dict[str, float] = field(default_factory=dict)
    total_market_score: float = 0.0
    viability_bonus: float = 0.0
    ai_bonus: float = 0.0
    priority_bonus: float = 0.0
    viability_multiplier: float = 1.0
    tier_multiplier: float = 1.0
    raw_viability: float = 0.0
    viability: int = 0


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def classify_area_tier(
    intelligence: LocationIntelligence,
    model: ScoringModel = SCORING_MODEL,
) -> AreaTier:
    """Area tier from location type and area classification, first match wins."""
    cfg = model.viability
    label = intelligence.area_classification or DEFAULT_AREA_CLASSIFICATION
    for tier in cfg.area_tiers:
        if intelligence.location_type in tier.location_types:
            return tier
        if any(rule_matches_text(rule, label) for rule in tier.label_rules):
            return tier
    return _tier_by_key(cfg, cfg.default_tier_key)


def _tier_by_key(cfg: ViabilityConfig, key: str) -> AreaTier:
    for tier in cfg.area_tiers:
        if tier.key == key:
            return tier
    raise ValueError(f"Unknown area tier {key!r}")


def select_tier(
    location_score: float,
    intelligence: LocationIntelligence,
    model: ScoringModel = SCORING_MODEL,
) -> AreaTier:
    for score_tier in model.viability.score_tiers:
        if location_score < score_tier.max_score:
            return score_tier.tier
    return classify_area_tier(intelligence, model)


def tier_baseline(tier: AreaTier, location_score: float, cfg: ViabilityConfig) -> float:
    base = location_score / 5.0 * cfg.base_scale
    return max(tier.floor, base * tier.base_multiplier)


def priority_bonus(tier: AreaTier, priority_score: float) -> float:
    bonus = min(tier.priority_cap, priority_score * tier.priority_rate)
    if (
        tier.priority_premium_threshold is not None
        and priority_score >= tier.priority_premium_threshold
    ):
        bonus += tier.priority_premium_bonus
    return bonus


def market_fundamentals(
    location_score: float,
    infra: InfrastructureScores,
    connectivity_index: float,
    cfg: ViabilityConfig,
) -> Dict[str, float]:
    return {
        "infrastructure_maturity": cfg.market_infrastructure.apply(location_score),
        "economic_activity": cfg.market_economic.apply(infra.commercial.total),
        "connectivity_index": cfg.market_connectivity.apply(connectivity_index),
        "demographics": cfg.market_demographics.apply(
            infra.education.total + infra.lifestyle.total
        ),
        "transportation": cfg.market_transportation.apply(infra.transport.total),
    }


def viability_multiplier(
    infra: InfrastructureScores,
    connectivity_index: float,
    signals: MarketSignals,
    cfg: ViabilityConfig,
) -> float:
    multiplier = 1.0
    multiplier += apply_steps(cfg.connectivity_steps, connectivity_index)
    multiplier += apply_steps(cfg.amenity_steps, infra.amenity_count)
    multiplier += apply_steps(cfg.commercial_steps, infra.commercial.total)
    multiplier += apply_steps(cfg.tech_steps, signals.tech)
    multiplier += apply_steps(cfg.financial_steps, signals.financial)
    if signals.metropolitan:
        multiplier += cfg.metropolitan_bonus
    return multiplier


def calculate_viability(
    location_score: float,
    infra: InfrastructureScores,
    connectivity_index: float,
    signals: MarketSignals,
    intelligence: LocationIntelligence,
    model: ScoringModel = SCORING_MODEL,
) -> ViabilityBreakdown:
    cfg = model.viability
    area_tier = classify_area_tier(intelligence, model)
    tier = select_tier(location_score, intelligence, model)
    out = ViabilityBreakdown(tier=tier, area_tier=area_tier)

    out.baseline = tier_baseline(tier, location_score, cfg)
    out.market_fundamentals = market_fundamentals(location_score, infra, connectivity_index, cfg)
    out.total_market_score = sum(out.market_fundamentals.values())
    out.viability_bonus = cfg.market_bonus.apply(out.total_market_score)
    out.ai_bonus = cfg.ai_bonus.apply(intelligence.investment_potential)
    out.priority_bonus = priority_bonus(tier, intelligence.priority_score)
    out.viability_multiplier = viability_multiplier(infra, connectivity_index, signals, cfg)
    out.tier_multiplier = tier.tier_multiplier

    pre_multiplier = out.baseline + out.viability_bonus + out.ai_bonus + out.priority_bonus
    out.raw_viability = pre_multiplier * out.viability_multiplier * out.tier_multiplier
    out.viability = int(clamp(round_half_up(out.raw_viability), 0, 100))

    logger.debug(
        "Viability %d: tier=%s (area %s), baseline=%.1f, bonuses=%.1f/%.1f/%.1f, x%.2f x%.2f",
        out.viability, tier.key, area_tier.key, out.baseline, out.viability_bonus,
        out.ai_bonus, out.priority_bonus, out.viability_multiplier, out.tier_multiplier,
    )
    return out
