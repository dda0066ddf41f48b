"""
Growth prediction: business and population growth rates, then the
property growth prediction built on top of them.

Locations scoring below the poor-score threshold always take the
negative branch, whatever their viability.
"""

from dataclasses import dataclass, field
from typing import Dict

from analysis_models import InfrastructureScores, LocationIntelligence, clamp
from keyword_rules import first_text_match
from market_signals import MarketSignals
from scoring_config import SCORING_MODEL, GrowthRateConfig, ScoringModel


@dataclass
class GrowthBreakdown:
    business_factors: Dict[str, float] = field(default_factory=dict)
    business_area_bonus: float = 0.0
    business_growth_rate: float = 0.0
    population_factors: Dict[str, float] = field(default_factory=dict)
    population_growth_rate: float = 0.0
    negative_branch: bool = False
    growth_prediction: float = 0.0


def _viability_modifier(cfg: GrowthRateConfig, viability: float) -> float:
    if viability < cfg.low_viability:
        return cfg.low_viability_delta
    if viability > cfg.high_viability:
        return cfg.high_viability_delta
    return 0.0


def _scaled_rate(cfg: GrowthRateConfig, factors: Dict[str, float]) -> float:
    return sum(factors.values()) / cfg.total_max * cfg.span + cfg.offset


def business_area_bonus(area_classification: str, model: ScoringModel = SCORING_MODEL) -> float:
    rule = first_text_match(model.growth.business.area_bonus_rules, area_classification)
    return rule.weight if rule else 0.0


def business_growth_rate(
    infra: InfrastructureScores,
    connectivity_index: float,
    signals: MarketSignals,
    intelligence: LocationIntelligence,
    viability: float,
    model: ScoringModel = SCORING_MODEL,
):
    """Return (rate, factors, area_bonus)."""
    cfg = model.growth.business
    f = cfg.factors
    factors = {
        "commercial_infrastructure": f["commercial_infrastructure"].apply(infra.commercial.total),
        "transport_connectivity": f["transport_connectivity"].apply(infra.transport.total),
        "tech_ecosystem": f["tech_ecosystem"].apply(signals.tech),
        "financial_services": f["financial_services"].apply(signals.financial),
        "external_connectivity": f["external_connectivity"].apply(connectivity_index),
        "talent_availability": f["talent_availability"].apply(infra.education.total),
    }
    area_bonus = business_area_bonus(intelligence.area_classification, model)
    rate = _scaled_rate(cfg, factors) + area_bonus + _viability_modifier(cfg, viability)
    return clamp(rate, cfg.min_rate, cfg.max_rate), factors, area_bonus


def population_growth_rate(
    infra: InfrastructureScores,
    connectivity_index: float,
    viability: float,
    model: ScoringModel = SCORING_MODEL,
):
    """Return (rate, factors)."""
    cfg = model.growth.population
    f = cfg.factors
    factors = {
        "housing_support": f["housing_support"].apply(infra.essential.total),
        "healthcare_capacity": f["healthcare_capacity"].apply(infra.healthcare.total),
        "education_quality": f["education_quality"].apply(infra.education.total),
        "transport_access": f["transport_access"].apply(infra.transport.total),
        "economic_opportunity": f["economic_opportunity"].apply(infra.commercial.total),
        "connectivity_appeal": f["connectivity_appeal"].apply(connectivity_index),
    }
    rate = _scaled_rate(cfg, factors) + _viability_modifier(cfg, viability)
    return clamp(rate, cfg.min_rate, cfg.max_rate), factors


def growth_prediction(
    location_score: float,
    viability: float,
    business_rate: float,
    population_rate: float,
    amenity_count: int,
    connectivity_index: float,
    model: ScoringModel = SCORING_MODEL,
) -> float:
    cfg = model.growth
    if location_score < cfg.poor_score_threshold:
        growth = (cfg.poor_score_threshold - location_score) * cfg.poor_penalty_rate
        if amenity_count < cfg.poor_amenity_min:
            growth += cfg.poor_amenity_penalty
        if connectivity_index < cfg.poor_connectivity_min:
            growth += cfg.poor_connectivity_penalty
        if viability < cfg.poor_viability_min:
            growth += cfg.poor_viability_penalty
        return clamp(growth, *cfg.poor_range)

    w = cfg.factor_weights
    factors = {
        "viability": viability / 100.0,
        "business": max(cfg.factor_floor, business_rate + cfg.business_offset) / cfg.business_divisor,
        "population": max(cfg.factor_floor, population_rate + cfg.population_offset)
        / cfg.population_divisor,
        "location": location_score / 5.0,
    }
    growth = sum(factors[name] * w[name] for name in w) * cfg.scale + cfg.shift

    # amenity_penalties hold (exclusive upper bound, penalty), tightest first
    for step in cfg.amenity_penalties:
        if amenity_count < step.min_value:
            growth += step.value
            break
    if connectivity_index < cfg.connectivity_min:
        growth += cfg.connectivity_penalty
    return clamp(growth, *cfg.standard_range)


def predict_growth(
    location_score: float,
    viability: float,
    infra: InfrastructureScores,
    connectivity_index: float,
    signals: MarketSignals,
    intelligence: LocationIntelligence,
    model: ScoringModel = SCORING_MODEL,
) -> GrowthBreakdown:
    out = GrowthBreakdown()
    out.business_growth_rate, out.business_factors, out.business_area_bonus = business_growth_rate(
        infra, connectivity_index, signals, intelligence, viability, model
    )
    out.population_growth_rate, out.population_factors = population_growth_rate(
        infra, connectivity_index, viability, model
    )
    out.negative_branch = location_score < model.growth.poor_score_threshold
    out.growth_prediction = growth_prediction(
        location_score,
        viability,
        out.business_growth_rate,
        out.population_growth_rate,
        infra.amenity_count,
        connectivity_index,
        model,
    )
    return out
