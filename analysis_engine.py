"""
Pure scoring core.

compute_analysis(places, distances, intelligence) is a deterministic
function of its inputs: no I/O, no shared state, no exceptions for
degenerate input.  Empty or partial collections just score lower.

Data flows strictly downstream:

    infrastructure + connectivity + intelligence
        -> location score -> viability -> growth, recommendation
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from analysis_models import (
    AnalysisResult,
    DistanceDuration,
    InfrastructureScores,
    LocationIntelligence,
    Place,
)
from connectivity import ConnectivityAnalysis, analyze_connectivity
from growth import GrowthBreakdown, predict_growth
from infrastructure import aggregate_infrastructure
from location_intelligence import (
    NEUTRAL_INTELLIGENCE,
    IntelligenceFactors,
    bounded_intelligence,
    intelligence_factors,
)
from location_score import LocationScoreBreakdown, calculate_location_score
from market_signals import MarketSignals, detect_market_signals
from recommendation import generate_recommendation
from scoring_config import SCORING_MODEL, ScoringModel
from viability import ViabilityBreakdown, calculate_viability

logger = logging.getLogger(__name__)


@dataclass
class EngineState:
    """Every intermediate value of one engine run."""
    intelligence: LocationIntelligence
    infrastructure: InfrastructureScores
    connectivity: ConnectivityAnalysis
    signals: MarketSignals
    factors: IntelligenceFactors
    location: LocationScoreBreakdown
    viability: ViabilityBreakdown
    growth: GrowthBreakdown
    recommendation: str
    model_version: str


def run_engine(
    places: Iterable[Place],
    distances: Mapping[str, DistanceDuration],
    intelligence: Optional[LocationIntelligence] = None,
    model: ScoringModel = SCORING_MODEL,
) -> EngineState:
    places = list(places)
    if intelligence is None:
        intelligence = NEUTRAL_INTELLIGENCE
    else:
        intelligence = bounded_intelligence(intelligence)

    infra = aggregate_infrastructure(places, distances, model)
    connectivity = analyze_connectivity(places, distances, model)
    signals = detect_market_signals(places, distances, infra, model)
    factors = intelligence_factors(intelligence, model)

    location = calculate_location_score(infra, connectivity.index, signals, factors, model)
    viability = calculate_viability(
        location.score, infra, connectivity.index, signals, intelligence, model
    )
    growth = predict_growth(
        location.score, viability.viability, infra, connectivity.index,
        signals, intelligence, model,
    )
    recommendation = generate_recommendation(
        location.score, viability.viability, intelligence, model
    )

    return EngineState(
        intelligence=intelligence,
        infrastructure=infra,
        connectivity=connectivity,
        signals=signals,
        factors=factors,
        location=location,
        viability=viability,
        growth=growth,
        recommendation=recommendation,
        model_version=model.version,
    )


def _accumulator_dict(infra: InfrastructureScores) -> dict:
    names = (
        "healthcare", "education", "transport", "commercial",
        "lifestyle", "safety", "environment", "essential",
    )
    out = {}
    for name in names:
        acc = infra.category(name)
        out[name] = {"total": acc.total, "close": acc.close, "premium": acc.premium}
    return out


def result_from_state(state: EngineState) -> AnalysisResult:
    return AnalysisResult(
        location_score=state.location.score,
        investment_viability=state.viability.viability,
        growth_prediction=state.growth.growth_prediction,
        business_growth_rate=state.growth.business_growth_rate,
        population_growth_rate=state.growth.population_growth_rate,
        investment_recommendation=state.recommendation,
        model_version=state.model_version,
        viability_tier=state.viability.tier.key,
        scoring_inputs={
            "amenity_count": state.infrastructure.amenity_count,
            "categories": _accumulator_dict(state.infrastructure),
            "connectivity_index": state.connectivity.index,
            "connectivity_hits": dict(state.connectivity.counts),
            "signals": {
                "tech": state.signals.tech,
                "financial": state.signals.financial,
                "premium_residential": state.signals.premium_residential,
                "metropolitan": state.signals.metropolitan,
            },
            "intelligence_source": state.intelligence.source,
        },
        subscores={
            "normalized": dict(state.location.normalized),
            "distance_quality_factor": state.location.distance_quality_factor,
            "economic_multiplier": state.location.economic_multiplier,
            "density_multiplier": state.location.density_multiplier,
            "raw_location_score": state.location.raw_score,
            "area_tier": state.viability.area_tier.key,
            "viability_baseline": state.viability.baseline,
            "market_fundamentals": dict(state.viability.market_fundamentals),
            "viability_multiplier": state.viability.viability_multiplier,
            "tier_multiplier": state.viability.tier_multiplier,
            "business_area_bonus": state.growth.business_area_bonus,
        },
    )


def compute_analysis(
    places: Iterable[Place],
    distances: Mapping[str, DistanceDuration],
    intelligence: Optional[LocationIntelligence] = None,
    model: ScoringModel = SCORING_MODEL,
) -> AnalysisResult:
    """Score one location.  intelligence=None means neutral defaults."""
    state = run_engine(places, distances, intelligence, model)
    result = result_from_state(state)
    logger.info(
        "Analysis (model %s): score=%.2f viability=%d growth=%.1f%% tier=%s",
        result.model_version, result.location_score, result.investment_viability,
        result.growth_prediction, result.viability_tier,
    )
    return result
