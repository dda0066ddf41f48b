"""
Market-intelligence summary attached to the orchestrator report.

Not part of the five-number contract: derived after scoring from the
same intermediate values.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping

from analysis_models import DistanceDuration, InfrastructureScores, resolved_distance_km
from connectivity import ConnectivityAnalysis
from scoring_config import SCORING_MODEL, ScoringModel, apply_band

# Any single distance beyond this signals a provider error.
DISTANCE_ERROR_KM = 500.0


@dataclass
class MarketIntelligence:
    population_density: float
    economic_activity: float
    infrastructure_density: float
    investment_grade: str
    liquidity_score: float
    appreciation_potential: float
    area_type: str
    is_remote: bool
    risk_factors: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def classify_area_type(infra: InfrastructureScores) -> str:
    commercial = infra.commercial.total
    transport = infra.transport.total
    if commercial >= 10 and transport >= 5:
        return "metropolitan"
    if commercial >= 5 and transport >= 2:
        return "urban"
    if commercial >= 2 or transport >= 1:
        return "suburban"
    return "rural"


def has_distance_errors(distances: Mapping[str, DistanceDuration]) -> bool:
    for place_id in distances:
        km = resolved_distance_km(distances, place_id)
        if km is not None and km > DISTANCE_ERROR_KM:
            return True
    return False


def is_remote_location(
    infra: InfrastructureScores,
    connectivity_index: float,
    distances: Mapping[str, DistanceDuration],
) -> bool:
    """Thin infrastructure heuristic; suppressed when distances look broken."""
    if has_distance_errors(distances):
        return False
    core = (
        infra.healthcare.total + infra.education.total
        + infra.transport.total + infra.commercial.total
    )
    return (
        infra.amenity_count < 3
        or (core < 2 and infra.essential.total < 1)
        or (
            connectivity_index < 5
            and infra.commercial.total < 1
            and infra.essential.total < 1
        )
    )


def build_market_intelligence(
    location_score: float,
    viability: int,
    infra: InfrastructureScores,
    connectivity: ConnectivityAnalysis,
    distances: Mapping[str, DistanceDuration],
    model: ScoringModel = SCORING_MODEL,
) -> MarketIntelligence:
    index = connectivity.index
    normalized_connectivity = min(
        index / model.location_score.connectivity_normalization.divisor, 1.0
    )
    tech_hits = connectivity.count("tech_corridors")

    risks = []
    if infra.safety.total < 1:
        risks.append("Limited safety infrastructure")
    if index < 20:
        risks.append("Poor external connectivity")
    if infra.healthcare.total < 2:
        risks.append("Insufficient healthcare facilities")

    opportunities = []
    if connectivity.count("airports") > 0:
        opportunities.append("Airport connectivity advantage")
    if connectivity.count("metro_stations") > 0:
        opportunities.append("Metro connectivity boost")
    if infra.lifestyle.premium > 2:
        opportunities.append("Premium lifestyle amenities")
    if tech_hits > 0:
        opportunities.append("Tech corridor proximity")

    return MarketIntelligence(
        population_density=min(100.0, (infra.healthcare.total + infra.education.total) * 10),
        economic_activity=min(100.0, (infra.commercial.total + tech_hits) * 8),
        infrastructure_density=min(100.0, location_score / 5.0 * 100),
        investment_grade=apply_band(model.recommendation.investment_grade_bands, viability),
        liquidity_score=min(100.0, infra.transport.total * 20 + infra.commercial.total * 15),
        appreciation_potential=min(
            100.0, normalized_connectivity * 50 + infra.lifestyle.total * 10
        ),
        area_type=classify_area_type(infra),
        is_remote=is_remote_location(infra, index, distances),
        risk_factors=risks,
        opportunities=opportunities,
    )
