"""Tests for the market-intelligence summary."""

import pytest

from analysis_models import CategoryAccumulator, DistanceDuration, InfrastructureScores
from connectivity import ConnectivityAnalysis
from market_intelligence import (
    build_market_intelligence,
    classify_area_type,
    has_distance_errors,
    is_remote_location,
)


def _infra(**totals):
    infra = InfrastructureScores(amenity_count=totals.pop("amenity_count", 10))
    for name, total in totals.items():
        setattr(infra, name, CategoryAccumulator(total=total))
    return infra


class TestAreaType:
    @pytest.mark.parametrize("commercial,transport,expected", [
        (10, 5, "metropolitan"),
        (10, 4, "urban"),
        (5, 2, "urban"),
        (2, 0, "suburban"),
        (0, 1, "suburban"),
        (1, 0, "rural"),
    ])
    def test_thresholds(self, commercial, transport, expected):
        assert classify_area_type(_infra(commercial=commercial, transport=transport)) == expected


class TestRemoteLocation:
    def test_few_amenities(self):
        assert is_remote_location(_infra(amenity_count=2, essential=5), 50.0, {}) is True

    def test_thin_core_without_essentials(self):
        infra = _infra(healthcare=1.0, essential=0.5)
        assert is_remote_location(infra, 50.0, {}) is True

    def test_weak_connectivity_without_commerce(self):
        infra = _infra(healthcare=5.0, education=5.0, essential=0.5)
        assert is_remote_location(infra, 4.0, {}) is True

    def test_well_served(self):
        infra = _infra(healthcare=5.0, education=5.0, commercial=3.0, essential=4.0)
        assert is_remote_location(infra, 4.0, {}) is False

    def test_suppressed_by_distance_errors(self):
        distances = {"far": DistanceDuration(distance_m=600_000.0)}
        assert has_distance_errors(distances) is True
        assert is_remote_location(_infra(amenity_count=0), 0.0, distances) is False

    def test_normal_distances_not_errors(self):
        assert has_distance_errors({"a": DistanceDuration(distance_m=4000.0)}) is False


class TestBuildMarketIntelligence:
    def test_empty_location(self):
        market = build_market_intelligence(
            0.1, 11, _infra(amenity_count=0), ConnectivityAnalysis(), {}
        )
        assert market.investment_grade == "C"
        assert market.infrastructure_density == pytest.approx(2.0)
        assert market.population_density == 0
        assert market.risk_factors == [
            "Limited safety infrastructure",
            "Poor external connectivity",
            "Insufficient healthcare facilities",
        ]
        assert market.opportunities == []
        assert market.area_type == "rural"
        assert market.is_remote is True

    def test_well_connected_location(self):
        infra = _infra(healthcare=4.0, education=3.0, transport=6.0, commercial=12.0,
                       lifestyle=5.0, safety=2.0)
        infra.lifestyle.premium = 3
        connectivity = ConnectivityAnalysis(
            counts={"airports": 1, "metro_stations": 2, "tech_corridors": 1},
            index=60.0,
        )
        market = build_market_intelligence(4.5, 90, infra, connectivity, {})
        assert market.investment_grade == "A+"
        assert market.risk_factors == []
        assert market.opportunities == [
            "Airport connectivity advantage",
            "Metro connectivity boost",
            "Premium lifestyle amenities",
            "Tech corridor proximity",
        ]
        assert market.population_density == pytest.approx(70.0)
        assert market.economic_activity == pytest.approx(100.0)
        assert market.liquidity_score == 100.0
        assert market.appreciation_potential == pytest.approx(60 / 120 * 50 + 50)
        assert market.area_type == "metropolitan"

    def test_to_dict(self):
        market = build_market_intelligence(
            0.1, 55, _infra(amenity_count=0), ConnectivityAnalysis(), {}
        )
        data = market.to_dict()
        assert data["investment_grade"] == "B"
        assert isinstance(data["risk_factors"], list)
