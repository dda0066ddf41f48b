"""Tests for business, population and property growth predictions."""

import pytest

from analysis_models import CategoryAccumulator, InfrastructureScores
from conftest import make_intelligence
from growth import (
    business_area_bonus,
    business_growth_rate,
    growth_prediction,
    population_growth_rate,
    predict_growth,
)
from market_signals import MarketSignals


class TestBusinessAreaBonus:
    @pytest.mark.parametrize("label,bonus", [
        ("Metro city", 3.0),
        ("IT Park", 4.0),
        ("Tech hub", 4.0),
        ("SEZ zone", 4.0),
        ("Smart City", 2.5),
        ("Planned township", 2.5),
        ("Industrial estate", 2.0),
        ("Industrial corridor", 0.0),
        ("Village", 0.0),
        ("Metro IT park", 3.0),
    ])
    def test_bonus_by_label(self, label, bonus):
        assert business_area_bonus(label) == bonus


class TestBusinessGrowthRate:
    def test_empty_low_viability(self):
        rate, factors, bonus = business_growth_rate(
            InfrastructureScores(), 0.0, MarketSignals(), make_intelligence(), 11
        )
        # -3 offset, -2 low viability
        assert rate == pytest.approx(-5.0)
        assert bonus == 0.0
        assert all(v == 0 for v in factors.values())

    def test_mid_viability_has_no_modifier(self):
        rate, _, _ = business_growth_rate(
            InfrastructureScores(), 0.0, MarketSignals(), make_intelligence(), 50
        )
        assert rate == pytest.approx(-3.0)

    def test_tech_factor_capped(self):
        _, factors, _ = business_growth_rate(
            InfrastructureScores(), 0.0, MarketSignals(tech=10), make_intelligence(), 50
        )
        assert factors["tech_ecosystem"] == 20.0

    def test_clamped_to_upper_bound(self):
        infra = InfrastructureScores(
            commercial=CategoryAccumulator(total=100.0),
            transport=CategoryAccumulator(total=100.0),
            education=CategoryAccumulator(total=100.0),
        )
        rate, factors, _ = business_growth_rate(
            infra, 500.0, MarketSignals(tech=10, financial=10),
            make_intelligence(area_classification="IT park"), 90,
        )
        assert sum(factors.values()) == pytest.approx(75.0)
        assert rate == 12.0


class TestPopulationGrowthRate:
    def test_empty_low_viability(self):
        rate, _ = population_growth_rate(InfrastructureScores(), 0.0, 11)
        assert rate == pytest.approx(-3.5)

    def test_high_viability(self):
        infra = InfrastructureScores(
            essential=CategoryAccumulator(total=100.0),
            healthcare=CategoryAccumulator(total=100.0),
            education=CategoryAccumulator(total=100.0),
            transport=CategoryAccumulator(total=100.0),
            commercial=CategoryAccumulator(total=100.0),
        )
        rate, factors = population_growth_rate(infra, 500.0, 90)
        assert sum(factors.values()) == pytest.approx(55.0)
        # 8 - 2 + 1
        assert rate == pytest.approx(7.0)


class TestGrowthPrediction:
    def test_poor_branch_floor(self):
        assert growth_prediction(0.1, 11, -5.0, -3.5, 2, 0.0) == -12.0

    def test_poor_branch_never_positive(self):
        growth = growth_prediction(1.9, 90, 12.0, 8.0, 60, 100.0)
        assert growth == -1.0

    def test_poor_branch_penalties(self):
        # (2.0 - 1.5) x -8 = -4, then -4 amenities
        assert growth_prediction(1.5, 50, 0.0, 0.0, 2, 50.0) == pytest.approx(-8.0)

    def test_standard_branch(self):
        # 0.4 + 0.3 x 17/15 + 0.2 x 12/10 + 0.1 = 1.08 -> x15 - 5
        assert growth_prediction(5.0, 100, 12.0, 8.0, 50, 100.0) == pytest.approx(11.2)

    @pytest.mark.parametrize("amenities,penalty", [
        (5, -3.0),
        (7, -3.0),
        (8, -1.5),
        (14, -1.5),
        (15, 0.0),
    ])
    def test_amenity_penalty_bands(self, amenities, penalty):
        base = growth_prediction(5.0, 100, 12.0, 8.0, 50, 100.0)
        assert growth_prediction(5.0, 100, 12.0, 8.0, amenities, 100.0) == pytest.approx(
            base + penalty
        )

    def test_connectivity_penalty(self):
        base = growth_prediction(5.0, 100, 12.0, 8.0, 50, 100.0)
        assert growth_prediction(5.0, 100, 12.0, 8.0, 50, 39.0) == pytest.approx(base - 2.0)

    def test_factor_floor(self):
        # business and population factors floor at 0.1 before scaling
        growth = growth_prediction(2.0, 0, -5.0, -4.0, 50, 100.0)
        expected = (0.3 * 0.1 / 15 + 0.2 * 0.1 / 10 + 0.1 * 0.4) * 15 - 5
        assert growth == pytest.approx(expected)


class TestPredictGrowth:
    def test_breakdown(self):
        out = predict_growth(
            0.1, 11, InfrastructureScores(), 0.0, MarketSignals(), make_intelligence()
        )
        assert out.negative_branch is True
        assert out.growth_prediction == -12.0
        assert out.business_growth_rate == pytest.approx(-5.0)
        assert out.population_growth_rate == pytest.approx(-3.5)
        assert -5 <= out.business_growth_rate <= 12
        assert -4 <= out.population_growth_rate <= 8
