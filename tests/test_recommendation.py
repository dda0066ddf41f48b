"""Tests for recommendation labels and fallback prose insights."""

import pytest

from conftest import make_intelligence, make_place
from recommendation import (
    fallback_insights,
    generate_recommendation,
    infrastructure_grade,
    location_name,
)

METRO = make_intelligence(area_classification="Metro city")
URBAN = make_intelligence(area_classification="Urban locality")


class TestInfrastructureGrade:
    @pytest.mark.parametrize("score,grade", [
        (5.0, "A-Grade"),
        (4.0, "A-Grade"),
        (3.5, "B-Grade"),
        (2.0, "C-Grade"),
        (1.0, "D-Grade"),
        (0.1, "E-Grade"),
    ])
    def test_bands(self, score, grade):
        assert infrastructure_grade(score) == grade


class TestGenerateRecommendation:
    def test_not_recommended(self):
        label = generate_recommendation(1.0, 80, METRO)
        assert label == (
            "Not Recommended - Premium Metropolitan (D-Grade Infrastructure)"
            " - Severe Infrastructure Deficit"
        )

    def test_high_risk(self):
        label = generate_recommendation(1.8, 80, URBAN)
        assert label == (
            "High Risk Investment - Urban City (D-Grade Infrastructure)"
            " - Major Infrastructure Gaps"
        )

    def test_outstanding(self):
        assert generate_recommendation(4.5, 90, METRO) == (
            "Outstanding Premium Metropolitan Investment - A-Grade Infrastructure"
        )

    def test_excellent_uses_tier_risk(self):
        assert generate_recommendation(3.8, 75, METRO) == (
            "Excellent Premium Metropolitan Investment - Premium Growth Potential"
        )

    def test_good(self):
        assert generate_recommendation(3.0, 60, URBAN) == "Good Urban City Investment - Moderate Risk"

    @pytest.mark.parametrize("viability,prefix", [
        (45, "Limited Urban City Investment"),
        (30, "Speculative Urban City Investment"),
        (10, "Poor Investment Potential - Urban City"),
    ])
    def test_lower_bands(self, viability, prefix):
        assert generate_recommendation(2.5, viability, URBAN).startswith(prefix)

    def test_score_override_keeps_area_category(self):
        rural = make_intelligence(location_type="village", area_classification="Village")
        assert "Rural Development" in generate_recommendation(0.1, 11, rural)


class TestFallbackInsights:
    def test_always_three_lines(self):
        assert len(fallback_insights("Somewhere", "residential", [])) == 3

    def test_school_line(self):
        lines = fallback_insights(
            "Hebbal, Bengaluru", "residential", [make_place("s", "Kendriya Vidyalaya School")]
        )
        assert lines[0].startswith("Hebbal's educational facilities")

    def test_tourism_lines(self):
        lines = fallback_insights("Madikeri, Kodagu", "villa", [])
        assert "Coorg location" in lines[0]
        assert "Coorg tourism belt" in lines[2]
        assert "villa" in lines[2]

    def test_commerce_line(self):
        lines = fallback_insights("Hassan", "plot", [make_place("b", "Canara Bank ATM")])
        assert "commercial infrastructure" in lines[1]

    def test_intelligence_line(self):
        intel = make_intelligence(
            area_classification="Tourism hub", development_stage="developed", source="fallback"
        )
        lines = fallback_insights("Hassan", "residential", [], intel)
        assert "Tourism hub" in lines[1]

    def test_neutral_intelligence_ignored(self):
        intel = make_intelligence(source="neutral")
        lines = fallback_insights("Hassan", "residential", [], intel)
        assert "emerging area" in lines[1]

    def test_location_name(self):
        assert location_name("HSR Layout, Bengaluru") == "HSR Layout"
        assert location_name("") == "This location"
