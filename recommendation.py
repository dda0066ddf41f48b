"""
Recommendation labels and the deterministic prose insights used when
the AI provider cannot supply its own.
"""

from typing import List, Optional, Sequence

from analysis_models import LocationIntelligence, Place
from keyword_rules import KeywordRule, rule_matches_text
from scoring_config import SCORING_MODEL, AreaTier, ScoringModel, apply_band
from viability import classify_area_tier


def infrastructure_grade(location_score: float, model: ScoringModel = SCORING_MODEL) -> str:
    return apply_band(model.recommendation.grade_bands, location_score)


def tier_risk(tier: AreaTier, location_score: float) -> str:
    if not tier.risk_bands:
        return ""
    return apply_band(tier.risk_bands, location_score)


def generate_recommendation(
    location_score: float,
    viability: int,
    intelligence: LocationIntelligence,
    model: ScoringModel = SCORING_MODEL,
) -> str:
    """Categorical label composed from area category, risk and infrastructure grade.

    The area category comes from the area classification alone; the
    low-score override tiers only pick the "Not Recommended" and
    "High Risk" wordings.
    """
    cfg = model.recommendation
    tier = classify_area_tier(intelligence, model)
    category = tier.area_category
    grade = infrastructure_grade(location_score, model)

    if location_score < cfg.not_recommended_below:
        return f"Not Recommended - {category} ({grade} Infrastructure) - Severe Infrastructure Deficit"
    if location_score < cfg.high_risk_below:
        return f"High Risk Investment - {category} ({grade} Infrastructure) - Major Infrastructure Gaps"

    band = apply_band(cfg.viability_bands, viability)
    if band == "Outstanding":
        return f"Outstanding {category} Investment - {grade} Infrastructure"
    if band == "Excellent":
        return f"Excellent {category} Investment - {tier_risk(tier, location_score)} Growth Potential"
    if band == "Good":
        return f"Good {category} Investment - Moderate Risk"
    if band == "Limited":
        return f"Limited {category} Investment - Higher Risk"
    if band == "Speculative":
        return f"Speculative {category} Investment - High Risk"
    return f"Poor Investment Potential - {category} Infrastructure Constraints"


# =============================================================================
# Fallback prose insights
# =============================================================================

_TOURISM_BELT_RULES = (
    KeywordRule("madikeri", "tourism", fields=()),
    KeywordRule("coorg", "tourism", fields=()),
    KeywordRule("kodagu", "tourism", fields=()),
)

_SCHOOL_WORDS = ("school",)
_COMMERCE_WORDS = ("bank", "atm", "market", "store", "grocery")


def location_name(address: str) -> str:
    return (address or "").split(",")[0].strip() or "This location"


def _mentions(places: Sequence[Place], words: Sequence[str]) -> bool:
    text = " ".join(p.name.lower() for p in places)
    return any(word in text for word in words)


def fallback_insights(
    address: str,
    property_type: str,
    places: Sequence[Place],
    intelligence: Optional[LocationIntelligence] = None,
) -> List[str]:
    """Three deterministic insight lines built from detected amenities."""
    name = location_name(address)
    kind = property_type or "residential"
    tourism = any(rule_matches_text(rule, address) for rule in _TOURISM_BELT_RULES)
    lines = []

    if _mentions(places, _SCHOOL_WORDS):
        lines.append(
            f"{name}'s educational facilities provide stability for long-term residential "
            f"demand, essential for {kind} investment success"
        )
    elif tourism:
        lines.append(
            f"{name} offers a scenic Coorg location with tourism potential, ideal for "
            f"{kind} targeting vacation rental markets"
        )
    else:
        lines.append(
            f"{name} presents an affordable {kind} opportunity with potential for future "
            f"infrastructure development"
        )

    if _mentions(places, _COMMERCE_WORDS):
        lines.append(
            f"{name}'s basic commercial infrastructure supports daily living needs, "
            f"enhancing {kind} rental viability"
        )
    elif intelligence is not None and intelligence.source != "neutral":
        lines.append(
            f"{name} as a {intelligence.area_classification} offers "
            f"{intelligence.development_stage} infrastructure with investment potential "
            f"suited for patient {kind} investors"
        )
    else:
        lines.append(
            f"{name} represents an emerging area with early {kind} investment opportunity "
            f"before major infrastructure development"
        )

    if tourism:
        lines.append(
            f"{name}'s position in the Coorg tourism belt offers long-term {kind} "
            f"appreciation despite current infrastructure limitations"
        )
    else:
        lines.append(
            f"{name} requires careful consideration of the infrastructure development "
            f"timeline for optimal {kind} investment returns"
        )
    return lines
