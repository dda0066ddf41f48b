"""
Location intelligence: converts a classification record into score
multipliers and bonuses, parses provider payloads, and supplies the
deterministic fallback used whenever the provider is unavailable.
"""

import json
import logging
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Sequence, Tuple, Union

from analysis_models import (
    CRIME_RATES,
    DEVELOPMENT_STAGES,
    LOCATION_TYPES,
    LocationIntelligence,
    clamp,
    coerce_bounded,
)
from errors import MalformedResponse
from keyword_rules import KeywordRule, rule_matches_text
from scoring_config import SCORING_MODEL, ScoringModel

logger = logging.getLogger(__name__)

# Used when no classification is supplied at all.
NEUTRAL_INTELLIGENCE = LocationIntelligence()

FALLBACK_CONFIDENCE = 60.0


def bounded_intelligence(intelligence: LocationIntelligence) -> LocationIntelligence:
    """Clamp the numeric fields of a caller-built record into range.

    NaN or non-numeric values take the neutral value.
    """
    neutral = NEUTRAL_INTELLIGENCE
    return replace(
        intelligence,
        investment_potential=coerce_bounded(
            intelligence.investment_potential, 0.0, 100.0, neutral.investment_potential
        ),
        priority_score=coerce_bounded(
            intelligence.priority_score, 0.0, 100.0, neutral.priority_score
        ),
        safety_score=coerce_bounded(intelligence.safety_score, 1.0, 10.0, neutral.safety_score),
        confidence=coerce_bounded(intelligence.confidence, 0.0, 100.0, neutral.confidence),
    )


@dataclass(frozen=True)
class IntelligenceFactors:
    multiplier: float
    baseline_bonus: float
    potential_multiplier: float
    priority_bonus: float


def intelligence_factors(
    intelligence: LocationIntelligence,
    model: ScoringModel = SCORING_MODEL,
) -> IntelligenceFactors:
    """Location type wins over development stage; anything else is neutral."""
    cfg = model.intelligence
    factor = cfg.location_type_factors.get(intelligence.location_type)
    if factor is None:
        factor = cfg.development_stage_factors.get(
            intelligence.development_stage, cfg.default_factor
        )
    potential = clamp(
        intelligence.investment_potential / 100.0 + cfg.potential_offset,
        cfg.potential_min,
        cfg.potential_max,
    )
    return IntelligenceFactors(
        multiplier=factor.multiplier,
        baseline_bonus=factor.baseline_bonus,
        potential_multiplier=potential,
        priority_bonus=min(cfg.priority_bonus_cap, intelligence.priority_score / 100.0),
    )


# =============================================================================
# Provider payloads
# =============================================================================

_FENCE_RE = re.compile(r"```(?:json)?\s*")


def strip_code_fences(text: str) -> str:
    return _FENCE_RE.sub("", text or "").strip()


def _choice(value: Any, allowed: Sequence[str], default: str) -> str:
    text = str(value or "").strip().lower()
    return text if text in allowed else default


def _string_list(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(str(v) for v in value if v)


def intelligence_from_dict(data: Dict[str, Any], source: str = "ai") -> LocationIntelligence:
    """Build a LocationIntelligence from a decoded payload, clamping every number."""
    neutral = NEUTRAL_INTELLIGENCE
    return LocationIntelligence(
        location_type=_choice(data.get("locationType"), LOCATION_TYPES, neutral.location_type),
        development_stage=_choice(
            data.get("developmentStage"), DEVELOPMENT_STAGES, neutral.development_stage
        ),
        investment_potential=coerce_bounded(
            data.get("investmentPotential"), 0.0, 100.0, neutral.investment_potential
        ),
        area_classification=str(data.get("areaClassification") or neutral.area_classification),
        priority_score=coerce_bounded(data.get("priorityScore"), 0.0, 100.0, neutral.priority_score),
        safety_score=coerce_bounded(data.get("safetyScore"), 1.0, 10.0, neutral.safety_score),
        crime_rate=_choice(data.get("crimeRate"), CRIME_RATES, neutral.crime_rate),
        primary_concerns=_string_list(data.get("primaryConcerns")),
        key_strengths=_string_list(data.get("keyStrengths")),
        reasoning=str(data.get("reasoning") or ""),
        confidence=coerce_bounded(data.get("confidence"), 0.0, 100.0, 0.0),
        source=source,
    )


def parse_intelligence_payload(payload: Union[str, Dict[str, Any]]) -> LocationIntelligence:
    """Decode a provider answer (JSON text, possibly code-fenced, or a dict).

    Raises MalformedResponse when the payload is not a JSON object.
    """
    if isinstance(payload, dict):
        return intelligence_from_dict(payload)
    try:
        data = json.loads(strip_code_fences(payload))
    except (TypeError, ValueError) as exc:
        raise MalformedResponse("gemini", f"unparseable intelligence payload: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponse("gemini", "intelligence payload is not a JSON object")
    return intelligence_from_dict(data)


# =============================================================================
# Fallback classifier
# =============================================================================

@dataclass(frozen=True)
class FallbackProfile:
    location_type: str
    area_classification: str
    priority_score: float
    investment_potential: float
    safety_score: float
    rules: Tuple[KeywordRule, ...] = ()


def _address_rules(*patterns: str) -> Tuple[KeywordRule, ...]:
    return tuple(KeywordRule(p, "address", fields=()) for p in patterns)


FALLBACK_PROFILES: Tuple[FallbackProfile, ...] = (
    FallbackProfile(
        "town", "Tourism hub", 87, 72, 8,
        _address_rules(
            "kodagu", "coorg", "halugunda", "bittangala",
            "virajpet", "madikeri", "kushalnagar", "pollibetta",
        ),
    ),
    FallbackProfile(
        "metropolitan", "Metro city", 95, 85, 8,
        _address_rules("hsr", "electronic city", "whitefield", "koramangala"),
    ),
    FallbackProfile(
        "city", "City", 75, 65, 7,
        _address_rules("bengaluru", "mumbai", "delhi", "chennai"),
    ),
    FallbackProfile(
        "village", "Village", 30, 30, 7,
        _address_rules("village", "rural")
        + (KeywordRule("road", "address", fields=(), excludes="main"),),
    ),
)

DEFAULT_FALLBACK_PROFILE = FallbackProfile("village", "Urban locality", 50, 35, 6)


def _stage_from_potential(potential: float) -> str:
    if potential >= 70:
        return "developed"
    if potential >= 40:
        return "developing"
    return "underdeveloped"


def _crime_from_safety(safety: float) -> str:
    if safety >= 7:
        return "low"
    if safety >= 5:
        return "moderate"
    return "high"


def match_fallback_profile(address: str) -> FallbackProfile:
    for profile in FALLBACK_PROFILES:
        if any(rule_matches_text(rule, address) for rule in profile.rules):
            return profile
    return DEFAULT_FALLBACK_PROFILE


def fallback_intelligence(address: Optional[str]) -> LocationIntelligence:
    """Deterministic keyword classification of an address."""
    profile = match_fallback_profile(address or "")
    logger.debug("Fallback classification for %r: %s", address, profile.area_classification)
    return LocationIntelligence(
        location_type=profile.location_type,
        development_stage=_stage_from_potential(profile.investment_potential),
        investment_potential=float(profile.investment_potential),
        area_classification=profile.area_classification,
        priority_score=float(profile.priority_score),
        safety_score=float(profile.safety_score),
        crime_rate=_crime_from_safety(profile.safety_score),
        primary_concerns=("Limited AI analysis available",),
        key_strengths=("Location assessment based on keywords",),
        reasoning="Keyword-based classification; intelligence provider unavailable",
        confidence=FALLBACK_CONFIDENCE,
        source="fallback",
    )
