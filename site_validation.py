"""
Restricted-area screening for the analysed address.

Flags addresses that name water bodies, protected forests or
government/military sites.  Issues are reported alongside the analysis;
they never stop scoring.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from keyword_rules import KeywordRule, first_text_match

CLEAN_CONFIDENCE = 95
FLAGGED_CONFIDENCE = 85


@dataclass(frozen=True)
class RestrictedAreaGroup:
    category: str
    message: str    # formatted with the matched phrase
    rules: Tuple[KeywordRule, ...]


def _phrases(category: str, *phrases: str) -> Tuple[KeywordRule, ...]:
    return tuple(KeywordRule(p, category, fields=()) for p in phrases)


RESTRICTED_AREA_GROUPS: Tuple[RestrictedAreaGroup, ...] = (
    RestrictedAreaGroup(
        category="water",
        message=(
            "This location is in/near a water body ({phrase}). "
            "Property development is not possible here."
        ),
        rules=_phrases(
            "water",
            "in the river", "middle of lake", "ocean floor", "sea bed", "bay area",
            "creek bed", "river bed", "lake shore", "ocean view", "sea front",
            "harbor area", "marina complex", "dam reservoir", "estuary mouth",
            "lagoon center",
        ),
    ),
    RestrictedAreaGroup(
        category="forest",
        message=(
            "This location is in a protected/forest area ({phrase}). "
            "Property development is restricted here."
        ),
        rules=_phrases(
            "forest",
            "dense forest", "deep jungle", "national park entrance", "wildlife sanctuary",
            "forest reserve", "tiger reserve", "nature reserve area", "protected forest",
            "conservation area", "biodiversity hotspot", "ecological reserve",
            "wetland area", "mangrove forest", "rainforest area", "woodland reserve",
        ),
    ),
    RestrictedAreaGroup(
        category="government",
        message=(
            "This location is in a government/military area ({phrase}). "
            "Property development is restricted here."
        ),
        rules=_phrases(
            "government",
            "military base", "army cantonment", "naval base", "air force station",
            "defense facility", "restricted area", "prohibited zone",
            "military headquarters", "embassy compound", "consulate general",
            "high security zone", "ministry complex", "parliament house",
            "capitol building", "government secretariat",
        ),
    ),
)


@dataclass
class SiteValidation:
    is_valid: bool
    issues: List[str] = field(default_factory=list)
    risk_level: str = "low"
    confidence: int = CLEAN_CONFIDENCE


def restricted_area_issues(address: Optional[str]) -> List[str]:
    """One issue per restricted-area group whose phrases appear in the address."""
    issues = []
    for group in RESTRICTED_AREA_GROUPS:
        rule = first_text_match(group.rules, address or "")
        if rule:
            issues.append(group.message.format(phrase=rule.pattern))
    return issues


def validate_site(address: Optional[str]) -> SiteValidation:
    issues = restricted_area_issues(address)
    if issues:
        return SiteValidation(
            is_valid=False, issues=issues, risk_level="high", confidence=FLAGGED_CONFIDENCE,
        )
    return SiteValidation(is_valid=True)
