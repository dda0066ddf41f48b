"""
Table-driven keyword matching for place and address classification.

A rule is a (pattern, category, weight) tuple plus a few matching options.
Rule tables live in scoring_config.py; this module only knows how to
evaluate them, so a new brand name or landmark keyword is a data change.

Matching is case-insensitive.  A rule hits when any of:
  - place_type is set and the place carries that type tag
  - pattern is found in one of the rule's fields, using the rule's mode:
      "contains"  plain substring (default)
      "word"      whole-word match (so "port" does not hit "airport")
      "exact"     the whole field equals the pattern
  - requires, when set, must also appear in the same field
  - excludes, when set, must not appear in the same field
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from analysis_models import Place

MATCH_MODES = ("contains", "word", "exact")


@dataclass(frozen=True)
class KeywordRule:
    pattern: str
    category: str
    weight: float = 1.0
    fields: Tuple[str, ...] = ("name",)
    mode: str = "contains"
    place_type: str = ""
    requires: str = ""
    excludes: str = ""

    def __post_init__(self):
        if self.mode not in MATCH_MODES:
            raise ValueError(f"Unknown match mode {self.mode!r} for rule {self.pattern!r}")
        if not self.pattern and not self.place_type:
            raise ValueError(f"Rule for {self.category!r} needs a pattern or a place_type")


@lru_cache(maxsize=512)
def _word_regex(pattern: str) -> "re.Pattern[str]":
    return re.compile(r"\b" + re.escape(pattern) + r"\b")


def _text_hit(rule: KeywordRule, text: str) -> bool:
    if not rule.pattern or not text:
        return False
    pattern = rule.pattern.lower()
    if rule.mode == "exact":
        hit = text.strip() == pattern
    elif rule.mode == "word":
        hit = _word_regex(pattern).search(text) is not None
    else:
        hit = pattern in text
    if hit and rule.requires:
        hit = rule.requires.lower() in text
    if hit and rule.excludes:
        hit = rule.excludes.lower() not in text
    return hit


def _place_fields(place: Place) -> Dict[str, str]:
    return {
        "name": (place.name or "").lower(),
        "vicinity": (place.vicinity or "").lower(),
    }


def rule_matches_place(rule: KeywordRule, place: Place) -> bool:
    if rule.place_type and rule.place_type in place.types:
        return True
    fields = _place_fields(place)
    return any(_text_hit(rule, fields.get(f, "")) for f in rule.fields)


def rule_matches_text(rule: KeywordRule, text: str) -> bool:
    """Match a rule against free text (addresses, classification tags)."""
    return _text_hit(rule, (text or "").lower())


def matching_rules(rules: Sequence[KeywordRule], place: Place) -> List[KeywordRule]:
    """All rules that hit *place*, in table order."""
    return [r for r in rules if rule_matches_place(r, place)]


def place_categories(rules: Sequence[KeywordRule], place: Place) -> frozenset:
    """Set of categories for which at least one rule hits *place*."""
    return frozenset(r.category for r in matching_rules(rules, place))


def first_text_match(rules: Sequence[KeywordRule], text: str) -> Optional[KeywordRule]:
    """The first rule in table order that hits *text*, or None."""
    for rule in rules:
        if rule_matches_text(rule, text):
            return rule
    return None


def count_matching_places(
    rules: Sequence[KeywordRule],
    places: Iterable[Place],
    category: Optional[str] = None,
) -> int:
    """Number of places hit by at least one rule (optionally of one category)."""
    selected = [r for r in rules if category is None or r.category == category]
    return sum(1 for p in places if any(rule_matches_place(r, p) for r in selected))
