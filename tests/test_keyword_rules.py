"""Tests for the table-driven keyword matcher."""

import pytest

from conftest import make_place
from keyword_rules import (
    KeywordRule,
    count_matching_places,
    first_text_match,
    matching_rules,
    place_categories,
    rule_matches_place,
    rule_matches_text,
)


class TestRuleValidation:
    def test_unknown_mode_rejected(self):
        with pytest.raises(ValueError, match="match mode"):
            KeywordRule("x", "cat", mode="regex")

    def test_pattern_or_type_required(self):
        with pytest.raises(ValueError):
            KeywordRule("", "cat")

    def test_type_only_rule_allowed(self):
        rule = KeywordRule("", "financial", place_type="bank")
        assert rule_matches_place(rule, make_place("b", "Anything", types=("bank",)))


class TestModes:
    def test_contains_is_case_insensitive(self):
        rule = KeywordRule("luxury", "premium")
        assert rule_matches_place(rule, make_place("p", "The LUXURY Suites"))

    def test_word_mode_respects_boundaries(self):
        rule = KeywordRule("port", "ports", mode="word")
        assert rule_matches_place(rule, make_place("a", "Chennai Port Trust"))
        assert not rule_matches_place(rule, make_place("b", "Kempegowda Airport"))

    def test_word_mode_metro_not_metropolitan(self):
        rule = KeywordRule("metro", "metro", mode="word")
        assert not rule_matches_place(rule, make_place("h", "Metropolitan Hospital"))
        assert rule_matches_place(rule, make_place("m", "MG Road Metro"))

    def test_exact_mode(self):
        rule = KeywordRule("city", "urban", fields=(), mode="exact")
        assert rule_matches_text(rule, "  City ")
        assert not rule_matches_text(rule, "Port city")

    def test_requires(self):
        rule = KeywordRule("corporate", "financial", requires="bank")
        assert rule_matches_place(rule, make_place("a", "Axis Bank Corporate Office"))
        assert not rule_matches_place(rule, make_place("b", "Corporate Towers"))

    def test_excludes(self):
        rule = KeywordRule("road", "address", fields=(), excludes="main")
        assert rule_matches_text(rule, "Station Road, Hassan")
        assert not rule_matches_text(rule, "MG Main Road, Hassan")


class TestFields:
    def test_default_field_is_name(self):
        rule = KeywordRule("highway", "major_highways")
        place = make_place("x", "Fuel Point", vicinity="Near highway")
        assert not rule_matches_place(rule, place)

    def test_vicinity_field(self):
        rule = KeywordRule("highway", "major_highways", fields=("vicinity",))
        place = make_place("x", "Fuel Point", vicinity="NH 48 Highway")
        assert rule_matches_place(rule, place)

    def test_empty_text_never_matches(self):
        assert not rule_matches_text(KeywordRule("a", "c", fields=()), None)


class TestCollections:
    RULES = (
        KeywordRule("infosys", "tech"),
        KeywordRule("tech park", "tech", fields=("name", "vicinity")),
        KeywordRule("stock exchange", "financial"),
    )

    def test_matching_rules_in_table_order(self):
        place = make_place("p", "Infosys Tech Park")
        hits = matching_rules(self.RULES, place)
        assert [r.pattern for r in hits] == ["infosys", "tech park"]

    def test_place_categories(self):
        place = make_place("p", "Infosys", vicinity="Near Stock Exchange")
        assert place_categories(self.RULES, place) == frozenset({"tech"})

    def test_count_counts_places_not_hits(self):
        places = [
            make_place("a", "Infosys Tech Park"),
            make_place("b", "Bombay Stock Exchange"),
            make_place("c", "Corner Store"),
        ]
        assert count_matching_places(self.RULES, places, "tech") == 1
        assert count_matching_places(self.RULES, places, "financial") == 1
        assert count_matching_places(self.RULES, places) == 2

    def test_first_text_match_order(self):
        rules = (
            KeywordRule("metro", "metro", weight=3.0, fields=()),
            KeywordRule("it park", "it", weight=4.0, fields=()),
        )
        assert first_text_match(rules, "Metro IT park").weight == 3.0
        assert first_text_match(rules, "Village") is None
