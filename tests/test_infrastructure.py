"""
Tests for infrastructure aggregation.

Covers the distance decay curve (clamped and historical), rating and
quality tiers, category amplifiers and the aggregation rules: skipped
places, the 5 km radius, non-exclusive categories and hub counting.
"""

import pytest

from analysis_models import CategoryAccumulator, DistanceDuration
from conftest import at_km, make_place
from infrastructure import (
    GOOD,
    PREMIUM,
    STANDARD,
    aggregate_infrastructure,
    distance_multiplier,
    quality_tier,
    rating_multiplier,
)
from scoring_config import SCORING_MODEL, UNCLAMPED_DECAY_MODEL

INFRA = SCORING_MODEL.infrastructure


# =============================================================================
# Distance decay
# =============================================================================

class TestDistanceMultiplier:
    @pytest.mark.parametrize("km,expected", [
        (0.0, 2.0),
        (0.5, 2.0),
        (0.8, 1.7),
        (1.0, 1.7),
        (2.0, 1.3),
        (3.0, 1.3),
        (4.0, 0.9),
        (8.0, 0.5),
    ])
    def test_bands_and_linear_decay(self, km, expected):
        assert distance_multiplier(km, INFRA.decay) == pytest.approx(expected)

    def test_clamped_floor(self):
        assert distance_multiplier(20.0, INFRA.decay) == pytest.approx(0.05)

    def test_historical_curve_goes_negative(self):
        decay = UNCLAMPED_DECAY_MODEL.infrastructure.decay
        assert distance_multiplier(20.0, decay) == pytest.approx(-0.7)

    def test_monotonically_non_increasing(self):
        values = [distance_multiplier(km / 10, INFRA.decay) for km in range(0, 200)]
        assert all(a >= b for a, b in zip(values, values[1:]))


# =============================================================================
# Rating and quality
# =============================================================================

class TestRatingMultiplier:
    def test_unrated_uses_fallback(self):
        assert rating_multiplier(None, INFRA.rating) == 0.5

    def test_zero_rating_treated_as_unrated(self):
        assert rating_multiplier(0.0, INFRA.rating) == 0.5

    def test_scaled_rating(self):
        assert rating_multiplier(4.0, INFRA.rating) == pytest.approx(0.8)
        assert rating_multiplier(5.0, INFRA.rating) == pytest.approx(1.0)


class TestQualityTier:
    def test_high_rating_is_premium(self):
        assert quality_tier(make_place("a", "Clinic", rating=4.6), INFRA) == PREMIUM

    def test_premium_keyword_without_rating(self):
        assert quality_tier(make_place("a", "Apollo Hospital"), INFRA) == PREMIUM

    def test_good_rating(self):
        assert quality_tier(make_place("a", "Clinic", rating=4.1), INFRA) == GOOD

    def test_good_keyword(self):
        assert quality_tier(make_place("a", "Grand Bazaar", rating=3.0), INFRA) == GOOD

    def test_standard(self):
        assert quality_tier(make_place("a", "Corner Shop", rating=3.2), INFRA) == STANDARD


# =============================================================================
# Aggregation
# =============================================================================

class TestAggregation:
    def test_good_hospital_close_by(self):
        hospital = make_place("h", "City Hospital", ("hospital",), rating=4.0)
        places, distances = at_km((hospital, 0.4))
        infra = aggregate_infrastructure(places, distances)

        # 0.8 rating x 2.0 distance x 1.8 good amplifier
        assert infra.healthcare.total == pytest.approx(2.88)
        assert infra.healthcare.close == pytest.approx(2.88)
        assert infra.healthcare.premium == 0
        # essential: 0.8 rating x 1.8 proximity
        assert infra.essential.total == pytest.approx(1.44)
        assert infra.amenity_count == 1

    def test_places_without_distance_skipped(self):
        places, distances = at_km(
            (make_place("a", "Pharmacy", ("pharmacy",)), None),
            (make_place("b", "School", ("school",)), 1.0),
        )
        infra = aggregate_infrastructure(places, distances)
        assert infra.amenity_count == 1
        assert infra.healthcare.total == 0

    def test_places_beyond_radius_skipped(self):
        places, distances = at_km((make_place("a", "Hospital", ("hospital",)), 5.5))
        infra = aggregate_infrastructure(places, distances)
        assert infra.amenity_count == 0
        assert infra.healthcare.total == 0

    def test_invalid_distance_skipped(self):
        place = make_place("a", "Hospital", ("hospital",))
        distances = {"a": DistanceDuration(distance_m=float("nan"))}
        infra = aggregate_infrastructure([place], distances)
        assert infra.amenity_count == 0

    def test_between_close_and_scoring_radius(self):
        places, distances = at_km((make_place("a", "Store", ("store",)), 4.0))
        infra = aggregate_infrastructure(places, distances)
        assert infra.commercial.total == pytest.approx(0.5 * 0.9)
        assert infra.commercial.close == 0

    def test_mall_counts_in_two_categories(self):
        mall = make_place("m", "Forum Mall", ("shopping_mall",), rating=4.2)
        places, distances = at_km((mall, 0.8))
        infra = aggregate_infrastructure(places, distances)
        base = 0.84 * 1.7
        assert infra.commercial.total == pytest.approx(base)
        # rated mall amplifier
        assert infra.lifestyle.total == pytest.approx(base * 2.2)

    def test_premium_lodging_amplifier(self):
        hotel = make_place("h", "Taj Hotel", ("lodging", "restaurant"), rating=4.8)
        places, distances = at_km((hotel, 2.0))
        infra = aggregate_infrastructure(places, distances)
        assert infra.lifestyle.total == pytest.approx(0.96 * 1.3 * 3.0)
        assert infra.lifestyle.premium == 1

    def test_metro_station_counts_as_hub(self):
        station = make_place("s", "Indiranagar Metro", ("subway_station", "transit_station"))
        places, distances = at_km((station, 1.0))
        infra = aggregate_infrastructure(places, distances)
        assert infra.transport.total == pytest.approx(0.5 * 1.7 * 2.5)
        assert infra.transport.premium == 1

    def test_financial_amplifier(self):
        bank = make_place("b", "State Bank", ("bank", "finance"), rating=3.5)
        places, distances = at_km((bank, 0.3))
        infra = aggregate_infrastructure(places, distances)
        assert infra.commercial.total == pytest.approx(0.7 * 2.0 * 1.5)

    def test_flat_safety_multiplier(self):
        police = make_place("p", "Police Station", ("police",), rating=3.0)
        places, distances = at_km((police, 0.3))
        infra = aggregate_infrastructure(places, distances)
        assert infra.safety.total == pytest.approx(0.6 * 2.0 * 1.5)

    def test_untyped_place_counts_but_scores_nothing(self):
        places, distances = at_km((make_place("x", "Unknown"), 1.0))
        infra = aggregate_infrastructure(places, distances)
        assert infra.amenity_count == 1
        assert infra.essential.total == 0

    def test_accumulators_only_grow(self):
        acc = CategoryAccumulator()
        acc.add(-3.0, True, False)
        assert acc.total == 0
        assert acc.close == 0
        acc.add(2.0, False, True)
        assert acc.total == 2.0
        assert acc.premium == 1

    def test_close_ratio_capped(self):
        acc = CategoryAccumulator(total=1.0, close=1.0)
        assert acc.close_ratio == 1.0
        assert CategoryAccumulator().close_ratio == 0.0
