"""
Scoring model configuration for plotwise.

Owns every numeric constant and keyword table that affects the five
investment metrics.  Orchestration code (location_analyzer.py) and the
HTTP collaborators keep their own search/transport constants.

Frozen dataclasses provide type checking and IDE support without
the indirection of YAML/JSON config files.  Alternative formula variants
are registered in SCORING_MODELS as data, never as code forks.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional, Tuple

from keyword_rules import KeywordRule


# =============================================================================
# Dataclasses: generic building blocks
# =============================================================================

@dataclass(frozen=True)
class ThresholdStep:
    """Maps a minimum input value to an output value.

    Steps are evaluated highest-first: the first entry whose
    min_value <= x is used.
    """
    min_value: float
    value: float


@dataclass(frozen=True)
class CappedFactor:
    """x * rate, capped at cap."""
    rate: float
    cap: float

    def apply(self, x: float) -> float:
        return min(self.cap, x * self.rate)


@dataclass(frozen=True)
class CappedRatio:
    """(x / divisor) * cap, capped at cap, on a 0..cap points scale."""
    divisor: float
    cap: float

    def apply(self, x: float) -> float:
        return min(self.cap, (x / self.divisor) * self.cap)


@dataclass(frozen=True)
class ScoreBand:
    """Maps a minimum score threshold to a human-readable label."""
    threshold: float
    label: str


# =============================================================================
# Dataclasses: infrastructure aggregation
# =============================================================================

@dataclass(frozen=True)
class DistanceBand:
    max_km: float
    multiplier: float


@dataclass(frozen=True)
class DistanceDecayConfig:
    """Distance multiplier: step bands up to decay_start_km, then linear decay.

    floor=None reproduces the historical unclamped curve, which turns
    negative past decay_start_km + 1 / decay_per_km.
    """
    bands: Tuple[DistanceBand, ...]
    decay_start_km: float = 3.0
    decay_per_km: float = 0.1
    floor: Optional[float] = 0.05


@dataclass(frozen=True)
class RatingConfig:
    divisor: float = 5.0
    cap: float = 1.2
    unrated_multiplier: float = 0.5
    premium_min_rating: float = 4.5
    good_min_rating: float = 4.0


@dataclass(frozen=True)
class Amplifier:
    """Multiplier applied when every flag in *when* is set on a place.

    A category's amplifiers are evaluated in order; the first hit wins.
    """
    when: Tuple[str, ...]
    multiplier: float


@dataclass(frozen=True)
class CategoryConfig:
    name: str
    place_types: FrozenSet[str]
    amplifiers: Tuple[Amplifier, ...] = ()
    flat_multiplier: float = 1.0
    hub_flags: Tuple[str, ...] = ()   # flags that count toward .premium


@dataclass(frozen=True)
class EssentialConfig:
    """Essential-services accumulator: every place with a type tag."""
    proximity_steps: Tuple[DistanceBand, ...]
    far_multiplier: float = 1.1


@dataclass(frozen=True)
class InfrastructureConfig:
    scoring_radius_km: float
    close_radius_km: float
    decay: DistanceDecayConfig
    rating: RatingConfig
    quality_rules: Tuple[KeywordRule, ...]
    flag_rules: Tuple[KeywordRule, ...]
    categories: Tuple[CategoryConfig, ...]
    essential: EssentialConfig


# =============================================================================
# Dataclasses: connectivity
# =============================================================================

@dataclass(frozen=True)
class ConnectivityFeature:
    key: str
    index_weight: float
    base_value: float
    rules: Tuple[KeywordRule, ...]
    upgrade_pattern: str = ""     # name substring that lifts the value
    upgrade_value: float = 0.0


@dataclass(frozen=True)
class ConnectivityConfig:
    radius_km: float
    decay_km: float
    min_multiplier: float
    index_max: float
    features: Tuple[ConnectivityFeature, ...]


# =============================================================================
# Dataclasses: market signals
# =============================================================================

@dataclass(frozen=True)
class MarketSignalConfig:
    rules: Tuple[KeywordRule, ...]          # categories: tech / financial / premium_residential
    premium_residential_min_rating: float
    metropolitan_min_places: int
    metropolitan_min_transport: float
    metropolitan_min_commercial: float


# =============================================================================
# Dataclasses: location intelligence
# =============================================================================

@dataclass(frozen=True)
class IntelligenceFactor:
    multiplier: float
    baseline_bonus: float


@dataclass(frozen=True)
class IntelligenceConfig:
    location_type_factors: Dict[str, IntelligenceFactor]
    development_stage_factors: Dict[str, IntelligenceFactor]
    default_factor: IntelligenceFactor
    potential_offset: float = 0.5
    potential_min: float = 0.8
    potential_max: float = 1.5
    priority_bonus_cap: float = 1.0


# =============================================================================
# Dataclasses: location score
# =============================================================================

@dataclass(frozen=True)
class CategoryNormalization:
    divisor: float
    cap: float
    premium_bonus: float = 0.0
    base_cap: float = 1.0


@dataclass(frozen=True)
class DensityTier:
    min_amenities: int
    multiplier: float
    bonus: float


@dataclass(frozen=True)
class LocationScoreConfig:
    normalization: Dict[str, CategoryNormalization]
    connectivity_normalization: CategoryNormalization
    category_weights: Dict[str, float]       # includes "connectivity"
    proximity_weights: Dict[str, float]
    tech_steps: Tuple[ThresholdStep, ...]
    financial_steps: Tuple[ThresholdStep, ...]
    premium_residential_steps: Tuple[ThresholdStep, ...]
    metropolitan_bonus: float
    density_tiers: Tuple[DensityTier, ...]
    final_multiplier: float = 1.2
    bonus_guard: float = 0.8
    baseline_bonus_weight: float = 0.5
    priority_bonus_weight: float = 0.3
    min_score: float = 0.1
    max_score: float = 5.0


# =============================================================================
# Dataclasses: viability tiers
# =============================================================================

@dataclass(frozen=True)
class AreaTier:
    """One of the eight area tiers, or a score-driven override tier."""
    key: str
    label: str
    area_category: str
    floor: float
    base_multiplier: float
    tier_multiplier: float = 1.0
    priority_rate: float = 0.3
    priority_cap: float = 30.0
    priority_premium_threshold: Optional[float] = None
    priority_premium_bonus: float = 0.0
    location_types: Tuple[str, ...] = ()
    label_rules: Tuple[KeywordRule, ...] = ()
    risk_bands: Tuple[ScoreBand, ...] = ()


@dataclass(frozen=True)
class ScoreTier:
    """Score-driven tier that overrides the area classification."""
    max_score: float          # applies when location_score < max_score
    tier: AreaTier


@dataclass(frozen=True)
class ViabilityConfig:
    score_tiers: Tuple[ScoreTier, ...]
    area_tiers: Tuple[AreaTier, ...]
    default_tier_key: str
    base_scale: float
    market_infrastructure: CappedRatio
    market_economic: CappedRatio
    market_connectivity: CappedRatio
    market_demographics: CappedRatio
    market_transportation: CappedRatio
    market_bonus: CappedFactor
    ai_bonus: CappedFactor
    connectivity_steps: Tuple[ThresholdStep, ...]
    amenity_steps: Tuple[ThresholdStep, ...]
    commercial_steps: Tuple[ThresholdStep, ...]
    tech_steps: Tuple[ThresholdStep, ...]
    financial_steps: Tuple[ThresholdStep, ...]
    metropolitan_bonus: float


# =============================================================================
# Dataclasses: growth
# =============================================================================

@dataclass(frozen=True)
class GrowthRateConfig:
    factors: Dict[str, CappedFactor]
    total_max: float
    span: float
    offset: float
    low_viability: float
    low_viability_delta: float
    high_viability: float
    high_viability_delta: float
    min_rate: float
    max_rate: float
    area_bonus_rules: Tuple[KeywordRule, ...] = ()


@dataclass(frozen=True)
class GrowthConfig:
    poor_score_threshold: float
    poor_penalty_rate: float
    poor_amenity_min: int
    poor_amenity_penalty: float
    poor_connectivity_min: float
    poor_connectivity_penalty: float
    poor_viability_min: float
    poor_viability_penalty: float
    poor_range: Tuple[float, float]
    factor_weights: Dict[str, float]
    scale: float
    shift: float
    business_offset: float
    business_divisor: float
    population_offset: float
    population_divisor: float
    factor_floor: float
    amenity_penalties: Tuple[ThresholdStep, ...]   # (max_exclusive, penalty)
    connectivity_min: float
    connectivity_penalty: float
    standard_range: Tuple[float, float]
    business: GrowthRateConfig
    population: GrowthRateConfig


# =============================================================================
# Dataclasses: recommendation
# =============================================================================

@dataclass(frozen=True)
class RecommendationConfig:
    not_recommended_below: float
    high_risk_below: float
    grade_bands: Tuple[ScoreBand, ...]
    viability_bands: Tuple[ScoreBand, ...]
    investment_grade_bands: Tuple[ScoreBand, ...]


@dataclass(frozen=True)
class ScoringModel:
    """Top-level container for all scoring parameters.

    A single module-level instance (SCORING_MODEL) is the source of truth.
    Bump `version` on every change that alters score outputs.
    """
    version: str
    infrastructure: InfrastructureConfig
    connectivity: ConnectivityConfig
    signals: MarketSignalConfig
    intelligence: IntelligenceConfig
    location_score: LocationScoreConfig
    viability: ViabilityConfig
    growth: GrowthConfig
    recommendation: RecommendationConfig


# =============================================================================
# Pure helpers
# =============================================================================

def apply_steps(steps: Tuple[ThresholdStep, ...], x: float, default: float = 0.0) -> float:
    """Return the value of the first step whose min_value <= x.

    Steps are assumed sorted highest min_value first.
    """
    for step in steps:
        if x >= step.min_value:
            return step.value
    return default


def apply_band(bands: Tuple[ScoreBand, ...], score: float) -> str:
    """Label of the first band whose threshold <= score (bands highest-first)."""
    for band in bands:
        if score >= band.threshold:
            return band.label
    return bands[-1].label


# =============================================================================
# Keyword tables
# =============================================================================

def _types(*names: str) -> Tuple[KeywordRule, ...]:
    return tuple(KeywordRule("", n.split(":")[0], place_type=n.split(":")[1]) for n in names)


_QUALITY_RULES = (
    KeywordRule("apollo", "premium"),
    KeywordRule("premium", "premium"),
    KeywordRule("luxury", "premium"),
    KeywordRule("five star", "premium"),
    KeywordRule("central", "good"),
    KeywordRule("super", "good"),
    KeywordRule("grand", "good"),
)

# Flags consumed by category amplifiers and hub counting.
_FLAG_RULES = (
    KeywordRule("university", "university", place_type="university"),
    KeywordRule("college", "college", place_type="college"),
    KeywordRule("metro", "metro", mode="word", place_type="subway_station"),
    KeywordRule("railway", "railway", place_type="train_station"),
) + _types(
    "bus_station:bus_station",
    "financial:finance",
    "financial:bank",
    "financial:insurance_agency",
    "financial:real_estate_agency",
    "lodging:lodging",
    "spa:spa",
    "mall:shopping_mall",
)

_TECH_RULES = (
    KeywordRule("tech park", "tech", fields=("name", "vicinity")),
    KeywordRule("it park", "tech"),
    KeywordRule("software park", "tech"),
    KeywordRule("cyber", "tech"),
    KeywordRule("it corridor", "tech", fields=("vicinity",)),
    KeywordRule("microsoft", "tech"),
    KeywordRule("google", "tech"),
    KeywordRule("amazon", "tech"),
    KeywordRule("infosys", "tech"),
    KeywordRule("wipro", "tech"),
    KeywordRule("tcs", "tech", mode="word"),
)

_FINANCIAL_RULES = (
    KeywordRule("headquarters", "financial", requires="bank"),
    KeywordRule("corporate", "financial", requires="bank"),
    KeywordRule("stock exchange", "financial"),
    KeywordRule("financial district", "financial"),
    KeywordRule("business district", "financial"),
)

_PREMIUM_RESIDENTIAL_RULES = (
    KeywordRule("country club", "premium_residential"),
    KeywordRule("golf course", "premium_residential"),
    KeywordRule("five star", "premium_residential"),
    KeywordRule("luxury", "premium_residential"),
)


# =============================================================================
# Infrastructure
# =============================================================================

_HEALTHCARE = CategoryConfig(
    name="healthcare",
    place_types=frozenset({"hospital", "pharmacy", "doctor", "health", "medical_center"}),
    amplifiers=(
        Amplifier(("premium",), 2.5),
        Amplifier(("good",), 1.8),
    ),
)

_EDUCATION = CategoryConfig(
    name="education",
    place_types=frozenset({"school", "university", "college", "library", "education"}),
    amplifiers=(
        Amplifier(("university",), 2.2),
        Amplifier(("college",), 1.8),
        Amplifier(("premium",), 2.0),
        Amplifier(("good",), 1.5),
    ),
    hub_flags=("university",),
)

_TRANSPORT = CategoryConfig(
    name="transport",
    place_types=frozenset({
        "transit_station", "bus_station", "subway_station", "train_station", "gas_station",
    }),
    amplifiers=(
        Amplifier(("metro",), 2.5),
        Amplifier(("railway",), 2.0),
        Amplifier(("bus_station",), 1.5),
    ),
    hub_flags=("metro", "railway"),
)

_COMMERCIAL = CategoryConfig(
    name="commercial",
    place_types=frozenset({
        "store", "supermarket", "grocery_or_supermarket", "shopping_mall", "bank", "atm",
        "establishment", "finance", "insurance_agency", "real_estate_agency", "accounting",
        "lawyer", "point_of_interest", "business_center", "office_building",
    }),
    amplifiers=(
        Amplifier(("financial",), 1.5),
    ),
)

_LIFESTYLE = CategoryConfig(
    name="lifestyle",
    place_types=frozenset({
        "lodging", "spa", "gym", "cafe", "bar", "restaurant", "park", "movie_theater",
        "shopping_mall",
    }),
    amplifiers=(
        Amplifier(("lodging", "premium"), 3.0),
        Amplifier(("spa", "premium"), 2.5),
        Amplifier(("mall", "rated_good"), 2.2),
        Amplifier(("premium",), 2.0),
        Amplifier(("good",), 1.5),
    ),
)

_SAFETY = CategoryConfig(
    name="safety",
    place_types=frozenset({"police", "fire_station", "local_government_office"}),
    flat_multiplier=1.5,
)

_ENVIRONMENT = CategoryConfig(
    name="environment",
    place_types=frozenset({"park", "cemetery", "place_of_worship"}),
    flat_multiplier=1.3,
)

_INFRASTRUCTURE = InfrastructureConfig(
    scoring_radius_km=5.0,
    close_radius_km=3.0,
    decay=DistanceDecayConfig(
        bands=(
            DistanceBand(0.5, 2.0),
            DistanceBand(1.0, 1.7),
            DistanceBand(3.0, 1.3),
        ),
        decay_start_km=3.0,
        decay_per_km=0.1,
        floor=0.05,
    ),
    rating=RatingConfig(),
    quality_rules=_QUALITY_RULES,
    flag_rules=_FLAG_RULES,
    categories=(
        _HEALTHCARE, _EDUCATION, _TRANSPORT, _COMMERCIAL, _LIFESTYLE, _SAFETY, _ENVIRONMENT,
    ),
    essential=EssentialConfig(
        proximity_steps=(
            DistanceBand(1.0, 1.8),
            DistanceBand(3.0, 1.4),
        ),
        far_multiplier=1.1,
    ),
)


# =============================================================================
# Connectivity
# =============================================================================

_CONNECTIVITY = ConnectivityConfig(
    radius_km=10.0,
    decay_km=10.0,
    min_multiplier=0.3,
    index_max=100.0,
    features=(
        ConnectivityFeature(
            key="airports",
            index_weight=0.25,
            base_value=70.0,
            rules=(
                KeywordRule("airport", "airports", place_type="airport"),
                KeywordRule("aerodrome", "airports"),
            ),
            upgrade_pattern="international",
            upgrade_value=100.0,
        ),
        ConnectivityFeature(
            key="major_highways",
            index_weight=0.20,
            base_value=60.0,
            rules=(
                KeywordRule("national highway", "major_highways"),
                KeywordRule("nh-", "major_highways"),
                KeywordRule("expressway", "major_highways", fields=("name", "vicinity")),
                KeywordRule("outer ring road", "major_highways"),
                KeywordRule("highway", "major_highways", fields=("vicinity",)),
            ),
        ),
        ConnectivityFeature(
            key="metro_stations",
            index_weight=0.15,
            base_value=50.0,
            rules=(
                KeywordRule("metro", "metro_stations", mode="word", place_type="subway_station"),
                KeywordRule("subway", "metro_stations"),
            ),
        ),
        ConnectivityFeature(
            key="railway_stations",
            index_weight=0.15,
            base_value=45.0,
            rules=(
                KeywordRule("railway", "railway_stations", place_type="train_station"),
                KeywordRule("junction", "railway_stations"),
                KeywordRule("central station", "railway_stations"),
            ),
        ),
        ConnectivityFeature(
            key="tech_corridors",
            index_weight=0.10,
            base_value=40.0,
            rules=(
                KeywordRule("tech park", "tech_corridors"),
                KeywordRule("it park", "tech_corridors"),
                KeywordRule("software", "tech_corridors"),
                KeywordRule("cyber", "tech_corridors"),
                KeywordRule("electronic city", "tech_corridors"),
                KeywordRule("tech corridor", "tech_corridors"),
            ),
        ),
        ConnectivityFeature(
            key="ports",
            index_weight=0.08,
            base_value=55.0,
            rules=(
                KeywordRule("port", "ports", mode="word", place_type="marina"),
                KeywordRule("harbor", "ports"),
                KeywordRule("harbour", "ports"),
            ),
        ),
        ConnectivityFeature(
            key="bus_terminals",
            index_weight=0.05,
            base_value=25.0,
            rules=(
                KeywordRule("bus terminal", "bus_terminals", place_type="bus_station"),
                KeywordRule("bus stand", "bus_terminals"),
                KeywordRule("transport hub", "bus_terminals"),
            ),
        ),
        ConnectivityFeature(
            key="helipads",
            index_weight=0.02,
            base_value=35.0,
            rules=(
                KeywordRule("helipad", "helipads", place_type="heliport"),
                KeywordRule("helicopter", "helipads"),
            ),
        ),
        ConnectivityFeature(
            key="local_roads",
            index_weight=0.01,
            base_value=10.0,
            rules=_types("local_roads:gas_station"),
        ),
    ),
)


# =============================================================================
# Market signals
# =============================================================================

_SIGNALS = MarketSignalConfig(
    rules=_TECH_RULES + _FINANCIAL_RULES + _PREMIUM_RESIDENTIAL_RULES,
    premium_residential_min_rating=4.7,
    metropolitan_min_places=40,
    metropolitan_min_transport=4.0,
    metropolitan_min_commercial=8.0,
)


# =============================================================================
# Location intelligence
# =============================================================================

_INTELLIGENCE = IntelligenceConfig(
    location_type_factors={
        "metropolitan": IntelligenceFactor(2.0, 1.5),
        "city": IntelligenceFactor(1.6, 1.0),
    },
    development_stage_factors={
        "developed": IntelligenceFactor(1.4, 0.8),
        "developing": IntelligenceFactor(1.2, 0.5),
    },
    default_factor=IntelligenceFactor(1.0, 0.0),
)


# =============================================================================
# Location score
# =============================================================================

_LOCATION_SCORE = LocationScoreConfig(
    normalization={
        "healthcare": CategoryNormalization(divisor=8.0, cap=1.2, premium_bonus=0.15),
        "education": CategoryNormalization(divisor=10.0, cap=1.1, premium_bonus=0.12),
        "transport": CategoryNormalization(divisor=8.0, cap=1.3, premium_bonus=0.20),
        "commercial": CategoryNormalization(divisor=12.0, cap=1.1, premium_bonus=0.10),
        "lifestyle": CategoryNormalization(divisor=9.0, cap=1.0, premium_bonus=0.15),
        "safety": CategoryNormalization(divisor=4.0, cap=0.8),
        "environment": CategoryNormalization(divisor=6.0, cap=0.7),
    },
    connectivity_normalization=CategoryNormalization(divisor=120.0, cap=1.0),
    category_weights={
        "healthcare": 0.22,
        "education": 0.18,
        "transport": 0.20,
        "commercial": 0.15,
        "lifestyle": 0.10,
        "connectivity": 0.12,
        "safety": 0.02,
        "environment": 0.01,
    },
    proximity_weights={
        "transport": 0.30,
        "healthcare": 0.25,
        "education": 0.20,
        "lifestyle": 0.15,
        "safety": 0.10,
    },
    tech_steps=(ThresholdStep(3, 0.25), ThresholdStep(1, 0.10)),
    financial_steps=(ThresholdStep(2, 0.20), ThresholdStep(1, 0.08)),
    premium_residential_steps=(ThresholdStep(2, 0.15),),
    metropolitan_bonus=0.15,
    density_tiers=(
        DensityTier(50, 1.8, 2.0),
        DensityTier(25, 1.6, 1.5),
        DensityTier(15, 1.4, 1.2),
        DensityTier(8, 1.2, 0.8),
        DensityTier(3, 1.0, 0.3),
        DensityTier(0, 0.8, 0.0),
    ),
)


# =============================================================================
# Viability tiers
# =============================================================================

_METRO_LABELS = ("metro city", "metropolitan area", "megacity", "urban agglomeration")

_AREA_TIERS = (
    AreaTier(
        key="metro",
        label="Metro",
        area_category="Premium Metropolitan",
        floor=60.0, base_multiplier=1.0, tier_multiplier=1.2,
        priority_rate=0.45, priority_cap=40.0,
        priority_premium_threshold=95.0, priority_premium_bonus=15.0,
        label_rules=tuple(
            KeywordRule(label, "metro", fields=(), mode="exact") for label in _METRO_LABELS
        ),
        risk_bands=(
            ScoreBand(4.0, "Ultra-Premium"),
            ScoreBand(3.5, "Premium"),
            ScoreBand(0.0, "Standard Metropolitan"),
        ),
    ),
    # Metro reached through location type or a loose "metro" tag.
    AreaTier(
        key="metro_inferred",
        label="Metro",
        area_category="Premium Metropolitan",
        floor=60.0, base_multiplier=1.0, tier_multiplier=1.5,
        priority_rate=0.45, priority_cap=40.0,
        priority_premium_threshold=95.0, priority_premium_bonus=15.0,
        location_types=("metropolitan",),
        label_rules=(KeywordRule("metro", "metro_inferred", fields=()),),
        risk_bands=(
            ScoreBand(4.0, "Ultra-Premium"),
            ScoreBand(3.5, "Premium"),
            ScoreBand(0.0, "Standard Metropolitan"),
        ),
    ),
    AreaTier(
        key="smart_city",
        label="SmartCity",
        area_category="Smart City Development",
        floor=50.0, base_multiplier=1.1, tier_multiplier=1.3,
        priority_rate=0.35, priority_cap=32.0,
        label_rules=(
            KeywordRule("smart city", "smart_city", fields=()),
            KeywordRule("planned township", "smart_city", fields=()),
            KeywordRule("satellite city", "smart_city", fields=()),
        ),
        risk_bands=(ScoreBand(0.0, "Tech-Forward"),),
    ),
    AreaTier(
        key="industrial_it",
        label="Industrial-IT",
        area_category="Industrial Tech Hub",
        floor=45.0, base_multiplier=1.0, tier_multiplier=1.4,
        priority_rate=0.35, priority_cap=32.0,
        label_rules=(
            KeywordRule("industrial", "industrial_it", fields=()),
            KeywordRule("sez", "industrial_it", fields=(), mode="word"),
            KeywordRule("it park", "industrial_it", fields=()),
            KeywordRule("tech hub", "industrial_it", fields=()),
        ),
        risk_bands=(ScoreBand(0.0, "Business-Focused"),),
    ),
    AreaTier(
        key="urban",
        label="Urban",
        area_category="Urban City",
        floor=25.0, base_multiplier=0.8, tier_multiplier=1.2,
        priority_rate=0.28, priority_cap=25.0,
        location_types=("city",),
        label_rules=tuple(
            KeywordRule(label, "urban", fields=(), mode="exact")
            for label in ("urban locality", "urban areas", "city", "municipality", "town")
        ),
        risk_bands=(
            ScoreBand(3.0, "Established Urban"),
            ScoreBand(0.0, "Developing Urban"),
        ),
    ),
    AreaTier(
        key="semi_urban",
        label="SemiUrban",
        area_category="Semi-Urban Development",
        floor=20.0, base_multiplier=0.7,
        priority_rate=0.22, priority_cap=20.0,
        label_rules=(
            KeywordRule("township", "semi_urban", fields=()),
            KeywordRule("suburban", "semi_urban", fields=()),
            KeywordRule("semi-urban", "semi_urban", fields=()),
            KeywordRule("outskirts", "semi_urban", fields=()),
        ),
        risk_bands=(ScoreBand(0.0, "Growth Corridor"),),
    ),
    AreaTier(
        key="coastal",
        label="Coastal",
        area_category="Coastal Zone",
        floor=30.0, base_multiplier=0.8,
        priority_rate=0.22, priority_cap=20.0,
        label_rules=(
            KeywordRule("coastal", "coastal", fields=()),
            KeywordRule("port", "coastal", fields=(), mode="word"),
            KeywordRule("beach", "coastal", fields=()),
        ),
        risk_bands=(ScoreBand(0.0, "Maritime Hub"),),
    ),
    AreaTier(
        key="hill_tribal",
        label="Hill-Tribal",
        area_category="Hill Station/Tribal",
        floor=15.0, base_multiplier=0.6,
        priority_rate=0.15, priority_cap=15.0,
        label_rules=(
            KeywordRule("hill", "hill_tribal", fields=()),
            KeywordRule("tribal", "hill_tribal", fields=()),
            KeywordRule("mountain", "hill_tribal", fields=()),
        ),
        risk_bands=(ScoreBand(0.0, "Remote Eco-Zone"),),
    ),
    AreaTier(
        key="rural",
        label="Rural",
        area_category="Rural Development",
        floor=12.0, base_multiplier=0.6,
        priority_rate=0.10, priority_cap=10.0,
        risk_bands=(
            ScoreBand(2.0, "Accessible Rural"),
            ScoreBand(0.0, "Remote Rural"),
        ),
    ),
)

_VIABILITY = ViabilityConfig(
    score_tiers=(
        ScoreTier(
            max_score=1.5,
            tier=AreaTier(
                key="very_poor", label="Very Poor", area_category="Rural Development",
                floor=5.0, base_multiplier=0.3,
                priority_rate=0.05, priority_cap=5.0,
            ),
        ),
        ScoreTier(
            max_score=2.0,
            tier=AreaTier(
                key="poor", label="Poor", area_category="Rural Development",
                floor=10.0, base_multiplier=0.5,
                priority_rate=0.08, priority_cap=8.0,
            ),
        ),
    ),
    area_tiers=_AREA_TIERS,
    default_tier_key="rural",
    base_scale=50.0,
    market_infrastructure=CappedRatio(divisor=5.0, cap=25.0),
    market_economic=CappedRatio(divisor=15.0, cap=20.0),
    market_connectivity=CappedRatio(divisor=150.0, cap=20.0),
    market_demographics=CappedRatio(divisor=20.0, cap=15.0),
    market_transportation=CappedRatio(divisor=10.0, cap=20.0),
    market_bonus=CappedFactor(rate=0.3, cap=30.0),
    ai_bonus=CappedFactor(rate=0.25, cap=25.0),
    connectivity_steps=(ThresholdStep(100, 0.3), ThresholdStep(50, 0.15)),
    amenity_steps=(ThresholdStep(30, 0.25), ThresholdStep(15, 0.15), ThresholdStep(8, 0.1)),
    commercial_steps=(ThresholdStep(10, 0.2), ThresholdStep(5, 0.1)),
    tech_steps=(ThresholdStep(3, 0.4), ThresholdStep(1, 0.2)),
    financial_steps=(ThresholdStep(2, 0.3), ThresholdStep(1, 0.15)),
    metropolitan_bonus=0.25,
)


# =============================================================================
# Growth
# =============================================================================

_GROWTH = GrowthConfig(
    poor_score_threshold=2.0,
    poor_penalty_rate=-8.0,
    poor_amenity_min=3,
    poor_amenity_penalty=-4.0,
    poor_connectivity_min=20.0,
    poor_connectivity_penalty=-3.0,
    poor_viability_min=40.0,
    poor_viability_penalty=-2.0,
    poor_range=(-12.0, -1.0),
    factor_weights={
        "viability": 0.4,
        "business": 0.3,
        "population": 0.2,
        "location": 0.1,
    },
    scale=15.0,
    shift=-5.0,
    business_offset=5.0,
    business_divisor=15.0,
    population_offset=4.0,
    population_divisor=10.0,
    factor_floor=0.1,
    # min_value here is the exclusive upper amenity count for the penalty.
    amenity_penalties=(ThresholdStep(8, -3.0), ThresholdStep(15, -1.5)),
    connectivity_min=40.0,
    connectivity_penalty=-2.0,
    standard_range=(-8.0, 12.0),
    business=GrowthRateConfig(
        factors={
            "commercial_infrastructure": CappedFactor(0.8, 15.0),
            "transport_connectivity": CappedFactor(0.7, 12.0),
            "tech_ecosystem": CappedFactor(3.5, 20.0),
            "financial_services": CappedFactor(5.0, 10.0),
            "external_connectivity": CappedFactor(0.04, 8.0),
            "talent_availability": CappedFactor(0.6, 10.0),
        },
        total_max=75.0,
        span=12.0,
        offset=-3.0,
        low_viability=30.0,
        low_viability_delta=-2.0,
        high_viability=70.0,
        high_viability_delta=1.5,
        min_rate=-5.0,
        max_rate=12.0,
        area_bonus_rules=(
            KeywordRule("metro", "metro", weight=3.0, fields=()),
            KeywordRule("it park", "it_tech", weight=4.0, fields=()),
            KeywordRule("tech hub", "it_tech", weight=4.0, fields=()),
            KeywordRule("sez", "it_tech", weight=4.0, fields=(), mode="word"),
            KeywordRule("smart city", "smart_city", weight=2.5, fields=()),
            KeywordRule("planned township", "smart_city", weight=2.5, fields=()),
            KeywordRule("industrial estate", "industrial", weight=2.0, fields=()),
        ),
    ),
    population=GrowthRateConfig(
        factors={
            "housing_support": CappedFactor(0.5, 10.0),
            "healthcare_capacity": CappedFactor(0.8, 12.0),
            "education_quality": CappedFactor(0.6, 10.0),
            "transport_access": CappedFactor(0.5, 8.0),
            "economic_opportunity": CappedFactor(0.4, 10.0),
            "connectivity_appeal": CappedFactor(0.025, 5.0),
        },
        total_max=55.0,
        span=8.0,
        offset=-2.0,
        low_viability=25.0,
        low_viability_delta=-1.5,
        high_viability=75.0,
        high_viability_delta=1.0,
        min_rate=-4.0,
        max_rate=8.0,
    ),
)


# =============================================================================
# Recommendation
# =============================================================================

_RECOMMENDATION = RecommendationConfig(
    not_recommended_below=1.5,
    high_risk_below=2.0,
    grade_bands=(
        ScoreBand(4.0, "A-Grade"),
        ScoreBand(3.0, "B-Grade"),
        ScoreBand(2.0, "C-Grade"),
        ScoreBand(1.0, "D-Grade"),
        ScoreBand(0.0, "E-Grade"),
    ),
    viability_bands=(
        ScoreBand(85, "Outstanding"),
        ScoreBand(70, "Excellent"),
        ScoreBand(55, "Good"),
        ScoreBand(40, "Limited"),
        ScoreBand(25, "Speculative"),
        ScoreBand(0, "Poor"),
    ),
    investment_grade_bands=(
        ScoreBand(85, "A+"),
        ScoreBand(75, "A"),
        ScoreBand(65, "B+"),
        ScoreBand(50, "B"),
        ScoreBand(0, "C"),
    ),
)


# =============================================================================
# SCORING_MODEL: current production values
# =============================================================================

SCORING_MODEL = ScoringModel(
    version="3.0.0",
    infrastructure=_INFRASTRUCTURE,
    connectivity=_CONNECTIVITY,
    signals=_SIGNALS,
    intelligence=_INTELLIGENCE,
    location_score=_LOCATION_SCORE,
    viability=_VIABILITY,
    growth=_GROWTH,
    recommendation=_RECOMMENDATION,
)

# Historical curve: distance decay past 3 km is not floored, so places
# beyond ~13 km would subtract value.  Kept for side-by-side comparison.
UNCLAMPED_DECAY_MODEL = dataclasses.replace(
    SCORING_MODEL,
    version="3.0.0-unclamped-decay",
    infrastructure=dataclasses.replace(
        _INFRASTRUCTURE,
        decay=dataclasses.replace(_INFRASTRUCTURE.decay, floor=None),
    ),
)

SCORING_MODELS: Dict[str, ScoringModel] = {
    m.version: m for m in (SCORING_MODEL, UNCLAMPED_DECAY_MODEL)
}


def get_scoring_model(version: Optional[str] = None) -> ScoringModel:
    """Resolve a registered scoring model; None or "" means the current one."""
    if not version:
        return SCORING_MODEL
    try:
        return SCORING_MODELS[version]
    except KeyError:
        raise ValueError(
            f"Unknown scoring model version {version!r}; "
            f"known: {', '.join(sorted(SCORING_MODELS))}"
        ) from None


# Validate weight tables at import time (ValueError, not assert,
# so validation is never stripped by python -O).
for _name, _weights in (
    ("category_weights", _LOCATION_SCORE.category_weights),
    ("proximity_weights", _LOCATION_SCORE.proximity_weights),
    ("growth factor_weights", _GROWTH.factor_weights),
):
    _wsum = sum(_weights.values())
    if abs(_wsum - 1.0) >= 0.001:
        raise ValueError(f"{_name} sum to {_wsum}, expected 1.0")

for _feature in _CONNECTIVITY.features:
    if _feature.index_weight < 0:
        raise ValueError(f"Connectivity weight for {_feature.key!r} is negative")
