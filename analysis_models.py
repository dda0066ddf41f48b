"""
Data model shared by the scoring engine and its collaborators.

Inputs (Place, DistanceDuration, LocationIntelligence) are immutable per
analysis.  CategoryAccumulator is the only mutable type and only ever
grows while places are aggregated.

Numeric values arriving from upstream providers pass through
coerce_bounded() so NaN, infinities, strings and out-of-range values
never reach the formulas.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from errors import InvalidNumericInput

logger = logging.getLogger(__name__)


# =============================================================================
# Numeric guards
# =============================================================================

def parse_number(value: Any) -> float:
    """Strictly convert *value* to a finite float.

    Raises InvalidNumericInput for None, booleans, non-numeric strings,
    NaN and infinities.
    """
    if value is None or isinstance(value, bool):
        raise InvalidNumericInput(f"not a number: {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidNumericInput(f"not a number: {value!r}") from None
    if math.isnan(number) or math.isinf(number):
        raise InvalidNumericInput(f"non-finite number: {value!r}")
    return number


def clamp(value: float, low: float, high: float) -> float:
    """Clamp *value* into [low, high].  NaN collapses to *low*."""
    if value != value:  # NaN
        return low
    return max(low, min(high, value))


def coerce_bounded(value: Any, low: float, high: float, default: float) -> float:
    """Parse and clamp an upstream number, substituting *default* if invalid."""
    try:
        number = parse_number(value)
    except InvalidNumericInput as exc:
        logger.debug("Replacing invalid numeric input with %s: %s", default, exc)
        return default
    return clamp(number, low, high)


def coerce_optional(value: Any, low: float, high: float) -> Optional[float]:
    """Like coerce_bounded, but an invalid value becomes None ("unknown")."""
    try:
        number = parse_number(value)
    except InvalidNumericInput:
        return None
    return clamp(number, low, high)


# =============================================================================
# Inputs
# =============================================================================

@dataclass(frozen=True)
class Place:
    """A point of interest near the analysed location."""
    place_id: str
    name: str
    types: Tuple[str, ...] = ()
    rating: Optional[float] = None   # 0.0-5.0, None when unrated
    vicinity: str = ""
    lat: Optional[float] = None
    lng: Optional[float] = None

    @classmethod
    def from_api(cls, raw: Dict[str, Any]) -> "Place":
        """Build a Place from a Google Places search result dict."""
        location = (raw.get("geometry") or {}).get("location") or {}
        rating = coerce_optional(raw.get("rating"), 0.0, 5.0)
        return cls(
            place_id=str(raw.get("place_id") or raw.get("name") or ""),
            name=str(raw.get("name") or ""),
            types=tuple(raw.get("types") or ()),
            rating=rating if rating else None,
            vicinity=str(raw.get("vicinity") or raw.get("formatted_address") or ""),
            lat=coerce_optional(location.get("lat"), -90.0, 90.0),
            lng=coerce_optional(location.get("lng"), -180.0, 180.0),
        )


@dataclass(frozen=True)
class DistanceDuration:
    """Travel distance (metres) and duration (seconds) from the origin."""
    distance_m: float
    duration_s: Optional[float] = None
    estimated: bool = False

    @property
    def distance_km(self) -> float:
        return self.distance_m / 1000.0


# Anything further than this is a provider error, not a real trip.
MAX_DISTANCE_M = 20_000_000.0


def resolved_distance_km(distances: Mapping[str, DistanceDuration], place_id: str) -> Optional[float]:
    """Distance in km for *place_id*, or None when absent or unusable."""
    entry = distances.get(place_id)
    if entry is None:
        return None
    metres = coerce_optional(entry.distance_m, 0.0, MAX_DISTANCE_M)
    if metres is None:
        return None
    return metres / 1000.0


LOCATION_TYPES = ("metropolitan", "city", "town", "village", "rural", "uninhabitable")
DEVELOPMENT_STAGES = ("developed", "developing", "underdeveloped", "restricted")
CRIME_RATES = ("very-low", "low", "moderate", "high", "very-high")


@dataclass(frozen=True)
class LocationIntelligence:
    """Externally supplied classification of the analysed location.

    The defaults form the neutral record (rural, low potential) used when
    no classification is available.
    """
    location_type: str = "rural"
    development_stage: str = "underdeveloped"
    investment_potential: float = 20.0   # 0-100
    area_classification: str = "Rural Areas"
    priority_score: float = 25.0         # 0-100
    safety_score: float = 5.0            # 1-10
    crime_rate: str = "moderate"
    primary_concerns: Tuple[str, ...] = ()
    key_strengths: Tuple[str, ...] = ()
    reasoning: str = ""
    confidence: float = 0.0              # 0-100
    source: str = "neutral"              # "ai" | "fallback" | "neutral"


# =============================================================================
# Aggregation state
# =============================================================================

CATEGORY_NAMES = (
    "healthcare",
    "education",
    "transport",
    "commercial",
    "lifestyle",
    "safety",
    "environment",
)


@dataclass
class CategoryAccumulator:
    """Weighted totals for one infrastructure category.

    total    sum of weighted scores for places within 5 km
    close    the same sum restricted to places within 3 km
    premium  count of premium (or hub-type) matches
    """
    total: float = 0.0
    close: float = 0.0
    premium: int = 0

    def add(self, score: float, is_close: bool, is_premium: bool) -> None:
        score = max(0.0, score)
        self.total += score
        if is_close:
            self.close += score
        if is_premium:
            self.premium += 1

    @property
    def close_ratio(self) -> float:
        """Share of the total contributed by close places, capped at 1."""
        return min(self.close / max(self.total, 0.1), 1.0)


@dataclass
class InfrastructureScores:
    healthcare: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    education: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    transport: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    commercial: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    lifestyle: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    safety: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    environment: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    essential: CategoryAccumulator = field(default_factory=CategoryAccumulator)
    amenity_count: int = 0   # places with a resolved distance within 5 km

    def category(self, name: str) -> CategoryAccumulator:
        return getattr(self, name)


# =============================================================================
# Output
# =============================================================================

@dataclass(frozen=True)
class AnalysisResult:
    """The five core metrics plus the recommendation label.

    scoring_inputs / subscores carry the intermediate values that produced
    the numbers, for debugging and the serialisation collaborator.
    """
    location_score: float          # 0.1-5.0
    investment_viability: int      # 0-100
    growth_prediction: float       # -12..12 (%)
    business_growth_rate: float    # -5..12 (%)
    population_growth_rate: float  # -4..8 (%)
    investment_recommendation: str
    model_version: str = ""
    viability_tier: str = ""
    scoring_inputs: Dict[str, Any] = field(default_factory=dict)
    subscores: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
