#!/usr/bin/env python3
"""
Location Investment Analyzer

Gathers nearby places, travel distances and a location classification
for an address, then scores it with the pure engine in analysis_engine.py.

Every provider failure degrades instead of aborting: distances fall back
to great-circle estimates, the classification falls back to address
keywords, and missing prose insights are filled deterministically.  Only
missing required configuration is fatal.

Requirements:
- Google Maps API key (Geocoding, Places text search, Distance Matrix)
- Gemini API key (optional: classification, sparse-area amenities, insights)

Usage:
    python location_analyzer.py "HSR Layout, Bengaluru, Karnataka"
    python location_analyzer.py "Madikeri, Kodagu" --lat 12.42 --lng 75.74 --json
"""

import argparse
import json
import logging
import os
import sys
import threading
import time
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from analysis_engine import result_from_state, run_engine
from analysis_models import AnalysisResult, DistanceDuration, LocationIntelligence, Place
from analysis_trace import TraceContext, clear_trace, get_trace, set_trace
from errors import ConfigurationError, MalformedResponse, UpstreamUnavailable
from gemini_client import DEFAULT_MODEL, GeminiClient
from google_maps import GoogleMapsClient, estimate_distances
from location_intelligence import fallback_intelligence
from market_intelligence import MarketIntelligence, build_market_intelligence
from recommendation import fallback_insights
from scoring_config import get_scoring_model
from site_validation import SiteValidation, validate_site

load_dotenv()

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

# Feature flags
ENABLE_AI_INFRASTRUCTURE = os.environ.get("ENABLE_AI_INFRASTRUCTURE", "true").lower() == "true"

DEFAULT_PLACE_SEARCH_DELAY_S = 0.2

# Grouped text queries, in priority order.  Only the first
# MAX_QUERY_GROUPS are sent.
PLACE_QUERY_GROUPS = (
    "hospital|pharmacy|health",
    "school|university|education",
    "bank|atm|finance",
    "restaurant|cafe|food",
    "store|shopping_mall|supermarket",
    "transit_station|bus_station|subway_station",
    "gas_station",
    "park|gym|spa",
)
MAX_QUERY_GROUPS = 6
RESULTS_PER_QUERY = 4
MAX_PLACES = 25
SEARCH_RADIUS_M = 5000

# Below this many places the AI amenity detection is consulted.
MIN_PLACES_BEFORE_AI = 5

DEFAULT_PROPERTY_TYPE = "residential"


def _place_search_delay() -> float:
    raw = os.environ.get("PLACE_SEARCH_DELAY_S", "")
    try:
        return max(0.0, float(raw)) if raw else DEFAULT_PLACE_SEARCH_DELAY_S
    except ValueError:
        logger.warning("Ignoring invalid PLACE_SEARCH_DELAY_S=%r", raw)
        return DEFAULT_PLACE_SEARCH_DELAY_S


def check_service_config() -> Tuple[bool, List[str]]:
    """
    Validate required service configuration.
    Returns (is_ok, missing_keys) tuple.
    """
    missing = []
    if not os.environ.get("GOOGLE_MAPS_API_KEY"):
        missing.append("GOOGLE_MAPS_API_KEY")
    return (len(missing) == 0, missing)


def require_service_config():
    ok, missing = check_service_config()
    if not ok:
        raise ConfigurationError(missing)


# =============================================================================
# REPORT
# =============================================================================

@dataclass
class LocationReport:
    address: str
    lat: float
    lng: float
    result: AnalysisResult
    intelligence: LocationIntelligence
    places: List[Place] = field(default_factory=list)
    distances: Dict[str, DistanceDuration] = field(default_factory=dict)
    market: Optional[MarketIntelligence] = None
    site: Optional[SiteValidation] = None
    insights: List[str] = field(default_factory=list)
    property_type: str = DEFAULT_PROPERTY_TYPE
    amount: Optional[float] = None
    distances_estimated: bool = False
    trace: Dict[str, Any] = field(default_factory=dict)


# =============================================================================
# STAGES
# =============================================================================

def _timed_stage(stage_name, fn, *args, **kwargs):
    """Run *fn* with timing.  Logs duration and re-raises on failure."""
    trace = get_trace()
    if trace:
        trace.start_stage(stage_name)
    t0 = time.time()
    try:
        result = fn(*args, **kwargs)
        t1 = time.time()
        if trace:
            trace.record_stage(stage_name, t0, t1)
        else:
            logger.info("  [stage] %s OK (%.1fs)", stage_name, t1 - t0)
        return result
    except Exception as exc:
        t1 = time.time()
        if trace:
            trace.record_stage(
                stage_name, t0, t1,
                error_class=type(exc).__name__,
                error_message=str(exc)[:200],
            )
        else:
            logger.warning("  [stage] %s FAILED (%.1fs)", stage_name, t1 - t0, exc_info=True)
        raise
    finally:
        if trace:
            trace.end_stage()


def _record_fallback(fallback: str, reason: str):
    trace = get_trace()
    if trace:
        trace.record_fallback(fallback, reason)


def _dedupe_by_place_id(places: Sequence[Place]) -> List[Place]:
    seen = set()
    unique = []
    for place in places:
        if place.place_id in seen:
            continue
        seen.add(place.place_id)
        unique.append(place)
    return unique


def search_places(
    maps: GoogleMapsClient,
    address: str,
    lat: float,
    lng: float,
    delay_s: Optional[float] = None,
) -> List[Place]:
    """Run the grouped text queries; a failed query is logged and skipped."""
    if delay_s is None:
        delay_s = _place_search_delay()
    found: List[Place] = []
    for i, group in enumerate(PLACE_QUERY_GROUPS[:MAX_QUERY_GROUPS]):
        if i and delay_s:
            time.sleep(delay_s)
        try:
            results = maps.text_search(f"{group} near {address}", lat, lng, SEARCH_RADIUS_M)
        except (UpstreamUnavailable, MalformedResponse):
            logger.warning("Place search failed for %r", group, exc_info=True)
            _record_fallback("skipped_query", group)
            continue
        found.extend(Place.from_api(raw) for raw in results[:RESULTS_PER_QUERY])
    return _dedupe_by_place_id(found)[:MAX_PLACES]


def resolve_distances(
    maps: GoogleMapsClient,
    origin: Tuple[float, float],
    places: Sequence[Place],
) -> Tuple[Dict[str, DistanceDuration], bool]:
    """Distance matrix lookup; on failure, great-circle estimates.

    Returns (distances, estimated).
    """
    if not places:
        return {}, False
    try:
        return maps.distance_matrix(origin, places), False
    except (UpstreamUnavailable, MalformedResponse) as exc:
        logger.warning("Distance lookup failed, estimating distances", exc_info=True)
        _record_fallback("estimated_distances", str(exc)[:200])
        return estimate_distances(origin, places), True


# Least recently used entries are evicted beyond this size.
INTELLIGENCE_CACHE_SIZE = 256
_intelligence_cache: "OrderedDict[Tuple[str, float, float], LocationIntelligence]" = OrderedDict()
_intelligence_cache_lock = threading.Lock()


def _cache_key(address: str, lat: float, lng: float) -> Tuple[str, float, float]:
    return ((address or "").strip().lower(), round(lat, 3), round(lng, 3))


def clear_intelligence_cache():
    with _intelligence_cache_lock:
        _intelligence_cache.clear()


def resolve_intelligence(
    gemini: Optional[GeminiClient],
    address: str,
    lat: float,
    lng: float,
) -> LocationIntelligence:
    """Cached provider classification, falling back to address keywords."""
    key = _cache_key(address, lat, lng)
    with _intelligence_cache_lock:
        cached = _intelligence_cache.get(key)
        if cached is not None:
            _intelligence_cache.move_to_end(key)
    if cached is not None:
        logger.debug("Intelligence cache hit for %r", address)
        return cached

    if gemini is None:
        _record_fallback("fallback_intelligence", "GEMINI_API_KEY not set")
        intelligence = fallback_intelligence(address)
    else:
        try:
            intelligence = gemini.classify_location(address, lat, lng)
        except (UpstreamUnavailable, MalformedResponse) as exc:
            logger.warning("Location classification failed, using fallback", exc_info=True)
            _record_fallback("fallback_intelligence", str(exc)[:200])
            intelligence = fallback_intelligence(address)

    with _intelligence_cache_lock:
        _intelligence_cache[key] = intelligence
        _intelligence_cache.move_to_end(key)
        while len(_intelligence_cache) > INTELLIGENCE_CACHE_SIZE:
            _intelligence_cache.popitem(last=False)
    return intelligence


def augment_with_ai_amenities(
    gemini: Optional[GeminiClient],
    address: str,
    lat: float,
    lng: float,
    intelligence: LocationIntelligence,
    places: List[Place],
    distances: Dict[str, DistanceDuration],
) -> Tuple[List[Place], Dict[str, DistanceDuration]]:
    """Merge AI-detected amenities into a sparse place list."""
    if gemini is None or not ENABLE_AI_INFRASTRUCTURE or len(places) >= MIN_PLACES_BEFORE_AI:
        return places, distances
    try:
        detected = gemini.detect_infrastructure(address, lat, lng, intelligence)
    except (UpstreamUnavailable, MalformedResponse) as exc:
        logger.warning("AI amenity detection failed", exc_info=True)
        _record_fallback("no_ai_amenities", str(exc)[:200])
        return places, distances

    known = {p.place_id for p in places}
    merged_places = list(places)
    merged_distances = dict(distances)
    for place, distance in detected:
        if place.place_id in known:
            continue
        known.add(place.place_id)
        merged_places.append(place)
        merged_distances[place.place_id] = distance
    logger.info("AI amenity detection added %d places", len(merged_places) - len(places))
    return merged_places, merged_distances


def generate_insights(
    gemini: Optional[GeminiClient],
    address: str,
    property_type: str,
    amount: Optional[float],
    places: Sequence[Place],
    intelligence: LocationIntelligence,
) -> List[str]:
    """Three prose insights; deterministic lines when the provider can't supply them."""
    if gemini is not None:
        try:
            lines = gemini.investment_recommendations(
                address, property_type, amount, places, intelligence
            )
            if len(lines) >= 3:
                return lines[:3]
            _record_fallback("fallback_insights", f"only {len(lines)} usable lines")
        except (UpstreamUnavailable, MalformedResponse) as exc:
            logger.warning("AI insights failed, using fallback lines", exc_info=True)
            _record_fallback("fallback_insights", str(exc)[:200])
    return fallback_insights(address, property_type, places, intelligence)


# =============================================================================
# ORCHESTRATION
# =============================================================================

def _default_clients() -> Tuple[GoogleMapsClient, Optional[GeminiClient]]:
    maps = GoogleMapsClient(os.environ["GOOGLE_MAPS_API_KEY"])
    gemini_key = os.environ.get("GEMINI_API_KEY")
    gemini = None
    if gemini_key:
        gemini = GeminiClient(gemini_key, os.environ.get("GEMINI_MODEL", DEFAULT_MODEL))
    return maps, gemini


def analyze_location(
    address: str,
    lat: Optional[float] = None,
    lng: Optional[float] = None,
    property_type: str = DEFAULT_PROPERTY_TYPE,
    amount: Optional[float] = None,
    model_version: Optional[str] = None,
    maps: Optional[GoogleMapsClient] = None,
    gemini: Optional[GeminiClient] = None,
) -> LocationReport:
    """Analyse one address end to end.

    Raises ConfigurationError before any network call when required
    credentials are missing.  maps/gemini may be injected; when maps is
    omitted both clients are built from the environment.
    """
    if maps is None:
        require_service_config()
        maps, gemini = _default_clients()
    model = get_scoring_model(model_version or os.environ.get("SCORING_MODEL_VERSION"))

    owns_trace = get_trace() is None
    trace = get_trace() or TraceContext(trace_id=uuid.uuid4().hex[:12])
    trace.model_version = model.version
    set_trace(trace)
    try:
        if lat is None or lng is None:
            lat, lng = _timed_stage("geocode", maps.geocode, address)
        origin = (lat, lng)

        site = _timed_stage("site_validation", validate_site, address)
        for issue in site.issues:
            logger.warning("Site validation: %s", issue)

        intelligence = _timed_stage(
            "intelligence", resolve_intelligence, gemini, address, lat, lng
        )
        places = _timed_stage("places", search_places, maps, address, lat, lng)
        distances, estimated = _timed_stage(
            "distances", resolve_distances, maps, origin, places
        )
        places = [p for p in places if p.place_id in distances]
        places, distances = _timed_stage(
            "ai_amenities", augment_with_ai_amenities,
            gemini, address, lat, lng, intelligence, places, distances,
        )

        state = _timed_stage("scoring", run_engine, places, distances, intelligence, model)
        result = result_from_state(state)
        logger.info(
            "Analysis for %r (model %s): score=%.2f viability=%d tier=%s",
            address, result.model_version, result.location_score,
            result.investment_viability, result.viability_tier,
        )
        market = build_market_intelligence(
            result.location_score,
            result.investment_viability,
            state.infrastructure,
            state.connectivity,
            distances,
            model,
        )
        insights = _timed_stage(
            "insights", generate_insights,
            gemini, address, property_type, amount, places, intelligence,
        )

        return LocationReport(
            address=address,
            lat=lat,
            lng=lng,
            result=result,
            intelligence=intelligence,
            places=places,
            distances=distances,
            market=market,
            site=site,
            insights=insights,
            property_type=property_type,
            amount=amount,
            distances_estimated=estimated,
            trace=trace.summary_dict(),
        )
    finally:
        if owns_trace:
            trace.log_summary()
            clear_trace()


# =============================================================================
# SERIALISATION
# =============================================================================

def report_to_dict(report: LocationReport) -> Dict[str, Any]:
    intelligence = report.intelligence
    return {
        "address": report.address,
        "coordinates": {"lat": report.lat, "lng": report.lng},
        "property_type": report.property_type,
        "amount": report.amount,
        "location_score": report.result.location_score,
        "investment_viability": report.result.investment_viability,
        "growth_prediction": report.result.growth_prediction,
        "business_growth_rate": report.result.business_growth_rate,
        "population_growth_rate": report.result.population_growth_rate,
        "investment_recommendation": report.result.investment_recommendation,
        "model_version": report.result.model_version,
        "viability_tier": report.result.viability_tier,
        "intelligence": {
            "source": intelligence.source,
            "location_type": intelligence.location_type,
            "development_stage": intelligence.development_stage,
            "area_classification": intelligence.area_classification,
            "investment_potential": intelligence.investment_potential,
            "priority_score": intelligence.priority_score,
            "safety_score": intelligence.safety_score,
            "crime_rate": intelligence.crime_rate,
            "primary_concerns": list(intelligence.primary_concerns),
            "key_strengths": list(intelligence.key_strengths),
            "reasoning": intelligence.reasoning,
            "confidence": intelligence.confidence,
        },
        "nearby_places": [
            {
                "place_id": p.place_id,
                "name": p.name,
                "types": list(p.types),
                "rating": p.rating,
                "vicinity": p.vicinity,
                "distance_m": report.distances[p.place_id].distance_m
                if p.place_id in report.distances else None,
                "duration_s": report.distances[p.place_id].duration_s
                if p.place_id in report.distances else None,
            }
            for p in report.places
        ],
        "distances_estimated": report.distances_estimated,
        "market_intelligence": report.market.to_dict() if report.market else None,
        "site_validation": {
            "is_valid": report.site.is_valid,
            "issues": report.site.issues,
            "risk_level": report.site.risk_level,
            "confidence": report.site.confidence,
        } if report.site else None,
        "insights": report.insights,
        "scoring_inputs": report.result.scoring_inputs,
        "subscores": report.result.subscores,
        "trace": report.trace,
    }


def format_report(report: LocationReport) -> str:
    """Format a report as readable text."""
    r = report.result
    lines = []
    lines.append("=" * 70)
    lines.append(f"LOCATION: {report.address}")
    lines.append(f"COORDINATES: {report.lat:.6f}, {report.lng:.6f}")
    lines.append(
        f"CLASSIFICATION: {report.intelligence.area_classification} "
        f"({report.intelligence.location_type}, {report.intelligence.source})"
    )
    lines.append("=" * 70)

    if report.site and report.site.issues:
        lines.append("\nSITE WARNINGS:")
        for issue in report.site.issues:
            lines.append(f"  ! {issue}")

    lines.append(f"\nNEARBY PLACES: {len(report.places)}"
                 + (" (estimated distances)" if report.distances_estimated else ""))
    for place in report.places[:10]:
        distance = report.distances.get(place.place_id)
        km = f"{distance.distance_km:.1f} km" if distance else "?"
        lines.append(f"  - {place.name} ({km})")

    lines.append(f"\nLOCATION SCORE:       {r.location_score:.2f} / 5.0")
    lines.append(f"INVESTMENT VIABILITY: {r.investment_viability}%")
    lines.append(f"GROWTH PREDICTION:    {r.growth_prediction:+.1f}%")
    lines.append(f"BUSINESS GROWTH:      {r.business_growth_rate:+.1f}%")
    lines.append(f"POPULATION GROWTH:    {r.population_growth_rate:+.1f}%")

    if report.market:
        lines.append(f"\nINVESTMENT GRADE: {report.market.investment_grade}")
        for risk in report.market.risk_factors:
            lines.append(f"  - risk: {risk}")
        for opportunity in report.market.opportunities:
            lines.append(f"  + {opportunity}")

    if report.insights:
        lines.append("\nINSIGHTS:")
        for insight in report.insights:
            lines.append(f"  * {insight}")

    lines.append(f"\n{'=' * 70}")
    lines.append(f"RECOMMENDATION: {r.investment_recommendation}")
    lines.append(f"Scoring model {r.model_version}")
    lines.append("=" * 70)
    return "\n".join(lines)


# =============================================================================
# CLI
# =============================================================================

def _sentry_before_send(event, hint):
    """Demote expected provider degradation to breadcrumbs."""
    import sentry_sdk

    exc_info = hint.get("exc_info")
    if exc_info:
        exc_type, exc_value, _ = exc_info
        if exc_type is not None and issubclass(exc_type, (UpstreamUnavailable, MalformedResponse)):
            sentry_sdk.add_breadcrumb(
                category=getattr(exc_value, "service", "upstream"),
                message=str(exc_value),
                level="warning",
            )
            return None
    return event


def _init_sentry():
    dsn = os.environ.get("SENTRY_DSN")
    if not dsn:
        return
    import sentry_sdk

    sentry_sdk.init(
        dsn=dsn,
        traces_sample_rate=0.0,
        environment=os.environ.get("PLOTWISE_ENVIRONMENT", "production"),
        before_send=_sentry_before_send,
    )


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Score a location for real-estate investment"
    )
    parser.add_argument("address", nargs="?", help="Address to analyse")
    parser.add_argument("--lat", type=float, help="Latitude (skips geocoding with --lng)")
    parser.add_argument("--lng", type=float, help="Longitude")
    parser.add_argument(
        "--property-type",
        default=DEFAULT_PROPERTY_TYPE,
        help="Property type used in prose insights (default: residential)",
    )
    parser.add_argument("--amount", type=float, help="Planned investment amount")
    parser.add_argument(
        "--model-version",
        default=os.environ.get("SCORING_MODEL_VERSION"),
        help="Scoring model version (or set SCORING_MODEL_VERSION)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON instead of formatted text",
    )
    parser.add_argument("--verbose", action="store_true", help="Log stage timings")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    if not args.address:
        parser.print_help()
        return 1

    _init_sentry()

    try:
        report = analyze_location(
            args.address,
            lat=args.lat,
            lng=args.lng,
            property_type=args.property_type,
            amount=args.amount,
            model_version=args.model_version,
        )
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2
    except (UpstreamUnavailable, MalformedResponse) as exc:
        print(f"Error: could not locate address: {exc}", file=sys.stderr)
        return 1
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        print(format_report(report))
    return 0


if __name__ == "__main__":
    sys.exit(main())
