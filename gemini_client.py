"""
Gemini collaborator: location classification, amenity detection for
sparse areas, and prose investment insights.

Talks to the generateContent REST endpoint with a plain requests
session.  Every public method raises UpstreamUnavailable or
MalformedResponse on failure; callers own the fallback.
"""

import json
import logging
import re
import time
from typing import Any, Dict, List, Optional, Sequence, Tuple

import requests

from analysis_models import (
    MAX_DISTANCE_M,
    DistanceDuration,
    LocationIntelligence,
    Place,
    coerce_optional,
)
from analysis_trace import get_trace
from errors import MalformedResponse, UpstreamUnavailable
from location_intelligence import parse_intelligence_payload, strip_code_fences

logger = logging.getLogger(__name__)

SERVICE = "gemini"
DEFAULT_MODEL = "gemini-1.5-flash"

# AI-detected amenities further than this are dropped.
MAX_AI_AMENITY_DISTANCE_M = 5000.0
MAX_INSIGHTS = 3

_CLASSIFY_PROMPT = """You are a real estate location analyst for India.
Classify the location below.

Address: {address}
Coordinates: {lat}, {lng}

Area tiers, highest priority first: Metro city / Metropolitan area / Megacity;
Smart city / Planned township / Satellite city; Industrial estate / SEZ / IT park /
Tech hub; City / Urban locality / Municipality / Town; Township / Suburban;
Tourism hub / Highway corridor; Coastal town / Port city; Hill station / Tribal
area; Village / Panchayat / Countryside.

Respond with JSON only:
{{
  "locationType": "metropolitan|city|town|village|rural|uninhabitable",
  "areaClassification": "one tier label from the list above",
  "priorityScore": 0-100,
  "safetyScore": 1-10,
  "crimeRate": "very-low|low|moderate|high|very-high",
  "developmentStage": "developed|developing|underdeveloped|restricted",
  "investmentPotential": 0-100,
  "primaryConcerns": ["..."],
  "keyStrengths": ["..."],
  "reasoning": "brief explanation",
  "confidence": 0-100
}}"""

_INFRASTRUCTURE_PROMPT = """Identify infrastructure and amenities within 5 km of:
{address} ({lat}, {lng})
Area type: {area}. Development stage: {stage}.

Cover hospitals, clinics, pharmacies, banks, ATMs, grocery stores, markets,
schools, colleges, bus and railway stations, fuel stations, restaurants,
hotels, parks and places of worship.

Respond with JSON only:
{{
  "detectedAmenities": [
    {{"name": "...", "vicinity": "...", "types": ["school"], "rating": 3.8,
      "estimatedDistanceMeters": 2100}}
  ],
  "infrastructureSummary": "...",
  "confidence": 0-100
}}"""

_INSIGHTS_PROMPT = """As a real estate investment expert, assess this opportunity
using only the data provided.

Location: {address}
Investment: {amount} for {property_type}
Amenities detected within 5 km: {amenities}
Area type: {area}. Development stage: {stage}. Safety: {safety}/10.
Investment potential: {potential}%.

Return exactly 3 recommendations as plain text lines without numbers or
bullets, 25-40 words each, each naming {name}."""

_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")
_SLUG_RE = re.compile(r"\s+")


class GeminiClient:
    """Client for the Gemini generateContent endpoint."""

    DEFAULT_TIMEOUT = 30

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL):
        self.api_key = api_key
        self.model = model or DEFAULT_MODEL
        self.base_url = "https://generativelanguage.googleapis.com/v1beta"
        self.session = requests.Session()
        self.session.trust_env = False

    def _traced_generate(self, endpoint_name: str, prompt: str) -> str:
        """POST a prompt and return the first candidate's text."""
        url = f"{self.base_url}/models/{self.model}:generateContent"
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        t0 = time.time()
        try:
            response = self.session.post(
                url,
                params={"key": self.api_key},
                json=payload,
                timeout=self.DEFAULT_TIMEOUT,
            )
        except requests.RequestException as exc:
            raise UpstreamUnavailable(SERVICE, f"{endpoint_name}: {exc}") from exc
        elapsed_ms = int((time.time() - t0) * 1000)

        trace = get_trace()
        if trace:
            trace.record_api_call(
                service=SERVICE,
                endpoint=endpoint_name,
                elapsed_ms=elapsed_ms,
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise UpstreamUnavailable(
                SERVICE, f"{endpoint_name}: HTTP {response.status_code}"
            )
        try:
            data = response.json()
            return data["candidates"][0]["content"]["parts"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            raise MalformedResponse(SERVICE, f"{endpoint_name}: no candidate text") from exc

    def classify_location(self, address: str, lat: float, lng: float) -> LocationIntelligence:
        text = self._traced_generate(
            "classify_location",
            _CLASSIFY_PROMPT.format(address=address, lat=lat, lng=lng),
        )
        return parse_intelligence_payload(text)

    def detect_infrastructure(
        self,
        address: str,
        lat: float,
        lng: float,
        intelligence: Optional[LocationIntelligence] = None,
    ) -> List[Tuple[Place, DistanceDuration]]:
        """Amenities the model believes exist nearby, with estimated distances."""
        text = self._traced_generate(
            "detect_infrastructure",
            _INFRASTRUCTURE_PROMPT.format(
                address=address,
                lat=lat,
                lng=lng,
                area=intelligence.area_classification if intelligence else "residential area",
                stage=intelligence.development_stage if intelligence else "unknown",
            ),
        )
        return parse_detected_amenities(text)

    def investment_recommendations(
        self,
        address: str,
        property_type: str,
        amount: Optional[float],
        places: Sequence[Place],
        intelligence: Optional[LocationIntelligence] = None,
    ) -> List[str]:
        amenities = ", ".join(f"{p.name} ({p.vicinity or 'local area'})" for p in places)
        text = self._traced_generate(
            "investment_recommendations",
            _INSIGHTS_PROMPT.format(
                address=address,
                amount=f"{amount:,.0f}" if amount else "unspecified amount",
                property_type=property_type or "residential",
                amenities=amenities or "limited amenities detected",
                area=intelligence.area_classification if intelligence else "unknown",
                stage=intelligence.development_stage if intelligence else "unknown",
                safety=intelligence.safety_score if intelligence else "unknown",
                potential=intelligence.investment_potential if intelligence else "unknown",
                name=(address or "").split(",")[0],
            ),
        )
        return parse_insight_lines(text)


# =============================================================================
# Response parsing
# =============================================================================

def _extract_json_object(text: str) -> Dict[str, Any]:
    cleaned = strip_code_fences(text)
    start, end = cleaned.find("{"), cleaned.rfind("}")
    if start != -1 and end > start:
        cleaned = cleaned[start:end + 1]
    try:
        data = json.loads(cleaned)
    except ValueError as exc:
        raise MalformedResponse(SERVICE, f"unparseable JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResponse(SERVICE, "expected a JSON object")
    return data


def ai_place_id(name: str) -> str:
    return "ai_" + _SLUG_RE.sub("_", name.strip().lower())


def parse_detected_amenities(text: str) -> List[Tuple[Place, DistanceDuration]]:
    data = _extract_json_object(text)
    raw_amenities = data.get("detectedAmenities")
    if not isinstance(raw_amenities, list):
        raise MalformedResponse(SERVICE, "detectedAmenities is not a list")

    detected = []
    for raw in raw_amenities:
        if not isinstance(raw, dict) or not raw.get("name"):
            continue
        metres = coerce_optional(raw.get("estimatedDistanceMeters"), 0.0, MAX_DISTANCE_M)
        if metres is None or metres > MAX_AI_AMENITY_DISTANCE_M:
            continue
        rating = coerce_optional(raw.get("rating"), 0.0, 5.0)
        types = raw.get("types") if isinstance(raw.get("types"), list) else []
        place = Place(
            place_id=ai_place_id(str(raw["name"])),
            name=str(raw["name"]),
            types=tuple(str(t) for t in types),
            rating=rating or None,
            vicinity=str(raw.get("vicinity") or ""),
        )
        detected.append((place, DistanceDuration(distance_m=metres, estimated=True)))
    return detected


def parse_insight_lines(text: str) -> List[str]:
    """Up to three non-trivial lines, bullets and numbering stripped."""
    lines = []
    for line in (text or "").splitlines():
        cleaned = _BULLET_RE.sub("", line).strip()
        if len(cleaned) > 10:
            lines.append(cleaned)
        if len(lines) == MAX_INSIGHTS:
            break
    return lines
