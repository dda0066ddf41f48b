"""
Google Maps collaborator: geocoding, text place search and the distance
matrix.  Failures surface as UpstreamUnavailable / MalformedResponse; the
orchestrator decides how to recover.
"""

import logging
import math
import time
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import requests

from analysis_models import DistanceDuration, Place
from analysis_trace import get_trace
from errors import MalformedResponse, UpstreamUnavailable

logger = logging.getLogger(__name__)

SERVICE = "google_maps"

# Great-circle estimates: road detour factor and average travel speed.
DETOUR_FACTOR = 1.3
ESTIMATE_METRES_PER_MINUTE = 50.0

EARTH_RADIUS_M = 6371000.0


class GoogleMapsClient:
    """Client for the Google Maps web services used by an analysis."""

    # Per-call timeout in seconds.
    DEFAULT_TIMEOUT = 10

    # Distance Matrix allows up to 25 destinations per request.
    DISTANCE_MATRIX_MAX_DESTINATIONS = 25

    def __init__(self, api_key: str):
        self.api_key = api_key
        self.base_url = "https://maps.googleapis.com/maps/api"
        self.session = requests.Session()
        self.session.trust_env = False

    def _traced_get(self, endpoint_name: str, url: str, params: dict) -> dict:
        """GET with trace recording; transport and decode errors are translated."""
        t0 = time.time()
        try:
            response = self.session.get(url, params=params, timeout=self.DEFAULT_TIMEOUT)
        except requests.RequestException as exc:
            raise UpstreamUnavailable(SERVICE, f"{endpoint_name}: {exc}") from exc
        elapsed_ms = int((time.time() - t0) * 1000)
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedResponse(SERVICE, f"{endpoint_name}: invalid JSON") from exc
        if not isinstance(data, dict):
            raise MalformedResponse(SERVICE, f"{endpoint_name}: expected a JSON object")
        provider_status = data.get("status", "")
        trace = get_trace()
        if trace:
            trace.record_api_call(
                service=SERVICE,
                endpoint=endpoint_name,
                elapsed_ms=elapsed_ms,
                status_code=response.status_code,
                provider_status=provider_status,
            )
        return data

    def geocode(self, address: str) -> Tuple[float, float]:
        """Convert an address to (lat, lng)."""
        data = self._traced_get("geocode", f"{self.base_url}/geocode/json", {
            "address": address,
            "key": self.api_key,
        })
        if data.get("status") != "OK" or not data.get("results"):
            raise UpstreamUnavailable(SERVICE, f"geocode failed: {data.get('status')}")
        try:
            location = data["results"][0]["geometry"]["location"]
            return float(location["lat"]), float(location["lng"])
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise MalformedResponse(SERVICE, "geocode result without a location") from exc

    def text_search(
        self,
        query: str,
        lat: Optional[float] = None,
        lng: Optional[float] = None,
        radius_meters: int = 5000,
    ) -> List[Dict]:
        """Search for places using a text query, optionally biased to a point."""
        params = {"query": query, "radius": radius_meters, "key": self.api_key}
        if lat is not None and lng is not None:
            params["location"] = f"{lat},{lng}"
        data = self._traced_get("text_search", f"{self.base_url}/place/textsearch/json", params)

        if data.get("status") not in ("OK", "ZERO_RESULTS"):
            raise UpstreamUnavailable(SERVICE, f"text search failed: {data.get('status')}")
        results = data.get("results", [])
        if not isinstance(results, list):
            raise MalformedResponse(SERVICE, "text search results is not a list")
        return results

    def distance_matrix(
        self,
        origin: Tuple[float, float],
        places: Sequence[Place],
    ) -> Dict[str, DistanceDuration]:
        """Travel distance/duration from origin to each place, keyed by place_id.

        Elements the provider could not route are omitted.
        """
        distances: Dict[str, DistanceDuration] = {}
        step = self.DISTANCE_MATRIX_MAX_DESTINATIONS
        for i in range(0, len(places), step):
            chunk = list(places[i:i + step])
            params = {
                "origins": f"{origin[0]},{origin[1]}",
                "destinations": "|".join(_destination(p) for p in chunk),
                "units": "metric",
                "key": self.api_key,
            }
            data = self._traced_get(
                "distance_matrix", f"{self.base_url}/distancematrix/json", params
            )
            if data.get("status") != "OK":
                raise UpstreamUnavailable(
                    SERVICE, f"distance matrix failed: {data.get('status')}"
                )
            try:
                elements = data["rows"][0]["elements"]
            except (KeyError, IndexError, TypeError) as exc:
                raise MalformedResponse(SERVICE, "distance matrix without rows") from exc

            for place, element in zip(chunk, elements):
                if not isinstance(element, dict) or element.get("status") != "OK":
                    continue
                try:
                    distances[place.place_id] = DistanceDuration(
                        distance_m=float(element["distance"]["value"]),
                        duration_s=float((element.get("duration") or {}).get("value", 0)),
                    )
                except (KeyError, TypeError, ValueError):
                    logger.debug("Skipping unparseable matrix element for %s", place.place_id)
        return distances


def _destination(place: Place) -> str:
    if place.lat is not None and place.lng is not None:
        return f"{place.lat},{place.lng}"
    return (place.vicinity or place.name).replace(",", " ")


def haversine_m(origin: Tuple[float, float], dest: Tuple[float, float]) -> float:
    """Great-circle distance in metres."""
    lat1, lon1 = math.radians(origin[0]), math.radians(origin[1])
    lat2, lon2 = math.radians(dest[0]), math.radians(dest[1])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.asin(math.sqrt(a))


def estimate_distances(
    origin: Tuple[float, float],
    places: Sequence[Place],
    known: Optional[Mapping[str, DistanceDuration]] = None,
) -> Dict[str, DistanceDuration]:
    """Estimated entries for places with coordinates and no known distance."""
    known = known or {}
    estimates: Dict[str, DistanceDuration] = {}
    for place in places:
        if place.place_id in known or place.lat is None or place.lng is None:
            continue
        metres = haversine_m(origin, (place.lat, place.lng)) * DETOUR_FACTOR
        estimates[place.place_id] = DistanceDuration(
            distance_m=metres,
            duration_s=round(metres / ESTIMATE_METRES_PER_MINUTE) * 60.0,
            estimated=True,
        )
    return estimates
