"""Tests for GoogleMapsClient and great-circle distance estimates.

distance_matrix auto-chunks at 25 destinations per request.  An
off-by-one error would silently misalign distances with their places.
"""

from unittest.mock import MagicMock

import pytest
import requests

from analysis_models import DistanceDuration
from analysis_trace import TraceContext, set_trace
from conftest import make_place
from errors import MalformedResponse, UpstreamUnavailable
from google_maps import GoogleMapsClient, estimate_distances, haversine_m


def _make_client():
    client = GoogleMapsClient.__new__(GoogleMapsClient)
    client.api_key = "fake-key"
    client.base_url = "https://maps.googleapis.com/maps/api"
    return client


def _ok_matrix_response(metres):
    elements = []
    for m in metres:
        if m is None:
            elements.append({"status": "NOT_FOUND"})
        else:
            elements.append({
                "status": "OK",
                "distance": {"value": m},
                "duration": {"value": m // 10},
            })
    return {"status": "OK", "rows": [{"elements": elements}]}


def _places(n):
    return [make_place(f"p{i}", f"Place {i}", lat=12.9 + i * 0.001, lng=77.5) for i in range(n)]


# =============================================================================
# _traced_get
# =============================================================================

class TestTracedGet:
    def test_records_call_in_trace(self):
        client = GoogleMapsClient("fake-key")
        response = MagicMock(status_code=200)
        response.json.return_value = {"status": "OK", "results": []}
        client.session = MagicMock()
        client.session.get.return_value = response

        trace = TraceContext(trace_id="t-1")
        set_trace(trace)
        trace.start_stage("places")
        data = client._traced_get("text_search", "https://example.invalid", {})

        assert data["status"] == "OK"
        assert len(trace.calls) == 1
        assert trace.calls[0].service == "google_maps"
        assert trace.calls[0].stage == "places"
        assert trace.calls[0].provider_status == "OK"

    def test_transport_error(self):
        client = GoogleMapsClient("fake-key")
        client.session = MagicMock()
        client.session.get.side_effect = requests.ConnectionError("refused")
        with pytest.raises(UpstreamUnavailable) as exc_info:
            client._traced_get("geocode", "https://example.invalid", {})
        assert exc_info.value.service == "google_maps"

    def test_invalid_json(self):
        client = GoogleMapsClient("fake-key")
        response = MagicMock(status_code=502)
        response.json.side_effect = ValueError("no json")
        client.session = MagicMock()
        client.session.get.return_value = response
        with pytest.raises(MalformedResponse):
            client._traced_get("geocode", "https://example.invalid", {})

    def test_session_ignores_proxy_env(self):
        assert GoogleMapsClient("fake-key").session.trust_env is False


# =============================================================================
# Geocode / text search
# =============================================================================

class TestGeocode:
    def test_ok(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={
            "status": "OK",
            "results": [{"geometry": {"location": {"lat": 12.91, "lng": 77.64}}}],
        })
        assert client.geocode("HSR Layout") == (12.91, 77.64)

    def test_zero_results(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={"status": "ZERO_RESULTS", "results": []})
        with pytest.raises(UpstreamUnavailable, match="ZERO_RESULTS"):
            client.geocode("Nowhere")

    def test_missing_location(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={"status": "OK", "results": [{}]})
        with pytest.raises(MalformedResponse):
            client.geocode("HSR Layout")


class TestTextSearch:
    def test_location_bias(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={"status": "OK", "results": [{"name": "A"}]})
        results = client.text_search("hospital near HSR", 12.9, 77.6, 5000)
        assert results == [{"name": "A"}]
        params = client._traced_get.call_args[0][2]
        assert params["location"] == "12.9,77.6"
        assert params["radius"] == 5000

    def test_zero_results_is_empty(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={"status": "ZERO_RESULTS"})
        assert client.text_search("spa near Nowhere") == []

    def test_denied(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={"status": "REQUEST_DENIED"})
        with pytest.raises(UpstreamUnavailable):
            client.text_search("bank near HSR")


# =============================================================================
# Distance matrix
# =============================================================================

class TestDistanceMatrix:
    def test_empty(self):
        client = _make_client()
        client._traced_get = MagicMock()
        assert client.distance_matrix((12.9, 77.6), []) == {}
        assert client._traced_get.call_count == 0

    def test_keyed_by_place_id(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value=_ok_matrix_response([1200, 3400]))
        result = client.distance_matrix((12.9, 77.6), _places(2))
        assert result == {
            "p0": DistanceDuration(distance_m=1200.0, duration_s=120.0),
            "p1": DistanceDuration(distance_m=3400.0, duration_s=340.0),
        }

    def test_unroutable_elements_omitted(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value=_ok_matrix_response([1200, None, 800]))
        result = client.distance_matrix((12.9, 77.6), _places(3))
        assert set(result) == {"p0", "p2"}
        assert result["p2"].distance_m == 800.0

    def test_26_destinations_two_chunks(self):
        client = _make_client()
        responses = [
            _ok_matrix_response([i * 100 for i in range(25)]),
            _ok_matrix_response([9999]),
        ]
        client._traced_get = MagicMock(side_effect=responses)
        result = client.distance_matrix((12.9, 77.6), _places(26))
        assert client._traced_get.call_count == 2
        assert len(result) == 26
        assert result["p24"].distance_m == 2400.0
        assert result["p25"].distance_m == 9999.0

    def test_destinations_use_coordinates(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value=_ok_matrix_response([100]))
        client.distance_matrix((12.9, 77.6), [make_place("a", "A", lat=1.5, lng=2.5)])
        params = client._traced_get.call_args[0][2]
        assert params["destinations"] == "1.5,2.5"
        assert params["origins"] == "12.9,77.6"

    def test_error_status_raises(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={"status": "OVER_QUERY_LIMIT"})
        with pytest.raises(UpstreamUnavailable):
            client.distance_matrix((12.9, 77.6), _places(1))

    def test_missing_rows(self):
        client = _make_client()
        client._traced_get = MagicMock(return_value={"status": "OK", "rows": []})
        with pytest.raises(MalformedResponse):
            client.distance_matrix((12.9, 77.6), _places(1))


# =============================================================================
# Estimates
# =============================================================================

class TestEstimates:
    def test_haversine_zero(self):
        assert haversine_m((12.9, 77.6), (12.9, 77.6)) == 0

    def test_detour_and_duration(self):
        place = make_place("a", "A", lat=0.0, lng=0.01)
        result = estimate_distances((0.0, 0.0), [place])
        # ~1112 m great circle x 1.3 detour, 50 m/min
        assert result["a"].distance_m == pytest.approx(1445.5, rel=1e-3)
        assert result["a"].duration_s == 29 * 60
        assert result["a"].estimated is True

    def test_places_without_coordinates_skipped(self):
        result = estimate_distances((0.0, 0.0), [make_place("a", "A")])
        assert result == {}

    def test_known_distances_not_overwritten(self):
        place = make_place("a", "A", lat=0.0, lng=0.01)
        known = {"a": DistanceDuration(distance_m=500.0)}
        assert estimate_distances((0.0, 0.0), [place], known) == {}
