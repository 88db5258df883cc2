"""Unit tests for the BRouter/OSRM walking route provider."""

import httpx
import pytest

from adapters.http.api.transit.utils.walking_route import HttpWalkingRouteProvider
from src.transit_bc.stop.domain.value_objects.geo import Coordinates


ORIGIN = Coordinates(21.0, 105.8)
DESTINATION = Coordinates(21.001, 105.801)

BROUTER_OK = {
    "features": [{
        "geometry": {"coordinates": [[105.8, 21.0], [105.8005, 21.0004], [105.801, 21.001]]},
        "properties": {"track-length": "152", "total-time": "125"},
    }]
}

OSRM_OK = {
    "code": "Ok",
    "routes": [{
        "geometry": {"coordinates": [[105.8, 21.0], [105.801, 21.001]]},
        "distance": 160.0,
        "duration": 110.0,
    }],
}


def _provider(handler):
    client = httpx.Client(transport=httpx.MockTransport(handler))
    return HttpWalkingRouteProvider(
        brouter_url="http://brouter.test/brouter",
        osrm_url="http://osrm.test/route/v1/foot",
        client=client,
    )


class TestHttpWalkingRouteProvider:
    """Tests for service order and fallbacks."""

    def test_brouter_first(self):
        seen = []

        def handler(request):
            seen.append(request.url.host)
            return httpx.Response(200, json=BROUTER_OK)

        geometry = _provider(handler).route(ORIGIN, DESTINATION)

        assert seen == ["brouter.test"]
        assert geometry.source == "brouter"
        assert geometry.distance_km == pytest.approx(0.152)
        assert geometry.duration_minutes == 3
        # GeoJSON [lon, lat] flipped
        assert geometry.coordinates[0] == ORIGIN
        assert geometry.coordinates[-1] == DESTINATION

    def test_brouter_request_params(self):
        captured = {}

        def handler(request):
            captured.update(request.url.params)
            return httpx.Response(200, json=BROUTER_OK)

        _provider(handler).route(ORIGIN, DESTINATION)

        assert captured["lonlats"] == "105.8,21.0|105.801,21.001"
        assert captured["profile"] == "trekking"
        assert captured["format"] == "geojson"

    def test_brouter_time_estimated_from_length(self):
        body = {"features": [{
            "geometry": {"coordinates": [[105.8, 21.0], [105.801, 21.001]]},
            "properties": {"track-length": "139"},
        }]}
        geometry = _provider(lambda request: httpx.Response(200, json=body)).route(ORIGIN, DESTINATION)

        # 139 m at 1.39 m/s = 100 s
        assert geometry.duration_minutes == 2

    def test_falls_back_to_osrm(self):
        def handler(request):
            if request.url.host == "brouter.test":
                return httpx.Response(500, text="busy")
            assert request.url.path == "/route/v1/foot/105.8,21.0;105.801,21.001"
            return httpx.Response(200, json=OSRM_OK)

        geometry = _provider(handler).route(ORIGIN, DESTINATION)

        assert geometry.source == "osrm"
        assert geometry.distance_km == pytest.approx(0.16)
        assert geometry.duration_minutes == 2

    def test_malformed_brouter_body_falls_back(self):
        def handler(request):
            if request.url.host == "brouter.test":
                return httpx.Response(200, json={"features": []})
            return httpx.Response(200, json=OSRM_OK)

        assert _provider(handler).route(ORIGIN, DESTINATION).source == "osrm"

    def test_osrm_no_route(self):
        def handler(request):
            if request.url.host == "brouter.test":
                return httpx.Response(404)
            return httpx.Response(200, json={"code": "NoRoute", "routes": []})

        assert _provider(handler).route(ORIGIN, DESTINATION) is None

    def test_network_errors(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        assert _provider(handler).route(ORIGIN, DESTINATION) is None
