"""Unit tests for the Google Maps services.

HTTP is served by ``httpx.MockTransport`` so no request leaves the process.
"""

from typing import Any, Callable

import httpx
import pytest

from mapmyway.models import (
    Coordinate,
    DirectionsError,
    GeocodingError,
    PlaceCategory,
    PlacesError,
    TravelMode,
)
from mapmyway.services.cache import InMemoryCacheService
from mapmyway.services.directions import (
    CachedDirectionsService,
    GoogleDirectionsService,
)
from mapmyway.services.geocoding import CachedGeocodingService, GoogleGeocodingService
from mapmyway.services.google_client import GoogleMapsClient
from mapmyway.services.places import CachedPlacesService, GooglePlacesService, parse_place

TBILISI = Coordinate(latitude=41.7151, longitude=44.8271)
BATUMI = Coordinate(latitude=41.6168, longitude=41.6367)


class Recorder:
    """MockTransport handler that records requests and replays one payload."""

    def __init__(self, payload: dict[str, Any] | Callable[[httpx.Request], httpx.Response], status_code: int = 200) -> None:
        self.payload = payload
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if callable(self.payload):
            return self.payload(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def params(self) -> httpx.QueryParams:
        return self.requests[-1].url.params


def _client(handler: Recorder) -> GoogleMapsClient:
    return GoogleMapsClient(api_key="test-key", transport=httpx.MockTransport(handler))


GEOCODE_OK = {
    "status": "OK",
    "results": [{
        "formatted_address": "Tbilisi, Georgia",
        "place_id": "ChIJa2JP5tcMREARo25X4u2E0GE",
        "geometry": {"location": {"lat": 41.7151, "lng": 44.8271}},
    }],
}

DIRECTIONS_OK = {
    "status": "OK",
    "routes": [{
        "overview_polyline": {"points": "_p~iF~ps|U_ulLnnqC"},
        "legs": [{
            "distance": {"text": "375 km", "value": 375012},
            "duration": {"text": "5 hours", "value": 18000},
            "start_location": {"lat": 41.7151, "lng": 44.8271},
            "end_location": {"lat": 41.6168, "lng": 41.6367},
            "start_address": "Tbilisi, Georgia",
            "end_address": "Batumi, Georgia",
        }],
    }],
}


def _place(place_id: str, **extra: Any) -> dict[str, Any]:
    raw = {
        "place_id": place_id,
        "name": f"Place {place_id}",
        "vicinity": "Rustaveli Ave",
        "geometry": {"location": {"lat": 41.7, "lng": 44.8}},
        "types": ["museum", "point_of_interest"],
        "rating": 4.6,
    }
    raw.update(extra)
    return raw


class TestGoogleMapsClient:
    @pytest.mark.asyncio
    async def test_adds_key_and_path(self) -> None:
        handler = Recorder({"status": "OK"})
        await _client(handler).get_json("geocode/json", {"address": "Tbilisi"}, GeocodingError)

        request = handler.requests[0]
        assert request.url.path == "/maps/api/geocode/json"
        assert request.url.params["key"] == "test-key"
        assert request.url.params["address"] == "Tbilisi"

    @pytest.mark.asyncio
    async def test_http_error_status(self) -> None:
        handler = Recorder({"error": "boom"}, status_code=503)
        with pytest.raises(PlacesError) as exc_info:
            await _client(handler).get_json("place/nearbysearch/json", {}, PlacesError)
        assert exc_info.value.status == "HTTP_503"

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(DirectionsError) as exc_info:
            await _client(Recorder(timeout)).get_json("directions/json", {}, DirectionsError)
        assert exc_info.value.status == "TIMEOUT"

    @pytest.mark.asyncio
    async def test_invalid_json(self) -> None:
        handler = Recorder(lambda request: httpx.Response(200, content=b"<html>"))
        with pytest.raises(GeocodingError) as exc_info:
            await _client(handler).get_json("geocode/json", {}, GeocodingError)
        assert exc_info.value.status == "INVALID_RESPONSE"


class TestGoogleGeocodingService:
    @pytest.mark.asyncio
    async def test_geocode(self) -> None:
        result = await GoogleGeocodingService(_client(Recorder(GEOCODE_OK))).geocode("Tbilisi")
        assert result.original_address == "Tbilisi"
        assert result.coordinate == TBILISI
        assert result.formatted_address == "Tbilisi, Georgia"
        assert result.place_id.startswith("ChIJ")

    @pytest.mark.asyncio
    async def test_remote_failure_keeps_status(self) -> None:
        handler = Recorder({"status": "REQUEST_DENIED", "error_message": "API key invalid"})
        with pytest.raises(GeocodingError) as exc_info:
            await GoogleGeocodingService(_client(handler)).geocode("Tbilisi")
        assert exc_info.value.status == "REQUEST_DENIED"
        assert exc_info.value.message == "API key invalid"

    @pytest.mark.asyncio
    async def test_zero_results_is_an_error(self) -> None:
        handler = Recorder({"status": "ZERO_RESULTS", "results": []})
        with pytest.raises(GeocodingError):
            await GoogleGeocodingService(_client(handler)).geocode("Nowhere")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("address", ["", "   "])
    async def test_blank_address(self, address: str) -> None:
        handler = Recorder(GEOCODE_OK)
        with pytest.raises(ValueError):
            await GoogleGeocodingService(_client(handler)).geocode(address)
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_cached_geocoder_keeps_caller_spelling(self) -> None:
        handler = Recorder(GEOCODE_OK)
        geocoder = CachedGeocodingService(
            GoogleGeocodingService(_client(handler)), InMemoryCacheService()
        )

        first = await geocoder.geocode("Tbilisi")
        second = await geocoder.geocode("TBILISI ")

        assert len(handler.requests) == 1
        assert first.original_address == "Tbilisi"
        assert second.original_address == "TBILISI "
        assert second.coordinate == first.coordinate


class TestGoogleDirectionsService:
    @pytest.mark.asyncio
    async def test_get_directions(self) -> None:
        handler = Recorder(DIRECTIONS_OK)
        directions = await GoogleDirectionsService(_client(handler)).get_directions(
            TBILISI, BATUMI, TravelMode.DRIVING
        )

        assert handler.params["origin"] == "41.7151,44.8271"
        assert handler.params["destination"] == "41.6168,41.6367"
        assert handler.params["mode"] == "driving"
        assert directions.polyline == "_p~iF~ps|U_ulLnnqC"
        assert directions.distance.value == 375012
        assert directions.end_address == "Batumi, Georgia"
        assert directions.end_location == BATUMI

    @pytest.mark.asyncio
    async def test_no_route(self) -> None:
        handler = Recorder({"status": "ZERO_RESULTS", "routes": []})
        with pytest.raises(DirectionsError) as exc_info:
            await GoogleDirectionsService(_client(handler)).get_directions(TBILISI, BATUMI)
        assert exc_info.value.status == "ZERO_RESULTS"

    @pytest.mark.asyncio
    async def test_leg_without_location(self) -> None:
        payload = {"status": "OK", "routes": [{"overview_polyline": {"points": ""}, "legs": [{}]}]}
        with pytest.raises(DirectionsError):
            await GoogleDirectionsService(_client(Recorder(payload))).get_directions(TBILISI, BATUMI)

    @pytest.mark.asyncio
    async def test_trip_path_with_waypoints(self) -> None:
        handler = Recorder(DIRECTIONS_OK)
        stops = [Coordinate(latitude=41.98, longitude=44.11), Coordinate(latitude=42.27, longitude=42.7)]

        path = await GoogleDirectionsService(_client(handler)).get_trip_path(TBILISI, BATUMI, stops)

        assert handler.params["waypoints"] == "41.98,44.11|42.27,42.7"
        assert path.waypoints == stops
        assert path.overview_polyline == "_p~iF~ps|U_ulLnnqC"

    @pytest.mark.asyncio
    async def test_trip_path_waypoint_limit(self) -> None:
        handler = Recorder(DIRECTIONS_OK)
        stops = [TBILISI] * 26
        with pytest.raises(ValueError):
            await GoogleDirectionsService(_client(handler)).get_trip_path(TBILISI, BATUMI, stops)
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_cached_directions(self) -> None:
        handler = Recorder(DIRECTIONS_OK)
        service = CachedDirectionsService(GoogleDirectionsService(_client(handler)), InMemoryCacheService())

        first = await service.get_directions(TBILISI, BATUMI)
        second = await service.get_directions(TBILISI, BATUMI)
        await service.get_directions(TBILISI, BATUMI, TravelMode.WALKING)

        assert first == second
        assert len(handler.requests) == 2


class TestGooglePlacesService:
    MUSEUM = PlaceCategory(type="museum")

    @pytest.mark.asyncio
    async def test_search_nearby(self) -> None:
        handler = Recorder({"status": "OK", "results": [_place("a"), _place("b")]})
        places = await GooglePlacesService(_client(handler)).search_nearby(TBILISI, self.MUSEUM, 3000)

        assert [p.id for p in places] == ["a", "b"]
        assert places[0].category == self.MUSEUM
        assert places[0].address == "Rustaveli Ave"
        assert handler.params["type"] == "museum"
        assert handler.params["radius"] == "3000"
        assert "keyword" not in handler.params

    @pytest.mark.asyncio
    async def test_keyword_is_sent(self) -> None:
        handler = Recorder({"status": "OK", "results": []})
        vegan = PlaceCategory(type="restaurant", keyword="vegan")
        await GooglePlacesService(_client(handler)).search_nearby(TBILISI, vegan, 1000)
        assert handler.params["keyword"] == "vegan"

    @pytest.mark.asyncio
    async def test_zero_results_is_empty(self) -> None:
        handler = Recorder({"status": "ZERO_RESULTS", "results": []})
        assert await GooglePlacesService(_client(handler)).search_nearby(TBILISI, self.MUSEUM, 3000) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", ["OVER_QUERY_LIMIT", "REQUEST_DENIED", "INVALID_REQUEST"])
    async def test_error_statuses(self, status: str) -> None:
        handler = Recorder({"status": status, "results": []})
        with pytest.raises(PlacesError) as exc_info:
            await GooglePlacesService(_client(handler)).search_nearby(TBILISI, self.MUSEUM, 3000)
        assert exc_info.value.status == status

    @pytest.mark.asyncio
    async def test_skips_records_without_id_or_location(self) -> None:
        results = [_place("a"), {"name": "no id"}, _place("c", geometry={})]
        handler = Recorder({"status": "OK", "results": results})
        places = await GooglePlacesService(_client(handler)).search_nearby(TBILISI, self.MUSEUM, 3000)
        assert [p.id for p in places] == ["a"]

    @pytest.mark.asyncio
    async def test_rejects_invalid_radius(self) -> None:
        handler = Recorder({"status": "OK", "results": []})
        with pytest.raises(ValueError):
            await GooglePlacesService(_client(handler)).search_nearby(TBILISI, self.MUSEUM, 60000)
        assert handler.requests == []

    @pytest.mark.asyncio
    async def test_cached_places_include_empty_results(self) -> None:
        handler = Recorder({"status": "ZERO_RESULTS"})
        service = CachedPlacesService(GooglePlacesService(_client(handler)), InMemoryCacheService())

        assert await service.search_nearby(TBILISI, self.MUSEUM, 3000) == []
        assert await service.search_nearby(TBILISI, self.MUSEUM, 3000) == []
        assert len(handler.requests) == 1

    def test_parse_place_rejects_invalid_rating(self) -> None:
        assert parse_place(_place("a", rating=7), self.MUSEUM) is None
