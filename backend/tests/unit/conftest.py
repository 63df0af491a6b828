"""Shared builders and fakes for unit tests."""

import asyncio
from typing import Any

import pytest

from mapmyway.models import (
    Coordinate,
    Directions,
    DistanceInfo,
    DurationInfo,
    GeocodedAddress,
    GeocodingError,
    PlaceCategory,
    PlaceResult,
    PlacesError,
    TravelMode,
    TripPath,
)
from mapmyway.services.directions import DirectionsService
from mapmyway.services.geocoding import GeocodingService
from mapmyway.services.itinerary import ItineraryService
from mapmyway.services.places import PlacesService, PreferenceMapping
from mapmyway.utils.polyline import encode_polyline


def make_place(place_id: str, category: PlaceCategory | None = None, lat: float = 41.7, lng: float = 44.8) -> PlaceResult:
    return PlaceResult(
        id=place_id,
        name=f"Place {place_id}",
        coordinate=Coordinate(latitude=lat, longitude=lng),
        category=category or PlaceCategory(type="museum"),
    )


def make_address(address: str, lat: float, lng: float) -> GeocodedAddress:
    return GeocodedAddress(
        original_address=address,
        coordinate=Coordinate(latitude=lat, longitude=lng),
        formatted_address=f"{address}, Georgia",
        place_id=f"pid-{address.lower()}",
    )


# Twenty points heading east from Tbilisi
ROUTE_POINTS = [(41.7, 44.8 + i * 0.01) for i in range(20)]
ROUTE_POLYLINE = encode_polyline(ROUTE_POINTS)


class FakeGeocoder(GeocodingService):
    def __init__(self, known: dict[str, GeocodedAddress] | None = None, delay: float = 0.0) -> None:
        self.known = known or {
            "Tbilisi": make_address("Tbilisi", 41.7, 44.8),
            "Gori": make_address("Gori", 41.98, 44.11),
        }
        self.delay = delay
        self.calls: list[str] = []

    async def geocode(self, address: str) -> GeocodedAddress:
        self.calls.append(address)
        if self.delay:
            await asyncio.sleep(self.delay)
        if address not in self.known:
            raise GeocodingError("ZERO_RESULTS")
        return self.known[address]


class FakeDirections(DirectionsService):
    def __init__(self, polyline: str = ROUTE_POLYLINE) -> None:
        self.polyline = polyline
        self.calls: list[tuple[Coordinate, Coordinate, TravelMode]] = []

    async def get_directions(self, start: Coordinate, end: Coordinate, mode: TravelMode = TravelMode.DRIVING) -> Directions:
        self.calls.append((start, end, mode))
        return Directions(
            distance=DistanceInfo(text="76 km", value=76000),
            duration=DurationInfo(text="1 hour", value=3600),
            polyline=self.polyline,
            start_location=start,
            end_location=end,
            travel_mode=mode,
        )

    async def get_trip_path(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: list[Coordinate],
        mode: TravelMode = TravelMode.DRIVING,
    ) -> TripPath:
        return TripPath(
            origin=origin,
            destination=destination,
            waypoints=waypoints,
            overview_polyline=encode_polyline([origin, *waypoints, destination]),
        )


class FakePlaces(PlacesService):
    """Returns ``per_call`` places named after the checkpoint and category.

    ``fail_on`` holds (latitude, longitude, type) triples that raise.
    """

    def __init__(self, per_call: int = 5, fail_on: set[tuple[float, float, str]] | None = None, delay: float = 0.0) -> None:
        self.per_call = per_call
        self.fail_on = fail_on or set()
        self.delay = delay
        self.calls: list[tuple[Coordinate, PlaceCategory, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def search_nearby(self, location: Coordinate, category: PlaceCategory, radius: int) -> list[PlaceResult]:
        self.calls.append((location, category, radius))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if (location.latitude, location.longitude, category.type) in self.fail_on:
                raise PlacesError("OVER_QUERY_LIMIT")
            return [
                make_place(
                    f"{location.to_param()}|{category.cache_token}|{i}",
                    category,
                    lat=location.latitude,
                    lng=location.longitude,
                )
                for i in range(self.per_call)
            ]
        finally:
            self.in_flight -= 1


class FakeItinerary(ItineraryService):
    def __init__(self, response: str | None = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.prompts: list[str] = []

    @property
    def provider_name(self) -> str:
        return "Fake"

    async def _generate(self, prompt: str, timeout: float | None = None) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.response or '{"itinerary": []}'


@pytest.fixture
def mapping() -> PreferenceMapping:
    raw: dict[str, Any] = {
        "activities": {
            "museum": {"type": "museum"},
            "park": {"type": "park"},
        },
        "food": {
            "vegan": {"type": "restaurant", "keyword": "vegan"},
            "cafe": {"type": "cafe"},
        },
    }
    return PreferenceMapping.from_dict(raw)
