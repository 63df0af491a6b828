"""Directions service using the Google Directions API.

Two operations:
- ``get_directions``: route between two coordinates (used for planning)
- ``get_trip_path``: final route through the waypoints the user picked
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from mapmyway.models import (
    Coordinate,
    Directions,
    DirectionsError,
    DistanceInfo,
    DurationInfo,
    TravelMode,
    TripPath,
)
from mapmyway.services.cache import CacheService, cached_fetch
from mapmyway.services.google_client import GoogleMapsClient

logger = logging.getLogger(__name__)

# Google accepts at most 25 intermediate waypoints per request
MAX_WAYPOINTS = 25


class DirectionsService(ABC):
    """Abstract base class for directions providers."""

    @abstractmethod
    async def get_directions(
        self, start: Coordinate, end: Coordinate, mode: TravelMode = TravelMode.DRIVING
    ) -> Directions:
        pass

    @abstractmethod
    async def get_trip_path(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: list[Coordinate],
        mode: TravelMode = TravelMode.DRIVING,
    ) -> TripPath:
        pass


def _location(raw: dict[str, Any] | None) -> Coordinate:
    try:
        return Coordinate(latitude=raw["lat"], longitude=raw["lng"])
    except (KeyError, TypeError, ValueError) as e:
        raise DirectionsError("INVALID_RESPONSE", "Route leg without a location") from e


class GoogleDirectionsService(DirectionsService):
    """Google Directions API implementation."""

    def __init__(self, client: GoogleMapsClient) -> None:
        self._client = client

    async def _fetch_route(self, params: dict[str, Any]) -> dict[str, Any]:
        data = await self._client.get_json("directions/json", params, DirectionsError)
        status = data.get("status", "UNKNOWN_ERROR")
        if status != "OK" or not data.get("routes"):
            raise DirectionsError(status, data.get("error_message", ""))
        return data["routes"][0]

    async def get_directions(
        self, start: Coordinate, end: Coordinate, mode: TravelMode = TravelMode.DRIVING
    ) -> Directions:
        logger.info(f"[DIRECTIONS] {start.to_param()} -> {end.to_param()} ({mode.value})")
        route = await self._fetch_route({
            "origin": start.to_param(),
            "destination": end.to_param(),
            "mode": mode.value,
        })

        legs = route.get("legs") or []
        if not legs:
            raise DirectionsError("INVALID_RESPONSE", "Route without legs")
        leg = legs[0]
        polyline = (route.get("overview_polyline") or {}).get("points", "")

        directions = Directions(
            distance=DistanceInfo(**(leg.get("distance") or {})),
            duration=DurationInfo(**(leg.get("duration") or {})),
            polyline=polyline,
            start_location=_location(leg.get("start_location")),
            end_location=_location(leg.get("end_location")),
            start_address=leg.get("start_address"),
            end_address=leg.get("end_address"),
            travel_mode=mode,
        )
        logger.info(
            f"[DIRECTIONS] Route found: {directions.distance.value}m, "
            f"polyline_length={len(polyline)}"
        )
        return directions

    async def get_trip_path(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: list[Coordinate],
        mode: TravelMode = TravelMode.DRIVING,
    ) -> TripPath:
        if len(waypoints) > MAX_WAYPOINTS:
            raise ValueError(f"At most {MAX_WAYPOINTS} waypoints are supported, got {len(waypoints)}")

        params: dict[str, Any] = {
            "origin": origin.to_param(),
            "destination": destination.to_param(),
            "mode": mode.value,
        }
        if waypoints:
            params["waypoints"] = "|".join(w.to_param() for w in waypoints)

        logger.info(f"[DIRECTIONS] Trip path with {len(waypoints)} waypoints")
        route = await self._fetch_route(params)
        return TripPath(
            origin=origin,
            destination=destination,
            waypoints=waypoints,
            overview_polyline=(route.get("overview_polyline") or {}).get("points", ""),
        )


class CachedDirectionsService(DirectionsService):
    """Memoizes point-to-point directions. Trip paths are never cached."""

    def __init__(
        self,
        inner: DirectionsService,
        cache: CacheService | None,
        ttl_seconds: int | None = None,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._ttl = ttl_seconds

    async def get_directions(
        self, start: Coordinate, end: Coordinate, mode: TravelMode = TravelMode.DRIVING
    ) -> Directions:
        return await cached_fetch(
            self._cache,
            CacheService.build_directions_key(start, end, mode),
            lambda: self._inner.get_directions(start, end, mode),
            dump=lambda value: value.model_dump(mode="json"),
            load=Directions.model_validate,
            ttl_seconds=self._ttl,
        )

    async def get_trip_path(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: list[Coordinate],
        mode: TravelMode = TravelMode.DRIVING,
    ) -> TripPath:
        return await self._inner.get_trip_path(origin, destination, waypoints, mode)
