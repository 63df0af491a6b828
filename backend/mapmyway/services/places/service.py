"""Nearby search using the Google Places API.

``search_nearby`` returns every result of one page in the order Google
ranked them. Truncation to a per-call cap is the orchestrator's job.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import ValidationError

from mapmyway.models import Coordinate, PlaceCategory, PlaceResult, PlacesError
from mapmyway.services.cache import CacheService, cached_fetch
from mapmyway.services.google_client import GoogleMapsClient

logger = logging.getLogger(__name__)

MAX_RADIUS_METERS = 50000

# Statuses that mean "the call worked"
_OK_STATUSES = {"OK", "ZERO_RESULTS"}


class PlacesService(ABC):
    """Abstract base class for nearby-search providers."""

    @abstractmethod
    async def search_nearby(
        self, location: Coordinate, category: PlaceCategory, radius: int
    ) -> list[PlaceResult]:
        """Search places of ``category`` within ``radius`` meters of ``location``.

        Raises:
            PlacesError: unless the remote status is OK or ZERO_RESULTS.
        """
        pass


def parse_place(raw: dict[str, Any], category: PlaceCategory) -> PlaceResult | None:
    """Convert one raw Places API record, or None if it lacks an id or location."""
    place_id = raw.get("place_id")
    location = (raw.get("geometry") or {}).get("location") or {}
    if not place_id or "lat" not in location or "lng" not in location:
        return None

    try:
        return PlaceResult(
            id=place_id,
            name=raw.get("name", ""),
            coordinate=Coordinate(latitude=location["lat"], longitude=location["lng"]),
            address=raw.get("vicinity") or raw.get("formatted_address"),
            category=category,
            rating=raw.get("rating"),
            price_level=raw.get("price_level"),
            opening_hours=raw.get("opening_hours"),
            types=list(raw.get("types") or []),
        )
    except ValidationError as e:
        logger.info(f"[PLACES] Skipping invalid place {place_id}: {e.error_count()} errors")
        return None


class GooglePlacesService(PlacesService):
    """Google Places Nearby Search implementation."""

    def __init__(self, client: GoogleMapsClient) -> None:
        self._client = client

    async def search_nearby(
        self, location: Coordinate, category: PlaceCategory, radius: int
    ) -> list[PlaceResult]:
        if not 0 < radius <= MAX_RADIUS_METERS:
            raise ValueError(f"radius must be in (0, {MAX_RADIUS_METERS}], got {radius}")

        params: dict[str, Any] = {
            "location": location.to_param(),
            "radius": radius,
            "type": category.type,
        }
        if category.keyword:
            params["keyword"] = category.keyword

        data = await self._client.get_json("place/nearbysearch/json", params, PlacesError)

        status = data.get("status", "UNKNOWN_ERROR")
        if status not in _OK_STATUSES:
            raise PlacesError(status, data.get("error_message", ""))
        if status == "ZERO_RESULTS":
            return []

        places = []
        for raw in data.get("results") or []:
            place = parse_place(raw, category)
            if place is not None:
                places.append(place)
        logger.debug(
            f"[PLACES] {category.cache_token} near {location.to_param()}: {len(places)} results"
        )
        return places


class CachedPlacesService(PlacesService):
    """Memoizes nearby searches per (location, category, radius)."""

    def __init__(
        self,
        inner: PlacesService,
        cache: CacheService | None,
        ttl_seconds: int | None = None,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._ttl = ttl_seconds

    async def search_nearby(
        self, location: Coordinate, category: PlaceCategory, radius: int
    ) -> list[PlaceResult]:
        return await cached_fetch(
            self._cache,
            CacheService.build_places_key(location, category, radius),
            lambda: self._inner.search_nearby(location, category, radius),
            dump=lambda places: [p.model_dump(mode="json") for p in places],
            load=lambda raw: [PlaceResult.model_validate(p) for p in raw],
            ttl_seconds=self._ttl,
        )
