"""Geocoding service using the Google Geocoding API.

Resolves free-form addresses ("Tbilisi", "Batumi boulevard") to a
coordinate, the formatted address and the Google place id.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from mapmyway.models import Coordinate, GeocodedAddress, GeocodingError
from mapmyway.services.cache import CacheService, cached_fetch
from mapmyway.services.google_client import GoogleMapsClient

logger = logging.getLogger(__name__)


class GeocodingService(ABC):
    """Abstract base class for geocoders."""

    @abstractmethod
    async def geocode(self, address: str) -> GeocodedAddress:
        """Resolve ``address``.

        Raises:
            ValueError: if the address is blank.
            GeocodingError: if the remote service reports a failure.
        """
        pass


class GoogleGeocodingService(GeocodingService):
    """Google Geocoding API implementation."""

    def __init__(self, client: GoogleMapsClient) -> None:
        self._client = client

    async def geocode(self, address: str) -> GeocodedAddress:
        if not address or not address.strip():
            raise ValueError("address cannot be empty")

        logger.info(f"[GEOCODE] Resolving {address!r}")
        data = await self._client.get_json(
            "geocode/json", {"address": address}, GeocodingError
        )

        status = data.get("status", "UNKNOWN_ERROR")
        if status != "OK" or not data.get("results"):
            raise GeocodingError(status, data.get("error_message", ""))

        return self._parse_result(address, data["results"][0])

    @staticmethod
    def _parse_result(address: str, result: dict[str, Any]) -> GeocodedAddress:
        location = result.get("geometry", {}).get("location", {})
        try:
            coordinate = Coordinate(latitude=location["lat"], longitude=location["lng"])
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError("INVALID_RESPONSE", f"Missing location for {address!r}") from e

        return GeocodedAddress(
            original_address=address,
            coordinate=coordinate,
            formatted_address=result.get("formatted_address"),
            place_id=result.get("place_id"),
        )


class CachedGeocodingService(GeocodingService):
    """Memoizes another geocoder's results in a ``CacheService``."""

    def __init__(
        self,
        inner: GeocodingService,
        cache: CacheService | None,
        ttl_seconds: int | None = None,
    ) -> None:
        self._inner = inner
        self._cache = cache
        self._ttl = ttl_seconds

    async def geocode(self, address: str) -> GeocodedAddress:
        if not address or not address.strip():
            raise ValueError("address cannot be empty")

        def load(raw: Any) -> GeocodedAddress:
            # Cached entries are keyed case-insensitively; keep the caller's spelling
            return GeocodedAddress.model_validate(raw).model_copy(
                update={"original_address": address}
            )

        return await cached_fetch(
            self._cache,
            CacheService.build_geocode_key(address),
            lambda: self._inner.geocode(address),
            dump=lambda value: value.model_dump(mode="json"),
            load=load,
            ttl_seconds=self._ttl,
        )
