"""Address geocoding."""

from .service import CachedGeocodingService, GeocodingService, GoogleGeocodingService

__all__ = [
    "CachedGeocodingService",
    "GeocodingService",
    "GoogleGeocodingService",
]
