"""MapMyWay Services.

Service layer components:
- Cache: Redis, in-memory LRU or disabled caching of Google responses
- Geocoding: Google Geocoding API
- Directions: Google Directions API (routes and multi-stop trip paths)
- Places: nearby search along a route with bounded concurrency
- Itinerary: Gemini (primary) + Groq (fallback) day-by-day plans
- Planner: wires the steps above into one trip plan
"""

from .cache import (
    CacheService,
    InMemoryCacheService,
    NullCacheService,
    RedisCacheService,
    create_cache_service,
)
from .directions import DirectionsService, GoogleDirectionsService
from .geocoding import GeocodingService, GoogleGeocodingService
from .itinerary import ItineraryService, create_itinerary_service
from .places import GooglePlacesService, PlacesService, RouteSearchOrchestrator
from .planner import TripPlannerService, create_trip_planner

__all__ = [
    # Cache
    "CacheService",
    "InMemoryCacheService",
    "NullCacheService",
    "RedisCacheService",
    "create_cache_service",
    # Google Maps
    "DirectionsService",
    "GoogleDirectionsService",
    "GeocodingService",
    "GoogleGeocodingService",
    "GooglePlacesService",
    "PlacesService",
    "RouteSearchOrchestrator",
    # AI
    "ItineraryService",
    "create_itinerary_service",
    # Planner
    "TripPlannerService",
    "create_trip_planner",
]
