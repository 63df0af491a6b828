"""API routes for MapMyWay.

Thin HTTP layer over ``TripPlannerService``. Handlers validate input with
request models, call the planner and wrap results in the
``{"success", <payload>, "error", "warnings"}`` envelope. Domain errors
are not caught here; the exception handlers in ``mapmyway.main`` turn
them into error envelopes.
"""

from typing import Optional
import logging

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from mapmyway.config import Settings, get_settings
from mapmyway.models import (
    AppError,
    Coordinate,
    Directions,
    GeocodedAddress,
    Itinerary,
    PlaceCategory,
    PlaceResult,
    PlanWarning,
    SearchResult,
    TravelMode,
    TripPath,
    TripPlan,
)
from mapmyway.services.cache import CacheService, create_cache_service
from mapmyway.services.directions import MAX_WAYPOINTS
from mapmyway.services.places import MAX_RADIUS_METERS
from mapmyway.services.planner import TripPlannerService, create_trip_planner

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_RADIUS_METERS = 3000


# Request/Response models
class TripPlanRequest(BaseModel):
    """Request model for planning a trip."""
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    mode: TravelMode = TravelMode.DRIVING
    preferences: dict[str, list[str]] = Field(
        default_factory=dict, description="Preference keys per group, e.g. {'food': ['vegan']}"
    )
    radius: Optional[int] = Field(None, gt=0, le=MAX_RADIUS_METERS, description="Search radius in meters")
    days: Optional[int] = Field(None, ge=1, le=30, description="Ask for a day-by-day itinerary")


class TripPlanResponse(BaseModel):
    success: bool
    plan: Optional[TripPlan] = None
    error: Optional[AppError] = None
    warnings: list[PlanWarning] = Field(default_factory=list)


class TripPathRequest(BaseModel):
    """Request model for the final route through picked places."""
    origin: Coordinate
    destination: Coordinate
    waypoints: list[Coordinate] = Field(default_factory=list, max_length=MAX_WAYPOINTS)
    mode: TravelMode = TravelMode.DRIVING


class TripPathResponse(BaseModel):
    success: bool
    path: Optional[TripPath] = None
    error: Optional[AppError] = None
    warnings: list[PlanWarning] = Field(default_factory=list)


class ItineraryRequest(BaseModel):
    start: GeocodedAddress
    end: GeocodedAddress
    places: list[PlaceResult] = Field(default_factory=list)
    days: int = Field(..., ge=1, le=30)


class ItineraryResponse(BaseModel):
    success: bool
    itinerary: Optional[Itinerary] = None
    error: Optional[AppError] = None
    warnings: list[PlanWarning] = Field(default_factory=list)


class GeocodeResponse(BaseModel):
    success: bool
    location: Optional[GeocodedAddress] = None
    error: Optional[AppError] = None
    warnings: list[PlanWarning] = Field(default_factory=list)


class DirectionsRequest(BaseModel):
    start: Coordinate
    end: Coordinate
    mode: TravelMode = TravelMode.DRIVING


class DirectionsResponse(BaseModel):
    success: bool
    directions: Optional[Directions] = None
    error: Optional[AppError] = None
    warnings: list[PlanWarning] = Field(default_factory=list)


class PlacesOnRouteRequest(BaseModel):
    """Request model for searching places along an encoded route."""
    polyline: str = Field(..., min_length=1, description="Encoded overview polyline")
    categories: list[PlaceCategory] = Field(default_factory=list)
    radius: int = Field(DEFAULT_RADIUS_METERS, gt=0, le=MAX_RADIUS_METERS)


class PlacesOnRouteResponse(BaseModel):
    success: bool
    result: Optional[SearchResult] = None
    error: Optional[AppError] = None
    warnings: list[PlanWarning] = Field(default_factory=list)


class CategoriesResponse(BaseModel):
    success: bool
    groups: dict[str, dict[str, PlaceCategory]] = Field(default_factory=dict)


class ClearCacheResponse(BaseModel):
    success: bool
    pattern: str
    deleted: int = 0


# Service instances
_cache_service: CacheService | None = None
_trip_planner: TripPlannerService | None = None


def get_cache_service() -> CacheService:
    global _cache_service
    if _cache_service is None:
        settings = get_settings()
        _cache_service = create_cache_service(
            settings.cache_backend, settings.redis_url, settings.cache_ttl_seconds
        )
    return _cache_service


def get_trip_planner() -> TripPlannerService:
    global _trip_planner
    if _trip_planner is None:
        _trip_planner = create_trip_planner(get_settings(), cache=get_cache_service())
    return _trip_planner


async def shutdown_services() -> None:
    """Release the cache connection and forget the service singletons."""
    global _cache_service, _trip_planner
    if _cache_service is not None:
        await _cache_service.close()
    _cache_service = None
    _trip_planner = None


@router.post("/trip/plan", response_model=TripPlanResponse)
async def plan_trip(
    request: TripPlanRequest,
    planner: TripPlannerService = Depends(get_trip_planner),
    settings: Settings = Depends(get_settings),
) -> TripPlanResponse:
    """Plan a trip: route between two addresses plus places along it.

    When ``days`` is given an AI itinerary is attached; if that step fails
    the plan is still returned with an ``ITINERARY_FAILED`` warning.
    """
    radius = request.radius if request.radius is not None else settings.default_radius_meters
    plan = await planner.plan_trip(
        origin=request.origin,
        destination=request.destination,
        mode=request.mode,
        preferences=request.preferences,
        radius=radius,
        days=request.days,
    )
    return TripPlanResponse(success=True, plan=plan, warnings=plan.warnings)


@router.post("/trip/path", response_model=TripPathResponse)
async def get_trip_path(
    request: TripPathRequest,
    planner: TripPlannerService = Depends(get_trip_planner),
) -> TripPathResponse:
    """Route from origin to destination through the selected waypoints."""
    path = await planner.get_trip_path(
        request.origin, request.destination, request.waypoints, request.mode
    )
    return TripPathResponse(success=True, path=path)


@router.post("/trip/itinerary", response_model=ItineraryResponse)
async def create_itinerary(
    request: ItineraryRequest,
    planner: TripPlannerService = Depends(get_trip_planner),
) -> ItineraryResponse:
    itinerary = await planner.generate_itinerary(
        request.start, request.end, request.places, request.days
    )
    return ItineraryResponse(success=True, itinerary=itinerary)


@router.get("/geocode", response_model=GeocodeResponse)
async def geocode_address(
    address: str = Query(..., min_length=1),
    planner: TripPlannerService = Depends(get_trip_planner),
) -> GeocodeResponse:
    location = await planner.geocoder.geocode(address)
    return GeocodeResponse(success=True, location=location)


@router.post("/directions", response_model=DirectionsResponse)
async def get_directions(
    request: DirectionsRequest,
    planner: TripPlannerService = Depends(get_trip_planner),
) -> DirectionsResponse:
    directions = await planner.directions.get_directions(request.start, request.end, request.mode)
    return DirectionsResponse(success=True, directions=directions)


@router.post("/places/onroute", response_model=PlacesOnRouteResponse)
async def places_on_route(
    request: PlacesOnRouteRequest,
    planner: TripPlannerService = Depends(get_trip_planner),
) -> PlacesOnRouteResponse:
    """Search places near sampled checkpoints of an encoded route."""
    result = await planner.search_places_on_route(
        request.polyline, request.categories, request.radius
    )
    warnings = []
    if result.failed_searches:
        warnings.append(PlanWarning(
            code="PARTIAL_RESULTS",
            message="Some place searches failed and were skipped",
            details=result.failed_searches,
        ))
    return PlacesOnRouteResponse(success=True, result=result, warnings=warnings)


@router.get("/categories", response_model=CategoriesResponse)
async def list_categories(
    planner: TripPlannerService = Depends(get_trip_planner),
) -> CategoriesResponse:
    """Preference groups and the place category each key maps to."""
    groups = {group: dict(entries) for group, entries in planner.mapping.groups.items()}
    return CategoriesResponse(success=True, groups=groups)


@router.delete("/cache", response_model=ClearCacheResponse)
async def clear_cache(
    pattern: str = Query("*", min_length=1),
    cache: CacheService = Depends(get_cache_service),
) -> ClearCacheResponse:
    deleted = await cache.invalidate(pattern)
    logger.info(f"[CACHE] Cleared {deleted} keys matching {pattern!r}")
    return ClearCacheResponse(success=True, pattern=pattern, deleted=deleted)
