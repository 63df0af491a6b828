"""Trip planner: geocode → directions → sample → search → dedup → itinerary.

The planner owns no I/O of its own. It drives the geocoding, directions,
places and itinerary collaborators it is given, so tests can swap any of
them for fakes.
"""

import asyncio
import logging
from collections.abc import Mapping

import httpx

from mapmyway.config import Settings
from mapmyway.models import (
    Coordinate,
    GeocodedAddress,
    Itinerary,
    ItineraryError,
    PlaceCategory,
    PlaceResult,
    PlanTimeoutError,
    PlanWarning,
    SearchResult,
    TravelMode,
    TripPath,
    TripPlan,
)
from mapmyway.services.cache import CacheService
from mapmyway.services.directions import (
    CachedDirectionsService,
    DirectionsService,
    GoogleDirectionsService,
)
from mapmyway.services.geocoding import (
    CachedGeocodingService,
    GeocodingService,
    GoogleGeocodingService,
)
from mapmyway.services.google_client import GoogleMapsClient
from mapmyway.services.itinerary import ItineraryService, create_itinerary_service
from mapmyway.services.places import (
    CachedPlacesService,
    FailurePolicy,
    GooglePlacesService,
    PlacesService,
    PreferenceMapping,
    RouteSearchOrchestrator,
    deduplicate_places,
    load_preference_mapping,
    map_preferences,
    sample_checkpoints,
)
from mapmyway.services.places.sampler import DEFAULT_CHECKPOINT_COUNT
from mapmyway.utils.polyline import decode_polyline

logger = logging.getLogger(__name__)


class TripPlannerService:
    """Plans trips and exposes the individual planning steps."""

    def __init__(
        self,
        geocoder: GeocodingService,
        directions: DirectionsService,
        orchestrator: RouteSearchOrchestrator,
        mapping: PreferenceMapping,
        itinerary: ItineraryService | None = None,
        checkpoint_count: int = DEFAULT_CHECKPOINT_COUNT,
        plan_timeout: float | None = 60.0,
    ) -> None:
        self._geocoder = geocoder
        self._directions = directions
        self._orchestrator = orchestrator
        self._mapping = mapping
        self._itinerary = itinerary
        self._checkpoint_count = checkpoint_count
        self._plan_timeout = plan_timeout

    @property
    def mapping(self) -> PreferenceMapping:
        return self._mapping

    @property
    def geocoder(self) -> GeocodingService:
        return self._geocoder

    @property
    def directions(self) -> DirectionsService:
        return self._directions

    async def search_places_on_route(
        self,
        polyline: str,
        categories: list[PlaceCategory],
        radius: int,
    ) -> SearchResult:
        """Find unique places near evenly spaced points of ``polyline``.

        Raises:
            MalformedPolylineError: if the polyline cannot be decoded.
            PlaceSearchError: if a search fails under the abort policy.
        """
        points = decode_polyline(polyline)
        checkpoints = sample_checkpoints(points, self._checkpoint_count)
        logger.info(
            f"[PLANNER] Route has {len(points)} points, sampled {len(checkpoints)} checkpoints"
        )

        outcome = await self._orchestrator.collect(checkpoints, categories, radius)
        places = deduplicate_places(outcome.places)
        logger.info(f"[PLANNER] {len(outcome.places)} raw results, {len(places)} unique places")

        return SearchResult(
            checkpoint_count=len(checkpoints),
            places=places,
            categories=categories,
            failed_searches=[str(f) for f in outcome.failures],
        )

    async def plan_trip(
        self,
        origin: str,
        destination: str,
        mode: TravelMode = TravelMode.DRIVING,
        preferences: Mapping[str, list[str]] | None = None,
        radius: int = 3000,
        days: int | None = None,
    ) -> TripPlan:
        """Plan a trip from ``origin`` to ``destination``.

        Runs under the planner's time budget. On timeout every in-flight
        call is cancelled and ``PlanTimeoutError`` is raised; a partial
        plan is never returned.
        """
        coro = self._plan_trip(origin, destination, mode, dict(preferences or {}), radius, days)
        if self._plan_timeout is None:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout=self._plan_timeout)
        except asyncio.TimeoutError as e:
            logger.warning(f"[PLANNER] Plan {origin!r} -> {destination!r} timed out")
            raise PlanTimeoutError(
                f"Trip planning exceeded {self._plan_timeout}s"
            ) from e

    async def _plan_trip(
        self,
        origin: str,
        destination: str,
        mode: TravelMode,
        preferences: dict[str, list[str]],
        radius: int,
        days: int | None,
    ) -> TripPlan:
        logger.info(f"[PLANNER] Planning {origin!r} -> {destination!r} ({mode.value})")
        warnings: list[PlanWarning] = []

        # 1. Geocode both ends
        start, end = await self._geocode_both(origin, destination)

        # 2. Route between them
        directions = await self._directions.get_directions(start.coordinate, end.coordinate, mode)

        # 3. Preferences → categories
        mapped = map_preferences(self._mapping, preferences)
        if mapped.dropped:
            warnings.append(PlanWarning(
                code="UNKNOWN_PREFERENCES",
                message="Some preferences have no matching place category and were ignored",
                details=mapped.dropped,
            ))

        # 4. Places along the route
        search = await self.search_places_on_route(directions.polyline, mapped.categories, radius)
        search = search.model_copy(update={"dropped_preferences": mapped.dropped})
        if search.failed_searches:
            warnings.append(PlanWarning(
                code="PARTIAL_RESULTS",
                message="Some place searches failed and were skipped",
                details=search.failed_searches,
            ))

        # 5. Optional itinerary
        itinerary = None
        if days is not None:
            itinerary = await self._try_itinerary(start, end, search.places, days, warnings)

        return TripPlan(
            origin=origin,
            destination=destination,
            start=start,
            end=end,
            directions=directions,
            search=search,
            preferences=preferences,
            search_radius=radius,
            itinerary=itinerary,
            warnings=warnings,
        )

    async def _geocode_both(
        self, origin: str, destination: str
    ) -> tuple[GeocodedAddress, GeocodedAddress]:
        tasks = [
            asyncio.create_task(self._geocoder.geocode(origin)),
            asyncio.create_task(self._geocoder.geocode(destination)),
        ]
        try:
            start, end = await asyncio.gather(*tasks)
        except BaseException:
            # One side failed or the plan was cancelled: drop the other lookup
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        return start, end

    async def _try_itinerary(
        self,
        start: GeocodedAddress,
        end: GeocodedAddress,
        places: list[PlaceResult],
        days: int,
        warnings: list[PlanWarning],
    ) -> Itinerary | None:
        if self._itinerary is None:
            warnings.append(PlanWarning(
                code="ITINERARY_UNAVAILABLE",
                message="No AI provider is configured; returning places without a day plan",
            ))
            return None
        try:
            return await self._itinerary.generate(start, end, places, days)
        except ItineraryError as e:
            logger.warning(f"[PLANNER] Itinerary generation failed: {e}")
            warnings.append(PlanWarning(
                code="ITINERARY_FAILED",
                message="Could not generate a day-by-day plan",
                details=[str(e)],
            ))
            return None

    async def generate_itinerary(
        self,
        start: GeocodedAddress,
        end: GeocodedAddress,
        places: list[PlaceResult],
        days: int,
    ) -> Itinerary:
        """Generate an itinerary directly. Raises ``ItineraryError`` when unavailable."""
        if self._itinerary is None:
            raise ItineraryError("No AI provider is configured")
        return await self._itinerary.generate(start, end, places, days)

    async def get_trip_path(
        self,
        origin: Coordinate,
        destination: Coordinate,
        waypoints: list[Coordinate],
        mode: TravelMode = TravelMode.DRIVING,
    ) -> TripPath:
        return await self._directions.get_trip_path(origin, destination, waypoints, mode)


def create_trip_planner(
    settings: Settings,
    cache: CacheService | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    itinerary: ItineraryService | None = None,
) -> TripPlannerService:
    """Wire the Google services, cache decorators and orchestrator from settings."""
    client = GoogleMapsClient(
        api_key=settings.google_api_key,
        base_url=settings.google_maps_base_url,
        timeout=settings.http_timeout_seconds,
        transport=transport,
    )
    if not settings.google_api_key:
        logger.warning("[PLANNER] GOOGLE_API_KEY is not set; Google requests will be rejected")

    ttl = settings.cache_ttl_seconds
    geocoder: GeocodingService = CachedGeocodingService(GoogleGeocodingService(client), cache, ttl)
    directions: DirectionsService = CachedDirectionsService(GoogleDirectionsService(client), cache, ttl)
    places: PlacesService = CachedPlacesService(GooglePlacesService(client), cache, ttl)

    orchestrator = RouteSearchOrchestrator(
        places,
        max_concurrency=settings.search_concurrency,
        results_per_search=settings.results_per_search,
        failure_policy=FailurePolicy(settings.place_search_failure_policy),
    )

    if itinerary is None:
        itinerary = create_itinerary_service(
            gemini_api_key=settings.gemini_api_key,
            gemini_model=settings.gemini_model,
            groq_api_key=settings.groq_api_key,
            groq_model=settings.groq_model,
        )

    return TripPlannerService(
        geocoder=geocoder,
        directions=directions,
        orchestrator=orchestrator,
        mapping=load_preference_mapping(settings.preference_mapping_path),
        itinerary=itinerary,
        checkpoint_count=settings.checkpoint_count,
        plan_timeout=settings.plan_timeout_seconds,
    )
