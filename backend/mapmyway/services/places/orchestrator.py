"""Nearby-search fan-out over route checkpoints.

One search runs per (checkpoint, category) pair. Searches run concurrently
behind a semaphore so the upstream API never sees more than
``max_concurrency`` requests from one planning call. Each search owns a
result slot; slots are flattened in checkpoint-major order after all
searches finish, so the output order does not depend on which request
returned first.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum

from mapmyway.models import (
    Checkpoint,
    PlaceCategory,
    PlaceResult,
    PlaceSearchError,
    PlacesError,
)
from mapmyway.services.places.service import MAX_RADIUS_METERS, PlacesService

logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 5
DEFAULT_RESULTS_PER_SEARCH = 3


class FailurePolicy(str, Enum):
    """What to do when one nearby search fails."""

    ABORT = "abort"  # cancel the remaining searches and raise
    SKIP = "skip"  # record the failure and keep going


@dataclass(frozen=True)
class RouteSearchOutcome:
    places: list[PlaceResult] = field(default_factory=list)
    failures: list[PlaceSearchError] = field(default_factory=list)


class RouteSearchOrchestrator:
    """Runs nearby searches for every checkpoint and category."""

    def __init__(
        self,
        places_service: PlacesService,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        results_per_search: int = DEFAULT_RESULTS_PER_SEARCH,
        failure_policy: FailurePolicy = FailurePolicy.ABORT,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if results_per_search < 1:
            raise ValueError("results_per_search must be at least 1")
        self._places = places_service
        self._max_concurrency = max_concurrency
        self._results_per_search = results_per_search
        self._failure_policy = FailurePolicy(failure_policy)

    @property
    def failure_policy(self) -> FailurePolicy:
        return self._failure_policy

    async def search(
        self,
        checkpoints: list[Checkpoint],
        categories: list[PlaceCategory],
        radius: int,
    ) -> list[PlaceResult]:
        """Combined results of every search, in checkpoint-major order."""
        outcome = await self.collect(checkpoints, categories, radius)
        return outcome.places

    async def collect(
        self,
        checkpoints: list[Checkpoint],
        categories: list[PlaceCategory],
        radius: int,
    ) -> RouteSearchOutcome:
        """Search around every checkpoint for every category.

        Like ``search`` but also returns the searches skipped under the
        skip policy.

        Raises:
            ValueError: if ``radius`` is outside (0, 50000].
            PlaceSearchError: on the first failed search under the abort policy.
        """
        if not 0 < radius <= MAX_RADIUS_METERS:
            raise ValueError(f"radius must be in (0, {MAX_RADIUS_METERS}], got {radius}")

        pairs = [(cp, cat) for cp in checkpoints for cat in categories]
        if not pairs:
            return RouteSearchOutcome()

        logger.info(
            f"[PLACES] {len(pairs)} searches ({len(checkpoints)} checkpoints x "
            f"{len(categories)} categories), radius={radius}m, "
            f"concurrency={self._max_concurrency}"
        )

        semaphore = asyncio.Semaphore(self._max_concurrency)
        slots: list[list[PlaceResult]] = [[] for _ in pairs]
        failures: list[PlaceSearchError | None] = [None] * len(pairs)

        async def run(slot: int, checkpoint: Checkpoint, category: PlaceCategory) -> None:
            async with semaphore:
                try:
                    found = await self._places.search_nearby(
                        checkpoint.coordinate, category, radius
                    )
                except PlacesError as e:
                    error = PlaceSearchError(checkpoint, category, e.status, cause=e)
                    if self._failure_policy is FailurePolicy.ABORT:
                        raise error
                    logger.warning(f"[PLACES] Skipping failed search: {error}")
                    failures[slot] = error
                    return
            slots[slot] = found[: self._results_per_search]

        tasks = [
            asyncio.create_task(run(i, cp, cat)) for i, (cp, cat) in enumerate(pairs)
        ]
        try:
            await asyncio.gather(*tasks)
        except BaseException:
            # First failure or outer cancellation: abandon everything still running
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

        places = [place for slot in slots for place in slot]
        recorded = [f for f in failures if f is not None]
        logger.info(f"[PLACES] Collected {len(places)} results, {len(recorded)} failed searches")
        return RouteSearchOutcome(places=places, failures=recorded)
