"""Place deduplication."""

from collections.abc import Iterable

from mapmyway.models import PlaceResult


def deduplicate_places(places: Iterable[PlaceResult]) -> list[PlaceResult]:
    """Keep the first record seen for each place id, in first-seen order.

    Overlapping checkpoint radii return the same place several times. The
    first occurrence wins so results are reproducible for a given input order.
    """
    unique: dict[str, PlaceResult] = {}
    for place in places:
        if place.id not in unique:
            unique[place.id] = place
    return list(unique.values())
