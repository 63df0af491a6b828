"""Route checkpoint sampling.

Picks evenly spaced points of a decoded route to use as nearby-search
origins, so the number of searches grows with the target count rather
than with route length.
"""

from collections.abc import Sequence

from mapmyway.models import Checkpoint, Coordinate

DEFAULT_CHECKPOINT_COUNT = 10


def checkpoint_stride(total_points: int, target_count: int) -> int:
    """Index step between checkpoints: ``max(1, total_points // target_count)``."""
    if target_count < 1:
        raise ValueError(f"target_count must be at least 1, got {target_count}")
    return max(1, total_points // target_count)


def sample_checkpoints(
    points: Sequence[Coordinate], target_count: int = DEFAULT_CHECKPOINT_COUNT
) -> list[Checkpoint]:
    """Take points at indices 0, stride, 2*stride, ... below ``len(points)``.

    The last route point is only included when the stride lands on it.
    Returns more than ``target_count`` checkpoints when the division leaves
    a remainder (23 points, target 10 -> stride 2 -> 12 checkpoints).
    """
    stride = checkpoint_stride(len(points), target_count)
    return [
        Checkpoint(index=i, coordinate=points[i])
        for i in range(0, len(points), stride)
    ]
