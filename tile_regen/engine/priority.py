"""
Priority computation for selection regeneration requests.

score = level_weight * normalized_level + dep_weight * (1 - dep)

    normalized_level = (z - level_min) / max(1, level_max - level_min)
    dep              = satisfied fraction of the region's dependencies

Lower scores are serviced first, so regions close to the minimum level
and regions whose dependencies are mostly satisfied go early.

normalized_level is 0 when z == level_min and never divides by zero;
values are clamped to [0, 1] so a region outside the supplied range
cannot push NaN or infinity into the queue ordering.
"""

from __future__ import annotations

import math
from typing import Iterable, Mapping

from tile_regen.engine.protocols import Region

DEFAULT_LEVEL_WEIGHT = 0.4
DEFAULT_DEP_WEIGHT = 0.6


def _clamp_unit(value: float) -> float:
    if not math.isfinite(value):
        return 0.0
    return min(1.0, max(0.0, value))


def normalized_level(z: int, level_min: int, level_max: int) -> float:
    """Position of z inside [level_min, level_max], mapped to [0, 1].

    Example:
        >>> normalized_level(1, 1, 3), normalized_level(3, 1, 3)
        (0.0, 1.0)
    """
    span = max(1, level_max - level_min)
    return _clamp_unit((z - level_min) / span)


def compute_priority(
    region: Region,
    level_min: int,
    level_max: int,
    dependency_pressure: Mapping[str, float] | None = None,
    level_weight: float = DEFAULT_LEVEL_WEIGHT,
    dep_weight: float = DEFAULT_DEP_WEIGHT,
) -> float:
    """
    Score a region for the selection queue.

    Args:
        region: Region providing get_z_level() and an id
        level_min: Lowest level in the batch
        level_max: Highest level in the batch
        dependency_pressure: Region id -> satisfied dependency fraction
            in [0, 1]; missing entries count as 0
        level_weight: Weight of the level term
        dep_weight: Weight of the unsatisfied dependency term

    Returns:
        Finite score, lower is serviced sooner
    """
    z = region.get_z_level()
    dep = _clamp_unit((dependency_pressure or {}).get(region.id, 0.0))
    return level_weight * normalized_level(z, level_min, level_max) + dep_weight * (
        1.0 - dep
    )


def level_range(regions: Iterable[Region]) -> tuple[int, int]:
    """Return (min, max) Z-level over regions, (0, 0) when empty."""
    levels = [r.get_z_level() for r in regions]
    if not levels:
        return 0, 0
    return min(levels), max(levels)
