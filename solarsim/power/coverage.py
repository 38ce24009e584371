"""Coverage calculation: panel/sun alignment plus shadow check."""

import logging
import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from solarsim.power.occlusion import Occludable, VisibilityQuery


logger = logging.getLogger(__name__)

# Default ray length before the sun is considered visible anyway
SUN_OCCLUSION_CHECK_DISTANCE = 20.0


def calculate_alignment(panel_angle: float, sun_angle: float) -> float:
    """Lambertian alignment between a panel and the sun.

    Facing the sun gives 1, perpendicular gives 0, and facing away is
    clamped to 0 rather than going negative.

    Args:
        panel_angle: Panel orientation (rad)
        sun_angle: Sun direction (rad)

    Returns:
        Alignment in [0, 1]
    """
    relative = panel_angle - sun_angle
    return max(0.0, math.cos(relative))


def calculate_coverage(
    panel_angle: float,
    sun_angle: float,
    origin: NDArray[np.float64],
    panel: Optional[Occludable],
    visibility: Optional[VisibilityQuery],
    max_distance: float = SUN_OCCLUSION_CHECK_DISTANCE,
) -> float:
    """Calculate panel coverage including occlusion.

    The ray toward the sun ignores the querying panel and anything that
    is not solid. A failing visibility query counts as occluded.

    Args:
        panel_angle: Panel orientation (rad)
        sun_angle: Sun direction (rad)
        origin: Panel position [x, y]
        panel: The querying panel (excluded from its own ray)
        visibility: Line-of-sight collaborator (None = unobstructed)
        max_distance: Ray length for the occlusion check

    Returns:
        Coverage in [0, 1]
    """
    coverage = calculate_alignment(panel_angle, sun_angle)

    # No geometric contribution, no ray needed
    if coverage <= 0.0 or visibility is None:
        return coverage

    def ignore(entity: Occludable) -> bool:
        return entity is panel or not entity.is_solid()

    try:
        occluded = visibility.query_occluded(origin, sun_angle, max_distance, ignore)
    except Exception:
        logger.warning(
            "Visibility query failed for panel %s, treating as occluded",
            getattr(panel, "entity_id", None),
            exc_info=True,
        )
        return 0.0

    if occluded:
        return 0.0
    return coverage
