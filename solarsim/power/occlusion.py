"""Line-of-sight queries used for panel shadowing.

The coverage calculation only depends on the VisibilityQuery protocol.
CircleRaycaster is a small 2D implementation of it where every blocker
has a circular footprint.
"""

import math
from dataclasses import dataclass, field
from typing import Callable, Iterable, Protocol, runtime_checkable

import numpy as np
from numpy.typing import NDArray


@runtime_checkable
class Occludable(Protocol):
    """Anything a sun ray can hit."""

    entity_id: str

    def is_solid(self) -> bool:
        """True if the entity blocks light."""
        ...


# Returns True for entities that are allowed NOT to block the ray
PassPredicate = Callable[[Occludable], bool]


class VisibilityQuery(Protocol):
    """Bounded ray query against the world geometry."""

    def query_occluded(
        self,
        origin: NDArray[np.float64],
        direction: float,
        max_distance: float,
        predicate: PassPredicate,
    ) -> bool:
        """Check whether any blocking entity lies along the ray.

        Args:
            origin: Ray start position [x, y]
            direction: Ray direction angle (rad)
            max_distance: Ray length
            predicate: Entities for which it returns True are ignored

        Returns:
            True if a blocking hit occurred within range
        """
        ...


@dataclass
class Obstacle:
    """Static or moving structure with a circular footprint.

    Attributes:
        entity_id: Unique identifier
        position: Center [x, y]
        radius: Footprint radius
        anchored: Only anchored structures cast shadows
    """

    entity_id: str
    position: NDArray[np.float64] = field(default_factory=lambda: np.zeros(2))
    radius: float = 0.5
    anchored: bool = True

    def __post_init__(self) -> None:
        self.position = np.asarray(self.position, dtype=np.float64)

    def is_solid(self) -> bool:
        return self.anchored


class NoOcclusion:
    """Visibility query for open space: nothing ever blocks."""

    def query_occluded(self, origin, direction, max_distance, predicate) -> bool:
        return False


def ray_hits_circle(
    origin: NDArray[np.float64],
    direction: NDArray[np.float64],
    max_distance: float,
    center: NDArray[np.float64],
    radius: float,
) -> bool:
    """Check if a bounded ray intersects a circle.

    Projects the circle center onto the ray and compares the perpendicular
    distance against the radius, then checks the entry point is in range.

    Args:
        origin: Ray start [x, y]
        direction: Unit ray direction [x, y]
        max_distance: Ray length
        center: Circle center [x, y]
        radius: Circle radius

    Returns:
        True if the ray enters the circle within max_distance
    """
    to_center = center - origin
    proj = float(np.dot(to_center, direction))

    perpendicular = to_center - proj * direction
    dist_sq = float(np.dot(perpendicular, perpendicular))
    r_sq = radius * radius
    if dist_sq > r_sq:
        return False

    # Distance along the ray to the first intersection
    half_chord = math.sqrt(r_sq - dist_sq)
    t_enter = proj - half_chord
    t_exit = proj + half_chord

    if t_exit < 0.0:
        # Circle entirely behind origin
        return False
    return t_enter <= max_distance


class CircleRaycaster:
    """Visibility query over a set of circular blockers.

    Panels can be registered alongside obstacles so that neighbouring
    panels shade each other.
    """

    def __init__(self, entities: Iterable = ()):
        """Initialize raycaster.

        Args:
            entities: Initial entities. Each needs entity_id, position,
                radius (default 0.5) and is_solid().
        """
        self._entities: dict[str, object] = {}
        for entity in entities:
            self.add(entity)

    def add(self, entity) -> None:
        """Register an entity as a potential blocker."""
        self._entities[entity.entity_id] = entity

    def remove(self, entity_id: str) -> bool:
        """Unregister an entity.

        Returns:
            True if the entity was registered
        """
        return self._entities.pop(entity_id, None) is not None

    def __len__(self) -> int:
        return len(self._entities)

    def query_occluded(
        self,
        origin: NDArray[np.float64],
        direction: float,
        max_distance: float,
        predicate: PassPredicate,
    ) -> bool:
        origin = np.asarray(origin, dtype=np.float64)
        ray_dir = np.array([math.cos(direction), math.sin(direction)])

        for entity in self._entities.values():
            if predicate(entity):
                continue
            radius = getattr(entity, "radius", 0.5)
            if ray_hits_circle(origin, ray_dir, max_distance, entity.position, radius):
                return True
        return False
