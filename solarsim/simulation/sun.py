"""Sun model for a solar region.

The sun is treated as infinitely distant: only its angle matters.
"""

import math
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from solarsim.dynamics.angular_state import AngularState, TWO_PI


class Sun:
    """Shared light source of a region.

    Attributes:
        state: Anchored angular motion of the sun
        dirty: True if state changed since last replication
    """

    def __init__(self, state: AngularState, entity_id: str = "sun"):
        """Initialize sun.

        Args:
            state: Initial angular state
            entity_id: Identifier used for replication
        """
        self.entity_id = entity_id
        self.state = state
        self.dirty = True

    def angle_at(self, t: float) -> float:
        """Sun angle at simulation time t (rad)."""
        return self.state.angle_at(t)

    def direction_at(self, t: float) -> NDArray[np.float64]:
        """Unit vector toward the sun at simulation time t.

        Returns:
            [x, y] unit vector
        """
        angle = self.angle_at(t)
        return np.array([math.cos(angle), math.sin(angle)])

    def shift_anchor_time(self, delta: float) -> None:
        """Apply pause correction and mark for replication."""
        self.state.shift_anchor_time(delta)
        self.dirty = True


def create_sun(
    now: float,
    rng: Optional[np.random.Generator] = None,
    base_velocity_deg: float = 0.1,
    velocity_jitter_deg: float = 0.05,
    entity_id: str = "sun",
) -> Sun:
    """Create a sun with a random anchor angle and rotation rate.

    The angle is drawn uniformly over the full circle. The rate is the base
    rate plus symmetric jitter in [-jitter/2, +jitter/2).

    Args:
        now: Current simulation time (s), becomes the anchor time
        rng: Uniform random source (default: new numpy Generator)
        base_velocity_deg: Base angular velocity (deg/s)
        velocity_jitter_deg: Full width of the jitter band (deg/s)
        entity_id: Identifier used for replication

    Returns:
        New Sun
    """
    if rng is None:
        rng = np.random.default_rng()

    anchor_angle = TWO_PI * float(rng.random())
    velocity_deg = base_velocity_deg + (float(rng.random()) - 0.5) * velocity_jitter_deg

    state = AngularState(
        anchor_angle=anchor_angle,
        anchor_time=now,
        angular_velocity=math.radians(velocity_deg),
    )
    return Sun(state, entity_id=entity_id)
