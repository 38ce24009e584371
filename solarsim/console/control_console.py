"""Solar control console: throttled status snapshots and operator adjustments."""

import math
from dataclasses import dataclass
from typing import Any, Optional

from solarsim.simulation.region import SolarRegion


@dataclass
class ConsoleSnapshot:
    """Read-only aggregate of a region shown on the console."""

    target_angle: float
    target_velocity: float
    total_output: float
    sun_direction: Optional[float]
    is_paused: bool

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "targetAngle": float(self.target_angle),
            "targetVelocity": float(self.target_velocity),
            "totalOutput": float(self.total_output),
            "sunDirection": (
                float(self.sun_direction) if self.sun_direction is not None else None
            ),
            "isPaused": bool(self.is_paused),
        }


def _is_finite_number(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


class SolarControlConsole:
    """Operator console bound to one region.

    Attributes:
        region: Region the console controls
        max_velocity: Velocity limit for operator commands (rad/s)
        update_interval: Minimum simulation time between snapshots (s)
    """

    def __init__(
        self,
        region: SolarRegion,
        max_velocity_deg: float = 1.0,
        update_interval: float = 1.0,
    ):
        """Initialize console.

        Args:
            region: Region the console controls
            max_velocity_deg: Velocity limit (deg/s)
            update_interval: Snapshot interval (s)
        """
        if update_interval <= 0:
            raise ValueError("update_interval must be positive")
        self.region = region
        self.max_velocity = math.radians(max_velocity_deg)
        self.update_interval = update_interval
        self._update_timer = 0.0

    def snapshot(self, now: float) -> ConsoleSnapshot:
        """Build a snapshot regardless of the throttle."""
        return ConsoleSnapshot(
            target_angle=self.region.target_angle,
            target_velocity=self.region.target_velocity,
            total_output=self.region.total_output,
            sun_direction=self.region.sun_angle_at(now),
            is_paused=self.region.is_paused,
        )

    def update(self, frame_time: float, now: float) -> Optional[ConsoleSnapshot]:
        """Advance the throttle timer.

        Args:
            frame_time: Simulation time since the last call (s)
            now: Current simulation time (s)

        Returns:
            Snapshot if the interval elapsed, otherwise None
        """
        self._update_timer += frame_time
        if self._update_timer < self.update_interval:
            return None
        # Only the partial interval carries over; a burst never queues snapshots.
        self._update_timer = (self._update_timer - self.update_interval) % self.update_interval
        return self.snapshot(now)

    def adjust(
        self,
        rotation: Any = None,
        angular_velocity: Any = None,
        now: float = 0.0,
    ) -> bool:
        """Apply an operator adjustment.

        Non-finite or missing fields leave the current target unchanged.
        The velocity is clamped to [-max_velocity, +max_velocity].

        Args:
            rotation: Requested panel angle (rad)
            angular_velocity: Requested panel velocity (rad/s)
            now: Current simulation time (s)

        Returns:
            True if any field was applied and the panels re-anchored
        """
        angle = None
        velocity = None

        if _is_finite_number(rotation):
            angle = float(rotation)

        if _is_finite_number(angular_velocity):
            velocity = min(self.max_velocity, max(-self.max_velocity, float(angular_velocity)))

        if angle is None and velocity is None:
            return False

        self.region.set_target(now, angle=angle, angular_velocity=velocity)
        return True
