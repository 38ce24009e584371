"""Anchored angular motion for rotating bodies.

A rotating body (sun or panel) is stored as an anchor: an angle that was
valid at a given simulation time plus a constant angular velocity.
Orientation at any other time is a linear extrapolation:

    angle(t) = normalize(anchor_angle + angular_velocity * (t - anchor_time))

Convention: angles in radians, canonical range [0, 2*pi). Time in seconds.
"""

import math
from dataclasses import dataclass
from typing import Any


TWO_PI = 2.0 * math.pi


def normalize_angle(angle: float) -> float:
    """Map an angle onto its canonical representative in [0, 2*pi).

    Args:
        angle: Angle in radians (any finite value)

    Returns:
        Equivalent angle in [0, 2*pi)
    """
    reduced = math.fmod(angle, TWO_PI)
    if reduced < 0.0:
        reduced += TWO_PI
    # Tiny negative inputs round up to exactly 2*pi
    if reduced >= TWO_PI:
        reduced = 0.0
    return reduced


def unwrap_delta(start: float, end: float) -> float:
    """Signed shortest rotation from start to end, in [-pi, pi).

    Args:
        start: Start angle (rad)
        end: End angle (rad)

    Returns:
        Signed angular difference (rad)
    """
    return normalize_angle(end - start + math.pi) - math.pi


@dataclass
class AngularState:
    """Anchor angle, anchor time and constant angular velocity.

    Attributes:
        anchor_angle: Angle valid at anchor_time (rad, normalized on write)
        anchor_time: Simulation time at which anchor_angle was valid (s)
        angular_velocity: Signed angular velocity (rad/s)
    """

    anchor_angle: float = 0.0
    anchor_time: float = 0.0
    angular_velocity: float = 0.0

    def __post_init__(self) -> None:
        self.anchor_angle = normalize_angle(float(self.anchor_angle))
        self.anchor_time = float(self.anchor_time)
        self.angular_velocity = float(self.angular_velocity)

    def angle_at(self, t: float) -> float:
        """Extrapolate orientation at time t.

        Works for t before anchor_time as well (extrapolates backward).

        Args:
            t: Simulation time (s)

        Returns:
            Angle in [0, 2*pi)
        """
        return normalize_angle(
            self.anchor_angle + self.angular_velocity * (t - self.anchor_time)
        )

    def reanchor(self, angle: float, angular_velocity: float, now: float) -> None:
        """Replace the anchor so extrapolation starts cleanly at now.

        Args:
            angle: New anchor angle (rad)
            angular_velocity: New angular velocity (rad/s)
            now: Current simulation time (s)
        """
        self.anchor_angle = normalize_angle(angle)
        self.angular_velocity = float(angular_velocity)
        self.anchor_time = float(now)

    def rebase(self, now: float) -> None:
        """Move the anchor to now without changing orientation or velocity."""
        self.reanchor(self.angle_at(now), self.angular_velocity, now)

    def shift_anchor_time(self, delta: float) -> None:
        """Shift anchor time forward by a paused interval.

        Args:
            delta: Duration the owning entity spent paused (s)
        """
        self.anchor_time += delta

    def copy(self) -> "AngularState":
        """Return an independent copy."""
        return AngularState(self.anchor_angle, self.anchor_time, self.angular_velocity)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "anchorAngle": float(self.anchor_angle),
            "angularVelocity": float(self.angular_velocity),
            "anchorTime": float(self.anchor_time),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AngularState":
        """Build from the wire/storage triple.

        Args:
            data: Dict with anchorAngle, angularVelocity and anchorTime

        Returns:
            AngularState

        Raises:
            ValueError: If a field is missing or not a finite number
        """
        values = []
        for key in ("anchorAngle", "angularVelocity", "anchorTime"):
            if key not in data:
                raise ValueError(f"Missing angular state field: {key}")
            try:
                value = float(data[key])
            except (TypeError, ValueError):
                raise ValueError(f"Angular state field {key} is not a number")
            if not math.isfinite(value):
                raise ValueError(f"Angular state field {key} must be finite")
            values.append(value)

        anchor_angle, angular_velocity, anchor_time = values
        return cls(
            anchor_angle=anchor_angle,
            anchor_time=anchor_time,
            angular_velocity=angular_velocity,
        )
