"""Rotating solar panel model for power generation."""

from typing import Optional

import numpy as np
from numpy.typing import NDArray

from solarsim.dynamics.angular_state import AngularState
from solarsim.power.coverage import SUN_OCCLUSION_CHECK_DISTANCE, calculate_coverage
from solarsim.power.occlusion import VisibilityQuery
from solarsim.simulation.sun import Sun


class SolarPanel:
    """Sun-tracking solar panel.

    Orientation is never stepped; it is extrapolated from the angular
    state anchor whenever it is needed.

    Attributes:
        entity_id: Unique panel identifier
        position: Panel position [x, y] in its region
        max_output: Output when facing an unobstructed sun (W)
        state: Anchored angular motion of the panel
        enabled: Disabled panels produce no power
        anchored: Only anchored panels shade other panels
        radius: Footprint radius used when the panel itself blocks a ray
        current_output: Last calculated output (W)
        angle: Last calculated orientation (rad)
        dirty: True if state changed since last replication
    """

    def __init__(
        self,
        entity_id: str,
        position: list[float] | NDArray[np.float64],
        max_output: float,
        state: Optional[AngularState] = None,
        enabled: bool = True,
        anchored: bool = True,
        region_id: Optional[str] = None,
        radius: float = 0.5,
    ):
        """Initialize solar panel.

        Args:
            entity_id: Unique panel identifier
            position: Panel position [x, y]
            max_output: Rated output (W), must be >= 0
            state: Initial angular state (default: angle 0, at rest, t=0)
            enabled: Whether the panel is generating
            anchored: Whether the panel is bolted down
            region_id: Region the panel belongs to
            radius: Footprint radius

        Raises:
            ValueError: If max_output is negative
        """
        if max_output < 0:
            raise ValueError("max_output must be non-negative")

        self.entity_id = entity_id
        self.position = np.array(position, dtype=np.float64)
        self.max_output = float(max_output)
        self.state = state if state is not None else AngularState()
        self.enabled = enabled
        self.anchored = anchored
        self.region_id = region_id
        self.radius = radius

        self.current_output = 0.0
        self.angle = self.state.anchor_angle
        self.dirty = True

    def is_solid(self) -> bool:
        """Panels block light only while anchored."""
        return self.anchored

    def angle_at(self, t: float) -> float:
        """Panel orientation at simulation time t (rad)."""
        return self.state.angle_at(t)

    def update(
        self,
        now: float,
        sun: Optional[Sun],
        visibility: Optional[VisibilityQuery],
        max_distance: float = SUN_OCCLUSION_CHECK_DISTANCE,
    ) -> float:
        """Recalculate orientation and power output.

        Args:
            now: Current simulation time (s)
            sun: Sun of the panel's region (None = no sun, no power)
            visibility: Line-of-sight collaborator
            max_distance: Ray length for the occlusion check

        Returns:
            Power output in Watts
        """
        if not self.enabled:
            self.current_output = 0.0
            return self.current_output

        self.angle = self.angle_at(now)

        if sun is None:
            self.current_output = 0.0
            return self.current_output

        coverage = calculate_coverage(
            panel_angle=self.angle,
            sun_angle=sun.angle_at(now),
            origin=self.position,
            panel=self,
            visibility=visibility,
            max_distance=max_distance,
        )
        self.current_output = self.max_output * min(1.0, max(0.0, coverage))
        return self.current_output

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable generation.

        Disabling zeroes the output immediately.
        """
        self.enabled = enabled
        if not enabled:
            self.current_output = 0.0

    def apply_target(self, angle: float, angular_velocity: float, now: float) -> None:
        """Re-anchor to an operator target starting at now.

        Args:
            angle: Target angle (rad)
            angular_velocity: Target angular velocity (rad/s)
            now: Current simulation time (s)
        """
        self.state.reanchor(angle, angular_velocity, now)
        self.angle = self.state.anchor_angle
        self.dirty = True

    def restore(self, state: AngularState, now: float) -> None:
        """Restore persisted angular state.

        The anchor time is never left before now: an older anchor is
        moved forward to now keeping its extrapolated orientation. Panels
        owned by a region are restored through SolarRegion.restore_panel,
        which also accounts for a pause.

        Args:
            state: Persisted angular state
            now: Current simulation time (s)
        """
        self.state = state.copy()
        if self.state.anchor_time < now:
            self.state.rebase(now)
        self.angle = self.state.angle_at(now)
        self.dirty = True

    def shift_anchor_time(self, delta: float) -> None:
        """Apply pause correction and mark for replication."""
        self.state.shift_anchor_time(delta)
        self.dirty = True

    def get_state(self) -> dict:
        """Get panel state for telemetry.

        Returns:
            Dictionary with panel state
        """
        return {
            "id": self.entity_id,
            "angle": float(self.angle),
            "output": float(self.current_output),
            "maxOutput": self.max_output,
            "enabled": bool(self.enabled),
            "position": self.position.tolist(),
        }
