"""Solar region: one sun, the panels that track it, and their shared target."""

import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from solarsim.dynamics.angular_state import AngularState, normalize_angle
from solarsim.power import SolarPanel
from solarsim.power.coverage import SUN_OCCLUSION_CHECK_DISTANCE
from solarsim.power.occlusion import VisibilityQuery
from solarsim.simulation.sun import Sun


logger = logging.getLogger(__name__)


class SolarRegion:
    """A region with its own sun and panel array.

    All panels in a region share the most recent operator target.

    Attributes:
        region_id: Region identifier
        sun: Region sun (None = no light source)
        visibility: Line-of-sight collaborator for shadow checks
        target_angle: Operator target panel angle (rad)
        target_velocity: Operator target panel velocity (rad/s)
        occlusion_check_distance: Ray length for shadow checks
    """

    def __init__(
        self,
        region_id: str,
        sun: Optional[Sun] = None,
        visibility: Optional[VisibilityQuery] = None,
        occlusion_check_distance: float = SUN_OCCLUSION_CHECK_DISTANCE,
    ):
        self.region_id = region_id
        self.sun = sun
        self.visibility = visibility
        self.occlusion_check_distance = occlusion_check_distance

        self.target_angle = 0.0
        self.target_velocity = 0.0

        self._panels: dict[str, SolarPanel] = {}
        self._paused_at: Optional[float] = None

    @property
    def panels(self) -> list[SolarPanel]:
        """Panels in insertion order."""
        return list(self._panels.values())

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    @property
    def total_output(self) -> float:
        """Sum of current panel outputs (W)."""
        return float(sum(panel.current_output for panel in self._panels.values()))

    def spawn_panel(
        self,
        entity_id: str,
        position: list[float] | NDArray[np.float64],
        max_output: float,
        now: float,
        radius: float = 0.5,
    ) -> SolarPanel:
        """Create a panel anchored at now on the region's current target.

        Args:
            entity_id: Unique panel identifier
            position: Panel position [x, y]
            max_output: Rated output (W)
            now: Current simulation time (s)
            radius: Footprint radius

        Returns:
            The new panel
        """
        state = AngularState(
            anchor_angle=self.target_angle,
            anchor_time=self.frozen_time(now),
            angular_velocity=self.target_velocity,
        )
        panel = SolarPanel(
            entity_id=entity_id,
            position=position,
            max_output=max_output,
            state=state,
            radius=radius,
        )
        self.add_panel(panel)
        return panel

    def add_panel(self, panel: SolarPanel) -> None:
        """Attach an existing panel to this region.

        Raises:
            ValueError: If a panel with the same id is already present
        """
        if panel.entity_id in self._panels:
            raise ValueError(f"Panel already in region: {panel.entity_id}")
        panel.region_id = self.region_id
        self._panels[panel.entity_id] = panel
        self._register_blocker(panel)

    def remove_panel(self, entity_id: str) -> SolarPanel:
        """Detach a panel from this region.

        Raises:
            KeyError: If the panel is not in this region
        """
        panel = self._panels.pop(entity_id)
        remove = getattr(self.visibility, "remove", None)
        if remove is not None:
            remove(entity_id)
        panel.region_id = None
        return panel

    def get_panel(self, entity_id: str) -> Optional[SolarPanel]:
        return self._panels.get(entity_id)

    def restore_panel(self, entity_id: str, state: AngularState, now: float) -> SolarPanel:
        """Restore a panel from persisted angular state.

        While paused the restored orientation is held at the pause instant,
        so the resume shift continues it from there without a jump.

        Raises:
            KeyError: If the panel is not in this region
        """
        panel = self._panels[entity_id]
        panel.restore(state, now)
        frozen = self.frozen_time(now)
        if frozen < now:
            panel.shift_anchor_time(frozen - now)
        return panel

    def _register_blocker(self, panel: SolarPanel) -> None:
        add = getattr(self.visibility, "add", None)
        if add is not None:
            add(panel)

    def frozen_time(self, now: float) -> float:
        """Time at which rotation is evaluated: the pause instant while paused."""
        if self._paused_at is not None:
            return self._paused_at
        return now

    def sun_angle_at(self, now: float) -> Optional[float]:
        if self.sun is None:
            return None
        return self.sun.angle_at(self.frozen_time(now))

    def update(self, now: float) -> None:
        """Per-tick pass: recompute every panel's angle and output.

        Args:
            now: Current simulation time (s)
        """
        for panel in self._panels.values():
            panel.update(
                now=now,
                sun=self.sun,
                visibility=self.visibility,
                max_distance=self.occlusion_check_distance,
            )

    def set_target(
        self,
        now: float,
        angle: Optional[float] = None,
        angular_velocity: Optional[float] = None,
    ) -> None:
        """Set the shared panel target and re-anchor all panels.

        Args:
            now: Current simulation time (s)
            angle: New target angle (rad), None = keep
            angular_velocity: New target velocity (rad/s), None = keep
        """
        if angle is not None:
            self.target_angle = normalize_angle(angle)
        if angular_velocity is not None:
            self.target_velocity = float(angular_velocity)
        self.refresh_all_panels(now)

    def refresh_all_panels(self, now: float) -> None:
        """Re-anchor every panel on the current target at now.

        While paused the anchor is placed at the pause instant so the
        resume shift lands it exactly on the resume time.
        """
        anchor_time = self.frozen_time(now)
        for panel in self._panels.values():
            panel.apply_target(self.target_angle, self.target_velocity, anchor_time)

    def pause(self, now: float) -> None:
        """Freeze rotation of this region. No-op if already paused."""
        if self._paused_at is not None:
            return
        self._paused_at = now
        logger.info("Region %s paused at t=%.3f", self.region_id, now)

    def resume(self, now: float) -> float:
        """Resume and shift every anchor by the paused duration.

        Args:
            now: Current simulation time (s)

        Returns:
            Paused duration applied to the anchors (0 if not paused)
        """
        if self._paused_at is None:
            return 0.0

        paused_time = max(0.0, now - self._paused_at)
        self._paused_at = None

        if self.sun is not None:
            self.sun.shift_anchor_time(paused_time)
        for panel in self._panels.values():
            panel.shift_anchor_time(paused_time)

        logger.info(
            "Region %s resumed at t=%.3f after %.3f s paused",
            self.region_id, now, paused_time,
        )
        return paused_time

    def get_state(self, now: float) -> dict:
        """Get region state for telemetry.

        Args:
            now: Current simulation time (s)

        Returns:
            Dictionary with sun, target and panel state
        """
        sun_angle = self.sun_angle_at(now)
        sun_direction = None
        if self.sun is not None:
            sun_direction = self.sun.direction_at(self.frozen_time(now)).tolist()

        return {
            "id": self.region_id,
            "isPaused": self.is_paused,
            "sunAngle": float(sun_angle) if sun_angle is not None else None,
            "sunDirection": sun_direction,
            "targetAngle": float(self.target_angle),
            "targetVelocity": float(self.target_velocity),
            "totalOutput": self.total_output,
            "panels": [panel.get_state() for panel in self._panels.values()],
        }
