"""Simulation engine for the solar array simulator.

Authoritative side: owns the clock, the regions and their panels, and runs
the per-tick power pass.
"""

from enum import Enum, auto
from typing import Optional

import numpy as np

from solarsim.config import Config, get_config
from solarsim.power import CircleRaycaster, SolarPanel
from solarsim.simulation.region import SolarRegion
from solarsim.simulation.sun import create_sun


class SimulationState(Enum):
    """Simulation state enumeration."""
    STOPPED = auto()
    RUNNING = auto()
    PAUSED = auto()


class SimulationEngine:
    """Main simulation engine.

    The clock keeps advancing while the engine is paused, the same way a
    server clock keeps running while a map is paused. Regions freeze their
    rotation instead and shift their anchors forward on resume.

    Attributes:
        dt: Base time step (seconds)
        time_warp: Time scaling factor (1.0 = real-time)
        cur_time: Current simulation clock (seconds)
        state: Current simulation state
        regions: Regions keyed by id
    """

    def __init__(
        self,
        dt: Optional[float] = None,
        time_warp: Optional[float] = None,
        config: Optional[Config] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        """Initialize simulation engine.

        Args:
            dt: Base time step in seconds (overrides config)
            time_warp: Time scaling factor (overrides config)
            config: Configuration object (uses global config if None)
            rng: Random source for sun creation (seeded from config if None)
        """
        if config is None:
            config = get_config()
        self._config = config

        sim_cfg = config.simulation

        self.dt = dt if dt is not None else sim_cfg.dt
        self._time_warp = time_warp if time_warp is not None else sim_cfg.time_warp
        self._rng = rng if rng is not None else np.random.default_rng(config.sun.seed)
        self.cur_time = 0.0
        self.state = SimulationState.STOPPED

        self.regions: dict[str, SolarRegion] = {}
        self._build_default_region()

    @property
    def time_warp(self) -> float:
        """Get current time warp factor."""
        return self._time_warp

    def set_time_warp(self, time_warp: float) -> None:
        """Set time warp factor.

        Args:
            time_warp: Time scaling factor (must be positive)

        Raises:
            ValueError: If time_warp is not positive
        """
        if time_warp <= 0:
            raise ValueError("time_warp must be positive")
        self._time_warp = time_warp

    @property
    def default_region(self) -> SolarRegion:
        """Region created from config at startup."""
        return self.regions[self._config.simulation.region_id]

    def _build_default_region(self) -> None:
        sun_cfg = self._config.sun
        panel_cfg = self._config.panel
        region_id = self._config.simulation.region_id

        sun = create_sun(
            now=self.cur_time,
            rng=self._rng,
            base_velocity_deg=sun_cfg.base_velocity_deg,
            velocity_jitter_deg=sun_cfg.velocity_jitter_deg,
            entity_id=f"{region_id}-sun",
        )
        region = SolarRegion(
            region_id=region_id,
            sun=sun,
            visibility=CircleRaycaster(),
            occlusion_check_distance=panel_cfg.occlusion_check_distance,
        )
        self.add_region(region)

        for i, position in enumerate(panel_cfg.positions):
            region.spawn_panel(
                entity_id=f"{region_id}-panel-{i}",
                position=position,
                max_output=panel_cfg.max_output,
                now=self.cur_time,
            )

    def add_region(self, region: SolarRegion) -> None:
        """Register a region.

        Raises:
            ValueError: If a region with the same id exists
        """
        if region.region_id in self.regions:
            raise ValueError(f"Region already exists: {region.region_id}")
        self.regions[region.region_id] = region
        if self.state == SimulationState.PAUSED:
            region.pause(self.cur_time)

    def get_region(self, region_id: str) -> SolarRegion:
        """Get a region by id.

        Raises:
            KeyError: If the region does not exist
        """
        return self.regions[region_id]

    def find_panel(self, panel_id: str) -> Optional[SolarPanel]:
        """Find a panel in any region."""
        for region in self.regions.values():
            panel = region.get_panel(panel_id)
            if panel is not None:
                return panel
        return None

    def move_panel(self, panel_id: str, region_id: str) -> SolarPanel:
        """Relocate a panel to another region.

        The panel keeps its anchor. A region without a sun yields zero
        output from the next tick on.

        Raises:
            KeyError: If the panel or the target region does not exist
        """
        target = self.get_region(region_id)
        panel = self.find_panel(panel_id)
        if panel is None:
            raise KeyError(panel_id)

        self.regions[panel.region_id].remove_panel(panel_id)
        target.add_panel(panel)
        panel.dirty = True
        return panel

    def start(self) -> None:
        """Start or resume simulation."""
        if self.state == SimulationState.PAUSED:
            for region in self.regions.values():
                region.resume(self.cur_time)
        self.state = SimulationState.RUNNING

    def pause(self) -> None:
        """Pause simulation."""
        if self.state == SimulationState.RUNNING:
            self.state = SimulationState.PAUSED
            for region in self.regions.values():
                region.pause(self.cur_time)

    def stop(self) -> None:
        """Stop simulation."""
        if self.state == SimulationState.PAUSED:
            for region in self.regions.values():
                region.resume(self.cur_time)
        self.state = SimulationState.STOPPED

    def reset(self) -> None:
        """Reset simulation to initial state."""
        self.cur_time = 0.0
        self.state = SimulationState.STOPPED
        self.regions.clear()
        self._build_default_region()

    @property
    def is_paused(self) -> bool:
        return self.state == SimulationState.PAUSED

    def step(self) -> None:
        """Advance simulation by one time step.

        The clock advances unless stopped. Panels are only updated while
        running; rotation itself is implicit in each angular state.
        """
        if self.state == SimulationState.STOPPED:
            return

        self.cur_time += self.dt * self._time_warp

        if self.state != SimulationState.RUNNING:
            return

        for region in self.regions.values():
            if not region.is_paused:
                region.update(self.cur_time)

    @property
    def total_output(self) -> float:
        """Sum of output over all regions (W)."""
        return float(sum(region.total_output for region in self.regions.values()))

    def get_telemetry(self) -> dict:
        """Get current telemetry data.

        Returns:
            Dictionary containing all telemetry data
        """
        return {
            "timestamp": float(self.cur_time),
            "state": self.state.name,
            "timeWarp": float(self._time_warp),
            "totalOutput": self.total_output,
            "regions": [
                region.get_state(self.cur_time) for region in self.regions.values()
            ],
        }
