"""Unit tests for the simulation engine.

The simulation engine:
- Manages the simulation clock and state
- Runs the per-tick panel pass for every region
- Applies pause correction on resume
- Provides telemetry data
"""

import json
import math

import numpy as np
import pytest

from solarsim.config import Config
from solarsim.dynamics.angular_state import AngularState
from solarsim.simulation.engine import SimulationEngine, SimulationState
from solarsim.simulation.region import SolarRegion


@pytest.fixture
def engine():
    """Engine with a seeded sun and default panel layout."""
    config = Config()
    config.sun.seed = 7
    return SimulationEngine(dt=1.0, time_warp=1.0, config=config)


class TestSimulationEngineInitialization:
    """Tests for simulation engine initialization."""

    def test_default_initialization(self, engine):
        """Engine should start stopped with a default region."""
        assert engine.state == SimulationState.STOPPED
        assert engine.cur_time == 0.0
        assert engine.default_region.sun is not None
        assert len(engine.default_region.panels) == len(Config().panel.positions)

    def test_panels_anchored_at_start(self, engine):
        """Default panels are anchored at time zero."""
        for panel in engine.default_region.panels:
            assert panel.state.anchor_time == 0.0

    def test_seeded_sun_is_reproducible(self):
        """Same seed gives the same sun."""
        config = Config()
        config.sun.seed = 99
        a = SimulationEngine(config=config).default_region.sun.state
        b = SimulationEngine(config=config).default_region.sun.state
        assert a == b

    def test_invalid_time_warp(self, engine):
        """Non-positive time warp is rejected."""
        with pytest.raises(ValueError):
            engine.set_time_warp(0.0)


class TestSimulationEngineState:
    """Tests for simulation state management."""

    def test_start_pause_resume_stop(self, engine):
        """State machine follows start/pause/start/stop."""
        engine.start()
        assert engine.state == SimulationState.RUNNING
        engine.pause()
        assert engine.state == SimulationState.PAUSED
        assert engine.default_region.is_paused
        engine.start()
        assert engine.state == SimulationState.RUNNING
        assert not engine.default_region.is_paused
        engine.stop()
        assert engine.state == SimulationState.STOPPED

    def test_pause_when_stopped_is_noop(self, engine):
        """Pause only applies to a running simulation."""
        engine.pause()
        assert engine.state == SimulationState.STOPPED

    def test_reset_clears_time(self, engine):
        """Reset should clear the clock and rebuild the region."""
        engine.start()
        engine.step()
        engine.reset()

        assert engine.cur_time == 0.0
        assert engine.state == SimulationState.STOPPED


class TestSimulationEngineStep:
    """Tests for simulation stepping."""

    def test_step_advances_time(self, engine):
        """Single step should advance the clock by dt * time_warp."""
        engine.set_time_warp(2.0)
        engine.start()
        engine.step()
        assert engine.cur_time == pytest.approx(2.0)

    def test_step_does_nothing_when_stopped(self, engine):
        """Step should not advance when stopped."""
        engine.step()
        assert engine.cur_time == 0.0

    def test_clock_runs_while_paused(self, engine):
        """The clock keeps running, panel outputs are frozen."""
        engine.start()
        engine.step()
        engine.pause()
        outputs = [p.current_output for p in engine.default_region.panels]

        engine.step()

        assert engine.cur_time == pytest.approx(2.0)
        assert [p.current_output for p in engine.default_region.panels] == outputs

    def test_pause_resume_shifts_anchors(self, engine):
        """Pausing for 10 s shifts every anchor by exactly 10 s."""
        region = engine.default_region
        engine.start()
        engine.step()

        sun_before = region.sun.state.anchor_time
        panels_before = [p.state.anchor_time for p in region.panels]

        engine.pause()
        for _ in range(10):
            engine.step()
        engine.start()

        assert region.sun.state.anchor_time == pytest.approx(sun_before + 10.0)
        for panel, before in zip(region.panels, panels_before):
            assert panel.state.anchor_time == pytest.approx(before + 10.0)

    def test_rotation_continuous_across_pause(self, engine):
        """Angle after resume equals angle before pause."""
        region = engine.default_region
        region.set_target(now=0.0, angular_velocity=math.radians(0.5))
        panel = region.panels[0]
        engine.start()
        for _ in range(3):
            engine.step()

        before_panel = panel.angle_at(engine.cur_time)
        before_sun = region.sun.angle_at(engine.cur_time)

        engine.pause()
        for _ in range(25):
            engine.step()
        engine.start()

        assert panel.angle_at(engine.cur_time) == pytest.approx(before_panel)
        assert region.sun.angle_at(engine.cur_time) == pytest.approx(before_sun)

    def test_panel_facing_sun_full_output(self, engine):
        """A lone panel aimed at the sun produces its rated output."""
        region = engine.default_region
        for panel in region.panels[1:]:
            region.remove_panel(panel.entity_id)
        region.sun.state = AngularState(anchor_angle=1.0, anchor_time=0.0)
        region.set_target(now=0.0, angle=1.0, angular_velocity=0.0)

        engine.start()
        engine.step()

        panel = region.panels[0]
        assert panel.current_output == pytest.approx(panel.max_output)


class TestSimulationEngineRegions:
    """Tests for multi-region behaviour."""

    def test_move_panel_to_sunless_region(self, engine):
        """A relocated panel in a sunless region produces nothing."""
        engine.add_region(SolarRegion("cave"))
        panel_id = engine.default_region.panels[0].entity_id

        engine.move_panel(panel_id, "cave")
        engine.start()
        engine.step()

        panel = engine.find_panel(panel_id)
        assert panel.region_id == "cave"
        assert panel.current_output == 0.0
        assert engine.default_region.get_panel(panel_id) is None

    def test_move_unknown_panel(self, engine):
        """Unknown panels raise KeyError."""
        with pytest.raises(KeyError):
            engine.move_panel("ghost", engine.default_region.region_id)

    def test_duplicate_region_rejected(self, engine):
        """Region ids are unique."""
        with pytest.raises(ValueError):
            engine.add_region(SolarRegion(engine.default_region.region_id))

    def test_region_added_while_paused_is_paused(self, engine):
        """New regions join the current pause."""
        engine.start()
        engine.pause()
        engine.add_region(SolarRegion("annex"))
        assert engine.get_region("annex").is_paused


class TestSimulationEngineTelemetry:
    """Tests for telemetry generation."""

    def test_telemetry_fields(self, engine):
        """Telemetry contains clock, state and regions."""
        telemetry = engine.get_telemetry()
        assert telemetry["state"] == "STOPPED"
        assert "totalOutput" in telemetry
        assert telemetry["regions"][0]["id"] == engine.default_region.region_id

    def test_telemetry_is_json_serializable(self, engine):
        """No numpy scalars leak into telemetry."""
        engine.start()
        for _ in range(5):
            engine.step()
        json.dumps(engine.get_telemetry())

    def test_total_output_matches_panels(self, engine):
        """Total output is the sum of all panel outputs."""
        engine.start()
        engine.step()
        expected = sum(p.current_output for p in engine.default_region.panels)
        assert engine.total_output == pytest.approx(expected)
        assert isinstance(engine.get_telemetry()["totalOutput"], float)
        assert np.isfinite(engine.total_output)


class TestDefaultLayoutShading:
    """The default row of panels shades itself along its axis."""

    def _run_with_sun_at(self, engine, angle):
        region = engine.default_region
        region.sun.state = AngularState(anchor_angle=angle)
        region.set_target(now=engine.cur_time, angle=angle, angular_velocity=0.0)
        engine.start()
        engine.step()
        return [panel.current_output for panel in region.panels]

    def test_sun_along_row_shades_upstream_panels(self, engine):
        """Only the panel nearest the sun is lit."""
        max_output = engine.default_region.panels[0].max_output
        outputs = self._run_with_sun_at(engine, 0.0)
        assert outputs[:-1] == [0.0, 0.0, 0.0]
        assert outputs[-1] == pytest.approx(max_output)

    def test_sun_across_row_lights_every_panel(self, engine):
        max_output = engine.default_region.panels[0].max_output
        outputs = self._run_with_sun_at(engine, math.pi / 2)
        assert outputs == pytest.approx([max_output] * len(outputs))
