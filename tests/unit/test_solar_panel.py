"""Tests for the rotating solar panel model."""

import math

import pytest

from solarsim.dynamics.angular_state import AngularState
from solarsim.power import CircleRaycaster, NoOcclusion, Obstacle, SolarPanel
from solarsim.simulation.sun import Sun


def make_sun(angle: float, velocity: float = 0.0) -> Sun:
    return Sun(AngularState(anchor_angle=angle, anchor_time=0.0, angular_velocity=velocity))


def make_panel(angle: float = 0.0, velocity: float = 0.0, **kwargs) -> SolarPanel:
    return SolarPanel(
        entity_id="panel-0",
        position=[0.0, 0.0],
        max_output=100.0,
        state=AngularState(anchor_angle=angle, anchor_time=0.0, angular_velocity=velocity),
        **kwargs,
    )


class TestSolarPanelOutput:
    """Tests for per-tick output calculation."""

    def test_facing_sun_full_output(self):
        """Panel aimed at an unobstructed sun produces max output."""
        panel = make_panel(angle=0.0)
        output = panel.update(now=0.0, sun=make_sun(0.0), visibility=NoOcclusion())
        assert output == pytest.approx(100.0)
        assert panel.current_output == pytest.approx(100.0)

    def test_perpendicular_zero_output(self):
        """Panel at 90 degrees to the sun produces nothing."""
        panel = make_panel(angle=0.0)
        panel.update(now=0.0, sun=make_sun(math.pi / 2), visibility=NoOcclusion())
        assert panel.current_output == pytest.approx(0.0, abs=1e-9)

    def test_sixty_degrees_half_output(self):
        """Output follows the cosine law."""
        panel = make_panel(angle=0.0)
        panel.update(now=0.0, sun=make_sun(math.pi / 3), visibility=NoOcclusion())
        assert panel.current_output == pytest.approx(50.0)

    def test_disabled_panel_zero_output(self):
        """Disabled panels produce nothing regardless of alignment."""
        panel = make_panel(angle=0.0, enabled=False)
        panel.update(now=0.0, sun=make_sun(0.0), visibility=NoOcclusion())
        assert panel.current_output == 0.0

    def test_disable_zeroes_output_immediately(self):
        """set_enabled(False) does not wait for the next tick."""
        panel = make_panel(angle=0.0)
        panel.update(now=0.0, sun=make_sun(0.0), visibility=NoOcclusion())
        panel.set_enabled(False)
        assert panel.current_output == 0.0

    def test_no_sun_zero_output(self):
        """A region without a sun gives zero output."""
        panel = make_panel(angle=0.0)
        panel.update(now=0.0, sun=None, visibility=NoOcclusion())
        assert panel.current_output == 0.0

    def test_shadowed_panel_zero_output(self):
        """An anchored obstacle toward the sun blocks the panel."""
        panel = make_panel(angle=0.0)
        caster = CircleRaycaster([panel, Obstacle("wall", position=[5.0, 0.0], radius=1.0)])
        panel.update(now=0.0, sun=make_sun(0.0), visibility=caster)
        assert panel.current_output == 0.0

    def test_loose_object_does_not_shadow(self):
        """Unanchored objects never shade a panel."""
        panel = make_panel(angle=0.0)
        caster = CircleRaycaster(
            [panel, Obstacle("crate", position=[5.0, 0.0], radius=1.0, anchored=False)]
        )
        panel.update(now=0.0, sun=make_sun(0.0), visibility=caster)
        assert panel.current_output == pytest.approx(100.0)

    def test_panel_does_not_shadow_itself(self):
        """The querying panel is excluded from its own ray."""
        panel = make_panel(angle=0.0)
        panel.update(now=0.0, sun=make_sun(0.0), visibility=CircleRaycaster([panel]))
        assert panel.current_output == pytest.approx(100.0)

    def test_angle_follows_rotation(self):
        """Update extrapolates the angle from the anchor."""
        panel = make_panel(angle=0.0, velocity=0.01)
        panel.update(now=50.0, sun=make_sun(0.5), visibility=NoOcclusion())
        assert panel.angle == pytest.approx(0.5)
        assert panel.current_output == pytest.approx(100.0)

    @pytest.mark.parametrize("sun_angle", [0.0, 0.7, 1.5, 2.0, 3.1, 4.5, 6.0])
    def test_output_within_bounds(self, sun_angle):
        """Output always stays in [0, max_output]."""
        panel = make_panel(angle=0.3)
        panel.update(now=0.0, sun=make_sun(sun_angle), visibility=NoOcclusion())
        assert 0.0 <= panel.current_output <= panel.max_output


class TestSolarPanelAnchor:
    """Tests for anchor rewrites."""

    def test_negative_max_output_rejected(self):
        """Rated output cannot be negative."""
        with pytest.raises(ValueError):
            SolarPanel("p", [0.0, 0.0], max_output=-1.0)

    def test_apply_target_reanchors_and_marks_dirty(self):
        """Operator target starts rotation from now."""
        panel = make_panel(angle=1.0, velocity=0.5)
        panel.dirty = False

        panel.apply_target(angle=2.0, angular_velocity=-0.01, now=100.0)

        assert panel.state.anchor_time == 100.0
        assert panel.angle_at(100.0) == pytest.approx(2.0)
        assert panel.angle_at(110.0) == pytest.approx(1.9)
        assert panel.dirty

    def test_restore_never_anchors_in_the_past(self):
        """Restoring an old anchor moves it to now, keeping orientation."""
        panel = make_panel()
        persisted = AngularState(anchor_angle=1.0, anchor_time=10.0, angular_velocity=0.01)

        panel.restore(persisted, now=30.0)

        assert panel.state.anchor_time == 30.0
        assert panel.angle_at(30.0) == pytest.approx(1.2)
        assert persisted.anchor_time == 10.0

    def test_restore_keeps_future_anchor(self):
        """An anchor at or after now is kept as is."""
        panel = make_panel()
        panel.restore(AngularState(1.0, 50.0, 0.01), now=30.0)
        assert panel.state.anchor_time == 50.0

    def test_pause_shift_marks_dirty(self):
        """Pause correction must reach observers."""
        panel = make_panel()
        panel.dirty = False
        panel.shift_anchor_time(10.0)
        assert panel.state.anchor_time == 10.0
        assert panel.dirty

    def test_is_solid_when_anchored(self):
        """Unanchored panels do not shade their neighbours."""
        assert make_panel().is_solid()
        assert not make_panel(anchored=False).is_solid()

    def test_get_state(self):
        """get_state returns expected fields."""
        state = make_panel().get_state()
        for key in ("id", "angle", "output", "maxOutput", "enabled", "position"):
            assert key in state
