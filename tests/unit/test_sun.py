"""Tests for the sun model."""

import math

import numpy as np
import pytest

from solarsim.dynamics.angular_state import AngularState, TWO_PI
from solarsim.simulation.sun import Sun, create_sun


class FixedRandom:
    """Random source returning a fixed sequence of uniform draws."""

    def __init__(self, *values):
        self._values = list(values)

    def random(self):
        return self._values.pop(0)


class TestCreateSun:
    """Tests for randomized sun creation."""

    def test_anchor_time_is_now(self):
        """Sun is anchored at creation time."""
        sun = create_sun(now=42.0, rng=np.random.default_rng(0))
        assert sun.state.anchor_time == 42.0

    def test_angle_from_first_draw(self):
        """Anchor angle covers the full circle."""
        sun = create_sun(now=0.0, rng=FixedRandom(0.25, 0.5))
        assert sun.state.anchor_angle == pytest.approx(math.pi / 2)

    def test_velocity_centered_on_base_rate(self):
        """A draw of 0.5 gives exactly the base rate."""
        sun = create_sun(now=0.0, rng=FixedRandom(0.0, 0.5), base_velocity_deg=0.1)
        assert sun.state.angular_velocity == pytest.approx(math.radians(0.1))

    def test_velocity_jitter_bounds(self):
        """Jitter is symmetric around the base rate."""
        low = create_sun(0.0, FixedRandom(0.0, 0.0), 0.1, 0.05)
        high = create_sun(0.0, FixedRandom(0.0, 0.999999), 0.1, 0.05)

        assert low.state.angular_velocity == pytest.approx(math.radians(0.075))
        assert high.state.angular_velocity == pytest.approx(math.radians(0.125), rel=1e-4)

    def test_random_suns_stay_in_band(self):
        """Many random suns stay within the tuned velocity band."""
        rng = np.random.default_rng(1234)
        for _ in range(200):
            sun = create_sun(0.0, rng)
            velocity_deg = math.degrees(sun.state.angular_velocity)
            assert 0.075 <= velocity_deg < 0.125
            assert 0.0 <= sun.state.anchor_angle < TWO_PI

    def test_new_sun_is_dirty(self):
        """A new sun needs to be replicated."""
        sun = create_sun(0.0, np.random.default_rng(0))
        assert sun.dirty


class TestSun:
    """Tests for Sun behaviour."""

    def test_direction_is_unit_vector(self):
        """Direction points along the sun angle."""
        sun = Sun(AngularState(anchor_angle=math.pi / 2))
        np.testing.assert_array_almost_equal(sun.direction_at(0.0), [0.0, 1.0])

    def test_shift_anchor_time_marks_dirty(self):
        """Pause correction must be replicated."""
        sun = Sun(AngularState(anchor_angle=0.0, anchor_time=0.0, angular_velocity=0.01))
        sun.dirty = False

        sun.shift_anchor_time(10.0)

        assert sun.state.anchor_time == 10.0
        assert sun.dirty
