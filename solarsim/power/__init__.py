"""Solar power generation module."""

from solarsim.power.solar_panel import SolarPanel
from solarsim.power.coverage import calculate_alignment, calculate_coverage
from solarsim.power.occlusion import CircleRaycaster, NoOcclusion, Obstacle

__all__ = [
    "SolarPanel",
    "calculate_alignment",
    "calculate_coverage",
    "CircleRaycaster",
    "NoOcclusion",
    "Obstacle",
]
