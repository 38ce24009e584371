"""Solar array and simulation configuration.

All tunable parameters are defined here and can be overridden via config file.
"""

from dataclasses import dataclass, field
from pathlib import Path
import json
from typing import Optional


@dataclass
class SunConfig:
    """Sun rotation parameters."""
    base_velocity_deg: float = 0.1  # Base angular velocity [deg/s]
    velocity_jitter_deg: float = 0.05  # Full width of random jitter [deg/s]
    seed: Optional[int] = None  # RNG seed (None = nondeterministic)


@dataclass
class PanelConfig:
    """Solar panel parameters."""
    max_output: float = 1500.0  # Rated output when facing the sun [W]
    max_velocity_deg: float = 1.0  # Operator velocity limit [deg/s]
    occlusion_check_distance: float = 20.0  # Ray length for shadow checks [m]
    # Default layout: panel positions [x, y] in the region. Panels are anchored
    # and block light, so with 2 m spacing and a 0.5 m footprint neighbours
    # shade each other while the sun is within ~14.5 deg of the row axis.
    positions: list[list[float]] = field(
        default_factory=lambda: [[0.0, 0.0], [2.0, 0.0], [4.0, 0.0], [6.0, 0.0]]
    )


@dataclass
class ConsoleConfig:
    """Operator console parameters."""
    update_interval: float = 1.0  # Snapshot interval [s of simulation time]


@dataclass
class SimulationConfig:
    """Simulation parameters."""
    dt: float = 0.1  # Base time step [s]
    time_warp: float = 1.0  # Default time warp
    telemetry_rate: float = 10.0  # Telemetry rate [Hz]
    region_id: str = "station"  # Default region name


@dataclass
class Config:
    """Root configuration."""
    sun: SunConfig = field(default_factory=SunConfig)
    panel: PanelConfig = field(default_factory=PanelConfig)
    console: ConsoleConfig = field(default_factory=ConsoleConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from JSON file or return defaults.

    Args:
        path: Path to config JSON file. If None, returns defaults.

    Returns:
        Configuration object
    """
    if path is None or not path.exists():
        return Config()

    with open(path) as f:
        data = json.load(f)

    config = Config()

    if "sun" in data:
        sun = data["sun"]
        config.sun.base_velocity_deg = sun.get(
            "base_velocity_deg", config.sun.base_velocity_deg
        )
        config.sun.velocity_jitter_deg = sun.get(
            "velocity_jitter_deg", config.sun.velocity_jitter_deg
        )
        config.sun.seed = sun.get("seed", config.sun.seed)

    if "panel" in data:
        panel = data["panel"]
        config.panel.max_output = panel.get("max_output", config.panel.max_output)
        config.panel.max_velocity_deg = panel.get(
            "max_velocity_deg", config.panel.max_velocity_deg
        )
        config.panel.occlusion_check_distance = panel.get(
            "occlusion_check_distance", config.panel.occlusion_check_distance
        )
        config.panel.positions = panel.get("positions", config.panel.positions)

    if "console" in data:
        console = data["console"]
        config.console.update_interval = console.get(
            "update_interval", config.console.update_interval
        )

    if "simulation" in data:
        sim = data["simulation"]
        config.simulation.dt = sim.get("dt", config.simulation.dt)
        config.simulation.time_warp = sim.get("time_warp", config.simulation.time_warp)
        config.simulation.telemetry_rate = sim.get(
            "telemetry_rate", config.simulation.telemetry_rate
        )
        config.simulation.region_id = sim.get("region_id", config.simulation.region_id)

    return config


# Default config file path
CONFIG_FILE = Path(__file__).parent.parent / "config.json"

# Global state
_config: Optional[Config] = None
_config_mtime: float = 0.0
_on_config_change_callbacks: list = []


def get_config() -> Config:
    """Get global configuration instance.

    Auto-loads from config.json if it exists.
    """
    global _config, _config_mtime

    if _config is None:
        _config, _config_mtime = _load_config_with_mtime()

    return _config


def set_config(config: Config) -> None:
    """Set global configuration instance."""
    global _config
    _config = config


def reload_config() -> Config:
    """Force reload configuration from file."""
    global _config, _config_mtime
    _config, _config_mtime = _load_config_with_mtime()
    return _config


def check_config_changed() -> bool:
    """Check if config file has changed since last load.

    Returns:
        True if config file was modified and config was reloaded
    """
    global _config_mtime

    if not CONFIG_FILE.exists():
        return False

    current_mtime = CONFIG_FILE.stat().st_mtime
    if current_mtime > _config_mtime:
        reload_config()
        for callback in _on_config_change_callbacks:
            callback()
        return True

    return False


def on_config_change(callback) -> None:
    """Register a callback to be called when config changes."""
    _on_config_change_callbacks.append(callback)


def _load_config_with_mtime() -> tuple[Config, float]:
    """Load config and return with file mtime."""
    if CONFIG_FILE.exists():
        mtime = CONFIG_FILE.stat().st_mtime
        config = load_config(CONFIG_FILE)
        return config, mtime
    else:
        return Config(), 0.0
