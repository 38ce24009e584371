"""REST API endpoints for simulation control."""

from typing import Optional
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from solarsim.api.routes.websocket import get_console, get_engine


router = APIRouter(prefix="/api/simulation", tags=["simulation"])


class SimulationConfig(BaseModel):
    """Simulation configuration."""
    timeWarp: Optional[float] = Field(None, gt=0, description="Time warp factor")


class ConsoleAdjustRequest(BaseModel):
    """Operator adjustment of the shared panel target.

    Omitted fields leave the current target unchanged.
    """
    rotation: Optional[float] = Field(None, description="Target angle [rad]")
    angularVelocity: Optional[float] = Field(
        None, description="Target angular velocity [rad/s], clamped to the panel limit"
    )


class PanelEnabledRequest(BaseModel):
    """Enable or disable a panel."""
    enabled: bool


@router.get("/state")
async def get_state():
    """Get current simulation state."""
    engine = get_engine()
    return {
        "state": engine.state.name,
        "simTime": engine.cur_time,
        "timeWarp": engine.time_warp,
        "totalOutput": engine.total_output,
    }


@router.post("/start")
async def start_simulation():
    """Start the simulation."""
    engine = get_engine()
    engine.start()
    return {"status": "ok", "state": engine.state.name}


@router.post("/stop")
async def stop_simulation():
    """Stop the simulation."""
    engine = get_engine()
    engine.stop()
    return {"status": "ok", "state": engine.state.name}


@router.post("/pause")
async def pause_simulation():
    """Pause the simulation."""
    engine = get_engine()
    engine.pause()
    return {"status": "ok", "state": engine.state.name}


@router.post("/reset")
async def reset_simulation():
    """Reset the simulation to initial state."""
    engine = get_engine()
    engine.reset()
    return {"status": "ok", "state": engine.state.name}


@router.put("/config")
async def update_config(config: SimulationConfig):
    """Update simulation configuration."""
    engine = get_engine()

    if config.timeWarp is not None:
        try:
            engine.set_time_warp(config.timeWarp)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return {
        "status": "ok",
        "timeWarp": engine.time_warp,
    }


@router.get("/telemetry")
async def get_telemetry():
    """Get current telemetry snapshot."""
    engine = get_engine()
    return engine.get_telemetry()


@router.get("/console")
async def get_console_state():
    """Get the console snapshot of the default region."""
    engine = get_engine()
    return get_console().snapshot(engine.cur_time).to_dict()


@router.put("/console")
async def adjust_console(request: ConsoleAdjustRequest):
    """Re-target every panel of the default region."""
    engine = get_engine()
    console = get_console()
    updated = console.adjust(
        rotation=request.rotation,
        angular_velocity=request.angularVelocity,
        now=engine.cur_time,
    )
    return {
        "status": "ok",
        "updated": updated,
        **console.snapshot(engine.cur_time).to_dict(),
    }


@router.put("/panels/{panel_id}/enabled")
async def set_panel_enabled(panel_id: str, request: PanelEnabledRequest):
    """Enable or disable a single panel."""
    engine = get_engine()
    panel = engine.find_panel(panel_id)
    if panel is None:
        raise HTTPException(status_code=404, detail=f"Unknown panel: {panel_id}")

    panel.set_enabled(request.enabled)
    return {"status": "ok", **panel.get_state()}
