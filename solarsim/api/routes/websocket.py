"""WebSocket endpoint for real-time telemetry and state replication."""

import asyncio
import json
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from solarsim.config import check_config_changed, get_config
from solarsim.console.control_console import SolarControlConsole
from solarsim.replication import AuthorityReplicator, encode_updates
from solarsim.simulation.engine import SimulationEngine


logger = logging.getLogger(__name__)

router = APIRouter()

# Global simulation engine instance
_engine: Optional[SimulationEngine] = None
_console: Optional[SolarControlConsole] = None

_replicator = AuthorityReplicator()

# Config check interval (seconds)
CONFIG_CHECK_INTERVAL = 1.0


def get_engine() -> SimulationEngine:
    """Get or create simulation engine instance."""
    global _engine
    if _engine is None:
        _engine = SimulationEngine()
    return _engine


def get_console() -> SolarControlConsole:
    """Get or create the console bound to the default region."""
    global _console
    engine = get_engine()
    if _console is None or _console.region is not engine.default_region:
        console_cfg = get_config().console
        _console = SolarControlConsole(
            region=engine.default_region,
            max_velocity_deg=get_config().panel.max_velocity_deg,
            update_interval=console_cfg.update_interval,
        )
    return _console


def reset_engine() -> SimulationEngine:
    """Reset engine with new config."""
    global _engine, _console
    _engine = SimulationEngine(config=get_config())
    _console = None
    return _engine


class ConnectionManager:
    """Manages WebSocket connections."""

    def __init__(self):
        self.active_connections: list[WebSocket] = []

    async def connect(self, websocket: WebSocket) -> None:
        """Accept a new WebSocket connection."""
        await websocket.accept()
        self.active_connections.append(websocket)

    def disconnect(self, websocket: WebSocket) -> None:
        """Remove a WebSocket connection."""
        if websocket in self.active_connections:
            self.active_connections.remove(websocket)

    async def broadcast(self, message: dict) -> None:
        """Broadcast message to all connected clients."""
        disconnected = []
        for connection in self.active_connections:
            try:
                await connection.send_json(message)
            except Exception:
                disconnected.append(connection)

        for conn in disconnected:
            self.disconnect(conn)


manager = ConnectionManager()


@router.websocket("/ws/telemetry")
async def telemetry_websocket(websocket: WebSocket):
    """WebSocket endpoint for real-time telemetry.

    On connect the client receives the full angular state of every sun and
    panel; afterwards only changed anchors are pushed. Telemetry is sent at
    the configured rate and console snapshots at the console interval.
    """
    await manager.connect(websocket)
    engine = get_engine()

    await websocket.send_json(encode_updates(_replicator.snapshot(engine)))

    telemetry_interval = 1.0 / get_config().simulation.telemetry_rate

    send_task = asyncio.create_task(
        send_telemetry_loop(websocket, engine, telemetry_interval)
    )
    receive_task = asyncio.create_task(
        receive_message_loop(websocket, engine)
    )

    try:
        done, pending = await asyncio.wait(
            [send_task, receive_task],
            return_when=asyncio.FIRST_COMPLETED,
        )

        for task in pending:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

    except Exception:
        logger.error("Telemetry websocket error", exc_info=True)
    finally:
        send_task.cancel()
        receive_task.cancel()
        manager.disconnect(websocket)


def _step_and_get_messages(engine: SimulationEngine) -> list[dict]:
    """Step simulation and build the outgoing messages in a single call.

    This runs in thread pool to avoid blocking.

    Returns:
        Telemetry message first, then a state_update message if any anchor
        changed, then a console message if the throttle fired
    """
    previous_time = engine.cur_time
    engine.step()

    telemetry = engine.get_telemetry()
    telemetry["type"] = "telemetry"
    messages = [telemetry]

    updates = _replicator.collect_updates(engine)
    if updates:
        messages.append(encode_updates(updates))

    snapshot = get_console().update(engine.cur_time - previous_time, engine.cur_time)
    if snapshot is not None:
        messages.append({"type": "console", **snapshot.to_dict()})

    return messages


async def send_telemetry_loop(
    websocket: WebSocket,
    engine: SimulationEngine,
    interval: float,
) -> None:
    """Background task to send telemetry at regular intervals.

    Telemetry goes to this client; replication and console messages are
    broadcast since their dirty flags and throttle are shared.
    """
    loop = asyncio.get_event_loop()
    last_config_check = loop.time()

    try:
        while True:
            loop_start = loop.time()

            if loop_start - last_config_check >= CONFIG_CHECK_INTERVAL:
                last_config_check = loop_start
                config_changed = await asyncio.to_thread(check_config_changed)
                if config_changed:
                    engine = reset_engine()
                    await websocket.send_json({
                        "type": "config_reload",
                        "message": "Configuration reloaded, simulation reset",
                    })
                    await websocket.send_json(
                        encode_updates(_replicator.snapshot(engine))
                    )

            messages = await asyncio.to_thread(_step_and_get_messages, engine)
            await websocket.send_json(messages[0])
            for message in messages[1:]:
                await manager.broadcast(message)

            elapsed = loop.time() - loop_start
            sleep_time = max(0, interval - elapsed)
            if sleep_time > 0:
                await asyncio.sleep(sleep_time)
    except Exception as e:
        logger.error(f"Telemetry loop error: {e}", exc_info=True)


async def receive_message_loop(
    websocket: WebSocket,
    engine: SimulationEngine,
) -> None:
    """Background task to receive and handle messages."""
    try:
        while True:
            data = await websocket.receive_text()
            await handle_message(data, engine, websocket)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"Receive loop error: {e}", exc_info=True)


async def handle_message(
    data: str,
    engine: SimulationEngine,
    websocket: WebSocket,
) -> None:
    """Handle incoming WebSocket message.

    Args:
        data: JSON message string
        engine: Simulation engine instance
        websocket: WebSocket connection
    """
    try:
        message = json.loads(data)
        msg_type = message.get("type")

        if msg_type == "command":
            await handle_command(message, engine, websocket)
        elif msg_type == "console":
            await handle_console(message, engine, websocket)
        elif msg_type == "config":
            await handle_config(message, engine, websocket)
        else:
            await send_error(websocket, f"Unknown message type: {msg_type}")

    except json.JSONDecodeError:
        await send_error(websocket, "Invalid JSON")
    except Exception as e:
        await send_error(websocket, str(e))


async def handle_command(
    message: dict,
    engine: SimulationEngine,
    websocket: WebSocket,
) -> None:
    """Handle control commands (START, STOP, PAUSE, RESET)."""
    command = message.get("command")

    if command == "START":
        engine.start()
    elif command == "STOP":
        engine.stop()
    elif command == "PAUSE":
        engine.pause()
    elif command == "RESET":
        engine.reset()
        await websocket.send_json(encode_updates(_replicator.snapshot(engine)))
    else:
        await send_error(websocket, f"Unknown command: {command}")
        return

    await send_status(websocket, engine)


async def handle_console(
    message: dict,
    engine: SimulationEngine,
    websocket: WebSocket,
) -> None:
    """Handle operator adjustment of the panel target.

    Message format:
        {"type": "console", "rotation": 1.57, "angularVelocity": 0.01}
    Either field may be omitted or non-finite to leave it unchanged.
    """
    console = get_console()
    console.adjust(
        rotation=message.get("rotation"),
        angular_velocity=message.get("angularVelocity"),
        now=engine.cur_time,
    )
    await websocket.send_json({
        "type": "console",
        **console.snapshot(engine.cur_time).to_dict(),
    })


async def handle_config(
    message: dict,
    engine: SimulationEngine,
    websocket: WebSocket,
) -> None:
    """Handle configuration changes."""
    if "timeWarp" in message:
        try:
            engine.set_time_warp(message["timeWarp"])
        except ValueError as e:
            await send_error(websocket, str(e))
            return

    await send_status(websocket, engine)


async def send_status(websocket: WebSocket, engine: SimulationEngine) -> None:
    """Send status update to client."""
    status = {
        "type": "status",
        "state": engine.state.name,
        "simTime": engine.cur_time,
        "timeWarp": engine.time_warp,
    }
    await websocket.send_json(status)


async def send_error(websocket: WebSocket, message: str) -> None:
    """Send error message to client."""
    error = {
        "type": "error",
        "message": message,
    }
    await websocket.send_json(error)
