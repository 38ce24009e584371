"""Observer side of replication: extrapolate from last received anchors."""

import logging
from typing import Any, Optional

from solarsim.dynamics.angular_state import AngularState, unwrap_delta
from solarsim.replication.models import EntityKind, StateUpdate


logger = logging.getLogger(__name__)


class ObserverReplica:
    """Read-only mirror of the authority's rotating bodies.

    Orientation is evaluated locally every frame from the last anchor
    received; no per-tick traffic is needed.
    """

    def __init__(self) -> None:
        self._states: dict[str, AngularState] = {}
        self._kinds: dict[str, EntityKind] = {}
        self._regions: dict[str, Optional[str]] = {}
        self._paused_at: Optional[float] = None
        self.updates_applied = 0
        # Last snap per entity: authoritative anchor minus local prediction (rad)
        self.corrections: dict[str, float] = {}

    def __contains__(self, entity_id: str) -> bool:
        return entity_id in self._states

    @property
    def is_paused(self) -> bool:
        return self._paused_at is not None

    def apply(self, update: StateUpdate) -> None:
        """Replace the local anchor wholesale. No blending.

        For an entity already known, the difference between the new anchor
        and the local prediction at that instant is kept in corrections.
        """
        previous = self._states.get(update.entity_id)
        if previous is not None:
            new = update.state
            correction = unwrap_delta(previous.angle_at(new.anchor_time), new.anchor_angle)
            self.corrections[update.entity_id] = correction
            if correction:
                logger.debug("Entity %s snapped by %.6f rad", update.entity_id, correction)
        self._states[update.entity_id] = update.state.copy()
        self._kinds[update.entity_id] = update.kind
        self._regions[update.entity_id] = update.region_id
        self.updates_applied += 1

    def receive(self, message: dict[str, Any]) -> None:
        """Handle a decoded message from the transport.

        Raises:
            ValueError: If the message is not a state update or is malformed
        """
        if message.get("type") != "state_update":
            raise ValueError(f"Unexpected message type: {message.get('type')}")
        for data in message.get("updates", []):
            self.apply(StateUpdate.from_dict(data))

    def get_state(self, entity_id: str) -> AngularState:
        """Last received anchor.

        Raises:
            KeyError: If nothing was received for the entity
        """
        return self._states[entity_id]

    def angle_at(self, entity_id: str, local_now: float) -> float:
        """Extrapolated orientation at local time.

        Raises:
            KeyError: If nothing was received for the entity
        """
        return self._states[entity_id].angle_at(local_now)

    def pause(self, local_now: float) -> None:
        """Track a pause locally."""
        if self._paused_at is None:
            self._paused_at = local_now

    def resume(self, local_now: float) -> float:
        """Shift every local anchor by the locally observed pause.

        A later authoritative update replaces the shifted anchor anyway;
        this keeps rendering stable until it arrives.

        Returns:
            Paused duration applied
        """
        if self._paused_at is None:
            return 0.0
        paused_time = max(0.0, local_now - self._paused_at)
        self._paused_at = None
        for state in self._states.values():
            state.shift_anchor_time(paused_time)
        logger.debug("Observer resumed, shifted %d anchors by %.3f s",
                     len(self._states), paused_time)
        return paused_time

    def render_state(self, local_now: float) -> dict[str, float]:
        """Per-panel orientation for display.

        Args:
            local_now: Observer clock (s)

        Returns:
            Mapping of panel id to angle (rad)
        """
        t = self._paused_at if self._paused_at is not None else local_now
        return {
            entity_id: state.angle_at(t)
            for entity_id, state in self._states.items()
            if self._kinds[entity_id] == EntityKind.PANEL
        }

    def sun_angle(self, region_id: str, local_now: float) -> Optional[float]:
        """Sun orientation of a region, None if no sun was received."""
        for entity_id, kind in self._kinds.items():
            if kind == EntityKind.SUN and self._regions[entity_id] == region_id:
                t = self._paused_at if self._paused_at is not None else local_now
                return self._states[entity_id].angle_at(t)
        return None
