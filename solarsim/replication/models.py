"""Wire models for angular state replication."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from solarsim.dynamics.angular_state import AngularState


class EntityKind(str, Enum):
    """Kinds of replicated rotating bodies."""

    SUN = "sun"
    PANEL = "panel"


@dataclass
class StateUpdate:
    """Full angular state of one entity, pushed from authority to observers.

    The (anchorAngle, angularVelocity, anchorTime) triple is all an
    observer needs to extrapolate orientation without further traffic.
    """

    entity_id: str
    kind: EntityKind
    state: AngularState
    region_id: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "entityId": self.entity_id,
            "kind": self.kind.value,
            "regionId": self.region_id,
            **self.state.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StateUpdate":
        """Parse a received update.

        Raises:
            ValueError: If the payload is malformed
        """
        entity_id = data.get("entityId")
        if not isinstance(entity_id, str) or not entity_id:
            raise ValueError("Missing entityId")

        try:
            kind = EntityKind(data.get("kind"))
        except ValueError:
            raise ValueError(f"Unknown entity kind: {data.get('kind')}")

        return cls(
            entity_id=entity_id,
            kind=kind,
            state=AngularState.from_dict(data),
            region_id=data.get("regionId"),
        )
