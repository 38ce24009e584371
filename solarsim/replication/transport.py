"""Serialization boundary between authority and observers."""

import json
from typing import Any, Protocol

from solarsim.replication.models import StateUpdate


class Transport(Protocol):
    """Carries JSON messages to observers."""

    def send(self, message: dict[str, Any]) -> None:
        ...


def encode_updates(updates: list[StateUpdate]) -> dict[str, Any]:
    """Build a state_update message."""
    return {
        "type": "state_update",
        "updates": [update.to_dict() for update in updates],
    }


class LoopbackTransport:
    """In-process transport that still round-trips through JSON.

    Keeps the wire format honest in single-process builds: whatever
    reaches the observer went through json.dumps/json.loads.
    """

    def __init__(self, *observers):
        self.observers = list(observers)
        self.messages_sent = 0

    def send(self, message: dict[str, Any]) -> None:
        payload = json.dumps(message)
        self.messages_sent += 1
        for observer in self.observers:
            observer.receive(json.loads(payload))

    def publish(self, updates: list[StateUpdate]) -> bool:
        """Send updates if there are any.

        Returns:
            True if a message was sent
        """
        if not updates:
            return False
        self.send(encode_updates(updates))
        return True
