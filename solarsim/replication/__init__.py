"""Angular state replication between authority and observers."""

from solarsim.replication.models import EntityKind, StateUpdate
from solarsim.replication.authority import AuthorityReplicator
from solarsim.replication.observer import ObserverReplica
from solarsim.replication.transport import LoopbackTransport, encode_updates

__all__ = [
    "EntityKind",
    "StateUpdate",
    "AuthorityReplicator",
    "ObserverReplica",
    "LoopbackTransport",
    "encode_updates",
]
