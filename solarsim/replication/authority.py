"""Authority side of replication: collect dirty angular states."""

from solarsim.replication.models import EntityKind, StateUpdate
from solarsim.simulation.engine import SimulationEngine


class AuthorityReplicator:
    """Turns dirty suns and panels into state updates.

    Angular state only changes on discrete events (creation, operator
    command, pause/resume, relocation), so most synchronization
    opportunities produce no updates at all.
    """

    def collect_updates(self, engine: SimulationEngine) -> list[StateUpdate]:
        """Gather every dirty state and clear its dirty flag.

        The flag is cleared before the state is copied. A command that
        re-anchors the entity while the copy is taken sets it again, so
        the next collection picks the new anchor up.

        Args:
            engine: Authoritative simulation engine

        Returns:
            Updates to push to all observers
        """
        updates = []
        for region in engine.regions.values():
            sun = region.sun
            if sun is not None and sun.dirty:
                sun.dirty = False
                updates.append(StateUpdate(
                    entity_id=sun.entity_id,
                    kind=EntityKind.SUN,
                    state=sun.state.copy(),
                    region_id=region.region_id,
                ))

            for panel in region.panels:
                if panel.dirty:
                    panel.dirty = False
                    updates.append(StateUpdate(
                        entity_id=panel.entity_id,
                        kind=EntityKind.PANEL,
                        state=panel.state.copy(),
                        region_id=region.region_id,
                    ))

        return updates

    def snapshot(self, engine: SimulationEngine) -> list[StateUpdate]:
        """Full state for a newly joined observer. Dirty flags are untouched."""
        updates = []
        for region in engine.regions.values():
            if region.sun is not None:
                updates.append(StateUpdate(
                    entity_id=region.sun.entity_id,
                    kind=EntityKind.SUN,
                    state=region.sun.state.copy(),
                    region_id=region.region_id,
                ))
            for panel in region.panels:
                updates.append(StateUpdate(
                    entity_id=panel.entity_id,
                    kind=EntityKind.PANEL,
                    state=panel.state.copy(),
                    region_id=region.region_id,
                ))
        return updates
