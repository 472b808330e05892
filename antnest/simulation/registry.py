"""EntityRegistry — the single owner of every simulated entity.

Entities live in per-kind tables keyed by a stable integer id handed
out by the registry.  Nothing holds a reference to another entity;
relationships are ids looked up here.  The registry also owns the
SpatialIndex and keeps it in step with entity positions:

- ``add_*`` inserts into the index,
- ``refresh`` re-buckets an entity after it moved,
- ``remove`` drops it from both.

Spawns and despawns requested while a system is scanning a table are
queued with ``defer_*`` and applied by ``commit`` at the tick boundary,
so no scan ever sees a table change under it.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Union

from antnest.colony.ant import Ant, Egg, NestStructure
from antnest.disasters.invasive import InvasiveSpecies
from antnest.world.food import FoodSource
from antnest.world.position import Position
from antnest.world.soil import SoilCell
from antnest.world.spatial_index import SpatialIndex

logger = logging.getLogger(__name__)

Entity = Union[Ant, Egg, FoodSource, SoilCell, InvasiveSpecies, NestStructure]


class EntityKind(Enum):
    """Which table an id lives in."""

    ANT = auto()
    EGG = auto()
    FOOD = auto()
    SOIL = auto()
    INVASIVE = auto()
    STRUCTURE = auto()


_KIND_OF_TYPE: dict[type, EntityKind] = {
    Ant: EntityKind.ANT,
    Egg: EntityKind.EGG,
    FoodSource: EntityKind.FOOD,
    SoilCell: EntityKind.SOIL,
    InvasiveSpecies: EntityKind.INVASIVE,
    NestStructure: EntityKind.STRUCTURE,
}


@dataclass
class EntityRegistry:
    """Arena of all entities plus colony-wide stores.

    Attributes:
        spatial_index: Grid index over every positioned entity.
        home: Nest entrance shared by the colony.
        food_store: Food delivered to the nest and not yet eaten.
        ants: Workers and the queen.
        eggs: Incubating eggs.
        food_sources: Food patches.
        soil_cells: Soil samples.
        invasive: Live invasive organisms.
        structures: Excavated tunnels and chambers.
    """

    spatial_index: SpatialIndex = field(default_factory=SpatialIndex)
    home: Position = field(default_factory=Position)
    food_store: float = 0.0
    ants: dict[int, Ant] = field(default_factory=dict)
    eggs: dict[int, Egg] = field(default_factory=dict)
    food_sources: dict[int, FoodSource] = field(default_factory=dict)
    soil_cells: dict[int, SoilCell] = field(default_factory=dict)
    invasive: dict[int, InvasiveSpecies] = field(default_factory=dict)
    structures: dict[int, NestStructure] = field(default_factory=dict)
    next_id: int = 1
    _kinds: dict[int, EntityKind] = field(default_factory=dict, repr=False)
    _pending_removals: list[int] = field(default_factory=list, repr=False)
    _pending_spawns: list[Entity] = field(default_factory=list, repr=False)

    # -- Insertion / removal --

    def add(self, entity: Entity, entity_id: int | None = None) -> int:
        """Store ``entity`` in its table and index it.

        Args:
            entity: Any registry-managed record.
            entity_id: Reuse a specific id (restoring a snapshot).
                Fresh ids are handed out when omitted.

        Returns:
            The entity's id.
        """
        kind = _KIND_OF_TYPE[type(entity)]
        if entity_id is None:
            entity_id = self.next_id
        self.next_id = max(self.next_id, entity_id + 1)
        self._table(kind)[entity_id] = entity
        self._kinds[entity_id] = kind
        self.spatial_index.insert(entity_id, entity.position)
        return entity_id

    def remove(self, entity_id: int) -> Entity | None:
        """Remove an entity from its table and the index.

        Returns:
            The removed entity, or None if the id was unknown.
        """
        kind = self._kinds.pop(entity_id, None)
        if kind is None:
            return None
        self.spatial_index.remove(entity_id)
        return self._table(kind).pop(entity_id)

    def refresh(self, entity_id: int) -> None:
        """Re-bucket ``entity_id`` at its current position."""
        entity = self.get(entity_id)
        if entity is not None:
            self.spatial_index.update(entity_id, None, entity.position)

    def defer_remove(self, entity_id: int) -> None:
        self._pending_removals.append(entity_id)

    def is_pending_removal(self, entity_id: int) -> bool:
        return entity_id in self._pending_removals

    def defer_add(self, entity: Entity) -> None:
        self._pending_spawns.append(entity)

    def pending_spawns(self, kind: EntityKind) -> int:
        """Number of queued spawns of ``kind`` not yet committed."""
        return sum(1 for e in self._pending_spawns if _KIND_OF_TYPE[type(e)] is kind)

    def commit(self) -> tuple[list[Entity], list[int]]:
        """Apply queued despawns, then queued spawns.

        Returns:
            ``(removed_entities, new_ids)``.
        """
        removed: list[Entity] = []
        for entity_id in self._pending_removals:
            entity = self.remove(entity_id)
            if entity is not None:
                removed.append(entity)
        new_ids = [self.add(entity) for entity in self._pending_spawns]
        self._pending_removals.clear()
        self._pending_spawns.clear()
        return removed, new_ids

    def clear(self) -> None:
        for kind in EntityKind:
            self._table(kind).clear()
        self._kinds.clear()
        self._pending_removals.clear()
        self._pending_spawns.clear()
        self.spatial_index.clear()
        self.food_store = 0.0

    # -- Lookup --

    def __contains__(self, entity_id: int) -> bool:
        return entity_id in self._kinds

    def __len__(self) -> int:
        return len(self._kinds)

    def kind_of(self, entity_id: int) -> EntityKind | None:
        return self._kinds.get(entity_id)

    def get(self, entity_id: int) -> Entity | None:
        kind = self._kinds.get(entity_id)
        if kind is None:
            return None
        return self._table(kind)[entity_id]

    def nearby(
        self,
        kind: EntityKind,
        center: Position,
        radius: float,
    ) -> Iterator[tuple[int, Entity]]:
        """Yield ``(id, entity)`` of ``kind`` within ``radius`` of ``center``.

        Candidates from the spatial index are re-filtered by exact
        distance against the entity's live position.
        """
        table = self._table(kind)
        for entity_id in self.spatial_index.query_radius(center, radius):
            entity = table.get(entity_id)
            if entity is not None and entity.position.distance_to(center) <= radius:
                yield entity_id, entity

    # -- Colony views --

    def queen_id(self) -> int | None:
        """Id of the live queen, or None.

        At most one queen is admitted (see ``SimulationEngine.spawn_queen``);
        if a restored snapshot somehow holds several, the lowest id wins.
        """
        ids = [i for i, a in self.ants.items() if a.is_queen]
        return min(ids) if ids else None

    def queen(self) -> Ant | None:
        queen_id = self.queen_id()
        return None if queen_id is None else self.ants[queen_id]

    def workers(self) -> Iterator[tuple[int, Ant]]:
        return ((i, a) for i, a in self.ants.items() if not a.is_queen)

    @property
    def population(self) -> int:
        """Ants of every caste, queen included."""
        return len(self.ants)

    @property
    def worker_count(self) -> int:
        return sum(1 for a in self.ants.values() if not a.is_queen)

    @property
    def nest_complexity(self) -> int:
        return len(self.structures)

    def _table(self, kind: EntityKind) -> dict[int, Entity]:
        match kind:
            case EntityKind.ANT:
                return self.ants  # type: ignore[return-value]
            case EntityKind.EGG:
                return self.eggs  # type: ignore[return-value]
            case EntityKind.FOOD:
                return self.food_sources  # type: ignore[return-value]
            case EntityKind.SOIL:
                return self.soil_cells  # type: ignore[return-value]
            case EntityKind.INVASIVE:
                return self.invasive  # type: ignore[return-value]
            case EntityKind.STRUCTURE:
                return self.structures  # type: ignore[return-value]
