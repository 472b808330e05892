"""SpatialIndex — uniform grid for approximate-then-exact radius queries.

World space is bucketed into square cells of ``cell_size`` units
anchored at ``origin``.  Each indexed id lives in exactly one bucket,
the one containing its last known position.  The index remembers that
bucket per id, so moves are incremental: an update touches at most two
buckets regardless of how many entities are indexed.

Queries return every id whose bucket overlaps the query's bounding box.
That set can contain false positives beyond the radius; pass
``exact=True`` (or re-filter by distance yourself) when they matter.
True positives are never omitted.
"""

from __future__ import annotations

import math
from collections import defaultdict
from dataclasses import dataclass, field

from antnest.world.position import Position

Cell = tuple[int, int]


@dataclass
class SpatialIndex:
    """Grid-bucketed map from world cells to entity ids.

    Attributes:
        cell_size: Edge length of one bucket in world units.  Pick it
            relative to the typical query radius: coarse cells make
            large-radius queries cheap, fine cells cut false positives.
        origin: World position of the corner of bucket ``(0, 0)``.
        buckets: Mapping from bucket coordinates to the ids inside it.
    """

    cell_size: float = 16.0
    origin: Position = field(default_factory=Position)
    buckets: dict[Cell, set[int]] = field(
        init=False,
        default_factory=lambda: defaultdict(set),
        repr=False,
    )
    _positions: dict[int, Position] = field(
        init=False,
        default_factory=dict,
        repr=False,
    )
    _cells: dict[int, Cell] = field(init=False, default_factory=dict, repr=False)

    def __post_init__(self) -> None:
        if not self.cell_size > 0:
            msg = f"cell_size must be positive, got {self.cell_size}"
            raise ValueError(msg)

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, entity_id: int) -> bool:
        return entity_id in self._cells

    def cell_of(self, position: Position) -> Cell:
        """Return the bucket coordinates containing ``position``."""
        return (
            math.floor((position.x - self.origin.x) / self.cell_size),
            math.floor((position.y - self.origin.y) / self.cell_size),
        )

    def insert(self, entity_id: int, position: Position) -> None:
        """Index ``entity_id`` at ``position``.

        Inserting an id that is already indexed moves it instead, so an
        id can never end up in two buckets.
        """
        if entity_id in self._cells:
            self.update(entity_id, self._positions[entity_id], position)
            return
        cell = self.cell_of(position)
        self.buckets[cell].add(entity_id)
        self._cells[entity_id] = cell
        self._positions[entity_id] = position.copy()

    def update(
        self,
        entity_id: int,
        old_position: Position | None,
        new_position: Position,
    ) -> None:
        """Move ``entity_id`` to ``new_position``.

        ``old_position`` is accepted for callers that track it, but the
        index uses its own record of the id's bucket, so a stale or
        missing old position cannot desynchronise it.

        Args:
            entity_id: Id to move (inserted if not yet indexed).
            old_position: Caller's idea of the previous position.
            new_position: Current position.
        """
        del old_position
        old_cell = self._cells.get(entity_id)
        if old_cell is None:
            self.insert(entity_id, new_position)
            return
        new_cell = self.cell_of(new_position)
        if new_cell != old_cell:
            self._discard(old_cell, entity_id)
            self.buckets[new_cell].add(entity_id)
            self._cells[entity_id] = new_cell
        self._positions[entity_id] = new_position.copy()

    def remove(self, entity_id: int) -> None:
        """Drop ``entity_id`` from the index.  Unknown ids are ignored."""
        cell = self._cells.pop(entity_id, None)
        self._positions.pop(entity_id, None)
        if cell is not None:
            self._discard(cell, entity_id)

    def clear(self) -> None:
        self.buckets.clear()
        self._cells.clear()
        self._positions.clear()

    def position_of(self, entity_id: int) -> Position | None:
        """Return the position the index last saw for ``entity_id``."""
        return self._positions.get(entity_id)

    def query_radius(
        self,
        center: Position,
        radius: float,
        *,
        exact: bool = False,
    ) -> list[int]:
        """Return ids that may lie within ``radius`` of ``center``.

        Args:
            center: Query centre.
            radius: Query radius; negative or non-finite radii return
                nothing.
            exact: If True, drop candidates farther than ``radius``
                using the indexed positions.

        Returns:
            Unordered ids.  Without ``exact`` this is a superset of the
            true neighbours.
        """
        if not self._cells or not math.isfinite(radius) or radius < 0:
            return []

        lo = self.cell_of(Position(center.x - radius, center.y - radius))
        hi = self.cell_of(Position(center.x + radius, center.y + radius))

        # Wide queries over a sparse index: scanning occupied buckets is
        # cheaper than enumerating every covered cell.
        covered = (hi[0] - lo[0] + 1) * (hi[1] - lo[1] + 1)
        if covered > len(self.buckets):
            cells = [
                c
                for c in self.buckets
                if lo[0] <= c[0] <= hi[0] and lo[1] <= c[1] <= hi[1]
            ]
        else:
            cells = [
                (cx, cy)
                for cx in range(lo[0], hi[0] + 1)
                for cy in range(lo[1], hi[1] + 1)
            ]

        result: list[int] = []
        for cell in cells:
            ids = self.buckets.get(cell)
            if ids:
                result.extend(ids)

        if exact:
            result = [
                i for i in result if self._positions[i].distance_to(center) <= radius
            ]
        return result

    def rebuild(self, positions: dict[int, Position]) -> None:
        """Replace the whole index with ``positions``.

        This is the O(n) fallback for callers that cannot track
        individual moves; the incremental methods are the normal path.
        """
        self.clear()
        for entity_id, position in positions.items():
            self.insert(entity_id, position)

    def _discard(self, cell: Cell, entity_id: int) -> None:
        ids = self.buckets.get(cell)
        if ids is None:
            return
        ids.discard(entity_id)
        if not ids:
            del self.buckets[cell]
