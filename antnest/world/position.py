"""Position — a point in continuous world space.

Entities never hold references to each other; anything that needs to
know where another entity is looks it up by id in the registry and
reads its Position.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass
class Position:
    """World-space coordinates.

    Attributes:
        x: Horizontal coordinate (world units).
        y: Vertical coordinate (world units).
    """

    x: float = 0.0
    y: float = 0.0

    def distance_to(self, other: Position) -> float:
        """Return the Euclidean distance to ``other``."""
        return math.hypot(other.x - self.x, other.y - self.y)

    def copy(self) -> Position:
        return Position(self.x, self.y)

    def clamp(self, lo: Position, hi: Position) -> None:
        """Clamp this position in-place into the box ``[lo, hi]``."""
        self.x = min(max(self.x, lo.x), hi.x)
        self.y = min(max(self.y, lo.y), hi.y)

    def is_finite(self) -> bool:
        return math.isfinite(self.x) and math.isfinite(self.y)
