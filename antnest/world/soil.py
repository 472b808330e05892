"""SoilCell — one sample of the soil grid and its ambient drift.

Soil cells hold moisture, temperature, and nutrition.  Every tick they
drift a little on their own (``drift``); disasters push them harder from
``antnest.disasters.effects``.  Whatever moves them, ``clamp`` restores
the valid ranges afterwards.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator

from antnest.world.position import Position

# -- Constants ---------------------------------------------------------------

MOISTURE_RANGE = (0.0, 1.0)
NUTRITION_RANGE = (0.0, 1.0)
TEMPERATURE_RANGE = (5.0, 35.0)  # disasters may push down to the floor
AMBIENT_TEMPERATURE_RANGE = (10.0, 35.0)  # ambient drift alone stays here

_MOISTURE_DRIFT = 0.05  # max change per second
_TEMPERATURE_DRIFT = 0.2
_NUTRITION_REGEN = 0.01


@dataclass
class SoilCell:
    """A single soil sample.

    Attributes:
        position: World position of the sample.
        moisture: Moisture level (0.0-1.0).
        temperature: Temperature in degrees Celsius (5-35).
        nutrition: Nutrient content (0.0-1.0).
    """

    position: Position
    moisture: float = 0.5
    temperature: float = 20.0
    nutrition: float = 0.5

    @classmethod
    def random(cls, position: Position, rng: Generator) -> SoilCell:
        """Create a soil cell with randomised starting conditions."""
        return cls(
            position=position,
            moisture=float(rng.uniform(0.0, 1.0)),
            temperature=float(rng.uniform(15.0, 25.0)),
            nutrition=float(rng.uniform(0.0, 1.0)),
        )

    def drift(self, dt: float, rng: Generator) -> None:
        """Apply one tick of ambient environmental change.

        Moisture and temperature random-walk; nutrition slowly recovers.
        Ambient drift alone never takes temperature below 10 degrees,
        but it will not lift a cold-snapped cell back up either.
        """
        self.moisture += float(rng.uniform(-_MOISTURE_DRIFT, _MOISTURE_DRIFT)) * dt
        before = self.temperature
        self.temperature += (
            float(rng.uniform(-_TEMPERATURE_DRIFT, _TEMPERATURE_DRIFT)) * dt
        )
        lo, hi = AMBIENT_TEMPERATURE_RANGE
        if before >= lo:
            self.temperature = min(max(self.temperature, lo), hi)
        self.nutrition += _NUTRITION_REGEN * dt
        self.clamp()

    def clamp(self) -> None:
        """Force every field back into its valid range.

        Non-finite values are reset to mid-range defaults.
        """
        if not math.isfinite(self.moisture):
            self.moisture = 0.5
        if not math.isfinite(self.temperature):
            self.temperature = 20.0
        if not math.isfinite(self.nutrition):
            self.nutrition = 0.5
        self.moisture = min(max(self.moisture, MOISTURE_RANGE[0]), MOISTURE_RANGE[1])
        self.temperature = min(
            max(self.temperature, TEMPERATURE_RANGE[0]),
            TEMPERATURE_RANGE[1],
        )
        self.nutrition = min(
            max(self.nutrition, NUTRITION_RANGE[0]),
            NUTRITION_RANGE[1],
        )


def average_nutrition(cells: list[SoilCell], default: float = 0.5) -> float:
    """Mean nutrition over ``cells``, or ``default`` if there are none."""
    if not cells:
        return default
    return sum(c.nutrition for c in cells) / len(cells)
