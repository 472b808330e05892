"""ColonyTraits and BehaviorModifiers.

Traits are drawn once when a colony is founded and never change; they
are what makes one run's colony differ from the next.  Modifiers are
derived from traits and the colony's development phase and are what the
per-ant behaviour code actually multiplies by.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from numpy.random import Generator


@dataclass
class ColonyTraits:
    """Randomised colony-wide multipliers, fixed at colony creation.

    All values hover around 1.0; above 1.0 is better than average.

    Attributes:
        queen_vigor: Scales the queen's lifespan.
        worker_efficiency: Scales worker speed and foraging.
        architectural_skill: Scales construction (digging) speed.
        environmental_adaptation: Scales energy efficiency.
    """

    queen_vigor: float = 1.0
    worker_efficiency: float = 1.0
    architectural_skill: float = 1.0
    environmental_adaptation: float = 1.0

    @classmethod
    def random(
        cls,
        rng: Generator,
        spread: tuple[float, float] = (0.8, 1.2),
    ) -> ColonyTraits:
        """Draw a new trait profile uniformly from ``spread``."""
        lo, hi = spread
        return cls(
            queen_vigor=float(rng.uniform(lo, hi)),
            worker_efficiency=float(rng.uniform(lo, hi)),
            architectural_skill=float(rng.uniform(lo, hi)),
            environmental_adaptation=float(rng.uniform(lo, hi)),
        )


@dataclass
class BehaviorModifiers:
    """Per-ant multipliers applied by the behaviour engine.

    Attributes:
        speed: Multiplies base movement speed.
        foraging_efficiency: Multiplies food credited to the colony on
            delivery.
        construction_skill: Divides the time a dig takes.
        energy_efficiency: Divides the energy drain rate.
    """

    speed: float = 1.0
    foraging_efficiency: float = 1.0
    construction_skill: float = 1.0
    energy_efficiency: float = 1.0
