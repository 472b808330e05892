"""FoodSource — a patch of food that is eaten whole and regrows.

A source is either available or regenerating.  Consumption flips it to
unavailable and arms ``regeneration_timer``; the timer counts down in
simulated seconds and the source comes back exactly once when it runs
out.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from antnest.world.position import Position


@dataclass
class FoodSource:
    """A food patch.

    Attributes:
        position: World position.
        nutrition_value: Energy handed to the ant that eats it.
        is_available: False while regenerating.
        regeneration_timer: Seconds left until the source is available.
        regeneration_time: Seconds a normal regrowth takes.
        max_nutrition: Value restored on regrowth (defaults to the
            starting ``nutrition_value``).
    """

    position: Position
    nutrition_value: float = 25.0
    is_available: bool = True
    regeneration_timer: float = 0.0
    regeneration_time: float = 30.0
    max_nutrition: float = field(default=-1.0)

    def __post_init__(self) -> None:
        if self.max_nutrition < 0:
            self.max_nutrition = self.nutrition_value

    def consume(self) -> float:
        """Take the whole source and arm its regrowth timer.

        Returns:
            The nutrition value taken, or 0.0 if the source was already
            unavailable.
        """
        if not self.is_available:
            return 0.0
        self.is_available = False
        self.regeneration_timer = self.regeneration_time
        return self.nutrition_value

    def deplete(self, amount: float, regrowth_factor: float = 2.0) -> bool:
        """Eat ``amount`` off the source without taking it whole.

        Used by grazing invaders.  When the value reaches zero the
        source becomes unavailable with a longer-than-normal regrowth.

        Returns:
            True if this call exhausted the source.
        """
        if not self.is_available or amount <= 0:
            return False
        self.nutrition_value -= amount
        if self.nutrition_value > 0:
            return False
        self.nutrition_value = 0.0
        self.is_available = False
        self.regeneration_timer = self.regeneration_time * regrowth_factor
        return True

    def regenerate(self, dt: float) -> bool:
        """Count the regrowth timer down by ``dt``.

        Returns:
            True exactly on the tick the source becomes available again.
        """
        if self.is_available:
            return False
        self.regeneration_timer -= dt
        if self.regeneration_timer > 0:
            return False
        self.regeneration_timer = 0.0
        self.is_available = True
        self.nutrition_value = self.max_nutrition
        return True
