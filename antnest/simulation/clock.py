"""SimulationClock — converts wall-clock deltas into simulated time.

Every engine reads its ``dt`` from here.  Pausing is modelled as a zero
effective delta: nothing downstream needs a special paused branch,
because every timer and movement scaled by ``dt`` simply stands still.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import ClassVar

logger = logging.getLogger(__name__)


@dataclass
class SimulationClock:
    """Time control plus the running simulated calendar.

    Attributes:
        speed_multiplier: Simulated seconds per wall-clock second.
        is_paused: When True, ``advance`` yields zero delta.
        seconds_per_day: Simulated seconds in one colony day.
        elapsed: Total simulated seconds so far.
        runtime: Total wall-clock seconds fed to ``advance``.
    """

    SPEED_PRESETS: ClassVar[tuple[float, ...]] = (
        1.0,
        2.0,
        5.0,
        10.0,
        20.0,
        30.0,
        50.0,
        75.0,
        100.0,
    )
    MAX_SPEED: ClassVar[float] = 100.0

    speed_multiplier: float = 1.0
    is_paused: bool = False
    seconds_per_day: float = 60.0
    elapsed: float = 0.0
    runtime: float = 0.0

    def effective_delta(self, wall_delta: float) -> float:
        """Return the simulated seconds covered by ``wall_delta``.

        Negative or non-finite wall deltas count as zero.
        """
        if self.is_paused or not math.isfinite(wall_delta) or wall_delta <= 0:
            return 0.0
        return wall_delta * self.speed_multiplier

    def advance(self, wall_delta: float) -> float:
        """Consume one wall-clock delta and return the effective delta."""
        dt = self.effective_delta(wall_delta)
        if math.isfinite(wall_delta) and wall_delta > 0:
            self.runtime += wall_delta
        self.elapsed += dt
        return dt

    def set_speed_multiplier(self, multiplier: float) -> None:
        """Set the speed and resume if paused.

        Raises:
            ValueError: If ``multiplier`` is negative or not finite.
        """
        if not math.isfinite(multiplier) or multiplier < 0:
            msg = f"speed multiplier must be a non-negative number, got {multiplier}"
            raise ValueError(msg)
        self.speed_multiplier = min(multiplier, self.MAX_SPEED)
        self.is_paused = False
        logger.info("Speed set to %.1fx", self.speed_multiplier)

    def set_paused(self, paused: bool) -> None:
        self.is_paused = paused
        if paused:
            logger.info("Simulation paused")
        else:
            logger.info("Simulation resumed at %.1fx speed", self.speed_multiplier)

    def toggle_pause(self) -> None:
        self.set_paused(not self.is_paused)

    @property
    def current_day(self) -> int:
        """Whole colony days elapsed."""
        return int(self.elapsed // self.seconds_per_day)

    @property
    def days_elapsed(self) -> float:
        return self.elapsed / self.seconds_per_day

    @property
    def time_of_day(self) -> float:
        """Fraction of the current day (0.0 = midnight, 0.5 = noon)."""
        return (self.elapsed % self.seconds_per_day) / self.seconds_per_day

    @property
    def is_daytime(self) -> bool:
        return 0.25 <= self.time_of_day < 0.75
