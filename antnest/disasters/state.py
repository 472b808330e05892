"""DisasterState — which disasters are running and which are cooling down.

One DisasterState exists per simulation.  Only the disaster engine
writes to it; everything else reads.  A kind is either present in
``active_disasters`` with positive remaining time or absent; there is
no third state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class DisasterType(Enum):
    """The disaster kinds, valued by their config key."""

    RAIN = "rain"
    DROUGHT = "drought"
    COLD_SNAP = "cold_snap"
    INVASIVE_SPECIES = "invasive_species"

    @property
    def display_name(self) -> str:
        return self.value.replace("_", " ").title()


@dataclass
class DisasterState:
    """Active and cooldown timers, in simulated seconds.

    Attributes:
        active_disasters: Remaining active time per running kind.
        cooldown_timers: Remaining cooldown per kind.  Entries count
            down to 0.0 and stay there.
    """

    active_disasters: dict[DisasterType, float] = field(default_factory=dict)
    cooldown_timers: dict[DisasterType, float] = field(default_factory=dict)

    def is_active(self, kind: DisasterType) -> bool:
        return kind in self.active_disasters

    def is_on_cooldown(self, kind: DisasterType) -> bool:
        return self.cooldown_timers.get(kind, 0.0) > 0.0

    def can_trigger(self, kind: DisasterType) -> bool:
        return not self.is_active(kind) and not self.is_on_cooldown(kind)

    def start(self, kind: DisasterType, duration: float, cooldown: float) -> bool:
        """Activate ``kind`` if it is neither active nor cooling down.

        The cooldown starts now and runs alongside the active window.

        Returns:
            True if the disaster started; False (state untouched) if
            it was refused.
        """
        if not self.can_trigger(kind) or duration <= 0:
            return False
        self.active_disasters[kind] = duration
        self.cooldown_timers[kind] = max(0.0, cooldown)
        return True

    def advance(self, dt: float) -> list[DisasterType]:
        """Count every timer down by ``dt``.

        Returns:
            Kinds whose active window ended this call.
        """
        if dt <= 0:
            return []
        ended: list[DisasterType] = []
        for kind in list(self.active_disasters):
            remaining = self.active_disasters[kind] - dt
            if remaining <= 0:
                del self.active_disasters[kind]
                ended.append(kind)
            else:
                self.active_disasters[kind] = remaining
        for kind, remaining in self.cooldown_timers.items():
            self.cooldown_timers[kind] = max(0.0, remaining - dt)
        return ended

    def remaining(self, kind: DisasterType) -> float:
        return self.active_disasters.get(kind, 0.0)

    def cooldown(self, kind: DisasterType) -> float:
        return self.cooldown_timers.get(kind, 0.0)
