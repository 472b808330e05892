"""Ant -- worker and queen agents, plus eggs and nest structures.

An Ant is a plain record: position, behaviour state, physiology, cargo,
and the colony-development role the ant currently plays.  A queen is an
Ant that carries a ``ReproductionState``; everything else about her
(aging, energy, death) follows the worker rules.

Movement model:

- **Target seeking**: an ant walks in a straight line toward its
  ``target`` at its effective speed, and reports arrival once within
  ``arrival_distance``.
- **Effective speed**: base ``speed`` times the colony-phase modifier,
  clamped to the speed band, then scaled by environmental factors
  (rain, cold, alarm).  The base speed itself is never overwritten, so
  modifiers cannot compound from tick to tick.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING

from antnest.colony.traits import BehaviorModifiers
from antnest.world.position import Position

if TYPE_CHECKING:
    from numpy.random import Generator

    from antnest.simulation.config import SimulationConfig


class AntState(Enum):
    """Behavioural state an ant is currently in."""

    FORAGING = auto()
    RETURNING = auto()
    RESTING = auto()
    DIGGING = auto()
    CARRYING_FOOD = auto()


class AgeGroup(Enum):
    """Life stage derived from ``age / max_age``."""

    YOUNG = auto()
    ADULT = auto()
    SENIOR = auto()

    @classmethod
    def from_age_ratio(cls, ratio: float) -> AgeGroup:
        if ratio < 0.25:
            return cls.YOUNG
        if ratio < 0.75:
            return cls.ADULT
        return cls.SENIOR


class SpecializedRole(Enum):
    """Division-of-labour role assigned by the development controller."""

    GENERAL_WORKER = auto()
    FORAGER = auto()
    NURSERY_WORKER = auto()
    NEST_MAINTAINER = auto()
    STORAGE_WORKER = auto()
    WASTE_MANAGER = auto()


@dataclass
class ReproductionState:
    """Egg-laying state carried only by the queen.

    Attributes:
        reproductive_capacity: Current fertility (0.0-1.0).
        time_since_last_egg: Seconds since the last egg.
        egg_laying_interval: Minimum seconds between eggs.
    """

    reproductive_capacity: float = 1.0
    time_since_last_egg: float = 0.0
    egg_laying_interval: float = 10.0


@dataclass
class Ant:
    """A single ant agent.

    Attributes:
        position: Current world position.
        state: Current behavioural state.
        target: Where the ant is walking, if anywhere.
        speed: Base speed in world units per second.
        age: Seconds since hatching.
        max_age: Age at which the ant dies.
        energy: Current energy (0 <= energy <= max_energy).
        max_energy: Energy capacity.
        carried_food_value: Food being carried home.
        home_position: Nest entrance the ant returns to.
        reproduction: Present only on the queen.
        age_group: Life stage, refreshed every tick.
        role: Division-of-labour role.
        modifiers: Phase-derived behaviour multipliers.
        state_timer: Seconds spent in the current rest or dig.
    """

    position: Position
    state: AntState = AntState.FORAGING
    target: Position | None = None
    speed: float = 15.0
    age: float = 0.0
    max_age: float = 60.0
    energy: float = 100.0
    max_energy: float = 100.0
    carried_food_value: float = 0.0
    home_position: Position = field(default_factory=Position)
    reproduction: ReproductionState | None = None
    age_group: AgeGroup = AgeGroup.YOUNG
    role: SpecializedRole = SpecializedRole.GENERAL_WORKER
    modifiers: BehaviorModifiers = field(default_factory=BehaviorModifiers)
    state_timer: float = 0.0

    @property
    def is_queen(self) -> bool:
        return self.reproduction is not None

    @property
    def is_alive(self) -> bool:
        """Return True while the ant is neither too old nor exhausted."""
        return self.age < self.max_age and self.energy > 0

    @property
    def age_ratio(self) -> float:
        if self.max_age <= 0:
            return 1.0
        return self.age / self.max_age

    @classmethod
    def worker(
        cls,
        position: Position,
        home: Position,
        config: SimulationConfig,
        rng: Generator,
    ) -> Ant:
        """Create a freshly hatched worker with randomised physiology.

        New workers start FORAGING at full energy.

        Args:
            position: Spawn position.
            home: Nest entrance the worker will return to.
            config: Source of the speed/lifespan ranges and capacity.
            rng: Seeded random generator.

        Returns:
            A new worker Ant.
        """
        return cls(
            position=position.copy(),
            state=AntState.FORAGING,
            speed=float(rng.uniform(*config.ant_speed_range)),
            max_age=float(rng.uniform(*config.ant_max_age_range)),
            energy=config.ant_max_energy,
            max_energy=config.ant_max_energy,
            home_position=home.copy(),
        )

    @classmethod
    def queen(
        cls,
        position: Position,
        config: SimulationConfig,
        vigor: float = 1.0,
    ) -> Ant:
        """Create a resting queen at ``position``.

        Args:
            position: Where the queen sits (also her home).
            config: Source of queen physiology.
            vigor: Colony trait scaling the queen's lifespan.
        """
        return cls(
            position=position.copy(),
            state=AntState.RESTING,
            speed=config.queen_speed,
            max_age=config.queen_max_age * vigor,
            energy=config.queen_max_energy,
            max_energy=config.queen_max_energy,
            home_position=position.copy(),
            reproduction=ReproductionState(
                egg_laying_interval=config.egg_laying_interval,
            ),
        )

    def effective_speed(
        self,
        band: tuple[float, float],
        environment_factor: float = 1.0,
    ) -> float:
        """Return the speed to move at this tick.

        The phase modifier is applied and the result clamped to
        ``band`` before environmental slow-downs are applied.
        """
        lo, hi = band
        adjusted = min(max(self.speed * self.modifiers.speed, lo), hi)
        return adjusted * environment_factor

    def move_toward_target(
        self,
        distance: float,
        arrival_distance: float = 1.0,
    ) -> bool:
        """Walk up to ``distance`` units toward ``target``.

        The ant never overshoots its target.

        Returns:
            True if the ant is within ``arrival_distance`` of the
            target (before or after moving).  False if it has no target.
        """
        if self.target is None:
            return False
        dx = self.target.x - self.position.x
        dy = self.target.y - self.position.y
        remaining = math.hypot(dx, dy)
        if remaining <= arrival_distance:
            return True
        if distance <= 0:
            return False
        step = min(distance, remaining)
        self.position.x += dx / remaining * step
        self.position.y += dy / remaining * step
        return remaining - step <= arrival_distance

    def drain_energy(self, amount: float) -> None:
        """Lose ``amount`` energy, never dropping below zero."""
        self.energy = max(0.0, self.energy - amount)

    def gain_energy(self, amount: float) -> None:
        """Gain ``amount`` energy, never exceeding ``max_energy``."""
        self.energy = min(self.max_energy, self.energy + amount)

    def enter(self, state: AntState, target: Position | None = None) -> None:
        """Switch behavioural state, resetting the per-state timer."""
        self.state = state
        self.target = target
        self.state_timer = 0.0


@dataclass
class Egg:
    """An egg laid by the queen.

    Attributes:
        position: Where the egg lies.
        incubation_time: Seconds left until it hatches.
    """

    position: Position
    incubation_time: float = 10.0


class StructureKind(Enum):
    """Kinds of excavated nest structure."""

    TUNNEL = auto()
    CHAMBER = auto()


@dataclass
class NestStructure:
    """A dug tunnel segment or chamber; counts toward nest complexity.

    Attributes:
        position: Location of the structure.
        kind: Tunnel or chamber.
    """

    position: Position
    kind: StructureKind = StructureKind.TUNNEL
