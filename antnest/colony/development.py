"""Colony development -- the four-phase life history of a colony.

Phases run in a fixed order and the last one is terminal::

    QUEEN_FOUNDING -> FIRST_WORKERS -> COLONY_EXPANSION -> MATURE_COLONY

Each phase sets four requirements (``PhaseConditions``).  Every tick the
controller turns each requirement into a progress ratio in ``[0, 1]``
and takes the *minimum* as overall progress, so the slowest criterion
gates advancement.  When overall progress reaches 1.0 the colony moves
to the next phase, the clock for the phase restarts, and every ant's
behaviour modifiers and role are recomputed.

Modifiers are a deterministic table: each is a phase constant times one
colony trait.  Roles are drawn from a weighted table keyed by phase and
age group that offers more specialisations as the colony matures.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import TYPE_CHECKING

from antnest.colony.ant import AgeGroup, SpecializedRole
from antnest.colony.traits import BehaviorModifiers, ColonyTraits

if TYPE_CHECKING:
    from numpy.random import Generator

    from antnest.colony.ant import Ant
    from antnest.simulation.registry import EntityRegistry

logger = logging.getLogger(__name__)

UNBOUNDED = math.inf


class DevelopmentPhase(Enum):
    """Colony life stages in order."""

    QUEEN_FOUNDING = 0
    FIRST_WORKERS = 1
    COLONY_EXPANSION = 2
    MATURE_COLONY = 3

    def next_phase(self) -> DevelopmentPhase | None:
        order = list(DevelopmentPhase)
        index = order.index(self)
        return order[index + 1] if index + 1 < len(order) else None

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    DevelopmentPhase.QUEEN_FOUNDING: "Queen's Founding",
    DevelopmentPhase.FIRST_WORKERS: "First Workers",
    DevelopmentPhase.COLONY_EXPANSION: "Colony Expansion",
    DevelopmentPhase.MATURE_COLONY: "Mature Colony",
}


@dataclass
class PhaseConditions:
    """Requirements to leave a phase.

    ``UNBOUNDED`` (infinity) means "no requirement" for a criterion.

    Attributes:
        min_days_in_phase: Colony days to spend in the phase.
        target_worker_count: Workers (queen excluded) needed.
        required_nest_complexity: Nest structures needed.
        stability_threshold: Stability score needed (0.0-1.0].
    """

    min_days_in_phase: float
    target_worker_count: float
    required_nest_complexity: float
    stability_threshold: float

    @classmethod
    def for_phase(cls, phase: DevelopmentPhase) -> PhaseConditions:
        return replace(_PHASE_CONDITIONS[phase])


_PHASE_CONDITIONS = {
    DevelopmentPhase.QUEEN_FOUNDING: PhaseConditions(
        min_days_in_phase=1.0,
        target_worker_count=5,
        required_nest_complexity=2,
        stability_threshold=1.0,
    ),
    DevelopmentPhase.FIRST_WORKERS: PhaseConditions(
        min_days_in_phase=3.0,
        target_worker_count=15,
        required_nest_complexity=5,
        stability_threshold=0.5,
    ),
    DevelopmentPhase.COLONY_EXPANSION: PhaseConditions(
        min_days_in_phase=7.0,
        target_worker_count=35,
        required_nest_complexity=12,
        stability_threshold=0.8,
    ),
    DevelopmentPhase.MATURE_COLONY: PhaseConditions(
        min_days_in_phase=UNBOUNDED,
        target_worker_count=UNBOUNDED,
        required_nest_complexity=UNBOUNDED,
        stability_threshold=0.9,
    ),
}

# (speed, foraging, construction, energy) phase constants.  Each is
# multiplied by worker_efficiency, worker_efficiency,
# architectural_skill and environmental_adaptation respectively; the
# founding phase's foraging constant is not trait-scaled.
_MODIFIER_CONSTANTS = {
    DevelopmentPhase.QUEEN_FOUNDING: (0.7, 0.5, 0.8, 1.1),
    DevelopmentPhase.FIRST_WORKERS: (0.9, 0.7, 0.9, 1.0),
    DevelopmentPhase.COLONY_EXPANSION: (1.1, 1.0, 1.1, 0.95),
    DevelopmentPhase.MATURE_COLONY: (1.0, 1.2, 1.0, 1.0),
}

_R = SpecializedRole
_ROLE_WEIGHTS: dict[
    tuple[DevelopmentPhase, AgeGroup],
    tuple[tuple[SpecializedRole, float], ...],
] = {
    (DevelopmentPhase.FIRST_WORKERS, AgeGroup.YOUNG): (
        (_R.NURSERY_WORKER, 0.7),
        (_R.GENERAL_WORKER, 0.3),
    ),
    (DevelopmentPhase.FIRST_WORKERS, AgeGroup.ADULT): (
        (_R.FORAGER, 0.3),
        (_R.GENERAL_WORKER, 0.7),
    ),
    (DevelopmentPhase.FIRST_WORKERS, AgeGroup.SENIOR): ((_R.FORAGER, 1.0),),
    (DevelopmentPhase.COLONY_EXPANSION, AgeGroup.YOUNG): (
        (_R.NURSERY_WORKER, 1.0),
        (_R.NEST_MAINTAINER, 1.0),
        (_R.GENERAL_WORKER, 1.0),
    ),
    (DevelopmentPhase.COLONY_EXPANSION, AgeGroup.ADULT): (
        (_R.FORAGER, 1.0),
        (_R.NEST_MAINTAINER, 1.0),
        (_R.STORAGE_WORKER, 1.0),
        (_R.GENERAL_WORKER, 1.0),
    ),
    (DevelopmentPhase.COLONY_EXPANSION, AgeGroup.SENIOR): (
        (_R.FORAGER, 0.6),
        (_R.NEST_MAINTAINER, 0.4),
    ),
    (DevelopmentPhase.MATURE_COLONY, AgeGroup.YOUNG): (
        (_R.NURSERY_WORKER, 1.0),
        (_R.STORAGE_WORKER, 1.0),
        (_R.WASTE_MANAGER, 1.0),
        (_R.GENERAL_WORKER, 1.0),
    ),
    (DevelopmentPhase.MATURE_COLONY, AgeGroup.ADULT): (
        (_R.FORAGER, 1.0),
        (_R.NEST_MAINTAINER, 1.0),
        (_R.STORAGE_WORKER, 1.0),
        (_R.WASTE_MANAGER, 1.0),
        (_R.NURSERY_WORKER, 1.0),
        (_R.GENERAL_WORKER, 1.0),
    ),
    (DevelopmentPhase.MATURE_COLONY, AgeGroup.SENIOR): (
        (_R.FORAGER, 1.0),
        (_R.NEST_MAINTAINER, 1.0),
        (_R.WASTE_MANAGER, 1.0),
    ),
}


@dataclass
class PhaseProgress:
    """The four per-criterion ratios behind ``phase_progress``."""

    time: float = 0.0
    population: float = 0.0
    complexity: float = 0.0
    stability: float = 0.0

    @property
    def overall(self) -> float:
        return min(self.time, self.population, self.complexity, self.stability)


@dataclass
class ColonyDevelopmentPhase:
    """Colony-wide development state.  Written only by this module.

    Attributes:
        current_phase: Phase the colony is in.
        time_in_phase: Colony days spent in the current phase.
        phase_progress: Bottleneck progress toward the next phase.
        phase_conditions: Requirements of the current phase.
        colony_traits: Randomised traits fixed at colony creation.
        progress: Per-criterion breakdown of ``phase_progress``.
    """

    current_phase: DevelopmentPhase = DevelopmentPhase.QUEEN_FOUNDING
    time_in_phase: float = 0.0
    phase_progress: float = 0.0
    phase_conditions: PhaseConditions = field(
        default_factory=lambda: PhaseConditions.for_phase(
            DevelopmentPhase.QUEEN_FOUNDING,
        ),
    )
    colony_traits: ColonyTraits = field(default_factory=ColonyTraits)
    progress: PhaseProgress = field(default_factory=PhaseProgress)

    @property
    def modifiers(self) -> BehaviorModifiers:
        return phase_modifiers(self.current_phase, self.colony_traits)


# -- Progress criteria ---------------------------------------------------------


def _ratio(value: float, required: float) -> float:
    if math.isinf(required) or required <= 0:
        return 1.0
    return min(max(value / required, 0.0), 1.0)


def time_progress(state: ColonyDevelopmentPhase) -> float:
    return _ratio(state.time_in_phase, state.phase_conditions.min_days_in_phase)


def population_progress(state: ColonyDevelopmentPhase, worker_count: int) -> float:
    return _ratio(worker_count, state.phase_conditions.target_worker_count)


def complexity_progress(state: ColonyDevelopmentPhase, nest_structures: int) -> float:
    return _ratio(nest_structures, state.phase_conditions.required_nest_complexity)


def stability_progress(
    state: ColonyDevelopmentPhase,
    queen_alive: bool,
    worker_count: int,
) -> float:
    """Stability criterion.

    While founding, the colony is stable exactly when the queen lives.
    Later, a colony with a queen and at least one worker scores 0.9,
    any other colony 0.0, and the score is compared to the threshold.
    """
    if state.current_phase is DevelopmentPhase.QUEEN_FOUNDING:
        return 1.0 if queen_alive else 0.0
    score = 0.9 if queen_alive and worker_count > 0 else 0.0
    return _ratio(score, state.phase_conditions.stability_threshold)


# -- Modifiers and roles -------------------------------------------------------


def phase_modifiers(phase: DevelopmentPhase, traits: ColonyTraits) -> BehaviorModifiers:
    """Behaviour multipliers for ``phase`` under ``traits``."""
    speed, foraging, construction, energy = _MODIFIER_CONSTANTS[phase]
    forage_trait = (
        1.0 if phase is DevelopmentPhase.QUEEN_FOUNDING else traits.worker_efficiency
    )
    return BehaviorModifiers(
        speed=speed * traits.worker_efficiency,
        foraging_efficiency=foraging * forage_trait,
        construction_skill=construction * traits.architectural_skill,
        energy_efficiency=energy * traits.environmental_adaptation,
    )


def assign_role(
    phase: DevelopmentPhase,
    age_group: AgeGroup,
    rng: Generator,
) -> SpecializedRole:
    """Draw a role for an ant of ``age_group`` in ``phase``.

    During founding every ant is a general worker.
    """
    table = _ROLE_WEIGHTS.get((phase, age_group))
    if not table:
        return SpecializedRole.GENERAL_WORKER
    roles = [role for role, _ in table]
    weights = [weight for _, weight in table]
    total = sum(weights)
    pick = rng.random() * total
    for role, weight in zip(roles, weights, strict=True):
        pick -= weight
        if pick < 0:
            return role
    return roles[-1]


def adopt_ant(ant: Ant, state: ColonyDevelopmentPhase, rng: Generator) -> None:
    """Give a newly added ant the current phase's modifiers and a role."""
    ant.modifiers = state.modifiers
    ant.age_group = AgeGroup.from_age_ratio(ant.age_ratio)
    ant.role = (
        SpecializedRole.GENERAL_WORKER
        if ant.is_queen
        else assign_role(state.current_phase, ant.age_group, rng)
    )


def refresh_age_groups(
    registry: EntityRegistry,
    state: ColonyDevelopmentPhase,
    rng: Generator,
) -> int:
    """Update every ant's age group; redraw the role when it changes.

    Returns:
        Number of ants that moved into a new age group.
    """
    changed = 0
    for ant in registry.ants.values():
        group = AgeGroup.from_age_ratio(ant.age_ratio)
        if group is ant.age_group:
            continue
        ant.age_group = group
        if not ant.is_queen:
            ant.role = assign_role(state.current_phase, group, rng)
        changed += 1
    return changed


# -- Controller ----------------------------------------------------------------


def update_development(
    state: ColonyDevelopmentPhase,
    registry: EntityRegistry,
    dt_days: float,
    rng: Generator,
) -> DevelopmentPhase | None:
    """Advance the development state machine by ``dt_days`` colony days.

    Args:
        state: Development singleton to mutate.
        registry: Read for worker count, nest complexity, and the queen;
            ants are written only on a phase transition.
        dt_days: Colony days elapsed this tick.
        rng: Seeded random generator (role draws).

    Returns:
        The phase entered this tick, or None if the phase is unchanged.
    """
    if dt_days > 0:
        state.time_in_phase += dt_days

    workers = registry.worker_count
    queen_alive = registry.queen() is not None

    state.progress = PhaseProgress(
        time=time_progress(state),
        population=population_progress(state, workers),
        complexity=complexity_progress(state, registry.nest_complexity),
        stability=stability_progress(state, queen_alive, workers),
    )
    state.phase_progress = state.progress.overall

    next_phase = state.current_phase.next_phase()
    if state.phase_progress < 1.0 or next_phase is None:
        return None

    days = state.time_in_phase
    transition_to(state, next_phase)
    for ant in registry.ants.values():
        ant.modifiers = state.modifiers
        if not ant.is_queen:
            ant.role = assign_role(next_phase, ant.age_group, rng)
    logger.info(
        "Colony transitioned to phase: %s after %.1f days",
        next_phase.display_name,
        days,
    )
    return next_phase


def transition_to(state: ColonyDevelopmentPhase, phase: DevelopmentPhase) -> None:
    """Enter ``phase`` with a fresh clock and zero progress."""
    state.current_phase = phase
    state.time_in_phase = 0.0
    state.phase_progress = 0.0
    state.phase_conditions = PhaseConditions.for_phase(phase)
    state.progress = PhaseProgress()
