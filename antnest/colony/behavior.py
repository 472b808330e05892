"""Ant behaviour engine -- one tick of every ant's state machine.

State machine (workers)::

    FORAGING ──food in reach──▶ CARRYING_FOOD ──home──▶ FORAGING
       │  ╲
       │   ╲─low energy──▶ RETURNING ──home──▶ RESTING ──rested──▶ FORAGING
       │
       └─digger at nest──▶ DIGGING ──dug──▶ FORAGING

Invaders can also push a FORAGING ant into RESTING (see
``antnest.disasters.invasive``).  The queen stays RESTING at the nest
and never walks.

Every tick, every ant also ages and burns energy; an ant whose age
reaches ``max_age`` or whose energy reaches zero is queued for removal.

Decisions use each ant's position as of tick start, and only its own:
ants never read each other's positions, so update order cannot leak
same-tick movement between ants.  Removals and new nest structures are
queued on the registry and committed at the tick boundary.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Collection
from dataclasses import dataclass
from typing import TYPE_CHECKING

from antnest.colony.ant import Ant, AntState, NestStructure, SpecializedRole
from antnest.world.position import Position

if TYPE_CHECKING:
    from numpy.random import Generator

    from antnest.simulation.config import SimulationConfig
    from antnest.simulation.registry import EntityRegistry

logger = logging.getLogger(__name__)

# Relative dig chance per role; maintainers dig, generalists help out.
_DIG_WEIGHTS = {
    SpecializedRole.NEST_MAINTAINER: 1.0,
    SpecializedRole.GENERAL_WORKER: 0.25,
}


@dataclass
class BehaviorReport:
    """What happened to the ants during one tick.

    Attributes:
        deaths: Ants queued for removal.
        meals: Food sources eaten.
        deliveries: Loads of food brought home.
        food_delivered: Food credited to the colony store.
        structures_dug: Nest structures completed.
    """

    deaths: int = 0
    meals: int = 0
    deliveries: int = 0
    food_delivered: float = 0.0
    structures_dug: int = 0


def update_ants(
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
    *,
    speed_factor: float = 1.0,
    alarmed: Collection[int] = (),
) -> BehaviorReport:
    """Advance every ant by ``dt`` simulated seconds.

    Args:
        registry: Entity store; ants are mutated in place.
        config: Physiology and behaviour constants.
        dt: Effective delta time.  Zero leaves every ant untouched.
        rng: Seeded random generator.
        speed_factor: Environmental speed multiplier (disasters).
        alarmed: Ids of ants near an invader at the end of last tick.

    Returns:
        A BehaviorReport summarising the tick.
    """
    report = BehaviorReport()
    if dt <= 0:
        return report

    for ant_id, ant in registry.ants.items():
        try:
            if not _age(ant, config, dt):
                registry.defer_remove(ant_id)
                report.deaths += 1
                logger.debug(
                    "Ant %d died at age %.1fs with %.1f energy",
                    ant_id,
                    ant.age,
                    ant.energy,
                )
                continue
            _step(ant_id, ant, registry, config, dt, rng, speed_factor, alarmed, report)
        except (ArithmeticError, ValueError) as exc:
            logger.warning("Removing ant %d after failed update: %s", ant_id, exc)
            registry.defer_remove(ant_id)
            report.deaths += 1
    return report


def remove_exhausted_ants(registry: EntityRegistry) -> int:
    """Queue removal of ants that later systems drained or aged out.

    Disasters and invaders drain energy after ``update_ants`` has run,
    so this sweep runs just before the registry commits.

    Returns:
        Number of ants newly queued for removal.
    """
    removed = 0
    for ant_id, ant in registry.ants.items():
        if ant.is_alive or registry.is_pending_removal(ant_id):
            continue
        registry.defer_remove(ant_id)
        removed += 1
        logger.debug("Ant %d died of exhaustion", ant_id)
    return removed


def _age(ant: Ant, config: SimulationConfig, dt: float) -> bool:
    """Age the ant and burn its basal energy.

    Returns:
        False if the ant has died.
    """
    if not (math.isfinite(ant.energy) and ant.position.is_finite()):
        return False
    ant.age += dt
    efficiency = ant.modifiers.energy_efficiency
    if efficiency <= 0:
        efficiency = 1.0
    ant.drain_energy(config.energy_drain_rate * dt / efficiency)
    ant.energy = min(ant.energy, ant.max_energy)
    return ant.is_alive


def _step(
    ant_id: int,
    ant: Ant,
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
    speed_factor: float,
    alarmed: Collection[int],
    report: BehaviorReport,
) -> None:
    """Run one state-machine step for a live ant."""
    if ant.is_queen:
        _rest(ant, registry, config, dt, leave_when_rested=False)
        return

    speed = ant.effective_speed(config.speed_band, speed_factor)

    match ant.state:
        case AntState.FORAGING:
            if _try_eat(ant, registry, config):
                report.meals += 1
                return
            if ant.energy < config.low_energy_fraction * ant.max_energy:
                ant.enter(AntState.RETURNING, ant.home_position.copy())
            elif _wants_to_dig(ant, registry, config, dt, rng):
                ant.enter(AntState.DIGGING)
                return
            else:
                _wander(ant, config, speed * dt, rng)
        case AntState.CARRYING_FOOD:
            if ant.target is None:
                ant.target = ant.home_position.copy()
            if ant.move_toward_target(speed * dt, config.arrival_distance):
                delivered = ant.carried_food_value * ant.modifiers.foraging_efficiency
                registry.food_store += delivered
                report.deliveries += 1
                report.food_delivered += delivered
                ant.carried_food_value = 0.0
                ant.enter(AntState.FORAGING)
        case AntState.RETURNING:
            if ant.target is None:
                ant.target = ant.home_position.copy()
            if ant_id in alarmed:
                speed = min(speed * config.defense_return_boost, config.speed_band[1])
            if ant.move_toward_target(speed * dt, config.arrival_distance):
                ant.enter(AntState.RESTING)
        case AntState.RESTING:
            _rest(ant, registry, config, dt, leave_when_rested=True)
        case AntState.DIGGING:
            ant.state_timer += dt
            skill = max(ant.modifiers.construction_skill, 1e-6)
            if ant.state_timer >= config.dig_duration / skill:
                registry.defer_add(NestStructure(position=ant.position.copy()))
                report.structures_dug += 1
                ant.enter(AntState.FORAGING)

    _keep_in_world(ant, config)
    registry.refresh(ant_id)


def _try_eat(ant: Ant, registry: EntityRegistry, config: SimulationConfig) -> bool:
    """Eat the first available food source within reach.

    Unavailable sources in reach are skipped.  At most one source is
    eaten per ant per tick.
    """
    from antnest.simulation.registry import EntityKind

    for _, food in registry.nearby(
        EntityKind.FOOD,
        ant.position,
        config.consumption_radius,
    ):
        if not food.is_available:
            continue
        value = food.consume()
        ant.gain_energy(value)
        ant.carried_food_value = value
        ant.enter(AntState.CARRYING_FOOD, ant.home_position.copy())
        logger.debug(
            "Ant ate food: energy %.1f/%.1f, carrying %.1f",
            ant.energy,
            ant.max_energy,
            value,
        )
        return True
    return False


def _wants_to_dig(
    ant: Ant,
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
) -> bool:
    weight = _DIG_WEIGHTS.get(ant.role, 0.0)
    if weight <= 0:
        return False
    if registry.nest_complexity >= config.max_nest_structures:
        return False
    if ant.position.distance_to(ant.home_position) > config.home_radius:
        return False
    return bool(rng.random() < config.dig_chance * weight * dt)


def _wander(ant: Ant, config: SimulationConfig, distance: float, rng: Generator) -> None:
    """Random-target foraging walk: pick a target, walk, repeat."""
    if ant.target is None:
        reach = config.forage_target_range
        ant.target = Position(
            ant.position.x + float(rng.uniform(-reach, reach)),
            ant.position.y + float(rng.uniform(-reach, reach)),
        )
        ant.target.clamp(Position(*config.world_min), Position(*config.world_max))
    if ant.move_toward_target(distance, config.arrival_distance):
        ant.target = None


def _rest(
    ant: Ant,
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    *,
    leave_when_rested: bool,
) -> None:
    """Stay put and eat from the colony store."""
    ant.state_timer += dt
    if ant.position.distance_to(ant.home_position) <= config.home_radius:
        wanted = min(config.rest_energy_gain * dt, ant.max_energy - ant.energy)
        eaten = min(max(wanted, 0.0), registry.food_store)
        if eaten > 0:
            registry.food_store -= eaten
            ant.gain_energy(eaten)
    if leave_when_rested and ant.state_timer >= config.rest_duration:
        ant.enter(AntState.FORAGING)


def _keep_in_world(ant: Ant, config: SimulationConfig) -> None:
    ant.position.clamp(Position(*config.world_min), Position(*config.world_max))
