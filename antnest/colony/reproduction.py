"""Reproduction -- queen egg-laying and egg incubation.

The queen lays an egg only when every gate is open:

1. ``time_since_last_egg`` has reached ``egg_laying_interval``,
2. her energy exceeds ``queen_energy_threshold``,
3. her reproductive capacity exceeds ``capacity_threshold``,
4. the population is below ``population_cap``.

Capacity tracks soil nutrition (``min(avg_nutrition * 2, 1)``) and is
throttled by ``crowding_factor`` once the colony is crowded.  Eggs
incubate for a random time and hatch into fresh FORAGING workers.

With no queen nothing is laid; that is not an error.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from antnest.colony.ant import Ant, Egg
from antnest.world.position import Position
from antnest.world.soil import average_nutrition

if TYPE_CHECKING:
    from numpy.random import Generator

    from antnest.colony.ant import ReproductionState
    from antnest.simulation.config import SimulationConfig
    from antnest.simulation.registry import EntityRegistry

logger = logging.getLogger(__name__)


def reproductive_capacity(
    avg_nutrition: float,
    population: int,
    config: SimulationConfig,
) -> float:
    """Fertility implied by soil quality and crowding (0.0-1.0)."""
    nutrition_factor = min(max(avg_nutrition, 0.0) * 2.0, 1.0)
    crowding = 1.0 if population < config.crowding_population else config.crowding_factor
    return nutrition_factor * crowding


def can_lay_egg(
    queen: Ant,
    state: ReproductionState,
    population: int,
    config: SimulationConfig,
) -> bool:
    return (
        state.time_since_last_egg >= state.egg_laying_interval
        and queen.energy > config.queen_energy_threshold
        and state.reproductive_capacity > config.capacity_threshold
        and population < config.population_cap
    )


def update_queen(
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
) -> Egg | None:
    """Advance the queen's reproductive cycle by ``dt``.

    Args:
        registry: Entity store.  A new egg is queued and joins the
            registry when it commits at the tick boundary.
        config: Reproduction thresholds and egg parameters.
        dt: Effective delta time.
        rng: Seeded random generator.

    Returns:
        The queued egg, or None if no egg was laid.
    """
    queen = registry.queen()
    if queen is None or queen.reproduction is None or not queen.is_alive:
        return None
    state = queen.reproduction
    if dt > 0:
        state.time_since_last_egg += dt

    population = registry.population
    nutrition = average_nutrition(list(registry.soil_cells.values()))
    state.reproductive_capacity = reproductive_capacity(nutrition, population, config)

    if not can_lay_egg(queen, state, population, config):
        return None

    state.time_since_last_egg = 0.0
    return lay_egg(registry, queen.position, config, rng)


def lay_egg(
    registry: EntityRegistry,
    near: Position,
    config: SimulationConfig,
    rng: Generator,
) -> Egg:
    """Queue an egg within ``egg_offset`` of ``near`` on each axis."""
    offset = config.egg_offset
    position = Position(
        near.x + float(rng.uniform(-offset, offset)),
        near.y + float(rng.uniform(-offset, offset)),
    )
    egg = Egg(
        position=position,
        incubation_time=float(rng.uniform(*config.incubation_range)),
    )
    registry.defer_add(egg)
    logger.debug("Queen laid an egg at (%.1f, %.1f)", position.x, position.y)
    return egg


def incubate_eggs(
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
) -> int:
    """Count incubation down and hatch ripe eggs into workers.

    Hatching is queued: each ripe egg is removed and its worker added
    when the registry commits at the tick boundary.

    Returns:
        Number of eggs hatching this tick.
    """
    if dt <= 0:
        return 0
    hatched = 0
    for egg_id, egg in registry.eggs.items():
        egg.incubation_time -= dt
        if egg.incubation_time > 0:
            continue
        registry.defer_remove(egg_id)
        registry.defer_add(Ant.worker(egg.position, registry.home, config, rng))
        hatched += 1
        logger.debug(
            "Egg hatched into new worker ant at (%.1f, %.1f)",
            egg.position.x,
            egg.position.y,
        )
    return hatched
