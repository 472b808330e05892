"""Invasive species — transient grazers that exist only during an invasion.

While the INVASIVE_SPECIES disaster is active, invaders appear at random
spots (up to a cap), random-walk, graze down nearby food sources, and
stress nearby ants.  They die when their lifetime runs out, and every
one of them is removed the moment the disaster is no longer active.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from antnest.colony.ant import AntState
from antnest.disasters.state import DisasterType
from antnest.world.position import Position

if TYPE_CHECKING:
    from numpy.random import Generator

    from antnest.disasters.state import DisasterState
    from antnest.simulation.config import SimulationConfig
    from antnest.simulation.registry import EntityRegistry

logger = logging.getLogger(__name__)


@dataclass
class InvasiveSpecies:
    """A single invasive organism.

    Attributes:
        position: Current world position.
        lifetime: Seconds left to live.
        food_consumption_rate: Nutrition grazed per second from each
            food source within reach.
    """

    position: Position
    lifetime: float = 20.0
    food_consumption_rate: float = 3.0


def spawn_invasive_species(
    registry: EntityRegistry,
    disasters: DisasterState,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
) -> InvasiveSpecies | None:
    """Maybe queue one invader this tick.

    Spawning happens only while the invasion is active and the live
    plus queued count is below ``invasive_cap``; the chance is prorated
    by ``dt``.  The invader joins the registry at the next ``commit``.

    Returns:
        The queued invader, or None if nothing spawned.
    """
    if not disasters.is_active(DisasterType.INVASIVE_SPECIES) or dt <= 0:
        return None
    from antnest.simulation.registry import EntityKind

    live = len(registry.invasive) + registry.pending_spawns(EntityKind.INVASIVE)
    if live >= config.invasive_cap:
        return None
    if rng.random() >= config.invasive_spawn_rate * dt:
        return None

    position = Position(
        float(rng.uniform(config.world_min[0], config.world_max[0])),
        float(rng.uniform(config.world_min[1], config.world_max[1])),
    )
    invader = InvasiveSpecies(
        position=position,
        lifetime=float(rng.uniform(*config.invasive_lifetime)),
        food_consumption_rate=float(rng.uniform(*config.invasive_consumption)),
    )
    registry.defer_add(invader)
    logger.debug(
        "Spawned invasive species at (%.1f, %.1f) with %.1fs lifetime",
        position.x,
        position.y,
        invader.lifetime,
    )
    return invader


def update_invasive_species(
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
) -> int:
    """Age, move, and feed every invader.

    Expired invaders are queued for removal at the tick boundary.

    Returns:
        Number of food sources grazed to exhaustion this tick.
    """
    if dt <= 0:
        return 0
    from antnest.simulation.registry import EntityKind

    lo = Position(*config.world_min)
    hi = Position(*config.world_max)
    exhausted = 0

    for entity_id, invader in registry.invasive.items():
        invader.lifetime -= dt
        if invader.lifetime <= 0:
            registry.defer_remove(entity_id)
            continue

        step = config.invasive_speed * dt
        invader.position.x += float(rng.uniform(-1.0, 1.0)) * step
        invader.position.y += float(rng.uniform(-1.0, 1.0)) * step
        invader.position.clamp(lo, hi)
        registry.refresh(entity_id)

        bite = invader.food_consumption_rate * dt
        for _, food in registry.nearby(
            EntityKind.FOOD,
            invader.position,
            config.invasive_feed_radius,
        ):
            if food.deplete(bite, config.invasive_regrowth_factor):
                exhausted += 1
                logger.debug(
                    "Invasive species depleted food source at (%.1f, %.1f)",
                    food.position.x,
                    food.position.y,
                )
    return exhausted


def apply_defensive_behavior(
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
) -> set[int]:
    """Stress ants that are close to any invader.

    Stressed ants lose extra energy.  Stressed foragers may break off
    and rest (defensive clustering); stressed returners hurry home.

    Returns:
        Ids of ants that were within ``defense_radius`` of an invader.
    """
    if not registry.invasive or dt <= 0:
        return set()

    from antnest.simulation.registry import EntityKind

    stressed: set[int] = set()
    for invader in registry.invasive.values():
        for ant_id, _ in registry.nearby(
            EntityKind.ANT,
            invader.position,
            config.defense_radius,
        ):
            stressed.add(ant_id)

    for ant_id in sorted(stressed):
        ant = registry.ants[ant_id]
        ant.drain_energy(config.defense_energy_drain * dt)
        if ant.state is AntState.FORAGING and not ant.is_queen:
            if rng.random() < config.defense_rest_chance * dt:
                ant.enter(AntState.RESTING)
    return stressed


def cleanup_invasive_species(
    registry: EntityRegistry,
    disasters: DisasterState,
) -> int:
    """Remove every invader once the invasion is over.

    Returns:
        Number of invaders removed.
    """
    if disasters.is_active(DisasterType.INVASIVE_SPECIES) or not registry.invasive:
        return 0
    ids = list(registry.invasive)
    for entity_id in ids:
        registry.remove(entity_id)
    logger.info(
        "Cleaned up %d invasive species entities after disaster ended",
        len(ids),
    )
    return len(ids)
