"""SimulationEngine — the main tick loop.

Owns all top-level simulation state and advances it in a fixed tick
order:

1. Clock: turn the wall-clock delta into an effective delta ``dt``
2. Environment: soil drift, food regrowth
3. Ants: aging, energy, state machine, movement
4. Reproduction: egg incubation, queen egg-laying
5. Disasters: timers, invader cleanup once an invasion ends, effects,
   invasive species
6. Death sweep for ants drained this tick, then commit queued spawns
   and despawns
7. Colony development: age groups, phase progress

A paused clock yields ``dt == 0`` and the tick is skipped entirely, so
no timer, position, or counter moves while paused.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from numpy.random import Generator

from antnest.colony.ant import Ant, NestStructure, StructureKind
from antnest.colony.behavior import remove_exhausted_ants, update_ants
from antnest.colony.development import (
    ColonyDevelopmentPhase,
    adopt_ant,
    refresh_age_groups,
    update_development,
)
from antnest.colony.reproduction import incubate_eggs, update_queen
from antnest.colony.traits import ColonyTraits
from antnest.disasters.effects import (
    apply_disaster_effects,
    movement_speed_modifier,
    trigger_disaster,
    trigger_random_disasters,
    update_disaster_timers,
)
from antnest.disasters.invasive import (
    apply_defensive_behavior,
    cleanup_invasive_species,
    spawn_invasive_species,
    update_invasive_species,
)
from antnest.disasters.state import DisasterState, DisasterType
from antnest.simulation.clock import SimulationClock
from antnest.simulation.config import SimulationConfig
from antnest.simulation.persistence import (
    PersistenceError,
    decode_state,
    encode_state,
    load_snapshot,
    save_snapshot,
)
from antnest.simulation.registry import EntityRegistry
from antnest.simulation.statistics import ColonyStatistics, collect_statistics
from antnest.world.food import FoodSource
from antnest.world.position import Position
from antnest.world.soil import SoilCell
from antnest.world.spatial_index import SpatialIndex

logger = logging.getLogger(__name__)


@dataclass
class SimulationEngine:
    """Drives the simulation forward tick by tick.

    Attributes:
        config: Loaded simulation configuration.
        clock: Pause/speed control and simulated calendar.
        registry: Every entity plus the spatial index.
        disasters: Disaster timers.
        development: Colony development phase and traits.
        rng: Master seeded random generator.
        tick: Ticks that advanced simulated time.
    """

    config: SimulationConfig
    clock: SimulationClock = field(init=False)
    registry: EntityRegistry = field(init=False)
    disasters: DisasterState = field(init=False)
    development: ColonyDevelopmentPhase = field(init=False)
    rng: Generator = field(init=False)
    tick: int = 0
    _alarmed: set[int] = field(init=False, default_factory=set, repr=False)

    def __post_init__(self) -> None:
        """Build the world (soil, food, nest) and RNG from config."""
        self.rng = np.random.default_rng(self.config.seed)
        self.clock = SimulationClock(seconds_per_day=self.config.seconds_per_day)
        self.registry = self._new_registry(Position())
        self.disasters = DisasterState()
        self.development = ColonyDevelopmentPhase(
            colony_traits=ColonyTraits.random(self.rng, self.config.trait_spread),
        )
        self._populate_soil()
        self._populate_food()
        self._build_initial_nest()

    # -- World construction --

    def _new_registry(self, home: Position) -> EntityRegistry:
        index = SpatialIndex(
            cell_size=self.config.grid_cell_size,
            origin=Position(*self.config.world_min),
        )
        return EntityRegistry(spatial_index=index, home=home)

    def _populate_soil(self) -> None:
        """Lay a soil grid centred on the nest."""
        cfg = self.config
        home = self.registry.home
        x0 = home.x - (cfg.soil_columns - 1) * cfg.soil_spacing / 2
        y0 = home.y - (cfg.soil_rows - 1) * cfg.soil_spacing / 2
        for row in range(cfg.soil_rows):
            for col in range(cfg.soil_columns):
                position = Position(
                    x0 + col * cfg.soil_spacing,
                    y0 + row * cfg.soil_spacing,
                )
                self.registry.add(SoilCell.random(position, self.rng))

    def _populate_food(self) -> None:
        cfg = self.config
        for _ in range(cfg.initial_food_sources):
            position = self._random_point_near_home(cfg.food_spawn_radius)
            self.registry.add(
                FoodSource(
                    position=position,
                    nutrition_value=float(self.rng.uniform(*cfg.food_nutrition)),
                    regeneration_time=float(
                        self.rng.uniform(*cfg.food_regeneration_time),
                    ),
                ),
            )

    def _build_initial_nest(self) -> None:
        """Dig the founding tunnel and brood chamber."""
        home = self.registry.home
        self.registry.add(NestStructure(home.copy(), StructureKind.TUNNEL))
        self.registry.add(
            NestStructure(Position(home.x, home.y - 10.0), StructureKind.CHAMBER),
        )

    def _random_point_near_home(self, radius: float) -> Position:
        angle = float(self.rng.uniform(0.0, 2.0 * math.pi))
        distance = float(self.rng.uniform(0.0, radius))
        home = self.registry.home
        position = Position(
            home.x + math.cos(angle) * distance,
            home.y + math.sin(angle) * distance,
        )
        position.clamp(Position(*self.config.world_min), Position(*self.config.world_max))
        return position

    # -- Commands --

    def found_colony(self) -> None:
        """Place the queen and the initial workers."""
        self.spawn_queen()
        self.spawn_initial_population(self.config.initial_ants)

    def spawn_queen(self) -> int | None:
        """Place a queen at the nest.

        Only one queen may live at a time.

        Returns:
            The queen's id, or None if a queen already exists.
        """
        if self.registry.queen_id() is not None:
            logger.warning("A queen already exists; ignoring spawn request")
            return None
        queen = Ant.queen(
            self.registry.home,
            self.config,
            vigor=self.development.colony_traits.queen_vigor,
        )
        adopt_ant(queen, self.development, self.rng)
        queen_id = self.registry.add(queen)
        logger.info(
            "Queen spawned at (%.1f, %.1f)",
            queen.position.x,
            queen.position.y,
        )
        return queen_id

    def spawn_initial_population(self, count: int) -> list[int]:
        """Add ``count`` workers scattered around the nest.

        Spawning stops silently at the population cap.

        Returns:
            Ids of the new workers.
        """
        ids: list[int] = []
        for _ in range(max(count, 0)):
            if self.registry.population >= self.config.population_cap:
                break
            position = self._random_point_near_home(self.config.ant_spawn_radius)
            ant = Ant.worker(position, self.registry.home, self.config, self.rng)
            adopt_ant(ant, self.development, self.rng)
            ids.append(self.registry.add(ant))
        if ids:
            logger.info("Spawned %d worker ants", len(ids))
        return ids

    def trigger_disaster(self, kind: DisasterType | str) -> bool:
        """Start a disaster unless it is active or cooling down.

        Returns:
            True if the disaster started.

        Raises:
            ValueError: If ``kind`` names no disaster.
        """
        return trigger_disaster(self.disasters, DisasterType(kind), self.config)

    def set_speed_multiplier(self, multiplier: float) -> None:
        self.clock.set_speed_multiplier(multiplier)

    def set_paused(self, paused: bool) -> None:
        self.clock.set_paused(paused)

    def toggle_pause(self) -> None:
        self.clock.toggle_pause()

    # -- Tick --

    def step(self, wall_delta: float | None = None) -> float:
        """Advance the simulation by one tick.

        Args:
            wall_delta: Wall-clock seconds since the last tick.  Defaults
                to ``config.tick_seconds``.

        Returns:
            The effective delta applied (0.0 while paused).
        """
        if wall_delta is None:
            wall_delta = self.config.tick_seconds
        dt = self.clock.advance(wall_delta)
        if dt <= 0:
            return 0.0

        cfg = self.config
        registry = self.registry

        # 1. Environment
        for soil in registry.soil_cells.values():
            soil.drift(dt, self.rng)
        for food_id, food in registry.food_sources.items():
            if food.regenerate(dt):
                logger.debug("Food source %d regenerated", food_id)

        # 2. Ants
        update_ants(
            registry,
            cfg,
            dt,
            self.rng,
            speed_factor=movement_speed_modifier(self.disasters, cfg),
            alarmed=self._alarmed,
        )

        # 3. Reproduction
        incubate_eggs(registry, cfg, dt, self.rng)
        update_queen(registry, cfg, dt, self.rng)

        # 4. Disasters
        trigger_random_disasters(self.disasters, cfg, dt, self.rng)
        update_disaster_timers(self.disasters, dt)
        cleanup_invasive_species(registry, self.disasters)
        apply_disaster_effects(self.disasters, registry, cfg, dt)
        spawn_invasive_species(registry, self.disasters, cfg, dt, self.rng)
        update_invasive_species(registry, cfg, dt, self.rng)
        self._alarmed = apply_defensive_behavior(registry, cfg, dt, self.rng)

        # 5. Tick boundary
        remove_exhausted_ants(registry)
        _, new_ids = registry.commit()
        for entity_id in new_ids:
            self._adopt_new(entity_id)
        self._alarmed &= registry.ants.keys()

        # 6. Development
        refresh_age_groups(registry, self.development, self.rng)
        update_development(
            self.development,
            registry,
            dt / self.clock.seconds_per_day,
            self.rng,
        )

        self.tick += 1
        return dt

    def run(self, ticks: int) -> None:
        """Run the simulation for a fixed number of ticks.

        Args:
            ticks: Number of ticks to advance.
        """
        for _ in range(ticks):
            self.step()

    def _adopt_new(self, entity_id: int) -> None:
        ant = self.registry.ants.get(entity_id)
        if ant is not None:
            adopt_ant(ant, self.development, self.rng)

    # -- Read-only views --

    def counts(self) -> dict[str, int]:
        """Aggregate entity counts."""
        registry = self.registry
        return {
            "workers": registry.worker_count,
            "queens": registry.population - registry.worker_count,
            "eggs": len(registry.eggs),
            "food_sources": len(registry.food_sources),
            "soil_cells": len(registry.soil_cells),
            "invasive": len(registry.invasive),
            "structures": len(registry.structures),
        }

    def statistics(self) -> ColonyStatistics:
        return collect_statistics(self.registry, self.disasters, self.development)

    # -- Snapshots --

    def snapshot(self) -> dict[str, Any]:
        """Encode the full state as plain, serialisable data.

        The result shares nothing with live state.
        """
        registry = self.registry
        return encode_state(
            tick=self.tick,
            next_id=registry.next_id,
            home=registry.home,
            food_store=registry.food_store,
            clock=self.clock,
            disasters=self.disasters,
            development=self.development,
            ants=registry.ants,
            eggs=registry.eggs,
            food_sources=registry.food_sources,
            soil_cells=registry.soil_cells,
            invasive=registry.invasive,
            structures=registry.structures,
        )

    def restore(self, data: dict[str, Any]) -> None:
        """Replace all live state with a snapshot.

        The snapshot is decoded into a fresh registry and singletons
        first; live state is swapped only once that has succeeded.

        Raises:
            PersistenceError: If the snapshot is invalid.  Live state is
                left untouched.
        """
        decoded = decode_state(data)
        registry = self._new_registry(decoded.home)
        registry.food_store = decoded.food_store
        try:
            for entity_id, entity in decoded.entities:
                registry.add(entity, entity_id)
        except (KeyError, ValueError) as exc:
            msg = f"snapshot entities could not be indexed: {exc!r}"
            raise PersistenceError(msg) from exc
        registry.next_id = max(registry.next_id, decoded.next_id)

        self.registry = registry
        self.clock = decoded.clock
        self.disasters = decoded.disasters
        self.development = decoded.development
        self.tick = decoded.tick
        self._alarmed = set()
        logger.info(
            "Restored snapshot at tick %d with %d entities",
            self.tick,
            len(registry),
        )

    def save(self, path: str | Path) -> Path:
        """Write a snapshot to ``path``.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        return save_snapshot(self.snapshot(), path)

    def load(self, path: str | Path) -> None:
        """Restore from a save file.

        Raises:
            PersistenceError: If the file cannot be read or is invalid.
        """
        self.restore(load_snapshot(path))
        logger.info("Loaded snapshot from %s", path)
