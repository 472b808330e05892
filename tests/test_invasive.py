"""Tests for antnest.disasters.invasive."""

from __future__ import annotations

from dataclasses import replace

import pytest
from numpy.random import Generator

from antnest.colony.ant import Ant, AntState
from antnest.disasters.invasive import (
    InvasiveSpecies,
    apply_defensive_behavior,
    cleanup_invasive_species,
    spawn_invasive_species,
    update_invasive_species,
)
from antnest.disasters.state import DisasterState, DisasterType
from antnest.simulation.config import SimulationConfig
from antnest.simulation.registry import EntityRegistry
from antnest.world.food import FoodSource
from antnest.world.position import Position


@pytest.fixture
def invasion() -> DisasterState:
    """A disaster state with an invasion under way."""
    state = DisasterState()
    state.start(DisasterType.INVASIVE_SPECIES, 60.0, 10.0)
    return state


@pytest.fixture
def eager_config(default_config: SimulationConfig) -> SimulationConfig:
    """Config where invaders spawn every tick."""
    return replace(default_config, invasive_spawn_rate=1000.0)


class TestSpawn:
    """Tests for spawning invaders."""

    def test_no_spawn_without_invasion(
        self,
        registry: EntityRegistry,
        eager_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        assert spawn_invasive_species(registry, DisasterState(), eager_config, 1.0, rng) is None
        assert not registry.invasive

    def test_spawn_in_world_with_random_traits(
        self,
        registry: EntityRegistry,
        invasion: DisasterState,
        eager_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        invader = spawn_invasive_species(registry, invasion, eager_config, 1.0, rng)
        assert invader is not None
        assert not registry.invasive
        _, new_ids = registry.commit()
        entity_id = new_ids[0]
        assert registry.invasive[entity_id] is invader
        lo, hi = eager_config.invasive_lifetime
        assert lo <= invader.lifetime <= hi
        lo, hi = eager_config.invasive_consumption
        assert lo <= invader.food_consumption_rate <= hi
        assert eager_config.world_min[0] <= invader.position.x <= eager_config.world_max[0]
        assert entity_id in registry.spatial_index

    def test_spawn_respects_cap(
        self,
        registry: EntityRegistry,
        invasion: DisasterState,
        eager_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        for _ in range(eager_config.invasive_cap + 10):
            spawn_invasive_species(registry, invasion, eager_config, 1.0, rng)
        registry.commit()
        assert len(registry.invasive) == eager_config.invasive_cap

    def test_cap_counts_live_and_queued(
        self,
        registry: EntityRegistry,
        invasion: DisasterState,
        eager_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        config = replace(eager_config, invasive_cap=3)
        registry.add(InvasiveSpecies(Position()))
        registry.add(InvasiveSpecies(Position()))
        assert spawn_invasive_species(registry, invasion, config, 1.0, rng) is not None
        assert spawn_invasive_species(registry, invasion, config, 1.0, rng) is None
        registry.commit()
        assert len(registry.invasive) == 3


class TestUpdate:
    """Tests for invader lifetime, movement, and grazing."""

    def test_expired_invader_is_removed_at_commit(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        entity_id = registry.add(InvasiveSpecies(Position(), lifetime=0.5))
        update_invasive_species(registry, default_config, 1.0, rng)
        assert entity_id in registry
        registry.commit()
        assert entity_id not in registry

    def test_invader_moves_and_stays_in_world(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        corner = Position(*default_config.world_max)
        entity_id = registry.add(InvasiveSpecies(corner.copy(), lifetime=100.0))
        for _ in range(20):
            update_invasive_species(registry, default_config, 0.5, rng)
        invader = registry.invasive[entity_id]
        assert invader.position != corner
        assert invader.position.x <= default_config.world_max[0]
        assert invader.position.y <= default_config.world_max[1]
        assert registry.spatial_index.position_of(entity_id) == invader.position

    def test_grazing_depletes_nearby_food(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        config = replace(default_config, invasive_speed=0.0)
        near = FoodSource(Position(5.0, 0.0), nutrition_value=10.0)
        far = FoodSource(Position(200.0, 0.0), nutrition_value=10.0)
        registry.add(near)
        registry.add(far)
        registry.add(
            InvasiveSpecies(Position(), lifetime=100.0, food_consumption_rate=3.0),
        )

        assert update_invasive_species(registry, config, 1.0, rng) == 0
        assert near.nutrition_value == pytest.approx(7.0)
        assert far.nutrition_value == 10.0

        exhausted = 0
        for _ in range(3):
            exhausted += update_invasive_species(registry, config, 1.0, rng)
        assert exhausted == 1
        assert not near.is_available
        assert near.regeneration_timer == pytest.approx(
            near.regeneration_time * config.invasive_regrowth_factor,
        )


class TestDefense:
    """Tests for ants reacting to nearby invaders."""

    def test_nearby_ants_are_stressed(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        near = registry.add(Ant(position=Position(10.0, 0.0)))
        far = registry.add(Ant(position=Position(300.0, 0.0)))
        registry.add(InvasiveSpecies(Position(), lifetime=100.0))

        stressed = apply_defensive_behavior(registry, default_config, 1.0, rng)

        assert stressed == {near}
        assert registry.ants[near].energy == pytest.approx(
            100.0 - default_config.defense_energy_drain,
        )
        assert registry.ants[far].energy == 100.0

    def test_stressed_foragers_may_rest(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        config = replace(default_config, defense_rest_chance=1000.0)
        ant_id = registry.add(Ant(position=Position(10.0, 0.0)))
        registry.add(InvasiveSpecies(Position(), lifetime=100.0))
        apply_defensive_behavior(registry, config, 1.0, rng)
        assert registry.ants[ant_id].state is AntState.RESTING

    def test_queen_keeps_resting(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        config = replace(default_config, defense_rest_chance=1000.0)
        queen_id = registry.add(Ant.queen(Position(), config))
        registry.add(InvasiveSpecies(Position(1.0, 1.0), lifetime=100.0))
        apply_defensive_behavior(registry, config, 1.0, rng)
        queen = registry.ants[queen_id]
        assert queen.state is AntState.RESTING
        assert queen.reproduction is not None

    def test_no_invaders_no_stress(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        registry.add(Ant(position=Position()))
        assert apply_defensive_behavior(registry, default_config, 1.0, rng) == set()


class TestCleanup:
    """Tests for forced removal when the invasion ends."""

    def test_cleanup_after_invasion_ends(
        self,
        registry: EntityRegistry,
        invasion: DisasterState,
    ) -> None:
        for x in range(5):
            registry.add(InvasiveSpecies(Position(float(x), 0.0)))
        assert cleanup_invasive_species(registry, invasion) == 0

        invasion.advance(61.0)
        assert cleanup_invasive_species(registry, invasion) == 5
        assert not registry.invasive
        assert len(registry.spatial_index) == 0
