"""Tests for antnest.simulation — engine and config loading."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any

import pytest

from antnest.colony.ant import Ant, AntState, StructureKind
from antnest.colony.development import DevelopmentPhase
from antnest.disasters.invasive import InvasiveSpecies
from antnest.disasters.state import DisasterType
from antnest.simulation.config import DisasterSettings, SimulationConfig
from antnest.simulation.engine import SimulationEngine
from antnest.world.food import FoodSource
from antnest.world.position import Position

_DEFAULT_YAML = Path(__file__).resolve().parent.parent / "config" / "default.yaml"


def _state(engine: SimulationEngine) -> dict[str, Any]:
    """Snapshot without the wall-clock parts (save time, runtime)."""
    snap = engine.snapshot()
    del snap["metadata"]
    del snap["clock"]["runtime"]
    return snap


class TestSimulationConfig:
    """Tests for YAML config loading."""

    def test_defaults(self) -> None:
        cfg = SimulationConfig()
        assert cfg.seed == 42
        assert cfg.grid_cell_size == 16.0
        assert cfg.disasters["rain"] == DisasterSettings(duration=20.0, cooldown=5.0)

    def test_from_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "test.yaml"
        yaml_file.write_text(
            "seed: 99\n"
            "world_min: [-50, -50]\n"
            "no_such_setting: 3\n"
            "disasters:\n"
            "  drought:\n"
            "    duration: 12\n",
        )
        cfg = SimulationConfig.from_yaml(yaml_file)
        assert cfg.seed == 99
        assert cfg.world_min == (-50, -50)
        assert cfg.disasters["drought"].duration == 12.0
        assert cfg.disasters["drought"].cooldown == 8.0
        assert cfg.disasters["rain"].duration == 20.0

    def test_shipped_config_matches_defaults(self) -> None:
        assert SimulationConfig.from_yaml(_DEFAULT_YAML) == SimulationConfig()

    def test_empty_yaml_gives_defaults(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")
        assert SimulationConfig.from_yaml(yaml_file) == SimulationConfig()

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            SimulationConfig.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_cell_size(self) -> None:
        with pytest.raises(ValueError):
            SimulationConfig(grid_cell_size=0.0)


class TestEngineSetup:
    """Tests for world construction and colony founding."""

    def test_world_is_built(self, engine: SimulationEngine) -> None:
        cfg = engine.config
        counts = engine.counts()
        assert counts["soil_cells"] == cfg.soil_columns * cfg.soil_rows
        assert counts["food_sources"] == cfg.initial_food_sources
        assert counts["workers"] == 0
        assert counts["queens"] == 0
        kinds = sorted(s.kind.name for s in engine.registry.structures.values())
        assert kinds == [StructureKind.CHAMBER.name, StructureKind.TUNNEL.name]
        assert len(engine.registry.spatial_index) == len(engine.registry)

    def test_food_within_spawn_radius(self, engine: SimulationEngine) -> None:
        home = engine.registry.home
        for food in engine.registry.food_sources.values():
            assert food.position.distance_to(home) <= engine.config.food_spawn_radius + 1e-9

    def test_found_colony(self, colony_engine: SimulationEngine) -> None:
        counts = colony_engine.counts()
        assert counts["queens"] == 1
        assert counts["workers"] == colony_engine.config.initial_ants
        queen = colony_engine.registry.queen()
        assert queen is not None
        assert queen.state is AntState.RESTING
        traits = colony_engine.development.colony_traits
        assert queen.max_age == pytest.approx(
            colony_engine.config.queen_max_age * traits.queen_vigor,
        )

    def test_second_queen_rejected(self, colony_engine: SimulationEngine) -> None:
        assert colony_engine.spawn_queen() is None
        assert colony_engine.counts()["queens"] == 1

    def test_new_ants_get_phase_modifiers(self, colony_engine: SimulationEngine) -> None:
        expected = colony_engine.development.modifiers
        for ant in colony_engine.registry.ants.values():
            assert ant.modifiers == expected

    def test_initial_population_respects_cap(self, engine: SimulationEngine) -> None:
        ids = engine.spawn_initial_population(engine.config.population_cap + 20)
        assert len(ids) == engine.config.population_cap


class TestEngineTick:
    """Tests for the tick loop."""

    def test_step_advances_tick(self, colony_engine: SimulationEngine) -> None:
        dt = colony_engine.step()
        assert dt == pytest.approx(colony_engine.config.tick_seconds)
        assert colony_engine.tick == 1
        assert colony_engine.clock.elapsed == pytest.approx(dt)

    def test_run_multiple_ticks(self, colony_engine: SimulationEngine) -> None:
        colony_engine.run(ticks=10)
        assert colony_engine.tick == 10

    def test_speed_multiplier_scales_dt(self, colony_engine: SimulationEngine) -> None:
        colony_engine.set_speed_multiplier(10.0)
        assert colony_engine.step(0.05) == pytest.approx(0.5)

    def test_pause_freezes_everything(self, colony_engine: SimulationEngine) -> None:
        colony_engine.run(ticks=20)
        before = _state(colony_engine)
        colony_engine.set_paused(True)
        for _ in range(50):
            assert colony_engine.step() == 0.0
        assert _state(colony_engine) == {**before, "clock": {**before["clock"], "is_paused": True}}
        assert colony_engine.tick == 20

    def test_speed_command_resumes(self, colony_engine: SimulationEngine) -> None:
        colony_engine.set_paused(True)
        colony_engine.set_speed_multiplier(2.0)
        assert colony_engine.step(0.1) == pytest.approx(0.2)

    def test_determinism(self) -> None:
        """Same seed must produce identical state after N ticks."""
        cfg = SimulationConfig(seed=777)

        engine_a = SimulationEngine(config=cfg)
        engine_a.found_colony()
        engine_a.trigger_disaster(DisasterType.INVASIVE_SPECIES)
        engine_a.run(ticks=300)

        engine_b = SimulationEngine(config=cfg)
        engine_b.found_colony()
        engine_b.trigger_disaster(DisasterType.INVASIVE_SPECIES)
        engine_b.run(ticks=300)

        assert _state(engine_a) == _state(engine_b)

    def test_invariants_over_long_run(self, colony_engine: SimulationEngine) -> None:
        colony_engine.trigger_disaster(DisasterType.DROUGHT)
        colony_engine.trigger_disaster(DisasterType.COLD_SNAP)
        for _ in range(200):
            colony_engine.step(0.25)
            registry = colony_engine.registry
            for ant in registry.ants.values():
                assert 0.0 <= ant.energy <= ant.max_energy
                assert ant.age >= 0.0
            for soil in registry.soil_cells.values():
                assert 0.0 <= soil.moisture <= 1.0
                assert 5.0 <= soil.temperature <= 35.0
                assert 0.0 <= soil.nutrition <= 1.0
            assert len(registry.spatial_index) == len(registry)

    def test_queen_lays_and_eggs_hatch(self, colony_engine: SimulationEngine) -> None:
        for _ in range(21):
            colony_engine.step(0.5)
        assert colony_engine.counts()["eggs"] >= 1

        first_eggs = set(colony_engine.registry.eggs)
        for _ in range(40):
            colony_engine.step(0.5)
        assert not first_eggs & set(colony_engine.registry.eggs)
        hatchlings = [
            ant
            for ant_id, ant in colony_engine.registry.workers()
            if ant_id > max(first_eggs)
        ]
        assert hatchlings
        expected = colony_engine.development.modifiers
        assert all(ant.modifiers == expected for ant in hatchlings)


class TestEngineDisasters:
    """Tests for disaster commands through the engine."""

    def test_trigger_by_name(self, engine: SimulationEngine) -> None:
        assert engine.trigger_disaster("rain")
        assert not engine.trigger_disaster(DisasterType.RAIN)

    def test_unknown_kind(self, engine: SimulationEngine) -> None:
        with pytest.raises(ValueError):
            engine.trigger_disaster("meteor")

    def test_rain_ends_on_time(self, colony_engine: SimulationEngine) -> None:
        colony_engine.trigger_disaster(DisasterType.RAIN)
        for _ in range(199):
            colony_engine.step(0.1)
        assert colony_engine.disasters.is_active(DisasterType.RAIN)
        for _ in range(2):
            colony_engine.step(0.1)
        assert not colony_engine.disasters.is_active(DisasterType.RAIN)
        assert colony_engine.disasters.cooldown(DisasterType.RAIN) == 0.0
        assert colony_engine.trigger_disaster(DisasterType.RAIN)

    def test_invasion_spawns_then_cleans_up(self, default_config: SimulationConfig) -> None:
        disasters = dict(default_config.disasters)
        disasters["invasive_species"] = DisasterSettings(duration=5.0, cooldown=10.0)
        config = replace(default_config, disasters=disasters, invasive_spawn_rate=50.0)
        engine = SimulationEngine(config=config)
        engine.found_colony()
        engine.trigger_disaster(DisasterType.INVASIVE_SPECIES)

        for _ in range(10):
            engine.step(0.25)
        assert engine.counts()["invasive"] > 0

        for _ in range(20):
            engine.step(0.25)
        assert not engine.disasters.is_active(DisasterType.INVASIVE_SPECIES)
        assert engine.counts()["invasive"] == 0

    def test_invaders_vanish_before_grazing_on_final_tick(
        self,
        colony_engine: SimulationEngine,
    ) -> None:
        registry = colony_engine.registry
        colony_engine.disasters.start(DisasterType.INVASIVE_SPECIES, 0.01, 10.0)
        spot = Position(350.0, 270.0)
        food_id = registry.add(FoodSource(spot.copy(), nutrition_value=30.0))
        registry.add(InvasiveSpecies(spot.copy(), lifetime=20.0, food_consumption_rate=4.0))

        colony_engine.step(0.05)

        assert not colony_engine.disasters.is_active(DisasterType.INVASIVE_SPECIES)
        assert not registry.invasive
        assert registry.food_sources[food_id].nutrition_value == 30.0

    def test_ant_drained_by_cold_is_gone_after_step(
        self,
        colony_engine: SimulationEngine,
    ) -> None:
        colony_engine.trigger_disaster(DisasterType.COLD_SNAP)
        ant_id = colony_engine.registry.add(Ant(position=Position(50.0, 50.0), energy=0.2))

        colony_engine.step(0.05)

        assert ant_id not in colony_engine.registry
        assert all(ant.energy > 0 for ant in colony_engine.registry.ants.values())


class TestEngineDevelopment:
    """Tests for colony development driven by the engine."""

    def test_founding_advances_after_a_day(self, default_config: SimulationConfig) -> None:
        engine = SimulationEngine(config=replace(default_config, seconds_per_day=5.0))
        engine.found_colony()
        for _ in range(11):
            engine.step(0.5)
        development = engine.development
        assert development.current_phase is DevelopmentPhase.FIRST_WORKERS
        for ant in engine.registry.ants.values():
            assert ant.modifiers == development.modifiers

    def test_statistics(self, colony_engine: SimulationEngine) -> None:
        colony_engine.run(ticks=5)
        stats = colony_engine.statistics()
        assert stats.queen_count == 1
        assert stats.worker_count == colony_engine.registry.worker_count
        assert sum(stats.state_counts.values()) == stats.worker_count
        assert stats.nest_structures >= 2
        assert stats.phase == DevelopmentPhase.QUEEN_FOUNDING.display_name
        assert 0.0 <= stats.average_nutrition <= 1.0


class TestCommandLine:
    """Tests for the headless command-line run."""

    def test_headless_run_and_save(self, tmp_path: Path) -> None:
        from antnest.__main__ import main

        save = tmp_path / "run.yaml"
        assert main(["--headless", "--ticks", "20", "--save", str(save)]) == 0
        assert save.exists()
        assert main(["--headless", "--ticks", "5", "--load", str(save)]) == 0

    def test_bad_save_file_fails_cleanly(self, tmp_path: Path) -> None:
        from antnest.__main__ import main

        bad = tmp_path / "bad.yaml"
        bad.write_text("- nope\n")
        assert main(["--headless", "--load", str(bad)]) == 1
