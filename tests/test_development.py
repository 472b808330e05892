"""Tests for antnest.colony.development."""

from __future__ import annotations

import math

import pytest
from numpy.random import Generator

from antnest.colony.ant import AgeGroup, Ant, NestStructure, SpecializedRole
from antnest.colony.development import (
    ColonyDevelopmentPhase,
    DevelopmentPhase,
    PhaseConditions,
    adopt_ant,
    assign_role,
    phase_modifiers,
    refresh_age_groups,
    stability_progress,
    update_development,
)
from antnest.colony.traits import ColonyTraits
from antnest.simulation.config import SimulationConfig
from antnest.simulation.registry import EntityRegistry
from antnest.world.position import Position


def _populate(
    registry: EntityRegistry,
    config: SimulationConfig,
    workers: int,
    structures: int,
    queen: bool = True,
) -> None:
    if queen:
        registry.add(Ant.queen(Position(), config))
    for i in range(workers):
        registry.add(Ant(position=Position(float(i), 10.0)))
    for i in range(structures):
        registry.add(NestStructure(Position(float(i), -10.0)))


class TestPhaseTable:
    """Tests for phase ordering and conditions."""

    def test_phases_in_order(self) -> None:
        assert DevelopmentPhase.QUEEN_FOUNDING.next_phase() is DevelopmentPhase.FIRST_WORKERS
        assert DevelopmentPhase.FIRST_WORKERS.next_phase() is DevelopmentPhase.COLONY_EXPANSION
        assert DevelopmentPhase.COLONY_EXPANSION.next_phase() is DevelopmentPhase.MATURE_COLONY
        assert DevelopmentPhase.MATURE_COLONY.next_phase() is None

    def test_mature_has_no_requirements(self) -> None:
        conditions = PhaseConditions.for_phase(DevelopmentPhase.MATURE_COLONY)
        assert math.isinf(conditions.min_days_in_phase)
        assert math.isinf(conditions.target_worker_count)
        assert math.isinf(conditions.required_nest_complexity)

    def test_for_phase_returns_copy(self) -> None:
        conditions = PhaseConditions.for_phase(DevelopmentPhase.QUEEN_FOUNDING)
        conditions.target_worker_count = 999
        fresh = PhaseConditions.for_phase(DevelopmentPhase.QUEEN_FOUNDING)
        assert fresh.target_worker_count == 5


class TestProgress:
    """Tests for the bottleneck progress rule."""

    def test_progress_is_minimum_of_criteria(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        _populate(registry, default_config, workers=5, structures=1)
        state = ColonyDevelopmentPhase()

        update_development(state, registry, 0.8, rng)

        assert state.progress.time == pytest.approx(0.8)
        assert state.progress.population == 1.0
        assert state.progress.complexity == pytest.approx(0.5)
        assert state.progress.stability == 1.0
        assert state.phase_progress == pytest.approx(0.5)
        assert state.current_phase is DevelopmentPhase.QUEEN_FOUNDING

    def test_progress_is_non_decreasing(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        _populate(registry, default_config, workers=3, structures=2)
        state = ColonyDevelopmentPhase()
        last = 0.0
        for _ in range(30):
            update_development(state, registry, 0.05, rng)
            assert state.phase_progress >= last
            last = state.phase_progress

    def test_no_queen_blocks_founding(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        _populate(registry, default_config, workers=10, structures=5, queen=False)
        state = ColonyDevelopmentPhase()
        assert update_development(state, registry, 5.0, rng) is None
        assert state.phase_progress == 0.0

    def test_stability_after_founding(self) -> None:
        state = ColonyDevelopmentPhase(
            current_phase=DevelopmentPhase.COLONY_EXPANSION,
            phase_conditions=PhaseConditions.for_phase(DevelopmentPhase.COLONY_EXPANSION),
        )
        assert stability_progress(state, True, 3) == 1.0
        assert stability_progress(state, True, 0) == 0.0
        assert stability_progress(state, False, 3) == 0.0

        mature = ColonyDevelopmentPhase(
            current_phase=DevelopmentPhase.MATURE_COLONY,
            phase_conditions=PhaseConditions.for_phase(DevelopmentPhase.MATURE_COLONY),
        )
        assert stability_progress(mature, True, 3) == pytest.approx(1.0)


class TestTransition:
    """Tests for phase transitions."""

    def test_transition_resets_and_recomputes(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        _populate(registry, default_config, workers=5, structures=2)
        traits = ColonyTraits(
            queen_vigor=1.0,
            worker_efficiency=1.1,
            architectural_skill=0.9,
            environmental_adaptation=1.2,
        )
        state = ColonyDevelopmentPhase(colony_traits=traits)

        entered = update_development(state, registry, 1.0, rng)

        assert entered is DevelopmentPhase.FIRST_WORKERS
        assert state.current_phase is DevelopmentPhase.FIRST_WORKERS
        assert state.time_in_phase == 0.0
        assert state.phase_progress == 0.0
        assert state.phase_conditions == PhaseConditions.for_phase(
            DevelopmentPhase.FIRST_WORKERS,
        )
        expected = phase_modifiers(DevelopmentPhase.FIRST_WORKERS, traits)
        for ant in registry.ants.values():
            assert ant.modifiers == expected

    def test_one_phase_per_update(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        _populate(registry, default_config, workers=40, structures=15)
        state = ColonyDevelopmentPhase()
        update_development(state, registry, 100.0, rng)
        assert state.current_phase is DevelopmentPhase.FIRST_WORKERS
        update_development(state, registry, 100.0, rng)
        assert state.current_phase is DevelopmentPhase.COLONY_EXPANSION

    def test_mature_is_terminal(
        self,
        registry: EntityRegistry,
        default_config: SimulationConfig,
        rng: Generator,
    ) -> None:
        _populate(registry, default_config, workers=40, structures=15)
        state = ColonyDevelopmentPhase(
            current_phase=DevelopmentPhase.MATURE_COLONY,
            phase_conditions=PhaseConditions.for_phase(DevelopmentPhase.MATURE_COLONY),
        )
        assert update_development(state, registry, 1000.0, rng) is None
        assert state.current_phase is DevelopmentPhase.MATURE_COLONY
        assert state.phase_progress == pytest.approx(1.0)


class TestModifiers:
    """Tests for the phase x trait modifier table."""

    def test_founding_foraging_ignores_traits(self) -> None:
        traits = ColonyTraits(worker_efficiency=1.2)
        mods = phase_modifiers(DevelopmentPhase.QUEEN_FOUNDING, traits)
        assert mods.foraging_efficiency == pytest.approx(0.5)
        assert mods.speed == pytest.approx(0.7 * 1.2)

    def test_expansion_modifiers(self) -> None:
        traits = ColonyTraits(
            worker_efficiency=1.1,
            architectural_skill=0.9,
            environmental_adaptation=0.8,
        )
        mods = phase_modifiers(DevelopmentPhase.COLONY_EXPANSION, traits)
        assert mods.speed == pytest.approx(1.1 * 1.1)
        assert mods.foraging_efficiency == pytest.approx(1.0 * 1.1)
        assert mods.construction_skill == pytest.approx(1.1 * 0.9)
        assert mods.energy_efficiency == pytest.approx(0.95 * 0.8)


class TestRoles:
    """Tests for age groups and role assignment."""

    def test_age_group_thresholds(self) -> None:
        assert AgeGroup.from_age_ratio(0.1) is AgeGroup.YOUNG
        assert AgeGroup.from_age_ratio(0.25) is AgeGroup.ADULT
        assert AgeGroup.from_age_ratio(0.74) is AgeGroup.ADULT
        assert AgeGroup.from_age_ratio(0.75) is AgeGroup.SENIOR

    def test_founding_roles_are_general(self, rng: Generator) -> None:
        for group in AgeGroup:
            role = assign_role(DevelopmentPhase.QUEEN_FOUNDING, group, rng)
            assert role is SpecializedRole.GENERAL_WORKER

    def test_first_workers_seniors_forage(self, rng: Generator) -> None:
        role = assign_role(DevelopmentPhase.FIRST_WORKERS, AgeGroup.SENIOR, rng)
        assert role is SpecializedRole.FORAGER

    def test_later_phases_offer_more_roles(self, rng: Generator) -> None:
        def variety(phase: DevelopmentPhase) -> set[SpecializedRole]:
            return {assign_role(phase, AgeGroup.ADULT, rng) for _ in range(400)}

        first = variety(DevelopmentPhase.FIRST_WORKERS)
        mature = variety(DevelopmentPhase.MATURE_COLONY)
        assert len(mature) > len(first)
        assert SpecializedRole.WASTE_MANAGER in mature
        assert SpecializedRole.WASTE_MANAGER not in first

    def test_adopt_sets_modifiers_and_role(self, rng: Generator) -> None:
        state = ColonyDevelopmentPhase(
            current_phase=DevelopmentPhase.FIRST_WORKERS,
            phase_conditions=PhaseConditions.for_phase(DevelopmentPhase.FIRST_WORKERS),
        )
        ant = Ant(position=Position(), age=50.0, max_age=60.0)
        adopt_ant(ant, state, rng)
        assert ant.age_group is AgeGroup.SENIOR
        assert ant.role is SpecializedRole.FORAGER
        assert ant.modifiers == state.modifiers

    def test_refresh_redraws_on_group_change(
        self,
        registry: EntityRegistry,
        rng: Generator,
    ) -> None:
        state = ColonyDevelopmentPhase(
            current_phase=DevelopmentPhase.FIRST_WORKERS,
            phase_conditions=PhaseConditions.for_phase(DevelopmentPhase.FIRST_WORKERS),
        )
        ant = Ant(position=Position(), age=10.0, max_age=60.0, age_group=AgeGroup.YOUNG)
        registry.add(ant)
        assert refresh_age_groups(registry, state, rng) == 0

        ant.age = 50.0
        assert refresh_age_groups(registry, state, rng) == 1
        assert ant.age_group is AgeGroup.SENIOR
        assert ant.role is SpecializedRole.FORAGER
