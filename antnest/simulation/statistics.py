"""Aggregate colony statistics for read-only consumers.

Computed from scratch on demand; nothing here feeds back into the
simulation.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from antnest.colony.ant import AgeGroup, AntState

if TYPE_CHECKING:
    from antnest.colony.development import ColonyDevelopmentPhase
    from antnest.disasters.state import DisasterState
    from antnest.simulation.registry import EntityRegistry


@dataclass
class ColonyStatistics:
    """A snapshot of colony-wide aggregates.

    Attributes:
        worker_count: Living workers (queen excluded).
        queen_count: 0 or 1.
        egg_count: Eggs incubating.
        invasive_count: Live invaders.
        nest_structures: Tunnels and chambers dug.
        state_counts: Workers per behaviour state name.
        age_groups: Workers per age group name.
        average_energy: Mean worker energy (0.0 with no workers).
        min_energy: Lowest worker energy.
        max_energy: Highest worker energy capacity.
        carrying_food: Workers carrying food.
        available_food_sources: Food sources ready to eat.
        total_food_nutrition: Nutrition across available sources.
        food_store: Food delivered to the nest.
        average_moisture: Mean soil moisture.
        average_temperature: Mean soil temperature.
        average_nutrition: Mean soil nutrition.
        active_disasters: Names of running disasters.
        reproductive_capacity: Queen fertility (0.0 with no queen).
        time_since_last_egg: Seconds since the queen's last egg.
        phase: Development phase name.
        phase_progress: Overall progress in the phase.
    """

    worker_count: int = 0
    queen_count: int = 0
    egg_count: int = 0
    invasive_count: int = 0
    nest_structures: int = 0
    state_counts: dict[str, int] = field(default_factory=dict)
    age_groups: dict[str, int] = field(default_factory=dict)
    average_energy: float = 0.0
    min_energy: float = 0.0
    max_energy: float = 0.0
    carrying_food: int = 0
    available_food_sources: int = 0
    total_food_nutrition: float = 0.0
    food_store: float = 0.0
    average_moisture: float = 0.0
    average_temperature: float = 0.0
    average_nutrition: float = 0.0
    active_disasters: list[str] = field(default_factory=list)
    reproductive_capacity: float = 0.0
    time_since_last_egg: float = 0.0
    phase: str = ""
    phase_progress: float = 0.0


def collect_statistics(
    registry: EntityRegistry,
    disasters: DisasterState,
    development: ColonyDevelopmentPhase,
) -> ColonyStatistics:
    """Compute a fresh ColonyStatistics from current state."""
    stats = ColonyStatistics(
        egg_count=len(registry.eggs),
        invasive_count=len(registry.invasive),
        nest_structures=registry.nest_complexity,
        food_store=registry.food_store,
        state_counts={s.name: 0 for s in AntState},
        age_groups={g.name: 0 for g in AgeGroup},
        active_disasters=sorted(k.display_name for k in disasters.active_disasters),
        phase=development.current_phase.display_name,
        phase_progress=development.phase_progress,
    )

    energies: list[float] = []
    for _, ant in registry.workers():
        energies.append(ant.energy)
        stats.max_energy = max(stats.max_energy, ant.max_energy)
        stats.state_counts[ant.state.name] += 1
        stats.age_groups[ant.age_group.name] += 1
        if ant.carried_food_value > 0:
            stats.carrying_food += 1
    stats.worker_count = len(energies)
    if energies:
        stats.average_energy = sum(energies) / len(energies)
        stats.min_energy = min(energies)

    queen = registry.queen()
    if queen is not None and queen.reproduction is not None:
        stats.queen_count = 1
        stats.reproductive_capacity = queen.reproduction.reproductive_capacity
        stats.time_since_last_egg = queen.reproduction.time_since_last_egg

    for food in registry.food_sources.values():
        if food.is_available:
            stats.available_food_sources += 1
            stats.total_food_nutrition += food.nutrition_value

    soil = list(registry.soil_cells.values())
    if soil:
        stats.average_moisture = sum(s.moisture for s in soil) / len(soil)
        stats.average_temperature = sum(s.temperature for s in soil) / len(soil)
        stats.average_nutrition = sum(s.nutrition for s in soil) / len(soil)
    return stats
