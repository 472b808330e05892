"""Config — load simulation parameters from YAML files.

All tunable constants (world bounds, ant physiology, reproduction
thresholds, disaster durations and effect rates) live in YAML and are
parsed into typed dataclasses here.  This keeps the simulation core
data-driven and easy to experiment with.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml


@dataclass
class DisasterSettings:
    """Timing for one disaster kind.

    Attributes:
        duration: Seconds the disaster stays active once triggered.
        cooldown: Seconds before the kind may be triggered again,
            counted from the trigger (it runs alongside the active
            window, not after it).
    """

    duration: float
    cooldown: float


def _default_disasters() -> dict[str, DisasterSettings]:
    return {
        "rain": DisasterSettings(duration=20.0, cooldown=5.0),
        "drought": DisasterSettings(duration=45.0, cooldown=8.0),
        "cold_snap": DisasterSettings(duration=30.0, cooldown=6.0),
        "invasive_species": DisasterSettings(duration=60.0, cooldown=10.0),
    }


@dataclass
class SimulationConfig:
    """Top-level simulation configuration.

    Range-valued settings are ``(low, high)`` tuples sampled uniformly.

    Attributes:
        seed: RNG seed for deterministic replay.
        tick_seconds: Wall-clock seconds per headless tick.
        seconds_per_day: Simulated seconds in one colony day.
        world_min: Lower-left corner of the world box.
        world_max: Upper-right corner of the world box.
        grid_cell_size: Spatial index bucket size in world units.
        soil_columns: Soil grid columns.
        soil_rows: Soil grid rows.
        soil_spacing: World units between soil samples.
        initial_food_sources: Food sources placed at start-up.
        food_spawn_radius: Food is placed within this distance of home.
        food_nutrition: Nutrition range for new food sources.
        food_regeneration_time: Regrowth time range for new sources.
        initial_ants: Workers spawned at start-up.
        ant_spawn_radius: Initial workers scatter this far from home.
        ant_speed_range: Base speed range for new workers.
        ant_max_age_range: Lifespan range (seconds) for new workers.
        ant_max_energy: Energy capacity of a worker.
        energy_drain_rate: Base energy lost per second.
        consumption_radius: How close a forager must be to eat.
        forage_target_range: Max offset of a random forage target.
        arrival_distance: Distance at which a target counts as reached.
        speed_band: ``(min, max)`` speed after phase modifiers.
        low_energy_fraction: Foragers below this share of max energy
            head home.
        rest_duration: Seconds a resting ant stays put.
        rest_energy_gain: Energy per second a resting ant may eat from
            the colony store.
        dig_chance: Per-second chance a nest maintainer near home digs.
        dig_duration: Seconds a dig takes at construction skill 1.0.
        home_radius: Distance from home that counts as "at the nest".
        max_nest_structures: Digging stops once the nest has this many.
        queen_speed: Queen base speed.
        queen_max_age: Queen lifespan before trait scaling.
        queen_max_energy: Queen energy capacity.
        egg_laying_interval: Seconds between eggs.
        queen_energy_threshold: Queen needs more energy than this to lay.
        capacity_threshold: Reproductive capacity needed to lay.
        crowding_population: At or above this population capacity is
            scaled by ``crowding_factor``.
        crowding_factor: Capacity multiplier when crowded.
        population_cap: No eggs are laid at or above this population.
        egg_offset: Max distance on each axis between queen and egg.
        incubation_range: Incubation time range for new eggs.
        trait_spread: Range colony traits are drawn from.
        disasters: Per-kind duration and cooldown, keyed by snake-case
            kind name.
        rain_moisture_rate: Moisture gained per second during rain.
        rain_speed_factor: Ant speed multiplier during rain.
        drought_moisture_rate: Moisture lost per second during drought.
        drought_nutrition_rate: Nutrition lost per second.
        drought_energy_drain: Extra ant energy lost per second.
        cold_temperature_rate: Degrees lost per second in a cold snap.
        cold_temperature_floor: Lowest temperature a cold snap reaches.
        cold_energy_drain: Extra ant energy lost per second.
        cold_speed_factor: Ant speed multiplier during a cold snap.
        invasive_cap: Max live invasive entities.
        invasive_spawn_rate: Spawn probability per second.
        invasive_lifetime: Lifetime range (seconds).
        invasive_consumption: Food eaten per second range.
        invasive_speed: Random-walk speed of invaders.
        invasive_feed_radius: Reach of an invader's grazing.
        invasive_regrowth_factor: Regrowth-time multiplier for sources
            grazed to nothing.
        defense_radius: Ants this close to an invader are stressed.
        defense_energy_drain: Extra energy lost per second when stressed.
        defense_rest_chance: Per-second chance a stressed forager rests.
        defense_return_boost: Speed multiplier for stressed returners.
        procedural_disasters: Trigger disasters at random if True.
        disaster_chance_per_second: Per-kind trigger chance per second.
    """

    seed: int = 42
    tick_seconds: float = 0.05
    seconds_per_day: float = 60.0

    # World
    world_min: tuple[float, float] = (-400.0, -300.0)
    world_max: tuple[float, float] = (400.0, 300.0)
    grid_cell_size: float = 16.0
    soil_columns: int = 40
    soil_rows: int = 30
    soil_spacing: float = 4.0
    initial_food_sources: int = 20
    food_spawn_radius: float = 150.0
    food_nutrition: tuple[float, float] = (20.0, 40.0)
    food_regeneration_time: tuple[float, float] = (20.0, 40.0)

    # Workers
    initial_ants: int = 10
    ant_spawn_radius: float = 20.0
    ant_speed_range: tuple[float, float] = (10.0, 20.0)
    ant_max_age_range: tuple[float, float] = (30.0, 60.0)
    ant_max_energy: float = 100.0
    energy_drain_rate: float = 2.0
    consumption_radius: float = 2.0
    forage_target_range: float = 50.0
    arrival_distance: float = 1.0
    speed_band: tuple[float, float] = (5.0, 50.0)
    low_energy_fraction: float = 0.2
    rest_duration: float = 5.0
    rest_energy_gain: float = 10.0
    dig_chance: float = 0.05
    dig_duration: float = 8.0
    home_radius: float = 10.0
    max_nest_structures: int = 40

    # Queen and brood
    queen_speed: float = 5.0
    queen_max_age: float = 300.0
    queen_max_energy: float = 200.0
    egg_laying_interval: float = 10.0
    queen_energy_threshold: float = 50.0
    capacity_threshold: float = 0.3
    crowding_population: int = 20
    crowding_factor: float = 0.3
    population_cap: int = 50
    egg_offset: float = 5.0
    incubation_range: tuple[float, float] = (8.0, 15.0)
    trait_spread: tuple[float, float] = (0.8, 1.2)

    # Disasters
    disasters: dict[str, DisasterSettings] = field(default_factory=_default_disasters)
    rain_moisture_rate: float = 0.8
    rain_speed_factor: float = 0.8
    drought_moisture_rate: float = 0.6
    drought_nutrition_rate: float = 0.1
    drought_energy_drain: float = 2.0
    cold_temperature_rate: float = 15.0
    cold_temperature_floor: float = 5.0
    cold_energy_drain: float = 3.0
    cold_speed_factor: float = 0.5
    invasive_cap: int = 15
    invasive_spawn_rate: float = 0.4
    invasive_lifetime: tuple[float, float] = (15.0, 25.0)
    invasive_consumption: tuple[float, float] = (2.0, 4.0)
    invasive_speed: float = 50.0
    invasive_feed_radius: float = 30.0
    invasive_regrowth_factor: float = 2.0
    defense_radius: float = 80.0
    defense_energy_drain: float = 1.5
    defense_rest_chance: float = 0.3
    defense_return_boost: float = 1.3
    procedural_disasters: bool = False
    disaster_chance_per_second: float = 0.005

    def __post_init__(self) -> None:
        if self.grid_cell_size <= 0:
            msg = f"grid_cell_size must be positive, got {self.grid_cell_size}"
            raise ValueError(msg)
        if self.speed_band[0] > self.speed_band[1]:
            msg = f"speed_band must be (min, max), got {self.speed_band}"
            raise ValueError(msg)

    @classmethod
    def from_yaml(cls, path: str | Path) -> SimulationConfig:
        """Load configuration from a YAML file.

        Keys missing from the file keep their defaults; unknown keys are
        ignored.  Two-element lists become tuples.

        Args:
            path: Path to the YAML config file.

        Returns:
            A populated SimulationConfig instance.

        Raises:
            FileNotFoundError: If the config file does not exist.
        """
        path = Path(path)
        with path.open("r") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SimulationConfig:
        """Build a config from a plain mapping (e.g. parsed YAML)."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            if key not in known or key == "disasters":
                continue
            kwargs[key] = tuple(value) if isinstance(value, list) else value

        disasters = _default_disasters()
        for name, timing in (data.get("disasters") or {}).items():
            base = disasters.get(name)
            if base is None or not isinstance(timing, dict):
                continue
            disasters[name] = replace(
                base,
                duration=float(timing.get("duration", base.duration)),
                cooldown=float(timing.get("cooldown", base.cooldown)),
            )
        kwargs["disasters"] = disasters
        return cls(**kwargs)
