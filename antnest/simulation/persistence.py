"""Persistence — snapshot encoding and save-file I/O.

A snapshot is a tree of plain Python values (dicts, lists, strings,
numbers, None) holding every entity field plus the clock, disaster, and
development singletons, so it can be written with ``yaml.safe_dump``.
Entities keep their registry ids; relationships between records are
never stored, so each record restores on its own.

Everything that can go wrong while reading a snapshot is reported as
``PersistenceError``.  Decoding builds brand-new objects and touches no
live state, which lets the engine validate a snapshot completely before
it swaps anything in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import yaml

from antnest.colony.ant import (
    AgeGroup,
    Ant,
    AntState,
    Egg,
    NestStructure,
    ReproductionState,
    SpecializedRole,
    StructureKind,
)
from antnest.colony.development import (
    ColonyDevelopmentPhase,
    DevelopmentPhase,
    PhaseConditions,
)
from antnest.colony.traits import BehaviorModifiers, ColonyTraits
from antnest.disasters.invasive import InvasiveSpecies
from antnest.disasters.state import DisasterState, DisasterType
from antnest.simulation.clock import SimulationClock
from antnest.world.food import FoodSource
from antnest.world.position import Position
from antnest.world.soil import SoilCell

logger = logging.getLogger(__name__)

SNAPSHOT_VERSION = 1


class PersistenceError(Exception):
    """A snapshot could not be written, read, or understood."""


@dataclass
class DecodedSnapshot:
    """Fresh objects rebuilt from a snapshot, not yet attached to an engine."""

    tick: int
    next_id: int
    home: Position
    food_store: float
    clock: SimulationClock
    disasters: DisasterState
    development: ColonyDevelopmentPhase
    entities: list[tuple[int, Any]] = field(default_factory=list)


# -- Encoding ------------------------------------------------------------------


def _xy(position: Position | None) -> list[float] | None:
    return None if position is None else [position.x, position.y]


def encode_ant(ant: Ant) -> dict[str, Any]:
    reproduction = ant.reproduction
    return {
        "position": _xy(ant.position),
        "state": ant.state.name,
        "target": _xy(ant.target),
        "speed": ant.speed,
        "age": ant.age,
        "max_age": ant.max_age,
        "energy": ant.energy,
        "max_energy": ant.max_energy,
        "carried_food_value": ant.carried_food_value,
        "home_position": _xy(ant.home_position),
        "age_group": ant.age_group.name,
        "role": ant.role.name,
        "modifiers": vars(ant.modifiers).copy(),
        "state_timer": ant.state_timer,
        "reproduction": None if reproduction is None else vars(reproduction).copy(),
    }


def encode_state(
    *,
    tick: int,
    next_id: int,
    home: Position,
    food_store: float,
    clock: SimulationClock,
    disasters: DisasterState,
    development: ColonyDevelopmentPhase,
    ants: dict[int, Ant],
    eggs: dict[int, Egg],
    food_sources: dict[int, FoodSource],
    soil_cells: dict[int, SoilCell],
    invasive: dict[int, InvasiveSpecies],
    structures: dict[int, NestStructure],
) -> dict[str, Any]:
    """Encode a full simulation state as plain data."""
    return {
        "version": SNAPSHOT_VERSION,
        "metadata": {
            "saved_at": datetime.now(timezone.utc).isoformat(),
            "colony_day": clock.current_day,
            "population": len(ants),
        },
        "tick": tick,
        "next_id": next_id,
        "home": _xy(home),
        "food_store": food_store,
        "clock": {
            "elapsed": clock.elapsed,
            "runtime": clock.runtime,
            "speed_multiplier": clock.speed_multiplier,
            "is_paused": clock.is_paused,
            "seconds_per_day": clock.seconds_per_day,
        },
        "disasters": {
            "active": {k.value: v for k, v in disasters.active_disasters.items()},
            "cooldowns": {k.value: v for k, v in disasters.cooldown_timers.items()},
        },
        "development": {
            "current_phase": development.current_phase.name,
            "time_in_phase": development.time_in_phase,
            "phase_progress": development.phase_progress,
            "phase_conditions": vars(development.phase_conditions).copy(),
            "colony_traits": vars(development.colony_traits).copy(),
        },
        "ants": [{"id": i, **encode_ant(a)} for i, a in ants.items()],
        "eggs": [
            {"id": i, "position": _xy(e.position), "incubation_time": e.incubation_time}
            for i, e in eggs.items()
        ],
        "food_sources": [
            {
                "id": i,
                "position": _xy(f.position),
                "nutrition_value": f.nutrition_value,
                "is_available": f.is_available,
                "regeneration_timer": f.regeneration_timer,
                "regeneration_time": f.regeneration_time,
                "max_nutrition": f.max_nutrition,
            }
            for i, f in food_sources.items()
        ],
        "soil_cells": [
            {
                "id": i,
                "position": _xy(s.position),
                "moisture": s.moisture,
                "temperature": s.temperature,
                "nutrition": s.nutrition,
            }
            for i, s in soil_cells.items()
        ],
        "invasive": [
            {
                "id": i,
                "position": _xy(v.position),
                "lifetime": v.lifetime,
                "food_consumption_rate": v.food_consumption_rate,
            }
            for i, v in invasive.items()
        ],
        "structures": [
            {"id": i, "position": _xy(s.position), "kind": s.kind.name}
            for i, s in structures.items()
        ],
    }


# -- Decoding ------------------------------------------------------------------


def _position(value: Any) -> Position:
    x, y = value
    return Position(float(x), float(y))


def _optional_position(value: Any) -> Position | None:
    return None if value is None else _position(value)


def decode_ant(data: dict[str, Any]) -> Ant:
    reproduction = data.get("reproduction")
    return Ant(
        position=_position(data["position"]),
        state=AntState[data["state"]],
        target=_optional_position(data.get("target")),
        speed=float(data["speed"]),
        age=float(data["age"]),
        max_age=float(data["max_age"]),
        energy=float(data["energy"]),
        max_energy=float(data["max_energy"]),
        carried_food_value=float(data.get("carried_food_value", 0.0)),
        home_position=_position(data["home_position"]),
        reproduction=None
        if reproduction is None
        else ReproductionState(**{k: float(v) for k, v in reproduction.items()}),
        age_group=AgeGroup[data.get("age_group", "YOUNG")],
        role=SpecializedRole[data.get("role", "GENERAL_WORKER")],
        modifiers=BehaviorModifiers(**data.get("modifiers", {})),
        state_timer=float(data.get("state_timer", 0.0)),
    )


def decode_state(data: Any) -> DecodedSnapshot:
    """Rebuild fresh state objects from an encoded snapshot.

    Raises:
        PersistenceError: If the data is not a snapshot this version
            understands.
    """
    if not isinstance(data, dict):
        msg = "snapshot must be a mapping"
        raise PersistenceError(msg)
    version = data.get("version")
    if version != SNAPSHOT_VERSION:
        msg = f"unsupported snapshot version {version!r}"
        raise PersistenceError(msg)

    try:
        clock_data = data["clock"]
        clock = SimulationClock(
            speed_multiplier=float(clock_data["speed_multiplier"]),
            is_paused=bool(clock_data["is_paused"]),
            seconds_per_day=float(clock_data["seconds_per_day"]),
            elapsed=float(clock_data["elapsed"]),
            runtime=float(clock_data.get("runtime", 0.0)),
        )

        disaster_data = data["disasters"]
        disasters = DisasterState(
            active_disasters={
                DisasterType(k): float(v)
                for k, v in disaster_data["active"].items()
                if float(v) > 0
            },
            cooldown_timers={
                DisasterType(k): max(0.0, float(v))
                for k, v in disaster_data["cooldowns"].items()
            },
        )

        dev = data["development"]
        development = ColonyDevelopmentPhase(
            current_phase=DevelopmentPhase[dev["current_phase"]],
            time_in_phase=float(dev["time_in_phase"]),
            phase_progress=float(dev["phase_progress"]),
            phase_conditions=PhaseConditions(
                **{k: float(v) for k, v in dev["phase_conditions"].items()},
            ),
            colony_traits=ColonyTraits(
                **{k: float(v) for k, v in dev["colony_traits"].items()},
            ),
        )

        entities: list[tuple[int, Any]] = []
        for item in data["ants"]:
            entities.append((int(item["id"]), decode_ant(item)))
        for item in data["eggs"]:
            entities.append(
                (
                    int(item["id"]),
                    Egg(
                        position=_position(item["position"]),
                        incubation_time=float(item["incubation_time"]),
                    ),
                ),
            )
        for item in data["food_sources"]:
            entities.append(
                (
                    int(item["id"]),
                    FoodSource(
                        position=_position(item["position"]),
                        nutrition_value=float(item["nutrition_value"]),
                        is_available=bool(item["is_available"]),
                        regeneration_timer=float(item["regeneration_timer"]),
                        regeneration_time=float(item["regeneration_time"]),
                        max_nutrition=float(item.get("max_nutrition", -1.0)),
                    ),
                ),
            )
        for item in data["soil_cells"]:
            entities.append(
                (
                    int(item["id"]),
                    SoilCell(
                        position=_position(item["position"]),
                        moisture=float(item["moisture"]),
                        temperature=float(item["temperature"]),
                        nutrition=float(item["nutrition"]),
                    ),
                ),
            )
        for item in data["invasive"]:
            entities.append(
                (
                    int(item["id"]),
                    InvasiveSpecies(
                        position=_position(item["position"]),
                        lifetime=float(item["lifetime"]),
                        food_consumption_rate=float(item["food_consumption_rate"]),
                    ),
                ),
            )
        for item in data.get("structures", []):
            entities.append(
                (
                    int(item["id"]),
                    NestStructure(
                        position=_position(item["position"]),
                        kind=StructureKind[item["kind"]],
                    ),
                ),
            )

        ids = [entity_id for entity_id, _ in entities]
        if len(ids) != len(set(ids)):
            msg = "snapshot contains duplicate entity ids"
            raise PersistenceError(msg)

        return DecodedSnapshot(
            tick=int(data["tick"]),
            next_id=int(data["next_id"]),
            home=_position(data["home"]),
            food_store=float(data["food_store"]),
            clock=clock,
            disasters=disasters,
            development=development,
            entities=entities,
        )
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"malformed snapshot: {exc!r}"
        raise PersistenceError(msg) from exc


# -- Files ---------------------------------------------------------------------


def save_snapshot(snapshot: dict[str, Any], path: str | Path) -> Path:
    """Write ``snapshot`` to ``path`` as YAML.

    The file is written to a temporary sibling first and renamed into
    place, so a failed save never clobbers an existing good file.

    Raises:
        PersistenceError: If the file cannot be written.
    """
    path = Path(path)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with tmp.open("w") as f:
            yaml.safe_dump(snapshot, f, sort_keys=False)
        tmp.replace(path)
    except (OSError, yaml.YAMLError) as exc:
        tmp.unlink(missing_ok=True)
        msg = f"failed to write save file {path}: {exc}"
        raise PersistenceError(msg) from exc
    logger.info("Saved snapshot to %s", path)
    return path


def load_snapshot(path: str | Path) -> dict[str, Any]:
    """Read a YAML snapshot from ``path``.

    Raises:
        PersistenceError: If the file is missing, unreadable, or not
            valid YAML.
    """
    path = Path(path)
    try:
        with path.open("r") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as exc:
        msg = f"failed to read save file {path}: {exc}"
        raise PersistenceError(msg) from exc
    if not isinstance(data, dict):
        msg = f"save file {path} does not contain a snapshot"
        raise PersistenceError(msg)
    return data
