"""Disaster timers and their per-tick effects.

Effects are continuous, not one-shot: for as long as a disaster is
active its effect is reapplied every tick, scaled by ``dt``.

- RAIN: soil moisture rises; ants slow down.
- DROUGHT: soil moisture and nutrition fall; ants burn extra energy.
- COLD_SNAP: soil temperature falls to a floor; ants burn more extra
  energy than in a drought and slow down further than in rain.
- INVASIVE_SPECIES: handled by ``antnest.disasters.invasive``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from antnest.disasters.state import DisasterState, DisasterType

if TYPE_CHECKING:
    from numpy.random import Generator

    from antnest.simulation.config import SimulationConfig
    from antnest.simulation.registry import EntityRegistry

logger = logging.getLogger(__name__)


def trigger_disaster(
    state: DisasterState,
    kind: DisasterType,
    config: SimulationConfig,
) -> bool:
    """Start ``kind`` with its configured duration and cooldown.

    A kind that is active or cooling down is left alone.

    Returns:
        True if the disaster started.
    """
    timing = config.disasters[kind.value]
    if state.is_active(kind):
        logger.warning("%s is already active", kind.display_name)
        return False
    if state.is_on_cooldown(kind):
        logger.warning(
            "%s is on cooldown (%.1fs left)",
            kind.display_name,
            state.cooldown(kind),
        )
        return False
    started = state.start(kind, timing.duration, timing.cooldown)
    if started:
        logger.info(
            "%s disaster started! Duration: %.0f seconds",
            kind.display_name,
            timing.duration,
        )
    return started


def trigger_random_disasters(
    state: DisasterState,
    config: SimulationConfig,
    dt: float,
    rng: Generator,
) -> list[DisasterType]:
    """Roll for procedural disasters, one independent roll per kind.

    Procedural triggers pass through the same active/cooldown gate as
    manual ones.

    Returns:
        Kinds started by this call.
    """
    if not config.procedural_disasters or dt <= 0:
        return []
    started: list[DisasterType] = []
    chance = config.disaster_chance_per_second * dt
    for kind in DisasterType:
        if state.can_trigger(kind) and rng.random() < chance:
            if trigger_disaster(state, kind, config):
                started.append(kind)
    return started


def update_disaster_timers(state: DisasterState, dt: float) -> list[DisasterType]:
    """Advance active and cooldown timers.

    Returns:
        Kinds that ended this tick.
    """
    ended = state.advance(dt)
    for kind in ended:
        logger.info("%s disaster has ended", kind.display_name)
    return ended


def apply_disaster_effects(
    state: DisasterState,
    registry: EntityRegistry,
    config: SimulationConfig,
    dt: float,
) -> None:
    """Apply one tick of every active disaster's environmental effect.

    Args:
        state: Current disaster timers.
        registry: Source of soil cells and ants to mutate.
        config: Effect rates.
        dt: Effective delta time in seconds.
    """
    if dt <= 0 or not state.active_disasters:
        return

    rain = state.is_active(DisasterType.RAIN)
    drought = state.is_active(DisasterType.DROUGHT)
    cold = state.is_active(DisasterType.COLD_SNAP)

    if rain or drought or cold:
        for soil in registry.soil_cells.values():
            if rain:
                soil.moisture = min(1.0, soil.moisture + config.rain_moisture_rate * dt)
            if drought:
                soil.moisture = max(
                    0.0,
                    soil.moisture - config.drought_moisture_rate * dt,
                )
                soil.nutrition = max(
                    0.0,
                    soil.nutrition - config.drought_nutrition_rate * dt,
                )
            if cold:
                soil.temperature = max(
                    config.cold_temperature_floor,
                    soil.temperature - config.cold_temperature_rate * dt,
                )

    extra_drain = 0.0
    if drought:
        extra_drain += config.drought_energy_drain
    if cold:
        extra_drain += config.cold_energy_drain
    if extra_drain > 0:
        for ant in registry.ants.values():
            ant.drain_energy(extra_drain * dt)


def movement_speed_modifier(state: DisasterState, config: SimulationConfig) -> float:
    """Multiplicative speed factor from the weather.

    Rain and a cold snap stack: both together give ``0.8 * 0.5``.
    """
    modifier = 1.0
    if state.is_active(DisasterType.RAIN):
        modifier *= config.rain_speed_factor
    if state.is_active(DisasterType.COLD_SNAP):
        modifier *= config.cold_speed_factor
    return modifier
