"""Shared fixtures for the antnest test suite."""

from __future__ import annotations

import numpy as np
import pytest
from numpy.random import Generator

from antnest.simulation.config import SimulationConfig
from antnest.simulation.engine import SimulationEngine
from antnest.simulation.registry import EntityRegistry
from antnest.world.position import Position
from antnest.world.soil import SoilCell
from antnest.world.spatial_index import SpatialIndex


@pytest.fixture
def rng() -> Generator:
    """A deterministic random generator for reproducible tests."""
    return np.random.default_rng(seed=12345)


@pytest.fixture
def default_config() -> SimulationConfig:
    """Default simulation config (no YAML file needed)."""
    return SimulationConfig()


@pytest.fixture
def registry(default_config: SimulationConfig) -> EntityRegistry:
    """An empty registry with a 16-unit spatial grid and home at the origin."""
    index = SpatialIndex(
        cell_size=default_config.grid_cell_size,
        origin=Position(*default_config.world_min),
    )
    return EntityRegistry(spatial_index=index, home=Position())


@pytest.fixture
def fertile_registry(registry: EntityRegistry) -> EntityRegistry:
    """A registry whose soil has a stable nutrition of 0.8."""
    for x in range(4):
        registry.add(
            SoilCell(position=Position(x * 4.0, 0.0), nutrition=0.8),
        )
    return registry


@pytest.fixture
def engine(default_config: SimulationConfig) -> SimulationEngine:
    """A fresh engine with world built but no colony founded."""
    return SimulationEngine(config=default_config)


@pytest.fixture
def colony_engine(engine: SimulationEngine) -> SimulationEngine:
    """An engine with a queen and the initial workers."""
    engine.found_colony()
    return engine
