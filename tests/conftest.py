"""Shared test fixtures for hexworld tests."""

from typing import Callable

import pytest

from hexworld.generation.config import (
    LocationConfig,
    MapConfig,
    RiverConfig,
    default_location_types,
)
from hexworld.grid import WorldGrid


@pytest.fixture
def grid_factory() -> Callable[..., WorldGrid]:
    """Build a grid with every cell set to one elevation, moisture and terrain."""

    def make(
        width: int = 5,
        height: int = 5,
        elevation: float = 0.5,
        moisture: float = 0.5,
        terrain: str = "plains",
    ) -> WorldGrid:
        grid = WorldGrid.create(width, height)
        for cell in grid.cells():
            cell.elevation = elevation
            cell.moisture = moisture
            cell.terrain_type = terrain
        return grid

    return make


@pytest.fixture
def flat_grid(grid_factory) -> WorldGrid:
    """6x6 grid of plains at elevation 0.5."""
    return grid_factory(6, 6)


@pytest.fixture
def small_config() -> MapConfig:
    """Default rules on a 10x10 map."""
    return MapConfig(width=10, height=10)


@pytest.fixture
def impossible_town_config() -> MapConfig:
    """4x4 map whose towns can never be placed.

    Towns need a terrain that no cell has and at least five of them, rivers
    are disabled, and every other type keeps a minimum of zero.
    """
    types = default_location_types()
    types["town"] = types["town"].model_copy(
        update={"terrain": ["nonexistent"], "min_count": 5, "max_count": 5}
    )
    return MapConfig(
        width=4,
        height=4,
        rivers=RiverConfig(min_rivers=0, max_rivers=0),
        locations=LocationConfig(types=types),
    )
