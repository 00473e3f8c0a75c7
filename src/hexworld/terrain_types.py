"""Built-in terrain types and their default groupings.

Cells store terrain as plain strings so configurations can add their own
types; the names here are the ones the default configuration uses.
"""

from enum import Enum


class TerrainType(str, Enum):
    """Terrain types used by the default frontier configuration."""

    DEEP_WATER = "deep_water"
    WATER = "water"
    DESERT = "desert"
    PLAINS = "plains"
    GRASSLAND = "grassland"
    FOREST = "forest"
    HILLS = "hills"
    MOUNTAIN = "mountain"
    PEAK = "peak"


WATER_TERRAINS: tuple[str, ...] = (TerrainType.DEEP_WATER.value, TerrainType.WATER.value)
MOUNTAIN_TERRAINS: tuple[str, ...] = (TerrainType.MOUNTAIN.value, TerrainType.PEAK.value)
IMPASSABLE_TERRAINS: tuple[str, ...] = (
    TerrainType.DEEP_WATER.value,
    TerrainType.WATER.value,
    TerrainType.PEAK.value,
)
LOWLAND_TERRAINS: tuple[str, ...] = (TerrainType.PLAINS.value, TerrainType.GRASSLAND.value)
