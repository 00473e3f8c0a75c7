"""Procedural hex world maps.

Hex grid math and map storage live at the top level; terrain, river and
location generation live in :mod:`hexworld.generation`.
"""

from .config import find_config, list_configs, load_config
from .exceptions import ConfigNotFoundError, HexWorldError, MapFormatError
from .grid import Cell, WorldGrid
from .terrain_types import TerrainType
from .types import AXIAL_ZERO, DIRECTION_DELTAS, AxialCoord, CubeCoord, HexDirection, OffsetCoord

__all__ = [
    # Types
    "AxialCoord",
    "CubeCoord",
    "OffsetCoord",
    "HexDirection",
    "DIRECTION_DELTAS",
    "AXIAL_ZERO",
    "TerrainType",
    # Grid
    "Cell",
    "WorldGrid",
    # Config
    "load_config",
    "find_config",
    "list_configs",
    # Exceptions
    "HexWorldError",
    "MapFormatError",
    "ConfigNotFoundError",
]
