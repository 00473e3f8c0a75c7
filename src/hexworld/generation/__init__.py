"""Procedural map generation package.

Layered-noise terrain, downhill rivers, rule-based location placement and
validation-driven retries.
"""

from .batch import BatchReport, run_batch
from .config import MapConfig
from .generator import GenerationState, MapGenerator
from .locations import Location, LocationPlacer
from .persistence import LoadedMap, load_map, save_map
from .rivers import River, RiverGenerator
from .terrain import TerrainGenerator
from .validation import MapValidator, ValidationResult

__all__ = [
    "BatchReport",
    "GenerationState",
    "LoadedMap",
    "Location",
    "LocationPlacer",
    "MapConfig",
    "MapGenerator",
    "MapValidator",
    "River",
    "RiverGenerator",
    "TerrainGenerator",
    "ValidationResult",
    "load_map",
    "run_batch",
    "save_map",
]
