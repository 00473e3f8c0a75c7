"""World grid: the single source of truth for cell data."""

from dataclasses import dataclass, field
from typing import Iterator

import numpy as np
from pydantic import BaseModel, PrivateAttr

from . import hexmath
from .terrain_types import TerrainType
from .types import AXIAL_ZERO, AxialCoord, OffsetCoord


@dataclass
class Cell:
    """Mutable per-hex record.

    Terrain generation fills elevation/moisture/terrain_type, river
    generation sets has_river/river_flow, location placement sets location.
    ``location`` is a lookup-only back-reference (a location id).
    """

    coords: AxialCoord
    terrain_type: str = TerrainType.PLAINS.value
    elevation: float = 0.0
    moisture: float = 0.0
    has_river: bool = False
    river_flow: AxialCoord = field(default=AXIAL_ZERO)
    location: int | None = None


class WorldGrid(BaseModel):
    """
    Mutable container mapping axial coordinates to cells.

    Cells are created for every offset coordinate of a width x height
    rectangle. The grid is rebuilt, never patched, between generation
    attempts.
    """

    width: int
    height: int
    hex_size: float = 1.0

    _cells: dict[AxialCoord, Cell] = PrivateAttr(default_factory=dict)

    @classmethod
    def create(
        cls,
        width: int,
        height: int,
        hex_size: float = 1.0,
        default_terrain: str = TerrainType.PLAINS.value,
    ) -> "WorldGrid":
        """Create a grid populated with default cells.

        Cells are inserted in raster order (rows outer, columns inner), which
        fixes iteration order for everything downstream.

        Args:
            width: Number of columns.
            height: Number of rows.
            hex_size: Hex radius in pixels, used by rendering collaborators.
            default_terrain: Terrain assigned to every new cell.

        Returns:
            A fully populated WorldGrid.
        """
        grid = cls(width=width, height=height, hex_size=hex_size)
        grid.populate(default_terrain)
        return grid

    def populate(self, default_terrain: str = TerrainType.PLAINS.value) -> None:
        """(Re)fill the grid with default cells."""
        self._cells.clear()
        for row in range(self.height):
            for col in range(self.width):
                coord = hexmath.offset_to_axial(OffsetCoord(col=col, row=row))
                self._cells[coord] = Cell(coords=coord, terrain_type=default_terrain)

    def clear(self) -> None:
        """Discard every cell."""
        self._cells.clear()

    def clear_rivers(self) -> None:
        """Reset river flags and flow vectors on every cell."""
        for cell in self._cells.values():
            cell.has_river = False
            cell.river_flow = AXIAL_ZERO

    def clear_locations(self) -> None:
        """Drop every cell's location back-reference."""
        for cell in self._cells.values():
            cell.location = None

    # --- Cell access ---

    def get_cell(self, coord: AxialCoord) -> Cell | None:
        """Cell at coord, or None when coord is not part of the grid."""
        return self._cells.get(coord)

    def is_valid(self, coord: AxialCoord) -> bool:
        return coord in self._cells

    def in_bounds(self, offset: OffsetCoord) -> bool:
        """Check if an offset coordinate lies inside the rectangle."""
        return 0 <= offset.col < self.width and 0 <= offset.row < self.height

    def neighbors(self, coord: AxialCoord) -> list[Cell]:
        """In-grid neighbour cells, in HexDirection order."""
        cells = []
        for n in hexmath.neighbors(coord):
            cell = self._cells.get(n)
            if cell is not None:
                cells.append(cell)
        return cells

    def cells(self) -> Iterator[Cell]:
        """Iterate cells in raster order."""
        return iter(self._cells.values())

    def coords(self) -> list[AxialCoord]:
        return list(self._cells.keys())

    def __len__(self) -> int:
        return len(self._cells)

    def __contains__(self, coord: object) -> bool:
        return coord in self._cells

    # --- Aggregate queries ---

    def terrain_statistics(self) -> dict[str, int]:
        """Count of cells per terrain type."""
        counts: dict[str, int] = {}
        for cell in self._cells.values():
            counts[cell.terrain_type] = counts.get(cell.terrain_type, 0) + 1
        return counts

    def average_elevation(self) -> float:
        if not self._cells:
            return 0.0
        return float(np.mean([c.elevation for c in self._cells.values()]))

    def average_moisture(self) -> float:
        if not self._cells:
            return 0.0
        return float(np.mean([c.moisture for c in self._cells.values()]))

    def cells_by_elevation(self, min_elevation: float, max_elevation: float) -> list[Cell]:
        """Cells whose elevation lies in [min_elevation, max_elevation]."""
        return [
            c
            for c in self._cells.values()
            if min_elevation <= c.elevation <= max_elevation
        ]

    def cells_by_terrain(self, terrain_type: str) -> list[Cell]:
        return [c for c in self._cells.values() if c.terrain_type == terrain_type]

    def river_cells(self) -> list[Cell]:
        return [c for c in self._cells.values() if c.has_river]

    def location_cells(self) -> list[Cell]:
        return [c for c in self._cells.values() if c.location is not None]
