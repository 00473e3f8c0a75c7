"""Map persistence: JSON documents for grids, rivers and locations."""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import structlog

from ..exceptions import MapFormatError
from ..grid import WorldGrid
from ..types import AxialCoord
from .locations import Location
from .rivers import River, stamp_river

logger = structlog.get_logger()

FORMAT_VERSION = 1


@dataclass
class LoadedMap:
    """A map rehydrated from its serialized form."""

    grid: WorldGrid
    rivers: list[River]
    locations: list[Location]
    metadata: dict[str, Any] = field(default_factory=dict)


def _coord_to_list(coord: AxialCoord) -> list[int]:
    return [coord.q, coord.r]


def _coord_from_list(value: Any) -> AxialCoord:
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        raise MapFormatError(f"Invalid coordinate: {value!r}")
    return AxialCoord(q=int(value[0]), r=int(value[1]))


def map_to_dict(
    grid: WorldGrid,
    rivers: list[River],
    locations: list[Location],
    seed: int | None = None,
) -> dict[str, Any]:
    """Convert a map to a JSON-serializable document."""
    cells = [
        {
            "coords": _coord_to_list(cell.coords),
            "elevation": cell.elevation,
            "moisture": cell.moisture,
            "terrain_type": cell.terrain_type,
            "has_river": cell.has_river,
            "river_flow": _coord_to_list(cell.river_flow),
        }
        for cell in grid.cells()
    ]

    rivers_data = [
        {
            "id": river.id,
            "source": _coord_to_list(river.source),
            "path": [_coord_to_list(c) for c in river.path],
            "length": river.length,
            "reaches_water": river.reaches_water,
            "merged_with": sorted(river.merged_with),
        }
        for river in rivers
    ]

    locations_data = [
        {
            "id": loc.id,
            "type": loc.type,
            "name": loc.name,
            "coords": _coord_to_list(loc.coords),
            "properties": dict(loc.properties),
        }
        for loc in locations
    ]

    metadata = {
        "version": FORMAT_VERSION,
        "seed": seed,
        "width": grid.width,
        "height": grid.height,
        "hex_size": grid.hex_size,
        "generated_at": datetime.now(timezone.utc).isoformat(),
    }

    return {
        "metadata": metadata,
        "cells": cells,
        "rivers": rivers_data,
        "locations": locations_data,
    }


def map_from_dict(data: dict[str, Any]) -> LoadedMap:
    """Rehydrate a map document.

    The grid is rebuilt from its dimensions and cell records are applied on
    top. River flags and location back-references are re-derived from the
    river and location lists. References to coordinates outside the grid are
    kept on the records so validation can report them.

    Raises:
        MapFormatError: If the document is structurally invalid.
    """
    try:
        metadata = data["metadata"]
        width = int(metadata["width"])
        height = int(metadata["height"])
        hex_size = float(metadata.get("hex_size", 1.0))
    except (KeyError, TypeError, ValueError) as e:
        raise MapFormatError(f"Invalid map metadata: {e}") from e

    grid = WorldGrid.create(width, height, hex_size=hex_size)

    try:
        skipped = 0
        for record in data.get("cells", []):
            coord = _coord_from_list(record["coords"])
            cell = grid.get_cell(coord)
            if cell is None:
                skipped += 1
                continue
            cell.elevation = float(record["elevation"])
            cell.moisture = float(record["moisture"])
            cell.terrain_type = str(record["terrain_type"])
            cell.has_river = bool(record.get("has_river", False))
            cell.river_flow = _coord_from_list(record.get("river_flow", [0, 0]))

        rivers = [
            River(
                id=int(r["id"]),
                source=_coord_from_list(r["source"]),
                path=tuple(_coord_from_list(c) for c in r["path"]),
                length=int(r.get("length", len(r["path"]))),
                reaches_water=bool(r["reaches_water"]),
                merged_with=frozenset(int(m) for m in r.get("merged_with", [])),
            )
            for r in data.get("rivers", [])
        ]

        locations = [
            Location(
                id=int(loc["id"]) if "id" in loc else i,
                type=str(loc["type"]),
                name=str(loc["name"]),
                coords=_coord_from_list(loc["coords"]),
                properties=dict(loc.get("properties", {})),
            )
            for i, loc in enumerate(data.get("locations", []))
        ]
    except (KeyError, TypeError, ValueError) as e:
        if isinstance(e, MapFormatError):
            raise
        raise MapFormatError(f"Invalid map record: {e}") from e

    for river in rivers:
        stamp_river(grid, river)

    for loc in locations:
        cell = grid.get_cell(loc.coords)
        if cell is not None:
            cell.location = loc.id

    if skipped:
        logger.warning("map_cells_outside_grid", skipped=skipped)

    return LoadedMap(grid=grid, rivers=rivers, locations=locations, metadata=dict(metadata))


def save_map(
    path: Path,
    grid: WorldGrid,
    rivers: list[River],
    locations: list[Location],
    seed: int | None = None,
) -> None:
    """Save a generated map as JSON.

    Args:
        path: Output path (should end with .json).
        grid: Map cells.
        rivers: Traced rivers.
        locations: Placed locations.
        seed: Seed the map was generated from, recorded in metadata.
    """
    document = map_to_dict(grid, rivers, locations, seed=seed)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")

    file_size = path.stat().st_size / 1024
    logger.info("map_saved", path=str(path), size_kb=round(file_size, 1))


def load_map(path: Path) -> LoadedMap:
    """Load a map from disk.

    Raises:
        FileNotFoundError: If file doesn't exist.
        MapFormatError: If file format is invalid.
    """
    if not path.exists():
        raise FileNotFoundError(f"Map file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise MapFormatError(f"Invalid map file {path}: {e}") from e

    loaded = map_from_dict(data)
    logger.info(
        "map_loaded",
        path=str(path),
        width=loaded.grid.width,
        height=loaded.grid.height,
        rivers=len(loaded.rivers),
        locations=len(loaded.locations),
    )
    return loaded
