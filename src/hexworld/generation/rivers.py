"""Rivers: source selection, greedy downhill tracing and confluences."""

from dataclasses import dataclass, field

import numpy as np
import structlog

from .. import hexmath
from ..grid import WorldGrid
from ..types import AXIAL_ZERO, AxialCoord
from .config import RiverConfig, TerrainConfig

logger = structlog.get_logger()


@dataclass(frozen=True)
class River:
    """A traced river, immutable once accepted."""

    id: int
    source: AxialCoord
    path: tuple[AxialCoord, ...]
    length: int
    reaches_water: bool
    merged_with: frozenset[int] = field(default_factory=frozenset)

    @property
    def mouth(self) -> AxialCoord:
        return self.path[-1]


def stamp_river(
    grid: WorldGrid,
    river: River,
    river_index: dict[AxialCoord, int] | None = None,
) -> None:
    """Mark a river's path on the grid.

    Each path cell gets ``has_river`` and a flow vector pointing at the next
    path cell (zero at the terminus). Cells already carrying a river keep
    their flow, so a confluence cell still points down the first river.
    Coordinates missing from the grid are skipped.

    Args:
        grid: Grid to mark.
        river: River to stamp.
        river_index: Optional coord -> river id map updated alongside.
    """
    path = river.path
    for i, coord in enumerate(path):
        cell = grid.get_cell(coord)
        if cell is None:
            continue
        if river_index is not None:
            river_index.setdefault(coord, river.id)
        if cell.has_river:
            continue
        cell.has_river = True
        if i + 1 < len(path):
            cell.river_flow = hexmath.direction_to(coord, path[i + 1])
        else:
            cell.river_flow = AXIAL_ZERO


class RiverGenerator:
    """Traces rivers from highland sources down to water."""

    def __init__(self, config: RiverConfig, terrain: TerrainConfig):
        self.config = config
        self.terrain = terrain

    def generate(self, grid: WorldGrid, seed: int) -> list[River]:
        """Trace and stamp rivers onto the grid.

        A target count is drawn from [min_rivers, max_rivers]; sources are
        tried in shuffled order (reshuffled when exhausted) until the target
        is met or ``max_attempts_per_river * target`` attempts are spent.

        Args:
            grid: Grid with terrain already generated.
            seed: Generation seed; the RNG uses ``seed + seed_offset``.

        Returns:
            Accepted rivers in acceptance order. May be shorter than the
            target, or empty when no source exists.
        """
        config = self.config
        rng = np.random.default_rng(seed + config.seed_offset)
        target = int(rng.integers(config.min_rivers, config.max_rivers, endpoint=True))

        candidates = self.find_sources(grid)
        if not candidates:
            logger.warning("no_river_sources", seed=seed, target=target)
            return []

        order = list(candidates)
        rng.shuffle(order)

        rivers: list[River] = []
        river_index: dict[AxialCoord, int] = {}
        max_attempts = config.max_attempts_per_river * target
        attempts = 0
        cursor = 0

        while len(rivers) < target and attempts < max_attempts:
            if cursor >= len(order):
                rng.shuffle(order)
                cursor = 0
            source = order[cursor]
            cursor += 1
            attempts += 1

            if source in river_index:
                continue

            path, merged = self.trace(grid, source, rng, river_index)
            if len(path) < config.min_river_length:
                logger.debug("river_rejected", source=str(source), length=len(path))
                continue

            river = River(
                id=len(rivers),
                source=source,
                path=tuple(path),
                length=len(path),
                reaches_water=self.reaches_water(grid, path),
                merged_with=frozenset(merged),
            )
            stamp_river(grid, river, river_index)
            rivers.append(river)
            logger.debug(
                "river_traced",
                river_id=river.id,
                length=river.length,
                reaches_water=river.reaches_water,
                merged_with=sorted(merged),
            )

        logger.debug(
            "rivers_generated",
            seed=seed,
            target=target,
            count=len(rivers),
            attempts=attempts,
            candidates=len(candidates),
        )
        return rivers

    def find_sources(self, grid: WorldGrid) -> list[AxialCoord]:
        """Highland, non-water cells with at least one lower neighbour."""
        sources = []
        for cell in grid.cells():
            if cell.elevation < self.config.source_elevation_min:
                continue
            if self.terrain.is_water(cell.terrain_type):
                continue
            if any(n.elevation < cell.elevation for n in grid.neighbors(cell.coords)):
                sources.append(cell.coords)
        return sources

    def trace(
        self,
        grid: WorldGrid,
        source: AxialCoord,
        rng: np.random.Generator,
        river_index: dict[AxialCoord, int],
    ) -> tuple[list[AxialCoord], set[int]]:
        """Follow the terrain downhill from source.

        At each step only unvisited neighbours no higher than the current
        cell are eligible. Water is preferred, then a cell of an existing
        river (the path joins it and stops), then the lowest neighbour with
        near-ties broken at random.

        Returns:
            The path (source first) and the ids of rivers it merged into.
        """
        config = self.config
        path = [source]
        visited = {source}
        merged: set[int] = set()
        current = grid.get_cell(source)

        for _ in range(config.max_steps):
            if self._is_terminal(current.terrain_type, current.elevation):
                break

            options = [
                n
                for n in grid.neighbors(current.coords)
                if n.coords not in visited and n.elevation <= current.elevation
            ]
            if not options:
                break

            water = [n for n in options if self.terrain.is_water(n.terrain_type)]
            if water:
                current = min(water, key=lambda n: n.elevation)
                path.append(current.coords)
                visited.add(current.coords)
                continue

            joined = [n for n in options if n.coords in river_index]
            if joined:
                confluence = min(joined, key=lambda n: n.elevation)
                path.append(confluence.coords)
                merged.add(river_index[confluence.coords])
                break

            lowest = min(n.elevation for n in options)
            near = [n for n in options if n.elevation - lowest <= config.near_tie_tolerance]
            current = near[int(rng.integers(len(near)))]
            path.append(current.coords)
            visited.add(current.coords)

        return path, merged

    def reaches_water(self, grid: WorldGrid, path: list[AxialCoord]) -> bool:
        """Whether the last cell of path is water or below the target elevation."""
        if not path:
            return False
        cell = grid.get_cell(path[-1])
        if cell is None:
            return False
        return self._is_terminal(cell.terrain_type, cell.elevation)

    def _is_terminal(self, terrain_type: str, elevation: float) -> bool:
        return (
            self.terrain.is_water(terrain_type)
            or elevation < self.config.target_elevation_max
        )
