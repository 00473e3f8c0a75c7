"""Location placement: towns, forts, posts and camps under geographic rules."""

from collections import Counter
from dataclasses import dataclass, field
from itertools import combinations
from typing import Any

import numpy as np
import structlog

from .. import hexmath
from ..grid import Cell, WorldGrid
from ..types import AxialCoord, HexDirection
from .config import LocationConfig, LocationTypeConfig, PlacementTuning, TerrainConfig
from .rivers import River

logger = structlog.get_logger()

# Types that count as settlements for near/between placement
SETTLEMENT_TYPES = ("town", "fort")


@dataclass
class Location:
    """A named point of interest placed on the map."""

    id: int
    type: str
    name: str
    coords: AxialCoord
    properties: dict[str, Any] = field(default_factory=dict)


# --- Geographic predicates ---


def has_water_neighbor(grid: WorldGrid, coord: AxialCoord, terrain: TerrainConfig) -> bool:
    """Whether any in-grid neighbour is water-typed."""
    return any(terrain.is_water(n.terrain_type) for n in grid.neighbors(coord))


def near_river(grid: WorldGrid, coord: AxialCoord) -> bool:
    """Whether the cell carries a river or borders one."""
    cell = grid.get_cell(coord)
    if cell is None:
        return False
    if cell.has_river:
        return True
    return any(n.has_river for n in grid.neighbors(coord))


def has_water_access(grid: WorldGrid, coord: AxialCoord, terrain: TerrainConfig) -> bool:
    """Water neighbour, river on the cell, or river next to it."""
    return has_water_neighbor(grid, coord, terrain) or near_river(grid, coord)


def is_mountain_pass(grid: WorldGrid, coord: AxialCoord, min_elevation: float) -> bool:
    """High ground on two opposite sides of the cell."""
    cell = grid.get_cell(coord)
    if cell is None:
        return False
    for direction in (HexDirection.EAST, HexDirection.NORTHEAST, HexDirection.NORTHWEST):
        a = grid.get_cell(coord.offset(direction))
        b = grid.get_cell(coord.offset(direction.opposite))
        if a is None or b is None:
            continue
        if a.elevation >= min_elevation and b.elevation >= min_elevation:
            return True
    return False


def is_river_crossing(grid: WorldGrid, coord: AxialCoord, min_elevation: float) -> bool:
    """River on or beside the cell, on elevated ground."""
    cell = grid.get_cell(coord)
    if cell is None:
        return False
    return cell.elevation >= min_elevation and near_river(grid, coord)


def has_commanding_view(grid: WorldGrid, coord: AxialCoord, needed: int) -> bool:
    """Higher than at least ``needed`` of its neighbours."""
    cell = grid.get_cell(coord)
    if cell is None:
        return False
    lower = sum(1 for n in grid.neighbors(coord) if n.elevation < cell.elevation)
    return lower >= needed


def strategic_features(grid: WorldGrid, coord: AxialCoord, tuning: PlacementTuning) -> int:
    """Number of strategic predicates the cell satisfies (0-3)."""
    return sum(
        (
            is_mountain_pass(grid, coord, tuning.pass_elevation_min),
            is_river_crossing(grid, coord, tuning.crossing_elevation_min),
            has_commanding_view(grid, coord, tuning.commanding_view_neighbors),
        )
    )


def on_route_between(
    coord: AxialCoord,
    towns: list[AxialCoord],
    detour_ratio: float,
) -> bool:
    """Whether coord lies within the allowed detour between any two towns."""
    for a, b in combinations(towns, 2):
        direct = hexmath.distance(a, b)
        via = hexmath.distance(a, coord) + hexmath.distance(coord, b)
        if via <= direct * (1.0 + detour_ratio):
            return True
    return False


@dataclass
class _PlacementRun:
    """State of one place_all call; dropped when the call returns."""

    grid: WorldGrid
    rng: np.random.Generator
    locations: list[Location] = field(default_factory=list)
    name_pools: dict[str, list[str]] = field(default_factory=dict)
    name_cycles: dict[str, int] = field(default_factory=dict)

    def coords_of(self, *types: str) -> list[AxialCoord]:
        return [loc.coords for loc in self.locations if loc.type in types]


class LocationPlacer:
    """Places every configured location type in dependency order."""

    def __init__(self, config: LocationConfig, terrain: TerrainConfig):
        self.config = config
        self.terrain = terrain

    def place_all(self, grid: WorldGrid, rivers: list[River], seed: int) -> list[Location]:
        """Place all location types on the grid.

        Types that cannot reach their minimum keep whatever was placed; the
        shortfall is left for the validator to report.

        Args:
            grid: Grid with terrain and rivers generated.
            rivers: Rivers traced on the grid.
            seed: Generation seed; the RNG uses ``seed + seed_offset``.

        Returns:
            Placed locations, ids matching list positions.
        """
        run = _PlacementRun(
            grid=grid,
            rng=np.random.default_rng(seed + self.config.seed_offset),
        )

        for type_name in self.config.placement_order():
            type_config = self.config.types[type_name]
            placed = self._place_type(run, type_name, type_config)
            if len(placed) < type_config.min_count:
                logger.debug(
                    "location_shortfall",
                    location_type=type_name,
                    placed=len(placed),
                    minimum=type_config.min_count,
                )

        logger.debug(
            "locations_placed",
            seed=seed,
            count=len(run.locations),
            rivers=len(rivers),
            by_type=dict(self.count_by_type(run.locations)),
        )
        return run.locations

    def meets_minimums(self, locations: list[Location]) -> bool:
        """Whether every configured type reached its min_count."""
        counts = self.count_by_type(locations)
        return all(
            counts.get(name, 0) >= cfg.min_count for name, cfg in self.config.types.items()
        )

    @staticmethod
    def count_by_type(locations: list[Location]) -> Counter:
        return Counter(loc.type for loc in locations)

    # --- Per-type placement ---

    def _place_type(
        self,
        run: _PlacementRun,
        type_name: str,
        cfg: LocationTypeConfig,
    ) -> list[Location]:
        target = int(run.rng.integers(cfg.min_count, cfg.max_count, endpoint=True))
        if target == 0:
            return []

        candidates = self.find_candidates(run, type_name, cfg)
        run.rng.shuffle(candidates)

        # Scores are computed once so the sort stays stable under jitter
        scored = [(self._score(run, coord, cfg), coord) for coord in candidates]
        scored.sort(key=lambda item: item[0], reverse=True)

        placed: list[Location] = []
        for _, coord in scored:
            if len(placed) >= target:
                break
            cell = run.grid.get_cell(coord)
            if cell.location is not None:
                continue
            if not self._spacing_ok(run, coord, type_name, cfg):
                continue
            placed.append(self._materialize(run, cell, type_name, cfg))

        logger.debug(
            "location_type_placed",
            location_type=type_name,
            target=target,
            candidates=len(candidates),
            placed=len(placed),
        )
        return placed

    def find_candidates(
        self,
        run: _PlacementRun,
        type_name: str,
        cfg: LocationTypeConfig,
    ) -> list[AxialCoord]:
        """Cells passing every terrain, water, spacing and geographic filter."""
        tuning = self.config.tuning
        grid = run.grid
        towns = run.coords_of("town")
        settlements = run.coords_of(*SETTLEMENT_TYPES)

        candidates = []
        for cell in grid.cells():
            coord = cell.coords
            if cell.location is not None:
                continue
            if cfg.terrain and cell.terrain_type not in cfg.terrain:
                continue
            if not cfg.elevation_min <= cell.elevation <= cfg.elevation_max:
                continue
            if cfg.requires_water and not has_water_access(grid, coord, self.terrain):
                continue
            if not self._spacing_ok(run, coord, type_name, cfg):
                continue
            if cfg.strategic and strategic_features(grid, coord, tuning) == 0:
                continue
            if cfg.near_settlements and not self._near_settlement(coord, settlements):
                continue
            if cfg.between_settlements and len(self._between_distances(coord, settlements)) < 2:
                continue
            if cfg.along_routes and not (
                near_river(grid, coord)
                or on_route_between(coord, towns, tuning.route_detour_ratio)
            ):
                continue
            candidates.append(coord)
        return candidates

    def _spacing_ok(
        self,
        run: _PlacementRun,
        coord: AxialCoord,
        type_name: str,
        cfg: LocationTypeConfig,
    ) -> bool:
        for loc in run.locations:
            d = hexmath.distance(coord, loc.coords)
            if d < cfg.min_distance_any_location:
                return False
            if loc.type == type_name and d < cfg.min_distance_same_type:
                return False

        if cfg.town_distance is not None:
            towns = run.coords_of("town")
            if not towns:
                return False
            nearest = min(hexmath.distance(coord, t) for t in towns)
            low, high = cfg.town_distance
            if not low <= nearest <= high:
                return False
        return True

    def _near_settlement(self, coord: AxialCoord, settlements: list[AxialCoord]) -> bool:
        low, high = self.config.tuning.near_settlement_distance
        return any(low <= hexmath.distance(coord, s) <= high for s in settlements)

    def _between_distances(
        self, coord: AxialCoord, settlements: list[AxialCoord]
    ) -> list[int]:
        """In-band distances to settlements, nearest first."""
        low, high = self.config.tuning.between_settlement_distance
        distances = sorted(hexmath.distance(coord, s) for s in settlements)
        return [d for d in distances if low <= d <= high]

    def _score(self, run: _PlacementRun, coord: AxialCoord, cfg: LocationTypeConfig) -> float:
        tuning = self.config.tuning
        grid = run.grid
        cell = grid.get_cell(coord)
        score = 0.0

        if cfg.prefer_rivers or cfg.requires_water:
            if cell.has_river:
                score += tuning.river_bonus
            elif near_river(grid, coord):
                score += tuning.river_bonus * 0.5
            if has_water_neighbor(grid, coord, self.terrain):
                score += tuning.water_bonus

        if cfg.strategic:
            score += tuning.strategic_bonus * strategic_features(grid, coord, tuning)

        if cfg.between_settlements:
            distances = self._between_distances(coord, run.coords_of(*SETTLEMENT_TYPES))
            if len(distances) >= 2:
                score += tuning.between_bonus / (1.0 + float(np.var(distances[:2])))

        score += float(run.rng.random()) * tuning.jitter
        return score

    # --- Materialization ---

    def _materialize(
        self,
        run: _PlacementRun,
        cell: Cell,
        type_name: str,
        cfg: LocationTypeConfig,
    ) -> Location:
        location = Location(
            id=len(run.locations),
            type=type_name,
            name=self._pick_name(run, type_name, cfg),
            coords=cell.coords,
            properties=self._roll_properties(run, cfg),
        )
        run.locations.append(location)
        cell.location = location.id
        return location

    def _pick_name(self, run: _PlacementRun, type_name: str, cfg: LocationTypeConfig) -> str:
        """Draw a name without reuse until the type's list runs out.

        Once exhausted the list is refilled and names get a numeric suffix.
        """
        if not cfg.names:
            count = sum(1 for loc in run.locations if loc.type == type_name)
            return f"{type_name.replace('_', ' ').title()} {count + 1}"

        pool = run.name_pools.get(type_name)
        if not pool:
            cycle = run.name_cycles.get(type_name, -1) + 1
            run.name_cycles[type_name] = cycle
            pool = list(cfg.names)
            run.name_pools[type_name] = pool

        name = pool.pop(int(run.rng.integers(len(pool))))
        cycle = run.name_cycles[type_name]
        return name if cycle == 0 else f"{name} {cycle + 1}"

    @staticmethod
    def _roll_properties(run: _PlacementRun, cfg: LocationTypeConfig) -> dict[str, Any]:
        properties: dict[str, Any] = {}
        for key, (low, high) in cfg.int_properties.items():
            properties[key] = int(run.rng.integers(low, high, endpoint=True))
        for key, options in cfg.choice_properties.items():
            if options:
                properties[key] = options[int(run.rng.integers(len(options)))]
        return properties
