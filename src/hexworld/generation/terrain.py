"""Terrain generation: noise sampling, rule classification and smoothing."""

from collections import Counter

import structlog

from ..grid import Cell, WorldGrid
from .config import TerrainConfig, TerrainRule
from .noise import sample_field

logger = structlog.get_logger()


def classify(
    elevation: float,
    moisture: float,
    rules: list[TerrainRule],
    default_terrain: str,
) -> str:
    """Pick the terrain type for an elevation/moisture pair.

    Among matching rules the highest priority wins; on equal priority the
    first rule in configuration order is kept.
    """
    best: TerrainRule | None = None
    for rule in rules:
        if rule.matches(elevation, moisture):
            if best is None or rule.priority > best.priority:
                best = rule
    return best.name if best is not None else default_terrain


class TerrainGenerator:
    """Fills every cell's elevation, moisture and terrain type."""

    def __init__(self, config: TerrainConfig, precision: int = 4):
        self.config = config
        self.precision = precision

    def generate(self, grid: WorldGrid, seed: int) -> None:
        """Run sampling, classification and smoothing on the grid in place.

        Args:
            grid: Grid to populate.
            seed: Terrain seed; moisture uses ``seed + moisture_seed_offset``.
        """
        self.sample(grid, seed)
        self.classify_all(grid)
        changed = self.smooth(grid)

        logger.debug(
            "terrain_generated",
            seed=seed,
            cells=len(grid),
            smoothed=changed,
        )

    def sample(self, grid: WorldGrid, seed: int) -> None:
        """Sample the elevation and moisture fields onto the grid."""
        coords = grid.coords()
        elevation = sample_field(
            coords, seed, self.config.elevation_noise, self.precision
        )
        moisture = sample_field(
            coords,
            seed + self.config.moisture_seed_offset,
            self.config.moisture_noise,
            self.precision,
        )

        for i, coord in enumerate(coords):
            cell = grid.get_cell(coord)
            cell.elevation = float(elevation[i])
            cell.moisture = float(moisture[i])

    def classify_all(self, grid: WorldGrid) -> None:
        rules = self.config.rules
        default = self.config.default_terrain
        for cell in grid.cells():
            cell.terrain_type = classify(cell.elevation, cell.moisture, rules, default)

    def smooth(self, grid: WorldGrid) -> int:
        """Apply majority-neighbour smoothing.

        Each round reads a snapshot of terrain types and applies all
        reassignments afterwards, so changes never cascade within a round.

        Returns:
            Total number of reassignments over all rounds.
        """
        smoothing = self.config.smoothing
        total_changed = 0

        for _ in range(smoothing.iterations):
            snapshot = {cell.coords: cell.terrain_type for cell in grid.cells()}
            changes: list[tuple[Cell, str]] = []

            for cell in grid.cells():
                current = snapshot[cell.coords]
                if self._is_protected(current):
                    continue

                counts = Counter(
                    snapshot[n.coords] for n in grid.neighbors(cell.coords)
                )
                if not counts:
                    continue

                candidate, count = counts.most_common(1)[0]
                if count < smoothing.neighbor_threshold or candidate == current:
                    continue

                rule = self.config.rule_for(candidate)
                if rule is None:
                    continue
                tolerance = smoothing.elevation_tolerance
                if (
                    rule.elevation_min - tolerance
                    <= cell.elevation
                    <= rule.elevation_max + tolerance
                ):
                    changes.append((cell, candidate))

            for cell, terrain_type in changes:
                cell.terrain_type = terrain_type
            total_changed += len(changes)

            if not changes:
                break

        return total_changed

    def _is_protected(self, terrain_type: str) -> bool:
        smoothing = self.config.smoothing
        if smoothing.protect_water and self.config.is_water(terrain_type):
            return True
        if smoothing.protect_mountains and self.config.is_mountain(terrain_type):
            return True
        return False
