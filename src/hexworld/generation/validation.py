"""Post-generation map validation and statistics."""

from itertools import combinations
from typing import Any

import numpy as np
import structlog

from .. import hexmath
from ..grid import WorldGrid
from ..types import AxialCoord
from .config import MapConfig
from .locations import Location, LocationPlacer, has_water_access
from .rivers import River

logger = structlog.get_logger()


class ValidationResult:
    """Result of map validation.

    ``valid`` starts True and flips to False on the first error; it never
    flips back.
    """

    def __init__(self) -> None:
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.stats: dict[str, Any] = {}
        self.valid = True

    def add_error(self, message: str) -> None:
        """Add validation error."""
        self.errors.append(message)
        self.valid = False

    def add_warning(self, message: str) -> None:
        """Add validation warning."""
        self.warnings.append(message)

    def __repr__(self) -> str:
        return (
            f"ValidationResult(valid={self.valid}, errors={len(self.errors)}, "
            f"warnings={len(self.warnings)})"
        )


class MapValidator:
    """Checks a finished map and classifies problems as errors or warnings."""

    def __init__(self, config: MapConfig):
        self.config = config

    def validate(
        self,
        grid: WorldGrid,
        rivers: list[River],
        locations: list[Location],
    ) -> ValidationResult:
        """Validate a generated (or loaded) map.

        Args:
            grid: The map's cells.
            rivers: Rivers on the map.
            locations: Placed locations.

        Returns:
            ValidationResult with errors, warnings and statistics.
        """
        result = ValidationResult()

        self._check_terrain_balance(grid, result)
        self._check_rivers(grid, rivers, result)
        self._check_location_counts(locations, result)
        self._check_location_constraints(grid, locations, result)
        self._check_connectivity(grid, locations, result)

        result.stats = collect_statistics(grid, rivers, locations, self.config)

        if result.valid:
            logger.info("map_validation_passed", warnings=len(result.warnings))
        else:
            logger.warning(
                "map_validation_failed",
                errors=len(result.errors),
                warnings=len(result.warnings),
            )
            for error in result.errors:
                logger.debug("map_validation_error", message=error)

        return result

    def _check_terrain_balance(self, grid: WorldGrid, result: ValidationResult) -> None:
        """Warn about skewed water, highland or lowland shares."""
        total = len(grid)
        if total == 0:
            result.add_warning("Map has no cells")
            return

        validation = self.config.validation
        terrain = self.config.terrain
        water = sum(1 for c in grid.cells() if terrain.is_water(c.terrain_type))
        water_fraction = water / total
        if not validation.water_min_fraction <= water_fraction <= validation.water_max_fraction:
            result.add_warning(
                f"Water covers {water_fraction:.1%} of the map, outside "
                f"[{validation.water_min_fraction:.0%}, {validation.water_max_fraction:.0%}]"
            )

        high = len(grid.cells_by_elevation(validation.high_elevation_threshold, 1.0))
        if high / total < validation.min_high_elevation_fraction:
            result.add_warning(
                f"Only {high} high-elevation cells (>= "
                f"{validation.high_elevation_threshold}), below "
                f"{validation.min_high_elevation_fraction:.0%} of the map"
            )

        lowland = sum(
            1 for c in grid.cells() if c.terrain_type in validation.lowland_terrains
        )
        if lowland / total < validation.min_lowland_fraction:
            result.add_warning(
                f"Only {lowland} lowland cells ({', '.join(validation.lowland_terrains)}), "
                f"below {validation.min_lowland_fraction:.0%} of the map"
            )

    def _check_rivers(
        self,
        grid: WorldGrid,
        rivers: list[River],
        result: ValidationResult,
    ) -> None:
        river_config = self.config.rivers
        tolerance = self.config.validation.flow_tolerance

        if len(rivers) < river_config.min_rivers:
            result.add_error(
                f"Too few rivers: {len(rivers)} generated, minimum is "
                f"{river_config.min_rivers}"
            )

        for river in rivers:
            missing = [c for c in river.path if not grid.is_valid(c)]
            if missing:
                result.add_error(
                    f"River {river.id} references coordinate {missing[0]} "
                    f"outside the grid ({len(missing)} missing)"
                )
                continue

            if river.length < river_config.min_river_length:
                result.add_warning(
                    f"River {river.id} is short: length {river.length}, minimum is "
                    f"{river_config.min_river_length}"
                )
            if not river.reaches_water:
                result.add_warning(f"River {river.id} does not reach water")

            for a, b in zip(river.path, river.path[1:]):
                rise = grid.get_cell(b).elevation - grid.get_cell(a).elevation
                if rise > tolerance:
                    result.add_warning(
                        f"River {river.id} flows uphill from {a} to {b} "
                        f"(+{rise:.3f})"
                    )
                    break

    def _check_location_counts(
        self,
        locations: list[Location],
        result: ValidationResult,
    ) -> None:
        counts = LocationPlacer.count_by_type(locations)
        for type_name, cfg in self.config.locations.types.items():
            count = counts.get(type_name, 0)
            if count < cfg.min_count:
                result.add_error(
                    f"Too few {type_name} locations: {count} placed, minimum is "
                    f"{cfg.min_count}"
                )
            elif count > cfg.max_count:
                result.add_warning(
                    f"Too many {type_name} locations: {count} placed, maximum is "
                    f"{cfg.max_count}"
                )

    def _check_location_constraints(
        self,
        grid: WorldGrid,
        locations: list[Location],
        result: ValidationResult,
    ) -> None:
        types = self.config.locations.types

        for loc in locations:
            cell = grid.get_cell(loc.coords)
            if cell is None:
                result.add_error(
                    f"Location '{loc.name}' ({loc.type}) references coordinate "
                    f"{loc.coords} outside the grid"
                )
                continue

            cfg = types.get(loc.type)
            if cfg is None:
                result.add_warning(f"Location '{loc.name}' has unknown type '{loc.type}'")
                continue

            if cfg.terrain and cell.terrain_type not in cfg.terrain:
                result.add_error(
                    f"Location '{loc.name}' ({loc.type}) on disallowed terrain "
                    f"'{cell.terrain_type}'"
                )
            if not cfg.elevation_min <= cell.elevation <= cfg.elevation_max:
                result.add_warning(
                    f"Location '{loc.name}' ({loc.type}) elevation {cell.elevation:.2f} "
                    f"outside [{cfg.elevation_min}, {cfg.elevation_max}]"
                )
            if cfg.requires_water and not has_water_access(
                grid, loc.coords, self.config.terrain
            ):
                result.add_error(
                    f"Location '{loc.name}' ({loc.type}) lacks required water access"
                )

        for a, b in combinations(locations, 2):
            if a.type != b.type or a.type not in types:
                continue
            d = hexmath.distance(a.coords, b.coords)
            minimum = types[a.type].min_distance_same_type
            if d < minimum:
                result.add_warning(
                    f"{a.type} locations '{a.name}' and '{b.name}' are {d} apart, "
                    f"minimum is {minimum}"
                )

    def _check_connectivity(
        self,
        grid: WorldGrid,
        locations: list[Location],
        result: ValidationResult,
    ) -> None:
        """Warn about towns with no straight passable line to another town.

        This is an approximation, not pathfinding.
        """
        towns = [loc for loc in locations if loc.type == "town" and grid.is_valid(loc.coords)]
        if len(towns) < 2:
            return

        for town in towns:
            if not any(
                self._line_passable(grid, town.coords, other.coords)
                for other in towns
                if other is not town
            ):
                result.add_warning(f"Town '{town.name}' may be isolated from other towns")

    def _line_passable(self, grid: WorldGrid, a: AxialCoord, b: AxialCoord) -> bool:
        impassable = self.config.validation.impassable_terrains
        for coord in hexmath.line(a, b)[1:-1]:
            cell = grid.get_cell(coord)
            if cell is None or cell.terrain_type in impassable:
                return False
        return True


def collect_statistics(
    grid: WorldGrid,
    rivers: list[River],
    locations: list[Location],
    config: MapConfig,
) -> dict[str, Any]:
    """Aggregate diagnostics for a map, independent of validity."""
    total = len(grid)
    distribution = grid.terrain_statistics()
    water = sum(n for name, n in distribution.items() if config.terrain.is_water(name))
    lengths = [river.length for river in rivers]

    location_counts = dict(LocationPlacer.count_by_type(locations))

    return {
        "width": grid.width,
        "height": grid.height,
        "total_cells": total,
        "terrain_distribution": distribution,
        "water_fraction": water / total if total else 0.0,
        "average_elevation": grid.average_elevation(),
        "average_moisture": grid.average_moisture(),
        "river_count": len(rivers),
        "river_lengths": lengths,
        "average_river_length": float(np.mean(lengths)) if lengths else 0.0,
        "location_count": len(locations),
        "location_counts": location_counts,
    }
