"""Tests for map validation."""

import pytest

from hexworld.generation.config import LocationConfig, LocationTypeConfig, MapConfig, RiverConfig
from hexworld.generation.generator import MapGenerator
from hexworld.generation.locations import Location
from hexworld.generation.rivers import River
from hexworld.generation.validation import MapValidator, ValidationResult, collect_statistics
from hexworld.types import AxialCoord

A = AxialCoord(q=0, r=0)
B = AxialCoord(q=1, r=0)


@pytest.fixture
def lenient_config() -> MapConfig:
    """No minimum rivers and a single optional town type."""
    return MapConfig(
        rivers=RiverConfig(min_rivers=0, max_rivers=0),
        locations=LocationConfig(
            types={
                "town": LocationTypeConfig(
                    terrain=["plains"], max_count=3, requires_water=True
                )
            }
        ),
    )


def _river(*path: AxialCoord, reaches_water: bool = True) -> River:
    return River(
        id=0,
        source=path[0],
        path=tuple(path),
        length=len(path),
        reaches_water=reaches_water,
    )


class TestValidationResult:
    """Tests for ValidationResult."""

    def test_starts_valid(self) -> None:
        """A fresh result is valid and empty."""
        result = ValidationResult()
        assert result.valid
        assert result.errors == []
        assert result.warnings == []

    def test_warning_keeps_valid(self) -> None:
        """Warnings do not affect validity."""
        result = ValidationResult()
        result.add_warning("meh")
        assert result.valid

    def test_error_invalidates_for_good(self) -> None:
        """The first error flips valid, and it never flips back."""
        result = ValidationResult()
        result.add_error("bad")
        result.add_warning("meh")
        assert not result.valid
        assert result.errors == ["bad"]


class TestRiverChecks:
    """Tests for river validation."""

    def test_uphill_flow_warns(self, grid_factory, lenient_config: MapConfig) -> None:
        """A river step rising beyond tolerance is a warning."""
        grid = grid_factory(3, 3, elevation=0.4)
        grid.get_cell(B).elevation = 0.6
        result = MapValidator(lenient_config).validate(grid, [_river(A, B)], [])
        assert any("uphill" in w for w in result.warnings)
        assert not any("uphill" in e for e in result.errors)

    def test_small_rise_tolerated(self, grid_factory, lenient_config: MapConfig) -> None:
        """Rises within the flow tolerance are accepted."""
        grid = grid_factory(3, 3, elevation=0.4)
        grid.get_cell(B).elevation = 0.42
        result = MapValidator(lenient_config).validate(grid, [_river(A, B)], [])
        assert not any("uphill" in w for w in result.warnings)

    def test_outside_grid_is_error(self, grid_factory, lenient_config: MapConfig) -> None:
        """River coordinates outside the grid are errors."""
        grid = grid_factory(3, 3)
        river = _river(A, AxialCoord(q=50, r=50))
        result = MapValidator(lenient_config).validate(grid, [river], [])
        assert not result.valid
        assert any("outside the grid" in e for e in result.errors)

    def test_too_few_rivers(self, grid_factory) -> None:
        """Fewer rivers than the minimum is an error."""
        config = MapConfig(
            rivers=RiverConfig(min_rivers=2, max_rivers=3),
            locations=LocationConfig(types={}),
        )
        result = MapValidator(config).validate(grid_factory(3, 3), [], [])
        assert result.errors == ["Too few rivers: 0 generated, minimum is 2"]

    def test_short_and_dry_warn(self, grid_factory, lenient_config: MapConfig) -> None:
        """Short rivers and rivers not reaching water are warnings."""
        grid = grid_factory(3, 3, elevation=0.5)
        river = _river(A, B, reaches_water=False)
        result = MapValidator(lenient_config).validate(grid, [river], [])
        assert result.valid
        assert any("short" in w for w in result.warnings)
        assert any("does not reach water" in w for w in result.warnings)


class TestLocationChecks:
    """Tests for location validation."""

    def test_count_below_minimum(self, impossible_town_config: MapConfig) -> None:
        """An unplaceable type fails with exactly one minimum-count error."""
        generator = MapGenerator(impossible_town_config)
        assert not generator.generate_complete_map(42, max_attempts=1)
        errors = generator.last_result.errors
        assert len(errors) == 1
        assert "town" in errors[0]
        assert "minimum" in errors[0]

    def test_count_above_maximum_warns(self, grid_factory, lenient_config: MapConfig) -> None:
        """Exceeding max_count is only a warning."""
        grid = grid_factory(9, 9)
        for cell in grid.cells():
            cell.has_river = True
        coords = [AxialCoord(q=q, r=0) for q in range(0, 8, 2)]
        locations = [
            Location(id=i, type="town", name=f"T{i}", coords=c) for i, c in enumerate(coords)
        ]
        result = MapValidator(lenient_config).validate(grid, [], locations)
        assert result.valid
        assert any("Too many town" in w for w in result.warnings)

    def test_disallowed_terrain(self, grid_factory, lenient_config: MapConfig) -> None:
        """A location on terrain its type forbids is an error."""
        grid = grid_factory(4, 4, terrain="desert")
        grid.get_cell(B).terrain_type = "water"
        town = Location(id=0, type="town", name="Sandy", coords=A)
        result = MapValidator(lenient_config).validate(grid, [], [town])
        assert any("disallowed terrain 'desert'" in e for e in result.errors)

    def test_missing_water_access(self, grid_factory, lenient_config: MapConfig) -> None:
        """A water-dependent location away from water is an error."""
        grid = grid_factory(4, 4)
        town = Location(id=0, type="town", name="Dry", coords=A)
        result = MapValidator(lenient_config).validate(grid, [], [town])
        assert any("water access" in e for e in result.errors)

    def test_location_outside_grid(self, grid_factory, lenient_config: MapConfig) -> None:
        """A location off the grid is an error."""
        town = Location(id=0, type="town", name="Lost", coords=AxialCoord(q=30, r=30))
        result = MapValidator(lenient_config).validate(grid_factory(4, 4), [], [town])
        assert any("outside the grid" in e for e in result.errors)

    def test_unknown_type_warns(self, grid_factory, lenient_config: MapConfig) -> None:
        """Unknown location types are warnings."""
        ghost = Location(id=0, type="ghost_town", name="Boo", coords=A)
        result = MapValidator(lenient_config).validate(grid_factory(4, 4), [], [ghost])
        assert result.valid
        assert any("unknown type" in w for w in result.warnings)

    def test_same_type_spacing_warns(self, grid_factory, lenient_config: MapConfig) -> None:
        """Same-type locations closer than their minimum distance are a warning."""
        grid = grid_factory(4, 4)
        for cell in grid.cells():
            cell.has_river = True
        towns = [
            Location(id=0, type="town", name="Near", coords=A),
            Location(id=1, type="town", name="Nearer", coords=B),
        ]
        result = MapValidator(lenient_config).validate(grid, [], towns)
        assert result.valid
        assert "town locations 'Near' and 'Nearer' are 1 apart, minimum is 3" in result.warnings

    def test_elevation_outside_range_warns(self, grid_factory) -> None:
        """A location below its type's elevation range is only a warning."""
        config = MapConfig(
            rivers=RiverConfig(min_rivers=0, max_rivers=0),
            locations=LocationConfig(
                types={
                    "town": LocationTypeConfig(
                        terrain=["plains"], elevation_min=0.6, requires_water=True
                    )
                }
            ),
        )
        grid = grid_factory(4, 4, elevation=0.5)
        grid.get_cell(A).has_river = True
        town = Location(id=0, type="town", name="Low", coords=A)
        result = MapValidator(config).validate(grid, [], [town])
        assert result.valid
        assert any("elevation 0.50 outside [0.6, 1.0]" in w for w in result.warnings)


class TestConnectivity:
    """Tests for the town connectivity check."""

    def test_water_barrier_isolates(self, grid_factory, lenient_config: MapConfig) -> None:
        """Towns separated by a water column are flagged."""
        grid = grid_factory(7, 3)
        for cell in grid.cells():
            cell.has_river = True
            if cell.coords.q == 3:
                cell.terrain_type = "water"
        towns = [
            Location(id=0, type="town", name="West", coords=AxialCoord(q=0, r=1)),
            Location(id=1, type="town", name="East", coords=AxialCoord(q=6, r=-2)),
        ]
        result = MapValidator(lenient_config).validate(grid, [], towns)
        isolated = [w for w in result.warnings if "isolated" in w]
        assert len(isolated) == 2

    def test_open_ground_connected(self, grid_factory, lenient_config: MapConfig) -> None:
        """Towns on open plains are not flagged."""
        grid = grid_factory(7, 3)
        for cell in grid.cells():
            cell.has_river = True
        towns = [
            Location(id=0, type="town", name="West", coords=AxialCoord(q=0, r=1)),
            Location(id=1, type="town", name="East", coords=AxialCoord(q=6, r=-2)),
        ]
        result = MapValidator(lenient_config).validate(grid, [], towns)
        assert not any("isolated" in w for w in result.warnings)

    def test_single_town_skipped(self, grid_factory, lenient_config: MapConfig) -> None:
        """A lone town is never reported as isolated."""
        grid = grid_factory(4, 4)
        grid.get_cell(B).has_river = True
        town = Location(id=0, type="town", name="Solo", coords=A)
        result = MapValidator(lenient_config).validate(grid, [], [town])
        assert not any("isolated" in w for w in result.warnings)


class TestTerrainBalance:
    """Tests for terrain balance warnings."""

    def test_no_water_warns(self, grid_factory, lenient_config: MapConfig) -> None:
        """A map without water gets a water warning but stays valid."""
        result = MapValidator(lenient_config).validate(grid_factory(5, 5), [], [])
        assert result.valid
        assert any(w.startswith("Water covers") for w in result.warnings)

    def test_no_highland_warns(self, grid_factory, lenient_config: MapConfig) -> None:
        """A flat lowland map gets a highland warning."""
        result = MapValidator(lenient_config).validate(grid_factory(5, 5), [], [])
        assert any("high-elevation" in w for w in result.warnings)

    def test_no_lowland_warns(self, grid_factory, lenient_config: MapConfig) -> None:
        """A map with no plains or grassland gets a lowland warning but stays valid."""
        grid = grid_factory(5, 5, terrain="hills")
        result = MapValidator(lenient_config).validate(grid, [], [])
        assert result.valid
        assert any(w.startswith("Only 0 lowland cells") for w in result.warnings)

    def test_lowland_map_has_no_lowland_warning(
        self, grid_factory, lenient_config: MapConfig
    ) -> None:
        """Plains everywhere satisfy the lowland share."""
        result = MapValidator(lenient_config).validate(grid_factory(5, 5), [], [])
        assert not any("lowland" in w for w in result.warnings)


class TestStatistics:
    """Tests for collect_statistics."""

    def test_keys_and_values(self, grid_factory) -> None:
        """Statistics summarize cells, rivers and locations."""
        grid = grid_factory(4, 3, elevation=0.5)
        grid.get_cell(A).terrain_type = "water"
        river = _river(A, B)
        town = Location(id=0, type="town", name="T", coords=B)
        stats = collect_statistics(grid, [river], [town], MapConfig())
        assert stats["total_cells"] == 12
        assert stats["terrain_distribution"] == {"water": 1, "plains": 11}
        assert stats["water_fraction"] == pytest.approx(1 / 12)
        assert stats["river_count"] == 1
        assert stats["average_river_length"] == 2.0
        assert stats["location_counts"] == {"town": 1}

    def test_attached_to_result(self, grid_factory, lenient_config: MapConfig) -> None:
        """Validation results carry the statistics."""
        result = MapValidator(lenient_config).validate(grid_factory(3, 3), [], [])
        assert result.stats["total_cells"] == 9
