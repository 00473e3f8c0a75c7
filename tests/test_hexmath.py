"""Tests for hex grid math."""

import itertools

from hexworld import hexmath
from hexworld.types import AXIAL_ZERO, AxialCoord, HexDirection, OffsetCoord

SAMPLE_COORDS = [
    AxialCoord(q=q, r=r) for q, r in itertools.product(range(-3, 4), range(-3, 4))
]


class TestConversions:
    """Tests for coordinate conversions."""

    def test_cube_round_trip(self) -> None:
        """Axial -> cube -> axial is lossless and cube stays on plane."""
        for coord in SAMPLE_COORDS:
            cube = hexmath.axial_to_cube(coord)
            assert cube.x + cube.y + cube.z == 0
            assert hexmath.cube_to_axial(cube) == coord

    def test_offset_round_trip(self) -> None:
        """Offset -> axial -> offset is lossless, negative columns included."""
        for col, row in itertools.product(range(-4, 7), range(-3, 6)):
            offset = OffsetCoord(col=col, row=row)
            assert hexmath.axial_to_offset(hexmath.offset_to_axial(offset)) == offset

    def test_odd_columns_shifted(self) -> None:
        """In odd-q layout, column 2 row 0 sits at r = -1."""
        assert hexmath.offset_to_axial(OffsetCoord(col=1, row=0)) == AxialCoord(q=1, r=0)
        assert hexmath.offset_to_axial(OffsetCoord(col=2, row=0)) == AxialCoord(q=2, r=-1)

    def test_pixel_round_trip(self) -> None:
        """Hex centres map back to their own hex."""
        for coord in SAMPLE_COORDS:
            x, y = hexmath.axial_to_pixel(coord, 10.0)
            assert hexmath.pixel_to_axial(x, y, 10.0) == coord

    def test_pixel_origin(self) -> None:
        """The origin hex is centred at (0, 0)."""
        assert hexmath.axial_to_pixel(AXIAL_ZERO, 32.0) == (0.0, 0.0)

    def test_cube_round_near_center(self) -> None:
        """Points close to a hex centre round to that hex."""
        assert hexmath.cube_round(2.1, -1.05, -1.05) == AxialCoord(q=2, r=-1)
        assert hexmath.axial_round(0.2, -0.1) == AXIAL_ZERO


class TestDistance:
    """Tests for hex distance."""

    def test_zero_to_self(self) -> None:
        """Distance to self is zero."""
        for coord in SAMPLE_COORDS:
            assert hexmath.distance(coord, coord) == 0

    def test_symmetric(self) -> None:
        """distance(a, b) == distance(b, a)."""
        for a, b in itertools.combinations(SAMPLE_COORDS[:20], 2):
            assert hexmath.distance(a, b) == hexmath.distance(b, a)

    def test_triangle_inequality(self) -> None:
        """Distance satisfies the triangle inequality."""
        subset = SAMPLE_COORDS[::5]
        for a, b, c in itertools.product(subset, repeat=3):
            assert hexmath.distance(a, c) <= hexmath.distance(a, b) + hexmath.distance(b, c)

    def test_known_value(self) -> None:
        """Distance from origin to (3, -1) is 3."""
        assert hexmath.distance(AXIAL_ZERO, AxialCoord(q=3, r=-1)) == 3
        assert hexmath.distance(AXIAL_ZERO, AxialCoord(q=2, r=2)) == 4


class TestNeighbors:
    """Tests for neighbour queries."""

    def test_six_neighbors_at_distance_one(self) -> None:
        """Every neighbour is one step away and all are distinct."""
        center = AxialCoord(q=1, r=1)
        result = hexmath.neighbors(center)
        assert len(set(result)) == 6
        assert all(hexmath.distance(center, n) == 1 for n in result)

    def test_direction_order(self) -> None:
        """Neighbours follow HexDirection order."""
        result = hexmath.neighbors(AXIAL_ZERO)
        assert result[0] == AxialCoord(q=1, r=0)
        assert result[HexDirection.WEST] == AxialCoord(q=-1, r=0)

    def test_direction_to(self) -> None:
        """Adjacent cells give a unit step; others give zero."""
        a = AxialCoord(q=2, r=2)
        assert hexmath.direction_to(a, AxialCoord(q=3, r=1)) == AxialCoord(q=1, r=-1)
        assert hexmath.direction_to(a, AxialCoord(q=4, r=2)) == AXIAL_ZERO
        assert hexmath.direction_to(a, a) == AXIAL_ZERO


class TestRangesAndRings:
    """Tests for ranges, rings and spirals."""

    def test_range_size(self) -> None:
        """A range of radius r holds 3r(r+1)+1 hexes."""
        for radius in range(4):
            result = hexmath.hexes_in_range(AXIAL_ZERO, radius)
            assert len(result) == 3 * radius * (radius + 1) + 1
            assert len(set(result)) == len(result)
            assert all(hexmath.distance(AXIAL_ZERO, c) <= radius for c in result)

    def test_ring_radius_zero(self) -> None:
        """Radius 0 ring is just the center."""
        center = AxialCoord(q=2, r=-1)
        assert hexmath.hex_ring(center, 0) == [center]

    def test_ring_size_and_distance(self) -> None:
        """A ring of radius k has 6k distinct hexes, all k away."""
        center = AxialCoord(q=1, r=-2)
        for radius in range(1, 5):
            ring = hexmath.hex_ring(center, radius)
            assert len(ring) == 6 * radius
            assert len(set(ring)) == 6 * radius
            assert all(hexmath.distance(center, c) == radius for c in ring)

    def test_ring_starts_southwest(self) -> None:
        """Rings start radius steps south-west of the center."""
        assert hexmath.hex_ring(AXIAL_ZERO, 2)[0] == AxialCoord(q=-2, r=2)

    def test_ring_is_connected(self) -> None:
        """Consecutive ring hexes are adjacent."""
        ring = hexmath.hex_ring(AXIAL_ZERO, 3)
        for a, b in zip(ring, ring[1:] + ring[:1]):
            assert hexmath.distance(a, b) == 1

    def test_spiral_covers_range(self) -> None:
        """The spiral visits exactly the hexes in range, center first."""
        spiral = list(hexmath.iter_spiral(AXIAL_ZERO, 3))
        assert spiral[0] == AXIAL_ZERO
        assert set(spiral) == set(hexmath.hexes_in_range(AXIAL_ZERO, 3))
        assert len(spiral) == 37


class TestLine:
    """Tests for hex lines."""

    def test_single_point(self) -> None:
        """A line from a hex to itself is that hex."""
        coord = AxialCoord(q=3, r=3)
        assert hexmath.line(coord, coord) == [coord]

    def test_straight_line(self) -> None:
        """A line along one axis visits every hex on it."""
        assert hexmath.line(AXIAL_ZERO, AxialCoord(q=3, r=0)) == [
            AxialCoord(q=0, r=0),
            AxialCoord(q=1, r=0),
            AxialCoord(q=2, r=0),
            AxialCoord(q=3, r=0),
        ]

    def test_endpoints_and_adjacency(self) -> None:
        """Lines include both endpoints and step one hex at a time."""
        for a, b in itertools.combinations(SAMPLE_COORDS[::4], 2):
            result = hexmath.line(a, b)
            assert result[0] == a
            assert result[-1] == b
            assert len(result) == hexmath.distance(a, b) + 1
            for x, y in zip(result, result[1:]):
                assert hexmath.distance(x, y) == 1
