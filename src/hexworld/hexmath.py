"""Flat-top hex grid math: conversions, distance, neighbours, rings and lines.

All functions are pure and total. None of them know about grid bounds;
callers check membership against a WorldGrid.
"""

import math
from typing import Iterator

from .types import (
    AXIAL_ZERO,
    DIRECTION_DELTAS,
    AxialCoord,
    CubeCoord,
    HexDirection,
    OffsetCoord,
)

SQRT3 = math.sqrt(3.0)

# Nudge applied to line endpoints so lerped points never land exactly on a
# hex edge
_LINE_EPSILON = (1e-6, 2e-6, -3e-6)


def axial_to_cube(coord: AxialCoord) -> CubeCoord:
    """Convert axial (q, r) to cube (x, y, z)."""
    return CubeCoord(x=coord.q, y=-coord.q - coord.r, z=coord.r)


def cube_to_axial(cube: CubeCoord) -> AxialCoord:
    """Convert cube (x, y, z) to axial (q, r)."""
    return AxialCoord(q=cube.x, r=cube.z)


def axial_to_offset(coord: AxialCoord) -> OffsetCoord:
    """Convert axial to odd-q offset coordinates."""
    col = coord.q
    row = coord.r + (coord.q - (coord.q & 1)) // 2
    return OffsetCoord(col=col, row=row)


def offset_to_axial(offset: OffsetCoord) -> AxialCoord:
    """Convert odd-q offset coordinates to axial."""
    q = offset.col
    r = offset.row - (offset.col - (offset.col & 1)) // 2
    return AxialCoord(q=q, r=r)


def axial_to_pixel(coord: AxialCoord, size: float) -> tuple[float, float]:
    """Centre of a flat-top hex in pixel space."""
    x = size * 1.5 * coord.q
    y = size * (SQRT3 / 2.0 * coord.q + SQRT3 * coord.r)
    return x, y


def pixel_to_axial(x: float, y: float, size: float) -> AxialCoord:
    """Hex containing the pixel position (inverse of axial_to_pixel)."""
    q = (2.0 / 3.0 * x) / size
    r = (-1.0 / 3.0 * x + SQRT3 / 3.0 * y) / size
    return axial_round(q, r)


def cube_round(x: float, y: float, z: float) -> AxialCoord:
    """Round fractional cube coordinates to the nearest hex.

    The component with the largest rounding error is recomputed from the
    other two so the result stays on the x + y + z == 0 plane.
    """
    rx, ry, rz = round(x), round(y), round(z)

    x_diff = abs(rx - x)
    y_diff = abs(ry - y)
    z_diff = abs(rz - z)

    if x_diff > y_diff and x_diff > z_diff:
        rx = -ry - rz
    elif y_diff > z_diff:
        ry = -rx - rz
    else:
        rz = -rx - ry

    return cube_to_axial(CubeCoord(x=int(rx), y=int(ry), z=int(rz)))


def axial_round(q: float, r: float) -> AxialCoord:
    """Round fractional axial coordinates to the nearest hex."""
    return cube_round(q, -q - r, r)


def distance(a: AxialCoord, b: AxialCoord) -> int:
    """Hex distance: half the Manhattan distance in cube space."""
    ca = axial_to_cube(a)
    cb = axial_to_cube(b)
    return (abs(ca.x - cb.x) + abs(ca.y - cb.y) + abs(ca.z - cb.z)) // 2


def neighbor(coord: AxialCoord, direction: HexDirection) -> AxialCoord:
    """Adjacent coordinate in one direction."""
    return coord.offset(direction)


def neighbors(coord: AxialCoord) -> list[AxialCoord]:
    """All six adjacent coordinates, in HexDirection order."""
    return [coord.offset(direction) for direction in HexDirection]


def direction_to(a: AxialCoord, b: AxialCoord) -> AxialCoord:
    """Unit step from a to an adjacent b, or the zero vector otherwise."""
    delta = b - a
    if delta.as_tuple() in DIRECTION_DELTAS.values():
        return delta
    return AXIAL_ZERO


def hexes_in_range(center: AxialCoord, radius: int) -> list[AxialCoord]:
    """Every coordinate within ``radius`` steps of center (inclusive)."""
    results: list[AxialCoord] = []
    for dq in range(-radius, radius + 1):
        for dr in range(max(-radius, -dq - radius), min(radius, -dq + radius) + 1):
            results.append(AxialCoord(q=center.q + dq, r=center.r + dr))
    return results


def hex_ring(center: AxialCoord, radius: int) -> list[AxialCoord]:
    """Coordinates exactly ``radius`` steps from center.

    Radius 0 yields just the center.
    """
    if radius <= 0:
        return [center]

    dq, dr = DIRECTION_DELTAS[HexDirection.SOUTHWEST]
    current = AxialCoord(q=center.q + dq * radius, r=center.r + dr * radius)

    results: list[AxialCoord] = []
    for direction in HexDirection:
        for _ in range(radius):
            results.append(current)
            current = current.offset(direction)
    return results


def iter_spiral(center: AxialCoord, radius: int) -> Iterator[AxialCoord]:
    """Yield center, then each ring outwards up to radius."""
    for k in range(radius + 1):
        yield from hex_ring(center, k)


def line(a: AxialCoord, b: AxialCoord) -> list[AxialCoord]:
    """Hexes on the straight line from a to b, both endpoints included."""
    n = distance(a, b)
    if n == 0:
        return [a]

    ca = axial_to_cube(a)
    cb = axial_to_cube(b)
    ex, ey, ez = _LINE_EPSILON
    ax, ay, az = ca.x + ex, ca.y + ey, ca.z + ez
    bx, by, bz = cb.x + ex, cb.y + ey, cb.z + ez

    results: list[AxialCoord] = []
    for i in range(n + 1):
        t = i / n
        results.append(
            cube_round(
                ax + (bx - ax) * t,
                ay + (by - ay) * t,
                az + (bz - az) * t,
            )
        )
    return results
