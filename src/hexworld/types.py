"""Core coordinate types for the hex world."""

from enum import IntEnum

from pydantic import BaseModel, model_validator


class HexDirection(IntEnum):
    """Six flat-top hex directions, counter-clockwise from east.

    Direction ``d`` is opposite ``(d + 3) % 6``.
    """

    EAST = 0
    NORTHEAST = 1
    NORTHWEST = 2
    WEST = 3
    SOUTHWEST = 4
    SOUTHEAST = 5

    @property
    def opposite(self) -> "HexDirection":
        """The direction pointing the other way."""
        return HexDirection((self + 3) % 6)


# Axial (dq, dr) deltas for each direction
DIRECTION_DELTAS: dict[HexDirection, tuple[int, int]] = {
    HexDirection.EAST: (1, 0),
    HexDirection.NORTHEAST: (1, -1),
    HexDirection.NORTHWEST: (0, -1),
    HexDirection.WEST: (-1, 0),
    HexDirection.SOUTHWEST: (-1, 1),
    HexDirection.SOUTHEAST: (0, 1),
}


class AxialCoord(BaseModel, frozen=True):
    """Immutable axial hex coordinate, the key for every spatial lookup."""

    q: int
    r: int

    def __add__(self, other: "AxialCoord") -> "AxialCoord":
        return AxialCoord(q=self.q + other.q, r=self.r + other.r)

    def __sub__(self, other: "AxialCoord") -> "AxialCoord":
        return AxialCoord(q=self.q - other.q, r=self.r - other.r)

    def offset(self, direction: HexDirection) -> "AxialCoord":
        """Return the adjacent coordinate in the given direction."""
        dq, dr = DIRECTION_DELTAS[direction]
        return AxialCoord(q=self.q + dq, r=self.r + dr)

    @property
    def is_zero(self) -> bool:
        return self.q == 0 and self.r == 0

    def as_tuple(self) -> tuple[int, int]:
        return (self.q, self.r)

    def __hash__(self) -> int:
        return hash((self.q, self.r))

    def __str__(self) -> str:
        return f"({self.q}, {self.r})"

    def __repr__(self) -> str:
        return f"AxialCoord(q={self.q}, r={self.r})"


# Zero vector, used as "no flow" on cells
AXIAL_ZERO = AxialCoord(q=0, r=0)


class CubeCoord(BaseModel, frozen=True):
    """Three-component hex coordinate with x + y + z == 0."""

    x: int
    y: int
    z: int

    @model_validator(mode="after")
    def _check_plane(self) -> "CubeCoord":
        if self.x + self.y + self.z != 0:
            raise ValueError(
                f"Cube coordinate must satisfy x + y + z == 0, got "
                f"({self.x}, {self.y}, {self.z})"
            )
        return self

    def __hash__(self) -> int:
        return hash((self.x, self.y, self.z))


class OffsetCoord(BaseModel, frozen=True):
    """Rectangular (column, row) coordinate, odd columns shifted down."""

    col: int
    row: int

    def __hash__(self) -> int:
        return hash((self.col, self.row))

    def __str__(self) -> str:
        return f"[{self.col}, {self.row}]"
