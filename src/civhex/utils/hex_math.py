"""
Hexagonal coordinate system mathematics for civhex.

The map is made of flat-topped hexes (a horizontal edge at the top and the
bottom of every cell). This module implements the pure coordinate maths used
by the grid, the movement planner and the combat rules:
- Conversion between the map's offset layout and axial/cube coordinates
- Distance calculations between hexes
- Finding adjacent hexes
- Finding all hexes within a range

Coordinate Systems:
-------------------
We use three coordinate systems:

1. Offset Coordinates (x, y) - how maps are stored and addressed
   - x: column, y: row, (0, 0) is the top-left cell
   - "odd-q" layout: odd columns are shoved half a cell down
   - Used in the OffsetCoord dataclass, the public coordinate type

2. Axial Coordinates (q, r) - for neighbour arithmetic
   - q: column coordinate
   - r: diagonal row coordinate
   - Neighbour offsets do not depend on column parity
   - Used in the HexCoord dataclass

3. Cube Coordinates (x, y, z) - for distance calculations
   - x, y, z: three coordinates with constraint x + y + z = 0
   - Makes distance calculation simple: max(|dx|, |dy|, |dz|)
   - Conversion: x = q, z = r, y = -x - z

References:
-----------
Based on the excellent guide at: https://www.redblobgames.com/grids/hexagons/
"""

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True)
class HexCoord:
    """
    A hexagonal coordinate using axial coordinate system.

    Attributes:
        q: Column coordinate (horizontal axis)
        r: Row coordinate (diagonal axis)

    Example:
        >>> origin = HexCoord(q=0, r=0)
        >>> neighbor = HexCoord(q=1, r=0)
        >>> hex_distance(origin, neighbor)
        1
    """

    q: int
    r: int

    def __hash__(self) -> int:
        """Make HexCoord hashable for use in sets and dicts."""
        return hash((self.q, self.r))


@dataclass(frozen=True, order=True)
class OffsetCoord:
    """
    A map coordinate in the "odd-q" offset layout.

    Attributes:
        x: Column, growing eastwards
        y: Row, growing southwards

    This is the coordinate every public engine call takes and returns. Two
    coordinates are equal when both components are equal.

    Example:
        >>> OffsetCoord(x=2, y=3) == OffsetCoord(2, 3)
        True
    """

    x: int
    y: int

    def __hash__(self) -> int:
        return hash((self.x, self.y))

    def __str__(self) -> str:
        return f"({self.x}, {self.y})"


class Direction(StrEnum):
    """The six edges of a flat-topped hex."""

    NORTH = "north"
    NORTH_EAST = "north_east"
    SOUTH_EAST = "south_east"
    SOUTH = "south"
    SOUTH_WEST = "south_west"
    NORTH_WEST = "north_west"


# Axial direction vectors for a flat-topped hex with rows growing southwards
_DIRECTION_VECTORS: dict[Direction, tuple[int, int]] = {
    Direction.NORTH: (0, -1),
    Direction.NORTH_EAST: (1, -1),
    Direction.SOUTH_EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.SOUTH_WEST: (-1, 1),
    Direction.NORTH_WEST: (-1, 0),
}


def offset_to_axial(coord: OffsetCoord) -> HexCoord:
    """
    Convert an odd-q offset coordinate to axial coordinates.

    The conversion follows:
        q = x
        r = y - (x - (x & 1)) / 2

    Args:
        coord: A map coordinate in offset layout

    Returns:
        The same hex in axial coordinates

    Example:
        >>> offset_to_axial(OffsetCoord(x=3, y=2))
        HexCoord(q=3, r=1)
    """
    q = coord.x
    r = coord.y - (coord.x - (coord.x & 1)) // 2
    return HexCoord(q=q, r=r)


def axial_to_offset(coord: HexCoord) -> OffsetCoord:
    """
    Convert axial coordinates back to an odd-q offset coordinate.

    The conversion follows:
        x = q
        y = r + (q - (q & 1)) / 2

    Example:
        >>> axial_to_offset(HexCoord(q=3, r=1))
        OffsetCoord(x=3, y=2)
    """
    x = coord.q
    y = coord.r + (coord.q - (coord.q & 1)) // 2
    return OffsetCoord(x=x, y=y)


def axial_to_cube(coord: HexCoord) -> tuple[int, int, int]:
    """
    Convert axial coordinates (q, r) to cube coordinates (x, y, z).

    The conversion follows:
        x = q
        z = r
        y = -x - z

    This maintains the cube coordinate constraint: x + y + z = 0

    Example:
        >>> coord = HexCoord(q=1, r=2)
        >>> x, y, z = axial_to_cube(coord)
        >>> x, y, z
        (1, -3, 2)
    """
    x = coord.q
    z = coord.r
    y = -x - z
    return x, y, z


def cube_to_axial(x: int, y: int, z: int) -> HexCoord:  # noqa: ARG001
    """
    Convert cube coordinates (x, y, z) back to axial coordinates (q, r).

    The y parameter is accepted for API consistency with cube coordinates,
    but is not used in the conversion as it's redundant (y = -x - z).

    Example:
        >>> coord = cube_to_axial(x=1, y=-3, z=2)
        >>> coord.q, coord.r
        (1, 2)
    """
    return HexCoord(q=x, r=z)


def hex_distance(a: HexCoord, b: HexCoord) -> int:
    """
    Calculate the distance between two hexes.

    The distance is the minimum number of hex steps to move from hex a to hex b.
    This uses cube coordinates for the calculation:
        distance = max(|dx|, |dy|, |dz|)

    Example:
        >>> origin = HexCoord(q=0, r=0)
        >>> hex_distance(origin, HexCoord(q=2, r=1))
        3
    """
    ax, ay, az = axial_to_cube(a)
    bx, by, bz = axial_to_cube(b)
    return max(abs(ax - bx), abs(ay - by), abs(az - bz))


def offset_distance(a: OffsetCoord, b: OffsetCoord) -> int:
    """Hex distance between two map coordinates."""
    return hex_distance(offset_to_axial(a), offset_to_axial(b))


def hex_neighbors(coord: HexCoord) -> list[HexCoord]:
    """
    Find all 6 adjacent hexes to the given hex.

    The list is ordered north, north-east, south-east, south, south-west,
    north-west. No bounds are applied here; see ``HexGrid.neighbors`` for
    the map-aware variant.

    Example:
        >>> len(hex_neighbors(HexCoord(q=0, r=0)))
        6
    """
    return [HexCoord(q=coord.q + dq, r=coord.r + dr) for dq, dr in _DIRECTION_VECTORS.values()]


def hex_neighbor(coord: OffsetCoord, direction: Direction) -> OffsetCoord:
    """
    Return the map coordinate one step from ``coord`` in ``direction``.

    Example:
        >>> hex_neighbor(OffsetCoord(x=1, y=1), Direction.SOUTH)
        OffsetCoord(x=1, y=2)
        >>> hex_neighbor(OffsetCoord(x=1, y=1), Direction.NORTH_EAST)
        OffsetCoord(x=2, y=1)
    """
    axial = offset_to_axial(coord)
    dq, dr = _DIRECTION_VECTORS[direction]
    return axial_to_offset(HexCoord(q=axial.q + dq, r=axial.r + dr))


def offset_neighbors(coord: OffsetCoord) -> list[OffsetCoord]:
    """
    Return the six map coordinates adjacent to ``coord``.

    In offset layout the neighbour offsets depend on column parity; going
    through axial coordinates keeps this function parity-free.
    """
    return [axial_to_offset(neighbor) for neighbor in hex_neighbors(offset_to_axial(coord))]


def hexes_in_range(center: HexCoord, n: int) -> list[HexCoord]:
    """
    Find all hexes within range n of the center hex (inclusive).

    This returns all hexes where distance(center, hex) <= n.
    The number of hexes follows the formula: 3n^2 + 3n + 1

    Raises:
        ValueError: If n is negative

    Example:
        >>> len(hexes_in_range(HexCoord(q=0, r=0), n=1))
        7
    """
    if n < 0:
        msg = f"Range n must be non-negative, got {n}"
        raise ValueError(msg)

    cx, cy, cz = axial_to_cube(center)

    hexes = []
    for dx in range(-n, n + 1):
        for dy in range(max(-n, -dx - n), min(n, -dx + n) + 1):
            dz = -dx - dy
            hexes.append(cube_to_axial(cx + dx, cy + dy, cz + dz))

    return hexes
