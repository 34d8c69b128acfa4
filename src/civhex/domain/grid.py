"""Geometric queries over a decoded map."""

from __future__ import annotations

from collections.abc import Container, Iterator

from civhex.domain.models import BoundsError, Cell, GameMap
from civhex.utils.hex_math import (
    Direction,
    OffsetCoord,
    axial_to_offset,
    hex_neighbor,
    hexes_in_range,
    offset_distance,
    offset_neighbors,
    offset_to_axial,
)

__all__ = ["BoundsError", "HexGrid"]


class HexGrid:
    """Bounds-aware hex geometry for a single map.

    The grid holds no state besides the map it wraps, which is immutable, so
    one instance can be shared by every query.
    """

    def __init__(self, game_map: GameMap) -> None:
        self._map = game_map

    @property
    def map(self) -> GameMap:
        return self._map

    @property
    def width(self) -> int:
        return self._map.width

    @property
    def height(self) -> int:
        return self._map.height

    def in_bounds(self, coord: OffsetCoord) -> bool:
        return self._map.in_bounds(coord)

    def cell_at(self, coord: OffsetCoord) -> Cell:
        return self._map.cell_at(coord)

    def coords(self) -> Iterator[OffsetCoord]:
        return self._map.coords()

    def neighbors(self, coord: OffsetCoord) -> frozenset[OffsetCoord]:
        """Return the in-bounds cells adjacent to ``coord``.

        Interior cells have exactly six neighbours; cells on the map edge
        have fewer. The map does not wrap.
        """

        return frozenset(n for n in offset_neighbors(coord) if self._map.in_bounds(n))

    def neighbor(self, coord: OffsetCoord, direction: Direction) -> OffsetCoord:
        """Step once in ``direction``; raises ``BoundsError`` when leaving the map."""

        target = hex_neighbor(coord, direction)
        if not self._map.in_bounds(target):
            raise BoundsError(target, self.width, self.height)
        return target

    def distance(self, a: OffsetCoord, b: OffsetCoord) -> int:
        return offset_distance(a, b)

    def cells_within(self, center: OffsetCoord, radius: int) -> frozenset[OffsetCoord]:
        """Every in-bounds coordinate at most ``radius`` steps from ``center``."""

        in_range = hexes_in_range(offset_to_axial(center), radius)
        return frozenset(
            coord for coord in map(axial_to_offset, in_range) if self._map.in_bounds(coord)
        )

    def first_passable(self, exclude: Container[OffsetCoord] = ()) -> OffsetCoord:
        """Return the first enterable cell in row-major order that is not in ``exclude``."""

        for coord, cell in self._map.tiles():
            if not cell.impassable and not cell.blocks_occupation and coord not in exclude:
                return coord
        raise LookupError("map has no passable cell")
