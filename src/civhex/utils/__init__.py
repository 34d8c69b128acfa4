"""Utility functions for the civhex engine."""

from civhex.utils.hex_math import (
    Direction,
    HexCoord,
    OffsetCoord,
    hex_neighbor,
    offset_distance,
    offset_neighbors,
)
from civhex.utils.rng import generate_seed, random_int

__all__ = [
    "Direction",
    "HexCoord",
    "OffsetCoord",
    "generate_seed",
    "hex_neighbor",
    "offset_distance",
    "offset_neighbors",
    "random_int",
]
