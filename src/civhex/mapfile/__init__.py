"""Map file loaders for civhex."""

from civhex.mapfile.civ5map import (
    FormatError,
    MapHeader,
    decode_civ5map,
    load_civ5map,
    read_civ5map_header,
)
from civhex.mapfile.text_map import load_text_map, parse_text_map

__all__ = [
    "FormatError",
    "MapHeader",
    "decode_civ5map",
    "load_civ5map",
    "load_text_map",
    "parse_text_map",
    "read_civ5map_header",
]
