"""Decoder for the binary Civ5Map file format.

Only the sections the engine needs are interpreted strictly: the header,
the terrain name table and the tile records. Mod data is skipped using its
declared length. The feature, wonder and resource tables and the map
strings are decoded leniently, with undecodable bytes replaced. Anything
after the tile section (units, cities, scenario data) is ignored.

All integers are little-endian. A decode either yields a complete
:class:`~civhex.domain.models.GameMap` or raises :class:`FormatError`.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass
from pathlib import Path

from civhex.domain.enums import Terrain
from civhex.domain.models import GameMap
from civhex.domain.rules_config import DEFAULT_RULES, TerrainRules

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = frozenset({11, 12})
MAX_DIMENSION = 4096
TILE_RECORD_SIZE = 8

TERRAIN_NAMES: dict[str, Terrain] = {
    "TERRAIN_GRASS": Terrain.GRASSLAND,
    "TERRAIN_PLAINS": Terrain.PLAIN,
    "TERRAIN_DESERT": Terrain.DESERT,
    "TERRAIN_TUNDRA": Terrain.TUNDRA,
    "TERRAIN_SNOW": Terrain.SNOW,
    "TERRAIN_COAST": Terrain.WATER,
    "TERRAIN_OCEAN": Terrain.WATER,
    "TERRAIN_HILL": Terrain.HILL,
    "TERRAIN_MOUNTAIN": Terrain.MOUNTAIN,
}

ELEVATION_FLAT = 0
ELEVATION_HILL = 1
ELEVATION_MOUNTAIN = 2


class FormatError(ValueError):
    """Raised when a buffer does not follow the map file format."""


@dataclass(frozen=True, slots=True)
class MapHeader:
    """Header fields of a Civ5Map file."""

    version: int
    type_flags: int
    width: int
    height: int
    player_count: int
    flags: int
    terrain_names: tuple[str, ...]
    feature_names: tuple[str, ...]
    wonder_names: tuple[str, ...]
    resource_names: tuple[str, ...]
    name: str
    description: str
    world_size: str


@dataclass(frozen=True, slots=True)
class TileRecord:
    """One 8-byte tile record."""

    terrain_id: int
    resource_id: int
    feature_id: int
    river_flags: int
    elevation: int
    wonder_id: int


class _Reader:
    """Bounds-checked little-endian cursor over a byte buffer."""

    def __init__(self, data: bytes) -> None:
        self._data = memoryview(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self._data) - self.offset

    def _need(self, size: int, what: str) -> None:
        if size > self.remaining:
            raise FormatError(
                f"truncated buffer: {what} needs {size} bytes at offset {self.offset}, "
                f"only {self.remaining} left"
            )

    def u8(self, what: str) -> int:
        self._need(1, what)
        value = self._data[self.offset]
        self.offset += 1
        return value

    def u32(self, what: str) -> int:
        self._need(4, what)
        (value,) = struct.unpack_from("<I", self._data, self.offset)
        self.offset += 4
        return value

    def take(self, size: int, what: str) -> bytes:
        self._need(size, what)
        chunk = bytes(self._data[self.offset : self.offset + size])
        self.offset += size
        return chunk

    def skip(self, size: int, what: str) -> None:
        self._need(size, what)
        self.offset += size

    def text(self, size: int, what: str, *, strict: bool = False) -> str:
        """Decode a NUL-padded string; bad bytes become U+FFFD unless ``strict``."""

        raw = self.take(size, what)
        if not strict:
            return raw.decode("utf-8", errors="replace").rstrip("\0")
        try:
            return raw.decode("utf-8").rstrip("\0")
        except UnicodeDecodeError as exc:
            raise FormatError(f"{what} is not valid UTF-8") from exc

    def name_table(self, size: int, what: str, *, strict: bool = False) -> tuple[str, ...]:
        if size == 0:
            return ()
        return tuple(self.text(size, what, strict=strict).split("\0"))


def _read_header(reader: _Reader) -> MapHeader:
    signature = reader.u8("signature")
    version = signature & 0x0F
    if version not in SUPPORTED_VERSIONS:
        raise FormatError(
            f"bad signature byte 0x{signature:02x}: version {version} is not one of "
            f"{sorted(SUPPORTED_VERSIONS)}"
        )

    width = reader.u32("width")
    height = reader.u32("height")
    if not (0 < width <= MAX_DIMENSION and 0 < height <= MAX_DIMENSION):
        raise FormatError(f"implausible map dimensions {width}x{height}")

    player_count = reader.u8("player count")
    flags = reader.u32("flags")
    terrain_len = reader.u32("terrain table length")
    feature_len = reader.u32("feature table length")
    wonder_len = reader.u32("wonder table length")
    resource_len = reader.u32("resource table length")
    mod_data_len = reader.u32("mod data length")
    name_len = reader.u32("map name length")
    description_len = reader.u32("map description length")

    # Only terrain names feed gameplay; the other strings are informational
    terrain_names = reader.name_table(terrain_len, "terrain table", strict=True)
    feature_names = reader.name_table(feature_len, "feature table")
    wonder_names = reader.name_table(wonder_len, "wonder table")
    resource_names = reader.name_table(resource_len, "resource table")
    reader.skip(mod_data_len, "mod data")
    name = reader.text(name_len, "map name")
    description = reader.text(description_len, "map description")
    world_size = reader.text(reader.u32("world size length"), "world size")

    return MapHeader(
        version=version,
        type_flags=signature >> 4,
        width=width,
        height=height,
        player_count=player_count,
        flags=flags,
        terrain_names=terrain_names,
        feature_names=feature_names,
        wonder_names=wonder_names,
        resource_names=resource_names,
        name=name,
        description=description,
        world_size=world_size,
    )


def _read_tiles(reader: _Reader, header: MapHeader) -> list[TileRecord]:
    expected = header.width * header.height
    available = reader.remaining // TILE_RECORD_SIZE
    if available < expected:
        raise FormatError(
            f"header declares {header.width}x{header.height} = {expected} cells "
            f"but the tile section holds {available}"
        )

    tiles = []
    for _ in range(expected):
        raw = reader.take(TILE_RECORD_SIZE, "tile record")
        tiles.append(
            TileRecord(
                terrain_id=raw[0],
                resource_id=raw[1],
                feature_id=raw[2],
                river_flags=raw[3],
                elevation=raw[4],
                wonder_id=raw[6],
            )
        )
    return tiles


def _tile_terrain(index: int, tile: TileRecord, header: MapHeader) -> Terrain:
    if tile.elevation == ELEVATION_HILL:
        return Terrain.HILL
    if tile.elevation == ELEVATION_MOUNTAIN:
        return Terrain.MOUNTAIN
    if tile.elevation != ELEVATION_FLAT:
        raise FormatError(f"cell {index}: unknown elevation {tile.elevation}")

    if tile.terrain_id >= len(header.terrain_names):
        raise FormatError(
            f"cell {index}: terrain id {tile.terrain_id} is out of range "
            f"(table has {len(header.terrain_names)} entries)"
        )
    name = header.terrain_names[tile.terrain_id]
    try:
        return TERRAIN_NAMES[name]
    except KeyError as exc:
        raise FormatError(f"cell {index}: unknown terrain {name!r}") from exc


def read_civ5map_header(data: bytes) -> MapHeader:
    """Parse and validate only the header of a map file."""

    return _read_header(_Reader(data))


def decode_civ5map(data: bytes, *, rules: TerrainRules = DEFAULT_RULES.terrain) -> GameMap:
    """Decode a Civ5Map buffer into a :class:`GameMap`.

    Raises:
        FormatError: On a bad signature, truncated data, an unknown terrain
            id or elevation, or a tile section shorter than width x height.
    """

    reader = _Reader(data)
    header = _read_header(reader)
    tiles = _read_tiles(reader, header)
    terrain = [_tile_terrain(index, tile, header) for index, tile in enumerate(tiles)]

    logger.debug(
        "decoded map %r (%sx%s, version %s), %s trailing bytes ignored",
        header.name,
        header.width,
        header.height,
        header.version,
        reader.remaining,
    )
    return GameMap.from_terrain(
        header.width,
        header.height,
        terrain,
        rules=rules,
        name=header.name,
        description=header.description,
        player_count=header.player_count,
    )


def load_civ5map(path: Path | str, *, rules: TerrainRules = DEFAULT_RULES.terrain) -> GameMap:
    """Read and decode a ``.Civ5Map`` file."""

    return decode_civ5map(Path(path).read_bytes(), rules=rules)
