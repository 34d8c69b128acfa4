"""Pytest configuration to ensure the `src` package layout is importable.

This adds the `src/` directory to `sys.path` so tests can import the
`civhex` package (e.g., `from civhex.api.app import create_app`) without
requiring an editable install in CI. It also provides a builder for
in-memory Civ5Map buffers.
"""

import struct
import sys
from collections.abc import Callable, Sequence
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

DEFAULT_TERRAIN_TABLE = (
    "TERRAIN_GRASS",
    "TERRAIN_PLAINS",
    "TERRAIN_DESERT",
    "TERRAIN_TUNDRA",
    "TERRAIN_SNOW",
    "TERRAIN_COAST",
    "TERRAIN_OCEAN",
)


def _table(names: Sequence[str]) -> bytes:
    if not names:
        return b""
    return "\0".join(names).encode("utf-8") + b"\0"


def build_civ5map(
    width: int,
    height: int,
    tiles: Sequence[tuple[int, int]] | None = None,
    *,
    signature: int = 0x8C,
    terrain_names: Sequence[str] = DEFAULT_TERRAIN_TABLE,
    feature_names: Sequence[str] = ("FEATURE_FOREST", "FEATURE_JUNGLE"),
    resource_names: Sequence[str] = ("RESOURCE_IRON",),
    mod_data: bytes = b"\x01\x02\x03",
    name: str = "Test Map",
    description: str = "A map for tests",
    world_size: str = "WORLDSIZE_DUEL",
    player_count: int = 2,
    trailing: bytes = b"",
) -> bytes:
    """Serialise a map; ``tiles`` holds ``(terrain_id, elevation)`` per cell, row-major."""

    if tiles is None:
        tiles = [(0, 0)] * (width * height)

    terrain = _table(terrain_names)
    features = _table(feature_names)
    wonders = b""
    resources = _table(resource_names)
    name_raw = name.encode("utf-8")
    description_raw = description.encode("utf-8")
    world_size_raw = world_size.encode("utf-8")

    parts = [
        struct.pack("<BIIBI", signature, width, height, player_count, 0),
        struct.pack(
            "<7I",
            len(terrain),
            len(features),
            len(wonders),
            len(resources),
            len(mod_data),
            len(name_raw),
            len(description_raw),
        ),
        terrain,
        features,
        wonders,
        resources,
        mod_data,
        name_raw,
        description_raw,
        struct.pack("<I", len(world_size_raw)),
        world_size_raw,
    ]
    for terrain_id, elevation in tiles:
        parts.append(struct.pack("<8B", terrain_id, 0xFF, 0xFF, 0, elevation, 0, 0xFF, 0))
    parts.append(trailing)
    return b"".join(parts)


@pytest.fixture
def civ5map_builder() -> Callable[..., bytes]:
    return build_civ5map
