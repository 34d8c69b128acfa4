"""Plain-text map format.

Each line is a row of tiles and each character one tile, using the symbols
in :data:`TERRAIN_SYMBOLS`. Every line must have the same length. Handy for
hand-written test maps and small scenarios.
"""

from __future__ import annotations

from pathlib import Path

from civhex.domain.enums import Terrain
from civhex.domain.models import GameMap
from civhex.domain.rules_config import DEFAULT_RULES, TerrainRules
from civhex.mapfile.civ5map import FormatError

TERRAIN_SYMBOLS: dict[str, Terrain] = {
    "'": Terrain.PLAIN,
    '"': Terrain.GRASSLAND,
    " ": Terrain.DESERT,
    ",": Terrain.TUNDRA,
    "*": Terrain.SNOW,
    "^": Terrain.HILL,
    "A": Terrain.MOUNTAIN,
    "~": Terrain.WATER,
}


def parse_text_map(
    text: str, *, rules: TerrainRules = DEFAULT_RULES.terrain, name: str = ""
) -> GameMap:
    """Build a map from its text form.

    Raises:
        FormatError: On an empty map, lines of different lengths or an
            unknown symbol.
    """

    rows = text.splitlines()
    while rows and rows[-1] == "":
        rows.pop()
    if not rows:
        raise FormatError("text map is empty")

    width = len(rows[0])
    terrain: list[Terrain] = []
    for y, row in enumerate(rows):
        if len(row) != width:
            raise FormatError(f"row {y} has {len(row)} tiles, expected {width}")
        for x, symbol in enumerate(row):
            try:
                terrain.append(TERRAIN_SYMBOLS[symbol])
            except KeyError as exc:
                raise FormatError(f"unknown terrain symbol {symbol!r} at ({x}, {y})") from exc

    return GameMap.from_terrain(width, len(rows), terrain, rules=rules, name=name)


def load_text_map(path: Path | str, *, rules: TerrainRules = DEFAULT_RULES.terrain) -> GameMap:
    path = Path(path)
    return parse_text_map(path.read_text(encoding="utf-8"), rules=rules, name=path.stem)
