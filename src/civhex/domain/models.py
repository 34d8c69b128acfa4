"""Dataclasses describing every civhex game entity.

Maps and cells are immutable once built. Units are plain mutable records;
only the turn controller changes them. Combat outcomes and move results are
ephemeral values handed back to the caller.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import NewType

from civhex.domain.enums import CombatSide, MoveKind, Side, Terrain
from civhex.domain.rules_config import DEFAULT_RULES, TerrainRules
from civhex.utils.hex_math import OffsetCoord

UnitID = NewType("UnitID", int)


class BoundsError(LookupError):
    """Raised when a coordinate lies outside the map."""

    def __init__(self, coord: OffsetCoord, width: int, height: int) -> None:
        super().__init__(f"{coord} is outside the {width}x{height} map")
        self.coord = coord


# --- Map ------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Cell:
    """A single map tile.

    ``movement_cost`` is ``None`` when the terrain cannot be entered.
    """

    terrain: Terrain
    movement_cost: int | None
    blocks_occupation: bool = False

    @classmethod
    def from_terrain(cls, terrain: Terrain, rules: TerrainRules = DEFAULT_RULES.terrain) -> Cell:
        profile = rules.profile(terrain)
        return cls(
            terrain=terrain,
            movement_cost=profile.movement_cost,
            blocks_occupation=profile.blocks_occupation,
        )

    @property
    def impassable(self) -> bool:
        return self.movement_cost is None


@dataclass(frozen=True, slots=True)
class GameMap:
    """Fixed-size rectangular grid of cells.

    Cells are stored row-major: the cell at ``(x, y)`` lives at index
    ``y * width + x``. The top-left corner is ``(0, 0)``.
    """

    width: int
    height: int
    cells: tuple[Cell, ...]
    name: str = ""
    description: str = ""
    player_count: int = 0

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"map dimensions must be positive, got {self.width}x{self.height}")
        if len(self.cells) != self.width * self.height:
            raise ValueError(
                f"inconsistent map data: {self.width}x{self.height} map with "
                f"{len(self.cells)} cells"
            )

    @classmethod
    def from_terrain(
        cls,
        width: int,
        height: int,
        terrain: Sequence[Terrain],
        *,
        rules: TerrainRules = DEFAULT_RULES.terrain,
        name: str = "",
        description: str = "",
        player_count: int = 0,
    ) -> GameMap:
        cache: dict[Terrain, Cell] = {}
        cells = []
        for kind in terrain:
            if kind not in cache:
                cache[kind] = Cell.from_terrain(kind, rules)
            cells.append(cache[kind])
        return cls(
            width=width,
            height=height,
            cells=tuple(cells),
            name=name,
            description=description,
            player_count=player_count,
        )

    @classmethod
    def filled(
        cls,
        width: int,
        height: int,
        terrain: Terrain = Terrain.GRASSLAND,
        *,
        rules: TerrainRules = DEFAULT_RULES.terrain,
    ) -> GameMap:
        """Create a map covered by a single terrain type. Useful for testing."""

        return cls.from_terrain(width, height, [terrain] * (width * height), rules=rules)

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    def in_bounds(self, coord: OffsetCoord) -> bool:
        return 0 <= coord.x < self.width and 0 <= coord.y < self.height

    def cell_at(self, coord: OffsetCoord) -> Cell:
        if not self.in_bounds(coord):
            raise BoundsError(coord, self.width, self.height)
        return self.cells[coord.y * self.width + coord.x]

    def coords(self) -> Iterator[OffsetCoord]:
        for y in range(self.height):
            for x in range(self.width):
                yield OffsetCoord(x, y)

    def tiles(self) -> Iterator[tuple[OffsetCoord, Cell]]:
        for index, cell in enumerate(self.cells):
            y, x = divmod(index, self.width)
            yield OffsetCoord(x, y), cell


# --- Units ----------------------------------------------------------------------


@dataclass(slots=True)
class Unit:
    """A unit on the map.

    ``movement_remaining`` is reset to ``max_movement`` at the start of each
    turn. Combat modifiers are never stored here.
    """

    id: UnitID
    name: str
    side: Side
    coord: OffsetCoord
    strength: int
    max_movement: int
    movement_remaining: int | None = None

    def __post_init__(self) -> None:
        if self.strength <= 0:
            raise ValueError(f"unit strength must be positive, got {self.strength}")
        if self.max_movement < 0:
            raise ValueError(f"max_movement must be non-negative, got {self.max_movement}")
        if self.movement_remaining is None:
            self.movement_remaining = self.max_movement

    @property
    def map_symbol(self) -> str:
        """One letter to draw the unit with: the first letter of its name."""

        return self.name[:1] or "?"

    @property
    def is_exhausted(self) -> bool:
        return self.movement_remaining == 0

    def refresh(self) -> None:
        self.movement_remaining = self.max_movement


# --- Ephemeral results ----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CombatOutcome:
    """Result of resolving one attack.

    Modifiers are whole percentages keyed by their source (``terrain``,
    ``flanking``, ``variance``). Effective strengths are
    ``base * (100 + sum(modifiers)) / 100``.
    """

    attacker_id: UnitID
    defender_id: UnitID
    attacker_base: int
    defender_base: int
    attacker_modifiers: dict[str, int]
    defender_modifiers: dict[str, int]
    winner: CombatSide
    attacker_advances: bool

    @property
    def attacker_strength(self) -> float:
        return self.attacker_base * (100 + sum(self.attacker_modifiers.values())) / 100

    @property
    def defender_strength(self) -> float:
        return self.defender_base * (100 + sum(self.defender_modifiers.values())) / 100

    @property
    def winner_id(self) -> UnitID:
        return self.attacker_id if self.winner == CombatSide.ATTACKER else self.defender_id

    @property
    def loser_id(self) -> UnitID:
        return self.defender_id if self.winner == CombatSide.ATTACKER else self.attacker_id


@dataclass(frozen=True, slots=True)
class MoveResult:
    """Outcome of an accepted move order."""

    kind: MoveKind
    unit_id: UnitID
    origin: OffsetCoord
    target: OffsetCoord
    destination: OffsetCoord
    movement_spent: int
    movement_remaining: int
    combat: CombatOutcome | None = None
