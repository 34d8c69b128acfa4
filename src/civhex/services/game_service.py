"""Game service: the engine API consumed by rendering and input layers.

A :class:`GameService` owns exactly one :class:`TurnController`. There is no
process-wide game; callers keep the service instance and pass it to whatever
needs it.
"""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

from civhex.domain.enums import Side, Terrain
from civhex.domain.grid import HexGrid
from civhex.domain.models import CombatOutcome, GameMap, MoveResult, Unit, UnitID
from civhex.domain.rules_config import DEFAULT_RULES, RulesConfig
from civhex.domain.turn import TurnController, TurnSnapshot
from civhex.mapfile import decode_civ5map, load_civ5map, load_text_map
from civhex.utils.hex_math import Direction, OffsetCoord


def load_map(data: bytes, *, rules: RulesConfig = DEFAULT_RULES) -> GameMap:
    """Decode a Civ5Map buffer; raises ``FormatError`` on malformed data."""

    return decode_civ5map(data, rules=rules.terrain)


class GameService:
    """Facade over one game's grid and turn controller."""

    def __init__(
        self,
        game_map: GameMap,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        game_id: int = 0,
    ) -> None:
        self.rules = rules
        self.grid = HexGrid(game_map)
        self.controller = TurnController(self.grid, rules=rules, game_id=game_id)

    @classmethod
    def from_bytes(
        cls, data: bytes, *, rules: RulesConfig = DEFAULT_RULES, game_id: int = 0
    ) -> GameService:
        return cls(load_map(data, rules=rules), rules=rules, game_id=game_id)

    @classmethod
    def from_file(
        cls, path: Path | str, *, rules: RulesConfig = DEFAULT_RULES, game_id: int = 0
    ) -> GameService:
        return cls(load_civ5map(path, rules=rules.terrain), rules=rules, game_id=game_id)

    @classmethod
    def from_text_file(
        cls, path: Path | str, *, rules: RulesConfig = DEFAULT_RULES, game_id: int = 0
    ) -> GameService:
        """Start a game on a one-character-per-tile text map."""

        return cls(load_text_map(path, rules=rules.terrain), rules=rules, game_id=game_id)

    @staticmethod
    def rules_with(
        *,
        max_movement: int | None = None,
        variance_percent: int | None = None,
        base: RulesConfig = DEFAULT_RULES,
    ) -> RulesConfig:
        """Derive a ruleset with a different movement budget or combat variance."""

        rules = base
        if max_movement is not None:
            movement = replace(rules.movement, default_max_movement=max_movement)
            rules = replace(rules, movement=movement)
        if variance_percent is not None:
            combat = replace(rules.combat, variance_percent=variance_percent)
            rules = replace(rules, combat=combat)
        return rules

    @property
    def game_map(self) -> GameMap:
        return self.grid.map

    # --- setup --------------------------------------------------------------

    def spawn_unit(
        self,
        name: str,
        side: Side,
        coord: OffsetCoord | None = None,
        *,
        strength: int = 10,
        max_movement: int | None = None,
    ) -> Unit:
        """Put a new unit on the map, on the first free passable cell by default."""

        return self.controller.create_unit(
            name, side, coord, strength=strength, max_movement=max_movement
        )

    # --- actions ------------------------------------------------------------

    def reachable_cells(self, unit_id: UnitID) -> frozenset[OffsetCoord]:
        return self.controller.reachable_cells(unit_id)

    def attempt_move(self, unit_id: UnitID, target: OffsetCoord) -> MoveResult:
        """Move or attack; raises a ``MoveError`` subclass when the order is rejected."""

        return self.controller.move_unit(unit_id, target)

    def step(self, unit_id: UnitID, direction: Direction) -> MoveResult:
        """Move one cell towards ``direction``; ``BoundsError`` when that leaves the map."""

        return self.controller.move_unit_in_direction(unit_id, direction)

    def attack_targets(self, unit_id: UnitID) -> frozenset[OffsetCoord]:
        return self.controller.attack_targets(unit_id)

    def preview_attack(self, unit_id: UnitID, target: OffsetCoord) -> CombatOutcome:
        return self.controller.preview_attack(unit_id, target)

    def cycle_active_unit(self) -> UnitID | None:
        return self.controller.cycle_active()

    def end_turn(self) -> int:
        return self.controller.end_turn()

    # --- read-only snapshots ------------------------------------------------

    def terrain_snapshot(self) -> dict[OffsetCoord, Terrain]:
        return {coord: cell.terrain for coord, cell in self.game_map.tiles()}

    def unit_positions(self) -> dict[UnitID, OffsetCoord]:
        return self.controller.unit_positions()

    def movement_points(self) -> dict[UnitID, int]:
        return self.controller.movement_points()

    def snapshot(self) -> TurnSnapshot:
        return self.controller.snapshot()
