"""Runtime primitives backing the civhex HTTP API."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from civhex.config import Settings, get_settings
from civhex.domain.models import CombatOutcome, MoveResult, UnitID
from civhex.domain.rules_config import DEFAULT_RULES, RulesConfig
from civhex.services import GameService
from civhex.utils.hex_math import OffsetCoord

logger = logging.getLogger(__name__)


class GameNotFoundError(LookupError):
    """Raised when a game id is not known to the runtime."""


def _coord(coord: OffsetCoord) -> dict[str, int]:
    return {"x": coord.x, "y": coord.y}


class GameSessions:
    """In-memory registry of running games, keyed by id."""

    def __init__(self, *, settings: Settings, rules: RulesConfig = DEFAULT_RULES) -> None:
        self._settings = settings
        self._rules = GameService.rules_with(
            max_movement=settings.default_max_movement,
            variance_percent=settings.combat_variance_percent,
            base=rules,
        )
        self._games: dict[int, GameService] = {}
        # Ids of discarded games are never handed out again
        self._last_id = 0

    @property
    def rules(self) -> RulesConfig:
        return self._rules

    def list_ids(self) -> list[int]:
        return sorted(self._games)

    def get(self, game_id: int) -> GameService:
        try:
            return self._games[game_id]
        except KeyError as exc:
            raise GameNotFoundError(f"game {game_id} not found") from exc

    def create_from_bytes(self, data: bytes) -> tuple[int, GameService]:
        """Decode ``data`` and register a new game; ``FormatError`` propagates."""

        game_id = self._next_identifier()
        game = GameService.from_bytes(data, rules=self._rules, game_id=game_id)
        self._games[game_id] = game
        logger.info("game %s created from %s byte upload", game_id, len(data))
        return game_id, game

    def create_from_file(self, filename: str) -> tuple[int, GameService]:
        """Load a map from the configured maps directory and register a new game.

        ``.txt`` files are read as text maps, anything else as Civ5Map.
        """

        path = self._settings.maps_dir / Path(filename).name
        if not path.is_file():
            raise FileNotFoundError(f"map file {path.name!r} not found")
        game_id = self._next_identifier()
        if path.suffix.lower() == ".txt":
            game = GameService.from_text_file(path, rules=self._rules, game_id=game_id)
        else:
            game = GameService.from_file(path, rules=self._rules, game_id=game_id)
        self._games[game_id] = game
        logger.info("game %s created from %s", game_id, path)
        return game_id, game

    def discard(self, game_id: int) -> None:
        self._games.pop(game_id, None)

    def clear(self) -> None:
        self._games.clear()

    def _next_identifier(self) -> int:
        self._last_id += 1
        return self._last_id

    # --- serialisation ------------------------------------------------------

    @staticmethod
    def to_game_dict(game_id: int, game: GameService) -> dict[str, Any]:
        snapshot = game.snapshot()
        return {
            "id": game_id,
            "turn": snapshot.turn,
            "active_side": snapshot.active_side,
            "active_unit_id": snapshot.active_unit_id,
            "phase": snapshot.phase,
            "width": game.game_map.width,
            "height": game.game_map.height,
            "units": [
                {
                    "id": unit.id,
                    "name": unit.name,
                    "symbol": unit.symbol,
                    "side": unit.side,
                    "x": unit.coord.x,
                    "y": unit.coord.y,
                    "strength": unit.strength,
                    "max_movement": unit.max_movement,
                    "movement_remaining": unit.movement_remaining,
                }
                for unit in snapshot.units
            ],
        }

    @staticmethod
    def to_map_dict(game: GameService) -> dict[str, Any]:
        game_map = game.game_map
        return {
            "width": game_map.width,
            "height": game_map.height,
            "name": game_map.name,
            "description": game_map.description,
            "cells": [
                {
                    "x": coord.x,
                    "y": coord.y,
                    "terrain": cell.terrain,
                    "movement_cost": cell.movement_cost,
                    "blocks_occupation": cell.blocks_occupation,
                }
                for coord, cell in game_map.tiles()
            ],
        }

    @staticmethod
    def to_reachable_dict(unit_id: UnitID, cells: frozenset[OffsetCoord]) -> dict[str, Any]:
        return {"unit_id": unit_id, "cells": [_coord(c) for c in sorted(cells)]}

    @staticmethod
    def to_combat_dict(outcome: CombatOutcome) -> dict[str, Any]:
        return {
            "attacker_id": outcome.attacker_id,
            "defender_id": outcome.defender_id,
            "attacker_base": outcome.attacker_base,
            "defender_base": outcome.defender_base,
            "attacker_modifiers": dict(outcome.attacker_modifiers),
            "defender_modifiers": dict(outcome.defender_modifiers),
            "attacker_strength": outcome.attacker_strength,
            "defender_strength": outcome.defender_strength,
            "winner": outcome.winner,
            "loser_id": outcome.loser_id,
            "attacker_advances": outcome.attacker_advances,
        }

    @classmethod
    def to_move_dict(cls, result: MoveResult) -> dict[str, Any]:
        return {
            "kind": result.kind,
            "unit_id": result.unit_id,
            "origin": _coord(result.origin),
            "target": _coord(result.target),
            "destination": _coord(result.destination),
            "movement_spent": result.movement_spent,
            "movement_remaining": result.movement_remaining,
            "combat": cls.to_combat_dict(result.combat) if result.combat else None,
        }


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self, *, settings: Settings | None = None, rules: RulesConfig = DEFAULT_RULES
    ) -> None:
        self.settings = settings or get_settings()
        self.games = GameSessions(settings=self.settings, rules=rules)

    async def shutdown(self) -> None:
        if self.games.list_ids():
            logger.info("discarding %s running games", len(self.games.list_ids()))
        self.games.clear()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
