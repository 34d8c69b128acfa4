"""Service layer for civhex.

- GameService: one game's engine API (load, move, cycle, end turn, snapshots)
- load_map: decode a Civ5Map buffer into a map

Usage:
    from civhex.services import GameService
    game = GameService.from_bytes(data)
    scout = game.spawn_unit("Scout", Side.PLAYER)
    game.attempt_move(scout.id, target)
"""

from civhex.services.game_service import GameService, load_map

__all__ = ["GameService", "load_map"]
