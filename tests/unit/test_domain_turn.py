"""Unit tests for the turn controller."""

from __future__ import annotations

from dataclasses import replace

import pytest

from civhex.domain.enums import CombatSide, MoveKind, Side, Terrain, TurnPhase
from civhex.domain.grid import HexGrid
from civhex.domain.models import BoundsError, GameMap, Unit, UnitID
from civhex.domain.rules_config import DEFAULT_RULES, CombatRules, TurnRules
from civhex.domain.turn import (
    NoMovableUnitsError,
    NoMovementPointsError,
    NoUnitsError,
    PlacementError,
    TurnController,
    UnknownUnitError,
    UnreachableTargetError,
    WrongSideError,
)
from civhex.mapfile import parse_text_map
from civhex.utils.hex_math import Direction, OffsetCoord


def _unit(
    unit_id: int,
    coord: OffsetCoord,
    side: Side = Side.PLAYER,
    strength: int = 10,
    max_movement: int = 2,
) -> Unit:
    return Unit(
        id=UnitID(unit_id),
        name=f"unit {unit_id}",
        side=side,
        coord=coord,
        strength=strength,
        max_movement=max_movement,
    )


def _controller(*units: Unit, width: int = 6, height: int = 6, **kwargs) -> TurnController:
    grid = HexGrid(GameMap.filled(width, height, Terrain.PLAIN))
    return TurnController(grid, units, **kwargs)


# --- setup ----------------------------------------------------------------------


def test_initial_state() -> None:
    controller = _controller(_unit(1, OffsetCoord(0, 0)), _unit(2, OffsetCoord(5, 5), Side.ENEMY))
    assert controller.turn == 1
    assert controller.active_side == Side.PLAYER
    assert controller.active_unit_id == 1
    assert controller.phase == TurnPhase.AWAITING_ACTION
    assert controller.movement_points() == {1: 2, 2: 2}


def test_add_unit_rejects_bad_placements() -> None:
    grid = HexGrid(parse_text_map("'~A\n'''\n"))
    controller = TurnController(grid, [_unit(1, OffsetCoord(0, 0))])
    with pytest.raises(PlacementError, match="already in use"):
        controller.add_unit(_unit(1, OffsetCoord(0, 1)))
    with pytest.raises(PlacementError, match="outside"):
        controller.add_unit(_unit(2, OffsetCoord(9, 9)))
    with pytest.raises(PlacementError, match="Water"):
        controller.add_unit(_unit(3, OffsetCoord(1, 0)))
    with pytest.raises(PlacementError, match="Mountain"):
        controller.add_unit(_unit(4, OffsetCoord(2, 0)))
    with pytest.raises(PlacementError, match="occupied"):
        controller.add_unit(_unit(5, OffsetCoord(0, 0)))
    assert [u.id for u in controller.units()] == [1]


def test_create_unit_picks_ids_and_free_cells() -> None:
    grid = HexGrid(parse_text_map("~''\n'''\n"))
    controller = TurnController(grid)
    first = controller.create_unit("Scout", Side.PLAYER)
    second = controller.create_unit("Raider", Side.ENEMY, strength=6, max_movement=3)
    assert (first.id, first.coord) == (1, OffsetCoord(1, 0))
    assert (second.id, second.coord) == (2, OffsetCoord(2, 0))
    assert first.max_movement == DEFAULT_RULES.movement.default_max_movement
    assert second.movement_remaining == 3
    assert controller.active_unit_id == first.id


def test_create_unit_on_a_full_map() -> None:
    controller = _controller(_unit(1, OffsetCoord(0, 0)), width=1, height=1)
    with pytest.raises(PlacementError, match="no free"):
        controller.create_unit("Extra", Side.ENEMY)


# --- move_unit ------------------------------------------------------------------


def test_move_relocates_and_spends_points() -> None:
    controller = _controller(_unit(1, OffsetCoord(0, 0)), _unit(2, OffsetCoord(5, 5), Side.ENEMY))
    result = controller.move_unit(UnitID(1), OffsetCoord(0, 1))

    assert result.kind == MoveKind.RELOCATED
    assert (result.origin, result.destination) == (OffsetCoord(0, 0), OffsetCoord(0, 1))
    assert result.movement_spent == 1
    assert result.movement_remaining == 1
    assert controller.unit_positions()[UnitID(1)] == OffsetCoord(0, 1)
    assert controller.active_unit_id == 1


def test_reachable_set_matches_accepted_moves() -> None:
    controller = _controller(_unit(1, OffsetCoord(2, 2)), _unit(2, OffsetCoord(5, 5), Side.ENEMY))
    reachable = controller.reachable_cells(UnitID(1))
    assert OffsetCoord(2, 4) in reachable
    assert OffsetCoord(2, 5) not in reachable
    with pytest.raises(UnreachableTargetError):
        controller.move_unit(UnitID(1), OffsetCoord(2, 5))
    controller.move_unit(UnitID(1), OffsetCoord(2, 4))


def test_move_errors_leave_state_unchanged() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(0, 0)),
        _unit(2, OffsetCoord(5, 5), Side.ENEMY),
    )
    before = controller.snapshot()

    with pytest.raises(UnknownUnitError):
        controller.move_unit(UnitID(99), OffsetCoord(0, 1))
    with pytest.raises(WrongSideError):
        controller.move_unit(UnitID(2), OffsetCoord(5, 4))
    with pytest.raises(UnreachableTargetError):
        controller.move_unit(UnitID(1), OffsetCoord(0, 0))
    with pytest.raises(UnreachableTargetError):
        controller.move_unit(UnitID(1), OffsetCoord(40, 40))

    assert controller.snapshot() == before


def test_exhausted_unit_cannot_move() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(0, 0), max_movement=1),
        _unit(2, OffsetCoord(3, 0), max_movement=1),
        _unit(3, OffsetCoord(5, 5), Side.ENEMY),
    )
    controller.move_unit(UnitID(1), OffsetCoord(0, 1))
    assert controller.active_unit_id == 2
    with pytest.raises(NoMovementPointsError):
        controller.move_unit(UnitID(1), OffsetCoord(0, 2))


def test_turn_complete_rejects_moves() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(0, 0), max_movement=1),
        _unit(2, OffsetCoord(5, 5), Side.ENEMY),
    )
    controller.move_unit(UnitID(1), OffsetCoord(0, 1))
    assert controller.phase == TurnPhase.TURN_COMPLETE
    assert controller.active_unit_id is None
    with pytest.raises(NoMovableUnitsError):
        controller.move_unit(UnitID(1), OffsetCoord(0, 2))


def test_zero_movement_unit() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(0, 0), max_movement=0),
        _unit(2, OffsetCoord(0, 1), Side.ENEMY),
    )
    assert controller.reachable_cells(UnitID(1)) == frozenset()
    assert controller.phase == TurnPhase.TURN_COMPLETE
    assert controller.attack_targets(UnitID(1)) == {OffsetCoord(0, 1)}


def test_side_without_units() -> None:
    controller = _controller(_unit(2, OffsetCoord(5, 5), Side.ENEMY))
    with pytest.raises(NoUnitsError):
        controller.move_unit(UnitID(2), OffsetCoord(5, 4))
    with pytest.raises(NoUnitsError):
        controller.cycle_active()



def test_step_in_a_direction() -> None:
    controller = _controller(_unit(1, OffsetCoord(2, 2)), _unit(2, OffsetCoord(5, 5), Side.ENEMY))
    result = controller.move_unit_in_direction(UnitID(1), Direction.SOUTH)
    assert result.kind == MoveKind.RELOCATED
    assert result.destination == OffsetCoord(2, 3)
    assert result.movement_spent == 1
    assert controller.unit(UnitID(1)).coord == OffsetCoord(2, 3)


def test_step_off_the_map_leaves_state_unchanged() -> None:
    controller = _controller(_unit(1, OffsetCoord(0, 0)), _unit(2, OffsetCoord(5, 5), Side.ENEMY))
    with pytest.raises(BoundsError):
        controller.move_unit_in_direction(UnitID(1), Direction.NORTH)
    assert controller.unit_positions()[UnitID(1)] == OffsetCoord(0, 0)
    assert controller.movement_points()[UnitID(1)] == 2


def test_step_onto_a_friend_is_rejected() -> None:
    controller = _controller(_unit(1, OffsetCoord(2, 2)), _unit(3, OffsetCoord(2, 3)))
    with pytest.raises(UnreachableTargetError):
        controller.move_unit_in_direction(UnitID(1), Direction.SOUTH)


def test_step_into_an_enemy_attacks() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(2, 1), strength=10),
        _unit(2, OffsetCoord(2, 2), Side.ENEMY, strength=5),
    )
    result = controller.move_unit_in_direction(UnitID(1), Direction.SOUTH)
    assert result.kind == MoveKind.COMBAT
    assert result.combat is not None
    assert result.combat.winner == CombatSide.ATTACKER
    assert result.destination == OffsetCoord(2, 2)

# --- combat ---------------------------------------------------------------------


def test_winning_attack_removes_defender_and_advances() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(2, 0), strength=10),
        _unit(2, OffsetCoord(2, 2), Side.ENEMY, strength=5),
    )
    result = controller.move_unit(UnitID(1), OffsetCoord(2, 2))

    assert result.kind == MoveKind.COMBAT
    assert result.combat is not None
    assert result.combat.winner == CombatSide.ATTACKER
    assert result.destination == OffsetCoord(2, 2)
    assert result.movement_spent == 2
    assert result.movement_remaining == 0
    assert UnitID(2) not in controller.unit_positions()
    assert controller.unit(UnitID(1)).coord == OffsetCoord(2, 2)


def test_winner_without_advance_stays_on_staging_cell() -> None:
    rules = replace(DEFAULT_RULES, combat=CombatRules(attacker_advances=False))
    controller = _controller(
        _unit(1, OffsetCoord(2, 0), strength=10),
        _unit(2, OffsetCoord(2, 2), Side.ENEMY, strength=5),
        rules=rules,
    )
    result = controller.move_unit(UnitID(1), OffsetCoord(2, 2))
    assert result.destination == OffsetCoord(2, 1)
    assert controller.unit(UnitID(1)).coord == OffsetCoord(2, 1)


def test_losing_attack_removes_attacker() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(2, 1), strength=4),
        _unit(3, OffsetCoord(0, 0)),
        _unit(2, OffsetCoord(2, 2), Side.ENEMY, strength=9),
    )
    result = controller.move_unit(UnitID(1), OffsetCoord(2, 2))

    assert result.combat is not None
    assert result.combat.winner == CombatSide.DEFENDER
    assert result.movement_remaining == 0
    with pytest.raises(UnknownUnitError):
        controller.unit(UnitID(1))
    assert controller.unit(UnitID(2)).coord == OffsetCoord(2, 2)
    assert controller.active_unit_id == 3


def test_flanking_counts_allies_around_defender() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(2, 1), strength=10),
        _unit(3, OffsetCoord(1, 2)),
        _unit(2, OffsetCoord(2, 2), Side.ENEMY, strength=10),
    )
    outcome = controller.preview_attack(UnitID(1), OffsetCoord(2, 2))
    assert outcome.attacker_modifiers == {"flanking": 10}
    assert outcome.winner == CombatSide.ATTACKER
    # Previews change nothing
    assert controller.unit_positions()[UnitID(2)] == OffsetCoord(2, 2)
    assert controller.movement_points()[UnitID(1)] == 2


def test_preview_matches_resolution() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(2, 0)),
        _unit(2, OffsetCoord(2, 2), Side.ENEMY, strength=9),
    )
    preview = controller.preview_attack(UnitID(1), OffsetCoord(2, 2))
    result = controller.move_unit(UnitID(1), OffsetCoord(2, 2))
    assert result.combat == preview


def test_preview_of_empty_cell_is_rejected() -> None:
    controller = _controller(_unit(1, OffsetCoord(2, 0)), _unit(2, OffsetCoord(5, 5), Side.ENEMY))
    with pytest.raises(UnreachableTargetError):
        controller.preview_attack(UnitID(1), OffsetCoord(2, 1))


def test_destroyed_ids_are_not_reused() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(2, 1), strength=10),
        _unit(2, OffsetCoord(2, 2), Side.ENEMY, strength=1),
    )
    controller.move_unit(UnitID(1), OffsetCoord(2, 2))
    assert controller.create_unit("Fresh", Side.ENEMY).id == 3


# --- cycle_active / end_turn ----------------------------------------------------


def test_cycle_wraps_and_skips_exhausted_units() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(0, 0)),
        _unit(2, OffsetCoord(2, 0)),
        _unit(3, OffsetCoord(4, 0)),
        _unit(4, OffsetCoord(5, 5), Side.ENEMY),
    )
    assert controller.cycle_active() == 2
    assert controller.cycle_active() == 3
    assert controller.cycle_active() == 1

    controller.unit(UnitID(2)).movement_remaining = 0
    assert controller.cycle_active() == 3


def test_cycle_with_nothing_to_move() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(0, 0), max_movement=0),
        _unit(2, OffsetCoord(5, 5), Side.ENEMY),
    )
    assert controller.cycle_active() is None


def test_end_turn_resets_movement_and_rotates_sides() -> None:
    controller = _controller(
        _unit(1, OffsetCoord(0, 0)),
        _unit(2, OffsetCoord(5, 5), Side.ENEMY),
    )
    controller.move_unit(UnitID(1), OffsetCoord(0, 2))
    assert controller.end_turn() == 2
    assert controller.active_side == Side.ENEMY
    assert controller.active_unit_id == 2
    assert controller.movement_points() == {1: 2, 2: 2}

    controller.end_turn()
    assert controller.turn == 3
    assert controller.active_side == Side.PLAYER


def test_end_turn_without_rotation() -> None:
    rules = replace(DEFAULT_RULES, turns=TurnRules(rotate_sides=False))
    controller = _controller(
        _unit(1, OffsetCoord(0, 0)),
        _unit(2, OffsetCoord(5, 5), Side.ENEMY),
        rules=rules,
    )
    controller.end_turn()
    assert controller.active_side == Side.PLAYER


def test_end_turn_skips_a_side_with_no_units() -> None:
    controller = _controller(_unit(1, OffsetCoord(0, 0)))
    controller.end_turn()
    assert controller.active_side == Side.PLAYER
    assert controller.active_unit_id == 1


def test_snapshot_is_a_copy() -> None:
    controller = _controller(_unit(1, OffsetCoord(0, 0)))
    snapshot = controller.snapshot()
    controller.move_unit(UnitID(1), OffsetCoord(0, 1))
    assert snapshot.units[0].coord == OffsetCoord(0, 0)
    assert snapshot.units[0].movement_remaining == 2
