"""Turn sequencing: unit roster, movement budgets and the active unit.

The controller is the only owner of unit state. Planner and combat rules are
pure functions that it calls with the current roster; every error is raised
before anything is mutated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from civhex.domain import combat, movement
from civhex.domain.enums import CombatSide, MoveKind, Side, TurnPhase
from civhex.domain.grid import HexGrid
from civhex.domain.models import CombatOutcome, MoveResult, Unit, UnitID
from civhex.domain.rules_config import DEFAULT_RULES, RulesConfig
from civhex.utils.hex_math import Direction, OffsetCoord
from civhex.utils.rng import generate_seed

logger = logging.getLogger(__name__)

SIDE_ORDER: tuple[Side, ...] = (Side.PLAYER, Side.ENEMY)


class MoveError(RuntimeError):
    """Base class for rejected actions. State is unchanged when raised."""


class UnknownUnitError(MoveError):
    """The unit id is not on the roster (never existed or was destroyed)."""


class NoUnitsError(MoveError):
    """The active side has no units left."""


class NoMovableUnitsError(MoveError):
    """Every unit of the active side has spent its movement points."""


class WrongSideError(MoveError):
    """The unit belongs to the side that is not playing this turn."""


class NoMovementPointsError(MoveError):
    """The unit has no movement points left this turn."""


class UnreachableTargetError(MoveError):
    """The target is not in the unit's reachable set."""


class PlacementError(ValueError):
    """A unit cannot be placed on the requested cell."""


@dataclass(frozen=True, slots=True)
class UnitView:
    """Read-only copy of a unit for display."""

    id: UnitID
    name: str
    symbol: str
    side: Side
    coord: OffsetCoord
    strength: int
    max_movement: int
    movement_remaining: int


@dataclass(frozen=True, slots=True)
class TurnSnapshot:
    """Read-only view of the turn state."""

    turn: int
    active_side: Side
    active_unit_id: UnitID | None
    phase: TurnPhase
    units: tuple[UnitView, ...]


class TurnController:
    """Owns the roster and enforces the turn rules for one game."""

    def __init__(
        self,
        grid: HexGrid,
        units: Iterable[Unit] = (),
        *,
        rules: RulesConfig = DEFAULT_RULES,
        active_side: Side = Side.PLAYER,
        game_id: int = 0,
    ) -> None:
        self.grid = grid
        self.rules = rules
        self.game_id = game_id
        self._units: dict[UnitID, Unit] = {}
        self._turn = rules.turns.first_turn
        self._active_side = active_side
        self._active_unit_id: UnitID | None = None
        self._last_id = 0
        for unit in units:
            self.add_unit(unit)
        self._active_unit_id = self._first_movable()

    # ------------------------------------------------------------------
    # Read-only accessors

    @property
    def turn(self) -> int:
        return self._turn

    @property
    def active_side(self) -> Side:
        return self._active_side

    @property
    def active_unit_id(self) -> UnitID | None:
        return self._active_unit_id

    @property
    def phase(self) -> TurnPhase:
        if any(u.movement_remaining for u in self.units_for(self._active_side)):
            return TurnPhase.AWAITING_ACTION
        return TurnPhase.TURN_COMPLETE

    def units(self) -> list[Unit]:
        return list(self._units.values())

    def units_for(self, side: Side) -> list[Unit]:
        return [unit for unit in self._units.values() if unit.side == side]

    def unit(self, unit_id: UnitID) -> Unit:
        try:
            return self._units[unit_id]
        except KeyError as exc:
            raise UnknownUnitError(f"unit {unit_id} is not on the roster") from exc

    def unit_at(self, coord: OffsetCoord) -> Unit | None:
        return self.occupancy().get(coord)

    def occupancy(self) -> dict[OffsetCoord, Unit]:
        return {unit.coord: unit for unit in self._units.values()}

    def unit_positions(self) -> dict[UnitID, OffsetCoord]:
        return {unit.id: unit.coord for unit in self._units.values()}

    def movement_points(self) -> dict[UnitID, int]:
        return {unit.id: unit.movement_remaining or 0 for unit in self._units.values()}

    def snapshot(self) -> TurnSnapshot:
        return TurnSnapshot(
            turn=self._turn,
            active_side=self._active_side,
            active_unit_id=self._active_unit_id,
            phase=self.phase,
            units=tuple(
                UnitView(
                    id=u.id,
                    name=u.name,
                    symbol=u.map_symbol,
                    side=u.side,
                    coord=u.coord,
                    strength=u.strength,
                    max_movement=u.max_movement,
                    movement_remaining=u.movement_remaining or 0,
                )
                for u in self._units.values()
            ),
        )

    # ------------------------------------------------------------------
    # Roster management

    def add_unit(self, unit: Unit) -> Unit:
        """Place ``unit`` on the map with full movement points."""

        if unit.id in self._units:
            raise PlacementError(f"unit id {unit.id} is already in use")
        if not self.grid.in_bounds(unit.coord):
            raise PlacementError(f"{unit.coord} is outside the map")
        cell = self.grid.cell_at(unit.coord)
        if cell.impassable or cell.blocks_occupation:
            raise PlacementError(f"{unit.coord} ({cell.terrain.display_name}) cannot hold a unit")
        if self.unit_at(unit.coord) is not None:
            raise PlacementError(f"{unit.coord} is already occupied")

        unit.refresh()
        self._units[unit.id] = unit
        # Ids of destroyed units are never handed out again
        self._last_id = max(self._last_id, int(unit.id))
        if self._active_unit_id is None and unit.side == self._active_side:
            self._active_unit_id = unit.id
        return unit

    def create_unit(
        self,
        name: str,
        side: Side,
        coord: OffsetCoord | None = None,
        *,
        strength: int = 10,
        max_movement: int | None = None,
    ) -> Unit:
        """Create a unit with the next free id; defaults to the first passable free cell."""

        if coord is None:
            coord = self._first_free_cell()
        unit = Unit(
            id=self._next_identifier(),
            name=name,
            side=side,
            coord=coord,
            strength=strength,
            max_movement=(
                self.rules.movement.default_max_movement if max_movement is None else max_movement
            ),
        )
        return self.add_unit(unit)

    # ------------------------------------------------------------------
    # Actions

    def reachable_cells(self, unit_id: UnitID) -> frozenset[OffsetCoord]:
        unit = self.unit(unit_id)
        return movement.reachable_cells(unit, self.grid, self.occupancy(), rules=self.rules)

    def attack_targets(self, unit_id: UnitID) -> frozenset[OffsetCoord]:
        """Cells next to ``unit_id`` holding an enemy, even when it has no points left."""

        unit = self.unit(unit_id)
        return movement.attack_targets(unit, self.grid, self.occupancy())

    def move_unit_in_direction(self, unit_id: UnitID, direction: Direction) -> MoveResult:
        """Step ``unit_id`` one cell towards ``direction``, attacking an enemy standing there.

        Raises:
            BoundsError: When the step would leave the map.
        """

        unit = self._check_can_act(unit_id)
        return self.move_unit(unit_id, self.grid.neighbor(unit.coord, direction))

    def move_unit(self, unit_id: UnitID, target: OffsetCoord) -> MoveResult:
        """Move ``unit_id`` to ``target``, fighting if the target holds an enemy."""

        unit = self._check_can_act(unit_id)
        occupancy = self.occupancy()
        plan = movement.plan_moves(unit, self.grid, occupancy, rules=self.rules).get(target)
        if plan is None:
            raise UnreachableTargetError(f"{target} is not reachable by unit {unit_id}")

        origin = unit.coord
        unit.movement_remaining = (unit.movement_remaining or 0) - plan.cost

        if not plan.is_attack:
            unit.coord = target
            result = MoveResult(
                kind=MoveKind.RELOCATED,
                unit_id=unit.id,
                origin=origin,
                target=target,
                destination=target,
                movement_spent=plan.cost,
                movement_remaining=unit.movement_remaining,
            )
        else:
            result = self._attack(unit, occupancy[target], plan, origin)

        self._after_action()
        return result

    def preview_attack(self, unit_id: UnitID, target: OffsetCoord) -> CombatOutcome:
        """Expected outcome of attacking ``target``, without changing any state."""

        unit = self._check_can_act(unit_id)
        occupancy = self.occupancy()
        plan = movement.plan_moves(unit, self.grid, occupancy, rules=self.rules).get(target)
        if plan is None or not plan.is_attack:
            raise UnreachableTargetError(f"{target} is not an attack target for unit {unit_id}")
        attacker, attack_occupancy = self._approach(unit, plan.path[-2], occupancy)
        return combat.preview_combat(
            attacker,
            occupancy[target],
            self.grid,
            attack_occupancy,
            rules=self.rules,
            seed=self._combat_seed(unit.id, occupancy[target].id),
        )

    def cycle_active(self) -> UnitID | None:
        """Select the next unit of the active side that can still move.

        Wraps around the roster. Returns ``None`` when no unit has points
        left; the turn then waits for :meth:`end_turn`.
        """

        if not self.units_for(self._active_side):
            raise NoUnitsError(f"{self._active_side} has no units left")

        candidates = self.units_for(self._active_side)
        start = 0
        for index, unit in enumerate(candidates):
            if unit.id == self._active_unit_id:
                start = index + 1
                break
        ordered = candidates[start:] + candidates[:start]
        self._active_unit_id = next((u.id for u in ordered if u.movement_remaining), None)
        if self._active_unit_id is None:
            logger.debug("turn %s: %s has no movable units", self._turn, self._active_side)
        return self._active_unit_id

    def end_turn(self) -> int:
        """Refresh every unit, advance the turn counter and hand over play."""

        for unit in self._units.values():
            unit.refresh()
        self._turn += 1
        if self.rules.turns.rotate_sides:
            self._active_side = self._next_side()
        self._active_unit_id = self._first_movable()
        logger.info("turn %s begins for %s", self._turn, self._active_side)
        return self._turn

    # ------------------------------------------------------------------
    # Helpers

    def _check_can_act(self, unit_id: UnitID) -> Unit:
        if not self.units_for(self._active_side):
            raise NoUnitsError(f"{self._active_side} has no units left")
        unit = self.unit(unit_id)
        if unit.side != self._active_side:
            raise WrongSideError(f"unit {unit_id} belongs to {unit.side}, not {self._active_side}")
        if self.phase == TurnPhase.TURN_COMPLETE:
            raise NoMovableUnitsError(f"{self._active_side} has no movement points left this turn")
        if not unit.movement_remaining:
            raise NoMovementPointsError(f"unit {unit_id} has no movement points left")
        return unit

    def _attack(
        self,
        unit: Unit,
        defender: Unit,
        plan: movement.PlannedMove,
        origin: OffsetCoord,
    ) -> MoveResult:
        staging = plan.path[-2]
        unit.coord = staging
        attacker, attack_occupancy = self._approach(unit, staging, self.occupancy())
        outcome = combat.resolve_combat(
            attacker,
            defender,
            self.grid,
            attack_occupancy,
            rules=self.rules,
            seed=self._combat_seed(unit.id, defender.id),
        )
        logger.info(
            "turn %s: %s (%.2f) attacked %s (%.2f) at %s, %s wins",
            self._turn,
            unit.name,
            outcome.attacker_strength,
            defender.name,
            outcome.defender_strength,
            defender.coord,
            outcome.winner,
        )

        if outcome.winner == CombatSide.ATTACKER:
            del self._units[defender.id]
            if outcome.attacker_advances:
                unit.coord = plan.destination
        else:
            del self._units[unit.id]
            unit.movement_remaining = 0

        return MoveResult(
            kind=MoveKind.COMBAT,
            unit_id=unit.id,
            origin=origin,
            target=plan.destination,
            destination=unit.coord,
            movement_spent=plan.cost,
            movement_remaining=unit.movement_remaining or 0,
            combat=outcome,
        )

    @staticmethod
    def _approach(
        unit: Unit, staging: OffsetCoord, occupancy: dict[OffsetCoord, Unit]
    ) -> tuple[Unit, dict[OffsetCoord, Unit]]:
        """Occupancy as seen from ``staging``, the cell the attack is launched from."""

        if unit.coord == staging:
            return unit, occupancy
        moved = Unit(
            id=unit.id,
            name=unit.name,
            side=unit.side,
            coord=staging,
            strength=unit.strength,
            max_movement=unit.max_movement,
            movement_remaining=unit.movement_remaining,
        )
        view = {coord: u for coord, u in occupancy.items() if u.id != unit.id}
        view[staging] = moved
        return moved, view

    def _combat_seed(self, attacker_id: UnitID, defender_id: UnitID) -> str | None:
        if self.rules.combat.variance_percent <= 0:
            return None
        return generate_seed(
            self.game_id,
            self._turn,
            str(self._active_side),
            f"combat_{attacker_id}_vs_{defender_id}",
        )

    def _after_action(self) -> None:
        active = None if self._active_unit_id is None else self._units.get(self._active_unit_id)
        if active is not None and not active.is_exhausted:
            return
        if self.units_for(self._active_side):
            self.cycle_active()
        else:
            self._active_unit_id = None

    def _first_movable(self) -> UnitID | None:
        return next(
            (u.id for u in self.units_for(self._active_side) if u.movement_remaining), None
        )

    def _next_side(self) -> Side:
        index = SIDE_ORDER.index(self._active_side)
        for offset in range(1, len(SIDE_ORDER) + 1):
            side = SIDE_ORDER[(index + offset) % len(SIDE_ORDER)]
            if self.units_for(side):
                return side
        return self._active_side

    def _next_identifier(self) -> UnitID:
        return UnitID(self._last_id + 1)

    def _first_free_cell(self) -> OffsetCoord:
        try:
            return self.grid.first_passable(exclude=self.occupancy())
        except LookupError as exc:
            raise PlacementError("no free passable cell left on the map") from exc
