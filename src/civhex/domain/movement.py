"""Movement rules: which cells a unit can end its move on this turn.

The planner runs a budget-bounded Dijkstra search over the grid. Entering a
cell costs that cell's movement cost, so hills are more expensive than open
ground. A unit may always take one more step while it has at least one point
left, even when the step costs more than it has (the final move is then
partial and the charge is clamped to what remains).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from heapq import heappop, heappush

from civhex.domain.grid import HexGrid
from civhex.domain.models import Unit
from civhex.domain.rules_config import DEFAULT_RULES, RulesConfig
from civhex.utils.hex_math import OffsetCoord

Occupancy = Mapping[OffsetCoord, Unit]


@dataclass(frozen=True, slots=True)
class PlannedMove:
    """Cheapest way for a unit to reach one destination.

    Attributes:
        destination: Cell the move ends on (or attacks)
        path: Every cell visited, starting with the unit's own cell
        cost: Movement points the move consumes, already clamped to the budget
        is_attack: Whether the destination holds an enemy unit
    """

    destination: OffsetCoord
    path: tuple[OffsetCoord, ...]
    cost: int
    is_attack: bool = False


def plan_moves(
    unit: Unit,
    grid: HexGrid,
    occupancy: Occupancy,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> dict[OffsetCoord, PlannedMove]:
    """Compute the cheapest legal move to every cell ``unit`` can reach this turn.

    Cells holding a friendly unit are never destinations. Whether they can be
    crossed depends on ``rules.movement.allow_friendly_pass_through``. Cells
    holding an enemy are destinations (attacks) but are never expanded, and an
    attack is never launched from a cell a friend stands on.
    """

    budget = unit.movement_remaining or 0
    if budget <= 0:
        return {}

    pass_through = rules.movement.allow_friendly_pass_through
    start = unit.coord

    # Priority queue: (points_spent, coord); coords order deterministically on ties
    pq: list[tuple[int, OffsetCoord]] = [(0, start)]
    best_spent: dict[OffsetCoord, int] = {start: 0}
    previous: dict[OffsetCoord, OffsetCoord] = {}
    visited: set[OffsetCoord] = set()
    plans: dict[OffsetCoord, PlannedMove] = {}

    while pq:
        spent, current = heappop(pq)

        if current in visited:
            continue
        visited.add(current)

        expand = True
        if current != start:
            occupant = occupancy.get(current)
            cell = grid.cell_at(current)
            if occupant is not None and occupant.side != unit.side:
                plans[current] = _build_plan(current, previous, spent, budget, is_attack=True)
                continue
            if occupant is not None:
                expand = pass_through
            elif not cell.blocks_occupation:
                plans[current] = _build_plan(current, previous, spent, budget)

        # At least one point must be left before taking another step
        if not expand or spent >= budget:
            continue

        # Attacks are launched from a cell the unit can stand on
        can_launch = current == start or current not in occupancy
        for neighbor in sorted(grid.neighbors(current)):
            if neighbor in visited:
                continue
            cell = grid.cell_at(neighbor)
            if cell.movement_cost is None:
                continue
            occupant = occupancy.get(neighbor)
            if occupant is not None and occupant.side == unit.side:
                if not pass_through:
                    continue
            elif occupant is not None and not can_launch:
                continue

            new_spent = spent + cell.movement_cost
            if neighbor not in best_spent or new_spent < best_spent[neighbor]:
                best_spent[neighbor] = new_spent
                previous[neighbor] = current
                heappush(pq, (new_spent, neighbor))

    return plans


def reachable_cells(
    unit: Unit,
    grid: HexGrid,
    occupancy: Occupancy,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> frozenset[OffsetCoord]:
    """Return the cells ``unit`` could end its move on (or attack) this turn."""

    return frozenset(plan_moves(unit, grid, occupancy, rules=rules))


def attack_targets(unit: Unit, grid: HexGrid, occupancy: Occupancy) -> frozenset[OffsetCoord]:
    """Adjacent cells holding an enemy, regardless of remaining movement points."""

    return frozenset(
        coord
        for coord in grid.neighbors(unit.coord)
        if (occupant := occupancy.get(coord)) is not None and occupant.side != unit.side
    )


# ---------------------------------------------------------------------------
# Helpers


def _build_plan(
    destination: OffsetCoord,
    previous: dict[OffsetCoord, OffsetCoord],
    spent: int,
    budget: int,
    *,
    is_attack: bool = False,
) -> PlannedMove:
    path = [destination]
    current = destination
    while current in previous:
        current = previous[current]
        path.append(current)
    path.reverse()
    return PlannedMove(
        destination=destination,
        path=tuple(path),
        cost=min(spent, budget),
        is_attack=is_attack,
    )
