"""Melee combat resolution rules.

Both sides start from their base strength. The defender gains the defence
bonus of the terrain it stands on; the attacker gains a flanking bonus for
every other friendly unit adjacent to the defender, up to a cap. Modifiers
are whole percentages and are added together before being applied:

    effective = base * (100 + sum(modifiers)) / 100

Strengths are compared on the integer numerator, so the outcome never
depends on floating point rounding. The stronger side wins and the
defender holds on a tie.
"""

from __future__ import annotations

from civhex.domain.enums import CombatSide
from civhex.domain.grid import HexGrid
from civhex.domain.models import CombatOutcome, Unit
from civhex.domain.movement import Occupancy
from civhex.domain.rules_config import DEFAULT_RULES, RulesConfig
from civhex.utils.rng import random_int


def terrain_modifier(defender: Unit, grid: HexGrid, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Defence percent granted by the terrain under ``defender``."""

    terrain = grid.cell_at(defender.coord).terrain
    return rules.terrain.profile(terrain).defense_percent


def count_flankers(
    attacker: Unit,
    defender: Unit,
    grid: HexGrid,
    occupancy: Occupancy,
) -> int:
    """Number of the attacker's allies, other than the attacker, adjacent to the defender."""

    flankers = 0
    for coord in grid.neighbors(defender.coord):
        unit = occupancy.get(coord)
        if unit is not None and unit.side == attacker.side and unit.id != attacker.id:
            flankers += 1
    return flankers


def flanking_modifier(flankers: int, rules: RulesConfig = DEFAULT_RULES) -> int:
    """Attack percent for ``flankers`` adjacent allies, capped by the ruleset."""

    counted = min(max(flankers, 0), rules.combat.max_flanking_units)
    return counted * rules.combat.flanking_percent_per_unit


def resolve_combat(
    attacker: Unit,
    defender: Unit,
    grid: HexGrid,
    occupancy: Occupancy,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    seed: str | None = None,
) -> CombatOutcome:
    """Resolve an attack by ``attacker`` on ``defender``.

    The function is pure: units and occupancy are read, never changed. When
    the ruleset enables combat variance a ``seed`` must be supplied; the same
    seed always yields the same outcome.
    """

    if attacker.side == defender.side:
        raise ValueError("units on the same side cannot fight each other")

    attacker_modifiers = {
        "flanking": flanking_modifier(count_flankers(attacker, defender, grid, occupancy), rules)
    }
    defender_modifiers = {"terrain": terrain_modifier(defender, grid, rules)}

    variance = rules.combat.variance_percent
    if variance > 0:
        if seed is None:
            raise ValueError("combat variance is enabled but no seed was supplied")
        attacker_modifiers["variance"] = random_int(f"{seed}:attacker", -variance, variance)[
            "value"
        ]
        defender_modifiers["variance"] = random_int(f"{seed}:defender", -variance, variance)[
            "value"
        ]

    attacker_score = attacker.strength * (100 + sum(attacker_modifiers.values()))
    defender_score = defender.strength * (100 + sum(defender_modifiers.values()))
    winner = CombatSide.ATTACKER if attacker_score > defender_score else CombatSide.DEFENDER

    return CombatOutcome(
        attacker_id=attacker.id,
        defender_id=defender.id,
        attacker_base=attacker.strength,
        defender_base=defender.strength,
        attacker_modifiers=attacker_modifiers,
        defender_modifiers=defender_modifiers,
        winner=winner,
        attacker_advances=winner == CombatSide.ATTACKER and rules.combat.attacker_advances,
    )


def preview_combat(
    attacker: Unit,
    defender: Unit,
    grid: HexGrid,
    occupancy: Occupancy,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    seed: str | None = None,
) -> CombatOutcome:
    """Expected result of an attack, for confirmation prompts.

    Resolution is deterministic, so the preview is exactly what
    :func:`resolve_combat` will return for the same inputs.
    """

    return resolve_combat(attacker, defender, grid, occupancy, rules=rules, seed=seed)
