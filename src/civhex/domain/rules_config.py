"""Declarative rule configuration for the civhex domain."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from civhex.domain.enums import Terrain


@dataclass(frozen=True, slots=True)
class TerrainProfile:
    """Movement and combat properties of one terrain type.

    ``movement_cost`` is ``None`` for impassable terrain.
    """

    movement_cost: int | None
    blocks_occupation: bool = False
    defense_percent: int = 0

    @property
    def impassable(self) -> bool:
        return self.movement_cost is None


DEFAULT_TERRAIN_PROFILES: Mapping[Terrain, TerrainProfile] = {
    Terrain.PLAIN: TerrainProfile(movement_cost=1),
    Terrain.GRASSLAND: TerrainProfile(movement_cost=1),
    Terrain.DESERT: TerrainProfile(movement_cost=1),
    Terrain.TUNDRA: TerrainProfile(movement_cost=1),
    Terrain.SNOW: TerrainProfile(movement_cost=1),
    Terrain.HILL: TerrainProfile(movement_cost=2, defense_percent=25),
    Terrain.MOUNTAIN: TerrainProfile(movement_cost=None, blocks_occupation=True),
    Terrain.WATER: TerrainProfile(movement_cost=None, blocks_occupation=True),
}


@dataclass(frozen=True, slots=True)
class TerrainRules:
    """Lookup table from terrain type to its profile."""

    profiles: Mapping[Terrain, TerrainProfile] = field(
        default_factory=lambda: dict(DEFAULT_TERRAIN_PROFILES)
    )

    def profile(self, terrain: Terrain) -> TerrainProfile:
        try:
            return self.profiles[terrain]
        except KeyError as exc:
            raise ValueError(f"no terrain profile configured for {terrain!r}") from exc


@dataclass(frozen=True, slots=True)
class MovementRules:
    """Movement budgets and traversal options."""

    default_max_movement: int = 2
    allow_friendly_pass_through: bool = True


@dataclass(frozen=True, slots=True)
class CombatRules:
    """Modifiers for melee combat, all expressed in whole percent."""

    flanking_percent_per_unit: int = 10
    max_flanking_units: int = 3
    attacker_advances: bool = True
    variance_percent: int = 0


@dataclass(frozen=True, slots=True)
class TurnRules:
    """Turn sequencing options."""

    first_turn: int = 1
    rotate_sides: bool = True


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Top-level configuration container for all subsystems."""

    terrain: TerrainRules = TerrainRules()
    movement: MovementRules = MovementRules()
    combat: CombatRules = CombatRules()
    turns: TurnRules = TurnRules()


DEFAULT_RULES = RulesConfig()
