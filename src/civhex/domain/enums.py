"""Enumerations used across the civhex domain."""

from __future__ import annotations

from enum import StrEnum


class Terrain(StrEnum):
    """Terrain types a map cell can carry."""

    PLAIN = "plain"
    GRASSLAND = "grassland"
    DESERT = "desert"
    TUNDRA = "tundra"
    SNOW = "snow"
    HILL = "hill"
    MOUNTAIN = "mountain"
    WATER = "water"

    @property
    def display_name(self) -> str:
        return self.value.title()


class Side(StrEnum):
    """Owner of a unit."""

    PLAYER = "player"
    ENEMY = "enemy"


class TurnPhase(StrEnum):
    """States of the turn controller."""

    AWAITING_ACTION = "awaiting_action"
    TURN_COMPLETE = "turn_complete"


class MoveKind(StrEnum):
    """What an accepted move turned into."""

    RELOCATED = "relocated"
    COMBAT = "combat"


class CombatSide(StrEnum):
    """Participant roles in a combat."""

    ATTACKER = "attacker"
    DEFENDER = "defender"
