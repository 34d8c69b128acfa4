from .game import (
    CellRead,
    CombatOutcomeRead,
    Coord,
    CycleRead,
    GameRead,
    MapRead,
    MoveRequest,
    MoveResultRead,
    ReachableRead,
    StepRequest,
    UnitCreate,
    UnitRead,
)

__all__ = [
    "CellRead",
    "CombatOutcomeRead",
    "Coord",
    "CycleRead",
    "GameRead",
    "MapRead",
    "MoveRequest",
    "MoveResultRead",
    "ReachableRead",
    "StepRequest",
    "UnitCreate",
    "UnitRead",
]
