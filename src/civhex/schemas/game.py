from pydantic import BaseModel, Field

from civhex.domain.enums import CombatSide, MoveKind, Side, Terrain, TurnPhase
from civhex.utils.hex_math import Direction


class Coord(BaseModel):
    x: int = Field(..., ge=0, description="Column, 0 is the western edge")
    y: int = Field(..., ge=0, description="Row, 0 is the northern edge")


class CellRead(BaseModel):
    x: int
    y: int
    terrain: Terrain
    movement_cost: int | None = Field(None, description="Points to enter; null when impassable")
    blocks_occupation: bool = False


class MapRead(BaseModel):
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    name: str = ""
    description: str = ""
    cells: list[CellRead] = Field(..., description="Row-major, top-left first")


class UnitCreate(BaseModel):
    name: str = Field(..., min_length=1)
    side: Side = Side.PLAYER
    position: Coord | None = Field(None, description="Defaults to the first free passable cell")
    strength: int | None = Field(None, gt=0, description="Defaults to the configured strength")
    max_movement: int | None = Field(None, ge=0)


class UnitRead(BaseModel):
    id: int
    name: str
    symbol: str = Field(..., max_length=1, description="Letter the unit is drawn with")
    side: Side
    x: int
    y: int
    strength: int
    max_movement: int
    movement_remaining: int = Field(..., ge=0)


class GameRead(BaseModel):
    id: int
    turn: int
    active_side: Side
    active_unit_id: int | None
    phase: TurnPhase
    width: int
    height: int
    units: list[UnitRead]


class ReachableRead(BaseModel):
    unit_id: int
    cells: list[Coord] = Field(..., description="Sorted by column, then row")


class MoveRequest(BaseModel):
    target: Coord


class StepRequest(BaseModel):
    direction: Direction


class CombatOutcomeRead(BaseModel):
    attacker_id: int
    defender_id: int
    attacker_base: int
    defender_base: int
    attacker_modifiers: dict[str, int]
    defender_modifiers: dict[str, int]
    attacker_strength: float
    defender_strength: float
    winner: CombatSide
    loser_id: int
    attacker_advances: bool


class MoveResultRead(BaseModel):
    kind: MoveKind
    unit_id: int
    origin: Coord
    target: Coord
    destination: Coord
    movement_spent: int
    movement_remaining: int
    combat: CombatOutcomeRead | None = None


class CycleRead(BaseModel):
    active_unit_id: int | None
    phase: TurnPhase
