"""HTTP routes for the civhex API."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from pydantic import BaseModel, Field

from civhex.api.runtime import ApiState, GameNotFoundError
from civhex.domain.models import BoundsError, UnitID
from civhex.domain.turn import MoveError, PlacementError, UnknownUnitError
from civhex.mapfile import FormatError
from civhex.schemas import (
    CombatOutcomeRead,
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
from civhex.services import GameService
from civhex.utils.hex_math import OffsetCoord

logger = logging.getLogger(__name__)

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


class MapFileRequest(BaseModel):
    filename: str = Field(min_length=1)


def _game(state: ApiState, game_id: int) -> GameService:
    try:
        return state.games.get(game_id)
    except GameNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="game not found") from exc


def _rejected(exc: Exception) -> HTTPException:
    if isinstance(exc, UnknownUnitError):
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(exc, MoveError):
        code = status.HTTP_409_CONFLICT
    else:
        code = status.HTTP_422_UNPROCESSABLE_ENTITY
    logger.warning("rejected request: %s", exc)
    return HTTPException(status_code=code, detail=str(exc))


def _game_read(state: ApiState, game_id: int) -> GameRead:
    return GameRead.model_validate(state.games.to_game_dict(game_id, _game(state, game_id)))


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "games": len(state.games.list_ids()),
        "default_max_movement": state.games.rules.movement.default_max_movement,
        "combat_variance_percent": state.settings.combat_variance_percent,
    }


@router.get("/games", response_model=list[GameRead])
async def list_games(state: ApiStateDep) -> list[GameRead]:
    return [_game_read(state, game_id) for game_id in state.games.list_ids()]


@router.post("/games", response_model=GameRead, status_code=status.HTTP_201_CREATED)
async def create_game(request: Request, state: ApiStateDep) -> GameRead:
    """Create a game from a raw Civ5Map upload (``application/octet-stream``)."""

    data = await request.body()
    try:
        game_id, _ = state.games.create_from_bytes(data)
    except FormatError as exc:
        raise _rejected(exc) from exc
    return _game_read(state, game_id)


@router.post("/games/from-file", response_model=GameRead, status_code=status.HTTP_201_CREATED)
async def create_game_from_file(request: MapFileRequest, state: ApiStateDep) -> GameRead:
    try:
        game_id, _ = state.games.create_from_file(request.filename)
    except FileNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except FormatError as exc:
        raise _rejected(exc) from exc
    return _game_read(state, game_id)


@router.get("/games/{game_id}", response_model=GameRead)
async def get_game(game_id: int, state: ApiStateDep) -> GameRead:
    return _game_read(state, game_id)


@router.delete("/games/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_game(game_id: int, state: ApiStateDep) -> None:
    _game(state, game_id)
    state.games.discard(game_id)


@router.get("/games/{game_id}/map", response_model=MapRead)
async def get_map(game_id: int, state: ApiStateDep) -> MapRead:
    return MapRead.model_validate(state.games.to_map_dict(_game(state, game_id)))


@router.post(
    "/games/{game_id}/units", response_model=UnitRead, status_code=status.HTTP_201_CREATED
)
async def create_unit(game_id: int, request: UnitCreate, state: ApiStateDep) -> UnitRead:
    game = _game(state, game_id)
    position = OffsetCoord(request.position.x, request.position.y) if request.position else None
    try:
        unit = game.spawn_unit(
            request.name,
            request.side,
            position,
            strength=request.strength or state.settings.default_strength,
            max_movement=request.max_movement,
        )
    except PlacementError as exc:
        raise _rejected(exc) from exc
    return UnitRead(
        id=unit.id,
        name=unit.name,
        symbol=unit.map_symbol,
        side=unit.side,
        x=unit.coord.x,
        y=unit.coord.y,
        strength=unit.strength,
        max_movement=unit.max_movement,
        movement_remaining=unit.movement_remaining or 0,
    )


@router.get("/games/{game_id}/units/{unit_id}/reachable", response_model=ReachableRead)
async def get_reachable(game_id: int, unit_id: int, state: ApiStateDep) -> ReachableRead:
    game = _game(state, game_id)
    try:
        cells = game.reachable_cells(UnitID(unit_id))
    except MoveError as exc:
        raise _rejected(exc) from exc
    return ReachableRead.model_validate(state.games.to_reachable_dict(UnitID(unit_id), cells))


@router.post("/games/{game_id}/units/{unit_id}/move", response_model=MoveResultRead)
async def move_unit(
    game_id: int, unit_id: int, request: MoveRequest, state: ApiStateDep
) -> MoveResultRead:
    game = _game(state, game_id)
    target = OffsetCoord(request.target.x, request.target.y)
    try:
        result = game.attempt_move(UnitID(unit_id), target)
    except (MoveError, BoundsError) as exc:
        raise _rejected(exc) from exc
    return MoveResultRead.model_validate(state.games.to_move_dict(result))


@router.get("/games/{game_id}/units/{unit_id}/targets", response_model=ReachableRead)
async def get_attack_targets(game_id: int, unit_id: int, state: ApiStateDep) -> ReachableRead:
    """Adjacent enemies, listed even when the unit has no movement points left."""

    game = _game(state, game_id)
    try:
        cells = game.attack_targets(UnitID(unit_id))
    except MoveError as exc:
        raise _rejected(exc) from exc
    return ReachableRead.model_validate(state.games.to_reachable_dict(UnitID(unit_id), cells))


@router.post("/games/{game_id}/units/{unit_id}/step", response_model=MoveResultRead)
async def step_unit(
    game_id: int, unit_id: int, request: StepRequest, state: ApiStateDep
) -> MoveResultRead:
    game = _game(state, game_id)
    try:
        result = game.step(UnitID(unit_id), request.direction)
    except (MoveError, BoundsError) as exc:
        raise _rejected(exc) from exc
    return MoveResultRead.model_validate(state.games.to_move_dict(result))


@router.post("/games/{game_id}/units/{unit_id}/preview", response_model=CombatOutcomeRead)
async def preview_attack(
    game_id: int, unit_id: int, request: MoveRequest, state: ApiStateDep
) -> CombatOutcomeRead:
    game = _game(state, game_id)
    target = OffsetCoord(request.target.x, request.target.y)
    try:
        outcome = game.preview_attack(UnitID(unit_id), target)
    except (MoveError, BoundsError) as exc:
        raise _rejected(exc) from exc
    return CombatOutcomeRead.model_validate(state.games.to_combat_dict(outcome))


@router.post("/games/{game_id}/cycle", response_model=CycleRead)
async def cycle_active_unit(game_id: int, state: ApiStateDep) -> CycleRead:
    game = _game(state, game_id)
    try:
        active = game.cycle_active_unit()
    except MoveError as exc:
        raise _rejected(exc) from exc
    return CycleRead(active_unit_id=active, phase=game.snapshot().phase)


@router.post("/games/{game_id}/end-turn", response_model=GameRead)
async def end_turn(game_id: int, state: ApiStateDep) -> GameRead:
    _game(state, game_id).end_turn()
    return _game_read(state, game_id)
