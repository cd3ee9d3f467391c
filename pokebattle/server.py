"""PokeBattle HTTP API.

A thin FastAPI layer over ``BattleService``. Rejected actions come back as
404 (unknown id), 400 (illegal action) or 409 (battle already over).
"""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import Depends, FastAPI, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from pokebattle.core.creature import Creature
from pokebattle.core.errors import BattleError, InvalidAction, NotFound, TerminalBattle
from pokebattle.core.state import BattleSide, BattleState, Controller
from pokebattle.service import BattleService, BattleView

logger = logging.getLogger(__name__)

app = FastAPI(title="PokeBattle")

_service: BattleService | None = None


def _get_service() -> BattleService:
    """Lazily build the process-wide service (overridden in tests)."""
    global _service
    if _service is None:
        _service = BattleService()
        _service.storage.init_db()
    return _service


ServiceDep = Annotated[BattleService, Depends(_get_service)]


# --- Error mapping ---

_ERROR_STATUS = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidAction: status.HTTP_400_BAD_REQUEST,
    TerminalBattle: status.HTTP_409_CONFLICT,
}


@app.exception_handler(BattleError)
async def battle_error_handler(request: Request, exc: BattleError) -> JSONResponse:
    code = _ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=code, content={"detail": exc.message, "error": type(exc).__name__})


# --- Models ---


class GenerateRequest(BaseModel):
    count: int = Field(default=1, ge=1, le=6)


class CreateBattleRequest(BaseModel):
    side1_roster: list[str] = Field(min_length=1)
    side2_roster: list[str] = Field(min_length=1)
    side1_active: str | None = None
    side2_active: str | None = None
    side1_name: str = "Player"
    side2_name: str = "Opponent"
    side1_controller: Controller = Controller.HUMAN
    side2_controller: Controller = Controller.AI


class MoveRequest(BaseModel):
    move_index: int
    side: BattleSide | None = None


class SwitchRequest(BaseModel):
    creature_id: str
    side: BattleSide | None = None


# --- Endpoints ---


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.post("/creatures", response_model=Creature)
def create_creature(creature: Creature, service: ServiceDep):
    return service.create_creature(creature)


@app.post("/creatures/generate", response_model=list[Creature])
def generate_creatures(body: GenerateRequest, service: ServiceDep):
    return service.generate_creatures(body.count)


@app.get("/creatures/{creature_id}", response_model=Creature)
def read_creature(creature_id: str, service: ServiceDep):
    return service.get_creature(creature_id)


@app.post("/battles", response_model=BattleState)
def create_battle(body: CreateBattleRequest, service: ServiceDep):
    return service.create_battle(**body.model_dump())


@app.get("/battles/{battle_id}", response_model=BattleView)
def read_battle(battle_id: str, service: ServiceDep):
    return service.get_battle_view(battle_id)


@app.post("/battles/{battle_id}/move", response_model=BattleState)
def submit_move(battle_id: str, body: MoveRequest, service: ServiceDep):
    return service.submit_move(battle_id, body.move_index, side=body.side)


@app.post("/battles/{battle_id}/switch", response_model=BattleState)
def submit_switch(battle_id: str, body: SwitchRequest, service: ServiceDep):
    return service.submit_switch(battle_id, body.creature_id, side=body.side)


@app.post("/battles/{battle_id}/ai-move", response_model=BattleState)
def perform_ai_move(battle_id: str, service: ServiceDep):
    return service.perform_ai_move(battle_id)
