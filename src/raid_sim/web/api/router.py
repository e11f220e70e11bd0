from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request, Response

from raid_sim.domain.actions import AdvanceDays, CreateRaid, RaidOrder, RecallRaid
from raid_sim.domain.types import Leader
from raid_sim.sim.reducer import ActionResult, apply_action
from raid_sim.view.catalog import build_catalog
from raid_sim.web.api import mappers, schemas
from raid_sim.web.session import get_or_create_session, reset_session

router = APIRouter(prefix="/api")


def _build_response(engine, *, ok: bool, message: str | None = None, kind: str = "info") -> schemas.ApiResponse:
    payload = schemas.ApiResponse(ok=ok, message=message, message_kind=kind)
    if engine is not None:
        payload.state = mappers.build_state_response(engine)
    return payload


def _from_result(result: ActionResult) -> schemas.ApiResponse:
    payload = schemas.ApiResponse(
        ok=result.ok,
        message=result.message,
        message_kind=result.message_kind,
        error_kind=result.error_kind,
        notices=mappers.notices(result.notices),
    )
    if result.raid is not None:
        payload.raid = mappers.raid_response(result.raid)
    payload.state = mappers.build_state_response(result.engine)
    return payload


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/state", response_model=schemas.GameStateResponse)
async def get_state(request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    async with session.lock:
        data = mappers.build_state_response(session.engine)
    response.set_cookie("session_id", session_id, httponly=True)
    return data


@router.get("/catalog", response_model=schemas.CatalogResponse)
async def get_catalog(request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    async with session.lock:
        data = build_catalog(session.engine.rules)
    response.set_cookie("session_id", session_id, httponly=True)
    return data


@router.get("/targets", response_model=schemas.TargetsResponse)
async def get_targets(request: Request, response: Response, raid_class: str = Query(..., alias="raidClass")):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        engine = session.engine
        if engine.rules.raid_class(raid_class) is None:
            raise HTTPException(status_code=404, detail=f"Unknown raid class: {raid_class}")
        return mappers.targets_response(engine, raid_class, engine.evaluate_targets(raid_class))


@router.get("/raids/{raid_id}", response_model=schemas.Raid)
async def get_raid(raid_id: str, request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        raid = session.engine.get_raid(raid_id)
        if raid is None:
            raise HTTPException(status_code=404, detail=f"Unknown raid: {raid_id}")
        return mappers.raid_response(raid)


@router.post("/actions/raid", response_model=schemas.ApiResponse)
async def create_raid(payload: schemas.RaidRequest, request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        leader = None
        if payload.leader is not None:
            leader = Leader(name=payload.leader.name, combat=payload.leader.combat, leadership=payload.leader.leadership)
        order = RaidOrder(
            raid_class_id=payload.raid_class_id,
            target_id=payload.target_id,
            size=payload.size,
            ships=payload.ships,
            units=dict(payload.units) if payload.units else None,
            leader=leader,
        )
        result = apply_action(session.engine, CreateRaid(order=order))
        return _from_result(result)


@router.post("/actions/advance", response_model=schemas.ApiResponse)
async def advance(request: Request, response: Response, payload: schemas.AdvanceRequest | None = None):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    days = payload.days if payload is not None else 1
    async with session.lock:
        result = apply_action(session.engine, AdvanceDays(days=days))
        return _from_result(result)


@router.post("/actions/recall", response_model=schemas.ApiResponse)
async def recall(payload: schemas.RecallRequest, request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        result = apply_action(session.engine, RecallRaid(raid_id=payload.raid_id))
        return _from_result(result)


@router.post("/actions/reset", response_model=schemas.ApiResponse)
async def reset(request: Request, response: Response):
    session_id, session = get_or_create_session(request.cookies.get("session_id"))
    response.set_cookie("session_id", session_id, httponly=True)
    async with session.lock:
        reset_session(session)
        return _build_response(session.engine, ok=True, message="Campaign reset", kind="info")
