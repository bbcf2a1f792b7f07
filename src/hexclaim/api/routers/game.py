"""Game session endpoints: lifecycle, ticking and player commands."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request

from hexclaim.api.schemas import (
    CommandResponse,
    MoveRequest,
    MoveResponse,
    SessionResponse,
    SessionSummary,
    StartSessionRequest,
    TickRequest,
    TickResponse,
)
from hexclaim.core.config import GameConfig, WinCondition
from hexclaim.core.engine import CommandResult, MoveResult, Refusal

router = APIRouter()


def _not_found(session_id: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"Session '{session_id}' not found")


def _state(mgr, session_id: str) -> dict:
    return mgr.snapshot(session_id)["state"]


def _command_response(mgr, session_id: str, result: CommandResult) -> dict:
    if result.reason is Refusal.GAME_NOT_ACTIVE:
        raise HTTPException(status_code=409, detail=result.message)
    data = result.to_dict()
    data["state"] = _state(mgr, session_id)
    return data


@router.post("/sessions", response_model=SessionResponse)
def start_session(req: StartSessionRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        win_condition = WinCondition(
            type=req.win_condition.type,
            target=req.win_condition.target,
            bot_count=req.win_condition.bot_count,
        )
        config = GameConfig.from_dict(req.config) if req.config else None
    except (ValueError, TypeError) as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    session = mgr.start_session(win_condition, display_name=req.display_name, config=config)
    return mgr.snapshot(session.id)


@router.get("/sessions", response_model=list[SessionSummary])
def list_sessions(request: Request):
    mgr = request.app.state.session_manager
    return mgr.list_sessions()


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        return mgr.snapshot(session_id)
    except KeyError:
        raise _not_found(session_id)


@router.delete("/sessions/{session_id}")
def delete_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.delete_session(session_id)
    except KeyError:
        raise _not_found(session_id)
    return {"deleted": True}


@router.post("/sessions/{session_id}/abandon", response_model=SessionResponse)
def abandon_session(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.abandon(session_id)
        return mgr.snapshot(session_id)
    except KeyError:
        raise _not_found(session_id)


@router.post("/sessions/{session_id}/tick", response_model=TickResponse)
def tick_session(session_id: str, req: TickRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        session = mgr.get_session(session_id)
    except KeyError:
        raise _not_found(session_id)
    if not session.engine.is_playing:
        raise HTTPException(status_code=409, detail=f"Game is {session.status}")
    logs = mgr.tick(session_id, req.n)
    return {
        "ticks": [log.to_dict() for log in logs],
        "state": _state(mgr, session_id),
    }


# ---------------------------------------------------------------------------
# Player commands
# ---------------------------------------------------------------------------

@router.post("/sessions/{session_id}/growth", response_model=CommandResponse)
def toggle_growth(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        result = mgr.toggle_growth(session_id)
    except KeyError:
        raise _not_found(session_id)
    return _command_response(mgr, session_id, result)


@router.post("/sessions/{session_id}/recharge", response_model=CommandResponse)
def recharge_move(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        result = mgr.recharge_move(session_id)
    except KeyError:
        raise _not_found(session_id)
    return _command_response(mgr, session_id, result)


@router.post("/sessions/{session_id}/move", response_model=MoveResponse)
def move(session_id: str, req: MoveRequest, request: Request):
    mgr = request.app.state.session_manager
    try:
        result: MoveResult = mgr.move(session_id, req.q, req.r)
    except KeyError:
        raise _not_found(session_id)
    if result.reason is Refusal.GAME_NOT_ACTIVE:
        raise HTTPException(status_code=409, detail=result.message)
    data = result.to_dict()
    data["state"] = _state(mgr, session_id)
    return data


@router.post("/sessions/{session_id}/confirm", response_model=CommandResponse)
def confirm_pending(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        result = mgr.confirm_pending(session_id)
    except KeyError:
        raise _not_found(session_id)
    return _command_response(mgr, session_id, result)


@router.post("/sessions/{session_id}/cancel", response_model=CommandResponse)
def cancel_pending(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        result = mgr.cancel_pending(session_id)
    except KeyError:
        raise _not_found(session_id)
    return _command_response(mgr, session_id, result)


@router.post("/sessions/{session_id}/advance", response_model=CommandResponse)
def advance_step(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        result = mgr.advance_step(session_id)
    except KeyError:
        raise _not_found(session_id)
    return _command_response(mgr, session_id, result)


@router.post("/sessions/{session_id}/notice/dismiss")
def dismiss_notice(session_id: str, request: Request):
    mgr = request.app.state.session_manager
    try:
        mgr.dismiss_notice(session_id)
    except KeyError:
        raise _not_found(session_id)
    return {"dismissed": True}
