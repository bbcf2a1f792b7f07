"""Leaderboard and player profile endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, Request

from hexclaim.api.persistence import UserProfile
from hexclaim.api.schemas import ProfileRequest, ProfileResponse, ScoreResponse

router = APIRouter()


@router.get("", response_model=list[ScoreResponse])
def top_scores(request: Request, limit: int = Query(default=10, ge=1, le=100)):
    mgr = request.app.state.session_manager
    return [s.to_dict() for s in mgr.leaderboard(limit)]


@router.get("/users/{nickname}", response_model=ProfileResponse)
def get_profile(nickname: str, request: Request):
    mgr = request.app.state.session_manager
    profile = mgr.store.find_user(nickname)
    if profile is None:
        raise HTTPException(status_code=404, detail=f"User '{nickname}' not found")
    return profile.to_dict()


@router.put("/users/{nickname}", response_model=ProfileResponse)
def upsert_profile(nickname: str, req: ProfileRequest, request: Request):
    mgr = request.app.state.session_manager
    profile = mgr.store.upsert_user(UserProfile(
        nickname=nickname,
        avatar_color=req.avatar_color,
        avatar_icon=req.avatar_icon,
    ))
    return profile.to_dict()
