"""
Pydantic models for API request/response validation.
"""

from __future__ import annotations

from pydantic import BaseModel, Field
from typing import Any


# === Game ===

class WinConditionRequest(BaseModel):
    type: str = "WEALTH"
    target: int = 100
    bot_count: int = 1


class StartSessionRequest(BaseModel):
    win_condition: WinConditionRequest = Field(default_factory=WinConditionRequest)
    display_name: str = "Commander"
    config: dict[str, Any] | None = None


class TickRequest(BaseModel):
    n: int = Field(default=1, ge=1, le=10_000)


class MoveRequest(BaseModel):
    q: int
    r: int


class SessionSummary(BaseModel):
    id: str
    display_name: str
    status: str
    tick: int
    objective: str
    created_at: str


class SessionResponse(SessionSummary):
    state: dict[str, Any]


class CommandResponse(BaseModel):
    ok: bool
    reason: str | None = None
    message: str = ""
    state: dict[str, Any]


class MoveResponse(BaseModel):
    status: str
    reason: str | None = None
    message: str = ""
    path: list[list[int]] = []
    cost_moves: int = 0
    cost_coins: int = 0
    state: dict[str, Any]


class TickResponse(BaseModel):
    ticks: list[dict[str, Any]]
    state: dict[str, Any]


# === Leaderboard ===

class ScoreResponse(BaseModel):
    name: str
    coins: int
    level: int


class ProfileRequest(BaseModel):
    avatar_color: str = "#3b82f6"
    avatar_icon: str = "user"


class ProfileResponse(BaseModel):
    nickname: str
    avatar_color: str
    avatar_icon: str
