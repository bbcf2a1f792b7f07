"""
FastAPI application factory for the hexclaim API.

There is no module-level app instance; serve it with
``uvicorn --factory hexclaim.api.app:create_app``.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hexclaim.api.sessions import SessionManager
from hexclaim.api.routers import game, leaderboard

DEFAULT_DB_PATH = "data/hexclaim.db"

# Load .env: project root first, then CWD
_project_root = Path(__file__).resolve().parents[3]  # src/hexclaim/api/app.py -> project root
load_dotenv(_project_root / ".env")
load_dotenv(Path.cwd() / ".env")


def _leaderboard_db_path() -> str:
    """Resolve HEXCLAIM_DB_PATH and make sure its directory exists."""
    db_path = os.environ.get("HEXCLAIM_DB_PATH", DEFAULT_DB_PATH)
    os.makedirs(os.path.dirname(db_path) or ".", exist_ok=True)
    return db_path


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    application = FastAPI(
        title="hexclaim API",
        description="REST API for the hexclaim territory game engine",
        version="0.1.0",
    )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.state.session_manager = SessionManager(db_path=_leaderboard_db_path())

    application.include_router(game.router, prefix="/api/game", tags=["game"])
    application.include_router(leaderboard.router, prefix="/api/leaderboard", tags=["leaderboard"])

    @application.get("/api/health")
    def health_check():
        return {"status": "ok"}

    return application
