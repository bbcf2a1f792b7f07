"""
Session manager for hexclaim games.

Each session wraps one ``GameEngine``. All engine access for a session
goes through that session's lock, so a tick and a player command (for
example ``advance_movement_step``) never interleave.

When a session becomes terminal, whether by abandon or by the first tick
that ends in VICTORY or DEFEAT, the final score is handed to the
``ScoreStore`` exactly once.
"""

from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from hexclaim.api.persistence import (
    InMemoryScoreStore,
    ScoreRecord,
    ScoreStore,
    SQLiteScoreStore,
    UserProfile,
)
from hexclaim.core.config import GameConfig, WinCondition
from hexclaim.core.engine import CommandResult, GameEngine, MoveResult, TickLog

logger = logging.getLogger(__name__)


@dataclass
class GameSession:
    """A running or finished game."""

    id: str
    display_name: str
    engine: GameEngine
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    score_recorded: bool = False
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    @property
    def status(self) -> str:
        return self.engine.status.value

    def summary(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "display_name": self.display_name,
            "status": self.status,
            "tick": self.engine.tick_count,
            "objective": self.engine.win_condition.label,
            "created_at": self.created_at,
        }


class SessionManager:
    """Owns every live session and the score store.

    Args:
        db_path: Path to the SQLite database file. ``None`` keeps scores in memory.
        store: Explicit store; overrides ``db_path``.
    """

    def __init__(self, db_path: str | None = "data/hexclaim.db", store: ScoreStore | None = None):
        self.sessions: dict[str, GameSession] = {}
        if store is not None:
            self.store = store
        elif db_path is not None:
            self.store = SQLiteScoreStore(db_path)
        else:
            self.store = InMemoryScoreStore()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_session(
        self,
        win_condition: WinCondition,
        display_name: str = "Commander",
        config: GameConfig | None = None,
    ) -> GameSession:
        """Create a new game. The display name gets a profile if it has none."""
        if self.store.find_user(display_name) is None:
            self.store.upsert_user(UserProfile(nickname=display_name))

        session = GameSession(
            id=uuid.uuid4().hex[:8],
            display_name=display_name,
            engine=GameEngine(win_condition, config),
        )
        self.sessions[session.id] = session
        logger.info(
            "Started session %s for %s (%s, %d bots)",
            session.id, display_name, win_condition.label, win_condition.bot_count,
        )
        return session

    def get_session(self, session_id: str) -> GameSession:
        """Raises KeyError if not found."""
        try:
            return self.sessions[session_id]
        except KeyError:
            raise KeyError(f"Session '{session_id}' not found") from None

    def list_sessions(self) -> list[dict[str, Any]]:
        return [s.summary() for s in self.sessions.values()]

    def abandon(self, session_id: str) -> GameSession:
        """End a session early and hand off its score."""
        session = self.get_session(session_id)
        with session.lock:
            session.engine.abandon()
            self._hand_off_score(session)
        return session

    def delete_session(self, session_id: str) -> None:
        """Remove a session. An unfinished game counts as abandoned."""
        self.abandon(session_id)
        self.sessions.pop(session_id, None)

    def _hand_off_score(self, session: GameSession) -> ScoreRecord | None:
        """Record the final score once the game is over. Caller holds the lock."""
        if session.score_recorded or session.engine.is_playing:
            return None
        name, coins, level = session.engine.final_score(session.display_name)
        record = self.store.record_score(name, coins, level)
        session.score_recorded = True
        logger.info(
            "Session %s ended %s: %s scored %d coins at L%d",
            session.id, session.status, name, coins, level,
        )
        return record

    # ------------------------------------------------------------------
    # Simulation
    # ------------------------------------------------------------------

    def tick(self, session_id: str, n: int = 1) -> list[TickLog]:
        """Advance a session by up to ``n`` ticks, stopping when it ends."""
        session = self.get_session(session_id)
        logs: list[TickLog] = []
        with session.lock:
            for _ in range(n):
                if not session.engine.is_playing:
                    break
                logs.append(session.engine.tick())
            self._hand_off_score(session)
        return logs

    # ------------------------------------------------------------------
    # Player commands
    # ------------------------------------------------------------------

    def toggle_growth(self, session_id: str) -> CommandResult:
        session = self.get_session(session_id)
        with session.lock:
            return session.engine.toggle_player_growth()

    def recharge_move(self, session_id: str) -> CommandResult:
        session = self.get_session(session_id)
        with session.lock:
            return session.engine.recharge_move()

    def move(self, session_id: str, q: int, r: int) -> MoveResult:
        session = self.get_session(session_id)
        with session.lock:
            return session.engine.attempt_player_move(q, r)

    def confirm_pending(self, session_id: str) -> CommandResult:
        session = self.get_session(session_id)
        with session.lock:
            return session.engine.confirm_pending_action()

    def cancel_pending(self, session_id: str) -> CommandResult:
        session = self.get_session(session_id)
        with session.lock:
            return session.engine.cancel_pending_action()

    def advance_step(self, session_id: str) -> CommandResult:
        session = self.get_session(session_id)
        with session.lock:
            return session.engine.advance_movement_step()

    def dismiss_notice(self, session_id: str) -> None:
        session = self.get_session(session_id)
        with session.lock:
            session.engine.dismiss_notice()

    def snapshot(self, session_id: str) -> dict[str, Any]:
        """Session metadata plus the full engine state."""
        session = self.get_session(session_id)
        with session.lock:
            data = session.summary()
            data["state"] = session.engine.snapshot()
        return data

    # ------------------------------------------------------------------
    # Leaderboard
    # ------------------------------------------------------------------

    def leaderboard(self, limit: int = 10) -> list[ScoreRecord]:
        return self.store.top_scores(limit)

    def close(self) -> None:
        close = getattr(self.store, "close", None)
        if close is not None:
            close()
