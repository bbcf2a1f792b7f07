"""
Score and profile storage for hexclaim.

The simulation core never touches storage; it only hands over
``(display_name, total_coins_earned, player_level)`` when a session ends.
``SessionManager`` owns a ``ScoreStore`` and decides when to call it.

Two implementations:

* ``SQLiteScoreStore``: durable. Failures are logged as warnings and
  never crash the app; the store then behaves as if empty.
* ``InMemoryScoreStore``: for tests and ``db_path=None``.

Leaderboard semantics: one row per display name, keeping the best coins
and best level ever recorded (tracked independently), ordered by coins
descending.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass
class UserProfile:
    """Display identity. Credentials are not stored here."""
    nickname: str
    avatar_color: str = "#3b82f6"
    avatar_icon: str = "user"

    def to_dict(self) -> dict[str, Any]:
        return {
            "nickname": self.nickname,
            "avatar_color": self.avatar_color,
            "avatar_icon": self.avatar_icon,
        }


@dataclass
class ScoreRecord:
    name: str
    coins: int
    level: int

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "coins": self.coins, "level": self.level}


class ScoreStore(Protocol):
    """Storage collaborator injected into the session layer."""

    def find_user(self, nickname: str) -> UserProfile | None: ...

    def upsert_user(self, profile: UserProfile) -> UserProfile: ...

    def record_score(self, name: str, coins: int, level: int) -> ScoreRecord: ...

    def top_scores(self, limit: int = 10) -> list[ScoreRecord]: ...


def _merge(existing: ScoreRecord | None, name: str, coins: int, level: int) -> ScoreRecord:
    if existing is None:
        return ScoreRecord(name=name, coins=coins, level=level)
    return ScoreRecord(
        name=name,
        coins=max(existing.coins, coins),
        level=max(existing.level, level),
    )


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class InMemoryScoreStore:
    """Dict-backed store. Thread-safe."""

    def __init__(self) -> None:
        self._users: dict[str, UserProfile] = {}
        self._scores: dict[str, ScoreRecord] = {}
        self._lock = threading.Lock()

    def find_user(self, nickname: str) -> UserProfile | None:
        with self._lock:
            return self._users.get(nickname)

    def upsert_user(self, profile: UserProfile) -> UserProfile:
        with self._lock:
            self._users[profile.nickname] = profile
        return profile

    def record_score(self, name: str, coins: int, level: int) -> ScoreRecord:
        with self._lock:
            record = _merge(self._scores.get(name), name, coins, level)
            self._scores[name] = record
        return record

    def top_scores(self, limit: int = 10) -> list[ScoreRecord]:
        with self._lock:
            records = list(self._scores.values())
        records.sort(key=lambda s: (-s.coins, s.name))
        return records[:limit]


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    nickname TEXT PRIMARY KEY,
    avatar_color TEXT NOT NULL,
    avatar_icon TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS scores (
    name TEXT PRIMARY KEY,
    coins INTEGER NOT NULL,
    level INTEGER NOT NULL,
    updated_at TEXT NOT NULL
);
"""


class SQLiteScoreStore:
    """SQLite-backed leaderboard and profile storage.

    Thread-safety: uses ``check_same_thread=False`` so FastAPI's
    thread pool can access it.  Writes are serialized by SQLite's
    internal locking.
    """

    def __init__(self, db_path: str = "data/hexclaim.db"):
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._init_db()

    def _init_db(self) -> None:
        """Open connection and create tables if needed."""
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.executescript(_SCHEMA)
            self._conn.commit()
        except Exception:
            logger.warning(
                "Failed to open SQLite database at %s, scores will not be kept",
                self.db_path,
                exc_info=True,
            )
            self._conn = None

    @property
    def available(self) -> bool:
        """True if the database connection is open."""
        return self._conn is not None

    # ---- Profiles ----

    def find_user(self, nickname: str) -> UserProfile | None:
        if not self.available:
            return None
        try:
            row = self._conn.execute(  # type: ignore[union-attr]
                "SELECT nickname, avatar_color, avatar_icon FROM users WHERE nickname = ?",
                (nickname,),
            ).fetchone()
        except Exception:
            logger.warning("Failed to look up user %s", nickname, exc_info=True)
            return None
        if row is None:
            return None
        return UserProfile(nickname=row[0], avatar_color=row[1], avatar_icon=row[2])

    def upsert_user(self, profile: UserProfile) -> UserProfile:
        if not self.available:
            return profile
        now = datetime.now(timezone.utc).isoformat()
        try:
            self._conn.execute(  # type: ignore[union-attr]
                """
                INSERT INTO users (nickname, avatar_color, avatar_icon, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(nickname) DO UPDATE SET
                    avatar_color = excluded.avatar_color,
                    avatar_icon = excluded.avatar_icon,
                    updated_at = excluded.updated_at
                """,
                (profile.nickname, profile.avatar_color, profile.avatar_icon, now),
            )
            self._conn.commit()  # type: ignore[union-attr]
        except Exception:
            logger.warning("Failed to save user %s", profile.nickname, exc_info=True)
        return profile

    # ---- Scores ----

    def record_score(self, name: str, coins: int, level: int) -> ScoreRecord:
        """Keep the best coins and the best level seen for ``name``."""
        record = ScoreRecord(name=name, coins=coins, level=level)
        if not self.available:
            return record
        now = datetime.now(timezone.utc).isoformat()
        try:
            self._conn.execute(  # type: ignore[union-attr]
                """
                INSERT INTO scores (name, coins, level, updated_at)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    coins = MAX(scores.coins, excluded.coins),
                    level = MAX(scores.level, excluded.level),
                    updated_at = excluded.updated_at
                """,
                (name, int(coins), int(level), now),
            )
            self._conn.commit()  # type: ignore[union-attr]
            row = self._conn.execute(  # type: ignore[union-attr]
                "SELECT name, coins, level FROM scores WHERE name = ?", (name,),
            ).fetchone()
            if row is not None:
                record = ScoreRecord(name=row[0], coins=row[1], level=row[2])
        except Exception:
            logger.warning("Failed to record score for %s", name, exc_info=True)
        return record

    def top_scores(self, limit: int = 10) -> list[ScoreRecord]:
        if not self.available:
            return []
        try:
            rows = self._conn.execute(  # type: ignore[union-attr]
                "SELECT name, coins, level FROM scores ORDER BY coins DESC, name ASC LIMIT ?",
                (int(limit),),
            ).fetchall()
        except Exception:
            logger.warning("Failed to read leaderboard", exc_info=True)
            return []
        return [ScoreRecord(name=r[0], coins=r[1], level=r[2]) for r in rows]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
