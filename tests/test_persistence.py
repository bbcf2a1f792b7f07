"""
Tests for score and profile storage.

Both stores must agree on leaderboard semantics: one row per name,
best coins and best level kept independently, ordered by coins.
"""

from __future__ import annotations

import os

import pytest

from hexclaim.api.persistence import (
    InMemoryScoreStore,
    ScoreRecord,
    SQLiteScoreStore,
    UserProfile,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    if request.param == "memory":
        yield InMemoryScoreStore()
    else:
        s = SQLiteScoreStore(str(tmp_path / "scores.db"))
        yield s
        s.close()


class TestScores:
    def test_empty(self, store):
        assert store.top_scores() == []

    def test_record_and_read(self, store):
        record = store.record_score("ace", 40, 3)
        assert record == ScoreRecord(name="ace", coins=40, level=3)
        assert store.top_scores() == [record]

    def test_keeps_best_per_name(self, store):
        store.record_score("ace", 40, 2)
        store.record_score("ace", 10, 5)
        best = store.record_score("ace", 30, 1)
        assert best == ScoreRecord(name="ace", coins=40, level=5)
        assert store.top_scores() == [best]

    def test_ordered_by_coins(self, store):
        store.record_score("low", 5, 9)
        store.record_score("high", 90, 1)
        store.record_score("mid", 50, 2)
        assert [s.name for s in store.top_scores()] == ["high", "mid", "low"]

    def test_limit(self, store):
        for i in range(5):
            store.record_score(f"p{i}", i, 0)
        assert len(store.top_scores(limit=3)) == 3


class TestProfiles:
    def test_missing_user(self, store):
        assert store.find_user("nobody") is None

    def test_upsert_and_find(self, store):
        store.upsert_user(UserProfile(nickname="ace", avatar_color="#ff0000", avatar_icon="star"))
        profile = store.find_user("ace")
        assert profile == UserProfile(nickname="ace", avatar_color="#ff0000", avatar_icon="star")

    def test_upsert_overwrites(self, store):
        store.upsert_user(UserProfile(nickname="ace"))
        store.upsert_user(UserProfile(nickname="ace", avatar_icon="bolt"))
        assert store.find_user("ace").avatar_icon == "bolt"


class TestSQLiteStore:
    def test_survives_reopen(self, tmp_path):
        path = str(tmp_path / "scores.db")
        s1 = SQLiteScoreStore(path)
        s1.record_score("ace", 12, 2)
        s1.upsert_user(UserProfile(nickname="ace"))
        s1.close()

        s2 = SQLiteScoreStore(path)
        assert s2.top_scores() == [ScoreRecord(name="ace", coins=12, level=2)]
        assert s2.find_user("ace") is not None
        s2.close()

    def test_unopenable_path_degrades(self, tmp_path):
        path = os.path.join(str(tmp_path), "missing_dir", "nested", "scores.db")
        s = SQLiteScoreStore(path)
        assert not s.available
        assert s.top_scores() == []
        assert s.find_user("ace") is None
        assert s.record_score("ace", 3, 1) == ScoreRecord(name="ace", coins=3, level=1)

    def test_closed_store_is_inert(self, tmp_path):
        s = SQLiteScoreStore(str(tmp_path / "scores.db"))
        s.close()
        assert not s.available
        assert s.top_scores() == []
