"""
Tests for tile growth rules.

Covers the growth timer, reward tiers, the cycle lock and rank gate,
and the per-tick growth state machine.
"""

from __future__ import annotations

import pytest

from hexclaim.core.agent import Agent, AgentType
from hexclaim.core.config import GameConfig
from hexclaim.core.growth import (
    GrowthBlock,
    GrowthEvent,
    apply_growth_tick,
    calculate_reward,
    can_break_record,
    check_growth_condition,
    seconds_to_grow,
)
from hexclaim.core.hex_grid import HexTile


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _make_agent(**overrides) -> Agent:
    defaults = {"id": "a1", "type": AgentType.PLAYER, "moves": 1}
    defaults.update(overrides)
    return Agent(**defaults)


def _make_tile(current: int = 0, max_level: int = 0, progress: int = 0, q: int = 0, r: int = 0) -> HexTile:
    return HexTile(q=q, r=r, current_level=current, max_level=max_level, progress=progress)


def _grow_until_event(tile: HexTile, agent: Agent, config: GameConfig, limit: int = 1000):
    """Tick growth until something other than PROGRESS happens."""
    for _ in range(limit):
        result = apply_growth_tick(tile, agent, config)
        tile = result.tile
        if result.event is not GrowthEvent.PROGRESS:
            return result
    raise AssertionError("growth never completed")


# ---------------------------------------------------------------------------
# Timer and rewards
# ---------------------------------------------------------------------------

class TestTimer:
    def test_default_curve(self):
        config = GameConfig()
        assert seconds_to_grow(1, config) == 10
        assert seconds_to_grow(2, config) == 20
        assert seconds_to_grow(5, config) == 50

    def test_configurable(self):
        config = GameConfig(base_growth_seconds=4, seconds_per_level_unit=2)
        assert seconds_to_grow(1, config) == 4
        assert seconds_to_grow(3, config) == 8


class TestRewards:
    def test_restore_pays_level(self):
        reward = calculate_reward(3, GameConfig(), record=False)
        assert reward.coins == 3
        assert reward.moves == 1

    def test_first_capture_pays_one(self):
        assert calculate_reward(1, GameConfig(), record=True).coins == 1

    def test_record_pays_square(self):
        assert calculate_reward(2, GameConfig(), record=True).coins == 4
        assert calculate_reward(4, GameConfig(), record=True).coins == 16

    def test_record_dominates_restore(self):
        config = GameConfig()
        for level in range(2, 8):
            assert (calculate_reward(level, config, record=True).coins
                    > calculate_reward(level, config, record=False).coins)


# ---------------------------------------------------------------------------
# Gates
# ---------------------------------------------------------------------------

class TestGrowthCondition:
    def test_virgin_tile_always_allowed(self):
        check = check_growth_condition(_make_tile(), _make_agent(), 3)
        assert check.allowed

    def test_restore_always_allowed(self):
        # empty queue, rank 0: restoring is still fine
        check = check_growth_condition(_make_tile(current=1, max_level=4), _make_agent(), 3)
        assert check.allowed

    def test_record_needs_full_cycle(self):
        agent = _make_agent(player_level=1, recent_upgrades=["1,0", "2,0"])
        check = check_growth_condition(_make_tile(current=1, max_level=1), agent, 3)
        assert not check.allowed
        assert check.reason is GrowthBlock.CYCLE_INCOMPLETE
        assert check.message == "CYCLE INCOMPLETE (2/3)"

    def test_record_needs_rank(self):
        agent = _make_agent(player_level=1, recent_upgrades=["a", "b", "c"])
        check = check_growth_condition(_make_tile(current=2, max_level=2), agent, 3)
        assert not check.allowed
        assert check.reason is GrowthBlock.RANK_TOO_LOW
        assert "NEED L2" in check.message

    def test_record_allowed_with_cycle_and_rank(self):
        agent = _make_agent(player_level=1, recent_upgrades=["a", "b", "c"])
        assert check_growth_condition(_make_tile(current=1, max_level=1), agent, 3).allowed

    def test_can_break_record_ignores_current_level(self):
        agent = _make_agent(player_level=2, recent_upgrades=["a", "b", "c"])
        assert can_break_record(_make_tile(current=0, max_level=2), agent, 3).allowed
        assert not can_break_record(_make_tile(current=0, max_level=2), _make_agent(player_level=2), 3).allowed


# ---------------------------------------------------------------------------
# Growth tick
# ---------------------------------------------------------------------------

class TestApplyGrowthTick:
    def test_progress_accumulates(self):
        config = GameConfig()
        agent = _make_agent()
        result = apply_growth_tick(_make_tile(progress=3), agent, config)
        assert result.event is GrowthEvent.PROGRESS
        assert result.tile.progress == 4
        assert result.still_growing
        assert agent.coins == 0

    def test_first_capture(self):
        config = GameConfig()
        agent = _make_agent()
        result = _grow_until_event(_make_tile(q=2, r=-1), agent, config)
        assert result.event is GrowthEvent.LEVEL_UP
        assert result.record
        assert result.level == 1
        assert result.tile.current_level == 1
        assert result.tile.max_level == 1
        assert result.tile.progress == 0
        assert not result.still_growing
        assert agent.recent_upgrades == ["2,-1"]
        assert agent.player_level == 1
        assert agent.coins == 1
        assert agent.total_coins_earned == 1
        assert agent.moves == 2

    def test_level_one_takes_ten_ticks(self):
        config = GameConfig()
        agent = _make_agent()
        tile = _make_tile()
        for _ in range(9):
            result = apply_growth_tick(tile, agent, config)
            assert result.event is GrowthEvent.PROGRESS
            tile = result.tile
        assert apply_growth_tick(tile, agent, config).event is GrowthEvent.LEVEL_UP

    def test_queue_is_fifo_bounded(self):
        agent = _make_agent(recent_upgrades=["a", "b", "c"])
        _grow_until_event(_make_tile(q=5, r=5), agent, GameConfig())
        assert agent.recent_upgrades == ["b", "c", "5,5"]

    def test_major_record_clears_cycle(self):
        config = GameConfig()
        agent = _make_agent(player_level=1, recent_upgrades=["a", "b", "c"])
        result = _grow_until_event(_make_tile(current=1, max_level=1), agent, config)
        assert result.record
        assert result.level == 2
        assert result.reward.coins == 4
        assert agent.recent_upgrades == []
        assert agent.player_level == 2

    def test_restore_keeps_growing_until_max(self):
        config = GameConfig()
        agent = _make_agent(player_level=3)
        result = _grow_until_event(_make_tile(current=0, max_level=3), agent, config)
        assert not result.record
        assert result.level == 1
        assert result.reward.coins == 1
        assert result.still_growing
        assert agent.recent_upgrades == []
        assert agent.player_level == 3

    def test_blocked_changes_nothing(self):
        config = GameConfig()
        agent = _make_agent(player_level=1, coins=5)
        tile = _make_tile(current=1, max_level=1, progress=0)
        result = apply_growth_tick(tile, agent, config)
        assert result.event is GrowthEvent.BLOCKED
        assert result.tile == tile
        assert result.check.reason is GrowthBlock.CYCLE_INCOMPLETE
        assert agent.coins == 5

    @pytest.mark.parametrize("start_max", [0, 1, 2, 3])
    def test_max_level_never_decreases(self, start_max):
        config = GameConfig()
        agent = _make_agent(player_level=5, recent_upgrades=["a", "b", "c"])
        tile = _make_tile(current=0, max_level=start_max)
        result = _grow_until_event(tile, agent, config)
        assert result.tile.max_level >= start_max
