"""Tests for GameConfig and WinCondition."""

import json

import pytest

from hexclaim.core.config import GameConfig, WinCondition, WinType


class TestDefaults:
    def test_rule_constants(self):
        config = GameConfig()
        assert config.cycle_capacity == 3
        assert config.exchange_rate == 2
        assert config.initial_moves == 1
        assert config.initial_coins == 0
        assert config.bot_action_interval == 3
        assert config.message_log_limit == 50

    def test_ai_weights(self):
        config = GameConfig()
        assert config.ai_weight("income") == 1.5
        assert config.ai_weight("distance") == 2.0
        assert config.ai_weight("risk") == 3.0
        assert config.ai_weight("strategy") == 5.0
        assert config.ai_weight("aggression") == 0.5

    def test_defaults_not_shared(self):
        a, b = GameConfig(), GameConfig()
        a.ai_weights["income"] = 99.0
        assert b.ai_weight("income") == 1.5


class TestSerialization:
    def test_dict_roundtrip(self):
        config = GameConfig(cycle_capacity=4, exchange_rate=3)
        restored = GameConfig.from_dict(config.to_dict())
        assert restored == config

    def test_json_roundtrip(self):
        config = GameConfig(bot_action_interval=5)
        s = config.to_json()
        assert json.loads(s)["bot_action_interval"] == 5
        assert GameConfig.from_json(s) == config

    def test_partial_weights_merge_over_defaults(self):
        config = GameConfig.from_dict({"ai_weights": {"risk": 10.0}})
        assert config.ai_weight("risk") == 10.0
        assert config.ai_weight("strategy") == 5.0

    def test_unknown_key_raises(self):
        with pytest.raises(TypeError):
            GameConfig.from_dict({"no_such_field": 1})

    def test_diff(self):
        a = GameConfig()
        b = GameConfig(cycle_capacity=5)
        assert a.diff(b) == {"cycle_capacity": (3, 5)}
        assert a.diff(GameConfig()) == {}

    def test_to_dict_does_not_alias(self):
        config = GameConfig()
        d = config.to_dict()
        d["ai_weights"]["income"] = 99.0
        d["bot_colors"].append("#000000")
        assert config.ai_weight("income") == 1.5
        assert len(config.bot_colors) == 6


class TestValidation:
    @pytest.mark.parametrize("kwargs", [
        {"exchange_rate": 0},
        {"cycle_capacity": 0},
        {"base_growth_seconds": 0},
        {"bot_action_interval": -1},
        {"pathfinder_max_iterations": 0},
        {"message_log_limit": 0},
        {"initial_moves": -1},
        {"seconds_per_level_unit": -2},
        {"major_reward_exponent": 0},
        {"bot_colors": []},
    ])
    def test_invalid_raises_value_error(self, kwargs):
        with pytest.raises(ValueError):
            GameConfig(**kwargs)

    def test_from_dict_validates(self):
        with pytest.raises(ValueError):
            GameConfig.from_dict({"exchange_rate": 0})

    def test_zero_starting_resources_allowed(self):
        config = GameConfig(initial_moves=0, initial_coins=0)
        assert config.initial_moves == 0


class TestWinCondition:
    def test_string_type_coerced(self):
        wc = WinCondition(type="DOMINATION", target=5)
        assert wc.type is WinType.DOMINATION

    def test_labels(self):
        assert WinCondition(WinType.WEALTH, 100).label == "Accumulate 100 Coins"
        assert WinCondition(WinType.DOMINATION, 5).label == "Reach Level 5"

    def test_wealth_uses_total_earned(self):
        wc = WinCondition(WinType.WEALTH, 50)
        assert not wc.is_met(total_coins_earned=49, player_level=10)
        assert wc.is_met(total_coins_earned=50, player_level=0)

    def test_domination_uses_rank(self):
        wc = WinCondition(WinType.DOMINATION, 3)
        assert not wc.is_met(total_coins_earned=1000, player_level=2)
        assert wc.is_met(total_coins_earned=0, player_level=3)

    @pytest.mark.parametrize("kwargs", [
        {"type": "WEALTH", "target": 0},
        {"type": "WEALTH", "target": -5},
        {"type": "WEALTH", "target": 10, "bot_count": 0},
        {"type": "RICHES", "target": 10},
    ])
    def test_invalid_raises_value_error(self, kwargs):
        with pytest.raises(ValueError):
            WinCondition(**kwargs)

    def test_frozen(self):
        wc = WinCondition(WinType.WEALTH, 10)
        with pytest.raises(AttributeError):
            wc.target = 20  # type: ignore[misc]

    def test_dict_roundtrip(self):
        wc = WinCondition(WinType.DOMINATION, 4, bot_count=3)
        d = wc.to_dict()
        assert d["label"] == "Reach Level 4"
        assert WinCondition.from_dict(d) == wc
