"""
Master configuration for hexclaim.

ALL tunable parameters live here. Nothing in the simulation is hardcoded.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class WinType(str, Enum):
    """What the race is measured in."""
    WEALTH = "WEALTH"            # totalCoinsEarned
    DOMINATION = "DOMINATION"    # playerLevel (rank)


@dataclass(frozen=True)
class WinCondition:
    """Victory threshold for one session. Immutable once the session starts."""

    type: WinType
    target: int
    bot_count: int = 1

    def __post_init__(self) -> None:
        # Accept plain strings from JSON payloads.
        object.__setattr__(self, "type", WinType(self.type))
        if self.target <= 0:
            raise ValueError(f"Win target must be positive, got {self.target}")
        if self.bot_count < 1:
            raise ValueError(f"At least one opponent required, got {self.bot_count}")

    @property
    def label(self) -> str:
        if self.type is WinType.WEALTH:
            return f"Accumulate {self.target} Coins"
        return f"Reach Level {self.target}"

    def is_met(self, total_coins_earned: int, player_level: int) -> bool:
        """Whether an agent with these totals has reached the target."""
        if self.type is WinType.WEALTH:
            return total_coins_earned >= self.target
        return player_level >= self.target

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "target": self.target,
            "bot_count": self.bot_count,
            "label": self.label,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> WinCondition:
        return cls(type=WinType(d["type"]), target=d["target"], bot_count=d.get("bot_count", 1))


@dataclass
class GameConfig:
    """
    Master configuration: every rule constant and AI weight as a slider.

    Use ``to_dict()`` / ``from_dict()`` for serialization and comparison.
    """

    # === Cycle lock & economy ===
    cycle_capacity: int = 3          # Size of the recent-upgrades queue
    exchange_rate: int = 2           # Coins per movement token
    initial_moves: int = 1
    initial_coins: int = 0

    # === Growth curve ===
    # seconds_to_grow(t) = base_growth_seconds + (t - 1) * seconds_per_level_unit
    base_growth_seconds: int = 10
    seconds_per_level_unit: int = 10

    # === Rewards ===
    moves_per_level_up: int = 1
    major_reward_exponent: int = 2   # Record levels >= 2 pay level ** exponent coins

    # === Scheduler ===
    bot_action_interval: int = 3     # Ticks between bot actions
    pathfinder_max_iterations: int = 4000
    message_log_limit: int = 50
    bot_colors: list[str] = field(default_factory=lambda: [
        "#ef4444", "#f97316", "#a855f7", "#14b8a6", "#eab308", "#ec4899",
    ])
    bot_aggression_factor: float = 0.5

    # === Opponent AI ===
    ai_weights: dict[str, float] = field(default_factory=lambda: {
        "income": 1.5,
        "distance": 2.0,
        "risk": 3.0,
        "strategy": 5.0,
        "aggression": 0.5,
    })
    ai_thresholds: dict[str, float] = field(default_factory=lambda: {
        "survival_resources": 3,           # Below this: SURVIVAL
        "evolution_rank_ceiling": 3,       # Rank below this: EVOLUTION
        "development_resources": 8,        # At or above this: DEVELOPMENT
        "aggression_resources": 15,        # Above this: aggression term applies
        "search_radius": 8,
        "survival_search_radius": 3,
        "top_k": 5,
        "survival_top_k": 10,
        "expand_distance_multiplier": 3.0,
        "development_soft_cap": 8,
        "in_place_bonus": 250.0,
        "soft_cap_penalty": 100.0,         # Per level above the role ceiling
        "safety_margin": 1,
        "hopeless_score": -5000.0,         # Candidates below this are never validated
    })

    def __post_init__(self) -> None:
        for name in (
            "cycle_capacity", "exchange_rate", "base_growth_seconds",
            "bot_action_interval", "pathfinder_max_iterations", "message_log_limit",
        ):
            value = getattr(self, name)
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
        for name in ("initial_moves", "initial_coins", "seconds_per_level_unit", "moves_per_level_up"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")
        if self.major_reward_exponent < 1:
            raise ValueError(f"major_reward_exponent must be at least 1, got {self.major_reward_exponent}")
        if not self.bot_colors:
            raise ValueError("bot_colors must name at least one colour")

    def ai_weight(self, name: str) -> float:
        return float(self.ai_weights[name])

    def ai_threshold(self, name: str) -> float:
        return float(self.ai_thresholds[name])

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-compatible dict."""
        d: dict[str, Any] = {}
        for k, v in self.__dict__.items():
            if k.startswith("_"):
                continue
            if isinstance(v, (list, dict)):
                v = type(v)(v)
            d[k] = v
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> GameConfig:
        """Deserialize from a dict. Partial weight/threshold dicts merge over defaults."""
        kwargs = {k: v for k, v in d.items() if not k.startswith("_")}
        defaults = cls()
        for name in ("ai_weights", "ai_thresholds"):
            if name in kwargs:
                merged = dict(getattr(defaults, name))
                merged.update(kwargs[name])
                kwargs[name] = merged
        return cls(**kwargs)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, default=str)

    @classmethod
    def from_json(cls, s: str) -> GameConfig:
        return cls.from_dict(json.loads(s))

    def diff(self, other: GameConfig) -> dict[str, tuple[Any, Any]]:
        """Return parameters that differ between two configs."""
        diffs: dict[str, tuple[Any, Any]] = {}
        for k in self.to_dict():
            v1 = getattr(self, k)
            v2 = getattr(other, k)
            if v1 != v2:
                diffs[k] = (v1, v2)
        return diffs
