"""
Agent data model: the player and every autonomous opponent.

An agent's movement queue holds explicit step variants: ``MoveStep`` to
relocate one hex, or ``GrowInPlace`` to grow the tile it stands on.
Every consumer branches on both cases.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Union

from hexclaim.core.hex_grid import Coord


class AgentType(str, Enum):
    PLAYER = "PLAYER"
    BOT = "BOT"


# ---------------------------------------------------------------------------
# Movement queue steps
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MoveStep:
    """Relocate to an adjacent coordinate."""
    q: int
    r: int

    @property
    def coords(self) -> Coord:
        return (self.q, self.r)

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "move", "q": self.q, "r": self.r}


@dataclass(frozen=True)
class GrowInPlace:
    """Grow the tile currently occupied instead of moving."""

    def to_dict(self) -> dict[str, Any]:
        return {"kind": "grow"}


QueueStep = Union[MoveStep, GrowInPlace]


def step_from_dict(d: dict[str, Any]) -> QueueStep:
    kind = d.get("kind", "move")
    if kind == "grow":
        return GrowInPlace()
    if kind == "move":
        return MoveStep(q=d["q"], r=d["r"])
    raise ValueError(f"Unknown queue step kind: '{kind}'")


# ---------------------------------------------------------------------------
# Agents
# ---------------------------------------------------------------------------

@dataclass
class AgentMemory:
    """What a bot remembers between decisions."""
    last_opponent_pos: Coord | None = None
    aggression_factor: float = 0.5

    def to_dict(self) -> dict[str, Any]:
        return {
            "last_opponent_pos": list(self.last_opponent_pos) if self.last_opponent_pos else None,
            "aggression_factor": self.aggression_factor,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> AgentMemory:
        pos = d.get("last_opponent_pos")
        return cls(
            last_opponent_pos=tuple(pos) if pos else None,
            aggression_factor=d.get("aggression_factor", 0.5),
        )


@dataclass
class Agent:
    """
    A participant on the grid.

    ``player_level`` is the agent's rank: the highest ``max_level`` it has
    ever produced on any tile. It gates which tiles the agent may enter
    and which record levels it may grow.
    """

    id: str
    type: AgentType
    q: int = 0
    r: int = 0
    player_level: int = 0
    coins: int = 0
    total_coins_earned: int = 0
    moves: int = 0
    recent_upgrades: list[str] = field(default_factory=list)  # FIFO of tile ids
    movement_queue: list[QueueStep] = field(default_factory=list)
    memory: AgentMemory | None = None
    avatar_color: str | None = None
    is_growing: bool = False
    last_action_tick: int = 0

    @property
    def position(self) -> Coord:
        return (self.q, self.r)

    @property
    def is_bot(self) -> bool:
        return self.type is AgentType.BOT

    def move_to(self, q: int, r: int) -> None:
        self.q = q
        self.r = r

    # ---- Resources ----

    def spendable_resources(self, exchange_rate: int) -> int:
        """Moves plus coins converted at the exchange rate (whole moves only)."""
        return self.moves + self.coins // exchange_rate

    def split_cost(self, cost: int, exchange_rate: int) -> tuple[int, int]:
        """Split a movement cost into (moves, coins), spending moves first."""
        cost_moves = min(self.moves, cost)
        cost_coins = (cost - cost_moves) * exchange_rate
        return cost_moves, cost_coins

    def pay_movement(self, cost: int, exchange_rate: int) -> bool:
        """Deduct a movement cost. Returns False (and changes nothing) if unaffordable."""
        cost_moves, cost_coins = self.split_cost(cost, exchange_rate)
        if self.coins < cost_coins:
            return False
        self.moves -= cost_moves
        self.coins -= cost_coins
        return True

    def recharge(self, exchange_rate: int) -> bool:
        """Convert coins into a single move."""
        if self.coins < exchange_rate:
            return False
        self.coins -= exchange_rate
        self.moves += 1
        return True

    def earn(self, coins: int, moves: int) -> None:
        self.coins += coins
        self.total_coins_earned += coins
        self.moves += moves

    # ---- Cycle queue ----

    def push_recent_upgrade(self, tile_id: str, capacity: int) -> None:
        """Append to the fixed-capacity FIFO, evicting the oldest entries."""
        self.recent_upgrades.append(tile_id)
        while len(self.recent_upgrades) > capacity:
            self.recent_upgrades.pop(0)

    def cycle_full(self, capacity: int) -> bool:
        return len(self.recent_upgrades) >= capacity

    # ---- Copy / serialization ----

    def copy(self) -> Agent:
        """Independent copy; no list or memory is shared with the original."""
        return Agent.from_dict(self.to_dict())

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "q": self.q,
            "r": self.r,
            "player_level": self.player_level,
            "coins": self.coins,
            "total_coins_earned": self.total_coins_earned,
            "moves": self.moves,
            "recent_upgrades": list(self.recent_upgrades),
            "movement_queue": [step.to_dict() for step in self.movement_queue],
            "memory": self.memory.to_dict() if self.memory else None,
            "avatar_color": self.avatar_color,
            "is_growing": self.is_growing,
            "last_action_tick": self.last_action_tick,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Agent:
        memory = d.get("memory")
        return cls(
            id=d["id"],
            type=AgentType(d["type"]),
            q=d["q"],
            r=d["r"],
            player_level=d.get("player_level", 0),
            coins=d.get("coins", 0),
            total_coins_earned=d.get("total_coins_earned", 0),
            moves=d.get("moves", 0),
            recent_upgrades=list(d.get("recent_upgrades", [])),
            movement_queue=[step_from_dict(s) for s in d.get("movement_queue", [])],
            memory=AgentMemory.from_dict(memory) if memory else None,
            avatar_color=d.get("avatar_color"),
            is_growing=d.get("is_growing", False),
            last_action_tick=d.get("last_action_tick", 0),
        )
