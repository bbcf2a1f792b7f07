"""
Tile growth rules.

A tile grows one level at a time while its occupant stands still and
keeps growth switched on. Restoring ``current_level`` up to the tile's
own ``max_level`` is always allowed. Pushing past ``max_level`` (a record)
is gated twice for levels >= 2:

  * cycle lock: the agent's recent-upgrades queue must be full;
  * rank gate:  the agent's rank must already be ``target - 1``.

A level-1 record pushes the tile onto the agent's queue; a higher record
consumes the whole cycle and pays the larger reward tier.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum

from hexclaim.core.agent import Agent
from hexclaim.core.config import GameConfig
from hexclaim.core.hex_grid import HexTile


class GrowthBlock(str, Enum):
    """Which gate refused a record-breaking growth attempt."""
    CYCLE_INCOMPLETE = "CYCLE_INCOMPLETE"
    RANK_TOO_LOW = "RANK_TOO_LOW"


class GrowthEvent(str, Enum):
    BLOCKED = "blocked"
    PROGRESS = "progress"
    LEVEL_UP = "level_up"


@dataclass(frozen=True)
class GrowthCheck:
    allowed: bool
    reason: GrowthBlock | None = None
    message: str = ""


@dataclass(frozen=True)
class Reward:
    coins: int
    moves: int


@dataclass(frozen=True)
class GrowthTick:
    """Outcome of one growth tick.

    ``tile`` is the tile's new value; the caller owns the grid and decides
    whether to store it.
    """
    tile: HexTile
    event: GrowthEvent
    level: int = 0
    record: bool = False
    reward: Reward | None = None
    still_growing: bool = False
    check: GrowthCheck | None = None


def seconds_to_grow(target_level: int, config: GameConfig) -> int:
    """Ticks of growth needed to reach ``target_level`` from the level below."""
    if target_level <= 1:
        return config.base_growth_seconds
    return config.base_growth_seconds + (target_level - 1) * config.seconds_per_level_unit


def calculate_reward(new_level: int, config: GameConfig, record: bool = False) -> Reward:
    """Reward for reaching ``new_level``.

    Record levels above 1 pay ``level ** major_reward_exponent`` coins;
    everything else pays ``level`` coins.
    """
    if record and new_level > 1:
        coins = new_level ** config.major_reward_exponent
    else:
        coins = new_level
    return Reward(coins=coins, moves=config.moves_per_level_up)


def check_growth_condition(tile: HexTile, agent: Agent, cycle_capacity: int) -> GrowthCheck:
    """Whether ``agent`` may grow ``tile`` to ``current_level + 1``. Pure."""
    target_level = tile.current_level + 1

    if target_level <= tile.max_level:
        return GrowthCheck(allowed=True)
    if target_level == 1:
        return GrowthCheck(allowed=True)

    queued = len(agent.recent_upgrades)
    if queued < cycle_capacity:
        return GrowthCheck(
            allowed=False,
            reason=GrowthBlock.CYCLE_INCOMPLETE,
            message=f"CYCLE INCOMPLETE ({queued}/{cycle_capacity})",
        )
    if agent.player_level < target_level - 1:
        return GrowthCheck(
            allowed=False,
            reason=GrowthBlock.RANK_TOO_LOW,
            message=f"RANK TOO LOW (NEED L{target_level - 1})",
        )
    return GrowthCheck(allowed=True)


def can_break_record(tile: HexTile, agent: Agent, cycle_capacity: int) -> GrowthCheck:
    """Whether the agent could push this tile past its ``max_level`` once caught up."""
    return check_growth_condition(
        replace(tile, current_level=tile.max_level), agent, cycle_capacity,
    )


def apply_growth_tick(tile: HexTile, agent: Agent, config: GameConfig) -> GrowthTick:
    """Advance growth on ``tile`` by one tick on behalf of ``agent``.

    Mutates ``agent`` (rewards, rank, cycle queue) on a level-up and returns
    the tile's new value.
    """
    check = check_growth_condition(tile, agent, config.cycle_capacity)
    if not check.allowed:
        return GrowthTick(tile=tile, event=GrowthEvent.BLOCKED, check=check)

    target_level = tile.current_level + 1
    progress = tile.progress + 1
    if progress < seconds_to_grow(target_level, config):
        return GrowthTick(
            tile=replace(tile, progress=progress),
            event=GrowthEvent.PROGRESS,
            still_growing=True,
        )

    record = target_level > tile.max_level
    new_max = max(tile.max_level, target_level)
    if record:
        if target_level == 1:
            agent.push_recent_upgrade(tile.id, config.cycle_capacity)
        else:
            agent.recent_upgrades.clear()
        agent.player_level = max(agent.player_level, target_level)

    reward = calculate_reward(target_level, config, record=record)
    agent.earn(reward.coins, reward.moves)

    return GrowthTick(
        tile=replace(tile, current_level=target_level, max_level=new_max, progress=0),
        event=GrowthEvent.LEVEL_UP,
        level=target_level,
        record=record,
        reward=reward,
        still_growing=target_level < new_max,
    )
