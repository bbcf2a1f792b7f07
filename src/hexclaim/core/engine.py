"""
Tick-based simulation scheduler and player command API.

One ``tick()`` advances the whole world by one discrete step:

  1. bots refresh their memory of the player's position;
  2. the player's growth advances (if switched on and not travelling);
  3. bots act one at a time, in fixed index order. Each bot lifts its
     own position out of the occupancy set, grows or acts, and puts its
     (possibly new) position back before the next bot runs. Later bots
     therefore always see moves committed earlier in the same tick, and
     no two agents can ever end up on one coordinate;
  4. the win condition is evaluated for the player first, then the bots.

The player's queued path is drained separately through
``advance_movement_step()``; both entry points run to completion
synchronously and never interleave.

The engine owns the tile map and every agent. The AI and the pathfinder
only ever see a snapshot of the tiles, a copy of the deciding agent and
the obstacle coordinates.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from hexclaim.core.agent import Agent, AgentMemory, AgentType, GrowInPlace, MoveStep
from hexclaim.core.config import GameConfig, WinCondition
from hexclaim.core.decision import BotDecisionModel, DecisionResult
from hexclaim.core.growth import (
    GrowthEvent,
    GrowthTick,
    apply_growth_tick,
    check_growth_condition,
)
from hexclaim.core.hex_grid import Coord, HexGrid, hex_ring
from hexclaim.core.pathfinding import find_path, path_cost, step_cost

logger = logging.getLogger(__name__)

PLAYER_ID = "player-1"


# ---------------------------------------------------------------------------
# Enums and result types
# ---------------------------------------------------------------------------

class GameStatus(str, Enum):
    PLAYING = "PLAYING"
    VICTORY = "VICTORY"
    DEFEAT = "DEFEAT"
    GAME_OVER = "GAME_OVER"   # abandoned


class Refusal(str, Enum):
    """Why a command changed nothing."""
    RANK_TOO_LOW = "RANK_TOO_LOW"
    PATH_BLOCKED = "PATH_BLOCKED"
    INSUFFICIENT_RESOURCES = "INSUFFICIENT_RESOURCES"
    CYCLE_INCOMPLETE = "CYCLE_INCOMPLETE"
    GAME_NOT_ACTIVE = "GAME_NOT_ACTIVE"
    BUSY = "BUSY"                      # a path is still being walked
    INVALID_TARGET = "INVALID_TARGET"
    NOTHING_PENDING = "NOTHING_PENDING"
    QUEUE_EMPTY = "QUEUE_EMPTY"


class MoveStatus(str, Enum):
    COMMITTED = "COMMITTED"
    NEEDS_CONFIRMATION = "NEEDS_CONFIRMATION"
    REFUSED = "REFUSED"


@dataclass(frozen=True)
class CommandResult:
    ok: bool
    reason: Refusal | None = None
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "ok": self.ok,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
        }


@dataclass(frozen=True)
class MoveResult:
    status: MoveStatus
    reason: Refusal | None = None
    message: str = ""
    path: tuple[Coord, ...] = ()
    cost_moves: int = 0
    cost_coins: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "path": [list(c) for c in self.path],
            "cost_moves": self.cost_moves,
            "cost_coins": self.cost_coins,
        }


@dataclass(frozen=True)
class PendingConfirmation:
    """A player move that needs coins and waits for an explicit yes."""
    path: tuple[Coord, ...]
    cost_moves: int
    cost_coins: int
    type: str = "MOVE_WITH_COINS"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "path": [list(c) for c in self.path],
            "cost_moves": self.cost_moves,
            "cost_coins": self.cost_coins,
        }

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> PendingConfirmation:
        return cls(
            path=tuple(tuple(c) for c in d["path"]),
            cost_moves=d["cost_moves"],
            cost_coins=d["cost_coins"],
            type=d.get("type", "MOVE_WITH_COINS"),
        )


@dataclass(frozen=True)
class Notice:
    """Transient message for the player (replaced by the next one)."""
    message: str
    type: str  # error | success | info
    tick: int

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "type": self.type, "tick": self.tick}

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> Notice:
        return cls(message=d["message"], type=d["type"], tick=d.get("tick", 0))


@dataclass
class TickLog:
    """What happened during one tick."""
    tick: int
    status: GameStatus = GameStatus.PLAYING
    events: list[dict[str, Any]] = field(default_factory=list)
    decisions: dict[str, DecisionResult] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tick": self.tick,
            "status": self.status.value,
            "events": list(self.events),
            "decisions": {aid: d.to_dict() for aid, d in self.decisions.items()},
        }


def spawn_positions(count: int, center: Coord = (0, 0)) -> list[Coord]:
    """Distinct starting coordinates for ``count`` bots on rings around ``center``."""
    positions: list[Coord] = []
    radius = 1
    while len(positions) < count:
        positions.extend(hex_ring(center, radius))
        radius += 1
    return positions[:count]


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class GameEngine:
    """
    One game session's world state and the only code that mutates it.

    Attributes:
        config: Rule constants and AI weights.
        win_condition: Immutable victory threshold.
        grid: Sparse tile map.
        player: The human-controlled agent.
        bots: Autonomous opponents, in resolution order.
    """

    def __init__(self, win_condition: WinCondition, config: GameConfig | None = None):
        self.config = config or GameConfig()
        self.win_condition = win_condition
        self.decision_model = BotDecisionModel(self.config)

        self.grid = HexGrid()
        self.status = GameStatus.PLAYING
        self.tick_count = 0
        self.messages: deque[str] = deque(maxlen=self.config.message_log_limit)
        self.pending: PendingConfirmation | None = None
        self.notice: Notice | None = None

        self.player = Agent(
            id=PLAYER_ID,
            type=AgentType.PLAYER,
            coins=self.config.initial_coins,
            moves=self.config.initial_moves,
        )
        self.bots: list[Agent] = []
        colors = self.config.bot_colors
        for i, (q, r) in enumerate(spawn_positions(win_condition.bot_count)):
            self.bots.append(Agent(
                id=f"bot-{i + 1}",
                type=AgentType.BOT,
                q=q,
                r=r,
                coins=self.config.initial_coins,
                moves=self.config.initial_moves,
                memory=AgentMemory(aggression_factor=self.config.bot_aggression_factor),
                avatar_color=colors[i % len(colors)] if colors else None,
            ))

        for agent in self.agents:
            self.grid.reveal(*agent.position)

        self._log("Operational.")
        self._log(f"Objective: {win_condition.label}")

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def agents(self) -> list[Agent]:
        return [self.player] + self.bots

    @property
    def is_playing(self) -> bool:
        return self.status is GameStatus.PLAYING

    def occupancy(self) -> set[Coord]:
        return {agent.position for agent in self.agents}

    def _label(self, agent: Agent) -> str:
        if agent.is_bot:
            return f"[{agent.id.upper()}]"
        return "[YOU]"

    def _log(self, message: str) -> None:
        self.messages.appendleft(message)

    def _notify(self, message: str, kind: str = "error") -> None:
        self.notice = Notice(message=message, type=kind, tick=self.tick_count)

    def _relocate(self, agent: Agent, target: Coord) -> None:
        """Move an agent one hex. The tile it leaves loses its transient level."""
        self.grid.vacate(*agent.position)
        agent.move_to(*target)
        self.grid.reveal(*target)

    def _reveal_path(self, path: list[Coord] | tuple[Coord, ...]) -> None:
        for q, r in path:
            self.grid.reveal(q, r)

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def tick(self) -> TickLog:
        """Advance the world by one step. A finished game is left untouched."""
        if not self.is_playing:
            return TickLog(tick=self.tick_count, status=self.status)

        self.tick_count += 1
        log = TickLog(tick=self.tick_count)

        for bot in self.bots:
            if bot.memory is not None:
                bot.memory.last_opponent_pos = self.player.position

        self._process_growth(self.player, log)

        occupancy = self.occupancy()
        for bot in self.bots:
            occupancy.discard(bot.position)
            self._process_bot(bot, occupancy, log)
            occupancy.add(bot.position)

        self._evaluate_victory(log)
        log.status = self.status
        return log

    def _process_growth(self, agent: Agent, log: TickLog) -> GrowthTick | None:
        """One growth tick for ``agent`` if it is growing and not travelling."""
        if not agent.is_growing:
            return None
        queue = agent.movement_queue
        if queue and not isinstance(queue[0], GrowInPlace):
            agent.is_growing = False
            return None

        tile = self.grid.ensure_tile(*agent.position)
        result = apply_growth_tick(tile, agent, self.config)
        self.grid.set_tile(result.tile)

        if result.event is GrowthEvent.BLOCKED:
            agent.is_growing = False
            if agent.type is AgentType.PLAYER and result.check is not None:
                self._notify(f"Growth Denied: {result.check.message}")
            return result

        if result.event is GrowthEvent.LEVEL_UP:
            agent.is_growing = result.still_growing
            self._record_level_up(agent, result, log)
        return result

    def _record_level_up(self, agent: Agent, result: GrowthTick, log: TickLog) -> None:
        prefix = self._label(agent)
        coins = result.reward.coins if result.reward else 0
        if result.record and result.level == 1:
            self._log(f"{prefix} Sector L1 Acquired")
        elif result.record:
            self._log(f"{prefix} Record L{result.level}! +{coins} credits")
            logger.info("%s broke record L%d on %s", agent.id, result.level, result.tile.id)
        else:
            self._log(f"{prefix} Sector restored to L{result.level}")
        log.events.append({
            "type": "level_up",
            "agent_id": agent.id,
            "tile": result.tile.id,
            "level": result.level,
            "record": result.record,
            "coins": coins,
        })

    def _process_bot(self, bot: Agent, occupancy: set[Coord], log: TickLog) -> None:
        """Growth, then (on cadence) one queued action or a fresh decision."""
        result = self._process_growth(bot, log)
        if result is not None and not bot.is_growing:
            if bot.movement_queue and isinstance(bot.movement_queue[0], GrowInPlace):
                bot.movement_queue.pop(0)
            bot.last_action_tick = self.tick_count
        if bot.is_growing:
            return
        if self.tick_count - bot.last_action_tick < self.config.bot_action_interval:
            return
        bot.last_action_tick = self.tick_count

        if not bot.movement_queue:
            decision = self.decision_model.decide(bot.copy(), self.grid.view(), tuple(occupancy))
            log.decisions[bot.id] = decision
            if decision.steps:
                bot.movement_queue = list(decision.steps)
                self._reveal_path([s.coords for s in decision.steps if isinstance(s, MoveStep)])
            else:
                bot.recharge(self.config.exchange_rate)
            return

        head = bot.movement_queue[0]
        if isinstance(head, GrowInPlace):
            tile = self.grid.ensure_tile(*bot.position)
            if check_growth_condition(tile, bot, self.config.cycle_capacity).allowed:
                bot.is_growing = True
            else:
                bot.movement_queue.pop(0)
            return

        target = head.coords
        if target in occupancy:
            bot.movement_queue.clear()
            self._log(f"{self._label(bot)} Path blocked")
            log.events.append({"type": "path_blocked", "agent_id": bot.id, "tile": list(target)})
            logger.debug("%s path blocked at %s", bot.id, target)
            return

        cost = step_cost(self.grid.get_tile(*target))
        if not bot.pay_movement(cost, self.config.exchange_rate):
            bot.movement_queue.clear()
            log.events.append({"type": "stranded", "agent_id": bot.id, "tile": list(target)})
            return

        bot.movement_queue.pop(0)
        previous = bot.position
        self._relocate(bot, target)
        log.events.append({
            "type": "move", "agent_id": bot.id,
            "from": list(previous), "to": list(target), "cost": cost,
        })

    def _evaluate_victory(self, log: TickLog) -> None:
        wc = self.win_condition
        if wc.is_met(self.player.total_coins_earned, self.player.player_level):
            self.status = GameStatus.VICTORY
            self._log(f"[YOU] Objective complete: {wc.label}")
            self._notify("Victory!", "success")
            logger.info("Player won at tick %d", self.tick_count)
            return
        for bot in self.bots:
            if wc.is_met(bot.total_coins_earned, bot.player_level):
                self.status = GameStatus.DEFEAT
                self._log(f"{self._label(bot)} Objective complete: {wc.label}")
                self._notify(f"Defeat: {bot.id} reached the objective")
                logger.info("%s won at tick %d", bot.id, self.tick_count)
                return

    # ------------------------------------------------------------------
    # Player commands
    # ------------------------------------------------------------------

    def _inactive(self) -> CommandResult:
        return CommandResult(False, Refusal.GAME_NOT_ACTIVE, f"Game is {self.status.value}")

    def toggle_player_growth(self) -> CommandResult:
        """Switch growth on the player's tile on or off."""
        if not self.is_playing:
            return self._inactive()
        player = self.player
        if player.movement_queue:
            return CommandResult(False, Refusal.BUSY, "Cannot grow while moving")

        if not player.is_growing:
            tile = self.grid.ensure_tile(*player.position)
            check = check_growth_condition(tile, player, self.config.cycle_capacity)
            if not check.allowed:
                self._notify(f"Growth Denied: {check.message}")
                return CommandResult(False, Refusal(check.reason.value), check.message)

        player.is_growing = not player.is_growing
        return CommandResult(True, message="Growing" if player.is_growing else "Growth paused")

    def recharge_move(self) -> CommandResult:
        """Buy one move with coins."""
        if not self.is_playing:
            return self._inactive()
        if not self.player.recharge(self.config.exchange_rate):
            return CommandResult(
                False, Refusal.INSUFFICIENT_RESOURCES,
                f"Need {self.config.exchange_rate} coins",
            )
        return CommandResult(True, message="+1 move")

    def attempt_player_move(self, q: int, r: int) -> MoveResult:
        """Plan a move to (q, r).

        Free moves are committed at once; moves that need coins wait in
        ``pending`` for :meth:`confirm_pending_action`.
        """
        if not self.is_playing:
            return MoveResult(MoveStatus.REFUSED, Refusal.GAME_NOT_ACTIVE, f"Game is {self.status.value}")
        player = self.player
        if player.movement_queue:
            return MoveResult(MoveStatus.REFUSED, Refusal.BUSY, "Already moving")
        if (q, r) == player.position:
            return MoveResult(MoveStatus.REFUSED, Refusal.INVALID_TARGET, "Already here")

        target_tile = self.grid.get_tile(q, r)
        if target_tile is not None and target_tile.max_level > player.player_level:
            message = f"Rank L{target_tile.max_level} Required"
            self._notify(message)
            return MoveResult(MoveStatus.REFUSED, Refusal.RANK_TOO_LOW, message)

        tiles = self.grid.view()
        path = find_path(
            player.position, (q, r), tiles, player.player_level,
            [bot.position for bot in self.bots], self.config.pathfinder_max_iterations,
        )
        if not path:
            self._notify("Path Blocked")
            return MoveResult(MoveStatus.REFUSED, Refusal.PATH_BLOCKED, "Path Blocked")

        total_cost = path_cost(path, tiles)
        cost_moves, cost_coins = player.split_cost(total_cost, self.config.exchange_rate)
        if player.coins < cost_coins:
            message = f"Need {total_cost} moves"
            self._notify(message)
            return MoveResult(
                MoveStatus.REFUSED, Refusal.INSUFFICIENT_RESOURCES, message,
                tuple(path), cost_moves, cost_coins,
            )

        if cost_coins > 0:
            self.pending = PendingConfirmation(tuple(path), cost_moves, cost_coins)
            return MoveResult(
                MoveStatus.NEEDS_CONFIRMATION, message=f"Spend {cost_coins} coins?",
                path=tuple(path), cost_moves=cost_moves, cost_coins=cost_coins,
            )

        self._commit_player_path(tuple(path), cost_moves, 0)
        return MoveResult(MoveStatus.COMMITTED, path=tuple(path), cost_moves=cost_moves)

    def _commit_player_path(self, path: tuple[Coord, ...], cost_moves: int, cost_coins: int) -> None:
        player = self.player
        player.moves -= cost_moves
        player.coins -= cost_coins
        player.movement_queue = [MoveStep(q, r) for q, r in path]
        player.is_growing = False
        self._reveal_path(path)

    def confirm_pending_action(self) -> CommandResult:
        """Accept the pending coin-funded move, if still affordable."""
        pending = self.pending
        if pending is None:
            return CommandResult(False, Refusal.NOTHING_PENDING, "Nothing to confirm")
        self.pending = None
        if not self.is_playing:
            return self._inactive()
        player = self.player
        if player.movement_queue:
            return CommandResult(False, Refusal.BUSY, "Already moving")
        if player.moves < pending.cost_moves or player.coins < pending.cost_coins:
            return CommandResult(False, Refusal.INSUFFICIENT_RESOURCES, "Funds changed")
        self._commit_player_path(pending.path, pending.cost_moves, pending.cost_coins)
        return CommandResult(True, message="Moving")

    def cancel_pending_action(self) -> CommandResult:
        if self.pending is None:
            return CommandResult(False, Refusal.NOTHING_PENDING, "Nothing to cancel")
        self.pending = None
        return CommandResult(True, message="Cancelled")

    def advance_movement_step(self) -> CommandResult:
        """Walk the player one entry along its queued path.

        A bot that moved onto the next step since planning aborts the
        whole path; nothing has been committed for that step yet.
        """
        if not self.is_playing:
            return self._inactive()
        player = self.player
        if not player.movement_queue:
            return CommandResult(False, Refusal.QUEUE_EMPTY, "No movement queued")

        head = player.movement_queue[0]
        if isinstance(head, GrowInPlace):
            player.movement_queue.pop(0)
            tile = self.grid.ensure_tile(*player.position)
            check = check_growth_condition(tile, player, self.config.cycle_capacity)
            if not check.allowed:
                return CommandResult(False, Refusal(check.reason.value), check.message)
            player.is_growing = True
            return CommandResult(True, message="Growing")

        if head.coords in {bot.position for bot in self.bots}:
            player.movement_queue.clear()
            self._notify("Path Blocked by opponent")
            return CommandResult(False, Refusal.PATH_BLOCKED, "Path Blocked by opponent")

        player.movement_queue.pop(0)
        self._relocate(player, head.coords)
        return CommandResult(True)

    def dismiss_notice(self) -> None:
        self.notice = None

    def final_score(self, display_name: str) -> tuple[str, int, int]:
        """What the leaderboard receives: (display name, coins earned, rank)."""
        return display_name, self.player.total_coins_earned, self.player.player_level

    def abandon(self) -> None:
        """End the session early. Only the status changes."""
        if self.is_playing:
            self.status = GameStatus.GAME_OVER
            self._log("Session abandoned.")

    # ------------------------------------------------------------------
    # Snapshot / restore
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Complete, JSON-safe state. Restoring it reproduces the engine exactly."""
        return {
            "tick": self.tick_count,
            "status": self.status.value,
            "win_condition": self.win_condition.to_dict(),
            "config": self.config.to_dict(),
            "grid": self.grid.to_dict(),
            "player": self.player.to_dict(),
            "bots": [bot.to_dict() for bot in self.bots],
            "messages": list(self.messages),
            "pending": self.pending.to_dict() if self.pending else None,
            "notice": self.notice.to_dict() if self.notice else None,
        }

    @classmethod
    def from_snapshot(cls, data: dict[str, Any], config: GameConfig | None = None) -> GameEngine:
        """Rebuild an engine from ``snapshot()`` output. An explicit ``config`` wins over the saved one."""
        if config is None and "config" in data:
            config = GameConfig.from_dict(data["config"])
        engine = cls(WinCondition.from_dict(data["win_condition"]), config)
        engine.tick_count = data["tick"]
        engine.status = GameStatus(data["status"])
        engine.grid = HexGrid.from_dict(data["grid"])
        engine.player = Agent.from_dict(data["player"])
        engine.bots = [Agent.from_dict(b) for b in data["bots"]]
        engine.messages = deque(data.get("messages", []), maxlen=engine.config.message_log_limit)
        pending = data.get("pending")
        engine.pending = PendingConfirmation.from_dict(pending) if pending else None
        notice = data.get("notice")
        engine.notice = Notice.from_dict(notice) if notice else None
        return engine
