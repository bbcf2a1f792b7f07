"""
Utility-based opponent AI.

Every decision point runs three stages:

  1. Role: classify the bot from its current state alone
     (SURVIVAL > EXPAND > EVOLUTION > DEVELOPMENT > COMPETITION).
  2. Score: rate every known tile in the role's search radius with

        U = strategy * w_s + income * w_i - distance * w_d
            - risk * w_r - soft_cap + aggression * w_a

  3. Validate: walk the ranking top-down against the real pathfinder and
     the real budget. The first affordable path wins; a score never
     commits the bot to a plan it cannot execute.

Growing the occupied tile competes with relocation as one more option
and wins unless a candidate scores strictly higher.

The model only reads: it receives a tile snapshot, a copy of the bot
and the obstacle coordinates, and returns queue steps for the scheduler
to commit.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Mapping

import numpy as np

from hexclaim.core.agent import Agent, GrowInPlace, MoveStep, QueueStep
from hexclaim.core.config import GameConfig
from hexclaim.core.growth import can_break_record, check_growth_condition
from hexclaim.core.hex_grid import Coord, HexTile, hex_distance
from hexclaim.core.pathfinding import find_path, path_cost, step_cost

logger = logging.getLogger(__name__)


class BotRole(str, Enum):
    """Operational phase of a bot, re-derived at every decision."""
    SURVIVAL = "SURVIVAL"          # Nearly broke: any cheap, affordable land nearby
    EXPAND = "EXPAND"              # Cycle queue not full: harvest virgin land
    EVOLUTION = "EVOLUTION"        # Low rank: hunt tiles at exactly our rank
    DEVELOPMENT = "DEVELOPMENT"    # Rich: build the tallest tile under the soft cap
    COMPETITION = "COMPETITION"    # Fallback: contest virgin land near the opponent


class BotAction(str, Enum):
    MOVE = "move"
    GROW = "grow"
    IDLE = "idle"


@dataclass
class ScoredCandidate:
    coord: Coord
    score: float
    max_level: int
    distance: int


@dataclass
class DecisionResult:
    """A bot's plan for the next few ticks, with the numbers behind it."""
    role: BotRole
    action: BotAction
    steps: list[QueueStep] = field(default_factory=list)
    target: Coord | None = None
    score: float | None = None
    path_cost: int = 0
    candidates_scored: int = 0
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "role": self.role.value,
            "action": self.action.value,
            "steps": [s.to_dict() for s in self.steps],
            "target": list(self.target) if self.target else None,
            "score": self.score,
            "path_cost": self.path_cost,
            "candidates_scored": self.candidates_scored,
            "reason": self.reason,
        }


# ---------------------------------------------------------------------------
# Role classification
# ---------------------------------------------------------------------------

def determine_role(agent: Agent, config: GameConfig) -> BotRole:
    """Classify a bot by priority; no state beyond the agent itself."""
    total = agent.spendable_resources(config.exchange_rate)

    if total < config.ai_threshold("survival_resources"):
        return BotRole.SURVIVAL
    if not agent.cycle_full(config.cycle_capacity):
        return BotRole.EXPAND
    if agent.player_level < config.ai_threshold("evolution_rank_ceiling"):
        return BotRole.EVOLUTION
    if total >= config.ai_threshold("development_resources"):
        return BotRole.DEVELOPMENT
    return BotRole.COMPETITION


def role_ceiling(role: BotRole, agent: Agent, config: GameConfig) -> int:
    """Highest tile level a role wants to target before the soft-cap penalty."""
    if role is BotRole.EVOLUTION:
        return agent.player_level
    if role is BotRole.DEVELOPMENT:
        return int(config.ai_threshold("development_soft_cap"))
    return 1


# ---------------------------------------------------------------------------
# Utility terms
# ---------------------------------------------------------------------------

def strategic_value(
    tile: HexTile, agent: Agent, role: BotRole, config: GameConfig,
) -> float:
    """Role-specific worth of owning ``tile``, before the strategy weight."""
    level = tile.max_level

    if role is BotRole.SURVIVAL:
        if level == 0:
            return 150.0
        if level == 1:
            return 100.0
        return -100.0 * level

    if role is BotRole.EXPAND:
        # Only a virgin capture fills a queue slot.
        if level == 0:
            return 200.0
        if level == 1:
            return 50.0
        return -1000.0

    if role is BotRole.EVOLUTION:
        if level == agent.player_level:
            return 1000.0  # growing past it raises our rank
        if level == agent.player_level - 1 and level > 0:
            return 300.0
        return -50.0

    if role is BotRole.DEVELOPMENT:
        value = 10.0 * level ** 2
        if level == agent.player_level:
            value += 1000.0
        return value

    # COMPETITION
    if level != 0:
        return -50.0
    value = 100.0
    if agent.memory and agent.memory.last_opponent_pos:
        value -= 10.0 * hex_distance(tile.coords, agent.memory.last_opponent_pos)
    return value


def income_potential(tile: HexTile, agent: Agent, config: GameConfig) -> float:
    """Monotonic in the tile's next record level, plus a bonus if it is open to us."""
    next_level = tile.max_level + 1
    value = float(next_level ** 2)
    if can_break_record(tile, agent, config.cycle_capacity).allowed:
        value += 15.0
    return value


def score_tile(
    tile: HexTile,
    agent: Agent,
    role: BotRole,
    dist: int,
    total_resources: int,
    config: GameConfig,
) -> float:
    """Utility of relocating to ``tile`` at heuristic distance ``dist``."""
    w_income = config.ai_weight("income")
    w_distance = config.ai_weight("distance")
    w_risk = config.ai_weight("risk")
    w_strategy = config.ai_weight("strategy")

    score = strategic_value(tile, agent, role, config) * w_strategy
    score += income_potential(tile, agent, config) * w_income

    distance_penalty = dist * 10.0 * w_distance
    if role is BotRole.EXPAND:
        distance_penalty *= config.ai_threshold("expand_distance_multiplier")
    score -= distance_penalty

    if role is BotRole.EXPAND and tile.id in agent.recent_upgrades:
        score -= 500.0 * w_risk

    # Entry cost plus the cheapest conceivable approach.
    estimated_cost = step_cost(tile) + max(dist - 1, 0)
    if estimated_cost >= total_resources:
        score -= 10000.0 * w_risk
    elif estimated_cost > total_resources * 0.7:
        score -= 50.0 * w_risk

    ceiling = role_ceiling(role, agent, config)
    if tile.max_level > ceiling:
        score -= (tile.max_level - ceiling) * config.ai_threshold("soft_cap_penalty")

    memory = agent.memory
    if (
        memory is not None
        and memory.last_opponent_pos is not None
        and total_resources > config.ai_threshold("aggression_resources")
    ):
        dist_to_opponent = hex_distance(tile.coords, memory.last_opponent_pos)
        aggression = config.ai_weight("aggression") * (0.5 + memory.aggression_factor)
        score += (20 - dist_to_opponent) * aggression

    return score


# ---------------------------------------------------------------------------
# Decision model
# ---------------------------------------------------------------------------

class BotDecisionModel:
    """
    Chooses the next action for one bot.

    Stateless between calls; every input is passed to :meth:`decide`.
    """

    def __init__(self, config: GameConfig):
        self.config = config

    def decide(
        self,
        agent: Agent,
        tiles: Mapping[Coord, HexTile],
        obstacles: Iterable[Coord] = (),
    ) -> DecisionResult:
        """Plan a relocation, an in-place growth, or nothing.

        Args:
            agent: A copy of the deciding bot.
            tiles: Read-only tile snapshot.
            obstacles: Coordinates held by other agents.

        Returns:
            DecisionResult whose ``steps`` the scheduler may enqueue as-is.
        """
        config = self.config
        blocked = frozenset(obstacles)
        total = agent.spendable_resources(config.exchange_rate)
        role = determine_role(agent, config)
        here = tiles.get(agent.position)

        # Cannot pay for a single step: grow if the rules allow anything at all.
        if total < 1:
            if here is not None and check_growth_condition(here, agent, config.cycle_capacity).allowed:
                return DecisionResult(
                    role=role, action=BotAction.GROW, steps=[GrowInPlace()],
                    target=agent.position, reason="exhausted",
                )
            return DecisionResult(role=role, action=BotAction.IDLE, reason="exhausted")

        in_place = self._in_place_score(agent, here, role)
        candidates = self._score_candidates(agent, tiles, blocked, role, total)
        result = self._select(agent, tiles, blocked, role, total, candidates, in_place)

        if result is None and in_place is not None:
            result = DecisionResult(
                role=role, action=BotAction.GROW, steps=[GrowInPlace()],
                target=agent.position, score=in_place, reason="grow in place",
            )
        if result is None:
            result = DecisionResult(role=role, action=BotAction.IDLE, reason="no affordable target")

        result.candidates_scored = len(candidates)
        logger.debug("Bot %s decided %s", agent.id, result.to_dict())
        return result

    # ---- In-place growth ----

    def _in_place_score(
        self, agent: Agent, here: HexTile | None, role: BotRole,
    ) -> float | None:
        """Utility of growing the occupied tile, or None if it does not fit the role."""
        if here is None:
            return None
        config = self.config
        if not check_growth_condition(here, agent, config.cycle_capacity).allowed:
            return None

        if role is BotRole.SURVIVAL:
            eligible = True
        elif role is BotRole.EVOLUTION:
            eligible = here.max_level == agent.player_level and here.max_level > 0
        elif role is BotRole.DEVELOPMENT:
            eligible = here.max_level >= 2
        else:
            eligible = here.max_level == 0
        if not eligible:
            return None

        score = strategic_value(here, agent, role, config) * config.ai_weight("strategy")
        score += income_potential(here, agent, config) * config.ai_weight("income")
        return score + config.ai_threshold("in_place_bonus")

    # ---- Candidate scan ----

    def _score_candidates(
        self,
        agent: Agent,
        tiles: Mapping[Coord, HexTile],
        blocked: frozenset[Coord],
        role: BotRole,
        total: int,
    ) -> list[ScoredCandidate]:
        config = self.config
        if role is BotRole.SURVIVAL:
            radius = int(config.ai_threshold("survival_search_radius"))
        else:
            radius = int(config.ai_threshold("search_radius"))

        candidates: list[ScoredCandidate] = []
        for coord, tile in tiles.items():
            if coord == agent.position or coord in blocked:
                continue
            if tile.max_level > agent.player_level:
                continue  # rank lock
            dist = hex_distance(agent.position, coord)
            if dist > radius:
                continue
            candidates.append(ScoredCandidate(
                coord=coord,
                score=score_tile(tile, agent, role, dist, total, config),
                max_level=tile.max_level,
                distance=dist,
            ))
        return candidates

    # ---- Validation ----

    def _select(
        self,
        agent: Agent,
        tiles: Mapping[Coord, HexTile],
        blocked: frozenset[Coord],
        role: BotRole,
        total: int,
        candidates: list[ScoredCandidate],
        in_place: float | None,
    ) -> DecisionResult | None:
        """First top-K candidate with a real, affordable path."""
        if not candidates:
            return None
        config = self.config
        survival = role is BotRole.SURVIVAL
        top_k = int(config.ai_threshold("survival_top_k" if survival else "top_k"))
        margin = 0 if survival else int(config.ai_threshold("safety_margin"))
        hopeless = config.ai_threshold("hopeless_score")

        scores = np.array([c.score for c in candidates], dtype=float)
        order = np.argsort(-scores, kind="stable")

        for idx in order[:top_k]:
            candidate = candidates[int(idx)]
            if candidate.score < hopeless:
                break
            if in_place is not None and candidate.score <= in_place:
                break

            path = find_path(
                agent.position, candidate.coord, tiles, agent.player_level,
                blocked, config.pathfinder_max_iterations,
            )
            if not path:
                continue
            cost = path_cost(path, tiles)
            if cost + margin <= total:
                return DecisionResult(
                    role=role,
                    action=BotAction.MOVE,
                    steps=[MoveStep(q, r) for q, r in path],
                    target=candidate.coord,
                    score=candidate.score,
                    path_cost=cost,
                    reason="relocate",
                )
        return None
