"""Dice-driven resource economy."""

from __future__ import annotations

import math
import random
from dataclasses import dataclass

from dicekeep.domain import turns
from dicekeep.domain.models import PlayerEconomy, PlayerID, Room
from dicekeep.domain.rules_config import DEFAULT_RULES, EconomyRules, RulesConfig


@dataclass(slots=True)
class ResourceGains:
    """Resources earned by one roll, after the bonus multiplier."""

    wood: int
    stone: int
    bricks: int


@dataclass(slots=True)
class RollOutcome:
    """Result of a committed roll."""

    player_id: PlayerID
    die1: int
    die2: int
    bonus_multiplier: float
    gains: ResourceGains
    next_player_id: PlayerID | None


def draw_dice(rng: random.Random, rules: EconomyRules = DEFAULT_RULES.economy) -> tuple[int, int]:
    return rng.randint(1, rules.die_sides), rng.randint(1, rules.die_sides)


def apply_min_roll(die1: int, die2: int, min_roll: int) -> tuple[int, int]:
    """Raise each die to the player's floor when one is active."""

    if min_roll > 1:
        return max(die1, min_roll), max(die2, min_roll)
    return die1, die2


def bonus_multiplier(die1: int, die2: int, rules: EconomyRules = DEFAULT_RULES.economy) -> float:
    """Outcome bonus, checked in priority order: doubles, high sum, low sum."""

    total = die1 + die2
    if die1 == die2:
        return rules.double_sixes_bonus if die1 == rules.die_sides else rules.doubles_bonus
    if total >= rules.high_roll_threshold:
        return rules.high_roll_bonus
    if total <= rules.low_roll_threshold:
        return rules.low_roll_bonus
    return 1.0


def compute_gains(
    economy: PlayerEconomy,
    die1: int,
    die2: int,
    rules: EconomyRules = DEFAULT_RULES.economy,
) -> tuple[ResourceGains, float]:
    bonus = bonus_multiplier(die1, die2, rules)
    wood = die1 * rules.wood_per_pip * economy.wood_multiplier
    stone = die2 * rules.stone_per_pip * economy.stone_multiplier
    bricks = (die1 + die2) * rules.bricks_per_pip * economy.bricks_multiplier
    gains = ResourceGains(
        wood=math.floor(wood * bonus),
        stone=math.floor(stone * bonus),
        bricks=math.floor(bricks * bonus),
    )
    return gains, bonus


def commit_gains(
    economy: PlayerEconomy, gains: ResourceGains, rules: EconomyRules = DEFAULT_RULES.economy
) -> None:
    # Wood is uncapped; stone and bricks are clamped right after the gain.
    economy.wood += gains.wood
    economy.stone = min(economy.stone + gains.stone, rules.resource_cap)
    economy.bricks = min(economy.bricks + gains.bricks, rules.resource_cap)


def roll(
    room: Room,
    player_id: PlayerID,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    dice: tuple[int, int] | None = None,
) -> RollOutcome | None:
    """Roll for ``player_id`` and pass the turn on.

    Returns None, leaving the room untouched, when the player is unknown, the
    game is over, or it is somebody else's turn. ``dice`` replaces the random
    draw and exists for tests.
    """

    economy = room.state.players.get(player_id)
    if economy is None or room.state.is_over:
        return None
    if not turns.may_act(room, player_id):
        return None

    die1, die2 = dice if dice is not None else draw_dice(room.rng, rules.economy)
    die1, die2 = apply_min_roll(die1, die2, economy.min_roll)

    gains, bonus = compute_gains(economy, die1, die2, rules.economy)

    economy.die1 = die1
    economy.die2 = die2
    economy.is_rolling = False
    commit_gains(economy, gains, rules.economy)

    if economy.free_rolls > 0:
        economy.free_rolls -= 1

    next_player_id = turns.advance_turn(room, player_id)
    return RollOutcome(
        player_id=player_id,
        die1=die1,
        die2=die2,
        bonus_multiplier=bonus,
        gains=gains,
        next_player_id=next_player_id,
    )
