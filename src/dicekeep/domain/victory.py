"""Win condition."""

from __future__ import annotations

from dicekeep.domain.models import PlayerID, Room
from dicekeep.domain.rules_config import DEFAULT_RULES, RulesConfig


def check_winner(
    room: Room, player_id: PlayerID, *, rules: RulesConfig = DEFAULT_RULES
) -> PlayerID | None:
    """Record ``player_id`` as winner once they reach the point threshold.

    Returns the id only when this call decided the game. The first winner is
    final: later calls never overwrite or clear it.
    """

    if room.state.is_over:
        return None
    economy = room.state.players.get(player_id)
    if economy is None or economy.points < rules.win_points:
        return None
    room.state.winner = player_id
    return player_id


def winner_name(room: Room, player_id: PlayerID) -> str:
    player = room.find_player(player_id)
    return player.name if player is not None else "Unknown"
