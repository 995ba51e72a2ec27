"""Room membership: joining, rejoining and the shared rolling flag."""

from __future__ import annotations

from dicekeep.domain import turns
from dicekeep.domain.models import (
    PLAYER_COLORS,
    ConnectionID,
    Player,
    PlayerEconomy,
    PlayerID,
    Room,
)
from dicekeep.domain.rules_config import DEFAULT_RULES, RulesConfig


def default_player_name(player_id: PlayerID) -> str:
    return f"Player {player_id[:6]}"


def join_room(
    room: Room,
    player_id: PlayerID,
    name: str | None,
    connection_id: ConnectionID | None,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> Player:
    """Seat a player in the room, or refresh their seat on reconnect.

    A returning id keeps its roster slot and color; only the display name and
    connection handle are replaced. The economy record is created once and is
    never reset, so a reconnecting player finds their resources and points as
    they left them.
    """

    index = room.player_index(player_id)
    if index >= 0:
        color = room.players[index].color
    else:
        color = PLAYER_COLORS[len(room.players) % len(PLAYER_COLORS)]

    player = Player(
        id=player_id,
        name=name or default_player_name(player_id),
        connection_id=connection_id,
        color=color,
    )
    if index >= 0:
        room.players[index] = player
    else:
        room.players.append(player)

    if player_id not in room.state.players:
        room.state.players[player_id] = PlayerEconomy(
            wood=rules.economy.starting_wood,
            stone=rules.economy.starting_stone,
            bricks=rules.economy.starting_bricks,
        )

    turns.claim_first_turn(room, player_id)
    return player


def set_rolling(room: Room, player_id: PlayerID, is_rolling: bool) -> PlayerEconomy | None:
    """Mirror a client's dice animation flag into shared state."""

    economy = room.state.players.get(player_id)
    if economy is None:
        return None
    economy.is_rolling = bool(is_rolling)
    return economy
