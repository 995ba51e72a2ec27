"""Round-robin turn order."""

from __future__ import annotations

from dicekeep.domain.models import PlayerID, Room


def may_act(room: Room, player_id: PlayerID) -> bool:
    """Return True when ``player_id`` may roll or purchase right now.

    Before anyone holds the turn every player may act; once an active player
    is set, only they may.
    """

    active = room.state.active_player_id
    return active is None or active == player_id


def claim_first_turn(room: Room, player_id: PlayerID) -> None:
    """Give the turn to ``player_id`` if nobody holds it yet."""

    if room.state.active_player_id is None:
        room.state.active_player_id = player_id


def advance_turn(room: Room, player_id: PlayerID) -> PlayerID | None:
    """Pass the turn to the seat after ``player_id`` in join order.

    The roster order is fixed at join time, so the rotation is a cyclic
    permutation of join order. A player missing from the roster hands the turn
    to seat zero. A finished room never advances.
    """

    if room.state.is_over or not room.players:
        return room.state.active_player_id

    current = room.player_index(player_id)
    next_index = (current + 1) % len(room.players) if current >= 0 else 0
    room.state.active_player_id = room.players[next_index].id
    return room.state.active_player_id
