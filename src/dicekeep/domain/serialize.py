"""JSON-friendly views of domain objects for outbound messages."""

from __future__ import annotations

from dataclasses import asdict

from dicekeep.domain.combat import AttackResult
from dicekeep.domain.models import Building, GameState, PendingAttack, Player, PlayerEconomy, Room


def player_dict(player: Player) -> dict[str, object]:
    return {
        "id": player.id,
        "name": player.name,
        "color": asdict(player.color),
    }


def economy_dict(economy: PlayerEconomy) -> dict[str, object]:
    return asdict(economy)


def building_dict(building: Building) -> dict[str, object]:
    return {
        "id": building.id,
        "player_id": building.owner_id,
        "building_type": str(building.type),
        "x": building.x,
        "y": building.y,
        "icon": building.icon,
        "name": building.name,
    }


def buildings_list(state: GameState) -> list[dict[str, object]]:
    return [building_dict(building) for building in state.buildings]


def game_state_dict(state: GameState) -> dict[str, object]:
    return {
        "players": {
            player_id: economy_dict(economy) for player_id, economy in state.players.items()
        },
        "active_player_id": state.active_player_id,
        "winner": state.winner,
        "map_buildings": buildings_list(state),
    }


def room_dict(room: Room) -> dict[str, object]:
    return {
        "room_code": room.code,
        "players": [player_dict(player) for player in room.players],
        "game_state": game_state_dict(room.state),
    }


def battle_started_dict(attack: PendingAttack) -> dict[str, object]:
    return {
        "attacker_id": attack.attacker_id,
        "defender_id": attack.defender_id,
        "building_id": attack.building_id,
        "x": attack.x,
        "y": attack.y,
    }


def attack_result_dict(result: AttackResult) -> dict[str, object]:
    payload = asdict(result)
    payload.pop("game_winner")
    return payload
