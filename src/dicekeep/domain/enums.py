"""Enumerations used across the game domain."""

from __future__ import annotations

from enum import StrEnum


class BuildingType(StrEnum):
    """Buildings that can be placed on the map."""

    CASTLE = "castle"
    ROAD = "road"


class AttackPhase(StrEnum):
    """Lifecycle of a single attack."""

    IDLE = "idle"
    ANNOUNCED = "announced"
    RESOLVED = "resolved"


class Action(StrEnum):
    """Inbound actions a client can submit to a room."""

    JOIN = "join"
    ROLL = "roll"
    PURCHASE = "purchase"
    ATTACK = "attack"
    SET_ROLLING = "set-rolling"
    LEAVE = "leave"


class OutboundEvent(StrEnum):
    """Messages the server sends to room members."""

    ROOM_UPDATED = "room-updated"
    MAP_UPDATED = "map-updated"
    DICE_ROLLED = "dice-rolled"
    BUILDING_PURCHASED = "building-purchased"
    BUILDING_ERROR = "building-error"
    ATTACK_ERROR = "attack-error"
    BATTLE_STARTED = "battle-started"
    ATTACK_RESULT = "attack-result"
    PLAYER_WON = "player-won"
    ROLLING_UPDATED = "rolling-updated"
