"""Dataclasses describing every Dicekeep game entity.

Everything lives in process memory. A :class:`Room` owns its roster and its
:class:`GameState`; the rule modules mutate these records in place and never
reach outside the room they were handed.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import NewType

from .enums import AttackPhase, BuildingType

# --- Strongly typed identifiers -------------------------------------------------

RoomCode = NewType("RoomCode", str)
PlayerID = NewType("PlayerID", str)
BuildingID = NewType("BuildingID", str)
ConnectionID = NewType("ConnectionID", str)


def normalize_room_code(raw: str) -> RoomCode:
    """Room codes are case-insensitive; the canonical form is upper-case."""

    return RoomCode(raw.strip().upper())


# --- Core dataclasses -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PlayerColor:
    """Display colors assigned to a seat."""

    primary: str
    secondary: str
    name: str


PLAYER_COLORS: tuple[PlayerColor, ...] = (
    PlayerColor(primary="#4A90E2", secondary="#2E5C8A", name="Blue"),
    PlayerColor(primary="#E24A4A", secondary="#8A2E2E", name="Red"),
    PlayerColor(primary="#4AE24A", secondary="#2E8A2E", name="Green"),
    PlayerColor(primary="#E2E24A", secondary="#8A8A2E", name="Yellow"),
)


@dataclass(slots=True)
class Player:
    """Seat in a room's roster."""

    id: PlayerID
    name: str
    connection_id: ConnectionID | None
    color: PlayerColor


@dataclass(slots=True)
class PlayerEconomy:
    """Per-player resources, dice and score."""

    die1: int = 1
    die2: int = 1
    is_rolling: bool = False
    wood: int = 0
    stone: int = 0
    bricks: int = 0
    wood_multiplier: float = 1
    stone_multiplier: float = 1
    bricks_multiplier: float = 1
    free_rolls: int = 0
    min_roll: int = 1
    points: int = 0
    has_attacked: bool = False


@dataclass(slots=True)
class Building:
    """Structure placed on a map tile."""

    id: BuildingID
    owner_id: PlayerID
    type: BuildingType
    x: int
    y: int
    icon: str = ""
    name: str = ""


@dataclass(slots=True)
class GameState:
    """Shared mutable state of a single room."""

    players: dict[PlayerID, PlayerEconomy] = field(default_factory=dict)
    active_player_id: PlayerID | None = None
    winner: PlayerID | None = None
    buildings: list[Building] = field(default_factory=list)

    @property
    def is_over(self) -> bool:
        return self.winner is not None

    def building_at(self, x: int, y: int) -> Building | None:
        for building in self.buildings:
            if building.x == x and building.y == y:
                return building
        return None

    def find_building(self, building_id: BuildingID) -> Building | None:
        for building in self.buildings:
            if building.id == building_id:
                return building
        return None

    def buildings_of(
        self, owner_id: PlayerID, building_type: BuildingType | None = None
    ) -> list[Building]:
        return [
            building
            for building in self.buildings
            if building.owner_id == owner_id
            and (building_type is None or building.type == building_type)
        ]


@dataclass(slots=True)
class PendingAttack:
    """An announced attack waiting for its resolve step."""

    room_code: RoomCode
    attacker_id: PlayerID
    defender_id: PlayerID
    building_id: BuildingID
    x: int
    y: int
    phase: AttackPhase = AttackPhase.ANNOUNCED


@dataclass(slots=True)
class Room:
    """Isolated game session."""

    code: RoomCode
    players: list[Player] = field(default_factory=list)
    state: GameState = field(default_factory=GameState)
    rng: random.Random = field(default_factory=random.Random)
    last_activity: float = 0.0

    def find_player(self, player_id: PlayerID) -> Player | None:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def player_index(self, player_id: PlayerID) -> int:
        for index, player in enumerate(self.players):
            if player.id == player_id:
                return index
        return -1
