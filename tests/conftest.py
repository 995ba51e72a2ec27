"""Pytest configuration shared by the Dicekeep test suite.

Adds the ``src/`` directory to ``sys.path`` so tests can import the
``dicekeep`` package without requiring an editable install in CI, and
provides small builders for rooms with seated players.
"""

import sys
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from dicekeep.domain import lobby  # noqa: E402
from dicekeep.domain.enums import BuildingType  # noqa: E402
from dicekeep.domain.models import (  # noqa: E402
    Building,
    BuildingID,
    ConnectionID,
    PlayerID,
    Room,
    RoomCode,
)


def _seat(room: Room, *player_ids: str) -> None:
    for player_id in player_ids:
        lobby.join_room(
            room, PlayerID(player_id), player_id.title(), ConnectionID(f"c-{player_id}")
        )


def _place(room: Room, owner: str, building_type: BuildingType, x: int, y: int) -> Building:
    building = Building(
        id=BuildingID(f"{owner}-{building_type}-{x}-{y}"),
        owner_id=PlayerID(owner),
        type=building_type,
        x=x,
        y=y,
    )
    room.state.buildings.append(building)
    return building


@pytest.fixture
def seat():
    """Join each id to the room in order."""

    return _seat


@pytest.fixture
def place():
    """Drop a building straight onto the ledger, bypassing the rules."""

    return _place


@pytest.fixture
def room() -> Room:
    return Room(code=RoomCode("TEST01"))


@pytest.fixture
def duel(room: Room) -> Room:
    """A room with alice (active) and bob seated."""

    _seat(room, "alice", "bob")
    return room
