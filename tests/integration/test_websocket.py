"""End-to-end tests for the room WebSocket."""

import pytest
from fastapi.testclient import TestClient

from dicekeep.api.app import create_app
from dicekeep.api.runtime import ApiState
from dicekeep.config import Settings


@pytest.fixture
def client():
    """Test client with a running lifespan and fast battles."""

    def factory() -> ApiState:
        return ApiState(settings=Settings(attack_resolution_delay_seconds=0, dice_seed=7))

    with TestClient(create_app(state_factory=factory)) as test_client:
        yield test_client


def _join(ws, player_id, name):
    ws.send_json({"event": "join", "data": {"player_id": player_id, "player_name": name}})
    room = ws.receive_json()
    buildings = ws.receive_json()
    assert room["event"] == "room-updated"
    assert buildings["event"] == "map-updated"
    return room["data"]


def test_join_and_roll(client):
    with client.websocket_connect("/ws/game01") as alice:
        data = _join(alice, "alice", "Alice")
        assert [p["name"] for p in data["players"]] == ["Alice"]
        assert data["game_state"]["active_player_id"] == "alice"

        alice.send_json({"event": "roll", "data": {"player_id": "alice"}})
        rolled = alice.receive_json()

    assert rolled["event"] == "dice-rolled"
    economy = rolled["data"]["game_state"]["players"]["alice"]
    assert 1 <= economy["die1"] <= 6
    assert economy["wood"] > 1000
    assert economy["stone"] == 100


def test_broadcast_reaches_both_players(client):
    with client.websocket_connect("/ws/game02") as alice:
        _join(alice, "alice", "Alice")
        with client.websocket_connect("/ws/game02") as bob:
            data = _join(bob, "bob", "Bob")
            assert [p["color"]["name"] for p in data["players"]] == ["Blue", "Red"]
            # Alice sees Bob arrive.
            assert alice.receive_json()["event"] == "room-updated"
            assert alice.receive_json()["event"] == "map-updated"

            alice.send_json(
                {
                    "event": "purchase",
                    "data": {"player_id": "alice", "building_type": "castle", "x": 2, "y": 3},
                }
            )
            purchased = bob.receive_json()
            assert purchased["event"] == "building-purchased"
            assert purchased["data"]["points"] == 30
            assert bob.receive_json()["data"]["buildings"][0]["x"] == 2


def test_errors_only_reach_the_requester(client):
    with client.websocket_connect("/ws/game03") as alice:
        _join(alice, "alice", "Alice")
        alice.send_json({"event": "garbage"})
        alice.send_text("not json")
        alice.send_json(
            {
                "event": "purchase",
                "data": {"player_id": "alice", "building_type": "road", "x": 1, "y": 1},
            }
        )
        error = alice.receive_json()

    assert error == {
        "event": "building-error",
        "data": {"message": "You need to build a castle first before building roads!"},
    }


def test_binary_frame_keeps_connection_open(client):
    with client.websocket_connect("/ws/game06") as alice:
        _join(alice, "alice", "Alice")
        alice.send_bytes(b"\x00\x01")
        alice.send_json({"event": "roll", "data": {"player_id": "alice"}})
        rolled = alice.receive_json()

    assert rolled["event"] == "dice-rolled"


def test_oversized_number_keeps_connection_open(client):
    with client.websocket_connect("/ws/game07") as alice:
        _join(alice, "alice", "Alice")
        huge = "9" * 5000
        alice.send_text(
            '{"event": "purchase", "data": {"player_id": "alice", '
            f'"building_type": "castle", "x": {huge}, "y": 0}}}}'
        )
        alice.send_json({"event": "roll", "data": {"player_id": "alice"}})
        rolled = alice.receive_json()

    assert rolled["event"] == "dice-rolled"
    assert rolled["data"]["game_state"]["map_buildings"] == []


def test_battle_round_trip(client):
    with client.websocket_connect("/ws/game04") as alice:
        _join(alice, "alice", "Alice")
        with client.websocket_connect("/ws/game04") as bob:
            _join(bob, "bob", "Bob")
            alice.receive_json()
            alice.receive_json()

            alice.send_json(
                {
                    "event": "purchase",
                    "data": {"player_id": "alice", "building_type": "castle", "x": 4, "y": 4},
                }
            )
            alice.receive_json()
            alice.receive_json()
            alice.send_json({"event": "roll", "data": {"player_id": "alice"}})
            alice.receive_json()

            bob.send_json(
                {
                    "event": "purchase",
                    "data": {"player_id": "bob", "building_type": "castle", "x": 4, "y": 5},
                }
            )
            bob_castle = None
            while bob_castle is None:
                frame = alice.receive_json()
                if frame["event"] == "building-purchased":
                    bob_castle = frame["data"]["building_id"]
            alice.receive_json()  # map-updated
            bob.send_json({"event": "roll", "data": {"player_id": "bob"}})
            assert alice.receive_json()["event"] == "dice-rolled"

            alice.send_json(
                {
                    "event": "attack",
                    "data": {
                        "attacker_id": "alice",
                        "defender_id": "bob",
                        "building_id": bob_castle,
                        "x": 4,
                        "y": 5,
                    },
                }
            )
            started = alice.receive_json()
            assert started["event"] == "battle-started"
            assert started["data"]["building_id"] == bob_castle

            events = []
            while not events or events[-1] != "room-updated":
                events.append(alice.receive_json()["event"])

    assert "attack-result" in events


def test_health_counts_rooms(client):
    with client.websocket_connect("/ws/game05") as alice:
        _join(alice, "alice", "Alice")
        response = client.get("/health")

    assert response.json()["rooms"] == 1
