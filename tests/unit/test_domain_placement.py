"""Unit tests for building placement rules."""

from __future__ import annotations

from collections import deque

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from dicekeep.domain import lobby, placement
from dicekeep.domain.enums import BuildingType
from dicekeep.domain.errors import PlacementError
from dicekeep.domain.models import PlayerID, Room, RoomCode
from dicekeep.utils.grid import GridCoord

ALICE = PlayerID("alice")
BOB = PlayerID("bob")


def _buy(room, player=ALICE, kind="castle", x=0, y=0, **kwargs):
    return placement.purchase(room, player, kind, x, y, **kwargs)


class TestCommonPreconditions:
    def test_first_castle_anywhere(self, duel):
        result = _buy(duel, x=5, y=5)

        assert result is not None
        assert result.points == 30
        assert result.winner is None
        alice = duel.state.players[ALICE]
        assert (alice.wood, alice.stone, alice.bricks) == (800, 850, 900)
        assert alice.points == 30
        assert duel.state.building_at(5, 5).owner_id == ALICE
        assert duel.state.buildings[0].icon == "🏰"

    def test_purchase_does_not_pass_the_turn(self, duel):
        _buy(duel, x=5, y=5)
        assert duel.state.active_player_id == ALICE

    def test_occupied_tile_is_silent(self, duel, place):
        place(duel, "bob", BuildingType.CASTLE, 5, 5)
        assert _buy(duel, x=5, y=5) is None
        assert len(duel.state.buildings) == 1
        assert duel.state.players[ALICE].wood == 1000

    @pytest.mark.parametrize(
        ("x", "y"),
        [(10, 0), (0, 10), (-1, 3), (3, -1), (None, 3), (3, None), (True, 1), (1.5, 2), ("1", 2)],
    )
    def test_bad_coordinates_are_silent(self, duel, x, y):
        assert _buy(duel, x=x, y=y) is None
        assert duel.state.buildings == []

    def test_unknown_building_type_is_silent(self, duel):
        assert _buy(duel, kind="tower", x=1, y=1) is None
        assert duel.state.buildings == []

    def test_cannot_afford_is_silent(self, duel):
        alice = duel.state.players[ALICE]
        alice.stone = 100  # a castle needs 150
        assert _buy(duel, x=1, y=1) is None
        assert alice.wood == 1000
        assert alice.points == 0

    def test_out_of_turn_is_silent(self, duel):
        assert _buy(duel, player=BOB, x=1, y=1) is None

    def test_unknown_player_is_silent(self, duel):
        duel.state.active_player_id = None
        assert _buy(duel, player=PlayerID("ghost"), x=1, y=1) is None

    def test_game_over_is_silent(self, duel):
        duel.state.winner = BOB
        assert _buy(duel, x=1, y=1) is None
        assert duel.state.buildings == []

    def test_exact_cost_empties_resources(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 0, 0)
        alice = duel.state.players[ALICE]
        alice.wood, alice.stone, alice.bricks = 50, 30, 20

        result = _buy(duel, kind="road", x=1, y=0)

        assert result is not None
        assert (alice.wood, alice.stone, alice.bricks) == (0, 0, 0)
        assert alice.points == 0


class TestRoads:
    def test_road_needs_a_castle(self, duel):
        with pytest.raises(PlacementError, match="build a castle first"):
            _buy(duel, kind="road", x=1, y=1)
        assert duel.state.buildings == []

    def test_road_next_to_castle(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 4, 4)
        assert _buy(duel, kind="road", x=4, y=5) is not None

    def test_road_chain_extends_from_road(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 4, 4)
        _buy(duel, kind="road", x=5, y=4)
        assert _buy(duel, kind="road", x=6, y=4) is not None

    def test_diagonal_road_is_rejected(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 4, 4)
        with pytest.raises(PlacementError, match="adjacent to a castle or another road"):
            _buy(duel, kind="road", x=5, y=5)

    def test_road_next_to_rival_network_is_rejected(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 0, 0)
        place(duel, "bob", BuildingType.CASTLE, 6, 6)
        with pytest.raises(PlacementError):
            _buy(duel, kind="road", x=6, y=7)


class TestCastles:
    @pytest.mark.parametrize("flag", [True, False])
    def test_castle_touching_own_castle_always_rejected(self, duel, place, flag):
        place(duel, "alice", BuildingType.CASTLE, 4, 4)
        place(duel, "alice", BuildingType.ROAD, 5, 5)
        with pytest.raises(PlacementError, match="cannot be directly adjacent"):
            _buy(duel, x=4, y=5, check_road_connection=flag)
        assert len(duel.state.buildings) == 2

    def test_castle_may_touch_rival_castle(self, duel, place):
        place(duel, "bob", BuildingType.CASTLE, 4, 4)
        assert _buy(duel, x=4, y=5) is not None

    def test_second_castle_needs_road_when_flagged(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 0, 0)
        with pytest.raises(PlacementError, match="must be adjacent to a road"):
            _buy(duel, x=7, y=7, check_road_connection=True)

    def test_second_castle_without_flag_skips_road_rule(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 0, 0)
        assert _buy(duel, x=7, y=7, check_road_connection=False) is not None

    def test_second_castle_next_to_road(self, duel, place):
        place(duel, "alice", BuildingType.CASTLE, 0, 0)
        place(duel, "alice", BuildingType.ROAD, 1, 0)
        place(duel, "alice", BuildingType.ROAD, 2, 0)
        assert _buy(duel, x=3, y=0, check_road_connection=True) is not None

    def test_first_castle_ignores_flag(self, duel):
        assert _buy(duel, x=7, y=7, check_road_connection=True) is not None


class TestVictoryOnPurchase:
    def test_reaching_threshold_wins(self, duel):
        duel.state.players[ALICE].points = 170
        result = _buy(duel, x=2, y=2)
        assert result.winner == ALICE
        assert duel.state.winner == ALICE

    def test_below_threshold_keeps_playing(self, duel):
        duel.state.players[ALICE].points = 140
        result = _buy(duel, x=2, y=2)
        assert result.winner is None
        assert duel.state.players[ALICE].points == 170
        assert duel.state.winner is None

    def test_winning_freezes_further_purchases(self, duel):
        duel.state.players[ALICE].points = 199
        _buy(duel, x=2, y=2)
        assert _buy(duel, x=8, y=8) is None
        assert len(duel.state.buildings) == 1


def test_touches_counts_edges_not_corners(duel, place):
    edge = place(duel, "alice", BuildingType.ROAD, 4, 3)
    corner = place(duel, "alice", BuildingType.ROAD, 5, 5)
    far = place(duel, "alice", BuildingType.ROAD, 4, 6)
    target = GridCoord(4, 4)

    assert placement.touches(target, [edge])
    assert not placement.touches(target, [corner, far])
    assert not placement.touches(GridCoord(0, 0), [])


def test_building_ids_stay_unique_within_a_millisecond(duel, place):
    place(duel, "alice", BuildingType.CASTLE, 0, 0)
    first = _buy(duel, kind="road", x=1, y=0, now_ms=1234)
    second = _buy(duel, kind="road", x=2, y=0, now_ms=1234)
    assert first.building.id == "alice-1234"
    assert second.building.id == "alice-1234-1"


def _connected_to_castle(room: Room, owner: PlayerID) -> bool:
    own = {(b.x, b.y): b for b in room.state.buildings_of(owner)}
    castles = [pos for pos, b in own.items() if b.type == BuildingType.CASTLE]
    seen = set(castles)
    queue = deque(castles)
    while queue:
        x, y = queue.popleft()
        for nxt in ((x + 1, y), (x - 1, y), (x, y + 1), (x, y - 1)):
            if nxt in own and nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return all(pos in seen for pos, b in own.items() if b.type == BuildingType.ROAD)


purchases = st.lists(
    st.tuples(
        st.sampled_from(["castle", "road"]),
        st.integers(0, 9),
        st.integers(0, 9),
        st.booleans(),
    ),
    max_size=40,
)


@settings(max_examples=60)
@given(moves=purchases)
def test_ledger_invariants_hold_for_any_purchase_sequence(moves):
    room = Room(code=RoomCode("PROP02"))
    lobby.join_room(room, ALICE, "Alice", None)
    alice = room.state.players[ALICE]

    for kind, x, y, flag in moves:
        alice.wood = alice.stone = alice.bricks = 10_000
        try:
            placement.purchase(room, ALICE, kind, x, y, check_road_connection=flag)
        except PlacementError:
            pass

    coords = [(b.x, b.y) for b in room.state.buildings]
    assert len(coords) == len(set(coords))
    assert _connected_to_castle(room, ALICE)
    assert alice.points == 30 * len(room.state.buildings_of(ALICE, BuildingType.CASTLE))
