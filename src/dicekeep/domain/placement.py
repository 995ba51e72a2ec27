"""Building placement rules.

A purchase passes through three gates:

1. Structural checks: the player exists, the game is still running, it is
   their turn, the tile is on the board and empty, and the building type is
   known. Failing any of these is a silent no-op.
2. Type rules, which are reported back to the player:

   * A road needs the player to own a castle, and must touch one of the
     player's roads or castles edge-to-edge. Every road therefore hangs off a
     connected network rooted at a castle.
   * A castle may never touch another castle of the same owner. When the
     player already owns a castle and the request sets
     ``check_road_connection``, the new castle must also touch one of their
     roads. The flag is supplied by the client.

3. Affordability: all three resource costs must be met. Failing is silent.

On success the cost is paid, points are credited, the building is appended to
the ledger and the win condition is checked.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from dicekeep.domain import turns, victory
from dicekeep.domain.enums import BuildingType
from dicekeep.domain.errors import PlacementError
from dicekeep.domain.models import Building, BuildingID, GameState, PlayerEconomy, PlayerID, Room
from dicekeep.domain.rules_config import DEFAULT_RULES, BuildingSpec, RulesConfig
from dicekeep.utils.grid import GridCoord, grid_neighbors, in_bounds

ROAD_NEEDS_CASTLE = "You need to build a castle first before building roads!"
ROAD_NOT_CONNECTED = "Road must be adjacent to a castle or another road!"
CASTLES_TOUCHING = "Castles cannot be directly adjacent! Build a road between them first."
CASTLE_NEEDS_ROAD = (
    "Castle must be adjacent to a road! Castles cannot be directly next to each other."
)


@dataclass(slots=True)
class PurchaseResult:
    """A committed purchase."""

    player_id: PlayerID
    building: Building
    points: int
    winner: PlayerID | None


def is_valid_coordinate(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def touches(target: GridCoord, buildings: list[Building]) -> bool:
    """True when any of ``buildings`` shares an edge with ``target``."""

    neighbors = set(grid_neighbors(target))
    return any(GridCoord(b.x, b.y) in neighbors for b in buildings)


def check_road(state: GameState, player_id: PlayerID, target: GridCoord) -> None:
    if not state.buildings_of(player_id, BuildingType.CASTLE):
        raise PlacementError(ROAD_NEEDS_CASTLE)
    if not touches(target, state.buildings_of(player_id)):
        raise PlacementError(ROAD_NOT_CONNECTED)


def check_castle(
    state: GameState,
    player_id: PlayerID,
    target: GridCoord,
    *,
    check_road_connection: bool,
) -> None:
    castles = state.buildings_of(player_id, BuildingType.CASTLE)
    if touches(target, castles):
        raise PlacementError(CASTLES_TOUCHING)
    if castles and check_road_connection:
        roads = state.buildings_of(player_id, BuildingType.ROAD)
        if not touches(target, roads):
            raise PlacementError(CASTLE_NEEDS_ROAD)


def can_afford(economy: PlayerEconomy, spec: BuildingSpec) -> bool:
    return (
        economy.wood >= spec.wood
        and economy.stone >= spec.stone
        and economy.bricks >= spec.bricks
    )


def pay(economy: PlayerEconomy, spec: BuildingSpec) -> None:
    economy.wood -= spec.wood
    economy.stone = max(0, economy.stone - spec.stone)
    economy.bricks = max(0, economy.bricks - spec.bricks)


def new_building_id(state: GameState, player_id: PlayerID, now_ms: int) -> BuildingID:
    """Owner id plus creation time, suffixed if that id is already taken."""

    candidate = BuildingID(f"{player_id}-{now_ms}")
    suffix = 1
    while state.find_building(candidate) is not None:
        candidate = BuildingID(f"{player_id}-{now_ms}-{suffix}")
        suffix += 1
    return candidate


def purchase(
    room: Room,
    player_id: PlayerID,
    building_type: str,
    x: object,
    y: object,
    *,
    check_road_connection: bool = False,
    rules: RulesConfig = DEFAULT_RULES,
    now_ms: int | None = None,
) -> PurchaseResult | None:
    """Validate and commit a building purchase.

    Returns None for silent rejections.

    Raises:
        PlacementError: If a road or castle adjacency rule is broken
    """

    state = room.state
    economy = state.players.get(player_id)
    if economy is None or state.is_over:
        return None
    if not turns.may_act(room, player_id):
        return None

    if not (is_valid_coordinate(x) and is_valid_coordinate(y)):
        return None
    target = GridCoord(x, y)  # type: ignore[arg-type]
    if not in_bounds(target, rules.map_size):
        return None
    if state.building_at(target.x, target.y) is not None:
        return None

    spec = rules.building(building_type)
    if spec is None:
        return None

    if spec.type == BuildingType.ROAD:
        check_road(state, player_id, target)
    elif spec.type == BuildingType.CASTLE:
        check_castle(state, player_id, target, check_road_connection=check_road_connection)

    if not can_afford(economy, spec):
        return None

    pay(economy, spec)
    economy.points += spec.points

    if now_ms is None:
        now_ms = int(time.time() * 1000)
    building = Building(
        id=new_building_id(state, player_id, now_ms),
        owner_id=player_id,
        type=spec.type,
        x=target.x,
        y=target.y,
        icon=spec.icon,
        name=spec.name,
    )
    state.buildings.append(building)

    winner = victory.check_winner(room, player_id, rules=rules)
    return PurchaseResult(player_id=player_id, building=building, points=spec.points, winner=winner)
