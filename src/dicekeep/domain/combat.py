"""Attack announcement and resolution.

An attack runs in two phases. :func:`announce_attack` validates the request
and marks the attacker as having used their attack; it produces a
:class:`PendingAttack` but no dice. After a fixed delay the runtime calls
:func:`resolve_attack`, which re-checks the world (the building may have been
destroyed, the game may have ended) before rolling and applying the outcome.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from dicekeep.domain import victory
from dicekeep.domain.enums import AttackPhase, BuildingType
from dicekeep.domain.errors import AttackError
from dicekeep.domain.models import Building, BuildingID, PendingAttack, PlayerID, Room
from dicekeep.domain.rules_config import DEFAULT_RULES, RulesConfig
from dicekeep.utils.grid import GridCoord, are_adjacent
from dicekeep.utils.rng import roll_dice

ALREADY_ATTACKED = "You can only attack once per turn!"
NOT_ADJACENT = "You can only attack castles adjacent to your own castle!"


@dataclass(slots=True)
class AttackResult:
    """Full detail of a resolved attack."""

    attacker_id: PlayerID
    defender_id: PlayerID
    building_id: BuildingID
    attacker_rolls: list[int]
    defender_rolls: list[int]
    attacker_total: int
    defender_total: int
    attacker_max: int
    defender_max: int
    winner: PlayerID
    building_destroyed: bool
    points_gained: int
    game_winner: PlayerID | None = None


def attacker_wins(attacker_rolls: Sequence[int], defender_rolls: Sequence[int]) -> bool:
    """Compare sums, then the best single die; any full tie holds for the defender."""

    attacker_total, defender_total = sum(attacker_rolls), sum(defender_rolls)
    if attacker_total != defender_total:
        return attacker_total > defender_total
    return max(attacker_rolls) > max(defender_rolls)


def _locate_target(
    room: Room, building_id: BuildingID, x: object, y: object
) -> Building | None:
    building = room.state.find_building(building_id)
    if building is None or building.x != x or building.y != y:
        return None
    return building


def announce_attack(
    room: Room,
    attacker_id: PlayerID,
    defender_id: PlayerID,
    building_id: BuildingID,
    x: object,
    y: object,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> PendingAttack | None:
    """Validate an attack and move it to the announced phase.

    Returns None for silent rejections.

    Raises:
        AttackError: If the attacker already attacked or has no castle next
            to the target
    """

    state = room.state
    attacker = state.players.get(attacker_id)
    if attacker is None or defender_id not in state.players:
        return None
    if state.is_over or state.active_player_id != attacker_id:
        return None

    # The flag is never cleared, so in practice this is one attack per game.
    if attacker.has_attacked:
        raise AttackError(ALREADY_ATTACKED)

    target = _locate_target(room, building_id, x, y)
    if target is None or target.owner_id == attacker_id:
        return None
    if target.owner_id != defender_id:
        return None
    spec = rules.buildings.get(target.type)
    if spec is None or not spec.attackable:
        return None

    target_coord = GridCoord(target.x, target.y)
    castles = state.buildings_of(attacker_id, BuildingType.CASTLE)
    if not any(are_adjacent(GridCoord(c.x, c.y), target_coord) for c in castles):
        raise AttackError(NOT_ADJACENT)

    attacker.has_attacked = True
    return PendingAttack(
        room_code=room.code,
        attacker_id=attacker_id,
        defender_id=defender_id,
        building_id=building_id,
        x=target.x,
        y=target.y,
    )


def resolve_attack(
    room: Room,
    attack: PendingAttack,
    *,
    rules: RulesConfig = DEFAULT_RULES,
    attacker_rolls: list[int] | None = None,
    defender_rolls: list[int] | None = None,
) -> AttackResult | None:
    """Roll and apply an announced attack.

    Returns None, leaving the room untouched, when the game ended or the
    target building no longer stands where it was announced. Fixed rolls may
    be passed for tests.
    """

    if attack.phase != AttackPhase.ANNOUNCED:
        return None
    attack.phase = AttackPhase.RESOLVED

    state = room.state
    if state.is_over:
        return None
    attacker = state.players.get(attack.attacker_id)
    defender = state.players.get(attack.defender_id)
    if attacker is None or defender is None:
        return None
    building = _locate_target(room, attack.building_id, attack.x, attack.y)
    if building is None or building.owner_id != attack.defender_id:
        return None

    if attacker_rolls is None:
        attacker_rolls = roll_dice(room.rng, rules.combat.attacker_dice)["rolls"]
    if defender_rolls is None:
        defender_rolls = roll_dice(room.rng, rules.combat.defender_dice)["rolls"]

    destroyed = attacker_wins(attacker_rolls, defender_rolls)
    points_gained = 0
    game_winner = None
    if destroyed:
        points_gained = rules.buildings[building.type].points
        state.buildings.remove(building)
        defender.points = max(0, defender.points - points_gained)
        attacker.points += points_gained
        game_winner = victory.check_winner(room, attack.attacker_id, rules=rules)

    return AttackResult(
        attacker_id=attack.attacker_id,
        defender_id=attack.defender_id,
        building_id=attack.building_id,
        attacker_rolls=list(attacker_rolls),
        defender_rolls=list(defender_rolls),
        attacker_total=sum(attacker_rolls),
        defender_total=sum(defender_rolls),
        attacker_max=max(attacker_rolls),
        defender_max=max(defender_rolls),
        winner=attack.attacker_id if destroyed else attack.defender_id,
        building_destroyed=destroyed,
        points_gained=points_gained,
        game_winner=game_winner,
    )
