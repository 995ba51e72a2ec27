"""Pydantic models for WebSocket frames and HTTP bodies."""

from __future__ import annotations

from pydantic import BaseModel, Field, StrictInt

from dicekeep.domain.enums import Action


class ClientMessage(BaseModel):
    """Envelope of every inbound WebSocket frame."""

    event: Action
    data: dict[str, object] = Field(default_factory=dict)


class RoomScoped(BaseModel):
    """Overrides the room taken from the socket path when set."""

    room_code: str | None = None


class JoinPayload(RoomScoped):
    player_id: str = ""
    player_name: str | None = None


class RollPayload(RoomScoped):
    player_id: str = ""


class PurchasePayload(RoomScoped):
    # Coordinates must be JSON integers; booleans and numeric strings are refused.
    player_id: str = ""
    building_type: str = ""
    x: StrictInt | None = None
    y: StrictInt | None = None
    check_road_connection: bool = False


class AttackPayload(RoomScoped):
    attacker_id: str = ""
    defender_id: str = ""
    building_id: str = ""
    x: StrictInt | None = None
    y: StrictInt | None = None


class SetRollingPayload(RoomScoped):
    player_id: str = ""
    is_rolling: bool = False


class LeavePayload(RoomScoped):
    pass


PAYLOADS: dict[Action, type[RoomScoped]] = {
    Action.JOIN: JoinPayload,
    Action.ROLL: RollPayload,
    Action.PURCHASE: PurchasePayload,
    Action.ATTACK: AttackPayload,
    Action.SET_ROLLING: SetRollingPayload,
    Action.LEAVE: LeavePayload,
}


class CreateRoomRequest(BaseModel):
    player_name: str | None = None


class JoinRoomRequest(BaseModel):
    room_code: str = ""
    player_name: str | None = None


class RoomTicket(BaseModel):
    room_code: str
    player_id: str
    player_name: str


class PlayerSummary(BaseModel):
    id: str
    name: str
    color: dict[str, str]


class RoomSnapshot(BaseModel):
    room_code: str
    players: list[PlayerSummary]
    game_state: dict[str, object]
