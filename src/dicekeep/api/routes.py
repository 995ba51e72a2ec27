"""HTTP routes for the Dicekeep server."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from dicekeep.api.runtime import ApiState, mint_player_id, mint_room_code
from dicekeep.api.schemas import CreateRoomRequest, JoinRoomRequest, RoomSnapshot, RoomTicket
from dicekeep.domain import serialize
from dicekeep.domain.lobby import default_player_name
from dicekeep.domain.models import PlayerID, normalize_room_code

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


ApiStateDep = Annotated[ApiState, Depends(get_state)]


def _ticket(room_code: str, player_name: str | None) -> RoomTicket:
    player_id = mint_player_id()
    return RoomTicket(
        room_code=room_code,
        player_id=player_id,
        player_name=player_name or default_player_name(PlayerID(player_id)),
    )


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "rooms": len(state.rooms),
        "pending_attacks": state.game.attacks.pending(),
        "attack_resolution_delay_seconds": state.game.attacks.delay_seconds,
    }


@router.get("/rules")
async def rules_overview(state: ApiStateDep) -> dict[str, object]:
    """Expose the rule constants clients need to render costs and goals."""

    return {
        "win_points": state.rules.win_points,
        "map_size": state.rules.map_size,
        "resource_cap": state.rules.economy.resource_cap,
        "buildings": {
            str(spec.type): {
                "name": spec.name,
                "icon": spec.icon,
                "cost": {"wood": spec.wood, "stone": spec.stone, "bricks": spec.bricks},
                "points": spec.points,
                "attackable": spec.attackable,
            }
            for spec in state.rules.buildings.values()
        },
    }


@router.post("/rooms/create", response_model=RoomTicket)
async def create_room(request: CreateRoomRequest) -> RoomTicket:
    return _ticket(mint_room_code(), request.player_name)


@router.post("/rooms/join", response_model=RoomTicket)
async def join_room(request: JoinRoomRequest) -> RoomTicket:
    room_code = normalize_room_code(request.room_code)
    if not room_code:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Room code is required"
        )
    return _ticket(room_code, request.player_name)


@router.get("/rooms/{room_code}", response_model=RoomSnapshot)
async def get_room(room_code: str, state: ApiStateDep) -> RoomSnapshot:
    room = state.rooms.get(room_code)
    if room is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="room not found")
    return RoomSnapshot.model_validate(serialize.room_dict(room))
