"""WebSocket endpoint carrying room actions and broadcasts.

Clients connect to ``/ws/{room_code}`` and exchange JSON frames of the form
``{"event": ..., "data": {...}}``. The connection only receives room
broadcasts after it sends ``join``.
"""

from __future__ import annotations

import json
import logging
import uuid

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from dicekeep.api.runtime import ApiState
from dicekeep.domain.models import ConnectionID

logger = logging.getLogger(__name__)

router = APIRouter(tags=["websocket"])


def get_socket_state(websocket: WebSocket) -> ApiState:
    state = getattr(websocket.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


@router.websocket("/ws/{room_code}")
async def room_socket(websocket: WebSocket, room_code: str) -> None:
    state = get_socket_state(websocket)
    await websocket.accept()
    connection_id = ConnectionID(uuid.uuid4().hex)
    state.hub.register(connection_id, websocket)
    logger.info("connection %s opened for room %s", connection_id, room_code)

    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000))
            text = message.get("text")
            if text is None:
                logger.debug("dropping binary frame from %s", connection_id)
                continue
            try:
                frame = json.loads(text)
            except ValueError:
                # Covers JSONDecodeError and oversized integer literals.
                logger.debug("dropping non-JSON frame from %s", connection_id)
                continue
            await state.game.dispatch(connection_id, room_code, frame)
    except WebSocketDisconnect:
        logger.info("connection %s closed", connection_id)
    finally:
        state.hub.forget(connection_id)
