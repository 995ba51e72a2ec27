"""Per-room fan-out of outbound messages.

The hub knows two things: which connections exist (so a requester can be
answered directly) and which connections subscribe to which room (so a room
can be broadcast to). It is transport-agnostic; anything with an async
``send_json`` can subscribe, which is how tests observe traffic.

Example::

    hub = RoomHub()
    hub.register(connection_id, websocket)
    hub.subscribe(room_code, connection_id)
    await hub.publish(room_code, OutboundEvent.MAP_UPDATED, {"buildings": []})
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from dicekeep.domain.enums import OutboundEvent
from dicekeep.domain.models import ConnectionID, RoomCode

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...


@dataclass(slots=True)
class Outbound:
    """A message to send; ``recipient`` None means the whole room."""

    event: OutboundEvent
    data: dict[str, object]
    recipient: ConnectionID | None = None


class RoomHub:
    """Connection registry plus room subscriber sets."""

    def __init__(self) -> None:
        self._connections: dict[ConnectionID, Subscriber] = {}
        self._rooms: dict[RoomCode, set[ConnectionID]] = {}

    def register(self, connection_id: ConnectionID, subscriber: Subscriber) -> None:
        self._connections[connection_id] = subscriber

    def forget(self, connection_id: ConnectionID) -> list[RoomCode]:
        """Drop a connection and every room subscription it held."""

        self._connections.pop(connection_id, None)
        left: list[RoomCode] = []
        for room_code in list(self._rooms):
            if connection_id in self._rooms[room_code]:
                self.unsubscribe(room_code, connection_id)
                left.append(room_code)
        return left

    def subscribe(self, room_code: RoomCode, connection_id: ConnectionID) -> None:
        self._rooms.setdefault(room_code, set()).add(connection_id)

    def unsubscribe(self, room_code: RoomCode, connection_id: ConnectionID) -> None:
        members = self._rooms.get(room_code)
        if members is None:
            return
        members.discard(connection_id)
        if not members:
            del self._rooms[room_code]

    def subscribers(self, room_code: RoomCode) -> list[ConnectionID]:
        return sorted(self._rooms.get(room_code, ()))

    def has_subscribers(self, room_code: RoomCode) -> bool:
        return bool(self._rooms.get(room_code))

    def is_subscribed(self, room_code: RoomCode, connection_id: ConnectionID) -> bool:
        return connection_id in self._rooms.get(room_code, ())

    async def publish(
        self, room_code: RoomCode, event: OutboundEvent, data: dict[str, object]
    ) -> None:
        """Send a frame to every subscriber of the room."""

        frame = {"event": str(event), "data": data}
        for connection_id in self.subscribers(room_code):
            await self._send(connection_id, frame)

    async def send_to(
        self, connection_id: ConnectionID, event: OutboundEvent, data: dict[str, object]
    ) -> None:
        """Send a frame to a single connection."""

        await self._send(connection_id, {"event": str(event), "data": data})

    async def deliver(self, room_code: RoomCode, messages: Iterable[Outbound]) -> None:
        for message in messages:
            if message.recipient is None:
                await self.publish(room_code, message.event, message.data)
            else:
                await self.send_to(message.recipient, message.event, message.data)

    async def _send(self, connection_id: ConnectionID, frame: dict[str, object]) -> None:
        subscriber = self._connections.get(connection_id)
        if subscriber is None:
            logger.debug("connection %s gone; dropping %s", connection_id, frame["event"])
            return
        try:
            await subscriber.send_json(frame)
        except Exception as exc:  # noqa: BLE001 - any transport failure drops the subscriber
            logger.warning("failed to send %s to %s: %s", frame["event"], connection_id, exc)
            self.forget(connection_id)
