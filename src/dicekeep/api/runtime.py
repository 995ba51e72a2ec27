"""Runtime primitives backing the Dicekeep server."""

from __future__ import annotations

import asyncio
import logging
import secrets
import string
import time
from collections.abc import Awaitable, Callable
from contextlib import suppress

from pydantic import ValidationError

from dicekeep.api.hub import Outbound, RoomHub
from dicekeep.api.schemas import (
    PAYLOADS,
    AttackPayload,
    ClientMessage,
    JoinPayload,
    PurchasePayload,
    RollPayload,
    SetRollingPayload,
)
from dicekeep.config import Settings, get_settings
from dicekeep.domain import combat, economy, lobby, placement, serialize, victory
from dicekeep.domain.enums import Action, OutboundEvent
from dicekeep.domain.errors import AttackError, PlacementError
from dicekeep.domain.models import (
    BuildingID,
    ConnectionID,
    PendingAttack,
    PlayerID,
    Room,
    RoomCode,
    normalize_room_code,
)
from dicekeep.domain.rules_config import DEFAULT_RULES, RulesConfig, rules_from_settings
from dicekeep.utils.rng import room_rng

logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
PLAYER_ID_ALPHABET = string.ascii_lowercase + string.digits


def mint_room_code(length: int = 6) -> str:
    """Short random room code. Uniqueness is best-effort."""

    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))


def mint_player_id(length: int = 13) -> str:
    return "".join(secrets.choice(PLAYER_ID_ALPHABET) for _ in range(length))


class RoomRegistry:
    """Bounded map of live rooms keyed by normalized room code.

    Rooms are created lazily and remember when they were last touched. Idle
    rooms that nobody is connected to are evicted by :meth:`evict_idle`, and
    creating a room past ``max_rooms`` first evicts the stalest unused room.
    ``in_use`` tells the registry which rooms must be kept regardless of age.
    """

    def __init__(
        self,
        *,
        max_rooms: int = 1000,
        idle_timeout_seconds: float = 3600.0,
        dice_seed: int | None = None,
        clock: Callable[[], float] = time.monotonic,
        in_use: Callable[[RoomCode], bool] | None = None,
    ) -> None:
        self._rooms: dict[RoomCode, Room] = {}
        self._max_rooms = max_rooms
        self._idle_timeout = idle_timeout_seconds
        self._dice_seed = dice_seed
        self._clock = clock
        self._in_use = in_use or (lambda _code: False)

    def __len__(self) -> int:
        return len(self._rooms)

    def __contains__(self, room_code: object) -> bool:
        return room_code in self._rooms

    def codes(self) -> list[RoomCode]:
        return sorted(self._rooms)

    def get(self, room_code: str) -> Room | None:
        return self._rooms.get(normalize_room_code(room_code))

    def is_live(self, room: Room) -> bool:
        """True when ``room`` is still the registered instance for its code."""

        return self._rooms.get(room.code) is room

    def get_or_create(self, room_code: str) -> Room:
        code = normalize_room_code(room_code)
        room = self._rooms.get(code)
        if room is not None:
            return room
        if len(self._rooms) >= self._max_rooms:
            self._evict_stalest()
        room = Room(code=code, rng=room_rng(code, self._dice_seed), last_activity=self._clock())
        self._rooms[code] = room
        logger.info("room %s created (%d live)", code, len(self._rooms))
        return room

    def touch(self, room: Room) -> None:
        room.last_activity = self._clock()

    def remove(self, room_code: str) -> Room | None:
        return self._rooms.pop(normalize_room_code(room_code), None)

    def evict_idle(self) -> list[RoomCode]:
        """Remove rooms idle past the timeout that are not in use."""

        cutoff = self._clock() - self._idle_timeout
        evicted = [
            code
            for code, room in self._rooms.items()
            if room.last_activity <= cutoff and not self._in_use(code)
        ]
        for code in evicted:
            del self._rooms[code]
            logger.info("room %s evicted after idling", code)
        return evicted

    def _evict_stalest(self) -> None:
        candidates = [room for code, room in self._rooms.items() if not self._in_use(code)]
        if not candidates:
            logger.warning("room limit %d reached and every room is in use", self._max_rooms)
            return
        stalest = min(candidates, key=lambda room: room.last_activity)
        del self._rooms[stalest.code]
        logger.info("room %s evicted to make space", stalest.code)


class RoomJanitor:
    """Background loop that periodically evicts idle rooms."""

    MIN_INTERVAL_SECONDS = 0.1

    def __init__(self, registry: RoomRegistry, *, interval_seconds: float) -> None:
        self._registry = registry
        self._interval = max(interval_seconds, self.MIN_INTERVAL_SECONDS)
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        self._task = loop.create_task(self._run_loop(), name="dicekeep-room-janitor")

    async def stop(self) -> None:
        task = self._task
        if task is None:
            return
        self._stop_event.set()
        await task
        self._task = None

    async def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                    break
                except TimeoutError:
                    pass
                self._registry.evict_idle()
        finally:
            self._task = None


class AttackScheduler:
    """Owns the deferred resolve step of announced attacks.

    Each announced attack becomes a task that sleeps for the resolution delay
    and then hands the room it was announced in, plus the attack, to
    ``resolve``. Tasks are tracked per room so the
    registry can keep rooms with a battle in flight. Pending resolutions are
    never cancelled during play; :meth:`shutdown` cancels whatever is left
    when the process stops.
    """

    def __init__(
        self,
        *,
        delay_seconds: float,
        resolve: Callable[[Room, PendingAttack], Awaitable[None]],
    ) -> None:
        self._delay = max(delay_seconds, 0.0)
        self._resolve = resolve
        self._tasks: dict[RoomCode, set[asyncio.Task[None]]] = {}

    @property
    def delay_seconds(self) -> float:
        return self._delay

    def pending(self, room_code: RoomCode | None = None) -> int:
        if room_code is not None:
            return len(self._tasks.get(room_code, ()))
        return sum(len(tasks) for tasks in self._tasks.values())

    def schedule(self, room: Room, attack: PendingAttack) -> asyncio.Task[None]:
        loop = asyncio.get_running_loop()
        task = loop.create_task(
            self._fire(room, attack),
            name=f"dicekeep-attack-{attack.room_code}-{attack.building_id}",
        )
        self._tasks.setdefault(attack.room_code, set()).add(task)
        task.add_done_callback(lambda done: self._forget(attack.room_code, done))
        return task

    async def drain(self) -> None:
        """Wait until every scheduled resolution has run."""

        while self.pending():
            tasks = [task for tasks in self._tasks.values() for task in tasks]
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self) -> None:
        tasks = [task for tasks in self._tasks.values() for task in tasks]
        for task in tasks:
            task.cancel()
        for task in tasks:
            with suppress(asyncio.CancelledError):
                await task
        self._tasks.clear()

    async def _fire(self, room: Room, attack: PendingAttack) -> None:
        await asyncio.sleep(self._delay)
        try:
            await self._resolve(room, attack)
        except Exception:
            logger.exception(
                "resolving attack on %s in room %s failed", attack.building_id, attack.room_code
            )

    def _forget(self, room_code: RoomCode, task: asyncio.Task[None]) -> None:
        tasks = self._tasks.get(room_code)
        if tasks is None:
            return
        tasks.discard(task)
        if not tasks:
            del self._tasks[room_code]


class GameService:
    """Applies inbound actions to rooms and publishes the outcome.

    Every handler does all of its validation and mutation synchronously and
    only then awaits delivery, so actions on the same event loop never
    interleave mid-update. The one deferred step, attack resolution, goes
    through :class:`AttackScheduler` and re-validates the room on entry.
    """

    def __init__(
        self,
        registry: RoomRegistry,
        hub: RoomHub,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self.registry = registry
        self.hub = hub
        self.rules = rules
        self.attacks = AttackScheduler(
            delay_seconds=rules.combat.resolution_delay_seconds,
            resolve=self.resolve_attack,
        )

    # --- dispatch ----------------------------------------------------------

    async def dispatch(
        self, connection_id: ConnectionID, default_room: str, frame: object
    ) -> None:
        """Route a raw WebSocket frame to its handler; malformed frames are dropped."""

        try:
            message = ClientMessage.model_validate(frame)
            payload = PAYLOADS[message.event].model_validate(message.data)
        except ValidationError as exc:
            logger.debug("dropping malformed frame from %s: %s", connection_id, exc)
            return

        room_code = payload.room_code or default_room
        if isinstance(payload, JoinPayload):
            await self.join(room_code, connection_id, payload.player_id, payload.player_name)
        elif isinstance(payload, RollPayload):
            await self.roll(room_code, payload.player_id)
        elif isinstance(payload, PurchasePayload):
            await self.purchase(
                room_code,
                connection_id,
                payload.player_id,
                payload.building_type,
                payload.x,
                payload.y,
                check_road_connection=payload.check_road_connection,
            )
        elif isinstance(payload, AttackPayload):
            await self.attack(
                room_code,
                connection_id,
                payload.attacker_id,
                payload.defender_id,
                payload.building_id,
                payload.x,
                payload.y,
            )
        elif isinstance(payload, SetRollingPayload):
            await self.set_rolling(room_code, payload.player_id, payload.is_rolling)
        elif message.event == Action.LEAVE:
            self.leave(room_code, connection_id)

    # --- handlers ----------------------------------------------------------

    async def join(
        self,
        room_code: str,
        connection_id: ConnectionID,
        player_id: str,
        player_name: str | None,
    ) -> None:
        if not room_code or not room_code.strip() or not player_id:
            logger.debug("join without room or player id ignored")
            return
        room = self.registry.get_or_create(room_code)
        self.registry.touch(room)
        player = lobby.join_room(
            room, PlayerID(player_id), player_name, connection_id, rules=self.rules
        )
        self.hub.subscribe(room.code, connection_id)
        logger.info("player %s (%s) joined room %s", player.id, player.name, room.code)
        await self.hub.deliver(room.code, [self._room_updated(room), self._map_updated(room)])

    async def roll(self, room_code: str, player_id: str) -> None:
        room = self._active_room(room_code)
        if room is None:
            return
        outcome = economy.roll(room, PlayerID(player_id), rules=self.rules)
        if outcome is None:
            logger.debug("roll by %s in %s ignored", player_id, room.code)
            return
        await self.hub.deliver(
            room.code,
            [
                Outbound(
                    OutboundEvent.DICE_ROLLED,
                    {
                        "player_id": outcome.player_id,
                        "game_state": serialize.game_state_dict(room.state),
                    },
                )
            ],
        )

    async def purchase(
        self,
        room_code: str,
        connection_id: ConnectionID,
        player_id: str,
        building_type: str,
        x: object,
        y: object,
        *,
        check_road_connection: bool = False,
    ) -> None:
        room = self._active_room(room_code)
        if room is None:
            return
        try:
            result = placement.purchase(
                room,
                PlayerID(player_id),
                building_type,
                x,
                y,
                check_road_connection=check_road_connection,
                rules=self.rules,
            )
        except PlacementError as exc:
            await self.hub.send_to(
                connection_id, OutboundEvent.BUILDING_ERROR, {"message": exc.message}
            )
            return
        if result is None:
            logger.debug("purchase of %s by %s in %s ignored", building_type, player_id, room.code)
            return

        messages: list[Outbound] = []
        if result.winner is not None:
            messages.append(self._player_won(room, result.winner))
        messages.append(
            Outbound(
                OutboundEvent.BUILDING_PURCHASED,
                {
                    "player_id": result.player_id,
                    "building_type": str(result.building.type),
                    "building_id": result.building.id,
                    "points": result.points,
                    "x": result.building.x,
                    "y": result.building.y,
                    "game_state": serialize.game_state_dict(room.state),
                },
            )
        )
        messages.append(self._map_updated(room))
        await self.hub.deliver(room.code, messages)

    async def attack(
        self,
        room_code: str,
        connection_id: ConnectionID,
        attacker_id: str,
        defender_id: str,
        building_id: str,
        x: object,
        y: object,
    ) -> None:
        room = self._active_room(room_code)
        if room is None:
            return
        try:
            pending = combat.announce_attack(
                room,
                PlayerID(attacker_id),
                PlayerID(defender_id),
                BuildingID(building_id),
                x,
                y,
                rules=self.rules,
            )
        except AttackError as exc:
            await self.hub.send_to(
                connection_id, OutboundEvent.ATTACK_ERROR, {"message": exc.message}
            )
            return
        if pending is None:
            logger.debug("attack by %s in %s ignored", attacker_id, room.code)
            return

        self.attacks.schedule(room, pending)
        logger.info(
            "battle announced in %s: %s attacks %s at (%d, %d)",
            room.code,
            pending.attacker_id,
            pending.building_id,
            pending.x,
            pending.y,
        )
        await self.hub.deliver(
            room.code,
            [Outbound(OutboundEvent.BATTLE_STARTED, serialize.battle_started_dict(pending))],
        )

    async def resolve_attack(
        self,
        room: Room,
        attack: PendingAttack,
        *,
        attacker_rolls: list[int] | None = None,
        defender_rolls: list[int] | None = None,
    ) -> None:
        """Second phase of an attack; a no-op if its room or target vanished.

        ``room`` is the instance the attack was announced in. If it was evicted,
        even when a new room has since taken the same code, nothing happens.
        """

        if not self.registry.is_live(room):
            logger.warning("room %s gone before battle resolved", attack.room_code)
            return
        result = combat.resolve_attack(
            room,
            attack,
            rules=self.rules,
            attacker_rolls=attacker_rolls,
            defender_rolls=defender_rolls,
        )
        if result is None:
            logger.warning(
                "battle for %s in %s no longer valid; skipped", attack.building_id, room.code
            )
            return
        self.registry.touch(room)
        logger.info(
            "battle in %s resolved: %s wins (%d vs %d)",
            room.code,
            result.winner,
            result.attacker_total,
            result.defender_total,
        )

        messages: list[Outbound] = []
        if result.game_winner is not None:
            messages.append(self._player_won(room, result.game_winner))
        messages.append(
            Outbound(OutboundEvent.ATTACK_RESULT, serialize.attack_result_dict(result))
        )
        if result.building_destroyed:
            messages.append(self._map_updated(room))
        messages.append(self._room_updated(room))
        await self.hub.deliver(room.code, messages)

    async def set_rolling(self, room_code: str, player_id: str, is_rolling: bool) -> None:
        room = self._active_room(room_code)
        if room is None:
            return
        if lobby.set_rolling(room, PlayerID(player_id), is_rolling) is None:
            return
        await self.hub.deliver(
            room.code,
            [
                Outbound(
                    OutboundEvent.ROLLING_UPDATED,
                    {
                        "player_id": player_id,
                        "is_rolling": bool(is_rolling),
                        "game_state": serialize.game_state_dict(room.state),
                    },
                )
            ],
        )

    def leave(self, room_code: str, connection_id: ConnectionID) -> None:
        """Stop broadcasting the room to this connection; the seat is kept."""

        if not room_code:
            return
        self.hub.unsubscribe(normalize_room_code(room_code), connection_id)

    # --- helpers -----------------------------------------------------------

    def _active_room(self, room_code: str) -> Room | None:
        if not room_code:
            return None
        room = self.registry.get(room_code)
        if room is not None:
            self.registry.touch(room)
        return room

    @staticmethod
    def _room_updated(room: Room) -> Outbound:
        payload = serialize.room_dict(room)
        return Outbound(
            OutboundEvent.ROOM_UPDATED,
            {"players": payload["players"], "game_state": payload["game_state"]},
        )

    @staticmethod
    def _map_updated(room: Room) -> Outbound:
        return Outbound(
            OutboundEvent.MAP_UPDATED, {"buildings": serialize.buildings_list(room.state)}
        )

    @staticmethod
    def _player_won(room: Room, player_id: PlayerID) -> Outbound:
        name = victory.winner_name(room, player_id)
        logger.info("player %s (%s) won room %s", player_id, name, room.code)
        return Outbound(OutboundEvent.PLAYER_WON, {"player_id": player_id, "player_name": name})


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        rules: RulesConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or get_settings()
        self.rules = rules or rules_from_settings(self.settings)
        self.hub = RoomHub()
        self.rooms = RoomRegistry(
            max_rooms=self.settings.max_rooms,
            idle_timeout_seconds=self.settings.room_idle_timeout_seconds,
            dice_seed=self.settings.dice_seed,
            clock=clock,
            in_use=self._room_in_use,
        )
        self.game = GameService(self.rooms, self.hub, rules=self.rules)
        self.janitor = RoomJanitor(
            self.rooms, interval_seconds=self.settings.room_sweep_interval_seconds
        )

    def _room_in_use(self, room_code: RoomCode) -> bool:
        return self.hub.has_subscribers(room_code) or self.game.attacks.pending(room_code) > 0

    def start(self) -> None:
        self.janitor.start()

    async def shutdown(self) -> None:
        await self.janitor.stop()
        await self.game.attacks.shutdown()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
