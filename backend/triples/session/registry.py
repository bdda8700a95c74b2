"""Room directory: creates rooms on demand and reclaims idle ones."""

from __future__ import annotations

import asyncio
import contextlib
import functools
import logging
from typing import TYPE_CHECKING

from triples.logic.variants import get_variant
from triples.session.room import DEFAULT_MATCH_DELAY, DEFAULT_SLOT_BUFFER_SIZE, Room

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Callable

    from triples.session.room import RoomKey
    from triples.session.types import RoomInfo

logger = logging.getLogger(__name__)

DEFAULT_GRACE_SECONDS = 30.0


class RoomRegistry:
    """Reference-counted map of (game kind, room id) -> Room.

    Each client session acquires the room for its lifetime and releases it
    when the connection ends. When the count drops to zero the room is closed
    after a grace period, unless another session acquires it in the meantime.

    The lock guards only the map and the counts; room operations (start,
    close) never run while it is held.
    """

    def __init__(
        self,
        *,
        grace_seconds: float = DEFAULT_GRACE_SECONDS,
        match_delay: float = DEFAULT_MATCH_DELAY,
        slot_buffer_size: int = DEFAULT_SLOT_BUFFER_SIZE,
        seed_factory: Callable[[], str] | None = None,
    ) -> None:
        self._grace_seconds = grace_seconds
        self._match_delay = match_delay
        self._slot_buffer_size = slot_buffer_size
        self._seed_factory = seed_factory
        self._rooms: dict[RoomKey, Room] = {}
        self._refs: dict[RoomKey, int] = {}
        self._lock = asyncio.Lock()
        self._close_tasks: dict[RoomKey, asyncio.Task[None]] = {}

    @property
    def room_count(self) -> int:
        return len(self._rooms)

    def get(self, game_kind: str, room_id: str) -> Room | None:
        return self._rooms.get((game_kind, room_id))

    def ref_count(self, game_kind: str, room_id: str) -> int:
        return self._refs.get((game_kind, room_id), 0)

    def rooms_info(self) -> list[RoomInfo]:
        return [room.status() for room in self._rooms.values()]

    async def acquire(self, game_kind: str, room_id: str) -> Room:
        """Return the room for the key, creating it on first use.

        Raises UnknownVariantError for an unknown game kind.
        """
        variant = get_variant(game_kind)
        key = (variant.kind, room_id)
        async with self._lock:
            self._cancel_close(key)
            room = self._rooms.get(key)
            if room is None:
                room = Room(
                    variant,
                    room_id,
                    match_delay=self._match_delay,
                    slot_buffer_size=self._slot_buffer_size,
                    seed_factory=self._seed_factory,
                )
                self._rooms[key] = room
                self._refs[key] = 0
                logger.info("room created: %s/%s", *key)
            self._refs[key] += 1
        room.start()
        return room

    async def release(self, room: Room) -> None:
        """Drop one reference; schedule a deferred close when none remain."""
        key = room.key
        async with self._lock:
            if self._rooms.get(key) is not room:
                return
            self._refs[key] -= 1
            if self._refs[key] > 0:
                return
            self._schedule_close(room)

    @contextlib.asynccontextmanager
    async def join(self, game_kind: str, room_id: str) -> AsyncIterator[Room]:
        """Hold a reference to the room for the duration of the block."""
        room = await self.acquire(game_kind, room_id)
        try:
            yield room
        finally:
            await self.release(room)

    def _schedule_close(self, room: Room) -> None:
        """Start the grace timer for the room, replacing any timer already running."""
        key = room.key
        self._cancel_close(key)
        task = asyncio.create_task(self._close_when_idle(room))
        self._close_tasks[key] = task
        task.add_done_callback(functools.partial(self._forget_close, key))

    def _cancel_close(self, key: RoomKey) -> None:
        task = self._close_tasks.pop(key, None)
        if task is not None:
            task.cancel()

    def _forget_close(self, key: RoomKey, task: asyncio.Task[None]) -> None:
        if self._close_tasks.get(key) is task:
            del self._close_tasks[key]

    async def _close_when_idle(self, room: Room) -> None:
        await asyncio.sleep(self._grace_seconds)
        key = room.key
        async with self._lock:
            if self._rooms.get(key) is not room or self._refs[key] > 0:
                logger.debug("room %s/%s in use again, keeping it", *key)
                return
            del self._rooms[key]
            del self._refs[key]
            # past this point a new acquire must not cancel the close below
            self._close_tasks.pop(key, None)
        await room.close()

    async def close_all(self) -> None:
        """Close every room immediately (server shutdown)."""
        for task in list(self._close_tasks.values()):
            task.cancel()
        self._close_tasks.clear()
        async with self._lock:
            rooms = list(self._rooms.values())
            self._rooms.clear()
            self._refs.clear()
        for room in rooms:
            await room.close()
