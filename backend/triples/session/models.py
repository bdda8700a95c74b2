from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from triples.logic.events import GameUpdate
    from triples.messaging.types import ClientCommand


@dataclass
class PlayerSlot:
    """Binding between one connection and a display name within a room.

    Lifecycle:
    - Created by the room actor when a ConnectEvent is processed
    - Receives every broadcast through its bounded ``updates`` buffer
    - Closed on disconnect, on buffer overflow, or when the room shuts down;
      closing puts a ``None`` sentinel that ends the slot's forwarder
    """

    slot_id: int
    name: str
    updates: asyncio.Queue[GameUpdate | None]
    closed: bool = False
    overflowed: bool = False

    def offer(self, update: GameUpdate) -> bool:
        """Queue an update without blocking. Returns False when the buffer is full."""
        if self.closed:
            return False
        try:
            self.updates.put_nowait(update)
        except asyncio.QueueFull:
            return False
        return True

    def close(self, *, overflow: bool = False) -> None:
        """Stop accepting updates and wake the forwarder with the end sentinel.

        On overflow the pending updates are dropped: the client is going to be
        disconnected anyway and will get a fresh snapshot when it reconnects.
        """
        if self.closed:
            return
        self.closed = True
        self.overflowed = overflow
        if overflow:
            while not self.updates.empty():
                self.updates.get_nowait()
        elif self.updates.full():
            # make room for the sentinel
            self.updates.get_nowait()
        self.updates.put_nowait(None)


@dataclass
class ConnectEvent:
    name: str
    joined: asyncio.Future[PlayerSlot] = field(repr=False)


@dataclass
class DisconnectEvent:
    slot_id: int


@dataclass
class CommandEvent:
    slot_id: int
    command: ClientCommand


@dataclass
class FlushEvent:
    """Resolves its future once every event queued before it has been handled."""

    done: asyncio.Future[None] = field(repr=False)


RoomEvent = ConnectEvent | DisconnectEvent | CommandEvent | FlushEvent
