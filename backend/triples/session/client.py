"""Per-connection session: bridges one client connection to a room.

Two tasks run per connection. The reader decodes inbound messages into
commands and submits them to the room; the forwarder drains the slot's
update buffer onto the connection. Whichever ends first ends the session,
and the slot is then disconnected from the room.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from pydantic import ValidationError

from triples.messaging.encoder import DecodeError
from triples.messaging.types import UnknownMessageError, parse_client_message

if TYPE_CHECKING:
    from triples.messaging.protocol import ConnectionProtocol
    from triples.session.models import PlayerSlot
    from triples.session.room import Room

logger = logging.getLogger(__name__)

CLOSE_INVALID_MESSAGE = 4004
CLOSE_SLOW_CONSUMER = 4008


class RateLimiter(Protocol):
    def consume(self) -> bool: ...


async def serve_connection(
    room: Room,
    connection: ConnectionProtocol,
    name: str,
    *,
    rate_limiter: RateLimiter | None = None,
) -> None:
    """Join the room as ``name`` and serve the connection until either side ends it."""
    slot = await room.connect(name)
    reader = asyncio.create_task(read_commands(room, slot, connection, rate_limiter))
    forwarder = asyncio.create_task(forward_updates(slot, connection))
    try:
        done, _ = await asyncio.wait({reader, forwarder}, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                logger.error(
                    "session task failed for %s",
                    connection.connection_id,
                    exc_info=task.exception(),
                )
    finally:
        for task in (reader, forwarder):
            task.cancel()
        await asyncio.gather(reader, forwarder, return_exceptions=True)
        room.disconnect(slot.slot_id)


async def read_commands(
    room: Room,
    slot: PlayerSlot,
    connection: ConnectionProtocol,
    rate_limiter: RateLimiter | None = None,
) -> None:
    """Submit inbound commands to the room until the connection ends or misbehaves."""
    while True:
        try:
            message = parse_client_message(await connection.receive_message())
        except (ConnectionError, RuntimeError):
            return
        except UnknownMessageError as e:
            logger.warning("ignoring message from %s: %s", connection.connection_id, e)
            continue
        except (DecodeError, ValidationError) as e:
            logger.warning("invalid message from %s, closing: %s", connection.connection_id, e)
            await connection.close(code=CLOSE_INVALID_MESSAGE, reason="invalid_message")
            return

        if rate_limiter is not None and not rate_limiter.consume():
            logger.warning("rate limited %s, dropping %s", connection.connection_id, message.type)
            continue
        room.submit(slot.slot_id, message)


async def forward_updates(slot: PlayerSlot, connection: ConnectionProtocol) -> None:
    """Send the slot's updates in order until the slot is closed or a write fails."""
    while (update := await slot.updates.get()) is not None:
        try:
            await connection.send_update(update)
        except (ConnectionError, RuntimeError, OSError) as e:
            logger.info("send to %s failed: %s", connection.connection_id, e)
            return
    if slot.overflowed:
        await connection.close(code=CLOSE_SLOW_CONSUMER, reason="slow_consumer")
