"""Abstract connection protocol for MessagePack binary communication."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from triples.messaging.encoder import decode, encode_update

if TYPE_CHECKING:
    from triples.logic.events import GameUpdate


class ConnectionProtocol(ABC):
    """
    Abstract interface for one player's connection.

    Lets the client session be tested without a real WebSocket. Transports
    report a peer that has gone away as ConnectionError from send_bytes and
    receive_bytes.
    """

    @property
    @abstractmethod
    def connection_id(self) -> str:
        """Unique identifier for this connection, used in logs."""
        ...

    @abstractmethod
    async def send_bytes(self, data: bytes) -> None: ...

    @abstractmethod
    async def receive_bytes(self) -> bytes: ...

    @abstractmethod
    async def close(self, code: int = 1000, reason: str = "") -> None:
        """
        Close the connection. Closing twice is a no-op.
        """
        ...

    async def send_update(self, update: GameUpdate) -> None:
        """
        Send one room update in its MessagePack wire form.
        """
        await self.send_bytes(encode_update(update))

    async def receive_message(self) -> dict[str, Any]:
        """
        Receive and decode the next client message.

        Raises DecodeError for malformed MessagePack.
        """
        return decode(await self.receive_bytes())
