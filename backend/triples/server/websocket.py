from __future__ import annotations

import contextlib
import re
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from starlette.websockets import WebSocket, WebSocketDisconnect

from triples.logic.variants import VARIANTS
from triples.messaging.protocol import ConnectionProtocol
from triples.server.rate_limit import TokenBucket
from triples.session.client import serve_connection

logger = structlog.get_logger()

if TYPE_CHECKING:
    from triples.server.settings import GameServerSettings
    from triples.session.registry import RoomRegistry

CLOSE_INVALID_REQUEST = 4000

_ROOM_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
_MAX_ROOM_ID_LENGTH = 128
_MAX_NAME_LENGTH = 64


class WebSocketConnection(ConnectionProtocol):
    def __init__(self, websocket: WebSocket, connection_id: str | None = None) -> None:
        self._websocket = websocket
        self._connection_id = connection_id or str(uuid4())

    @property
    def connection_id(self) -> str:
        return self._connection_id

    async def send_bytes(self, data: bytes) -> None:
        try:
            await self._websocket.send_bytes(data)
        except WebSocketDisconnect:
            raise ConnectionError("WebSocket already disconnected") from None

    async def receive_bytes(self) -> bytes:
        message = await self._websocket.receive()
        if message["type"] == "websocket.disconnect":
            raise ConnectionError("WebSocket disconnected")
        data = message.get("bytes")
        if data is None:
            # text frames are not part of the protocol; let the decoder reject them
            data = (message.get("text") or "").encode()
        return data

    async def close(self, code: int = 1000, reason: str = "") -> None:
        with contextlib.suppress(WebSocketDisconnect, RuntimeError):
            await self._websocket.close(code=code, reason=reason)


def validate_join_params(game: str, room_id: str, name: str) -> str | None:
    """Return the rejection reason for a join request, or None if it is valid."""
    if game not in VARIANTS:
        return "unknown_game"
    if not _ROOM_ID_PATTERN.match(room_id) or len(room_id) > _MAX_ROOM_ID_LENGTH:
        return "invalid_room"
    if not name.strip() or len(name) > _MAX_NAME_LENGTH:
        return "invalid_name"
    return None


async def websocket_endpoint(
    websocket: WebSocket,
    registry: RoomRegistry,
    settings: GameServerSettings,
) -> None:
    params = websocket.query_params
    game = params.get("game", "")
    room_id = params.get("room", "")
    name = params.get("name", "")

    rejection = validate_join_params(game, room_id, name)
    if rejection is not None:
        logger.info("join rejected", reason=rejection, game=game, room=room_id)
        await websocket.close(code=CLOSE_INVALID_REQUEST, reason=rejection)
        return

    await websocket.accept()

    connection = WebSocketConnection(websocket)
    structlog.contextvars.bind_contextvars(connection_id=connection.connection_id, game=game, room=room_id)
    logger.info("websocket connected", name=name)

    bucket = TokenBucket(rate=settings.rate_limit_per_second, burst=settings.rate_limit_burst)
    try:
        async with registry.join(game, room_id) as room:
            await serve_connection(room, connection, name, rate_limiter=bucket)
    finally:
        logger.info("websocket disconnected", dropped_commands=bucket.dropped)
        await connection.close()
        structlog.contextvars.clear_contextvars()
