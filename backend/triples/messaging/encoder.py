"""MessagePack framing for the game WebSocket.

Every frame in either direction is one MessagePack map. Outbound updates are
dumped from their pydantic models with wire aliases; inbound frames are
unpacked under tight limits, since a client never needs more than a claim
listing one board's worth of card numbers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import msgpack

if TYPE_CHECKING:
    from triples.logic.events import GameUpdate

MAX_BUFFER_LEN = 16 * 1024

# per-object limits for msgpack.unpackb; extension types are never valid
_UNPACK_LIMITS = {
    "max_str_len": 1024,
    "max_bin_len": 1024,
    "max_array_len": 256,
    "max_map_len": 16,
    "max_ext_len": 0,
}


class DecodeError(Exception):
    """Frame is oversized, not MessagePack, or not a map."""


def encode(data: dict[str, Any]) -> bytes:
    return msgpack.packb(data)


def encode_update(update: GameUpdate) -> bytes:
    """Encode an update event using its wire field names ("from"/"to" for moves)."""
    return encode(update.model_dump(mode="json", by_alias=True))


def decode(data: bytes) -> dict[str, Any]:
    if len(data) > MAX_BUFFER_LEN:
        raise DecodeError(f"frame of {len(data)} bytes exceeds {MAX_BUFFER_LEN}")
    try:
        result = msgpack.unpackb(data, raw=False, **_UNPACK_LIMITS)
    except (msgpack.UnpackException, ValueError) as e:
        raise DecodeError(f"not a MessagePack frame: {e}") from e
    if not isinstance(result, dict):
        raise DecodeError(f"expected a map, got {type(result).__name__}")
    return result
