"""Encrypted blob tokens carried in game-launch links.

A blob identifies a player and the chat message a game was launched from, so
that a finished game's score can be reported back to the right place. The
bot creates blobs, the web client passes them back unchanged.

Token format: base64url_nopad(nonce(24) || secretbox(json_payload))

The key is generated at process start and passed explicitly; tokens do not
survive a restart, which matches the in-memory lifetime of everything else.
"""

from __future__ import annotations

import base64
import binascii
import json
from dataclasses import dataclass, fields

import structlog
from nacl.exceptions import CryptoError
from nacl.secret import SecretBox
from nacl.utils import random as random_bytes

logger = structlog.get_logger()

# compact JSON keys keep launch URLs short
_JSON_KEYS = {
    "game": "g",
    "user_id": "uid",
    "first_name": "fst",
    "chat_instance": "cin",
    "chat_id": "cid",
    "message_id": "mid",
    "inline_message_id": "iid",
}


class BlobError(Exception):
    """Token could not be decoded, authenticated, or parsed."""


@dataclass(frozen=True)
class BlobKey:
    """Symmetric key for blob tokens."""

    secret: bytes

    def __post_init__(self) -> None:
        if len(self.secret) != SecretBox.KEY_SIZE:
            raise ValueError(f"blob key must be {SecretBox.KEY_SIZE} bytes, got {len(self.secret)}")

    @classmethod
    def generate(cls) -> BlobKey:
        return cls(random_bytes(SecretBox.KEY_SIZE))


@dataclass(frozen=True)
class Blob:
    """Player and launch-message identity. Empty fields are omitted on the wire."""

    game: str = ""
    user_id: int = 0
    first_name: str = ""
    chat_instance: str = ""
    chat_id: int = 0
    message_id: int = 0
    inline_message_id: str = ""

    def to_json(self) -> bytes:
        payload = {_JSON_KEYS[f.name]: getattr(self, f.name) for f in fields(self) if getattr(self, f.name)}
        return json.dumps(payload, separators=(",", ":")).encode()

    @classmethod
    def from_json(cls, data: bytes) -> Blob:
        payload = json.loads(data)
        if not isinstance(payload, dict):
            raise TypeError("blob payload must be an object")
        names = {key: name for name, key in _JSON_KEYS.items()}
        return cls(**{names[key]: value for key, value in payload.items() if key in names})


def encode_blob(blob: Blob, key: BlobKey) -> str:
    """Encrypt and authenticate a blob, returning a URL-safe token."""
    sealed = SecretBox(key.secret).encrypt(blob.to_json())
    return base64.urlsafe_b64encode(bytes(sealed)).rstrip(b"=").decode()


def decode_blob(token: str, key: BlobKey) -> Blob:
    """Decrypt and parse a token. Raises BlobError on any failure."""
    try:
        sealed = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
    except (binascii.Error, ValueError) as e:
        raise BlobError("bad blob encoding") from e

    if len(sealed) < SecretBox.NONCE_SIZE + SecretBox.MACBYTES:
        raise BlobError("blob too short")

    try:
        data = SecretBox(key.secret).decrypt(sealed)
    except CryptoError as e:
        logger.debug("blob authentication failed")
        raise BlobError("bad blob") from e

    try:
        return Blob.from_json(data)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as e:
        raise BlobError("malformed blob payload") from e
