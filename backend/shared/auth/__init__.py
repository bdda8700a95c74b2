"""Launch-link tokens shared between the bot integration and the game server."""

from shared.auth.blob import Blob, BlobError, BlobKey, decode_blob, encode_blob

__all__ = [
    "Blob",
    "BlobError",
    "BlobKey",
    "decode_blob",
    "encode_blob",
]
