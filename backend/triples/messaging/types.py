from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, TypeAdapter

from triples.logic.types import ClaimType

# largest card space and board of any variant
_MAX_CARD = 81
_MAX_CLAIM_CARDS = 81


class ClientMessageType(StrEnum):
    START = "start"
    CLAIM = "claim"


class UnknownMessageError(ValueError):
    """Message tag (or claim type) this server does not know. Ignored, not fatal."""


class StartCommand(BaseModel):
    type: Literal[ClientMessageType.START] = ClientMessageType.START


class Claim(BaseModel):
    type: ClaimType
    cards: list[Annotated[int, Field(ge=0, lt=_MAX_CARD)]] = Field(max_length=_MAX_CLAIM_CARDS)


class ClaimCommand(BaseModel):
    type: Literal[ClientMessageType.CLAIM] = ClientMessageType.CLAIM
    claim: Claim


ClientCommand = Annotated[StartCommand | ClaimCommand, Field(discriminator="type")]

_command_adapter = TypeAdapter(ClientCommand)

_KNOWN_TYPES = frozenset(ClientMessageType)
_KNOWN_CLAIMS = frozenset(ClaimType)


def parse_client_message(data: dict[str, Any]) -> StartCommand | ClaimCommand:
    """Parse a raw dict into a typed command.

    Raises UnknownMessageError for unknown tags, and pydantic's ValidationError
    when a known tag carries malformed fields.
    """
    message_type = data.get("type")
    if not isinstance(message_type, str) or message_type not in _KNOWN_TYPES:
        raise UnknownMessageError(f"unknown message type: {message_type!r}")
    claim = data.get("claim")
    if message_type == ClientMessageType.CLAIM and isinstance(claim, dict):
        claim_type = claim.get("type")
        if not isinstance(claim_type, str) or claim_type not in _KNOWN_CLAIMS:
            raise UnknownMessageError(f"unknown claim type: {claim_type!r}")
    return _command_adapter.validate_python(data)
