"""Update event models produced by the game logic layer.

Every state change a room broadcasts is one of these models. The set is
closed and discriminated by the ``type`` field, whose values are the tag
names clients dispatch on.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from triples.logic.types import (
    CardAt,
    ClaimResult,
    ClaimType,
    MoveView,
    PlayerInfo,
    PositionView,
    Score,
)


class UpdateType(StrEnum):
    FULL = "full"
    EVENT_ONLINE = "eventOnline"
    EVENT_CLAIMED = "eventClaimed"
    EVENT_MATCH_COUNT = "eventMatchCount"
    CHANGE_MATCH = "changeMatch"
    CHANGE_DEAL = "changeDeal"
    CHANGE_MOVE = "changeMove"


class GameUpdate(BaseModel):
    """Base class for all update events."""

    model_config = ConfigDict(frozen=True)

    type: UpdateType


class FullUpdate(GameUpdate):
    """Complete room state: board, deck size and every known player."""

    type: Literal[UpdateType.FULL] = UpdateType.FULL
    game: str
    active: bool
    rows: int
    columns: int
    match_size: int
    deck_remaining: int
    cards: list[CardAt] = Field(default_factory=list)
    players: list[PlayerInfo] = Field(default_factory=list)


class OnlineEvent(GameUpdate):
    """A player name came online or went offline."""

    type: Literal[UpdateType.EVENT_ONLINE] = UpdateType.EVENT_ONLINE
    name: str
    present: bool


class ClaimedEvent(GameUpdate):
    """Outcome of a claim, with the claimant's updated counters."""

    type: Literal[UpdateType.EVENT_CLAIMED] = UpdateType.EVENT_CLAIMED
    name: str
    claim: ClaimType
    result: ClaimResult
    score: Score


class MatchCountEvent(GameUpdate):
    """Number of matches on the board, revealed after a wrong no-match claim."""

    type: Literal[UpdateType.EVENT_MATCH_COUNT] = UpdateType.EVENT_MATCH_COUNT
    count: int


class MatchChange(GameUpdate):
    type: Literal[UpdateType.CHANGE_MATCH] = UpdateType.CHANGE_MATCH
    positions: list[PositionView]


class DealChange(GameUpdate):
    type: Literal[UpdateType.CHANGE_DEAL] = UpdateType.CHANGE_DEAL
    cards: list[CardAt]


class MoveChange(GameUpdate):
    type: Literal[UpdateType.CHANGE_MOVE] = UpdateType.CHANGE_MOVE
    moves: list[MoveView]


Update = Annotated[
    FullUpdate | OnlineEvent | ClaimedEvent | MatchCountEvent | MatchChange | DealChange | MoveChange,
    Field(discriminator="type"),
]

_update_adapter = TypeAdapter(Update)


def parse_update(data: dict[str, Any]) -> GameUpdate:
    """Rebuild an update model from its wire dict (the shape ``encode_update`` emits)."""
    return _update_adapter.validate_python(data)
