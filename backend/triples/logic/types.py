"""
Shared value types for the game logic layer.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class ClaimType(StrEnum):
    MATCH = "match"
    NOMATCH = "nomatch"


class ClaimResult(StrEnum):
    CORRECT = "correct"
    WRONG = "wrong"
    LATE = "late"


class Score(BaseModel):
    """Per-player claim counters, kept for the lifetime of a room."""

    match_correct: int = 0
    match_wrong: int = 0
    nomatch_correct: int = 0
    nomatch_wrong: int = 0

    @property
    def total(self) -> int:
        """Net score: correct claims minus wrong claims."""
        return self.match_correct + self.nomatch_correct - self.match_wrong - self.nomatch_wrong

    def record(self, claim_type: ClaimType, *, correct: bool) -> None:
        if claim_type == ClaimType.MATCH:
            if correct:
                self.match_correct += 1
            else:
                self.match_wrong += 1
        elif correct:
            self.nomatch_correct += 1
        else:
            self.nomatch_wrong += 1


class CardAt(BaseModel):
    """A card at a board position."""

    model_config = ConfigDict(frozen=True)

    x: int
    y: int
    card: int


class PositionView(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: int
    y: int


class MoveView(BaseModel):
    """A card relocation during compaction; serialized as {"from": ..., "to": ...}."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    source: PositionView = Field(alias="from")
    target: PositionView = Field(alias="to")


class PlayerInfo(BaseModel):
    """Presence and score of one player in a full-state snapshot."""

    model_config = ConfigDict(frozen=True)

    name: str
    present: bool
    score: Score
