"""Typed domain exceptions for the card game.

Claims that do not fit the current board are not errors: they resolve to a
``late`` claim result. These exceptions cover configuration and programming
mistakes that callers must handle explicitly.
"""


class GameRuleError(Exception):
    """Base exception for game rule violations."""


class UnknownVariantError(GameRuleError):
    """The requested game kind is not a registered variant."""

    def __init__(self, game_kind: str) -> None:
        self.game_kind = game_kind
        super().__init__(f"unknown game kind: {game_kind!r}")


class InvalidDeckError(GameRuleError):
    """A deck or seed does not describe a valid permutation of the card space."""
