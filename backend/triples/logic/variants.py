"""Game variants: the closed set of game kinds a room can be created for."""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from triples.logic.exceptions import UnknownVariantError

ROWS = 3
ATTRIBUTE_VALUES = 3


class GameKind(StrEnum):
    """Game short names as used in launch links and room keys."""

    TRIPLES = "triples"
    QUADRUPLES = "quadruples"
    TRIPLES_SPRINT = "triplessprint"
    QUADRUPLES_SPRINT = "quadruplessprint"
    TRIPLES_MULTI = "triplesmulti"
    QUADRUPLES_MULTI = "quadruplesmulti"


class GameVariant(BaseModel):
    """Rules for one game kind.

    ``attributes`` is the number of base-3 digits per card, so the card space
    is ``range(3 ** attributes)``.
    """

    model_config = ConfigDict(frozen=True)

    kind: GameKind
    match_size: int = 3
    default_columns: int = 4
    attributes: int = 4
    scored: bool = True

    @property
    def deck_size(self) -> int:
        return ATTRIBUTE_VALUES**self.attributes

    @property
    def default_cells(self) -> int:
        return self.default_columns * ROWS

    def card_space(self) -> range:
        return range(self.deck_size)


VARIANTS: dict[GameKind, GameVariant] = {
    GameKind.TRIPLES: GameVariant(kind=GameKind.TRIPLES),
    GameKind.QUADRUPLES: GameVariant(kind=GameKind.QUADRUPLES, match_size=4, default_columns=5),
    GameKind.TRIPLES_SPRINT: GameVariant(kind=GameKind.TRIPLES_SPRINT, attributes=3),
    GameKind.QUADRUPLES_SPRINT: GameVariant(
        kind=GameKind.QUADRUPLES_SPRINT,
        match_size=4,
        default_columns=5,
        attributes=3,
    ),
    GameKind.TRIPLES_MULTI: GameVariant(kind=GameKind.TRIPLES_MULTI, scored=False),
    GameKind.QUADRUPLES_MULTI: GameVariant(
        kind=GameKind.QUADRUPLES_MULTI,
        match_size=4,
        default_columns=5,
        scored=False,
    ),
}


def get_variant(game_kind: str) -> GameVariant:
    """Look up the variant for a game kind string. Raises UnknownVariantError."""
    try:
        return VARIANTS[GameKind(game_kind)]
    except ValueError:
        raise UnknownVariantError(game_kind) from None


def scored_kinds() -> list[GameKind]:
    """Single-player kinds whose scores are reported upstream."""
    return [kind for kind, variant in VARIANTS.items() if variant.scored]
