"""
Round state and claim transitions.

A Game is one round: deck, board, the pile of matched cards and the
no-match flag. Scores belong to the room and are shared with the Game by
reference, so counters carry over from round to round.

All methods are synchronous and return the update events to broadcast.
The room actor is the only caller, so no locking happens here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from triples.logic.board import Board, Position, compact, deal, deal_more
from triples.logic.cards import count_matches, has_match, is_match
from triples.logic.events import (
    ClaimedEvent,
    DealChange,
    FullUpdate,
    MatchChange,
    MatchCountEvent,
    MoveChange,
)
from triples.logic.rng import generate_seed, shuffled_deck
from triples.logic.types import (
    CardAt,
    ClaimResult,
    ClaimType,
    MoveView,
    PlayerInfo,
    PositionView,
    Score,
)
from triples.logic.variants import ROWS

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from triples.logic.board import Move
    from triples.logic.events import GameUpdate
    from triples.logic.variants import GameVariant


@dataclass
class ClaimOutcome:
    """Result of a claim and the updates to broadcast right away."""

    result: ClaimResult
    updates: list[GameUpdate] = field(default_factory=list)


def _card_views(placed: dict[Position, int]) -> list[CardAt]:
    return [CardAt(x=p.x, y=p.y, card=card) for p, card in sorted(placed.items())]


def _deal_change(placed: dict[Position, int]) -> DealChange | None:
    if not placed:
        return None
    return DealChange(cards=_card_views(placed))


def _move_change(moves: list[Move]) -> MoveChange | None:
    if not moves:
        return None
    return MoveChange(
        moves=[
            MoveView(
                source=PositionView(x=m.source.x, y=m.source.y),
                target=PositionView(x=m.target.x, y=m.target.y),
            )
            for m in moves
        ],
    )


def ensure_score(scores: dict[str, Score], name: str) -> Score:
    """Return the score entry for a name, creating it at zero on first sighting."""
    score = scores.get(name)
    if score is None:
        score = Score()
        scores[name] = score
    return score


def late_claim(scores: dict[str, Score], name: str, claim_type: ClaimType) -> ClaimOutcome:
    """Outcome for a claim that no longer applies. Nothing changes."""
    score = ensure_score(scores, name)
    return ClaimOutcome(
        result=ClaimResult.LATE,
        updates=[ClaimedEvent(name=name, claim=claim_type, result=ClaimResult.LATE, score=score.model_copy())],
    )


def full_update(
    variant: GameVariant,
    game: Game | None,
    scores: dict[str, Score],
    present: set[str],
) -> FullUpdate:
    """Snapshot of the room: the board of the active round (if any) and every known player."""
    players = [
        PlayerInfo(name=name, present=name in present, score=score.model_copy())
        for name, score in sorted(scores.items())
    ]
    if game is None:
        return FullUpdate(
            game=variant.kind,
            active=False,
            rows=ROWS,
            columns=variant.default_columns,
            match_size=variant.match_size,
            deck_remaining=0,
            players=players,
        )
    return FullUpdate(
        game=variant.kind,
        active=True,
        rows=ROWS,
        columns=game.columns,
        match_size=variant.match_size,
        deck_remaining=len(game.deck),
        cards=_card_views(game.board.cards),
        players=players,
    )


@dataclass
class Game:
    variant: GameVariant
    deck: list[int]
    scores: dict[str, Score]
    seed: str = ""
    board: Board = field(default_factory=Board)
    discarded: list[int] = field(default_factory=list)
    nomatch_claimed: bool = False

    @classmethod
    def create(
        cls,
        variant: GameVariant,
        scores: dict[str, Score],
        player_names: Iterable[str],
        *,
        seed: str | None = None,
    ) -> Game:
        """Start a round with a freshly shuffled deck and an empty board."""
        if seed is None:
            seed = generate_seed()
        for name in player_names:
            ensure_score(scores, name)
        return cls(
            variant=variant,
            deck=shuffled_deck(variant.card_space(), seed),
            scores=scores,
            seed=seed,
        )

    @property
    def columns(self) -> int:
        return self.board.columns(self.variant.default_columns)

    @property
    def card_count(self) -> int:
        """Cards accounted for: deck, board and matched pile."""
        return len(self.deck) + len(self.board) + len(self.discarded)

    def match_count(self) -> int:
        return count_matches(self.board.card_set(), self.variant.match_size)

    def is_over(self) -> bool:
        """The round ends when the deck is empty and the board holds no match."""
        return not self.deck and not has_match(self.board.card_set(), self.variant.match_size)

    def deal(self) -> DealChange | None:
        """Fill holes in the default rectangle from the deck."""
        placed = deal(self.board, self.deck, self.variant.default_columns)
        if placed:
            self.nomatch_claimed = False
        return _deal_change(placed)

    def deal_more(self) -> DealChange | None:
        """Deal one extra column."""
        placed = deal_more(self.board, self.deck, self.variant.default_columns)
        if placed:
            self.nomatch_claimed = False
        return _deal_change(placed)

    def compact(self) -> MoveChange | None:
        return _move_change(compact(self.board, self.variant.default_columns))

    def settle(self) -> list[GameUpdate]:
        """Compact and refill the board after a match removed cards."""
        updates: list[GameUpdate] = []
        moved = self.compact()
        if moved is not None:
            updates.append(moved)
        dealt = self.deal()
        if dealt is not None:
            updates.append(dealt)
        return updates

    def claim_match(self, name: str, cards: Sequence[int]) -> ClaimOutcome:
        """
        Validate a match claim.

        Late when the cards are not exactly match_size distinct cards on the
        board. A correct claim removes the cards; the caller settles the
        board afterwards via settle().
        """
        size = self.variant.match_size
        claimed = set(cards)
        if len(cards) != size or len(claimed) != size or not claimed <= self.board.card_set():
            return late_claim(self.scores, name, ClaimType.MATCH)

        score = ensure_score(self.scores, name)
        if not is_match(list(cards), size):
            score.record(ClaimType.MATCH, correct=False)
            return ClaimOutcome(
                result=ClaimResult.WRONG,
                updates=[
                    ClaimedEvent(
                        name=name,
                        claim=ClaimType.MATCH,
                        result=ClaimResult.WRONG,
                        score=score.model_copy(),
                    ),
                ],
            )

        positions = self.board.positions_of(claimed)
        self.discarded.extend(self.board.remove(positions))
        self.nomatch_claimed = False
        score.record(ClaimType.MATCH, correct=True)
        return ClaimOutcome(
            result=ClaimResult.CORRECT,
            updates=[
                ClaimedEvent(name=name, claim=ClaimType.MATCH, result=ClaimResult.CORRECT, score=score.model_copy()),
                MatchChange(positions=[PositionView(x=p.x, y=p.y) for p in positions]),
            ],
        )

    def claim_nomatch(self, name: str, cards: Sequence[int]) -> ClaimOutcome:
        """
        Validate a claim that the board holds no match.

        The claim must list exactly the cards on the board, in any order.
        Only one no-match claim is accepted per board state.
        """
        claimed = set(cards)
        if self.nomatch_claimed or len(claimed) != len(cards) or claimed != self.board.card_set():
            return late_claim(self.scores, name, ClaimType.NOMATCH)

        self.nomatch_claimed = True
        score = ensure_score(self.scores, name)
        matches = self.match_count()
        if matches:
            score.record(ClaimType.NOMATCH, correct=False)
            return ClaimOutcome(
                result=ClaimResult.WRONG,
                updates=[
                    ClaimedEvent(
                        name=name,
                        claim=ClaimType.NOMATCH,
                        result=ClaimResult.WRONG,
                        score=score.model_copy(),
                    ),
                    MatchCountEvent(count=matches),
                ],
            )

        score.record(ClaimType.NOMATCH, correct=True)
        updates: list[GameUpdate] = [
            ClaimedEvent(name=name, claim=ClaimType.NOMATCH, result=ClaimResult.CORRECT, score=score.model_copy()),
        ]
        dealt = self.deal_more()
        if dealt is not None:
            updates.append(dealt)
        return ClaimOutcome(result=ClaimResult.CORRECT, updates=updates)
