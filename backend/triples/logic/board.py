"""
Board layout and dealing.

The board is a sparse grid of 3 rows and a growing number of columns.
Cells are visited in column-major order: x outer, y inner, so (0, 0),
(0, 1), (0, 2), (1, 0), ...

Populated cells stay left-packed within the default rectangle; extra
columns only appear to the right of it after a correct no-match claim,
and compaction pulls their cards back into holes left by matches.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import NamedTuple

from triples.logic.variants import ROWS


class Position(NamedTuple):
    x: int
    y: int


class Move(NamedTuple):
    source: Position
    target: Position


@dataclass
class Board:
    """Mapping of grid position to card. Absent positions are empty."""

    cards: dict[Position, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.cards)

    def __contains__(self, position: object) -> bool:
        return position in self.cards

    def columns(self, default_columns: int) -> int:
        """Column bound: the default width or one past the rightmost occupied column."""
        if not self.cards:
            return default_columns
        return max(default_columns, 1 + max(p.x for p in self.cards))

    def card_set(self) -> set[int]:
        return set(self.cards.values())

    def positions_of(self, cards: set[int]) -> list[Position]:
        """Positions holding any of the given cards, in column-major order."""
        return sorted(p for p, card in self.cards.items() if card in cards)

    def remove(self, positions: list[Position]) -> list[int]:
        """Remove the cards at the given positions and return them."""
        return [self.cards.pop(p) for p in positions]

    def sorted_items(self) -> list[tuple[Position, int]]:
        return sorted(self.cards.items())


def cells(start_column: int, end_column: int) -> list[Position]:
    """All cells of the columns in [start_column, end_column), column-major."""
    return [Position(x, y) for x in range(start_column, end_column) for y in range(ROWS)]


def _fill(board: Board, deck: list[int], targets: list[Position]) -> dict[Position, int]:
    placed: dict[Position, int] = {}
    for position in targets:
        if not deck:
            break
        if position in board:
            continue
        card = deck.pop(0)
        board.cards[position] = card
        placed[position] = card
    return placed


def deal(board: Board, deck: list[int], default_columns: int) -> dict[Position, int]:
    """
    Fill the empty cells of the default rectangle from the front of the deck.

    Stops early when the deck runs out. Returns the newly placed cards.
    """
    return _fill(board, deck, cells(0, default_columns))


def deal_more(board: Board, deck: list[int], default_columns: int) -> dict[Position, int]:
    """Append one column at the current column bound, as far as the deck allows."""
    column = board.columns(default_columns)
    return _fill(board, deck, cells(column, column + 1))


def _first_empty(board: Board, default_columns: int) -> Position | None:
    for position in cells(0, board.columns(default_columns)):
        if position not in board:
            return position
    return None


def compact(board: Board, default_columns: int) -> list[Move]:
    """
    Move cards from the extra columns into holes, keeping the board left-packed.

    Repeatedly moves the last card (column-major) into the first hole while
    that card lies outside the default rectangle and after the hole. Returns
    the moves made; an already packed board yields no moves.
    """
    moves: list[Move] = []
    while board.cards:
        hole = _first_empty(board, default_columns)
        if hole is None:
            break
        last = max(board.cards)
        if last.x < default_columns or last < hole:
            break
        board.cards[hole] = board.cards.pop(last)
        moves.append(Move(source=last, target=hole))
    return moves
