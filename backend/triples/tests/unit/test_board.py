from triples.logic.board import Board, Move, Position, cells, compact, deal, deal_more
from triples.logic.cards import count_matches
from triples.tests.helpers import board_from

DEFAULT_COLUMNS = 4


class TestCells:
    def test_column_major_order(self):
        assert cells(0, 2) == [
            Position(0, 0),
            Position(0, 1),
            Position(0, 2),
            Position(1, 0),
            Position(1, 1),
            Position(1, 2),
        ]

    def test_empty_range(self):
        assert cells(3, 3) == []


class TestColumns:
    def test_empty_board_uses_default_width(self):
        assert Board().columns(DEFAULT_COLUMNS) == DEFAULT_COLUMNS

    def test_extra_column_widens_the_board(self):
        board = board_from(list(range(15)))

        assert board.columns(DEFAULT_COLUMNS) == 5

    def test_sparse_default_rectangle_keeps_default_width(self):
        board = Board({Position(0, 0): 1})

        assert board.columns(DEFAULT_COLUMNS) == DEFAULT_COLUMNS


class TestDeal:
    def test_fills_default_rectangle_from_front_of_deck(self):
        board = Board()
        deck = list(range(20))

        placed = deal(board, deck, DEFAULT_COLUMNS)

        assert len(placed) == 12
        assert board.cards[Position(0, 0)] == 0
        assert board.cards[Position(3, 2)] == 11
        assert deck == list(range(12, 20))

    def test_only_fills_holes(self):
        board = board_from(list(range(12)))
        board.remove([Position(1, 1), Position(2, 0)])
        deck = [50, 51, 52]

        placed = deal(board, deck, DEFAULT_COLUMNS)

        assert placed == {Position(1, 1): 50, Position(2, 0): 51}
        assert deck == [52]

    def test_stops_when_deck_runs_out(self):
        board = Board()
        deck = [7, 8]

        placed = deal(board, deck, DEFAULT_COLUMNS)

        assert len(placed) == 2
        assert deck == []

    def test_deck_shrinks_by_exactly_the_placed_count(self):
        for deck_size in (0, 5, 12, 30):
            board = Board()
            deck = list(range(deck_size))

            placed = deal(board, deck, DEFAULT_COLUMNS)

            assert len(deck) == deck_size - len(placed)
            assert len(placed) <= 12

    def test_deal_more_appends_one_column(self):
        board = board_from(list(range(12)))
        deck = [20, 21, 22, 23]

        placed = deal_more(board, deck, DEFAULT_COLUMNS)

        assert placed == {Position(4, 0): 20, Position(4, 1): 21, Position(4, 2): 22}
        assert deck == [23]

    def test_dealing_the_whole_deck(self):
        """12 cards, then one extra column at a time until the deck is empty."""
        board = Board()
        deck = list(range(81))

        deal(board, deck, DEFAULT_COLUMNS)
        assert len(board) == 12
        while deck:
            deal_more(board, deck, DEFAULT_COLUMNS)

        assert len(board) == 81
        assert board.columns(DEFAULT_COLUMNS) == 27
        assert count_matches(board.card_set()) == 1080


class TestCompact:
    def test_extra_column_fills_holes(self):
        board = board_from(list(range(15)))
        board.remove([Position(0, 0), Position(1, 1), Position(2, 2)])

        moves = compact(board, DEFAULT_COLUMNS)

        assert moves == [
            Move(Position(4, 2), Position(0, 0)),
            Move(Position(4, 1), Position(1, 1)),
            Move(Position(4, 0), Position(2, 2)),
        ]
        assert board.cards[Position(0, 0)] == 14
        assert board.cards[Position(1, 1)] == 13
        assert board.cards[Position(2, 2)] == 12
        assert board.columns(DEFAULT_COLUMNS) == DEFAULT_COLUMNS

    def test_holes_inside_default_rectangle_stay_without_extra_columns(self):
        board = board_from(list(range(12)))
        board.remove([Position(0, 0), Position(0, 1), Position(0, 2)])

        assert compact(board, DEFAULT_COLUMNS) == []
        assert len(board) == 9

    def test_match_removed_from_extra_columns(self):
        board = board_from(list(range(18)))
        board.remove([Position(4, 0), Position(4, 1), Position(4, 2)])

        moves = compact(board, DEFAULT_COLUMNS)

        assert moves == [
            Move(Position(5, 2), Position(4, 0)),
            Move(Position(5, 1), Position(4, 1)),
            Move(Position(5, 0), Position(4, 2)),
        ]
        assert board.columns(DEFAULT_COLUMNS) == 5

    def test_partial_extra_column_moves_only_what_lies_outside(self):
        board = board_from(list(range(13)))
        board.remove([Position(0, 0), Position(0, 1), Position(0, 2)])

        moves = compact(board, DEFAULT_COLUMNS)

        assert moves == [Move(Position(4, 0), Position(0, 0))]
        assert Position(0, 1) not in board
        assert Position(0, 2) not in board

    def test_idempotent(self):
        board = board_from(list(range(18)))
        board.remove([Position(0, 1), Position(2, 0), Position(3, 2)])

        compact(board, DEFAULT_COLUMNS)
        snapshot = dict(board.cards)

        assert compact(board, DEFAULT_COLUMNS) == []
        assert board.cards == snapshot

    def test_empty_board(self):
        assert compact(Board(), DEFAULT_COLUMNS) == []


class TestBoardHelpers:
    def test_positions_of_in_column_major_order(self):
        board = board_from([5, 6, 7, 8])

        assert board.positions_of({8, 5}) == [Position(0, 0), Position(1, 0)]

    def test_remove_returns_cards(self):
        board = board_from([5, 6, 7])

        assert board.remove([Position(0, 2), Position(0, 0)]) == [7, 5]
        assert board.card_set() == {6}
