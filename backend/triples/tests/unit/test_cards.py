from itertools import combinations, permutations

import pytest

from triples.logic.cards import (
    QUADRUPLE,
    TRIPLE,
    card_digits,
    count_matches,
    find_matches,
    has_match,
    is_match,
    is_quadruple,
    is_triple,
)
from triples.tests.helpers import CAP_SET


class TestCardDigits:
    def test_least_significant_digit_first(self):
        assert card_digits(0) == (0, 0, 0, 0)
        assert card_digits(1) == (1, 0, 0, 0)
        assert card_digits(3) == (0, 1, 0, 0)
        assert card_digits(80) == (2, 2, 2, 2)

    def test_custom_attribute_count(self):
        assert card_digits(26, 3) == (2, 2, 2)

    def test_negative_card_rejected(self):
        with pytest.raises(ValueError, match="non-negative"):
            card_digits(-1)


class TestTriples:
    def test_all_same_or_all_different_is_a_triple(self):
        # attribute 0 all different, the rest all the same
        assert is_triple(0, 1, 2)
        # every attribute different
        assert is_triple(0, 40, 80)

    def test_two_same_one_different_is_not_a_triple(self):
        assert not is_triple(0, 1, 3)

    def test_symmetric_under_permutation(self):
        for cards in [(0, 1, 2), (0, 40, 80), (0, 1, 3), (5, 17, 70)]:
            results = {is_match(list(p)) for p in permutations(cards)}
            assert len(results) == 1

    def test_any_two_cards_complete_to_exactly_one_third(self):
        for a, b in [(0, 1), (7, 52), (80, 13)]:
            thirds = [c for c in range(81) if c not in (a, b) and is_triple(a, b, c)]
            assert len(thirds) == 1

    def test_cap_set_has_no_triple(self):
        assert not has_match(CAP_SET)


class TestQuadruples:
    def test_pairs_with_equal_sums_match(self):
        # (0, 4) and (1, 3) both sum to (1, 1, 0, 0)
        assert is_quadruple(0, 1, 3, 4)

    def test_symmetric_under_permutation(self):
        for cards in [(0, 1, 3, 4), (0, 1, 2, 5), (10, 20, 30, 40)]:
            results = {is_match(list(p), QUADRUPLE) for p in permutations(cards)}
            assert len(results) == 1

    def test_no_pairing_means_no_match(self):
        assert not is_quadruple(0, 1, 2, 5)

    def test_triple_plus_any_card_is_not_automatically_a_quadruple(self):
        # 0, 1, 2 is a triple; adding 3 gives pair sums that never agree
        assert not is_match([0, 1, 2, 3], QUADRUPLE)


class TestIsMatch:
    def test_wrong_size_is_not_a_match(self):
        assert not is_match([0, 1], TRIPLE)
        assert not is_match([0, 1, 2, 3], TRIPLE)

    def test_duplicates_are_not_a_match(self):
        assert not is_match([0, 0, 0], TRIPLE)
        assert not is_match([0, 0, 1, 1], QUADRUPLE)

    def test_unsupported_size_raises(self):
        with pytest.raises(ValueError, match="unsupported match size"):
            is_match([0, 1, 2, 3, 4], 5)


class TestFindMatches:
    def test_full_deck_has_1080_triples(self):
        assert count_matches(range(81)) == 1080

    def test_matches_are_sorted_tuples_from_the_input(self):
        matches = list(find_matches([2, 1, 0, 3]))

        assert matches == [(0, 1, 2)]

    def test_every_found_quadruple_is_a_match(self):
        cards = list(range(15))
        found = set(find_matches(cards, QUADRUPLE))

        assert found == {c for c in combinations(cards, QUADRUPLE) if is_match(c, QUADRUPLE)}
        assert found

    def test_has_match_on_empty_board(self):
        assert not has_match([])
