"""
Card encoding and the match rule.

A card is an integer whose base-3 digits are its attribute values
(least significant digit first). The standard deck has 4 attributes,
so cards are the integers 0-80.

Triples: three cards match when, for every attribute, the three values
are all equal or all distinct. With values in {0, 1, 2} that is the same
as the digit sum being divisible by 3.

Quadruples: four cards match when they can be split into two pairs that
complete to the same missing card. For a pair (a, b) the completing digit
is -(a + b) mod 3, so the split {a, b} / {c, d} works when
a + b == c + d (mod 3) for every attribute.
"""

from collections.abc import Iterable, Iterator, Sequence
from functools import cache
from itertools import combinations

from triples.logic.variants import ATTRIBUTE_VALUES

STANDARD_ATTRIBUTES = 4
TRIPLE = 3
QUADRUPLE = 4

# the three ways to split four cards into two pairs, by index
_PAIRINGS = (((0, 1), (2, 3)), ((0, 2), (1, 3)), ((0, 3), (1, 2)))


@cache
def card_digits(card: int, attributes: int = STANDARD_ATTRIBUTES) -> tuple[int, ...]:
    """Return the attribute values of a card, least significant digit first."""
    if card < 0:
        raise ValueError(f"card must be non-negative, got {card}")
    digits = []
    for _ in range(attributes):
        card, digit = divmod(card, ATTRIBUTE_VALUES)
        digits.append(digit)
    return tuple(digits)


def is_triple(a: int, b: int, c: int) -> bool:
    return all(
        (x + y + z) % ATTRIBUTE_VALUES == 0
        for x, y, z in zip(card_digits(a), card_digits(b), card_digits(c), strict=True)
    )


def _pair_sums(a: int, b: int) -> tuple[int, ...]:
    return tuple((x + y) % ATTRIBUTE_VALUES for x, y in zip(card_digits(a), card_digits(b), strict=True))


def is_quadruple(a: int, b: int, c: int, d: int) -> bool:
    cards = (a, b, c, d)
    for (i, j), (k, m) in _PAIRINGS:
        if _pair_sums(cards[i], cards[j]) == _pair_sums(cards[k], cards[m]):
            return True
    return False


def is_match(cards: Sequence[int], size: int = TRIPLE) -> bool:
    """
    Check whether the given cards form a match of the given size.

    Cards must be distinct and exactly ``size`` many; anything else is
    not a match.
    """
    if len(cards) != size or len(set(cards)) != size:
        return False
    if size == TRIPLE:
        return is_triple(*cards)
    if size == QUADRUPLE:
        return is_quadruple(*cards)
    raise ValueError(f"unsupported match size: {size}")


def find_matches(cards: Iterable[int], size: int = TRIPLE) -> Iterator[tuple[int, ...]]:
    """Yield every match among the given cards (exhaustive search)."""
    for combo in combinations(sorted(cards), size):
        if is_match(combo, size):
            yield combo


def count_matches(cards: Iterable[int], size: int = TRIPLE) -> int:
    return sum(1 for _ in find_matches(cards, size))


def has_match(cards: Iterable[int], size: int = TRIPLE) -> bool:
    return next(find_matches(cards, size), None) is not None
