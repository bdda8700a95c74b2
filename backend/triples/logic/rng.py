"""
Random number generation for deck shuffling.

1. Generate a cryptographic seed (32 bytes) via the secrets module
2. Derive the shuffle state via SHA512 with domain separation (versioned prefix)
3. Shuffle the card space with a Random instance seeded from that digest

The same seed always yields the same deck, which keeps rounds reproducible
in tests while production rounds get a fresh seed each time.
"""

import hashlib
import random
import secrets

from triples.logic.exceptions import InvalidDeckError

SEED_BYTES = 32
RNG_VERSION = "sha512-mt-v1"
_DOMAIN_PREFIX = b"triples-deck-v1:"


def generate_seed() -> str:
    """Return a fresh random seed as a hex string."""
    return secrets.token_hex(SEED_BYTES)


def validate_seed_hex(seed_hex: str) -> None:
    """Validate that a seed string is the correct hex format."""
    expected_length = SEED_BYTES * 2
    if len(seed_hex) != expected_length:
        raise InvalidDeckError(f"seed must be exactly {expected_length} hex characters, got {len(seed_hex)}")
    try:
        bytes.fromhex(seed_hex)
    except ValueError:
        raise InvalidDeckError("seed contains invalid hex characters") from None


def shuffled_deck(card_space: range, seed: str) -> list[int]:
    """Return a uniformly shuffled permutation of the card space derived from the seed."""
    validate_seed_hex(seed)
    digest = hashlib.sha512(_DOMAIN_PREFIX + bytes.fromhex(seed)).digest()
    rng = random.Random(int.from_bytes(digest, "big"))  # noqa: S311
    deck = list(card_space)
    rng.shuffle(deck)
    return deck
