"""Shared builders for game, room and WebSocket tests."""

from urllib.parse import urlencode

from triples.logic.board import Board, Position
from triples.logic.cards import has_match
from triples.logic.rng import SEED_BYTES, shuffled_deck
from triples.logic.state import Game
from triples.logic.variants import ROWS, GameKind, get_variant
from triples.messaging.encoder import decode, encode

# A fixed seed for deterministic tests (64 hex chars = 32 bytes)
FIXED_SEED = "ab" * SEED_BYTES

# Cards whose attribute values are all 0 or 1. No three of them are a triple:
# an attribute can never take all three distinct values.
CAP_SET = [0, 1, 3, 4, 9, 10, 12, 13, 27, 28, 30, 31, 36, 37, 39, 40]


def seed_with_opening_match(kind: GameKind = GameKind.TRIPLES) -> str:
    """First seed (in a fixed sequence) whose opening deal holds a match."""
    variant = get_variant(kind)
    for i in range(256):
        seed = f"{i:02x}" * SEED_BYTES
        opening = shuffled_deck(variant.card_space(), seed)[: variant.default_cells]
        if has_match(opening, variant.match_size):
            return seed
    raise AssertionError("no seed with an opening match")


def board_from(cards: list[int]) -> Board:
    """Lay cards out column-major starting at (0, 0)."""
    return Board({Position(i // ROWS, i % ROWS): card for i, card in enumerate(cards)})


def make_game(kind: GameKind = GameKind.TRIPLES, deck: list[int] | None = None) -> Game:
    """Game with an explicit deck order, dealt and ready for claims."""
    variant = get_variant(kind)
    game = Game(variant=variant, deck=list(variant.card_space()) if deck is None else deck, scores={})
    game.deal()
    return game


def drain(slot) -> list:
    """Take everything currently buffered for a slot."""
    updates = []
    while not slot.updates.empty():
        updates.append(slot.updates.get_nowait())
    return updates


def send_ws(ws, data: dict) -> None:
    """Send a MessagePack-encoded message over a test WebSocket."""
    ws.send_bytes(encode(data))


def recv_ws(ws) -> dict:
    """Receive and decode a MessagePack message from a test WebSocket."""
    return decode(ws.receive_bytes())


def join_url(game: str = "triples", room: str = "r1", name: str = "ann") -> str:
    return f"/api/join?{urlencode({'game': game, 'room': room, 'name': name})}"
