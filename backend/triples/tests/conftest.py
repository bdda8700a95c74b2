import pytest

from triples.logic.variants import GameKind, get_variant
from triples.session.room import Room
from triples.tests.helpers import seed_with_opening_match


@pytest.fixture
def triples():
    return get_variant(GameKind.TRIPLES)


@pytest.fixture
def quadruples():
    return get_variant(GameKind.QUADRUPLES)


@pytest.fixture
async def room():
    """Started triples room with no match delay and a deterministic deck."""
    seed = seed_with_opening_match()
    room = Room(get_variant(GameKind.TRIPLES), "room1", match_delay=0, seed_factory=lambda: seed)
    room.start()
    yield room
    await room.close()
