"""Room actor: the single task that owns a room's game state.

Every connect, disconnect and command goes through one inbox queue and is
handled to completion before the next one is taken, so the Game, Board and
Scores are never touched concurrently and every slot sees updates in the
same order.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import TYPE_CHECKING

from triples.logic.events import OnlineEvent
from triples.logic.state import Game, ensure_score, full_update, late_claim
from triples.logic.types import ClaimResult, ClaimType
from triples.messaging.types import ClaimCommand, StartCommand
from triples.session.models import (
    CommandEvent,
    ConnectEvent,
    DisconnectEvent,
    FlushEvent,
    PlayerSlot,
)
from triples.session.types import RoomInfo

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from triples.logic.events import GameUpdate
    from triples.logic.types import Score
    from triples.logic.variants import GameVariant
    from triples.messaging.types import Claim, ClientCommand
    from triples.session.models import RoomEvent

logger = logging.getLogger(__name__)

DEFAULT_MATCH_DELAY = 0.25  # seconds clients get to animate a removal
DEFAULT_SLOT_BUFFER_SIZE = 256

RoomKey = tuple[str, str]


class Room:
    """One game session for a (game kind, room id) pair.

    Public methods only enqueue events; ``_run`` is the sole consumer and the
    only code that reads or writes the game state.
    """

    def __init__(
        self,
        variant: GameVariant,
        room_id: str,
        *,
        match_delay: float = DEFAULT_MATCH_DELAY,
        slot_buffer_size: int = DEFAULT_SLOT_BUFFER_SIZE,
        seed_factory: Callable[[], str] | None = None,
    ) -> None:
        self.variant = variant
        self.room_id = room_id
        self._match_delay = match_delay
        self._slot_buffer_size = slot_buffer_size
        self._seed_factory = seed_factory
        self._inbox: asyncio.Queue[RoomEvent] = asyncio.Queue()
        self._slots: dict[int, PlayerSlot] = {}  # slot_id -> PlayerSlot
        self._scores: dict[str, Score] = {}  # player name -> Score, kept across rounds
        self._game: Game | None = None
        self._next_slot_id = 1
        self._commands_processed = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def key(self) -> RoomKey:
        return (self.variant.kind, self.room_id)

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # --- Public API (any task) ---

    def start(self) -> None:
        """Spawn the actor task."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name=f"room:{self.variant.kind}:{self.room_id}")

    async def close(self) -> None:
        """Stop the actor and release every slot's forwarder."""
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._abandon_queued()
        for slot in self._slots.values():
            slot.close()
        self._slots.clear()
        logger.info("room closed: %s/%s", self.variant.kind, self.room_id)

    def _abandon_queued(self) -> None:
        # nobody will answer these once the actor is gone
        while not self._inbox.empty():
            event = self._inbox.get_nowait()
            if isinstance(event, ConnectEvent):
                event.joined.cancel()
            elif isinstance(event, FlushEvent):
                event.done.cancel()

    async def connect(self, name: str) -> PlayerSlot:
        """Register a player slot and wait until the actor has sent it the snapshot."""
        joined: asyncio.Future[PlayerSlot] = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait(ConnectEvent(name=name, joined=joined))
        return await joined

    def submit(self, slot_id: int, command: ClientCommand) -> None:
        self._inbox.put_nowait(CommandEvent(slot_id=slot_id, command=command))

    def disconnect(self, slot_id: int) -> None:
        self._inbox.put_nowait(DisconnectEvent(slot_id=slot_id))

    async def flush(self) -> None:
        """Wait until every event queued so far has been handled."""
        done: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._inbox.put_nowait(FlushEvent(done=done))
        await done

    def status(self) -> RoomInfo:
        return RoomInfo(
            game=self.variant.kind,
            room_id=self.room_id,
            players=sorted({slot.name for slot in self._slots.values()}),
            active=self._game is not None,
            commands_processed=self._commands_processed,
        )

    # --- Actor loop ---

    async def _run(self) -> None:
        logger.info("room started: %s/%s", self.variant.kind, self.room_id)
        while True:
            event = await self._inbox.get()
            try:
                await self._handle(event)
            except Exception:
                logger.exception("error handling %s in room %s/%s", type(event).__name__, *self.key)

    async def _handle(self, event: RoomEvent) -> None:
        if isinstance(event, ConnectEvent):
            self._on_connect(event)
        elif isinstance(event, DisconnectEvent):
            self._on_disconnect(event.slot_id)
        elif isinstance(event, CommandEvent):
            await self._on_command(event)
        elif isinstance(event, FlushEvent):
            if not event.done.done():
                event.done.set_result(None)

    def _present_names(self) -> set[str]:
        return {slot.name for slot in self._slots.values()}

    def _on_connect(self, event: ConnectEvent) -> None:
        first_presence = event.name not in self._present_names()
        slot = PlayerSlot(
            slot_id=self._next_slot_id,
            name=event.name,
            updates=asyncio.Queue(maxsize=self._slot_buffer_size),
        )
        self._next_slot_id += 1
        self._slots[slot.slot_id] = slot
        ensure_score(self._scores, event.name)
        logger.info("player connected: %s (slot %d)", event.name, slot.slot_id)

        self._send(slot, full_update(self.variant, self._game, self._scores, self._present_names()))
        if first_presence:
            self._broadcast([OnlineEvent(name=event.name, present=True)])

        if event.joined.done():
            # the client gave up waiting; nobody will ever disconnect this slot
            self._on_disconnect(slot.slot_id)
            return
        event.joined.set_result(slot)

    def _on_disconnect(self, slot_id: int) -> None:
        slot = self._slots.pop(slot_id, None)
        if slot is None:
            return
        slot.close()
        logger.info("player disconnected: %s (slot %d)", slot.name, slot_id)
        if slot.name not in self._present_names():
            self._broadcast([OnlineEvent(name=slot.name, present=False)])

    async def _on_command(self, event: CommandEvent) -> None:
        slot = self._slots.get(event.slot_id)
        if slot is None:
            logger.debug("ignoring command from unknown slot %d", event.slot_id)
            return
        self._commands_processed += 1
        command = event.command
        if isinstance(command, StartCommand):
            self._start_round(slot.name)
        elif isinstance(command, ClaimCommand):
            await self._claim(slot.name, command.claim)

    # --- Game transitions ---

    def _start_round(self, name: str) -> None:
        if self._game is not None:
            logger.info("start from %s ignored, round already in progress", name)
            return
        seed = self._seed_factory() if self._seed_factory is not None else None
        self._game = Game.create(self.variant, self._scores, self._present_names(), seed=seed)
        logger.info("round started by %s in %s/%s", name, *self.key)
        self._broadcast([full_update(self.variant, self._game, self._scores, self._present_names())])
        dealt = self._game.deal()
        if dealt is not None:
            self._broadcast([dealt])
        self._finish_round_if_over()

    async def _claim(self, name: str, claim: Claim) -> None:
        game = self._game
        if game is None:
            self._broadcast(late_claim(self._scores, name, claim.type).updates)
            return

        if claim.type == ClaimType.NOMATCH:
            outcome = game.claim_nomatch(name, claim.cards)
            self._broadcast(outcome.updates)
            if outcome.result == ClaimResult.CORRECT:
                self._finish_round_if_over()
            return

        outcome = game.claim_match(name, claim.cards)
        self._broadcast(outcome.updates)
        if outcome.result != ClaimResult.CORRECT:
            return
        if self._match_delay > 0:
            await asyncio.sleep(self._match_delay)
        self._broadcast(game.settle())
        self._finish_round_if_over()

    def _finish_round_if_over(self) -> None:
        game = self._game
        if game is None or not game.is_over():
            return
        self._game = None
        logger.info(
            "round over in %s/%s: %s",
            *self.key,
            {name: score.total for name, score in self._scores.items()},
        )
        self._broadcast([full_update(self.variant, None, self._scores, self._present_names())])

    # --- Delivery ---

    def _send(self, slot: PlayerSlot, update: GameUpdate) -> None:
        if slot.offer(update) or slot.closed:
            return
        logger.warning("update buffer full for %s (slot %d), disconnecting", slot.name, slot.slot_id)
        slot.close(overflow=True)
        self.disconnect(slot.slot_id)

    def _broadcast(self, updates: Iterable[GameUpdate]) -> None:
        for update in updates:
            for slot in list(self._slots.values()):
                self._send(slot, update)
