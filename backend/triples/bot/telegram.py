"""Telegram game bot: hands out launch links and records high scores.

The bot long-polls the Bot API for updates and reacts to three of them:

- ``/send <game>`` messages post the game to the chat;
- inline queries list every game;
- game callback queries (a player pressing "Play") are answered with the
  launch URL. Single-player games carry an encrypted blob so the score can be
  reported back to the launching message; multiplayer games carry a room id
  derived from the chat instance, so everyone in a chat lands in one room.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx

from shared.auth.blob import Blob, encode_blob
from triples.logic.variants import GameKind, scored_kinds

if TYPE_CHECKING:
    from shared.auth.blob import BlobKey

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org"
LONG_POLL_SECONDS = 60
RETRY_SECONDS = 5.0
_HTTP_TIMEOUT = LONG_POLL_SECONDS + 10

_KNOWN_GAMES = [kind.value for kind in GameKind]


class TelegramError(Exception):
    """The Bot API answered with ok=false or an unusable response."""


class TelegramClient:
    """Minimal async Bot API client."""

    def __init__(
        self,
        token: str,
        *,
        client: httpx.AsyncClient | None = None,
        base_url: str = API_URL,
    ) -> None:
        self._token = token
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=_HTTP_TIMEOUT)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def call(self, method: str, **params: Any) -> Any:  # noqa: ANN401
        """Invoke a Bot API method; None-valued params are left out."""
        payload = {key: value for key, value in params.items() if value is not None}
        response = await self._client.post(f"/bot{self._token}/{method}", json=payload)
        try:
            data = response.json()
        except ValueError:
            raise TelegramError(f"{method}: HTTP {response.status_code}, body is not JSON") from None
        if not isinstance(data, dict) or not data.get("ok"):
            description = data.get("description") if isinstance(data, dict) else None
            raise TelegramError(f"{method}: {description or f'HTTP {response.status_code}'}")
        return data.get("result")

    async def get_me(self) -> dict[str, Any]:
        return await self.call("getMe")

    async def get_updates(self, offset: int, timeout: int = LONG_POLL_SECONDS) -> list[dict[str, Any]]:
        return await self.call("getUpdates", offset=offset, timeout=timeout)

    async def send_game(self, chat_id: int, game_short_name: str) -> None:
        await self.call("sendGame", chat_id=chat_id, game_short_name=game_short_name)

    async def send_message(self, chat_id: int, text: str) -> None:
        await self.call("sendMessage", chat_id=chat_id, text=text)

    async def answer_inline_query(self, inline_query_id: str, results: list[dict[str, Any]]) -> None:
        await self.call("answerInlineQuery", inline_query_id=inline_query_id, results=results)

    async def answer_callback_query(self, callback_query_id: str, url: str) -> None:
        await self.call("answerCallbackQuery", callback_query_id=callback_query_id, url=url)

    async def set_game_score(
        self,
        user_id: int,
        score: int,
        *,
        chat_id: int | None = None,
        message_id: int | None = None,
        inline_message_id: str | None = None,
    ) -> None:
        await self.call(
            "setGameScore",
            user_id=user_id,
            score=score,
            chat_id=chat_id,
            message_id=message_id,
            inline_message_id=inline_message_id,
        )


def room_for_chat(chat_instance: str) -> str:
    """Room id shared by everyone launching a multiplayer game from one chat."""
    return base64.urlsafe_b64encode(chat_instance.encode()).rstrip(b"=").decode()


class GameBot:
    def __init__(
        self,
        client: TelegramClient,
        *,
        base_url: str,
        blob_key: BlobKey,
        debug: bool = False,
    ) -> None:
        self._client = client
        self._base_url = base_url
        self._blob_key = blob_key
        self._debug = debug
        self._offset = 0

    async def run(self) -> None:
        """Long-poll for updates until cancelled."""
        me = await self._client.get_me()
        logger.info("authorized on account %s", me.get("username"))
        while True:
            try:
                updates = await self._client.get_updates(self._offset)
            except (TelegramError, httpx.HTTPError) as e:
                logger.warning("getUpdates failed: %s", e)
                await asyncio.sleep(RETRY_SECONDS)
                continue
            for update in updates:
                self._offset = max(self._offset, update["update_id"] + 1)
                try:
                    await self.handle_update(update)
                except (TelegramError, httpx.HTTPError) as e:
                    logger.warning("handling update %s failed: %s", update["update_id"], e)

    async def handle_update(self, update: dict[str, Any]) -> None:
        if self._debug:
            logger.debug("update: %s", update)
        if message := update.get("message"):
            await self._handle_message(message)
        if inline_query := update.get("inline_query"):
            await self._handle_inline_query(inline_query)
        if callback_query := update.get("callback_query"):
            await self._handle_callback_query(callback_query)

    async def _handle_message(self, message: dict[str, Any]) -> None:
        text = message.get("text") or ""
        if not text.startswith("/"):
            logger.info("ignoring non-command message: %s", text)
            return
        words = text.split()
        if len(words) != 2 or words[0] != "/send":
            return
        chat_id = message["chat"]["id"]
        logger.info("answering /send: %s", words[1])
        if words[1] in _KNOWN_GAMES:
            await self._client.send_game(chat_id, words[1])
        else:
            await self._client.send_message(chat_id, "I don't know that game")

    async def _handle_inline_query(self, inline_query: dict[str, Any]) -> None:
        results = [{"type": "game", "id": str(i), "game_short_name": game} for i, game in enumerate(_KNOWN_GAMES)]
        await self._client.answer_inline_query(inline_query["id"], results)

    async def _handle_callback_query(self, query: dict[str, Any]) -> None:
        game = query.get("game_short_name")
        if game not in _KNOWN_GAMES:
            return
        url = self.launch_url(query)
        logger.info("game callback: %s", game)
        await self._client.answer_callback_query(query["id"], url)

    def launch_url(self, query: dict[str, Any]) -> str:
        """Build the web client URL for a game callback query."""
        game = query["game_short_name"]
        sender = query.get("from") or {}
        first_name = sender.get("first_name", "")
        chat_instance = query.get("chat_instance", "")

        if game not in scored_kinds():
            params = {"game": game, "room": room_for_chat(chat_instance), "name": first_name}
            return f"{self._base_url}?{urlencode(params)}"

        message = query.get("message") or {}
        blob = Blob(
            game=game,
            user_id=sender.get("id", 0),
            first_name=first_name,
            chat_instance=chat_instance,
            chat_id=(message.get("chat") or {}).get("id", 0),
            message_id=message.get("message_id", 0),
            inline_message_id=query.get("inline_message_id", ""),
        )
        params = {"game": game, "scored": "1", "key": encode_blob(blob, self._blob_key), "name": first_name}
        return f"{self._base_url}?{urlencode(params)}"

    async def report_score(self, blob: Blob, score: int) -> None:
        """Record a player's score on the message the game was launched from."""
        try:
            await self._client.set_game_score(
                blob.user_id,
                score,
                chat_id=blob.chat_id or None,
                message_id=blob.message_id or None,
                inline_message_id=blob.inline_message_id or None,
            )
        except (TelegramError, httpx.HTTPError) as e:
            logger.warning("send score %s=%d failed: %s", blob.first_name, score, e)
            return
        logger.info("sent score %s=%d", blob.first_name, score)
