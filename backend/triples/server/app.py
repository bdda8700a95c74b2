from __future__ import annotations

import asyncio
import contextlib
import secrets
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import FileResponse, JSONResponse
from starlette.routing import Mount, Route, WebSocketRoute
from starlette.staticfiles import StaticFiles

from shared.auth.blob import Blob, BlobError, BlobKey, decode_blob, encode_blob
from shared.logging import setup_logging
from triples.bot.scores import LoggingScoreReporter
from triples.bot.telegram import GameBot, TelegramClient, room_for_chat
from triples.logic.exceptions import UnknownVariantError
from triples.logic.variants import get_variant
from triples.server.settings import GameServerSettings
from triples.server.websocket import websocket_endpoint
from triples.session.registry import RoomRegistry

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from starlette.requests import Request
    from starlette.websockets import WebSocket

    from triples.bot.scores import ScoreReporter

# hex-encoded length of chat instances minted for rooms created outside a chat
_NEW_CHAT_INSTANCE_BYTES = 50


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def status(request: Request) -> JSONResponse:
    registry: RoomRegistry = request.app.state.registry
    return JSONResponse(
        {
            "status": "ok",
            "room_count": registry.room_count,
            "rooms": [info.model_dump(mode="json") for info in registry.rooms_info()],
        },
    )


async def win(request: Request) -> JSONResponse:
    """Report a finished single-player game's score back to its launch message."""
    blob_key: BlobKey = request.app.state.blob_key
    score_reporter: ScoreReporter = request.app.state.score_reporter

    key = request.query_params.get("key", "")
    if not key:
        return JSONResponse({"error": "missing parameter `key`"}, status_code=400)
    try:
        score = int(request.query_params.get("score", ""))
    except ValueError:
        return JSONResponse({"error": "missing/bad parameter `score`"}, status_code=400)
    try:
        blob = decode_blob(key, blob_key)
    except BlobError as e:
        logger.warning("decoding blob failed", error=str(e))
        return JSONResponse({"error": "bad key"}, status_code=400)

    await score_reporter.report_score(blob, score)
    return JSONResponse({"status": "ok"})


async def new_room(request: Request) -> JSONResponse:
    """Mint a key and room id for a game started outside a chat."""
    blob_key: BlobKey = request.app.state.blob_key

    game = request.query_params.get("game", "")
    if not game:
        return JSONResponse({"error": "missing parameter `game`"}, status_code=400)
    try:
        get_variant(game)
    except UnknownVariantError:
        return JSONResponse({"error": "unknown game"}, status_code=400)

    blob = Blob(game=game, chat_instance=secrets.token_hex(_NEW_CHAT_INSTANCE_BYTES))
    return JSONResponse(
        {"game": game, "room": room_for_chat(blob.chat_instance), "key": encode_blob(blob, blob_key)},
    )


def _static_routes(static_dir: str) -> list[Route | Mount]:
    index = Path(static_dir) / "index.html"

    async def index_page(_request: Request) -> FileResponse:
        return FileResponse(index)

    return [
        Route("/", index_page, methods=["GET"]),
        Mount("/static", StaticFiles(directory=static_dir), name="static"),
    ]


def create_app(
    settings: GameServerSettings | None = None,
    registry: RoomRegistry | None = None,
    score_reporter: ScoreReporter | None = None,
    blob_key: BlobKey | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = GameServerSettings()

    if registry is None:
        registry = RoomRegistry(
            grace_seconds=settings.room_grace_seconds,
            match_delay=settings.match_delay_seconds,
            slot_buffer_size=settings.slot_buffer_size,
        )

    if blob_key is None:
        blob_key = BlobKey.generate()

    bot: GameBot | None = None
    telegram: TelegramClient | None = None
    if score_reporter is None:
        if settings.telegram_token:
            telegram = TelegramClient(settings.telegram_token)
            bot = GameBot(telegram, base_url=settings.base_url, blob_key=blob_key, debug=settings.bot_debug)
            score_reporter = bot
        else:
            score_reporter = LoggingScoreReporter()

    async def ws_endpoint(websocket: WebSocket) -> None:
        await websocket_endpoint(websocket, registry, settings)

    routes: list[Route | Mount | WebSocketRoute] = [
        Route("/health", health, methods=["GET"]),
        Route("/status", status, methods=["GET"]),
        Route("/api/win", win, methods=["GET", "POST"]),
        Route("/api/new", new_room, methods=["GET", "POST"]),
        WebSocketRoute("/api/join", ws_endpoint),
    ]
    if settings.static_dir:
        routes.extend(_static_routes(settings.static_dir))

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncIterator[None]:
        bot_task = asyncio.create_task(bot.run()) if bot is not None else None
        if bot_task is not None:
            logger.info("telegram bot started")
        try:
            yield
        finally:
            if bot_task is not None:
                bot_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await bot_task
            if telegram is not None:
                await telegram.aclose()
            await registry.close_all()

    app = Starlette(routes=routes, lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.registry = registry
    app.state.blob_key = blob_key
    app.state.score_reporter = score_reporter

    logger.info("game server ready", bot_enabled=bot is not None)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """Factory function for uvicorn --factory triples.server.app:get_app."""
    _settings = GameServerSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)
