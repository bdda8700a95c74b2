"""Score reporting seam between the HTTP layer and the bot integration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from shared.auth.blob import Blob

logger = logging.getLogger(__name__)


class ScoreReporter(Protocol):
    async def report_score(self, blob: Blob, score: int) -> None: ...


class LoggingScoreReporter:
    """Reporter used when no bot is configured: scores are only logged."""

    async def report_score(self, blob: Blob, score: int) -> None:
        logger.info("score for %s (user %d) in %s: %d", blob.first_name, blob.user_id, blob.game, score)
