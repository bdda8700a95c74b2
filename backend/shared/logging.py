"""Structured logging for the game server and the bot.

Server and auth code logs key-value events through ``structlog.get_logger()``;
room, session and bot code logs through stdlib ``logging.getLogger(__name__)``.
Both kinds of records are rendered by one structlog ProcessorFormatter per
handler, so stdout and the optional log file look the same whichever API
produced a line.

Environment variables (see LogSettings):
- LOG_FORMAT: "json" for log aggregation, "console" or unset for
  human-readable output.
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
from pydantic import BaseModel, field_validator
from pydantic_settings import BaseSettings

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

    from structlog.typing import Processor

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = ("json", "console", "")
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# httpx logs every Bot API long-poll request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


class LogSettings(BaseSettings):
    log_format: str = ""
    log_level: str = "INFO"

    @field_validator("log_format", mode="before")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        value = v.lower()
        if value not in _LOG_FORMATS:
            raise ValueError(f"Invalid LOG_FORMAT={value!r}. Must be 'json', 'console', or unset.")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        value = v.upper()
        if value not in _LOG_LEVELS:
            raise ValueError(f"Invalid LOG_LEVEL={value!r}. Must be one of {', '.join(_LOG_LEVELS)}.")
        return value

    @property
    def json_mode(self) -> bool:
        return self.log_format == "json"

    @property
    def level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level]


def _plain(value: object) -> object:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _serialize_values(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Render Enum members by value and pydantic models as dicts."""
    for key, value in event_dict.items():
        if isinstance(value, dict):
            event_dict[key] = {k: _plain(v) for k, v in value.items()}
        else:
            event_dict[key] = _plain(value)
    return event_dict


def _is_test() -> bool:
    return "pytest" in sys.modules


def _context_processors() -> list[Processor]:
    """Processors every record passes through, structlog-native or stdlib."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]


def _handler(handler: logging.Handler, *, json_mode: bool, colors: bool) -> logging.Handler:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_context_processors(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                renderer,
            ],
        )
    )
    return handler


def configure_structlog() -> None:
    """Route structlog events into stdlib logging, where the handlers render them."""
    # format_exc_info runs in the handlers' formatters, once per output
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_context_processors(),
            _serialize_values,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def setup_logging(
    log_dir: Path | str | None = None,
    level: int | None = None,
    *,
    file_prefix: str = "triples",
) -> Path | None:
    """Configure structlog and the stdlib root logger.

    Output always goes to stdout. With ``log_dir`` a ``<file_prefix>_<utc
    timestamp>.log`` file is added (never under pytest). Returns the log file
    path if one was created.
    """
    settings = LogSettings()
    if level is None:
        level = settings.level

    configure_structlog()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.addHandler(
        _handler(logging.StreamHandler(sys.stdout), json_mode=settings.json_mode, colors=sys.stdout.isatty())
    )

    if log_dir is None or _is_test():
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)
    file_path = dir_path / f"{file_prefix}_{timestamp}.log"
    root_logger.addHandler(_handler(logging.FileHandler(file_path), json_mode=settings.json_mode, colors=False))
    return file_path
