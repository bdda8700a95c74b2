"""Game server configuration via environment variables."""

import json
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode


def parse_origins(value: str | list[str]) -> list[str]:
    """Accept a list, a JSON array string, or a comma-separated string."""
    if isinstance(value, list):
        origins = value
    elif value.strip().startswith("["):
        try:
            origins = json.loads(value)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON array: {e}") from e
        if not isinstance(origins, list) or not all(isinstance(item, str) for item in origins):
            raise ValueError("JSON value must be an array of strings")
    else:
        origins = [origin.strip() for origin in value.split(",") if origin.strip()]
    if not origins:
        raise ValueError("origin list must not be empty")
    return origins


class GameServerSettings(BaseSettings):
    model_config = {"env_prefix": "TRIPLES_", "populate_by_name": True}

    base_url: str = Field(default="http://localhost:8080/", min_length=1)
    static_dir: str | None = None
    cors_origins: Annotated[list[str], NoDecode] = ["http://localhost:8080"]
    log_dir: str | None = None

    room_grace_seconds: float = Field(default=30.0, ge=0)
    match_delay_seconds: float = Field(default=0.25, ge=0)
    slot_buffer_size: int = Field(default=256, ge=1)

    # Messages per second per connection, and the burst allowance on top.
    # A fast player sends a handful of claims per second at most.
    rate_limit_per_second: float = Field(default=20.0, gt=0)
    rate_limit_burst: int = Field(default=40, ge=1)

    # Read from TELEGRAM_TOKEN (not TRIPLES_TELEGRAM_TOKEN), the name the bot
    # deployment has always used. Without a token the bot is not started.
    telegram_token: str | None = Field(default=None, validation_alias="TELEGRAM_TOKEN")
    bot_debug: bool = False

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_origins(v)
