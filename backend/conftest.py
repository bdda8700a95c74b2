"""Root conftest: test environment, structlog routing and per-test isolation."""

from pathlib import Path

import pytest
import structlog
from dotenv import load_dotenv

from shared.logging import configure_structlog

load_dotenv(Path(__file__).resolve().parent.parent / ".env.tests")

# caplog only sees structlog events once they go through stdlib logging
configure_structlog()


@pytest.fixture(autouse=True)
def _no_bot_token(monkeypatch):
    """A test run must never long-poll the real Bot API."""
    monkeypatch.delenv("TELEGRAM_TOKEN", raising=False)


@pytest.fixture(autouse=True)
def _clear_log_context():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()
