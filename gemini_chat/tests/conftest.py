"""Pytest configuration for the gemini_chat test suite.

Closes pooled HTTP clients after each test and offers ``log_events``, a
fixture collecting the structured payloads emitted through ``log_event``.
"""

from __future__ import annotations

import json
import logging
from contextlib import suppress
from typing import Any, Dict, Iterator, List

import pytest

from gemini_chat.base.http import close_all_clients
from gemini_chat.base.logging import get_logger


class _EventCapture(logging.Handler):
    def __init__(self) -> None:
        super().__init__()
        self.events: List[Dict[str, Any]] = []

    def emit(self, record: logging.LogRecord) -> None:
        with suppress(ValueError, TypeError):
            payload = json.loads(record.getMessage())
            if isinstance(payload, dict):
                payload.setdefault("level", record.levelname)
                self.events.append(payload)


@pytest.fixture(autouse=True)
def _close_pooled_clients() -> Iterator[None]:
    yield
    close_all_clients()


@pytest.fixture(autouse=True)
def _isolated_settings_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's real key, config file and log level out of tests."""
    for name in (
        "GEMINI_API_KEY",
        "GOOGLE_API_KEY",
        "GEMINI_BASE_URL",
        "GEMINI_MODEL",
        "GEMINI_DEFAULT_MODEL",
        "GEMINI_MODEL_PREFERENCE",
        "GEMINI_TIMEOUT_SECONDS",
        "GEMINI_DETAILED_LOGGING",
        "GEMINI_LOG_DIR",
        "GEMINI_CHAT_CONFIG_FILE",
        "GEMINI_CHAT_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture()
def log_events() -> Iterator[List[Dict[str, Any]]]:
    logger = get_logger()
    handler = _EventCapture()
    logger.addHandler(handler)
    try:
        yield handler.events
    finally:
        logger.removeHandler(handler)
