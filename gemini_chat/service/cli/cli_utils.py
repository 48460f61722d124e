# -*- coding: utf-8 -*-
"""Utility helpers shared by the ``gemini-chat`` shell.

Functions
---------
- ``format_elapsed(seconds)``: compact duration (``850ms``, ``2.40s``,
  ``3m 05s``, ``1h 02m 03s``).
- ``word_count(text)`` / ``estimate_tokens(text_or_chars)``: rough output
  size figures (tokens are estimated as characters // 4).
- ``tokens_per_second`` / ``speed_bar``: throughput figure and a ten-cell
  bar with a speed rating.
- ``parse_verbosity(value)``: map user strings to a canonical level name.
- ``suppress_console_logs()``: detach console handlers of the
  ``gemini_chat`` loggers while deltas are printed live; managed file
  handlers keep receiving records.
"""

from __future__ import annotations

import contextlib
import logging
from typing import Iterator, List, Optional, Tuple, Union

from ...base.logging import BASE_LOGGER_NAME, FILE_HANDLER_ATTR

SPEED_BAR_CELLS = 10


def format_elapsed(seconds: float) -> str:
    """Render a duration for humans."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"
    total = int(seconds)
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def word_count(text: str) -> int:
    return len(text.split())


def estimate_tokens(text_or_chars: Union[str, int]) -> int:
    chars = text_or_chars if isinstance(text_or_chars, int) else len(text_or_chars)
    return chars // 4


def tokens_per_second(text: str, seconds: float) -> float:
    return estimate_tokens(text) / max(seconds, 0.001)


def speed_bar(tps: float) -> str:
    """Return ``[████░░░░░░] <rating>`` for a tokens-per-second figure."""
    filled = max(0, min(int(tps / 10), SPEED_BAR_CELLS))
    bar = "█" * filled + "░" * (SPEED_BAR_CELLS - filled)
    if tps < 10:
        rating = "slow"
    elif tps < 30:
        rating = "steady"
    elif tps < 50:
        rating = "quick"
    elif tps < 100:
        rating = "fast"
    else:
        rating = "blazing"
    return f"[{bar}] {rating}"


def parse_verbosity(value: str) -> Optional[str]:
    """Parse a user-provided verbosity string into a canonical level.

    Accepts DEBUG/INFO/WARNING/ERROR/CRITICAL plus the synonyms verbose,
    warn, quiet and silent (case-insensitive). Returns ``None`` if invalid.
    """
    v = value.strip().lower()
    mapping = {
        "debug": "DEBUG",
        "verbose": "DEBUG",
        "info": "INFO",
        "warning": "WARNING",
        "warn": "WARNING",
        "error": "ERROR",
        "quiet": "ERROR",
        "critical": "CRITICAL",
        "silent": "CRITICAL",
    }
    return mapping.get(v)


def _gemini_loggers() -> List[logging.Logger]:
    loggers = [logging.getLogger(BASE_LOGGER_NAME)]
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if isinstance(logger, logging.PlaceHolder):
            continue
        if isinstance(name, str) and name.startswith(BASE_LOGGER_NAME + "."):
            loggers.append(logging.getLogger(name))
    return loggers


@contextlib.contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Temporarily detach console handlers so logs do not interleave with output.

    Only stream (console) handlers are detached; managed file handlers stay
    attached. The base logger stops propagating to the root logger for the
    duration. Handlers and the propagation flag are restored on exit.
    """
    propagate_prev: List[Tuple[logging.Logger, bool]] = []
    detached: List[Tuple[logging.Logger, logging.Handler]] = []
    try:
        base = logging.getLogger(BASE_LOGGER_NAME)
        propagate_prev.append((base, base.propagate))
        base.propagate = False
        for lg in _gemini_loggers():
            for handler in list(lg.handlers):
                if getattr(handler, FILE_HANDLER_ATTR, False) or isinstance(handler, logging.FileHandler):
                    continue
                if isinstance(handler, logging.StreamHandler):
                    with contextlib.suppress(Exception):
                        handler.flush()
                    detached.append((lg, handler))
                    lg.removeHandler(handler)
        yield
    finally:
        for lg, previous in propagate_prev:
            lg.propagate = previous
        for lg, handler in detached:
            lg.addHandler(handler)


__all__ = [
    "format_elapsed",
    "word_count",
    "estimate_tokens",
    "tokens_per_second",
    "speed_bar",
    "parse_verbosity",
    "suppress_console_logs",
]
