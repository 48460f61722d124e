"""Structured logging for the ``gemini_chat`` logger tree.

All modules log through children of one base logger (``gemini_chat``) that
owns the only console handler; children propagate to it so each record is
written once. Events are single-line JSON objects built by ``log_event``.

Level
-----
``GEMINI_CHAT_LOG_LEVEL`` (DEBUG, INFO, WARNING, ERROR, CRITICAL) is read on
every ``get_logger`` call and wins over the level last set with
``configure_logger``, which in turn wins over the ``level`` argument.
``configure_logger`` can also attach one rotating file handler.

Normalized events
-----------------
``normalized_log_event`` always emits ``structured``, ``phase``, ``attempt``,
``emitted`` and ``tokens``; ``error_code`` appears only on failures. Client
start/finalize/error events use it so every call has the same shape.
"""
from __future__ import annotations

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, List, Mapping, Optional, Union

from .log_support import JsonFormatter, LogContext

BASE_LOGGER_NAME = "gemini_chat"
LOG_LEVEL_ENV = "GEMINI_CHAT_LOG_LEVEL"
PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
FILE_HANDLER_ATTR = "_gemini_chat_file_handler"
FILE_MAX_BYTES = 10 * 1024 * 1024
FILE_BACKUPS = 5

_CONSOLE_ATTR = "_gemini_chat_console"
_READY_ATTR = "_gemini_chat_ready"
_CONFIGURED_LEVEL_ATTR = "_gemini_chat_configured_level"

REQUIRED_NORMALIZED_KEYS = ("structured", "phase", "attempt", "error_code", "emitted", "tokens")


def _level_from(value: Union[int, str, None], fallback: int) -> int:
    """Resolve ``value`` to a numeric level; unknown names give ``fallback``."""
    if isinstance(value, int):
        return value
    if not value or not value.strip():
        return fallback
    name = value.strip().upper()
    if name == "WARN":
        name = "WARNING"
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else fallback


def _make_formatter(json_mode: bool) -> logging.Formatter:
    return JsonFormatter() if json_mode else logging.Formatter(PLAIN_FORMAT)


def _console_handlers(logger: logging.Logger) -> List[logging.StreamHandler]:
    return [h for h in logger.handlers if getattr(h, _CONSOLE_ATTR, False)]


def _base_logger(json_mode: bool, default_level: int) -> logging.Logger:
    """Return the base logger, creating its console handler on first use.

    The console handler is re-pointed at the current ``sys.stderr`` each
    time so captured streams (pytest ``capsys``) receive output.
    """
    base = logging.getLogger(BASE_LOGGER_NAME)
    level = _level_from(os.getenv(LOG_LEVEL_ENV), getattr(base, _CONFIGURED_LEVEL_ATTR, default_level))
    if not getattr(base, _READY_ATTR, False):
        console = logging.StreamHandler(sys.stderr)
        setattr(console, _CONSOLE_ATTR, True)
        base.addHandler(console)
        base.propagate = False
        setattr(base, _READY_ATTR, True)
    base.setLevel(level)
    for console in _console_handlers(base):
        console.setLevel(level)
        try:
            console.setStream(sys.stderr)
        except ValueError:
            # previous stream already closed; flushing it failed
            console.stream = sys.stderr
        if isinstance(console.formatter, JsonFormatter) != json_mode or console.formatter is None:
            console.setFormatter(_make_formatter(json_mode))
    return base


def get_logger(name: str = BASE_LOGGER_NAME, json_mode: bool = True, level: int = logging.INFO) -> logging.Logger:
    """Return the base logger or a propagating child named ``gemini_chat.<name>``."""
    base = _base_logger(json_mode, level)
    if name == BASE_LOGGER_NAME:
        return base
    full = name if name.startswith(BASE_LOGGER_NAME + ".") else f"{BASE_LOGGER_NAME}.{name}"
    child = logging.getLogger(full)
    child.setLevel(logging.NOTSET)
    child.propagate = True
    return child


def configure_logger(
    *,
    level: Union[int, str, None] = None,
    file_path: Optional[str] = None,
    json_mode: bool = True,
) -> logging.Logger:
    """Apply a runtime level and (optionally) a rotating log file.

    Args:
        level: Level name or number; ``None`` keeps the current level.
        file_path: Log file to write in addition to the console. ``None``
            detaches the managed file handler.
        json_mode: Formatter for the file handler.

    Returns:
        The base logger.
    """
    base = get_logger(BASE_LOGGER_NAME, json_mode=json_mode)
    if level is not None:
        resolved = _level_from(level, base.level)
        setattr(base, _CONFIGURED_LEVEL_ATTR, resolved)
        base.setLevel(resolved)
        for handler in base.handlers:
            handler.setLevel(resolved)

    target = os.path.abspath(os.path.expanduser(file_path)) if file_path else None
    keep: Optional[logging.Handler] = None
    for handler in [h for h in base.handlers if getattr(h, FILE_HANDLER_ATTR, False)]:
        if target is not None and getattr(handler, "baseFilename", None) == target:
            keep = handler
            continue
        base.removeHandler(handler)
        handler.close()
    if target is None:
        return base

    if keep is None:
        os.makedirs(os.path.dirname(target), exist_ok=True)
        keep = RotatingFileHandler(target, maxBytes=FILE_MAX_BYTES, backupCount=FILE_BACKUPS, encoding="utf-8")
        setattr(keep, FILE_HANDLER_ATTR, True)
        base.addHandler(keep)
    keep.setFormatter(_make_formatter(json_mode))
    keep.setLevel(base.level)
    return base


def log_event(
    logger: logging.Logger,
    event: str,
    ctx: Optional[LogContext] = None,
    *,
    level: int = logging.INFO,
    keep_none: bool = False,
    **fields: Any,
) -> None:
    """Log ``{"event": event, **ctx, **fields}`` as one JSON message.

    ``None`` values in ``fields`` are dropped unless ``keep_none`` is set.
    Values that are not JSON types are rendered with ``str``.
    """
    if not logger.isEnabledFor(level):
        return
    payload: Dict[str, Any] = {"event": event}
    if ctx is not None:
        payload.update(ctx.to_dict())
    for key, value in fields.items():
        if value is not None or keep_none:
            payload[key] = value
    logger.log(level, json.dumps(payload, ensure_ascii=False, default=str))


def _tokens_field(tokens: Any) -> Any:
    if tokens is None or isinstance(tokens, (int, float)):
        return tokens
    if isinstance(tokens, Mapping):
        return dict(tokens)
    return {"value": repr(tokens)}


def normalized_log_event(  # noqa: PLR0913
    logger: logging.Logger,
    event: str,
    ctx: Optional[LogContext] = None,
    *,
    phase: str,
    level: int = logging.INFO,
    attempt: Optional[int] = None,
    error_code: Optional[str] = None,
    emitted: Optional[bool] = None,
    tokens: Any = None,
    structured: bool = True,
    **extra_fields: Any,
) -> None:
    """Emit ``event`` with the normalized keys plus ``extra_fields``.

    Extra fields set to ``None`` are skipped and never replace a normalized
    key that already has a value.
    """
    fields: Dict[str, Any] = {
        "structured": structured,
        "phase": phase,
        "attempt": attempt,
        "emitted": emitted,
        "tokens": _tokens_field(tokens),
    }
    if error_code is not None:
        fields["error_code"] = error_code
    fields.update(
        {k: v for k, v in extra_fields.items() if v is not None and fields.get(k) is None}
    )
    log_event(logger, event, ctx, level=level, keep_none=True, **fields)


__all__ = [
    "BASE_LOGGER_NAME",
    "FILE_HANDLER_ATTR",
    "LOG_LEVEL_ENV",
    "LogContext",
    "REQUIRED_NORMALIZED_KEYS",
    "configure_logger",
    "get_logger",
    "log_event",
    "normalized_log_event",
]
