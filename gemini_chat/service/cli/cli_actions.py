"""CLI action handlers.

Purpose
-------
Subcommand handlers for ``gemini-chat`` plus the shared bootstrap that turns
parsed arguments into validated settings and a ready ``ConversationEngine``.
No top-level side effects; safe to import in tests.

Fallback & Error Semantics
--------------------------
- Invalid configuration prints every validation failure to stderr and
  returns exit code 2 before any network I/O.
- Call failures are reported as one JSON object on stderr with exit code 1.
- An empty model answer is not a failure: a warning goes to stderr and the
  exit code is 0.
"""

from __future__ import annotations

import argparse
import json
import sys
from contextlib import closing
from typing import Any, Dict, Optional, TextIO

from ...base.cancellation import CancelledError
from ...base.errors import ChatError, ConfigurationError, classify_exception
from ...base.interfaces import Transport
from ...base.logging import LogContext, configure_logger, get_logger, normalized_log_event
from ...config import GeminiSettings, load_settings, validate_settings
from ...conversation import ConversationEngine
from ...gemini import GeminiApiClient
from ..mock_server import MockStreamConfig
from ..mock_server import run as run_mock_server

EXIT_OK = 0
EXIT_CALL_FAILED = 1
EXIT_CONFIG = 2


def settings_from_args(args: argparse.Namespace) -> GeminiSettings:
    """Load settings with command-line overrides and validate them.

    Raises:
        ConfigurationError: when validation fails.
    """
    overrides: Dict[str, Any] = {
        "default_model": getattr(args, "model", None),
        "base_url": getattr(args, "base_url", None),
        "log_directory": getattr(args, "log_dir", None),
    }
    settings = validate_settings(load_settings(overrides))
    level = getattr(args, "log_level", None)
    if level is None and settings.enable_detailed_logging:
        level = "DEBUG"
    if level is not None:
        configure_logger(level=level.upper())
    return settings


def build_engine(settings: GeminiSettings, transport: Optional[Transport] = None) -> ConversationEngine:
    return ConversationEngine(GeminiApiClient(settings, transport=transport))


def report_config_error(exc: ConfigurationError, err: Optional[TextIO] = None) -> int:
    err = err if err is not None else sys.stderr
    print("Configuration is invalid:", file=err)
    for failure in exc.failures or [exc.message]:
        print(f"  - {failure}", file=err)
    return EXIT_CONFIG


def _emit_error(exc: BaseException, err: TextIO) -> None:
    payload: Dict[str, Any] = {
        "error": type(exc).__name__,
        "code": classify_exception(exc).value,
        "message": exc.message if isinstance(exc, ChatError) else str(exc),
    }
    if isinstance(exc, ChatError) and exc.status_code is not None:
        payload["status"] = exc.status_code
    print(json.dumps(payload, ensure_ascii=False), file=err)


def handle_ask(
    args: argparse.Namespace,
    engine: Optional[ConversationEngine] = None,
    *,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Send ``args.prompt`` once (no history) and print the answer.

    Streams deltas to ``out`` as they arrive when ``args.stream`` is set.
    """
    out = out if out is not None else sys.stdout
    err = err if err is not None else sys.stderr
    logger = get_logger("service.cli")
    if engine is None:
        try:
            settings = settings_from_args(args)
        except ConfigurationError as exc:
            return report_config_error(exc, err)
        engine = build_engine(settings)
    model = args.model or engine.client.settings.default_model or ""
    normalized_log_event(
        logger, "cli.ask", LogContext(model=model), phase="start", emitted=False, stream=bool(args.stream)
    )
    try:
        if args.stream:
            parts = []
            with closing(engine.stream_single_turn(model, args.prompt)) as stream:
                for delta in stream:
                    parts.append(delta)
                    if not args.json:
                        out.write(delta)
                        out.flush()
            text: Optional[str] = "".join(parts) or None
            if text and not args.json:
                out.write("\n")
        else:
            text = engine.send_single_turn(model, args.prompt)
            if text and not args.json:
                print(text, file=out)
    except (ChatError, CancelledError) as exc:
        _emit_error(exc, err)
        return EXIT_CALL_FAILED
    if args.json:
        print(json.dumps({"model": model, "text": text, "empty": text is None}, ensure_ascii=False), file=out)
    elif text is None:
        print("No response received.", file=err)
    return EXIT_OK


def handle_models(
    args: argparse.Namespace,
    engine: Optional[ConversationEngine] = None,
    *,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    out = out if out is not None else sys.stdout
    err = err if err is not None else sys.stderr
    if engine is None:
        try:
            settings = settings_from_args(args)
        except ConfigurationError as exc:
            return report_config_error(exc, err)
        engine = build_engine(settings)
    try:
        models = engine.client.list_models()
    except ChatError as exc:
        _emit_error(exc, err)
        return EXIT_CALL_FAILED
    for model in models:
        description = model.description or model.display_name or "Google Gemini Model"
        print(f"{model.model_id} - {description}", file=out)
    return EXIT_OK


def handle_mock_server(args: argparse.Namespace) -> int:
    run_mock_server(
        host=args.host,
        port=args.port,
        config=MockStreamConfig(chunks=args.chunks, delay_ms=args.delay_ms, send_done=args.done),
    )
    return EXIT_OK


__all__ = [
    "EXIT_OK",
    "EXIT_CALL_FAILED",
    "EXIT_CONFIG",
    "settings_from_args",
    "build_engine",
    "report_config_error",
    "handle_ask",
    "handle_models",
    "handle_mock_server",
]
