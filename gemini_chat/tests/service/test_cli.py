"""Parser wiring, one-shot handlers and formatting helpers of ``gemini-chat``."""

from __future__ import annotations

import argparse
import io
import json
import logging

import pytest

from gemini_chat.base.errors import ConfigurationError, ErrorCode, TransportError
from gemini_chat.conversation import ConversationEngine
from gemini_chat.service.cli import main
from gemini_chat.service.cli.cli_actions import (
    EXIT_CALL_FAILED,
    EXIT_CONFIG,
    EXIT_OK,
    handle_ask,
    handle_models,
    report_config_error,
)
from gemini_chat.service.cli.cli_parser import build_parser
from gemini_chat.service.cli.cli_utils import (
    estimate_tokens,
    format_elapsed,
    parse_verbosity,
    speed_bar,
    suppress_console_logs,
)
from gemini_chat.service.cli.session_stats import ResponseMetrics, SessionStats
from gemini_chat.tests.helpers import ScriptedTransport, scripted_client, unit


def _ask_args(**overrides) -> argparse.Namespace:
    values = {"prompt": "Hi", "model": None, "stream": False, "json": False, "base_url": None, "log_level": None}
    values.update(overrides)
    return argparse.Namespace(**values)


def _engine(transport: ScriptedTransport) -> ConversationEngine:
    return ConversationEngine(scripted_client(transport))


# ---- parser ----


def test_parser_stream_defaults():
    parser = build_parser()
    assert parser.parse_args(["chat"]).stream is True  # nosec B101 - pytest assert in tests
    assert parser.parse_args(["ask", "--prompt", "x"]).stream is False  # nosec B101
    assert parser.parse_args(["ask", "--prompt", "x", "--stream"]).stream is True  # nosec B101
    assert parser.parse_args(["ask", "--prompt", "x", "--stream", "no"]).stream is False  # nosec B101
    assert parser.parse_args(["chat", "--no-stream"]).stream is False  # nosec B101


def test_parser_common_flags_after_subcommand():
    args = build_parser().parse_args(["models", "--base-url", "http://localhost:5000/", "--log-level", "debug"])
    assert args.base_url == "http://localhost:5000/" and args.log_level == "debug"  # nosec B101


def test_main_defaults_to_chat_and_reports_missing_key(capsys):
    assert main(["--model", "gemini-x"]) == EXIT_CONFIG  # nosec B101
    err = capsys.readouterr().err
    assert "Configuration is invalid:" in err and "ApiKey is required" in err  # nosec B101


def test_main_ask_requires_prompt():
    with pytest.raises(SystemExit):
        main(["ask"])


def test_main_closes_pooled_clients_on_exit(monkeypatch):
    closed = []
    monkeypatch.setattr("gemini_chat.service.cli.close_all_clients", lambda: closed.append(True))

    assert main(["ask", "--prompt", "Hi"]) == EXIT_CONFIG  # nosec B101
    assert closed == [True]  # nosec B101


# ---- handlers ----


def test_ask_prints_answer():
    out, err = io.StringIO(), io.StringIO()
    code = handle_ask(_ask_args(), _engine(ScriptedTransport(body=unit("Hello").encode())), out=out, err=err)
    assert code == EXIT_OK and out.getvalue() == "Hello\n"  # nosec B101


def test_ask_streams_deltas():
    out = io.StringIO()
    transport = ScriptedTransport(lines=["data: " + unit("Hel"), "data: " + unit("lo")])
    code = handle_ask(_ask_args(stream=True), _engine(transport), out=out, err=io.StringIO())
    assert code == EXIT_OK and out.getvalue() == "Hello\n"  # nosec B101


def test_ask_json_outcome():
    out = io.StringIO()
    handle_ask(_ask_args(json=True), _engine(ScriptedTransport(body=unit("Hello").encode())), out=out, err=io.StringIO())
    assert json.loads(out.getvalue()) == {"model": "gemini-test", "text": "Hello", "empty": False}  # nosec B101


def test_ask_empty_answer_is_not_a_failure():
    err = io.StringIO()
    code = handle_ask(_ask_args(), _engine(ScriptedTransport(body=unit(None).encode())), out=io.StringIO(), err=err)
    assert code == EXIT_OK and "No response received." in err.getvalue()  # nosec B101


def test_ask_failure_reports_json_on_stderr():
    err = io.StringIO()
    transport = ScriptedTransport(error=TransportError(code=ErrorCode.RATE_LIMIT, message="slow down", status_code=429))
    code = handle_ask(_ask_args(), _engine(transport), out=io.StringIO(), err=err)
    payload = json.loads(err.getvalue())
    assert code == EXIT_CALL_FAILED  # nosec B101
    assert payload == {"error": "TransportError", "code": "rate_limit", "message": "slow down", "status": 429}  # nosec B101


def test_ask_without_key_is_config_error():
    err = io.StringIO()
    assert handle_ask(_ask_args(), out=io.StringIO(), err=err) == EXIT_CONFIG  # nosec B101
    assert "ApiKey is required" in err.getvalue()  # nosec B101


def test_models_lists_ids_and_descriptions():
    listing = {
        "models": [
            {"name": "models/gemini-a", "description": "first", "supportedGenerationMethods": ["generateContent"]},
            {"name": "models/gemini-b", "displayName": "B", "supportedGenerationMethods": ["generateContent"]},
        ]
    }
    out = io.StringIO()
    code = handle_models(argparse.Namespace(), _engine(ScriptedTransport(body=json.dumps(listing).encode())), out=out)
    assert code == EXIT_OK  # nosec B101
    assert out.getvalue().splitlines() == ["gemini-a - first", "gemini-b - B"]  # nosec B101


def test_report_config_error_lists_failures():
    err = io.StringIO()
    exc = ConfigurationError(failures=["ApiKey is required", "BaseUrl is required"])
    assert report_config_error(exc, err) == EXIT_CONFIG  # nosec B101
    assert err.getvalue().splitlines() == [  # nosec B101
        "Configuration is invalid:",
        "  - ApiKey is required",
        "  - BaseUrl is required",
    ]


# ---- utils ----


@pytest.mark.parametrize(
    "seconds, expected",
    [(0.85, "850ms"), (2.4, "2.40s"), (185, "3m 05s"), (3723, "1h 02m 03s")],
)
def test_format_elapsed(seconds, expected):
    assert format_elapsed(seconds) == expected  # nosec B101


def test_speed_and_token_estimates():
    assert estimate_tokens("abcdefgh") == 2 and estimate_tokens(10) == 2  # nosec B101
    assert speed_bar(55) == "[█████░░░░░] fast"  # nosec B101
    assert speed_bar(5).endswith("slow") and speed_bar(500).startswith("[██████████]")  # nosec B101


def test_parse_verbosity():
    assert parse_verbosity(" Warn ") == "WARNING" and parse_verbosity("quiet") == "ERROR"  # nosec B101
    assert parse_verbosity("loud") is None  # nosec B101


def test_suppress_console_logs_restores_handlers():
    base = logging.getLogger("gemini_chat")
    handler = logging.StreamHandler(io.StringIO())
    base.addHandler(handler)
    try:
        with suppress_console_logs():
            assert handler not in base.handlers  # nosec B101
        assert handler in base.handlers  # nosec B101
    finally:
        base.removeHandler(handler)


def test_session_stats_summary():
    stats = SessionStats()
    stats.record(ResponseMetrics("a", 2, 10, 1.0, timestamp=100.0))
    stats.record(ResponseMetrics("b", 2, 20, 3.0, timestamp=101.0))
    stats.record(ResponseMetrics("b", 2, 30, 2.0, timestamp=102.0))

    assert stats.count == 3 and stats.total_chars == 60  # nosec B101
    assert stats.average_seconds == pytest.approx(2.0)  # nosec B101
    assert (stats.fastest_seconds, stats.slowest_seconds) == (1.0, 3.0)  # nosec B101
    assert stats.duration_seconds(now=110.0) == pytest.approx(10.0)  # nosec B101
    assert stats.model_usage() == [("b", 2, 2.5), ("a", 1, 1.0)]  # nosec B101
