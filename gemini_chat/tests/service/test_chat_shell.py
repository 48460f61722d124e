"""Interactive shell driven by scripted input over an in-memory transport."""

from __future__ import annotations

import io
from typing import Iterable, Iterator

import pytest

from gemini_chat.base.errors import ErrorCode, TransportError
from gemini_chat.conversation import ConversationEngine
from gemini_chat.gemini import GeminiApiClient
from gemini_chat.service.cli.cli_shell import ChatShell
from gemini_chat.service.cli.conversation_logger import ConversationLogger
from gemini_chat.tests.helpers import ScriptedTransport, StaticContext, make_settings, scripted_client, unit


def _inputs(lines: Iterable[str]):
    it: Iterator[str] = iter(lines)
    return lambda _prompt: next(it, "exit")


@pytest.fixture()
def transcript(tmp_path) -> Iterator[ConversationLogger]:
    with ConversationLogger(str(tmp_path)) as logger:
        yield logger


def _shell(transport, transcript, lines, *, streaming=True, model="gemini-test"):
    out = io.StringIO()
    shell = ChatShell(
        ConversationEngine(scripted_client(transport)),
        transcript,
        model=model,
        streaming=streaming,
        input_fn=_inputs(lines),
        out=out,
    )
    return shell, out


def test_streaming_session_commits_and_summarizes(transcript):
    transport = ScriptedTransport(lines=["data: " + unit("Hel"), "data: " + unit("lo")])
    shell, out = _shell(transport, transcript, ["Hi", "  ", "stats", "exit"])

    assert shell.run() == 0  # nosec B101 - pytest assert in tests

    text = out.getvalue()
    assert "Hello" in text and "First response:" in text  # nosec B101
    assert "Prompt cannot be empty" in text  # nosec B101
    assert "=== Session Statistics ===" in text and "Goodbye!" in text  # nosec B101
    assert shell.engine.history.turn_count == 1 and shell.stats.count == 1  # nosec B101
    log = transcript.path.read_text(encoding="utf-8")
    assert "RESPONSE" in log and "SESSION STATISTICS" in log  # nosec B101


def test_buffered_mode_and_stream_toggle(transcript):
    transport = ScriptedTransport(body=unit("Buffered answer").encode())
    shell, out = _shell(transport, transcript, ["stream", "Hi", "exit"])

    shell.run()

    assert shell.streaming is False  # nosec B101
    assert "Streaming disabled" in out.getvalue() and "Buffered answer" in out.getvalue()  # nosec B101
    assert transport.paths == ["/v1beta/models/gemini-test:generateContent"]  # nosec B101


def test_server_error_prints_hint_and_keeps_history_clean(transcript):
    transport = ScriptedTransport(error=TransportError(code=ErrorCode.UNAVAILABLE, message="busy", status_code=503))
    shell, out = _shell(transport, transcript, ["Hi", "exit"], streaming=False)

    shell.run()

    assert "Server Error: The model 'gemini-test'" in out.getvalue()  # nosec B101
    assert len(shell.engine.history) == 0  # nosec B101
    assert "Error Type: TransportError" in transcript.path.read_text(encoding="utf-8")  # nosec B101


def test_network_error_message(transcript):
    transport = ScriptedTransport(error=TransportError(message="connection refused"))
    shell, out = _shell(transport, transcript, ["Hi", "exit"])

    shell.run()

    assert "Network Error: connection refused" in out.getvalue()  # nosec B101


def test_empty_answer_is_reported(transcript):
    shell, out = _shell(ScriptedTransport(body=unit(None).encode()), transcript, ["Hi", "exit"], streaming=False)

    shell.run()

    assert "No response received (took" in out.getvalue()  # nosec B101
    assert shell.stats.count == 0 and len(shell.engine.history) == 0  # nosec B101


def test_interrupt_cancels_and_rolls_back(transcript):
    transport = ScriptedTransport(lines=["data: " + unit("a"), KeyboardInterrupt()])
    shell, out = _shell(transport, transcript, ["Hi", "exit"])

    shell.run()

    assert "Request cancelled." in out.getvalue()  # nosec B101
    assert len(shell.engine.history) == 0  # nosec B101


def test_reset_and_model_commands(transcript):
    transport = ScriptedTransport(body=unit("ok").encode())
    shell, out = _shell(transport, transcript, ["Hi", "reset", "model models/gemini-other", "exit"], streaming=False)

    shell.run()

    assert len(shell.engine.history) == 0  # nosec B101
    assert shell.model == "gemini-other"  # nosec B101
    assert "Conversation context cleared" in out.getvalue()  # nosec B101
    assert "COMMAND: model models/gemini-other" in transcript.path.read_text(encoding="utf-8")  # nosec B101


def test_model_selection_from_fallback_list(transcript):
    settings = make_settings(default_model=None)
    client = GeminiApiClient(settings, transport=ScriptedTransport(body=b"not json"), context_provider=StaticContext())
    out = io.StringIO()
    shell = ChatShell(ConversationEngine(client), transcript, input_fn=_inputs(["9", "2"]), out=out)

    assert shell.resolve_initial_model() == "gemini-2.5-flash"  # nosec B101
    assert shell.select_model() == "gemini-2.0-flash"  # nosec B101
    assert "Invalid selection" in out.getvalue()  # nosec B101


def test_prompt_that_looks_like_command_with_arguments_is_sent(transcript):
    transport = ScriptedTransport(body=unit("sure").encode())
    shell, _ = _shell(transport, transcript, ["reset everything please", "exit"], streaming=False)

    shell.run()

    assert transport.payloads[0]["contents"][0]["parts"][0]["text"] == "reset everything please"  # nosec B101
