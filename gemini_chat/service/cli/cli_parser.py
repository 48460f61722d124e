"""CLI parser construction for ``gemini-chat``.

Wires subparsers only; handlers live in ``cli_actions`` and ``cli_shell``.
"""

from __future__ import annotations

import argparse

from ...config.defaults import MOCK_CHUNK_DELAY_MS, MOCK_SERVER_DEFAULT_HOST, MOCK_SERVER_DEFAULT_PORT, MOCK_STREAM_CHUNKS

COMMANDS = ("chat", "ask", "models", "mock-server")


def _str2bool(v: str | None) -> bool:
    """Permissive truthy/falsey parsing; ``None`` (bare flag) means ``True``."""
    if v is None:
        return True
    val = v.strip().lower()
    if val in {"1", "t", "true", "y", "yes", "on"}:
        return True
    return False if val in {"0", "f", "false", "n", "no", "off"} else bool(val)


def add_stream_flags(parser: argparse.ArgumentParser, *, default: bool) -> None:
    """Attach ``--stream [bool]`` / ``--no-stream`` to ``parser``."""
    grp = parser.add_mutually_exclusive_group()
    grp.add_argument("--stream", nargs="?", const=True, type=_str2bool, default=default)
    grp.add_argument("--no-stream", dest="stream", action="store_false")


def build_parser() -> argparse.ArgumentParser:
    """Construct the top-level parser with ``chat``, ``ask``, ``models`` and ``mock-server``."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--base-url", default=None, help="Override the API base URL")
    common.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ERROR or CRITICAL")

    p = argparse.ArgumentParser(prog="gemini-chat", description="Conversational client for the Gemini API")
    sub = p.add_subparsers(dest="cmd")

    p_chat = sub.add_parser("chat", parents=[common], help="Interactive multi-turn session (default)")
    p_chat.add_argument("--model", default=None)
    p_chat.add_argument("--log-dir", default=None, help="Transcript directory")
    add_stream_flags(p_chat, default=True)

    p_ask = sub.add_parser("ask", parents=[common], help="Send one prompt and print the answer")
    p_ask.add_argument("--prompt", required=True)
    p_ask.add_argument("--model", default=None)
    p_ask.add_argument("--json", action="store_true", help="Print the outcome as JSON")
    add_stream_flags(p_ask, default=False)

    sub.add_parser("models", parents=[common], help="List models that support generateContent")

    p_mock = sub.add_parser("mock-server", help="Serve the local mock Gemini API")
    p_mock.add_argument("--host", default=MOCK_SERVER_DEFAULT_HOST)
    p_mock.add_argument("--port", type=int, default=MOCK_SERVER_DEFAULT_PORT)
    p_mock.add_argument("--chunks", type=int, default=MOCK_STREAM_CHUNKS)
    p_mock.add_argument("--delay-ms", type=int, default=MOCK_CHUNK_DELAY_MS)
    p_mock.add_argument("--done", action="store_true", help="End streams with a [DONE] record")

    return p


__all__ = ["COMMANDS", "add_stream_flags", "build_parser"]
