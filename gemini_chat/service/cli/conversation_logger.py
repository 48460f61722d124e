"""Per-session conversation transcript.

``ConversationLogger`` appends every prompt, response, error, shell command
and the session statistics of one shell session to a UTF-8 text file named
``conversation_<YYYY-mm-dd_HH-MM-SS>.txt``. The default directory follows
platform conventions:

- Windows: ``%LOCALAPPDATA%\\GeminiClient\\logs``
- macOS: ``~/Library/Application Support/GeminiClient/logs``
- Linux/Unix: ``$XDG_DATA_HOME/gemini-client/logs`` (``~/.local/share`` when unset)

Writes are serialized with a lock and flushed immediately so the file is
readable while the session runs. ``close`` writes a footer; writing after
close raises ``RuntimeError``.
"""

from __future__ import annotations

import os
import platform
import sys
import threading
import traceback
from datetime import datetime
from pathlib import Path
from typing import Dict, Mapping, Optional, TextIO

from ...config.defaults import APP_DIR_NAME
from .cli_utils import format_elapsed, word_count

RULE_HEAVY = "═" * 60
RULE_LIGHT = "─" * 60
STAMP = "%Y-%m-%d %H:%M:%S"


def default_log_directory() -> Path:
    """Return the platform default transcript directory."""
    system = platform.system()
    if system == "Windows":
        root = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
        return Path(root) / "GeminiClient" / "logs"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "GeminiClient" / "logs"
    xdg = os.environ.get("XDG_DATA_HOME")
    base = Path(xdg).expanduser() if xdg and xdg.strip() else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME / "logs"


def _now() -> str:
    return datetime.now().strftime(STAMP)


class ConversationLogger:
    """Append-only transcript of one shell session.

    Parameters:
        directory: Target directory; created when missing. Defaults to
            :func:`default_log_directory`.
    """

    def __init__(self, directory: Optional[str] = None) -> None:
        self._directory = Path(directory).expanduser() if directory else default_log_directory()
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(f"Failed to create log directory: {self._directory}") from exc
        stamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self._path = self._directory / f"conversation_{stamp}.txt"
        self._lock = threading.Lock()
        self._closed = False
        try:
            self._fh: TextIO = open(self._path, "a", encoding="utf-8")  # noqa: SIM115 - closed in close()
        except OSError as exc:
            raise RuntimeError(f"Failed to create log file: {self._path}") from exc
        self._write(
            "\n".join(
                [
                    RULE_HEAVY,
                    "           GEMINI CONVERSATION LOG",
                    RULE_HEAVY,
                    f"Session Started: {_now()}",
                    f"Log File: {self._path}",
                    RULE_HEAVY,
                    "",
                    "",
                ]
            )
        )

    @property
    def path(self) -> Path:
        return self._path

    @property
    def directory(self) -> Path:
        return self._directory

    def log_prompt(self, prompt: str, model: str, *, streaming: bool) -> None:
        if not prompt or not model:
            return
        self._write(
            f"[{_now()}] PROMPT\n"
            f"Model: {model}\n"
            f"Mode: {'Streaming' if streaming else 'Standard'}\n"
            f"{RULE_LIGHT}\n{prompt}\n{RULE_LIGHT}\n\n"
        )

    def log_response(self, response: str, elapsed_seconds: float, model: str) -> None:
        if not response or not model:
            return
        self._write(
            f"[{_now()}] RESPONSE\n"
            f"Model: {model}\n"
            f"Elapsed Time: {format_elapsed(elapsed_seconds)}\n"
            f"Characters: {len(response):,}\n"
            f"Words: {word_count(response):,}\n"
            f"{RULE_LIGHT}\n{response}\n{RULE_LIGHT}\n\n"
        )

    def log_error(self, exc: BaseException, model: str, prompt: Optional[str] = None) -> None:
        if exc is None or not model:
            return
        lines = [
            f"[{_now()}] ERROR",
            f"Model: {model}",
            f"Error Type: {type(exc).__name__}",
            f"Error Message: {exc}",
        ]
        if prompt and prompt.strip():
            lines += ["Original Prompt:", prompt]
        cause = exc.__cause__ or exc.__context__
        if cause is not None:
            lines.append(f"Inner Exception: {cause}")
        lines.append("Stack Trace:")
        lines.append("".join(traceback.format_tb(exc.__traceback__)).rstrip())
        lines += [RULE_LIGHT, "", ""]
        self._write("\n".join(lines))

    def log_command(self, command: str) -> None:
        if not command:
            return
        self._write(f"[{_now()}] COMMAND: {command}\n\n")

    def log_session_stats(
        self,
        total_requests: int,
        avg_seconds: float,
        session_seconds: float,
        model_usage: Optional[Mapping[str, int]] = None,
    ) -> None:
        usage: Dict[str, int] = dict(model_usage or {})
        lines = [
            f"[{_now()}] SESSION STATISTICS",
            RULE_LIGHT,
            f"Total Requests: {total_requests}",
            f"Average Response Time: {format_elapsed(avg_seconds)}",
            f"Session Duration: {format_elapsed(session_seconds)}",
            "",
            "Model Usage:",
        ]
        for model, count in sorted(usage.items(), key=lambda kv: kv[1], reverse=True):
            lines.append(f"  - {model}: {count} requests")
        lines += [RULE_LIGHT, "", ""]
        self._write("\n".join(lines))

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            try:
                self._fh.write(f"\n{RULE_HEAVY}\nSession Ended: {_now()}\n{RULE_HEAVY}\n")
                self._fh.flush()
            except OSError as exc:
                print(f"Error writing session footer: {exc}", file=sys.stderr)
            finally:
                self._fh.close()
                self._closed = True

    def __enter__(self) -> "ConversationLogger":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _write(self, content: str) -> None:
        with self._lock:
            if self._closed:
                raise RuntimeError("ConversationLogger is closed")
            try:
                self._fh.write(content)
                self._fh.flush()
            except OSError as exc:
                print(f"Failed to write to log file: {exc}", file=sys.stderr)


__all__ = ["ConversationLogger", "default_log_directory"]
