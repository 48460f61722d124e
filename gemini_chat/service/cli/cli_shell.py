"""Interactive conversation shell.

Purpose
-------
Headless terminal for multi-turn conversations through a
``ConversationEngine``. Every prompt is sent with the whole history; the
engine commits or rolls back, so the shell never edits history itself.

Commands (case-insensitive)
---------------------------
- ``exit``: print the session summary and leave
- ``reset``: clear the conversation context
- ``model [<id>]``: pick a model from the discovered list, or set one directly
- ``stats``: print the session summary
- ``log``: open the transcript folder
- ``stream``: toggle streaming
- ``help``: list commands

Anything else is a prompt. Blank input prints a warning and sends nothing.

Notes
-----
- Streamed deltas are printed as they arrive with console logs suppressed.
- Ctrl+C during a call cancels it; the engine drops the pending prompt.
- Failures are printed (with a hint to switch models on server errors) and
  the loop continues.
"""

from __future__ import annotations

import argparse
import subprocess  # nosec B404 - only used to open the transcript folder
import sys
import time
from contextlib import closing
from typing import Callable, List, Optional, TextIO

from ...base.cancellation import CancellationToken, CancelledError
from ...base.dto.gemini import ModelInfoDTO
from ...base.errors import ChatError, ConfigurationError, ErrorCode
from ...base.logging import LogContext, get_logger, log_event
from ...conversation import ConversationEngine
from ...gemini import choose_model
from .cli_actions import EXIT_OK, build_engine, report_config_error, settings_from_args
from .cli_utils import (
    estimate_tokens,
    format_elapsed,
    speed_bar,
    suppress_console_logs,
    tokens_per_second,
    word_count,
)
from .conversation_logger import ConversationLogger
from .session_stats import ResponseMetrics, SessionStats

COMMANDS = ("exit", "reset", "model", "stats", "log", "stream", "help")
FALLBACK_MODELS = (
    ModelInfoDTO(name="models/gemini-2.5-flash", display_name="Gemini 2.5 Flash", description="Fast and efficient (Fallback)"),
    ModelInfoDTO(name="models/gemini-2.0-flash", display_name="Gemini 2.0 Flash", description="Balanced performance (Fallback)"),
    ModelInfoDTO(name="models/gemini-1.5-pro", display_name="Gemini 1.5 Pro", description="High capability (Fallback)"),
)
_SERVER_ERROR_CODES = {ErrorCode.SERVER_ERROR, ErrorCode.UNAVAILABLE, ErrorCode.TRANSIENT}


def _readline(prompt: str) -> str:
    """Read one line from stdin; ``exit`` on EOF."""
    try:
        return input(prompt)
    except EOFError:
        return "exit"


class ChatShell:
    """REPL state: engine, selected model, streaming flag, metrics, transcript.

    Parameters:
        engine: Conversation engine owning the history.
        transcript: Session transcript writer.
        model: Initial model id; resolved from discovery when ``None``.
        streaming: Whether prompts stream by default.
        input_fn: Line reader (``input`` by default); tests pass a scripted one.
        out: Output stream.
    """

    def __init__(
        self,
        engine: ConversationEngine,
        transcript: ConversationLogger,
        *,
        model: Optional[str] = None,
        streaming: bool = True,
        input_fn: Callable[[str], str] = _readline,
        out: Optional[TextIO] = None,
    ) -> None:
        self.engine = engine
        self.transcript = transcript
        self.model = model
        self.streaming = streaming
        self.stats = SessionStats()
        self._input = input_fn
        self._out = out if out is not None else sys.stdout
        self._logger = get_logger("service.cli.shell")
        self._models: List[ModelInfoDTO] = []

    # ---- output helpers ----

    def _print(self, text: str = "") -> None:
        print(text, file=self._out)

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()

    # ---- models ----

    def discover_models(self) -> List[ModelInfoDTO]:
        """Fetch models once; fall back to a fixed list when discovery fails."""
        if self._models:
            return self._models
        try:
            self._models = list(self.engine.client.list_models())
        except ChatError as exc:
            log_event(self._logger, "cli.models.fallback", LogContext(), error=str(exc))
        if not self._models:
            self._models = list(FALLBACK_MODELS)
        return self._models

    def resolve_initial_model(self) -> str:
        if self.model:
            return self.model
        settings = self.engine.client.settings
        self.model = choose_model(
            self.discover_models(),
            configured=settings.default_model,
            preference=settings.model_preference,
        )
        return self.model

    def select_model(self) -> str:
        models = self.discover_models()
        self._print("Available Gemini Models:")
        for idx, m in enumerate(models, start=1):
            self._print(f"  [{idx}] {m.model_id} - {m.description or m.display_name or 'Google Gemini Model'}")
        default = self.model or models[0].model_id
        while True:
            choice = self._input(f"Select a model (1-{len(models)}) or press Enter for default [{default}]: ").strip()
            if not choice:
                self.model = default
                break
            if choice.isdigit() and 1 <= int(choice) <= len(models):
                self.model = models[int(choice) - 1].model_id
                break
            if choice.lower() == "exit":
                break
            self._print(f"Invalid selection. Please choose a number between 1 and {len(models)}.")
        self._print(f"Using model: {self.model}")
        return self.model or default

    # ---- main loop ----

    def run(self) -> int:
        self._print(f"Conversation log: {self.transcript.path}")
        self.resolve_initial_model()
        self._print(f"Model: {self.model}")
        while True:
            self._print(
                f"\nEnter prompt ('exit', 'reset', 'model', 'stats', 'log', 'stream' [{'ON' if self.streaming else 'OFF'}]):"
            )
            if turns := self.engine.history.turn_count:
                self._print(f"   (Context: {turns} turns)")
            line = self._input("> ")
            if not line or not line.strip():
                self._print("Prompt cannot be empty")
                continue
            if self.handle_command(line.strip()):
                if line.strip().lower() == "exit":
                    return EXIT_OK
                continue
            self.process_prompt(line)

    def handle_command(self, line: str) -> bool:
        """Run ``line`` if it is a shell command; return whether it was one."""
        head, _, rest = line.partition(" ")
        cmd = head.lower()
        if cmd not in COMMANDS or (rest.strip() and cmd != "model"):
            return False
        self.transcript.log_command(line if cmd == "model" else cmd)
        if cmd == "exit":
            self.print_summary()
            self._print("\nGoodbye!")
        elif cmd == "reset":
            self.engine.reset()
            self._print("Conversation context cleared. Starting fresh.")
        elif cmd == "model":
            if rest.strip():
                self.model = rest.strip().removeprefix("models/")
                self._print(f"Using model: {self.model}")
            else:
                self.select_model()
        elif cmd == "stats":
            self.print_summary()
        elif cmd == "log":
            self.open_log_folder()
        elif cmd == "stream":
            self.streaming = not self.streaming
            self._print(f"Streaming {'enabled' if self.streaming else 'disabled'}")
        else:
            self._print("Commands: " + ", ".join(COMMANDS))
        return True

    def process_prompt(self, prompt: str) -> None:
        model = self.model or self.resolve_initial_model()
        self.transcript.log_prompt(prompt, model, streaming=self.streaming)
        token = CancellationToken()
        started = time.perf_counter()
        try:
            text = self._call_streaming(model, prompt, token, started) if self.streaming else self._call_buffered(model, prompt, token)
        except KeyboardInterrupt:
            token.cancel("interrupted")
            self._print("\nRequest cancelled.")
            return
        except (ChatError, CancelledError) as exc:
            self.transcript.log_error(exc, model, prompt)
            self._report_failure(exc, model)
            return
        elapsed = time.perf_counter() - started
        if not text:
            self._print(f"No response received (took {format_elapsed(elapsed)})")
            return
        self.transcript.log_response(text, elapsed, model)
        metrics = ResponseMetrics(model=model, prompt_chars=len(prompt), response_chars=len(text), elapsed_seconds=elapsed)
        self.stats.record(metrics)
        self.print_metrics(metrics, text)

    def _call_streaming(self, model: str, prompt: str, token: CancellationToken, started: float) -> Optional[str]:
        self._print("\n--- Streaming Response ---")
        parts: List[str] = []
        with suppress_console_logs(), closing(self.engine.stream_with_history(model, prompt, token)) as stream:
            for delta in stream:
                if not parts:
                    self._print(f"First response: {(time.perf_counter() - started) * 1000:.0f}ms\n")
                parts.append(delta)
                self._write(delta)
        self._print("\n--------------------------")
        return "".join(parts) or None

    def _call_buffered(self, model: str, prompt: str, token: CancellationToken) -> Optional[str]:
        self._write("Generating response...")
        try:
            text = self.engine.send_with_history(model, prompt, token)
        finally:
            self._write("\r" + " " * 24 + "\r")
        if text:
            self._print("\n--- Response ---")
            self._print(text)
            self._print("----------------")
        return text

    def _report_failure(self, exc: BaseException, model: str) -> None:
        if isinstance(exc, CancelledError):
            self._print("\nRequest cancelled.")
            return
        if isinstance(exc, ChatError) and exc.code in _SERVER_ERROR_CODES:
            self._print(f"\nServer Error: The model '{model}' is experiencing issues.")
            self._print("Tip: Try switching to a different model using the 'model' command.")
            return
        if isinstance(exc, ChatError) and exc.status_code is None and exc.code not in (ErrorCode.VALIDATION, ErrorCode.DECODE):
            self._print(f"\nNetwork Error: {exc.message}")
            return
        self._print(f"\nError: {exc}")

    # ---- metrics ----

    def print_metrics(self, metrics: ResponseMetrics, text: str) -> None:
        tps = tokens_per_second(text, metrics.elapsed_seconds)
        self._print("Performance Metrics:")
        self._print(f"   Total Time: {format_elapsed(metrics.elapsed_seconds)}")
        self._print(f"   Words: {word_count(text)} | Characters: {metrics.response_chars:,}")
        self._print(f"   Est. Tokens: ~{estimate_tokens(metrics.response_chars)} | Speed: {tps:.1f} tokens/s {speed_bar(tps)}")
        self._print(f"   Mode: {'Streaming' if self.streaming else 'Standard'}")
        if self.stats.count > 1:
            avg = self.stats.average_seconds
            comparison = "faster" if metrics.elapsed_seconds < avg else "slower"
            self._print(f"   Session Avg: {format_elapsed(avg)} ({comparison})")

    def print_summary(self) -> None:
        if not self.stats.count:
            self._print("\nNo requests made yet in this session.")
            return
        duration = self.stats.duration_seconds()
        self._print("\n=== Session Statistics ===")
        self._print(f"  Total Requests: {self.stats.count}")
        self._print(f"  Average Response: {format_elapsed(self.stats.average_seconds)}")
        self._print(f"  Fastest: {format_elapsed(self.stats.fastest_seconds)}")
        self._print(f"  Slowest: {format_elapsed(self.stats.slowest_seconds)}")
        self._print(f"  Total Output: {self.stats.total_chars:,} characters")
        self._print(f"  Session Duration: {format_elapsed(duration)}")
        self._print(f"  Streaming: {'Enabled' if self.streaming else 'Disabled'}")
        self._print(f"  Context Depth: {self.engine.history.turn_count} turns")
        self._print("\n  Models Used:")
        usage = self.stats.model_usage()
        for model, count, avg in usage:
            self._print(f"     {model}: {count} requests (avg {avg:.2f}s)")
        self._print("==========================")
        self.transcript.log_session_stats(
            self.stats.count,
            self.stats.average_seconds,
            duration,
            {model: count for model, count, _ in usage},
        )

    def open_log_folder(self) -> None:
        directory = str(self.transcript.directory)
        opener = {"win32": "explorer", "darwin": "open"}.get(sys.platform, "xdg-open")
        try:
            subprocess.Popen([opener, directory])  # nosec B603 - fixed opener, own directory
            self._print(f"Opened log folder: {directory}")
        except OSError as exc:
            self._print(f"Could not open folder: {exc}")
            self._print(f"Log location: {directory}")


def handle_chat(args: argparse.Namespace) -> int:
    """Entry point for the ``chat`` subcommand."""
    try:
        settings = settings_from_args(args)
    except ConfigurationError as exc:
        return report_config_error(exc)
    engine = build_engine(settings)
    with ConversationLogger(settings.log_directory) as transcript:
        shell = ChatShell(engine, transcript, model=args.model, streaming=args.stream)
        try:
            return shell.run()
        except KeyboardInterrupt:
            shell.print_summary()
            return EXIT_OK


__all__ = ["ChatShell", "handle_chat", "FALLBACK_MODELS"]
