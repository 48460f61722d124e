"""Shared builders for the test suite (settings, wire bodies, fake transports)."""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Sequence

import httpx

from gemini_chat.base.cancellation import CancellationToken
from gemini_chat.config import GeminiSettings
from gemini_chat.gemini import GeminiApiClient, HttpxTransport

API_KEY = "test-key-1234567890"
BASE_URL = "https://gemini.test/"
SYSTEM_CONTEXT = "### SYSTEM ENVIRONMENT CONTEXT ###\nfixed\n"


def make_settings(**overrides: Any) -> GeminiSettings:
    values: Dict[str, Any] = {"api_key": API_KEY, "base_url": BASE_URL, "default_model": "gemini-test"}
    values.update(overrides)
    return GeminiSettings(**values)


def unit(text: Optional[str]) -> str:
    """One response unit as JSON (``None`` gives a part without text)."""
    part: Dict[str, Any] = {} if text is None else {"text": text}
    return json.dumps({"candidates": [{"content": {"role": "model", "parts": [part]}}]})


def sse(*payloads: str) -> str:
    """Event-stream body with one ``data:`` record per payload."""
    return "".join(f"data: {p}\n\n" for p in payloads)


class StaticContext:
    """System context provider returning a fixed block and counting calls."""

    def __init__(self, text: str = SYSTEM_CONTEXT) -> None:
        self.text = text
        self.calls = 0

    def get_system_instruction(self) -> str:
        self.calls += 1
        return self.text


def mock_http_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler), base_url=BASE_URL)


def make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    *,
    context: Optional[StaticContext] = None,
    **settings: Any,
) -> GeminiApiClient:
    cfg = make_settings(**settings)
    transport = HttpxTransport(cfg, client=mock_http_client(handler))
    return GeminiApiClient(cfg, transport=transport, context_provider=context or StaticContext())


class ScriptedTransport:
    """In-memory ``Transport`` returning canned bodies and recording payloads.

    ``lines`` feeds ``open_stream``; an item that is an exception instance is
    raised when reached. ``error`` is raised when an exchange starts.
    ``after_send`` runs once a buffered body is ready, ``after_lines`` once
    the scripted lines are exhausted.
    """

    def __init__(
        self,
        *,
        body: bytes = b"{}",
        lines: Sequence[Any] = (),
        error: Optional[BaseException] = None,
        on_line: Optional[Callable[[int], None]] = None,
        after_send: Optional[Callable[[], None]] = None,
        after_lines: Optional[Callable[[], None]] = None,
    ) -> None:
        self.body = body
        self.lines = list(lines)
        self.error = error
        self.on_line = on_line
        self.after_send = after_send
        self.after_lines = after_lines
        self.payloads: List[Dict[str, Any]] = []
        self.paths: List[str] = []
        self.stream_closed = False

    def send(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Mapping[str, str]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> bytes:
        self.paths.append(path)
        self.payloads.append(payload)
        if self.error is not None:
            raise self.error
        if self.after_send is not None:
            self.after_send()
        return self.body

    @contextmanager
    def open_stream(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Mapping[str, str]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Iterator[Iterator[str]]:
        self.paths.append(path)
        self.payloads.append(payload)
        self.stream_closed = False
        if self.error is not None:
            raise self.error
        try:
            yield self._iter()
        finally:
            self.stream_closed = True

    def _iter(self) -> Iterator[str]:
        for idx, item in enumerate(self.lines):
            if self.on_line is not None:
                self.on_line(idx)
            if isinstance(item, BaseException):
                raise item
            yield item
        if self.after_lines is not None:
            self.after_lines()

    def get(self, path: str, *, params: Optional[Mapping[str, str]] = None) -> bytes:
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.body


def scripted_client(transport: ScriptedTransport, context: Optional[StaticContext] = None) -> GeminiApiClient:
    return GeminiApiClient(make_settings(), transport=transport, context_provider=context or StaticContext())
