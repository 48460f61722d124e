"""HTTP transport for the Gemini REST API.

``HttpxTransport`` performs exactly one HTTP exchange per call on a pooled
``httpx.Client``:

- ``send``: buffered POST, returns the full body;
- ``open_stream``: POST with ``alt=sse``, context manager yielding body lines;
- ``get``: buffered GET (model discovery).

Failure handling
----------------
- Non-2xx responses: the body is read, an ``http.error`` event is logged at
  ERROR and ``TransportError`` is raised with the HTTP status and a code
  mapped from it.
- ``httpx`` connect/read/timeout errors, including errors raised while
  reading stream lines, become ``TransportError`` with a classified code.
- The response is closed on every path. A cancelled token closes an open
  streaming response so a blocked line read returns promptly; the resulting
  read error is reported as ``CancelledError``.

The API key travels as the ``key`` query parameter and is masked in every
message this module logs or raises.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Mapping, Optional

import httpx

from ..base.cancellation import CancellationToken, CancelledError
from ..base.errors import TransportError, classify_exception, code_for_status
from ..base.http import get_httpx_client
from ..base.logging import LogContext, get_logger, log_event
from ..base.timeouts import TimeoutConfig, get_timeout_config, to_httpx_timeout, with_request_timeout
from ..config import GeminiSettings

SSE_HEADERS = {"Accept": "text/event-stream", "Cache-Control": "no-cache"}
# Longest error body excerpt kept in logs and exception messages.
MAX_ERROR_BODY_CHARS = 2000


class HttpxTransport:
    """``Transport`` implementation backed by ``httpx``.

    Parameters:
        settings: Base URL, API key and request timeout.
        client: Optional pre-built client (tests inject one with an
            ``httpx.MockTransport`` or a FastAPI ``TestClient``). When
            omitted, pooled clients from ``get_httpx_client`` are used.
        timeouts: Optional timeout override; defaults to the environment
            config with the request timeout taken from ``settings``.
        logger: Optional logger; defaults to ``gemini_chat.gemini.transport``.
    """

    def __init__(
        self,
        settings: GeminiSettings,
        client: Optional[httpx.Client] = None,
        *,
        timeouts: Optional[TimeoutConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._timeouts = timeouts or with_request_timeout(get_timeout_config(), settings.timeout_seconds)
        self._logger = logger or get_logger("gemini.transport")

    # ---- public API ----

    def send(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Mapping[str, str]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> bytes:
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled()
        client = self._http("gemini.chat")
        try:
            response = client.post(
                path,
                json=payload,
                params=self._params(params),
                timeout=to_httpx_timeout(self._timeouts, streaming=False),
            )
        except httpx.HTTPError as exc:
            raise self._failure(exc, path) from exc
        self._check_status(response, path)
        return response.content

    @contextmanager
    def open_stream(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Mapping[str, str]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Iterator[Iterator[str]]:
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled()
        client = self._http("gemini.stream")
        request = client.build_request(
            "POST",
            path,
            json=payload,
            params=self._params(params, streaming=True),
            headers=SSE_HEADERS,
            timeout=to_httpx_timeout(self._timeouts, streaming=True),
        )
        try:
            response = client.send(request, stream=True)
        except httpx.HTTPError as exc:
            raise self._failure(exc, path) from exc
        try:
            if cancellation_token is not None:
                cancellation_token.on_cancel(lambda _reason: response.close())
            if not response.is_success:
                response.read()
                self._check_status(response, path)
            yield self._iter_lines(response, path, cancellation_token)
        finally:
            response.close()

    def get(self, path: str, *, params: Optional[Mapping[str, str]] = None) -> bytes:
        client = self._http("gemini.models")
        try:
            response = client.get(
                path,
                params=self._params(params),
                timeout=to_httpx_timeout(self._timeouts, streaming=False),
            )
        except httpx.HTTPError as exc:
            raise self._failure(exc, path) from exc
        self._check_status(response, path)
        return response.content

    # ---- internals ----

    def _http(self, purpose: str) -> httpx.Client:
        if self._client is not None:
            return self._client
        return get_httpx_client(self._settings.base_url, purpose=purpose)

    def _params(self, extra: Optional[Mapping[str, str]], *, streaming: bool = False) -> Dict[str, str]:
        params: Dict[str, str] = {}
        if self._settings.api_key:
            params["key"] = self._settings.api_key
        if streaming:
            params["alt"] = "sse"
        if extra:
            params.update(extra)
        return params

    def _redact(self, text: str) -> str:
        key = self._settings.api_key
        return text.replace(key, "***") if key else text

    def _iter_lines(
        self,
        response: httpx.Response,
        path: str,
        cancellation_token: Optional[CancellationToken],
    ) -> Iterator[str]:
        try:
            yield from response.iter_lines()
        except (httpx.HTTPError, httpx.StreamError) as exc:
            if cancellation_token is not None and cancellation_token.cancelled:
                raise CancelledError(cancellation_token.reason or "operation cancelled") from exc
            raise self._failure(exc, path) from exc

    def _check_status(self, response: httpx.Response, path: str) -> None:
        if response.is_success:
            return
        status = response.status_code
        body = self._redact(response.text[:MAX_ERROR_BODY_CHARS])
        code = code_for_status(status)
        log_event(
            self._logger,
            "http.error",
            LogContext(),
            level=logging.ERROR,
            path=path,
            status=status,
            error_code=code.value,
            body=body,
        )
        raise TransportError(
            code=code,
            message=f"{status} {response.reason_phrase}: {body}".strip(),
            status_code=status,
        )

    def _failure(self, exc: BaseException, path: str) -> TransportError:
        code = classify_exception(exc)
        message = self._redact(str(exc)) or type(exc).__name__
        log_event(
            self._logger,
            "http.error",
            LogContext(),
            level=logging.ERROR,
            path=path,
            error_code=code.value,
            error=message,
        )
        return TransportError(code=code, message=message, raw=exc)


__all__ = ["HttpxTransport", "SSE_HEADERS"]
