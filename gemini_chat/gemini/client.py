"""Gemini API client.

Stateless request/response operations over a ``Transport``:

- ``build_request``: snapshot turns plus a freshly generated system context;
- ``generate_content``: buffered call, returns the text or ``None``;
- ``stream_generate_content``: generator of text deltas decoded from the
  event stream;
- ``list_models``: model discovery.

The client owns no conversation state; the ``ConversationEngine`` decides
what to commit to history. Every call logs normalized ``chat.*`` or
``stream.*`` events. The API key is never part of a log record.
"""

from __future__ import annotations

import logging
import uuid
from typing import Iterable, Iterator, List, Optional

from ..base.cancellation import CancellationToken
from ..base.dto.gemini import ModelInfoDTO
from ..base.environment import EnvironmentContextProvider
from ..base.errors import ChatError, classify_exception
from ..base.interfaces import SystemContextProvider, Transport
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.models import OutgoingRequest, Turn
from ..base.streaming import StreamMetrics, iter_sse_deltas
from ..config import GeminiSettings
from .get_gemini_models import fetch_models
from .helpers import (
    GENERATE_ACTION,
    STREAM_ACTION,
    model_path,
    normalize_model_id,
    parse_generate_response,
    require_model_id,
)
from .transport import HttpxTransport


class GeminiApiClient:
    """Client for ``generateContent`` and ``streamGenerateContent``.

    Parameters:
        settings: Resolved settings (base URL, API key, timeout).
        transport: Optional transport; defaults to ``HttpxTransport(settings)``.
        context_provider: Source of the system instruction block; defaults to
            ``EnvironmentContextProvider``.
        logger: Optional logger; defaults to ``gemini_chat.gemini.client``.
    """

    def __init__(
        self,
        settings: GeminiSettings,
        transport: Optional[Transport] = None,
        context_provider: Optional[SystemContextProvider] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._settings = settings
        self._logger = logger or get_logger("gemini.client")
        self._transport = transport or HttpxTransport(settings)
        self._context_provider = context_provider or EnvironmentContextProvider()

    @property
    def settings(self) -> GeminiSettings:
        return self._settings

    @property
    def transport(self) -> Transport:
        return self._transport

    def build_request(self, history: Iterable[Turn]) -> OutgoingRequest:
        """Snapshot ``history`` with a system context generated now."""
        return OutgoingRequest.build(history, self._context_provider.get_system_instruction())

    def generate_content(
        self,
        model_id: str,
        request: OutgoingRequest,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Optional[str]:
        """Execute a buffered call.

        Returns:
            The first candidate's text, or ``None`` when the response carries
            none.

        Raises:
            ChatValidationError: blank ``model_id``.
            TransportError: non-success status or connection failure.
            ResponseDecodeError: body does not parse.
            CancelledError: token cancelled before the request was sent.
        """
        model = normalize_model_id(require_model_id(model_id))
        ctx = self._ctx(model, request)
        normalized_log_event(
            self._logger, "chat.start", ctx, phase="start", attempt=1, emitted=False, tokens=None
        )
        try:
            body = self._transport.send(
                model_path(model, GENERATE_ACTION),
                request.to_payload(),
                cancellation_token=cancellation_token,
            )
            text = parse_generate_response(body, model=model)
        except Exception as exc:
            self._log_error("chat.error", ctx, exc, emitted=False)
            _attach_model(exc, model)
            raise
        normalized_log_event(
            self._logger,
            "chat.end",
            ctx,
            phase="finalize",
            attempt=1,
            emitted=text is not None,
            tokens=None,
            response_chars=len(text or ""),
        )
        return text

    def stream_generate_content(
        self,
        model_id: str,
        request: OutgoingRequest,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> Iterator[str]:
        """Execute a streaming call, yielding text deltas in arrival order.

        Transport failures surface on the first ``next()``, before any delta.
        Closing the generator early closes the underlying response.
        """
        model = normalize_model_id(require_model_id(model_id))
        ctx = self._ctx(model, request)
        metrics = StreamMetrics()
        normalized_log_event(
            self._logger, "stream.start", ctx, phase="start", attempt=1, emitted=False, tokens=None
        )
        try:
            with self._transport.open_stream(
                model_path(model, STREAM_ACTION),
                request.to_payload(),
                cancellation_token=cancellation_token,
            ) as lines:
                yield from iter_sse_deltas(
                    lines,
                    logger=self._logger,
                    ctx=ctx,
                    cancellation_token=cancellation_token,
                    metrics=metrics,
                )
        except GeneratorExit:
            normalized_log_event(
                self._logger,
                "stream.finalize",
                ctx,
                phase="finalize",
                attempt=1,
                emitted=metrics.emitted > 0,
                tokens=None,
                abandoned=True,
                deltas=metrics.emitted,
            )
            raise
        except Exception as exc:
            self._log_error("stream.error", ctx, exc, emitted=metrics.emitted > 0)
            _attach_model(exc, model)
            raise
        normalized_log_event(
            self._logger,
            "stream.finalize",
            ctx,
            phase="finalize",
            attempt=1,
            emitted=metrics.emitted > 0,
            tokens=None,
            deltas=metrics.emitted,
            response_chars=metrics.emitted_chars,
            skipped=metrics.skipped,
            malformed=metrics.malformed,
            empty_units=metrics.empty_units,
            done_sentinel=metrics.done_sentinel,
            time_to_first_token_ms=metrics.time_to_first_token_ms,
            total_duration_ms=metrics.total_duration_ms,
        )

    def list_models(self) -> List[ModelInfoDTO]:
        """Return models that support ``generateContent``."""
        return fetch_models(self._transport)

    # ---- internals ----

    def _ctx(self, model: str, request: OutgoingRequest) -> LogContext:
        return LogContext(
            model=model,
            request_id=uuid.uuid4().hex[:12],
            history_items=len(request.history),
        )

    def _log_error(self, event: str, ctx: LogContext, exc: BaseException, *, emitted: bool) -> None:
        code = classify_exception(exc)
        normalized_log_event(
            self._logger,
            event,
            ctx,
            phase="error",
            level=logging.ERROR,
            attempt=1,
            error_code=code.value,
            emitted=emitted,
            tokens=None,
            error=str(exc),
        )


def _attach_model(exc: Exception, model: str) -> None:
    if isinstance(exc, ChatError) and exc.model is None:
        exc.model = model


__all__ = ["GeminiApiClient"]
