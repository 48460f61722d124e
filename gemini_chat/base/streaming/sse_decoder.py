"""Server-sent event decoder for Gemini streaming responses.

Turns the line iterator of an open response body into a lazy, finite
sequence of text deltas. Rules, applied per line in arrival order:

- blank lines and ``:`` comment/heartbeat lines are ignored;
- ``data:`` lines have the prefix stripped; a ``[DONE]`` payload ends the
  sequence without reading further lines;
- any other ``data:`` payload is parsed as one response unit and the first
  candidate's first part text is yielded when non-empty;
- a payload that fails to parse is logged and skipped; the stream goes on;
- other SSE fields (``event:``, ``id:``, ``retry:``) carry nothing for this
  API and are ignored;
- end of input ends the sequence.

Only the line iterator itself can raise out of this generator (transport
failures, cancellation). Per-line decode problems never do.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Iterable, Iterator, Literal, Optional, Union

from pydantic import ValidationError

from ..cancellation import CancellationToken
from ..dto.gemini import GenerateContentResponseDTO
from ..logging import LogContext, log_event
from .streaming_metrics import StreamMetrics

DATA_PREFIX = "data:"
DONE_SENTINEL = "[DONE]"

SseKind = Literal["skip", "done", "data"]


@dataclass(frozen=True)
class SseLine:
    """Classification of one raw line."""

    kind: SseKind
    payload: Optional[str] = None


_SKIP = SseLine("skip")
_DONE = SseLine("done")


def _to_text(raw: Union[str, bytes]) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return raw


def decode_sse_line(raw: Union[str, bytes]) -> SseLine:
    """Classify a single event-stream line.

    Parameters:
        raw: One line without its terminator (a trailing ``\\r`` is tolerated).

    Returns:
        ``SseLine("skip")`` for noise, ``SseLine("done")`` for the sentinel,
        or ``SseLine("data", payload)`` for a payload to parse.
    """
    line = _to_text(raw).rstrip("\r\n")
    if not line.strip() or line.startswith(":"):
        return _SKIP
    if not line.startswith(DATA_PREFIX):
        return _SKIP
    payload = line[len(DATA_PREFIX):]
    if payload.startswith(" "):
        payload = payload[1:]
    if payload.strip() == DONE_SENTINEL:
        return _DONE
    return SseLine("data", payload)


def extract_delta(payload: str) -> Optional[str]:
    """Parse one ``data:`` payload and return its text delta, if any.

    Raises:
        pydantic.ValidationError: when the payload is not a response unit.
    """
    unit = GenerateContentResponseDTO.model_validate_json(payload)
    return unit.first_text()


def iter_sse_deltas(
    lines: Iterable[Union[str, bytes]],
    *,
    logger: Optional[logging.Logger] = None,
    ctx: Optional[LogContext] = None,
    cancellation_token: Optional[CancellationToken] = None,
    metrics: Optional[StreamMetrics] = None,
) -> Iterator[str]:
    """Yield text deltas decoded from ``lines``.

    Parameters:
        lines: Line iterator of an open streaming response.
        logger: Receives ``stream.decode_error`` warnings for skipped lines.
        ctx: Log context merged into those events.
        cancellation_token: Polled before each line is decoded and once more
            after the last one.
        metrics: Optional accumulator updated in place.

    Yields:
        Non-empty text fragments in wire order.

    Raises:
        CancelledError: when ``cancellation_token`` is cancelled.
    """
    stats = metrics if metrics is not None else StreamMetrics()
    t0 = time.perf_counter()
    line_no = 0
    for raw in lines:
        if cancellation_token is not None:
            cancellation_token.raise_if_cancelled()
        line_no += 1
        parsed = decode_sse_line(raw)
        if parsed.kind == "skip":
            stats.skipped += 1
            continue
        if parsed.kind == "done":
            stats.done_sentinel = True
            break
        try:
            delta = extract_delta(parsed.payload or "")
        except ValidationError as exc:
            stats.malformed += 1
            if logger is not None:
                details = exc.errors(include_url=False, include_input=False)
                log_event(
                    logger,
                    "stream.decode_error",
                    ctx,
                    level=logging.WARNING,
                    line=line_no,
                    error=details[0]["msg"] if details else str(exc),
                )
            continue
        if not delta:
            stats.empty_units += 1
            continue
        stats.record_delta(delta, t0)
        yield delta
    stats.total_duration_ms = (time.perf_counter() - t0) * 1000.0
    if cancellation_token is not None:
        cancellation_token.raise_if_cancelled()


__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "SseLine",
    "decode_sse_line",
    "extract_delta",
    "iter_sse_deltas",
]
