"""Streaming package.

Exposes the event-stream decoder and its metrics under a single namespace.
"""

from .sse_decoder import (
    DATA_PREFIX,
    DONE_SENTINEL,
    SseLine,
    decode_sse_line,
    extract_delta,
    iter_sse_deltas,
)
from .streaming_metrics import StreamMetrics

__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "SseLine",
    "decode_sse_line",
    "extract_delta",
    "iter_sse_deltas",
    "StreamMetrics",
]
