"""Streaming metrics data structures."""
from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class StreamMetrics:
    """Counters collected while decoding one event stream.

    Attributes:
        emitted: Number of deltas yielded.
        emitted_chars: Total characters across yielded deltas.
        skipped: Blank, comment and non-data lines ignored.
        malformed: ``data:`` lines whose payload failed to parse.
        empty_units: Parsed units that carried no text.
        done_sentinel: Whether the stream ended on ``[DONE]``.
        time_to_first_token_ms: Delay from decode start to the first delta.
        total_duration_ms: Decode wall time, set when the stream ends.
    """

    emitted: int = 0
    emitted_chars: int = 0
    skipped: int = 0
    malformed: int = 0
    empty_units: int = 0
    done_sentinel: bool = False
    time_to_first_token_ms: Optional[float] = None
    total_duration_ms: Optional[float] = None

    def record_delta(self, delta: str, t0: float) -> None:
        if self.emitted == 0:
            self.time_to_first_token_ms = (time.perf_counter() - t0) * 1000.0
        self.emitted += 1
        self.emitted_chars += len(delta)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


__all__ = ["StreamMetrics"]
