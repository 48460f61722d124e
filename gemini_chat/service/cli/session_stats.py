"""Per-response metrics and the session summary shown by the shell."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, List, Tuple


@dataclass(frozen=True)
class ResponseMetrics:
    model: str
    prompt_chars: int
    response_chars: int
    elapsed_seconds: float
    timestamp: float = field(default_factory=time.time)


@dataclass
class SessionStats:
    """Accumulates :class:`ResponseMetrics` for one shell session."""

    responses: List[ResponseMetrics] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)

    def record(self, metrics: ResponseMetrics) -> None:
        self.responses.append(metrics)

    @property
    def count(self) -> int:
        return len(self.responses)

    @property
    def average_seconds(self) -> float:
        if not self.responses:
            return 0.0
        return sum(m.elapsed_seconds for m in self.responses) / len(self.responses)

    @property
    def fastest_seconds(self) -> float:
        return min((m.elapsed_seconds for m in self.responses), default=0.0)

    @property
    def slowest_seconds(self) -> float:
        return max((m.elapsed_seconds for m in self.responses), default=0.0)

    @property
    def total_chars(self) -> int:
        return sum(m.response_chars for m in self.responses)

    def duration_seconds(self, now: float | None = None) -> float:
        """Seconds since the first recorded response (0 when none)."""
        if not self.responses:
            return 0.0
        return (now if now is not None else time.time()) - self.responses[0].timestamp

    def model_usage(self) -> List[Tuple[str, int, float]]:
        """``(model, requests, avg_seconds)`` rows, most used first."""
        grouped: Dict[str, List[float]] = {}
        for m in self.responses:
            grouped.setdefault(m.model, []).append(m.elapsed_seconds)
        rows = [(model, len(times), sum(times) / len(times)) for model, times in grouped.items()]
        return sorted(rows, key=lambda row: row[1], reverse=True)


__all__ = ["ResponseMetrics", "SessionStats"]
