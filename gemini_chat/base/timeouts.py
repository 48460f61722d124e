"""Unified timeout configuration.

Centralizes the timeout values the transport hands to ``httpx``:

TimeoutConfig
    Normalized timeout values in seconds.

get_timeout_config()
    Returns a process-cached configuration, parsing environment overrides on
    first use and re-parsing when those variables change. Supported
    environment variables (all optional):
        GEMINI_TIMEOUT_CONNECT_SECONDS
        GEMINI_TIMEOUT_STREAM_SECONDS
        GEMINI_TIMEOUT_SECONDS (request timeout; also read by the settings loader)

to_httpx_timeout(cfg, *, streaming)
    Builds the ``httpx.Timeout`` for buffered or streaming exchanges. For
    streaming, the read timeout is the idle gap allowed between two lines
    rather than a cap on the whole body.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Optional

import httpx


@dataclass(frozen=True)
class TimeoutConfig:
    """Container for normalized timeout values (seconds).

    Attributes:
        connect_timeout_seconds: Time allowed to establish the connection.
        request_timeout_seconds: Timeout for a buffered request, including
            waiting for the full body.
        stream_timeout_seconds: Idle timeout while waiting for the next line
            of an event stream.
    """

    connect_timeout_seconds: float = 10.0
    request_timeout_seconds: float = 30.0
    stream_timeout_seconds: float = 60.0


_ENV_NAMES = (
    "GEMINI_TIMEOUT_CONNECT_SECONDS",
    "GEMINI_TIMEOUT_SECONDS",
    "GEMINI_TIMEOUT_STREAM_SECONDS",
)
_CACHED: Optional[TimeoutConfig] = None
_ENV_GUARD: Optional[str] = None


def _parse_env_float(name: str, default: float) -> float:
    """Parse a positive float from the environment, falling back to ``default``."""
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    return val if val > 0 else default


def get_timeout_config() -> TimeoutConfig:
    """Return the process-cached `TimeoutConfig` instance."""
    global _CACHED, _ENV_GUARD  # noqa: PLW0603 - documented module cache
    guard = "/".join(os.getenv(n, "") for n in _ENV_NAMES)
    if _CACHED is not None and guard == _ENV_GUARD:
        return _CACHED
    defaults = TimeoutConfig()
    _CACHED = TimeoutConfig(
        connect_timeout_seconds=_parse_env_float(_ENV_NAMES[0], defaults.connect_timeout_seconds),
        request_timeout_seconds=_parse_env_float(_ENV_NAMES[1], defaults.request_timeout_seconds),
        stream_timeout_seconds=_parse_env_float(_ENV_NAMES[2], defaults.stream_timeout_seconds),
    )
    _ENV_GUARD = guard
    return _CACHED


def with_request_timeout(cfg: TimeoutConfig, seconds: Optional[float]) -> TimeoutConfig:
    """Return ``cfg`` with the request timeout replaced when ``seconds`` is set."""
    if seconds is None or seconds <= 0:
        return cfg
    return replace(cfg, request_timeout_seconds=float(seconds))


def to_httpx_timeout(cfg: TimeoutConfig, *, streaming: bool) -> httpx.Timeout:
    """Translate ``cfg`` into an ``httpx.Timeout`` for one exchange."""
    read = cfg.stream_timeout_seconds if streaming else cfg.request_timeout_seconds
    return httpx.Timeout(
        cfg.request_timeout_seconds,
        connect=cfg.connect_timeout_seconds,
        read=read,
    )


__all__ = [
    "TimeoutConfig",
    "get_timeout_config",
    "with_request_timeout",
    "to_httpx_timeout",
]
