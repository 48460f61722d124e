"""
Structured chat error exception types.

`ChatError` carries a normalized `ErrorCode` plus the HTTP status and model
involved, so callers can render a useful message and the engine can log a
consistent `error_code`. Subclasses mark the failure stage:

- ``ChatValidationError``: input rejected before any state change or I/O.
- ``TransportError``: non-success status or connection-level failure.
- ``ResponseDecodeError``: a buffered response body did not match the
  expected structure.
- ``ConfigurationError``: settings failed validation at startup.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .error_code import ErrorCode


@dataclass
class ChatError(Exception):
    """Represents a structured failure of a conversation call.

    Attributes:
        code: Normalized :class:`ErrorCode` classification for the failure.
        message: Human-readable error message suitable for logging.
        model: Optional model id associated with the failure.
        status_code: HTTP status when the failure came from a response.
        raw: Optional original exception for diagnostics.
    """

    code: ErrorCode
    message: str
    model: Optional[str] = None
    status_code: Optional[int] = None
    raw: Optional[BaseException] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        status = f" (HTTP {self.status_code})" if self.status_code is not None else ""
        return f"{self.model or '-'} {self.code.value}{status}: {self.message}"


@dataclass
class ChatValidationError(ChatError):
    """Raised when a model id or prompt is empty or blank."""

    code: ErrorCode = ErrorCode.VALIDATION
    message: str = "invalid input"


@dataclass
class TransportError(ChatError):
    """Raised when the HTTP exchange fails before or while reading the body."""

    code: ErrorCode = ErrorCode.TRANSPORT
    message: str = "transport failure"


@dataclass
class ResponseDecodeError(ChatError):
    """Raised when a buffered response body cannot be parsed."""

    code: ErrorCode = ErrorCode.DECODE
    message: str = "malformed response body"


@dataclass
class ConfigurationError(ChatError):
    """Raised when settings are missing or out of range.

    ``failures`` lists every individual validation message so the CLI can
    print all of them at once.
    """

    code: ErrorCode = ErrorCode.VALIDATION
    message: str = "configuration validation failed"
    failures: List[str] = field(default_factory=list)


__all__ = [
    "ChatError",
    "ChatValidationError",
    "TransportError",
    "ResponseDecodeError",
    "ConfigurationError",
]
