"""
Mapping of exceptions and HTTP statuses to ``ErrorCode``.

``classify_exception`` is what the engine records in ``CallResult`` and what
the CLI prints as ``code``. Order of precedence: ``ChatError`` keeps its own
code, then cancellation, timeouts, an HTTP status found on the exception,
other httpx transport failures, and finally a few message keywords.
"""
from __future__ import annotations

from typing import Optional, Tuple

import httpx

from ..cancellation_parts.cancelled_error import CancelledError
from .chat_error import ChatError
from .error_code import ErrorCode

_STATUS_CODES = {
    400: ErrorCode.VALIDATION,
    401: ErrorCode.AUTH,
    403: ErrorCode.AUTH,
    404: ErrorCode.NOT_FOUND,
    408: ErrorCode.TIMEOUT,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION,
    429: ErrorCode.RATE_LIMIT,
    500: ErrorCode.SERVER_ERROR,
    502: ErrorCode.TRANSIENT,
    503: ErrorCode.UNAVAILABLE,
    504: ErrorCode.TIMEOUT,
}

_KEYWORDS: Tuple[Tuple[ErrorCode, Tuple[str, ...]], ...] = (
    (ErrorCode.TIMEOUT, ("timeout", "timed out")),
    (ErrorCode.AUTH, ("unauthorized", "forbidden", "api key")),
    (ErrorCode.NOT_FOUND, ("not found", "does not exist")),
    (ErrorCode.UNAVAILABLE, ("unavailable",)),
    (ErrorCode.VALIDATION, ("invalid", "malformed")),
)


def _valid_status(value: object) -> Optional[int]:
    return value if isinstance(value, int) and 100 <= value <= 599 else None


def status_of(exc: BaseException) -> Optional[int]:
    """HTTP status carried by ``exc``, if any.

    Looks at ``status_code``, then ``status``, then ``response.status_code``.
    """
    for candidate in (
        getattr(exc, "status_code", None),
        getattr(exc, "status", None),
        getattr(getattr(exc, "response", None), "status_code", None),
    ):
        status = _valid_status(candidate)
        if status is not None:
            return status
    return None


def code_for_status(status: int) -> ErrorCode:
    """Map an HTTP status to an ``ErrorCode``.

    Unlisted 5xx statuses map to ``SERVER_ERROR``; anything else that is not
    in the table maps to ``TRANSPORT``.
    """
    if status in _STATUS_CODES:
        return _STATUS_CODES[status]
    return ErrorCode.SERVER_ERROR if 500 <= status <= 599 else ErrorCode.TRANSPORT


def _code_from_message(message: str) -> ErrorCode:
    lowered = message.lower()
    for code, keywords in _KEYWORDS:
        if any(word in lowered for word in keywords):
            return code
    return ErrorCode.UNKNOWN


def classify_exception(exc: BaseException) -> ErrorCode:
    """Return the ``ErrorCode`` describing ``exc``."""
    if isinstance(exc, ChatError):
        return exc.code
    if isinstance(exc, CancelledError):
        return ErrorCode.CANCELLED
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return ErrorCode.TIMEOUT
    status = status_of(exc)
    if status is not None:
        return code_for_status(status)
    if isinstance(exc, httpx.TransportError):
        return ErrorCode.TRANSPORT
    return _code_from_message(str(exc))


__all__ = ["classify_exception", "code_for_status", "status_of"]
