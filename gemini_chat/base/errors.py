"""Unified error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``gemini_chat.base.errors_parts`` to keep a stable import path.
"""

from .errors_parts.error_code import ErrorCode
from .errors_parts.chat_error import (
    ChatError,
    ChatValidationError,
    ConfigurationError,
    ResponseDecodeError,
    TransportError,
)
from .errors_parts.classification import classify_exception, code_for_status

__all__ = [
    "ErrorCode",
    "ChatError",
    "ChatValidationError",
    "ConfigurationError",
    "ResponseDecodeError",
    "TransportError",
    "classify_exception",
    "code_for_status",
]
