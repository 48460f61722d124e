"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `gemini_chat.base.errors` for the stable surface.
"""

from .error_code import ErrorCode
from .chat_error import (
    ChatError,
    ChatValidationError,
    ConfigurationError,
    ResponseDecodeError,
    TransportError,
)
from .classification import classify_exception, code_for_status

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
