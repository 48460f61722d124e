"""
Base package.

Provider-agnostic building blocks shared by the Gemini client, the
conversation engine and the service layer:

- Errors: normalized taxonomy and exception classification
- Cancellation: cooperative tokens polled between I/O steps
- Logging: structured JSON events
- Models: turns, history, outgoing request, call result
- DTOs: pydantic wire models
- Streaming: event-stream decoder and metrics
"""

from .cancellation import CancellationToken, CancelledError
from .errors import (
    ChatError,
    ChatValidationError,
    ConfigurationError,
    ErrorCode,
    ResponseDecodeError,
    TransportError,
    classify_exception,
)
from .models import CallResult, History, OutgoingRequest, Role, Turn

__all__ = [
    "CancellationToken",
    "CancelledError",
    "ChatError",
    "ChatValidationError",
    "ConfigurationError",
    "ErrorCode",
    "ResponseDecodeError",
    "TransportError",
    "classify_exception",
    "CallResult",
    "History",
    "OutgoingRequest",
    "Role",
    "Turn",
]
