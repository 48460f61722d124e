"""gemini_chat: streaming conversation client for the Gemini REST API.

Public surface:

- ``ConversationEngine``: history owner with commit/rollback per call
- ``GeminiApiClient`` / ``HttpxTransport``: request/response operations
- ``GeminiSettings`` / ``load_settings`` / ``validate_settings``
- ``CancellationToken`` and the error taxonomy
"""

from .base import (
    CallResult,
    CancellationToken,
    CancelledError,
    ChatError,
    ChatValidationError,
    ConfigurationError,
    ErrorCode,
    History,
    ResponseDecodeError,
    Role,
    TransportError,
    Turn,
)
from .config import GeminiSettings, load_settings, validate_settings
from .conversation import ConversationEngine
from .gemini import GeminiApiClient, HttpxTransport

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "CallResult",
    "CancellationToken",
    "CancelledError",
    "ChatError",
    "ChatValidationError",
    "ConfigurationError",
    "ConversationEngine",
    "ErrorCode",
    "GeminiApiClient",
    "GeminiSettings",
    "History",
    "HttpxTransport",
    "ResponseDecodeError",
    "Role",
    "TransportError",
    "Turn",
    "load_settings",
    "validate_settings",
]
