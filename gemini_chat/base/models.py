"""
Conversation data model public surface.

Re-exports the one-class-per-file implementations under
``gemini_chat.base.models_parts``.
"""

from .models_parts.turn import Role, Turn
from .models_parts.history import History
from .models_parts.outgoing_request import OutgoingRequest
from .models_parts.call_result import CallResult, CallStatus

__all__ = [
    "Role",
    "Turn",
    "History",
    "OutgoingRequest",
    "CallResult",
    "CallStatus",
]
