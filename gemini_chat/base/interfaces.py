"""
Collaborator interfaces consumed by the Gemini client and engine.

Re-exports the single-class modules under ``interfaces_parts``.
"""

from .interfaces_parts.transport import Transport
from .interfaces_parts.system_context_provider import SystemContextProvider

__all__ = ["Transport", "SystemContextProvider"]
