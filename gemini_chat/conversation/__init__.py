"""Conversation engine: history ownership with commit/rollback per call."""

from .engine import ConversationEngine

__all__ = ["ConversationEngine"]
