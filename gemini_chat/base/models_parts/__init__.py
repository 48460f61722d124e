"""Conversation data model, one class per module (see ``gemini_chat.base.models``)."""
