"""Cancellation implementation modules (see ``gemini_chat.base.cancellation``)."""
