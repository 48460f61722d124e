"""Protocol definitions, one per module (see ``gemini_chat.base.interfaces``)."""
