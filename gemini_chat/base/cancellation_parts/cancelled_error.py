"""``CancelledError``: a call stopped because its token was cancelled."""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when a call observes a cancelled token.

    Not a ``ChatError``: an aborted call is not a failed one. History has
    already been rolled back when this reaches the caller.
    """


__all__ = ["CancelledError"]
