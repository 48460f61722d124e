"""Cooperative cancellation token.

One token covers one conversation call. The caller keeps a reference and
may cancel it from any thread (a Ctrl+C handler, a UI button); the engine
checks it before the request is sent and the decoder before each stream
line. Callbacks registered with ``on_cancel`` run once, on the cancelling
thread; the transport registers one that closes the open response so a
blocked read returns immediately.
"""

from __future__ import annotations

import threading
from typing import Callable, List, Optional

from .cancelled_error import CancelledError

CancelCallback = Callable[[Optional[str]], None]


class CancellationToken:
    """Set-once cancellation flag with a reason and callbacks."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None
        self._callbacks: List[CancelCallback] = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> Optional[str]:
        return self._reason

    def cancel(self, reason: Optional[str] = None) -> None:
        """Request cancellation. Later calls are ignored, reason included."""
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            pending, self._callbacks = self._callbacks, []
        for callback in pending:
            callback(reason)

    def on_cancel(self, callback: CancelCallback) -> None:
        """Run ``callback(reason)`` on cancellation, or now if already cancelled."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback(self._reason)

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise CancelledError(self._reason or "operation cancelled")

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or ``timeout`` elapses; return the flag."""
        return self._event.wait(timeout)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"CancellationToken(cancelled={self.cancelled}, reason={self._reason!r})"


__all__ = ["CancellationToken", "CancelCallback"]
