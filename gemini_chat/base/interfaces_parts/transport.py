"""Transport Protocol (single-class module).

Defines the HTTP capability the Gemini client depends on.
"""

from __future__ import annotations

from typing import Any, ContextManager, Dict, Iterator, Mapping, Optional, Protocol, runtime_checkable

from ..cancellation import CancellationToken


@runtime_checkable
class Transport(Protocol):
    """One HTTP exchange per call, buffered or streaming.

    Implementations raise ``TransportError`` for non-success statuses and
    connection failures, and hold no state across calls beyond a connection
    pool.
    """

    def send(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Mapping[str, str]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> bytes:
        """POST ``payload`` and return the complete response body."""
        ...

    def open_stream(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        params: Optional[Mapping[str, str]] = None,
        cancellation_token: Optional[CancellationToken] = None,
    ) -> ContextManager[Iterator[str]]:
        """POST ``payload`` and yield the response body line by line.

        The status is checked when the context is entered, before any line
        is read. The response is released when the context exits.
        """
        ...

    def get(self, path: str, *, params: Optional[Mapping[str, str]] = None) -> bytes:
        """GET ``path`` and return the complete response body."""
        ...
