"""Cooperative cancellation primitives (public API facade).

Notes
-----
- ``CancellationToken`` lets a caller abort an in-flight buffered or
  streaming call; the engine polls it between I/O steps.
- ``CancelledError`` is raised by operations that observe a cancellation
  request, after history has been rolled back.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
