"""SystemContextProvider Protocol (single-class module)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SystemContextProvider(Protocol):
    """Produces the system instruction block attached to every request.

    Must be queried once per call and never cached: the block carries the
    current time.
    """

    def get_system_instruction(self) -> str:
        ...
