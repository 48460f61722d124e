"""
CallResult: outcome of one conversation call.

Presentation code receives one of three outcomes and renders them
differently: ``success`` (text committed to history), ``empty`` (the call
worked but produced no text; nothing committed) and ``failure`` (history
rolled back, error code and message attached).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from ..errors import ErrorCode

CallStatus = Literal["success", "empty", "failure"]


@dataclass(frozen=True)
class CallResult:
    status: CallStatus
    text: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, text: str) -> "CallResult":
        return cls(status="success", text=text)

    @classmethod
    def empty(cls) -> "CallResult":
        return cls(status="empty")

    @classmethod
    def failure(cls, code: ErrorCode, message: str) -> "CallResult":
        return cls(status="failure", error_code=code, message=message)

    @property
    def ok(self) -> bool:
        return self.status == "success"

    @property
    def is_empty(self) -> bool:
        return self.status == "empty"


__all__ = ["CallResult", "CallStatus"]
