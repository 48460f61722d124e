"""
OutgoingRequest: the per-call request value.

Built fresh for every call from the whole history plus a newly generated
system-context block; never retained after the call.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Tuple

from ..dto.gemini import ContentDTO, GenerateContentRequestDTO, PartDTO
from .turn import Turn


@dataclass(frozen=True)
class OutgoingRequest:
    """Immutable request snapshot.

    Attributes:
        history: Turns in conversational order.
        system_context: Instruction block attached as ``systemInstruction``.
    """

    history: Tuple[Turn, ...]
    system_context: str

    @classmethod
    def build(cls, turns: Iterable[Turn], system_context: str) -> "OutgoingRequest":
        return cls(history=tuple(turns), system_context=system_context)

    def to_dto(self) -> GenerateContentRequestDTO:
        return GenerateContentRequestDTO(
            contents=[t.to_content() for t in self.history],
            system_instruction=ContentDTO(role="system", parts=[PartDTO(text=self.system_context)]),
        )

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body sent to the API."""
        return self.to_dto().to_wire()


__all__ = ["OutgoingRequest"]
