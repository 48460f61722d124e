"""
Turn DTO: one message of a conversation.

Defines the `Role` enumeration and the immutable `Turn` dataclass. A user
turn is "provisional" while the call that appended it is in flight; the
engine either follows it with a model turn or removes it.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ..dto.gemini import ContentDTO, PartDTO


class Role(str, Enum):
    """Author of a turn, using the wire role names."""

    USER = "user"
    MODEL = "model"


@dataclass(frozen=True, eq=False)
class Turn:
    """A single committed or provisional message.

    Equality is identity: two turns with the same role and text are still
    different entries, which is what lets history removal target the exact
    provisional turn when a prompt is repeated.

    Attributes:
        role: The author of the message.
        text: UTF-8 message text.
    """

    role: Role
    text: str

    def to_content(self) -> ContentDTO:
        """Project to the wire ``{role, parts: [{text}]}`` shape."""
        return ContentDTO(role=self.role.value, parts=[PartDTO(text=self.text)])

    def same_as(self, other: "Turn") -> bool:
        """Value comparison (role and text), for tests and display code."""
        return self.role is other.role and self.text == other.text

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return f"Turn({self.role.value}: {self.text!r})"


__all__ = ["Role", "Turn"]
