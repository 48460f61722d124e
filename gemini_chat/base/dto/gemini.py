"""
Pydantic DTOs for the Gemini REST wire format.

Purpose
-------
Describe the JSON bodies exchanged with ``generateContent``,
``streamGenerateContent`` (one response unit per SSE ``data:`` line) and the
model listing endpoint. Parsing a body through these models is the single
place where "malformed response" is decided: anything that fails
``model_validate_json`` is a decode failure.

Design
------
- Field names are snake_case in Python and camelCase on the wire via
  aliases; ``populate_by_name`` allows either when constructing.
- Unknown wire fields are ignored so newer API responses (usage metadata,
  model version, citations) still parse.
- Absent candidates or parts are valid; ``first_text`` returns ``None`` for
  them and callers treat that as "no content", not as an error.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PartDTO(_WireModel):
    """A single content part. Only text parts are produced or consumed."""

    text: Optional[str] = None


class ContentDTO(_WireModel):
    """A role-attributed list of parts (one turn, or the system block)."""

    role: Optional[str] = None
    parts: List[PartDTO] = Field(default_factory=list)


class GenerateContentRequestDTO(_WireModel):
    """Request body for both the buffered and the streaming endpoint."""

    contents: List[ContentDTO]
    system_instruction: Optional[ContentDTO] = Field(default=None, alias="systemInstruction")

    def to_wire(self) -> dict:
        """Return the JSON-ready body using wire (camelCase) names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SafetyRatingDTO(_WireModel):
    category: Optional[str] = None
    probability: Optional[str] = None


class CandidateDTO(_WireModel):
    """One generated candidate."""

    content: Optional[ContentDTO] = None
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")
    index: int = 0
    safety_ratings: List[SafetyRatingDTO] = Field(default_factory=list, alias="safetyRatings")


class GenerateContentResponseDTO(_WireModel):
    """Buffered response body, or one streamed response unit."""

    candidates: List[CandidateDTO] = Field(default_factory=list)

    def first_text(self) -> Optional[str]:
        """Return the first candidate's first part text, or ``None``.

        Empty strings are reported as ``None`` so callers have a single
        "no content" signal.
        """
        if not self.candidates:
            return None
        content = self.candidates[0].content
        if content is None or not content.parts:
            return None
        return content.parts[0].text or None


class ModelInfoDTO(_WireModel):
    """Entry of the model listing endpoint."""

    name: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    description: Optional[str] = None
    supported_generation_methods: List[str] = Field(default_factory=list, alias="supportedGenerationMethods")

    @property
    def model_id(self) -> str:
        """Model id usable in request paths (``models/`` prefix removed)."""
        return self.name.removeprefix("models/")

    def supports_generate_content(self) -> bool:
        return "generateContent" in self.supported_generation_methods


class ModelListResponseDTO(_WireModel):
    models: List[ModelInfoDTO] = Field(default_factory=list)
    next_page_token: Optional[str] = Field(default=None, alias="nextPageToken")


__all__ = [
    "PartDTO",
    "ContentDTO",
    "GenerateContentRequestDTO",
    "SafetyRatingDTO",
    "CandidateDTO",
    "GenerateContentResponseDTO",
    "ModelInfoDTO",
    "ModelListResponseDTO",
]
