"""Validated wire DTOs (pydantic)."""

from .gemini import (
    CandidateDTO,
    ContentDTO,
    GenerateContentRequestDTO,
    GenerateContentResponseDTO,
    ModelInfoDTO,
    ModelListResponseDTO,
    PartDTO,
    SafetyRatingDTO,
)

__all__ = [
    "CandidateDTO",
    "ContentDTO",
    "GenerateContentRequestDTO",
    "GenerateContentResponseDTO",
    "ModelInfoDTO",
    "ModelListResponseDTO",
    "PartDTO",
    "SafetyRatingDTO",
]
