"""Gemini helpers: endpoint paths, input checks and response text extraction."""

from __future__ import annotations

from typing import Optional, Union

from pydantic import ValidationError

from ..base.dto.gemini import GenerateContentResponseDTO
from ..base.errors import ChatValidationError, ResponseDecodeError
from ..config.defaults import GEMINI_API_VERSION

GENERATE_ACTION = "generateContent"
STREAM_ACTION = "streamGenerateContent"
MODELS_PATH = f"/{GEMINI_API_VERSION}/models"


def normalize_model_id(model_id: str) -> str:
    """Strip whitespace and a leading ``models/`` prefix."""
    return model_id.strip().removeprefix("models/")


def model_path(model_id: str, action: str) -> str:
    """Return the request path for ``action`` on ``model_id``."""
    return f"{MODELS_PATH}/{normalize_model_id(model_id)}:{action}"


def require_model_id(model_id: Optional[str]) -> str:
    if model_id is None or not model_id.strip():
        raise ChatValidationError(message="model id must not be empty")
    return model_id


def require_prompt(prompt: Optional[str], *, model: Optional[str] = None) -> str:
    if prompt is None or not prompt.strip():
        raise ChatValidationError(message="prompt must not be empty or whitespace", model=model)
    return prompt


def parse_generate_response(body: Union[str, bytes], *, model: Optional[str] = None) -> Optional[str]:
    """Return the first candidate's first part text of a buffered response.

    Returns ``None`` when the body is well formed but carries no text.

    Raises:
        ResponseDecodeError: when the body is not a response object.
    """
    try:
        parsed = GenerateContentResponseDTO.model_validate_json(body)
    except ValidationError as exc:
        raise ResponseDecodeError(
            message=f"response body is not a generateContent result ({exc.error_count()} errors)",
            model=model,
            raw=exc,
        ) from exc
    return parsed.first_text()


__all__ = [
    "GENERATE_ACTION",
    "STREAM_ACTION",
    "MODELS_PATH",
    "normalize_model_id",
    "model_path",
    "require_model_id",
    "require_prompt",
    "parse_generate_response",
]
