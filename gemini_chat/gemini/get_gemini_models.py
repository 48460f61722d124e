"""
Gemini: get models

Behavior
- Lists models through ``GET /v1beta/models``, following ``nextPageToken``
  until the listing is exhausted.
- Keeps only models that support ``generateContent`` unless asked for all.
- ``choose_model`` picks the model the shell starts with: the configured
  default when it is listed, else the first listed model matching the
  preference substring, else the configured default as given, else the
  first listed model, else the built-in default.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from pydantic import ValidationError

from ..base.dto.gemini import ModelInfoDTO, ModelListResponseDTO
from ..base.errors import ResponseDecodeError
from ..base.interfaces import Transport
from ..config.defaults import GEMINI_DEFAULT_MODEL
from .helpers import MODELS_PATH, normalize_model_id

PAGE_SIZE = "1000"
# Guard against a server that keeps returning the same page token.
MAX_PAGES = 20


def fetch_models(transport: Transport, *, generate_only: bool = True) -> List[ModelInfoDTO]:
    """Return every listed model.

    Raises:
        TransportError: on HTTP failure.
        ResponseDecodeError: when a listing page cannot be parsed.
    """
    models: List[ModelInfoDTO] = []
    token: Optional[str] = None
    for _ in range(MAX_PAGES):
        params = {"pageSize": PAGE_SIZE}
        if token:
            params["pageToken"] = token
        body = transport.get(MODELS_PATH, params=params)
        try:
            page = ModelListResponseDTO.model_validate_json(body)
        except ValidationError as exc:
            raise ResponseDecodeError(message="model listing is not valid JSON", raw=exc) from exc
        models.extend(page.models)
        token = page.next_page_token
        if not token:
            break
    if generate_only:
        models = [m for m in models if m.supports_generate_content()]
    return models


def choose_model(
    models: Sequence[ModelInfoDTO],
    *,
    configured: Optional[str] = None,
    preference: Optional[str] = None,
) -> str:
    ids = [m.model_id for m in models]
    configured = normalize_model_id(configured) if configured else None
    if configured and configured in ids:
        return configured
    if preference:
        needle = preference.lower()
        for model_id in ids:
            if needle in model_id.lower():
                return model_id
    if configured:
        return configured
    return ids[0] if ids else GEMINI_DEFAULT_MODEL


__all__ = ["fetch_models", "choose_model"]
