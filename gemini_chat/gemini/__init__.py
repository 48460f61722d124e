"""Gemini REST client: transport, request/response operations, model discovery."""

from .client import GeminiApiClient
from .get_gemini_models import choose_model, fetch_models
from .transport import HttpxTransport

__all__ = ["GeminiApiClient", "HttpxTransport", "choose_model", "fetch_models"]
