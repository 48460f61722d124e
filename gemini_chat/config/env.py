"""gemini_chat.config.env
======================

Environment variable mapping for settings fields.

Design Notes
------------
- ``ENV_MAP`` maps each settings field to an ordered tuple of variable
  names; the first non-empty one wins. ``GEMINI_API_KEY`` is canonical and
  ``GOOGLE_API_KEY`` is accepted as an alias.
- Helpers never raise on unset variables; the loader decides defaults and
  validation reports what is missing.
"""

from __future__ import annotations

import os
from typing import Dict, Optional, Tuple

ENV_MAP: Dict[str, Tuple[str, ...]] = {
    "api_key": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "base_url": ("GEMINI_BASE_URL",),
    "default_model": ("GEMINI_MODEL", "GEMINI_DEFAULT_MODEL"),
    "model_preference": ("GEMINI_MODEL_PREFERENCE",),
    "timeout_seconds": ("GEMINI_TIMEOUT_SECONDS",),
    "enable_detailed_logging": ("GEMINI_DETAILED_LOGGING",),
    "log_directory": ("GEMINI_LOG_DIR",),
}


def is_placeholder(val: Optional[str]) -> bool:
    """Return True if the provided string looks like a placeholder value.

    Heuristics: contains 'placeholder', 'changeme', 'your_api_key' or 'example',
    case-insensitive.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return any(marker in v for marker in ("placeholder", "changeme", "your_api_key", "example"))


def resolve_env(field: str) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(value, variable_name)`` for the first non-empty candidate.

    ``(None, None)`` when nothing is set or the field is unknown.
    """
    for name in ENV_MAP.get(field, ()):
        if val := os.environ.get(name):
            return val, name
    return None, None


def env_overrides() -> Dict[str, str]:
    """Collect every settings field currently set in the environment."""
    found: Dict[str, str] = {}
    for field in ENV_MAP:
        value, _ = resolve_env(field)
        if value is not None:
            found[field] = value
    return found


__all__ = ["ENV_MAP", "is_placeholder", "resolve_env", "env_overrides"]
