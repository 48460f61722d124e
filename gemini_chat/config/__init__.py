"""Unified configuration layer.

Goals
-----
* Centralize defaults (base URL, model, timeout).
* Merge sources in a predictable order:
    1. Built-in defaults
    2. Optional config file (JSON or YAML) pointed to by GEMINI_CHAT_CONFIG_FILE
    3. Environment variables (GEMINI_API_KEY, GEMINI_MODEL, ...)
    4. In-code overrides passed to ``load_settings``
* Validate once at startup with ``validate_settings`` so the CLI can list
  every problem before any request is attempted.

Config File
-----------
JSON is tried first, then YAML. Values may sit under a ``GeminiSettings``
section or at the top level; keys may be snake_case or PascalCase:

```
GeminiSettings:
  ApiKey: ${GEMINI_API_KEY}
  BaseUrl: https://generativelanguage.googleapis.com/
  DefaultModel: gemini-2.5-flash
  TimeoutSeconds: 30
```

``${VAR}`` references are expanded from the environment.

Public API
----------
* GeminiSettings
* load_settings(overrides: dict | None = None) -> GeminiSettings
* validate_settings(settings: GeminiSettings) -> GeminiSettings
"""
from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

import yaml

from ..base.errors import ConfigurationError
from .defaults import (
    CONFIG_FILE_ENV,
    CONFIG_SECTION_NAME,
    GEMINI_DEFAULT_BASE_URL,
    GEMINI_DEFAULT_MODEL,
    GEMINI_DEFAULT_TIMEOUT_SECONDS,
    GEMINI_MAX_TIMEOUT_SECONDS,
    GEMINI_MIN_TIMEOUT_SECONDS,
)
from .env import env_overrides, is_placeholder


@dataclass(frozen=True)
class GeminiSettings:
    """Resolved client settings.

    Attributes:
        api_key: API key sent as the ``key`` query parameter.
        base_url: Absolute http(s) root of the API.
        default_model: Model used when the caller does not pick one.
        model_preference: Optional substring used to rank discovered models.
        timeout_seconds: Buffered request timeout.
        enable_detailed_logging: Switches logging to DEBUG.
        log_directory: Transcript directory override.
    """

    api_key: Optional[str] = None
    base_url: str = GEMINI_DEFAULT_BASE_URL
    default_model: Optional[str] = GEMINI_DEFAULT_MODEL
    model_preference: Optional[str] = None
    timeout_seconds: int = GEMINI_DEFAULT_TIMEOUT_SECONDS
    enable_detailed_logging: bool = False
    log_directory: Optional[str] = None

    def redacted(self) -> Dict[str, Any]:
        """Settings as a dict with the API key masked, for logs and ``status``."""
        data = {f.name: getattr(self, f.name) for f in fields(self)}
        if self.api_key:
            data["api_key"] = f"***{self.api_key[-4:]}" if len(self.api_key) > 8 else "***"
        return data


_FIELD_NAMES = {f.name for f in fields(GeminiSettings)}
_PASCAL_TO_FIELD = {
    "ApiKey": "api_key",
    "BaseUrl": "base_url",
    "DefaultModel": "default_model",
    "ModelPreference": "model_preference",
    "TimeoutSeconds": "timeout_seconds",
    "EnableDetailedLogging": "enable_detailed_logging",
    "LogDirectory": "log_directory",
}
_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _expand_env_refs(value: Any) -> Any:
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), ""), value)
    return value


def _parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "t", "true", "y", "yes", "on"}


def _parse_timeout(value: Any) -> int:
    """Parse a timeout; unparsable input falls back to the default."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return GEMINI_DEFAULT_TIMEOUT_SECONDS


def _normalize_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        name = _PASCAL_TO_FIELD.get(key, key)
        if name in _FIELD_NAMES:
            normalized[name] = _expand_env_refs(value)
    return normalized


def load_config_file(path: Optional[str] = None) -> Dict[str, Any]:
    """Load settings from a JSON or YAML file.

    Parameters:
        path: File to read; defaults to ``$GEMINI_CHAT_CONFIG_FILE``.

    Returns:
        Normalized field mapping, empty when no file is configured.

    Raises:
        ConfigurationError: when the file exists but cannot be parsed.
    """
    target = path or os.getenv(CONFIG_FILE_ENV)
    if not target:
        return {}
    file_path = Path(target).expanduser()
    if not file_path.is_file():
        return {}
    raw = file_path.read_text(encoding="utf-8")
    try:
        data = json.loads(raw)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ConfigurationError(
                message=f"cannot parse config file {file_path}",
                failures=[str(exc)],
                raw=exc,
            ) from exc
    if not isinstance(data, Mapping):
        return {}
    section = data.get(CONFIG_SECTION_NAME)
    return _normalize_keys(section if isinstance(section, Mapping) else data)


def _coerce(values: Mapping[str, Any]) -> Dict[str, Any]:
    coerced: Dict[str, Any] = {}
    for key, value in values.items():
        if key == "timeout_seconds":
            coerced[key] = _parse_timeout(value)
        elif key == "enable_detailed_logging":
            coerced[key] = _parse_bool(value)
        elif value is None or value == "":
            coerced[key] = None
        else:
            coerced[key] = str(value)
    return coerced


def load_settings(
    overrides: Optional[Mapping[str, Any]] = None,
    *,
    config_file: Optional[str] = None,
) -> GeminiSettings:
    """Merge defaults, config file, environment and overrides.

    Does not validate; call :func:`validate_settings` on the result.
    """
    merged: Dict[str, Any] = {}
    merged.update(load_config_file(config_file))
    merged.update(env_overrides())
    if overrides:
        merged.update(_normalize_keys({k: v for k, v in overrides.items() if v is not None}))
    settings = replace(GeminiSettings(), **_coerce(merged))
    if not settings.base_url:
        settings = replace(settings, base_url=GEMINI_DEFAULT_BASE_URL)
    return settings


def validate_settings(settings: GeminiSettings) -> GeminiSettings:
    """Check required values and ranges.

    Returns:
        ``settings`` unchanged when valid.

    Raises:
        ConfigurationError: listing every failure found.
    """
    failures: List[str] = []
    if not settings.api_key or not settings.api_key.strip():
        failures.append("ApiKey is required")
    elif is_placeholder(settings.api_key):
        failures.append("ApiKey looks like a placeholder value")
    if not settings.base_url or not settings.base_url.strip():
        failures.append("BaseUrl is required")
    else:
        parsed = urlparse(settings.base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            failures.append("BaseUrl must be a valid URL")
    if not GEMINI_MIN_TIMEOUT_SECONDS <= settings.timeout_seconds <= GEMINI_MAX_TIMEOUT_SECONDS:
        failures.append(
            f"TimeoutSeconds must be between {GEMINI_MIN_TIMEOUT_SECONDS} and {GEMINI_MAX_TIMEOUT_SECONDS}"
        )
    if failures:
        raise ConfigurationError(message="; ".join(failures), failures=failures)
    return settings


__all__ = [
    "GeminiSettings",
    "load_config_file",
    "load_settings",
    "validate_settings",
]
