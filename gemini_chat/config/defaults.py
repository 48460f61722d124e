"""gemini_chat.config.defaults
===========================

Small, stable default values used across the package. They can be
overridden via environment variables or a config file.

This module avoids importing from other packages to prevent circular
dependencies. Only plain constants live here.
"""

from __future__ import annotations

# ---- API ----
GEMINI_DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/"
GEMINI_DEFAULT_MODEL = "gemini-2.5-flash"
GEMINI_API_VERSION = "v1beta"

# Request timeout bounds (seconds), inclusive.
GEMINI_DEFAULT_TIMEOUT_SECONDS = 30
GEMINI_MIN_TIMEOUT_SECONDS = 1
GEMINI_MAX_TIMEOUT_SECONDS = 300

# ---- Config file ----
CONFIG_FILE_ENV = "GEMINI_CHAT_CONFIG_FILE"
# Section name looked up first inside a config file.
CONFIG_SECTION_NAME = "GeminiSettings"

# ---- Transcript / app directories ----
APP_DIR_NAME = "gemini-client"

# ---- Mock server ----
MOCK_SERVER_DEFAULT_HOST = "127.0.0.1"
MOCK_SERVER_DEFAULT_PORT = 5000
MOCK_MODEL_NAME = "models/gemini-mock-turbo"
MOCK_STREAM_CHUNKS = 500
MOCK_CHUNK_WORDS = 50
MOCK_CHUNK_DELAY_MS = 10
MOCK_BUFFERED_WORDS = 500


__all__ = [
    "GEMINI_DEFAULT_BASE_URL",
    "GEMINI_DEFAULT_MODEL",
    "GEMINI_API_VERSION",
    "GEMINI_DEFAULT_TIMEOUT_SECONDS",
    "GEMINI_MIN_TIMEOUT_SECONDS",
    "GEMINI_MAX_TIMEOUT_SECONDS",
    "CONFIG_FILE_ENV",
    "CONFIG_SECTION_NAME",
    "APP_DIR_NAME",
    "MOCK_SERVER_DEFAULT_HOST",
    "MOCK_SERVER_DEFAULT_PORT",
    "MOCK_MODEL_NAME",
    "MOCK_STREAM_CHUNKS",
    "MOCK_CHUNK_WORDS",
    "MOCK_CHUNK_DELAY_MS",
    "MOCK_BUFFERED_WORDS",
]
