"""System environment context attached to every request.

``EnvironmentContextProvider`` renders a plain-text instruction block that
grounds the model in the caller's machine: current local and UTC time,
timezone, OS, host, user and locale, followed by fixed operational
instructions. The block is rebuilt on every call because its value is the
freshness of the timestamp.

Clock and locale lookups are injectable so tests can pin them.
"""

from __future__ import annotations

import getpass
import locale
import logging
import os
import platform
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Tuple

from .logging import LogContext, get_logger, log_event

HEADER = "### SYSTEM ENVIRONMENT CONTEXT ###"
PREAMBLE = (
    "You are running locally on the user's machine. The following context is "
    "100% accurate and strictly defines your current reality:"
)
OPERATIONAL_INSTRUCTIONS = (
    "1. Use the Local Time above for any queries regarding 'now', 'today', or 'current time'.",
    "2. If asked about the system, refer to the OS Platform and User Name provided above.",
    "3. Do not Hallucinate the date. Trust this context over your training data.",
)
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_OS_NAMES = {"Windows": "Windows", "Linux": "Linux", "Darwin": "macOS"}


def _local_now() -> datetime:
    return datetime.now().astimezone()


def _current_locale() -> Tuple[Optional[str], Optional[str]]:
    try:
        return locale.getlocale()
    except ValueError:
        return None, None


def format_utc_offset(offset: Optional[timedelta]) -> str:
    """Render an offset as ``+HH:MM`` / ``-HH:MM``."""
    if offset is None:
        return "+00:00"
    total = int(offset.total_seconds())
    sign = "-" if total < 0 else "+"
    hours, rem = divmod(abs(total), 3600)
    return f"{sign}{hours:02d}:{rem // 60:02d}"


def os_name() -> str:
    """OS family name, or the platform description for anything unusual."""
    system = platform.system()
    return _OS_NAMES.get(system, platform.platform() or system or "Unknown")


def user_name() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return os.environ.get("USER") or os.environ.get("USERNAME") or "unknown"


def locale_labels(raw: Tuple[Optional[str], Optional[str]]) -> Tuple[str, str]:
    """Return ``(identifier, display_name)`` for a ``locale.getlocale()`` tuple.

    ``en_US`` becomes identifier ``en-US`` with display ``language=en,
    territory=US, encoding=UTF-8``. An unset locale reports ``C``.
    """
    code, encoding = raw
    if not code:
        return "C", f"POSIX default, encoding={encoding or 'unknown'}"
    language, _, territory = code.partition("_")
    identifier = f"{language}-{territory}" if territory else language
    parts = [f"language={language}"]
    if territory:
        parts.append(f"territory={territory}")
    parts.append(f"encoding={encoding or 'unknown'}")
    return identifier, ", ".join(parts)


class EnvironmentContextProvider:
    """Stateless producer of the system instruction block.

    Parameters:
        clock: Returns the current timezone-aware local time.
        locale_source: Returns a ``(code, encoding)`` pair like ``locale.getlocale()``.
        logger: Optional logger; defaults to ``gemini_chat.environment``.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _local_now,
        locale_source: Callable[[], Tuple[Optional[str], Optional[str]]] = _current_locale,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._clock = clock
        self._locale_source = locale_source
        self._logger = logger or get_logger("environment")

    def get_system_instruction(self) -> str:
        now = self._clock()
        if now.tzinfo is None:
            now = now.astimezone()
        utc_now = now.astimezone(timezone.utc)
        tz_name = now.tzname() or "UTC"
        tz_id = os.environ.get("TZ") or tz_name
        locale_id, locale_display = locale_labels(self._locale_source())

        lines = [
            HEADER,
            PREAMBLE,
            "",
            "[TEMPORAL DATA]",
            f"Local Time: {now.strftime(TIME_FORMAT)}",
            f"Day of Week: {now.strftime('%A')}",
            f"UTC Time: {utc_now.strftime(TIME_FORMAT)} Z",
            f"Timezone: {tz_name}",
            f"Timezone ID: {tz_id} (Offset: {format_utc_offset(now.utcoffset())})",
            "",
            "[SYSTEM DATA]",
            f"OS Platform: {os_name()}",
            f"OS Version: {platform.system()} {platform.release()} ({platform.version()})",
            f"Machine Name: {platform.node() or 'unknown'}",
            f"User Name: {user_name()}",
            f"Locale: {locale_id} ({locale_display})",
            "",
            "[OPERATIONAL INSTRUCTIONS]",
            *OPERATIONAL_INSTRUCTIONS,
        ]
        text = "\n".join(lines) + "\n"
        log_event(self._logger, "context.generated", LogContext(), level=logging.DEBUG, length=len(text))
        return text


__all__ = [
    "EnvironmentContextProvider",
    "OPERATIONAL_INSTRUCTIONS",
    "format_utc_offset",
    "locale_labels",
    "os_name",
    "user_name",
]
