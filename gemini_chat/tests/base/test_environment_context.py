"""System context block rendering with a pinned clock and locale."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from gemini_chat.base.environment import (
    OPERATIONAL_INSTRUCTIONS,
    EnvironmentContextProvider,
    format_utc_offset,
    locale_labels,
)

PINNED = datetime(2024, 3, 5, 14, 30, 15, tzinfo=timezone(timedelta(hours=5, minutes=30), "IST"))


def _provider() -> EnvironmentContextProvider:
    return EnvironmentContextProvider(clock=lambda: PINNED, locale_source=lambda: ("en_US", "UTF-8"))


def test_block_sections_and_temporal_values(monkeypatch):
    monkeypatch.setenv("TZ", "Asia/Kolkata")
    text = _provider().get_system_instruction()
    lines = text.splitlines()

    assert lines[0] == "### SYSTEM ENVIRONMENT CONTEXT ###"  # nosec B101 - pytest assert in tests
    for section in ("[TEMPORAL DATA]", "[SYSTEM DATA]", "[OPERATIONAL INSTRUCTIONS]"):
        assert section in lines  # nosec B101
    assert "Local Time: 2024-03-05 14:30:15" in lines  # nosec B101
    assert "Day of Week: Tuesday" in lines  # nosec B101
    assert "UTC Time: 2024-03-05 09:00:15 Z" in lines  # nosec B101
    assert "Timezone: IST" in lines  # nosec B101
    assert "Timezone ID: Asia/Kolkata (Offset: +05:30)" in lines  # nosec B101
    assert "Locale: en-US (language=en, territory=US, encoding=UTF-8)" in lines  # nosec B101
    assert lines[-3:] == list(OPERATIONAL_INSTRUCTIONS)  # nosec B101
    assert any(line.startswith("OS Platform: ") for line in lines)  # nosec B101
    assert any(line.startswith("User Name: ") for line in lines)  # nosec B101


def test_block_is_recomputed_on_every_call():
    ticks = iter([PINNED, PINNED + timedelta(minutes=1)])
    provider = EnvironmentContextProvider(clock=lambda: next(ticks), locale_source=lambda: (None, None))
    first = provider.get_system_instruction()
    second = provider.get_system_instruction()
    assert "14:30:15" in first and "14:31:15" in second  # nosec B101


def test_offset_and_locale_helpers():
    assert format_utc_offset(timedelta(hours=-3, minutes=-30)) == "-03:30"  # nosec B101
    assert format_utc_offset(None) == "+00:00"  # nosec B101
    assert locale_labels((None, None)) == ("C", "POSIX default, encoding=unknown")  # nosec B101
    assert locale_labels(("de", "ISO8859-1"))[0] == "de"  # nosec B101
