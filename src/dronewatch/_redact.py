"""Redaction of telemetry payloads for debug logs.

Feature properties carry personal data (pilot, operator and display
names). Those values are masked, long strings are clipped and long feature
arrays are summarized so a busy feed cannot flood the log.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

_PERSONAL_KEYS: frozenset[str] = frozenset({"pilot", "name", "organization"})
_MAX_ITEMS = 5


def redact_for_log(value: Any, *, max_string: int = 512) -> Any:
    """Return a copy of a decoded JSON *value* that is safe to log."""
    if isinstance(value, str):
        return value if len(value) <= max_string else f"{value[:max_string]}…<truncated>"
    if isinstance(value, Mapping):
        return {
            str(key): "<redacted>"
            if str(key).lower() in _PERSONAL_KEYS
            else redact_for_log(item, max_string=max_string)
            for key, item in value.items()
        }
    if isinstance(value, list):
        shown = [redact_for_log(item, max_string=max_string) for item in value[:_MAX_ITEMS]]
        if len(value) > _MAX_ITEMS:
            shown.append(f"<{len(value) - _MAX_ITEMS} more>")
        return shown
    return value
