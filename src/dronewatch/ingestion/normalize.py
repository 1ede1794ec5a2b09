"""Normalization helpers.

Centralizes defensive parsing of loosely typed telemetry values.
"""

from __future__ import annotations

import math
from typing import Any


def safe_float(value: Any) -> float | None:
    """Parse *value* as a finite float, or ``None``.

    Booleans are rejected even though they are ``int`` subclasses.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        result = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(result):
        return None
    return result


def safe_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def safe_identifier(value: Any) -> str | None:
    """Coerce a wire identifier to ``str`` without altering its characters.

    Only the empty string maps to ``None``. Surrounding whitespace is kept.
    """
    if value is None:
        return None
    text = value if isinstance(value, str) else str(value)
    return text or None


def _finite_number(value: Any) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return safe_float(value)


def parse_coordinates(value: Any) -> tuple[float, float] | None:
    """Return ``(lon, lat)`` from a GeoJSON coordinate array, or ``None``.

    Both members must be JSON numbers. Numeric strings are rejected.
    """
    if not isinstance(value, (list, tuple)) or len(value) < 2:
        return None
    lon = _finite_number(value[0])
    lat = _finite_number(value[1])
    if lon is None or lat is None:
        return None
    return lon, lat
