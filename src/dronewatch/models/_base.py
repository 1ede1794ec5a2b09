"""Base model for telemetry feed payloads.

Every feed model inherits from :class:`TelemetryBaseModel` which provides:

* ``extra="ignore"`` so unknown producer fields never fail validation.
* A ``model_validator(mode="before")`` that strips sentinel values
  (``None``, empty strings, NaN) so the field default is used. A field
  that is present but empty therefore behaves exactly like an absent one.
* A ``raw`` dict that captures the original payload.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TelemetryBaseModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict)
    """Original payload dict."""

    @staticmethod
    def _clean_dict(values: dict[str, Any]) -> dict[str, Any]:
        cleaned: dict[str, Any] = {}
        for key, value in values.items():
            if value is None:
                continue
            if isinstance(value, str) and not value:
                continue
            if isinstance(value, float) and math.isnan(value):
                continue
            cleaned[key] = value
        return cleaned

    @model_validator(mode="before")
    @classmethod
    def _clean_sentinels(cls, values: Any) -> Any:
        """Strip sentinel values and stash the raw payload."""
        if not isinstance(values, dict):
            return values
        cleaned = TelemetryBaseModel._clean_dict(values)
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
