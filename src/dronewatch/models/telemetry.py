"""Telemetry feed message models.

The feed delivers GeoJSON-like FeatureCollections::

    {"features": [{"geometry": {"type": "Point", "coordinates": [lon, lat]},
                   "properties": {"registration": ..., "yaw": ..., "altitude": ...,
                                  "Name": ..., "pilot": ..., "organization": ...}}]}

Field names are kept bit-exact with the existing feed (note ``Name``).
"""

from __future__ import annotations

from typing import Any

from pydantic import Field, field_validator

from dronewatch.ingestion.normalize import parse_coordinates, safe_float, safe_identifier, safe_str
from dronewatch.models._base import TelemetryBaseModel


class TelemetryGeometry(TelemetryBaseModel):
    type: str | None = None
    coordinates: tuple[float, float] | None = None

    @field_validator("coordinates", mode="before")
    @classmethod
    def _coerce_coordinates(cls, value: Any) -> tuple[float, float] | None:
        return parse_coordinates(value)

    @property
    def is_point(self) -> bool:
        return self.type == "Point" and self.coordinates is not None


class TelemetryProperties(TelemetryBaseModel):
    """Per-feature descriptive properties.

    Numeric fields are ``None`` when absent or unparseable.
    """

    registration: str | None = None
    yaw: float | None = None
    altitude: float | None = None
    name: str | None = Field(default=None, alias="Name")
    pilot: str | None = None
    organization: str | None = None

    @field_validator("yaw", "altitude", mode="before")
    @classmethod
    def _coerce_floats(cls, value: Any) -> float | None:
        return safe_float(value)

    @field_validator("registration", mode="before")
    @classmethod
    def _coerce_registration(cls, value: Any) -> str | None:
        return safe_identifier(value)

    @field_validator("name", "pilot", "organization", mode="before")
    @classmethod
    def _coerce_strings(cls, value: Any) -> str | None:
        return safe_str(value)


class TelemetryFeature(TelemetryBaseModel):
    geometry: TelemetryGeometry | None = None
    properties: TelemetryProperties = Field(default_factory=TelemetryProperties)


class TelemetryMessage(TelemetryBaseModel):
    """One feed message. Only the first feature is meaningful."""

    features: list[TelemetryFeature] = Field(default_factory=list)

    @property
    def first_feature(self) -> TelemetryFeature | None:
        return self.features[0] if self.features else None
