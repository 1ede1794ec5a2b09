"""Data models for telemetry feed messages."""

from dronewatch.models._base import TelemetryBaseModel
from dronewatch.models.telemetry import (
    TelemetryFeature,
    TelemetryGeometry,
    TelemetryMessage,
    TelemetryProperties,
)

__all__ = [
    "TelemetryBaseModel",
    "TelemetryFeature",
    "TelemetryGeometry",
    "TelemetryMessage",
    "TelemetryProperties",
]
