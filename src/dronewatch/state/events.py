"""Normalized telemetry events.

Every ingestion path (WebSocket, polling, MQTT, demo) converts its input
into these events. Only the state/store layer is allowed to merge them.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class IngestionSource(StrEnum):
    WEBSOCKET = "websocket"
    POLLING = "polling"
    MQTT = "mqtt"
    DEMO = "demo"
    MANUAL = "manual"


class TelemetryEvent(BaseModel):
    """A normalized position update for one vehicle.

    ``longitude``/``latitude`` are deliberately permissive (``None`` and
    non-finite values are representable); the store rejects them at
    reconciliation time.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Vehicle identifier")
    longitude: float | None = None
    latitude: float | None = None
    yaw: float = 0.0
    altitude: float | None = None
    registration: str | None = None
    name: str | None = None
    pilot: str | None = None
    organization: str | None = None
    source: IngestionSource = IngestionSource.MANUAL
    observed_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    raw: dict[str, Any] = Field(default_factory=dict, description="Original payload (as received)")

    def metadata_patch(self) -> dict[str, Any]:
        """Descriptive fields present on this event, ``None`` values excluded."""
        return self.model_dump(
            include={"altitude", "registration", "name", "pilot", "organization"},
            exclude_none=True,
        )
