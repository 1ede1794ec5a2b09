"""Feed message ingestion.

This module centralizes the pattern shared by every transport:

- validate the raw FeatureCollection into typed Pydantic models
- pick the first feature and require Point geometry with finite coordinates
- build a :class:`dronewatch.state.events.TelemetryEvent`

The feed is noisy and best-effort, so anything that does not fit is dropped
(``None``) rather than raised.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from dronewatch._constants import UNKNOWN_IDENTIFIER
from dronewatch._redact import redact_for_log
from dronewatch.models.telemetry import TelemetryMessage
from dronewatch.state.events import IngestionSource, TelemetryEvent

_logger = logging.getLogger(__name__)


def parse_message(payload: Any) -> TelemetryMessage | None:
    if not isinstance(payload, dict):
        return None
    try:
        return TelemetryMessage.model_validate(payload)
    except ValidationError:
        _logger.debug("Telemetry message failed validation: %s", redact_for_log(payload), exc_info=True)
        return None


def build_event_from_message(
    payload: Any,
    *,
    source: IngestionSource,
    observed_at: datetime | None = None,
) -> TelemetryEvent | None:
    """Build a telemetry event from one feed message, or ``None`` to drop it."""
    message = parse_message(payload)
    if message is None:
        return None

    feature = message.first_feature
    if feature is None or feature.geometry is None or not feature.geometry.is_point:
        _logger.debug("Dropping telemetry message without Point geometry: %s", redact_for_log(payload))
        return None

    lon, lat = feature.geometry.coordinates  # type: ignore[misc]
    props = feature.properties

    extra: dict[str, Any] = {}
    if observed_at is not None:
        extra["observed_at"] = observed_at

    return TelemetryEvent(
        id=props.registration or UNKNOWN_IDENTIFIER,
        longitude=lon,
        latitude=lat,
        yaw=props.yaw if props.yaw is not None else 0.0,
        altitude=props.altitude,
        registration=props.registration,
        name=props.name,
        pilot=props.pilot,
        organization=props.organization,
        source=source,
        raw=payload,
        **extra,
    )


def apply_message_to_store(
    store_reconcile: Callable[[TelemetryEvent], Any],
    payload: Any,
    *,
    source: IngestionSource,
) -> Any:
    """Build and reconcile an event; returns the store's result or ``None``."""
    event = build_event_from_message(payload, source=source)
    if event is None:
        return None
    return store_reconcile(event)
