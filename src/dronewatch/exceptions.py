"""Custom exception hierarchy for dronewatch."""

from __future__ import annotations


class DroneWatchError(Exception):
    """Base exception for all dronewatch errors."""


class DroneWatchConfigError(DroneWatchError):
    """Invalid or missing configuration."""


class DroneWatchTransportError(DroneWatchError):
    """Telemetry feed failure (network, non-200, invalid JSON envelope)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)
