"""dronewatch - live drone telemetry reconciliation with policy-gated position freezing."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("dronewatch")
except PackageNotFoundError:
    __version__ = "0+local"
from dronewatch.client import DroneWatchClient
from dronewatch.config import DroneWatchConfig
from dronewatch.exceptions import DroneWatchConfigError, DroneWatchError, DroneWatchTransportError
from dronewatch.render import MarkerSpec, RenderSurface, RenderSync, VehicleListEntry
from dronewatch.state import (
    FreezeGate,
    FreezeLock,
    IngestionSource,
    RetentionPolicy,
    StateStore,
    TelemetryEvent,
    VehicleState,
    accumulate_path,
    is_admitted,
    restricted_count,
)

__all__ = [
    "__version__",
    "DroneWatchClient",
    "DroneWatchConfig",
    "DroneWatchConfigError",
    "DroneWatchError",
    "DroneWatchTransportError",
    "FreezeGate",
    "FreezeLock",
    "IngestionSource",
    "MarkerSpec",
    "RenderSurface",
    "RenderSync",
    "RetentionPolicy",
    "StateStore",
    "TelemetryEvent",
    "VehicleListEntry",
    "VehicleState",
    "accumulate_path",
    "is_admitted",
    "restricted_count",
]
