"""State/store layer.

This package is the single source of truth for how incoming telemetry from
any transport is reconciled into a per-vehicle state snapshot.
"""

from dronewatch.state.events import IngestionSource, TelemetryEvent
from dronewatch.state.freeze import FreezeGate, FreezeLock
from dronewatch.state.path import accumulate_path
from dronewatch.state.policy import is_admitted, restricted_count
from dronewatch.state.store import RetentionPolicy, StateStore, VehicleState

__all__ = [
    "FreezeGate",
    "FreezeLock",
    "IngestionSource",
    "RetentionPolicy",
    "StateStore",
    "TelemetryEvent",
    "VehicleState",
    "accumulate_path",
    "is_admitted",
    "restricted_count",
]
