"""Deterministic in-memory state store.

This is the only component allowed to reconcile incoming telemetry events.
"""

from __future__ import annotations

import logging
import math
import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from types import MappingProxyType
from typing import Any

from pydantic import BaseModel, ConfigDict

from dronewatch.exceptions import DroneWatchConfigError
from dronewatch.state.events import TelemetryEvent
from dronewatch.state.freeze import FreezeGate, FreezeLock
from dronewatch.state.path import Path, accumulate_path
from dronewatch.state.policy import is_admitted

_logger = logging.getLogger(__name__)

Snapshot = Mapping[str, "VehicleState"]
StateObserver = Callable[[Snapshot], None]
SelectionObserver = Callable[[str | None], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class VehicleState(BaseModel):
    """Reconciled state of one vehicle. Replaced wholesale on every update."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    longitude: float
    latitude: float
    yaw: float = 0.0
    altitude: float | None = None
    registration: str | None = None
    name: str | None = None
    pilot: str | None = None
    organization: str | None = None
    admitted: bool = False
    """Classification by the owning store's policy at the last reconciliation."""
    path: Path = ()
    first_seen: datetime
    last_seen: datetime


@dataclass(frozen=True)
class RetentionPolicy:
    """Bounds on retained history.

    Both limits default to ``None`` (unbounded): every vehicle and every
    path point is kept for the lifetime of the store.
    """

    max_path_points: int | None = None
    idle_ttl: timedelta | None = None

    def __post_init__(self) -> None:
        if self.max_path_points is not None and self.max_path_points < 1:
            raise DroneWatchConfigError("max_path_points must be at least 1")
        if self.idle_ttl is not None and self.idle_ttl <= timedelta(0):
            raise DroneWatchConfigError("idle_ttl must be positive")


class StateStore:
    """In-memory store for reconciled vehicle state.

    Given the same sequence of :class:`TelemetryEvent` and clock readings it
    produces the same snapshots. All access is serialized by a single
    re-entrant lock covering the whole map, so observers may read the store
    from inside a notification.
    """

    def __init__(
        self,
        *,
        clock: Callable[[], datetime] = _utcnow,
        policy: Callable[[Any], bool] = is_admitted,
        retention: RetentionPolicy | None = None,
    ) -> None:
        self._clock = clock
        self._policy = policy
        self._retention = retention or RetentionPolicy()
        self._lock = threading.RLock()
        self._vehicles: dict[str, VehicleState] = {}
        self._freeze = FreezeGate()
        self._selected: str | None = None
        self._state_observers: list[StateObserver] = []
        self._selection_observers: list[SelectionObserver] = []

    @property
    def retention(self) -> RetentionPolicy:
        return self._retention

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile(self, event: TelemetryEvent) -> VehicleState | None:
        """Merge one event into the store.

        Returns the new state, or ``None`` when the event carries no usable
        geometry (missing or non-finite coordinates). Rejected events leave
        the store untouched and notify nobody.
        """
        lon, lat = event.longitude, event.latitude
        if lon is None or lat is None or not math.isfinite(lon) or not math.isfinite(lat):
            _logger.debug("Dropping telemetry without usable geometry id=%s", event.id)
            return None

        with self._lock:
            now = self._clock()
            existing = self._vehicles.get(event.id)

            admitted = bool(self._policy(event.id))
            eff_lon, eff_lat, eff_yaw = self._freeze.resolve(
                event.id,
                lon,
                lat,
                event.yaw,
                admitted=admitted,
            )

            merged: dict[str, Any] = {}
            if existing is not None:
                merged.update(existing.model_dump(include={"altitude", "registration", "name", "pilot", "organization"}))
            merged.update(event.metadata_patch())

            state = VehicleState(
                id=event.id,
                longitude=eff_lon,
                latitude=eff_lat,
                yaw=eff_yaw,
                admitted=admitted,
                path=accumulate_path(
                    existing.path if existing is not None else None,
                    (eff_lon, eff_lat),
                    max_points=self._retention.max_path_points,
                ),
                first_seen=existing.first_seen if existing is not None else now,
                last_seen=now,
                **merged,
            )
            self._vehicles[event.id] = state
            self._notify_state()
            return state

    # ------------------------------------------------------------------
    # Read model
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        """Read-only view of the identifier -> state map at this instant."""
        with self._lock:
            return MappingProxyType(dict(self._vehicles))

    def get(self, identifier: str) -> VehicleState | None:
        with self._lock:
            return self._vehicles.get(identifier)

    def freeze_lock(self, identifier: str) -> FreezeLock | None:
        with self._lock:
            return self._freeze.get(identifier)

    def __len__(self) -> int:
        with self._lock:
            return len(self._vehicles)

    def __contains__(self, identifier: object) -> bool:
        with self._lock:
            return identifier in self._vehicles

    # ------------------------------------------------------------------
    # Selection cursor
    # ------------------------------------------------------------------

    def set_selected(self, identifier: str | None) -> None:
        """Move the selection cursor. Unknown identifiers are accepted as-is."""
        with self._lock:
            self._selected = identifier
            for observer in list(self._selection_observers):
                try:
                    observer(identifier)
                except Exception:
                    _logger.warning("Selection observer failed", exc_info=True)

    def get_selected(self) -> str | None:
        with self._lock:
            return self._selected

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register a snapshot observer; returns an unsubscribe callable."""
        with self._lock:
            self._state_observers.append(observer)
        return lambda: self._unsubscribe(self._state_observers, observer)

    def subscribe_selection(self, observer: SelectionObserver) -> Callable[[], None]:
        with self._lock:
            self._selection_observers.append(observer)
        return lambda: self._unsubscribe(self._selection_observers, observer)

    def _unsubscribe(self, observers: list[Any], observer: Any) -> None:
        with self._lock:
            if observer in observers:
                observers.remove(observer)

    def _notify_state(self) -> None:
        if not self._state_observers:
            return
        snapshot = MappingProxyType(dict(self._vehicles))
        for observer in list(self._state_observers):
            try:
                observer(snapshot)
            except Exception:
                _logger.warning("State observer failed", exc_info=True)

    # ------------------------------------------------------------------
    # Lifecycle / retention
    # ------------------------------------------------------------------

    def purge(self, identifier: str) -> bool:
        """Forget a vehicle, including its freeze lock."""
        with self._lock:
            removed = self._vehicles.pop(identifier, None) is not None
            self._freeze.release(identifier)
            if removed:
                self._notify_state()
            return removed

    def evict_stale(self, now: datetime | None = None) -> list[str]:
        """Drop vehicles unseen for longer than ``retention.idle_ttl``.

        A no-op when no idle TTL is configured.
        """
        ttl = self._retention.idle_ttl
        if ttl is None:
            return []
        with self._lock:
            current = now or self._clock()
            stale = [vid for vid, state in self._vehicles.items() if current - state.last_seen > ttl]
            for vid in stale:
                del self._vehicles[vid]
                self._freeze.release(vid)
            if stale:
                _logger.debug("Evicted %d idle vehicle(s)", len(stale))
                self._notify_state()
            return stale

    def teardown(self) -> None:
        """Release all state, locks, selection and observers."""
        with self._lock:
            self._vehicles.clear()
            self._freeze.clear()
            self._selected = None
            self._state_observers.clear()
            self._selection_observers.clear()
