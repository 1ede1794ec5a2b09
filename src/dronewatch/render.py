"""Rendering synchronization.

:class:`RenderSync` keeps a map-like surface consistent with the latest
store snapshot. It knows nothing about any concrete widget toolkit: the
surface is a structural :class:`RenderSurface` protocol, and every call
made on it is derived only from the snapshot and the selection cursor.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Protocol

from dronewatch._constants import HIGHLIGHT_SECONDS, ICON_ADMITTED, ICON_RESTRICTED, SELECTION_MIN_ZOOM
from dronewatch.state.policy import restricted_count
from dronewatch.state.store import VehicleState

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MarkerSpec:
    """Everything a surface needs to draw one vehicle marker."""

    vehicle_id: str
    longitude: float
    latitude: float
    rotation: float
    icon: str
    popup: tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class VehicleListEntry:
    vehicle_id: str
    admitted: bool
    selected: bool
    summary: str


class RenderSurface(Protocol):
    def add_marker(self, marker: MarkerSpec) -> None: ...

    def update_marker(self, marker: MarkerSpec) -> None: ...

    def remove_marker(self, vehicle_id: str) -> None: ...

    def set_path_features(self, feature_collection: dict[str, Any]) -> None: ...

    def set_restricted_count(self, count: int) -> None: ...

    def set_vehicle_list(self, entries: list[VehicleListEntry]) -> None: ...

    def get_zoom(self) -> float: ...

    def fly_to(self, longitude: float, latitude: float, zoom: float) -> None: ...

    def highlight(self, vehicle_id: str, duration: float) -> None: ...


def format_flight_time(seconds: float) -> str:
    """Format a duration as ``HH:MM:SS``; negative durations clamp to zero."""
    total = max(0, int(seconds))
    hours, rem = divmod(total, 3600)
    minutes, secs = divmod(rem, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def _format_number(value: float) -> str:
    return f"{value:g}"


def format_altitude(altitude: float | None) -> str:
    return "-" if altitude is None else f"{_format_number(altitude)} m"


def popup_fields(state: VehicleState, now: datetime) -> tuple[tuple[str, str], ...]:
    return (
        ("id", state.id or "N/A"),
        ("Flight time", format_flight_time((now - state.first_seen).total_seconds())),
        ("Altitude", format_altitude(state.altitude)),
        ("Yaw", f"{_format_number(state.yaw)}°"),
    )


def marker_for(state: VehicleState, now: datetime) -> MarkerSpec:
    return MarkerSpec(
        vehicle_id=state.id,
        longitude=state.longitude,
        latitude=state.latitude,
        rotation=state.yaw,
        icon=ICON_ADMITTED if state.admitted else ICON_RESTRICTED,
        popup=popup_fields(state, now),
    )


def path_features(snapshot: Mapping[str, VehicleState]) -> dict[str, Any]:
    """GeoJSON FeatureCollection of vehicle paths with at least two points."""
    features = [
        {
            "type": "Feature",
            "properties": {"id": state.id, "allowed": state.admitted},
            "geometry": {"type": "LineString", "coordinates": [list(point) for point in state.path]},
        }
        for state in snapshot.values()
        if len(state.path) > 1
    ]
    return {"type": "FeatureCollection", "features": features}


def vehicle_list(snapshot: Mapping[str, VehicleState], selected: str | None) -> list[VehicleListEntry]:
    return [
        VehicleListEntry(
            vehicle_id=state.id,
            admitted=state.admitted,
            selected=state.id == selected,
            summary=f"Alt: {format_altitude(state.altitude)} • Yaw: {_format_number(state.yaw)}°",
        )
        for state in snapshot.values()
    ]


class RenderSync:
    """Idempotently reconciles a :class:`RenderSurface` against snapshots.

    Wire it to a store with ``store.subscribe(sync.on_state_changed)`` and
    ``store.subscribe_selection(sync.on_selection_changed)``.
    """

    def __init__(
        self,
        surface: RenderSurface,
        *,
        clock: Callable[[], datetime] = lambda: datetime.now(UTC),
    ) -> None:
        self._surface = surface
        self._clock = clock
        self._markers: dict[str, MarkerSpec] = {}
        self._snapshot: Mapping[str, VehicleState] = {}
        self._selected: str | None = None
        self._pending_focus = False

    @property
    def marker_ids(self) -> frozenset[str]:
        return frozenset(self._markers)

    def on_state_changed(self, snapshot: Mapping[str, VehicleState]) -> None:
        self._snapshot = snapshot
        now = self._clock()

        for vehicle_id, state in snapshot.items():
            wanted = marker_for(state, now)
            current = self._markers.get(vehicle_id)
            if current is None:
                self._surface.add_marker(wanted)
            elif current != wanted:
                self._surface.update_marker(wanted)
            self._markers[vehicle_id] = wanted

        for vehicle_id in [vid for vid in self._markers if vid not in snapshot]:
            self._surface.remove_marker(vehicle_id)
            del self._markers[vehicle_id]

        self._surface.set_path_features(path_features(snapshot))
        self._surface.set_restricted_count(restricted_count(snapshot))
        self._surface.set_vehicle_list(vehicle_list(snapshot, self._selected))

        # A selection made before the vehicle appeared takes effect on arrival.
        if self._pending_focus:
            self._focus_selected()

    def on_selection_changed(self, vehicle_id: str | None) -> None:
        self._selected = vehicle_id
        self._pending_focus = vehicle_id is not None
        self._surface.set_vehicle_list(vehicle_list(self._snapshot, vehicle_id))
        if self._pending_focus:
            self._focus_selected()

    def _focus_selected(self) -> None:
        state = self._snapshot.get(self._selected) if self._selected is not None else None
        if state is None:
            _logger.debug("Selected vehicle %s not present yet", self._selected)
            return
        self._pending_focus = False
        zoom = max(self._surface.get_zoom(), SELECTION_MIN_ZOOM)
        self._surface.fly_to(state.longitude, state.latitude, zoom)
        if state.id in self._markers:
            self._surface.highlight(state.id, HIGHLIGHT_SECONDS)
