"""Synthetic motion source.

Produces feed-shaped messages that move every admitted vehicle along a small
circle around its current position. It implements the same ``stream()``
interface as the live transports, so the store cannot tell it apart from a
real feed.
"""

from __future__ import annotations

import asyncio
import math
import random
from collections.abc import AsyncIterator, Callable, Mapping
from typing import Any

from dronewatch._constants import (
    DEMO_ANGULAR_STEP,
    DEMO_DEFAULT_ALTITUDE_M,
    DEMO_RADIUS_DEG,
    DEMO_YAW_STEP_DEG,
)
from dronewatch.state.events import IngestionSource
from dronewatch.state.store import VehicleState


def _feature_collection(state: VehicleState, lon: float, lat: float, yaw: float, altitude: float) -> dict[str, Any]:
    properties: dict[str, Any] = {
        "registration": state.id,
        "yaw": yaw,
        "altitude": altitude,
    }
    if state.name is not None:
        properties["Name"] = state.name
    if state.pilot is not None:
        properties["pilot"] = state.pilot
    if state.organization is not None:
        properties["organization"] = state.organization
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [lon, lat]},
                "properties": properties,
            }
        ],
    }


class DemoMotionSource:
    """Animates admitted vehicles found in a snapshot."""

    source = IngestionSource.DEMO

    def __init__(
        self,
        snapshot: Callable[[], Mapping[str, VehicleState]],
        *,
        interval: float = 0.5,
        radius: float = DEMO_RADIUS_DEG,
        rng: random.Random | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._interval = interval
        self._radius = radius
        self._rng = rng or random.Random()
        self._phases: dict[str, float] = {}
        self._tick = 0

    def step(self) -> list[dict[str, Any]]:
        """Advance one tick and return the messages it produces."""
        messages: list[dict[str, Any]] = []
        for idx, state in enumerate(self._snapshot().values()):
            if not state.admitted:
                continue
            phase = self._phases.setdefault(state.id, self._rng.uniform(0.0, 2 * math.pi))
            angle = self._tick * DEMO_ANGULAR_STEP + phase
            altitude = state.altitude if state.altitude is not None else DEMO_DEFAULT_ALTITUDE_M
            messages.append(
                _feature_collection(
                    state,
                    lon=state.longitude + self._radius * math.cos(angle),
                    lat=state.latitude + self._radius * math.sin(angle),
                    yaw=(state.yaw + DEMO_YAW_STEP_DEG) % 360,
                    altitude=altitude + (1 if idx % 2 else -1),
                )
            )
        self._tick += 1
        return messages

    async def stream(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            await asyncio.sleep(self._interval)
            for message in self.step():
                yield message
