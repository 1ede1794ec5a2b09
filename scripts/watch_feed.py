#!/usr/bin/env python3
"""Console watcher for a live drone telemetry feed.

Reads ``DRONEWATCH_*`` configuration from the environment, connects the
configured transport, and logs every reconciled state change through a
console rendering surface. Useful to verify that a feed is flowing and that
restricted vehicles freeze as expected.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

# Allow running from repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from dronewatch import DroneWatchClient, DroneWatchConfig, RenderSync  # noqa: E402
from dronewatch.render import MarkerSpec, VehicleListEntry  # noqa: E402

_LOG = logging.getLogger("watch_feed")


class ConsoleSurface:
    """Minimal surface that logs what a map would draw."""

    def __init__(self) -> None:
        self._zoom = 10.0

    def add_marker(self, marker: MarkerSpec) -> None:
        _LOG.info("+ %s [%s] at %.5f,%.5f yaw=%s", marker.vehicle_id, marker.icon, marker.longitude, marker.latitude, marker.rotation)

    def update_marker(self, marker: MarkerSpec) -> None:
        _LOG.debug("~ %s [%s] at %.5f,%.5f yaw=%s", marker.vehicle_id, marker.icon, marker.longitude, marker.latitude, marker.rotation)

    def remove_marker(self, vehicle_id: str) -> None:
        _LOG.info("- %s", vehicle_id)

    def set_path_features(self, feature_collection: dict[str, Any]) -> None:
        _LOG.debug("paths: %d line(s)", len(feature_collection["features"]))

    def set_restricted_count(self, count: int) -> None:
        _LOG.debug("restricted: %d", count)

    def set_vehicle_list(self, entries: list[VehicleListEntry]) -> None:
        _LOG.debug("vehicles: %d", len(entries))

    def get_zoom(self) -> float:
        return self._zoom

    def fly_to(self, longitude: float, latitude: float, zoom: float) -> None:
        self._zoom = zoom
        _LOG.info("fly to %.5f,%.5f zoom=%s", longitude, latitude, zoom)

    def highlight(self, vehicle_id: str, duration: float) -> None:
        _LOG.info("highlight %s (%.1fs)", vehicle_id, duration)


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Watch a live drone telemetry feed.")
    parser.add_argument(
        "--duration",
        type=float,
        default=0,
        help="Maximum runtime in seconds (0 = run until Ctrl+C).",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Enable synthetic motion for admitted vehicles.",
    )
    parser.add_argument(
        "--select",
        default=None,
        help="Vehicle identifier to select (focus) once it appears.",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logs.",
    )
    return parser.parse_args()


async def _watch(config: DroneWatchConfig, args: argparse.Namespace) -> None:
    async with DroneWatchClient(config, render=RenderSync(ConsoleSurface())) as client:
        if args.select:
            client.select(args.select)
        if args.duration > 0:
            try:
                await asyncio.wait_for(client.run(), timeout=args.duration)
            except TimeoutError:
                pass
        else:
            await client.run()
        snapshot = client.store.snapshot()
        _LOG.info("tracked %d vehicle(s)", len(snapshot))


def _main() -> int:
    args = _parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides: dict[str, Any] = {}
    if args.demo:
        overrides["demo_mode"] = True
    config = DroneWatchConfig.from_env(**overrides)

    try:
        asyncio.run(_watch(config, args))
    except KeyboardInterrupt:
        return 130
    return 0


if __name__ == "__main__":
    raise SystemExit(_main())
