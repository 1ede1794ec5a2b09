"""High-level async client that feeds telemetry into a state store."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Sequence
from typing import Any

import aiohttp

from dronewatch._mqtt import MqttTransport
from dronewatch._transport import PollingTransport, TelemetryTransport, WebSocketTransport
from dronewatch.config import DroneWatchConfig
from dronewatch.exceptions import DroneWatchError, DroneWatchTransportError
from dronewatch.ingestion.demo import DemoMotionSource
from dronewatch.ingestion.telemetry import build_event_from_message
from dronewatch.render import RenderSync
from dronewatch.state.events import IngestionSource
from dronewatch.state.store import RetentionPolicy, StateStore, VehicleState

_logger = logging.getLogger(__name__)


class DroneWatchClient:
    """Async client that pumps telemetry transports into a :class:`StateStore`.

    Usage::

        async with DroneWatchClient(config, render=RenderSync(surface)) as client:
            await client.run()

    Every transport runs on the same event loop and :meth:`ingest` never
    awaits, so reconciliations are strictly serialized.
    """

    def __init__(
        self,
        config: DroneWatchConfig,
        *,
        store: StateStore | None = None,
        render: RenderSync | None = None,
        transports: Sequence[TelemetryTransport] | None = None,
        session: aiohttp.ClientSession | None = None,
    ) -> None:
        self._config = config
        self._store = store or StateStore(
            retention=RetentionPolicy(
                max_path_points=config.max_path_points,
                idle_ttl=config.idle_ttl,
            )
        )
        self._render = render
        self._explicit_transports = list(transports) if transports is not None else None
        self._transports: list[TelemetryTransport] = []
        self._external_session = session is not None
        self._http_session = session
        self._unsubscribers: list[Any] = []
        self._tasks: list[asyncio.Task[None]] = []
        self._stopping: asyncio.Event | None = None

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def transports(self) -> list[TelemetryTransport]:
        return list(self._transports)

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> DroneWatchClient:
        if self._render is not None:
            self._unsubscribers.append(self._store.subscribe(self._render.on_state_changed))
            self._unsubscribers.append(self._store.subscribe_selection(self._render.on_selection_changed))

        if self._explicit_transports is not None:
            self._transports = list(self._explicit_transports)
        else:
            self._transports = self._build_transports()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        self._transports = []

    def _require_http_session(self) -> aiohttp.ClientSession:
        if self._http_session is None:
            self._http_session = aiohttp.ClientSession()
        return self._http_session

    def _build_transports(self) -> list[TelemetryTransport]:
        transports: list[TelemetryTransport] = []
        mode = self._config.feed_mode
        if mode == "websocket":
            transports.append(WebSocketTransport(self._config, self._require_http_session()))
        elif mode == "polling":
            transports.append(PollingTransport(self._config, self._require_http_session()))
        elif mode == "mqtt":
            transports.append(MqttTransport(self._config, logger=_logger))
        if self._config.demo_mode:
            transports.append(DemoMotionSource(self._store.snapshot, interval=self._config.demo_interval))
        return transports

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    def ingest(self, payload: Any, source: IngestionSource = IngestionSource.MANUAL) -> VehicleState | None:
        """Reconcile one feed message. Malformed messages yield ``None``."""
        event = build_event_from_message(payload, source=source)
        if event is None:
            return None
        state = self._store.reconcile(event)
        self._store.evict_stale()
        return state

    def select(self, vehicle_id: str | None) -> None:
        self._store.set_selected(vehicle_id)

    async def _pump(self, transport: TelemetryTransport) -> None:
        assert self._stopping is not None  # noqa: S101
        while not self._stopping.is_set():
            try:
                async for payload in transport.stream():
                    self.ingest(payload, transport.source)
                    if self._stopping.is_set():
                        return
                return
            except DroneWatchTransportError as exc:
                _logger.warning(
                    "Telemetry transport %s failed: %s; retrying in %.1fs",
                    transport.source,
                    exc,
                    self._config.reconnect_delay,
                )
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopping.wait(), timeout=self._config.reconnect_delay)

    async def run(self) -> None:
        """Pump every transport until :meth:`stop` is called or all end."""
        if self._tasks:
            raise DroneWatchError("Client is already running")
        if not self._transports:
            raise DroneWatchError("No telemetry transports configured")
        self._stopping = asyncio.Event()
        self._tasks = [asyncio.create_task(self._pump(transport)) for transport in self._transports]
        try:
            results = await asyncio.gather(*self._tasks, return_exceptions=True)
        finally:
            self._tasks = []
        # Pumps cancelled by stop() surface as CancelledError, which is not an Exception.
        for result in results:
            if isinstance(result, Exception):
                raise result

    async def stop(self) -> None:
        if self._stopping is not None:
            self._stopping.set()
        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._tasks = []
