"""HTTP/WebSocket telemetry transports built on aiohttp."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any, Protocol

import aiohttp

from dronewatch._redact import redact_for_log
from dronewatch.config import DroneWatchConfig
from dronewatch.exceptions import DroneWatchTransportError
from dronewatch.state.events import IngestionSource

_logger = logging.getLogger(__name__)


class TelemetryTransport(Protocol):
    """Structural interface for anything that delivers feed messages.

    Implementations yield parsed JSON objects one at a time, in arrival
    order, and raise :class:`DroneWatchTransportError` when the underlying
    connection fails. Reconnecting is the caller's job.
    """

    source: IngestionSource

    def stream(self) -> AsyncIterator[dict[str, Any]]: ...


def _decode_json_object(text: str, *, endpoint: str) -> dict[str, Any] | None:
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError:
        _logger.debug("Skipping non-JSON frame from %s: %s", endpoint, text[:200])
        return None
    if not isinstance(decoded, dict):
        _logger.debug("Skipping non-object frame from %s", endpoint)
        return None
    return decoded


def websocket_url(feed_url: str) -> str:
    """Map an ``http(s)://`` feed URL onto its ``ws(s)://`` equivalent."""
    if feed_url.startswith("https://"):
        return "wss://" + feed_url[len("https://") :]
    if feed_url.startswith("http://"):
        return "ws://" + feed_url[len("http://") :]
    return feed_url


class WebSocketTransport:
    """Receives one FeatureCollection per text frame over a WebSocket."""

    source = IngestionSource.WEBSOCKET

    def __init__(self, config: DroneWatchConfig, http_session: aiohttp.ClientSession) -> None:
        self._url = websocket_url(config.feed_url)
        self._http = http_session

    async def stream(self) -> AsyncIterator[dict[str, Any]]:
        _logger.debug("WS connect %s", self._url)
        try:
            async with self._http.ws_connect(self._url) as ws:
                async for msg in ws:
                    if msg.type == aiohttp.WSMsgType.TEXT:
                        payload = _decode_json_object(msg.data, endpoint=self._url)
                        if payload is not None:
                            _logger.debug("WS frame %s", redact_for_log(payload))
                            yield payload
                    elif msg.type == aiohttp.WSMsgType.ERROR:
                        raise DroneWatchTransportError(
                            f"WebSocket error from {self._url}: {ws.exception()}",
                            endpoint=self._url,
                        )
        except DroneWatchTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise DroneWatchTransportError(
                f"WebSocket connection to {self._url} failed: {exc}",
                endpoint=self._url,
            ) from exc
        raise DroneWatchTransportError(f"WebSocket {self._url} closed", endpoint=self._url)


class PollingTransport:
    """Polls the feed URL with GET; the body is one message or a list of them."""

    source = IngestionSource.POLLING

    def __init__(self, config: DroneWatchConfig, http_session: aiohttp.ClientSession) -> None:
        self._url = config.feed_url
        self._interval = config.poll_interval
        self._http = http_session

    async def fetch(self) -> list[dict[str, Any]]:
        """Perform a single poll and return the messages it carried."""
        _logger.debug("GET %s", self._url)
        try:
            async with self._http.get(self._url, headers={"accept": "application/json"}) as resp:
                text = await resp.text()
                if resp.status != 200:
                    raise DroneWatchTransportError(
                        f"HTTP {resp.status} from {self._url}: {text[:200]}",
                        status_code=resp.status,
                        endpoint=self._url,
                    )
        except DroneWatchTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise DroneWatchTransportError(
                f"Request to {self._url} failed: {exc}",
                endpoint=self._url,
            ) from exc

        try:
            body = json.loads(text)
        except json.JSONDecodeError as exc:
            raise DroneWatchTransportError(
                f"Invalid JSON from {self._url}: {text[:200]}",
                endpoint=self._url,
            ) from exc

        if isinstance(body, dict):
            return [body]
        if isinstance(body, list):
            return [item for item in body if isinstance(item, dict)]
        raise DroneWatchTransportError(
            f"Unexpected payload type {type(body).__name__} from {self._url}",
            endpoint=self._url,
        )

    async def stream(self) -> AsyncIterator[dict[str, Any]]:
        while True:
            for payload in await self.fetch():
                yield payload
            await asyncio.sleep(self._interval)
