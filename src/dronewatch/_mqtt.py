"""Internal MQTT runtime and transport adapter."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from typing import Any, cast

import paho.mqtt.client as mqtt

from dronewatch._redact import redact_for_log
from dronewatch.config import DroneWatchConfig
from dronewatch.exceptions import DroneWatchError, DroneWatchTransportError
from dronewatch.state.events import IngestionSource


@dataclass(frozen=True)
class MqttEndpoint:
    """Broker details required to subscribe to the telemetry topic."""

    host: str
    port: int
    topic: str
    keepalive: int = 60
    client_id: str = ""


def decode_mqtt_payload(payload: bytes) -> dict[str, Any]:
    """Parse MQTT payload bytes into a JSON object."""
    parsed = json.loads(payload.decode("utf-8"))
    if not isinstance(parsed, dict):
        raise DroneWatchError("MQTT payload is not a JSON object")
    return parsed


class TelemetryMqttRuntime:
    """Threaded paho-mqtt runtime that emits parsed payloads onto an asyncio loop."""

    def __init__(
        self,
        *,
        loop: asyncio.AbstractEventLoop,
        on_message: Callable[[dict[str, Any]], None],
        on_disconnect: Callable[[str], None] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._loop = loop
        self._on_message = on_message
        self._on_disconnect = on_disconnect
        self._logger = logger or logging.getLogger(__name__)
        self._client: mqtt.Client | None = None
        self._running = False
        self._topic: str | None = None

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, endpoint: MqttEndpoint) -> None:
        """Connect and subscribe to the telemetry topic."""
        self.stop()
        self._logger.debug(
            "MQTT runtime start requested host=%s port=%s topic=%s",
            endpoint.host,
            endpoint.port,
            endpoint.topic,
        )

        client = mqtt.Client(
            callback_api_version=cast(Any, mqtt).CallbackAPIVersion.VERSION2,
            client_id=endpoint.client_id,
        )
        client.enable_logger(self._logger)
        self._topic = endpoint.topic

        def on_connect(
            c: mqtt.Client,
            _userdata: Any,
            _flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if reason_code.is_failure:
                self._logger.warning("MQTT connect failed: %s", reason_code)
                return
            if self._topic:
                self._logger.debug("MQTT subscribing topic=%s", self._topic)
                c.subscribe(self._topic, qos=0)

        def on_message(_c: mqtt.Client, _userdata: Any, msg: mqtt.MQTTMessage) -> None:
            try:
                parsed = decode_mqtt_payload(msg.payload)
            except (UnicodeDecodeError, json.JSONDecodeError, DroneWatchError):
                self._logger.debug("MQTT payload parse failure topic=%s", msg.topic, exc_info=True)
                return
            self._logger.debug("MQTT message topic=%s payload=%s", msg.topic, redact_for_log(parsed))
            self._loop.call_soon_threadsafe(self._on_message, parsed)

        def on_disconnect(
            _client: mqtt.Client,
            _userdata: Any,
            _disconnect_flags: Any,
            reason_code: Any,
            _properties: Any,
        ) -> None:
            if self._running:
                self._logger.debug("MQTT disconnected: %s", reason_code)
                if self._on_disconnect is not None:
                    self._loop.call_soon_threadsafe(self._on_disconnect, str(reason_code))

        client.on_connect = on_connect
        client.on_message = on_message
        client.on_disconnect = on_disconnect

        client.connect(endpoint.host, endpoint.port, keepalive=endpoint.keepalive)
        client.loop_start()

        self._client = client
        self._running = True
        self._logger.debug("MQTT network loop started")

    def stop(self) -> None:
        """Stop and disconnect current MQTT client if running."""
        client = self._client
        self._client = None
        was_running = self._running
        self._running = False
        self._topic = None

        if client is None:
            return
        try:
            if was_running:
                client.disconnect()
        finally:
            client.loop_stop()
            self._logger.debug("MQTT network loop stopped")


class MqttTransport:
    """Adapts :class:`TelemetryMqttRuntime` to the async ``stream()`` interface.

    paho delivers on its own network thread; payloads are handed to the
    event loop with ``call_soon_threadsafe`` and queued in arrival order.
    """

    source = IngestionSource.MQTT

    def __init__(self, config: DroneWatchConfig, *, logger: logging.Logger | None = None) -> None:
        if not config.mqtt_host:
            raise DroneWatchError("MQTT transport requires mqtt_host")
        self._endpoint = MqttEndpoint(
            host=config.mqtt_host,
            port=config.mqtt_port,
            topic=config.mqtt_topic,
            keepalive=config.mqtt_keepalive,
        )
        self._logger = logger or logging.getLogger(__name__)

    async def stream(self) -> AsyncIterator[dict[str, Any]]:
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[dict[str, Any] | str] = asyncio.Queue()
        runtime = TelemetryMqttRuntime(
            loop=loop,
            on_message=queue.put_nowait,
            on_disconnect=queue.put_nowait,
            logger=self._logger,
        )
        try:
            await loop.run_in_executor(None, runtime.start, self._endpoint)
        except OSError as exc:
            raise DroneWatchTransportError(
                f"MQTT connection to {self._endpoint.host}:{self._endpoint.port} failed: {exc}",
                endpoint=self._endpoint.topic,
            ) from exc

        try:
            while True:
                item = await queue.get()
                if isinstance(item, str):
                    raise DroneWatchTransportError(
                        f"MQTT disconnected: {item}",
                        endpoint=self._endpoint.topic,
                    )
                yield item
        finally:
            await loop.run_in_executor(None, runtime.stop)
