"""Client configuration for dronewatch."""

from __future__ import annotations

import dataclasses
import os
from datetime import timedelta
from typing import Any

from dronewatch._constants import DEFAULT_FEED_URL, DEFAULT_MQTT_TOPIC
from dronewatch.exceptions import DroneWatchConfigError

FEED_MODES: frozenset[str] = frozenset({"websocket", "polling", "mqtt", "none"})


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_optional_number(value: str | None, cast: type) -> Any:
    if value is None:
        return None
    text = value.strip()
    if not text or text.lower() in {"none", "off", "0"}:
        return None
    try:
        return cast(text)
    except ValueError as exc:
        raise DroneWatchConfigError(f"invalid numeric value {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class DroneWatchConfig:
    """Client configuration.

    Parameters
    ----------
    feed_url : str
        Telemetry feed endpoint. ``http(s)://`` URLs are used as-is for
        polling; for ``websocket`` mode the scheme is mapped to ``ws(s)://``.
    feed_mode : str
        One of ``"websocket"``, ``"polling"``, ``"mqtt"`` or ``"none"``.
        ``"none"`` disables the live feed (useful with ``demo_mode``).
    poll_interval : float
        Seconds between HTTP polls in ``polling`` mode.
    reconnect_delay : float
        Seconds to wait before re-opening a failed feed.
    mqtt_host : str or None
        Broker host for ``mqtt`` mode.
    mqtt_port : int
        Broker port.
    mqtt_topic : str
        Topic carrying telemetry FeatureCollections.
    mqtt_keepalive : int
        MQTT keepalive in seconds.
    demo_mode : bool
        Run the synthetic motion source alongside the live feed.
    demo_interval : float
        Seconds between synthetic motion ticks.
    max_path_points : int or None
        Cap on retained path points per vehicle. ``None`` keeps the full
        history.
    idle_ttl_seconds : float or None
        Vehicles unseen for longer than this are eligible for eviction.
        ``None`` retains every vehicle for the lifetime of the store.
    """

    feed_url: str = DEFAULT_FEED_URL
    feed_mode: str = "websocket"
    poll_interval: float = 1.0
    reconnect_delay: float = 2.0
    mqtt_host: str | None = None
    mqtt_port: int = 1883
    mqtt_topic: str = DEFAULT_MQTT_TOPIC
    mqtt_keepalive: int = 60
    demo_mode: bool = False
    demo_interval: float = 0.5
    max_path_points: int | None = None
    idle_ttl_seconds: float | None = None

    def __post_init__(self) -> None:
        if self.feed_mode not in FEED_MODES:
            raise DroneWatchConfigError(f"feed_mode must be one of {sorted(FEED_MODES)}, got {self.feed_mode!r}")
        if self.feed_mode == "mqtt" and not self.mqtt_host:
            raise DroneWatchConfigError("mqtt_host is required when feed_mode is 'mqtt'")
        if self.poll_interval <= 0:
            raise DroneWatchConfigError("poll_interval must be positive")
        if self.demo_interval <= 0:
            raise DroneWatchConfigError("demo_interval must be positive")
        if self.reconnect_delay < 0:
            raise DroneWatchConfigError("reconnect_delay must not be negative")
        if self.max_path_points is not None and self.max_path_points < 1:
            raise DroneWatchConfigError("max_path_points must be at least 1")
        if self.idle_ttl_seconds is not None and self.idle_ttl_seconds <= 0:
            raise DroneWatchConfigError("idle_ttl_seconds must be positive")

    @property
    def idle_ttl(self) -> timedelta | None:
        if self.idle_ttl_seconds is None:
            return None
        return timedelta(seconds=self.idle_ttl_seconds)

    @classmethod
    def from_env(cls, **overrides: Any) -> DroneWatchConfig:
        """Create configuration from ``DRONEWATCH_*`` environment variables.

        Explicit keyword arguments override environment values.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "DRONEWATCH_FEED_URL": "feed_url",
            "DRONEWATCH_FEED_MODE": "feed_mode",
            "DRONEWATCH_MQTT_HOST": "mqtt_host",
            "DRONEWATCH_MQTT_TOPIC": "mqtt_topic",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip()

        _ENV_FLOAT_MAP = {
            "DRONEWATCH_POLL_INTERVAL": "poll_interval",
            "DRONEWATCH_RECONNECT_DELAY": "reconnect_delay",
            "DRONEWATCH_DEMO_INTERVAL": "demo_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = float(val)
                except ValueError as exc:
                    raise DroneWatchConfigError(f"{env_key} must be a number, got {val!r}") from exc

        _ENV_INT_MAP = {
            "DRONEWATCH_MQTT_PORT": "mqtt_port",
            "DRONEWATCH_MQTT_KEEPALIVE": "mqtt_keepalive",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                try:
                    config_kwargs[field_name] = int(val)
                except ValueError as exc:
                    raise DroneWatchConfigError(f"{env_key} must be an integer, got {val!r}") from exc

        if "demo_mode" not in overrides:
            config_kwargs["demo_mode"] = _env_bool(env.get("DRONEWATCH_DEMO_MODE"), False)

        if "max_path_points" not in overrides:
            config_kwargs["max_path_points"] = _env_optional_number(env.get("DRONEWATCH_MAX_PATH_POINTS"), int)

        if "idle_ttl_seconds" not in overrides:
            config_kwargs["idle_ttl_seconds"] = _env_optional_number(env.get("DRONEWATCH_IDLE_TTL_SECONDS"), float)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
