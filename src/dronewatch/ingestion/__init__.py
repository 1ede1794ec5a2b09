"""Ingestion layer.

This package contains adapters that turn feed messages (WebSocket, polling,
MQTT, synthetic demo motion) into normalized state-store events.
"""

__all__: list[str] = []
