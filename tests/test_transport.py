from __future__ import annotations

from typing import Any

import aiohttp
import pytest

from dronewatch._transport import PollingTransport, _decode_json_object, websocket_url
from dronewatch.config import DroneWatchConfig
from dronewatch.exceptions import DroneWatchTransportError


class _FakeResponse:
    def __init__(self, status: int, text: str) -> None:
        self.status = status
        self._text = text

    async def text(self) -> str:
        return self._text

    async def __aenter__(self) -> _FakeResponse:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        return None


class _FakeSession:
    def __init__(self, response: _FakeResponse | Exception) -> None:
        self._response = response
        self.requested: list[str] = []

    def get(self, url: str, **_kwargs: Any) -> _FakeResponse:
        self.requested.append(url)
        if isinstance(self._response, Exception):
            raise self._response
        return self._response


def _transport(session: _FakeSession) -> PollingTransport:
    config = DroneWatchConfig(feed_url="http://feed.local/telemetry", feed_mode="polling")
    return PollingTransport(config, session)  # type: ignore[arg-type]


def test_websocket_url_mapping() -> None:
    assert websocket_url("http://localhost:9013") == "ws://localhost:9013"
    assert websocket_url("https://feed.example/ws") == "wss://feed.example/ws"
    assert websocket_url("ws://already") == "ws://already"


def test_decode_json_object_skips_noise() -> None:
    assert _decode_json_object('{"features": []}', endpoint="x") == {"features": []}
    assert _decode_json_object("[1, 2]", endpoint="x") is None
    assert _decode_json_object("not json", endpoint="x") is None


@pytest.mark.asyncio
async def test_poll_single_message() -> None:
    session = _FakeSession(_FakeResponse(200, '{"features": []}'))

    messages = await _transport(session).fetch()

    assert messages == [{"features": []}]
    assert session.requested == ["http://feed.local/telemetry"]


@pytest.mark.asyncio
async def test_poll_list_of_messages_drops_non_objects() -> None:
    session = _FakeSession(_FakeResponse(200, '[{"features": []}, 3, {"features": [1]}]'))

    messages = await _transport(session).fetch()

    assert messages == [{"features": []}, {"features": [1]}]


@pytest.mark.asyncio
async def test_poll_non_200_raises() -> None:
    session = _FakeSession(_FakeResponse(503, "unavailable"))

    with pytest.raises(DroneWatchTransportError) as excinfo:
        await _transport(session).fetch()

    assert excinfo.value.status_code == 503
    assert excinfo.value.endpoint == "http://feed.local/telemetry"


@pytest.mark.asyncio
async def test_poll_invalid_json_raises() -> None:
    session = _FakeSession(_FakeResponse(200, "<html>"))

    with pytest.raises(DroneWatchTransportError):
        await _transport(session).fetch()


@pytest.mark.asyncio
async def test_poll_client_error_is_wrapped() -> None:
    session = _FakeSession(aiohttp.ClientConnectionError("refused"))

    with pytest.raises(DroneWatchTransportError) as excinfo:
        await _transport(session).fetch()

    assert isinstance(excinfo.value.__cause__, aiohttp.ClientError)
