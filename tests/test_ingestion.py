from __future__ import annotations

from typing import Any

import pytest

from dronewatch.ingestion.normalize import parse_coordinates, safe_float, safe_identifier, safe_str
from dronewatch.ingestion.telemetry import apply_message_to_store, build_event_from_message
from dronewatch.models.telemetry import TelemetryMessage
from dronewatch.state.events import IngestionSource
from dronewatch.state.store import StateStore


def _message(coordinates: Any = (35.9, 31.95), geometry_type: str = "Point", **properties: Any) -> dict[str, Any]:
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": geometry_type, "coordinates": list(coordinates) if coordinates else coordinates},
                "properties": properties,
            }
        ],
    }


def test_full_message_maps_wire_fields() -> None:
    payload = _message(
        registration="SD-B17",
        yaw=90,
        altitude=120.5,
        Name="Scout",
        pilot="Ada",
        organization="Sager",
        serial="ignored",
    )

    event = build_event_from_message(payload, source=IngestionSource.WEBSOCKET)

    assert event is not None
    assert event.id == "SD-B17"
    assert (event.longitude, event.latitude, event.yaw) == (35.9, 31.95, 90.0)
    assert event.altitude == 120.5
    assert event.name == "Scout"
    assert event.pilot == "Ada"
    assert event.organization == "Sager"
    assert event.registration == "SD-B17"
    assert event.source == IngestionSource.WEBSOCKET
    assert event.raw == payload


def test_missing_registration_defaults_to_unknown_identifier() -> None:
    event = build_event_from_message(_message(), source=IngestionSource.MANUAL)

    assert event is not None
    assert event.id == "SD-UNK"
    assert event.registration is None


def test_empty_registration_defaults_to_unknown_identifier() -> None:
    event = build_event_from_message(_message(registration=""), source=IngestionSource.MANUAL)

    assert event is not None
    assert event.id == "SD-UNK"


@pytest.mark.parametrize("registration", ["  ", " SD-B01", "SD-B01\t"])
def test_registration_whitespace_is_preserved(registration: str) -> None:
    event = build_event_from_message(_message(registration=registration), source=IngestionSource.MANUAL)

    assert event is not None
    assert event.id == registration
    assert event.registration == registration


def test_padded_admitted_lookalike_is_frozen_in_store() -> None:
    store = StateStore()

    apply_message_to_store(
        store.reconcile, _message((10.0, 20.0), registration=" SD-B01", yaw=45), source=IngestionSource.MANUAL
    )
    state = apply_message_to_store(
        store.reconcile, _message((99.0, 99.0), registration=" SD-B01", yaw=1), source=IngestionSource.MANUAL
    )

    assert state is not None
    assert state.admitted is False
    assert (state.longitude, state.latitude, state.yaw) == (10.0, 20.0, 45.0)
    assert store.get("SD-B01") is None


def test_missing_or_bad_yaw_defaults_to_zero() -> None:
    missing = build_event_from_message(_message(registration="SD-B1"), source=IngestionSource.MANUAL)
    garbage = build_event_from_message(_message(registration="SD-B1", yaw="north"), source=IngestionSource.MANUAL)

    assert missing is not None and missing.yaw == 0.0
    assert garbage is not None and garbage.yaw == 0.0


def test_only_first_feature_is_used() -> None:
    payload = _message(registration="SD-B1")
    payload["features"].append(
        {"geometry": {"type": "Point", "coordinates": [1.0, 2.0]}, "properties": {"registration": "SD-B2"}}
    )

    event = build_event_from_message(payload, source=IngestionSource.MANUAL)

    assert event is not None
    assert event.id == "SD-B1"


def test_numeric_registration_is_coerced_to_string() -> None:
    event = build_event_from_message(_message(registration=1234), source=IngestionSource.MANUAL)

    assert event is not None
    assert event.id == "1234"


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "not a dict",
        [],
        {},
        {"features": []},
        {"features": "nope"},
        {"features": [{"properties": {"registration": "SD-B1"}}]},
        _message(geometry_type="LineString"),
        _message(coordinates=None),
        _message(coordinates=(1.0,)),
        _message(coordinates=(float("nan"), 5.0)),
        _message(coordinates=(1.0, float("inf"))),
        _message(coordinates=("a", "b")),
        _message(coordinates=("35.9", "31.95")),
        _message(coordinates=(35.9, "31.95")),
        _message(coordinates=(True, 31.95)),
    ],
)
def test_malformed_messages_are_dropped(payload: Any) -> None:
    assert build_event_from_message(payload, source=IngestionSource.MANUAL) is None


def test_sentinel_properties_are_treated_as_absent() -> None:
    message = TelemetryMessage.model_validate(_message(registration="SD-B1", altitude=float("nan"), pilot="", Name="   "))

    feature = message.first_feature
    assert feature is not None
    assert feature.properties.altitude is None
    assert feature.properties.pilot is None
    assert feature.properties.name is None


def test_apply_message_to_store_reconciles() -> None:
    store = StateStore()

    state = apply_message_to_store(store.reconcile, _message(registration="SD-B17", yaw=90), source=IngestionSource.MANUAL)

    assert state is not None
    assert state.path == ((35.9, 31.95),)
    assert apply_message_to_store(store.reconcile, {"features": []}, source=IngestionSource.MANUAL) is None


def test_safe_float() -> None:
    assert safe_float("12.5") == 12.5
    assert safe_float(3) == 3.0
    assert safe_float(None) is None
    assert safe_float("") is None
    assert safe_float(True) is None
    assert safe_float(float("nan")) is None
    assert safe_float(float("-inf")) is None


def test_safe_str_and_coordinates() -> None:
    assert safe_str("  x ") == "x"
    assert safe_str("") is None
    assert parse_coordinates([1, 2.5, 100]) == (1.0, 2.5)
    assert parse_coordinates([1, "2.5"]) is None
    assert parse_coordinates({"lon": 1}) is None


def test_safe_identifier_keeps_characters() -> None:
    assert safe_identifier(" SD-B1 ") == " SD-B1 "
    assert safe_identifier("") is None
    assert safe_identifier(None) is None
    assert safe_identifier(17) == "17"
