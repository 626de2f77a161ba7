from __future__ import annotations

from typing import Any

import pytest
from conftest import CLOCK, ENERGY_IMPORT, SERIAL_NUMBER, cosem_bytes, meter_reading

from meterthing.exceptions import ThingInitError, UnknownPropertyError
from meterthing.ingestion.normalize import convert_reading
from meterthing.models import Reading
from meterthing.state.thing import Property, Thing


def _thing() -> Thing:
    return Thing.from_reading(convert_reading(meter_reading(clock=cosem_bytes())))


def test_property_names_match_first_reading_codes() -> None:
    reading = convert_reading(meter_reading(clock=cosem_bytes()))
    thing = Thing.from_reading(reading)

    assert thing.property_names == tuple(str(code) for code in reading)
    assert set(thing.property_names) == {str(ENERGY_IMPORT), str(SERIAL_NUMBER), str(CLOCK)}


def test_initial_values_units_and_descriptors() -> None:
    thing = _thing()

    energy = thing.find_property("1.0.1.8.0.255")
    assert energy.value == 1000
    assert energy.unit == "Wh"
    assert energy.read_only is True
    assert energy.metadata == {
        "@type": "LevelProperty",
        "title": "1.0.1.8.0.255",
        "type": "integer",
        "unit": "Wh",
        "readOnly": True,
    }

    serial = thing.find_property("0.0.96.1.0.255")
    assert serial.value == "SN12345"
    assert serial.metadata["type"] == "string"
    assert "unit" not in serial.metadata

    assert thing.find_property("0.0.1.0.0.255").value == "2024-03-15T14:30:05+01:00"


def test_partial_clock_is_a_string_property() -> None:
    thing = Thing.from_reading(convert_reading(meter_reading(clock=cosem_bytes(year=0xFFFF, hour=0xFF))))

    clock = thing.find_property(str(CLOCK))
    assert isinstance(clock.value, str)
    assert clock.value == "****-03-15T**:30:05.00+01:00"
    assert clock.metadata["type"] == "string"


@pytest.mark.parametrize("reading", [None, Reading()])
def test_empty_first_reading_is_rejected(reading: Reading | None) -> None:
    with pytest.raises(ThingInitError):
        Thing.from_reading(reading)


def test_find_unknown_property_is_a_lookup_error() -> None:
    thing = _thing()

    with pytest.raises(UnknownPropertyError) as exc_info:
        thing.find_property("9.9.9.9.9.9")
    assert isinstance(exc_info.value, LookupError)
    assert exc_info.value.name == "9.9.9.9.9.9"


def test_set_cached_value_returns_previous_and_does_not_notify() -> None:
    thing = _thing()
    seen: list[tuple[str, Any]] = []
    thing.subscribe(lambda name, value: seen.append((name, value)))

    prop = thing.find_property("1.0.1.8.0.255")
    with thing.write():
        old = prop.set_cached_value(1500)

    assert old == 1000
    assert thing.get_value("1.0.1.8.0.255") == 1500
    assert seen == []


def test_notify_reaches_every_subscriber_until_unsubscribed() -> None:
    thing = _thing()
    first: list[tuple[str, Any]] = []
    second: list[tuple[str, Any]] = []
    unsubscribe = thing.subscribe(lambda name, value: first.append((name, value)))
    thing.subscribe(lambda name, value: second.append((name, value)))

    thing.property_notify("1.0.1.8.0.255", 1)
    unsubscribe()
    thing.property_notify("1.0.1.8.0.255", 2)

    assert first == [("1.0.1.8.0.255", 1)]
    assert second == [("1.0.1.8.0.255", 1), ("1.0.1.8.0.255", 2)]


def test_failing_subscriber_does_not_block_others() -> None:
    thing = _thing()
    seen: list[Any] = []

    def broken(_name: str, _value: Any) -> None:
        raise RuntimeError("boom")

    thing.subscribe(broken)
    thing.subscribe(lambda _name, value: seen.append(value))

    thing.property_notify("1.0.1.8.0.255", 7)

    assert seen == [7]


def test_snapshot_and_description() -> None:
    thing = _thing()

    assert thing.snapshot() == {
        "1.0.1.8.0.255": 1000,
        "0.0.96.1.0.255": "SN12345",
        "0.0.1.0.0.255": "2024-03-15T14:30:05+01:00",
    }

    description = thing.description()
    assert description["id"] == "urn:dev:ops:smart-meter-1"
    assert description["title"] == "Smart Meter"
    assert description["@type"] == ["MultiLevelSensor"]
    assert description["description"] == "A smart energy meter"
    assert list(description["properties"]) == list(thing.property_names)
    assert description["properties"]["1.0.1.8.0.255"]["links"] == [
        {"rel": "property", "href": "/properties/1.0.1.8.0.255"}
    ]


def test_duplicate_property_names_are_rejected() -> None:
    with pytest.raises(ThingInitError):
        Thing("urn:test", "Test", [Property(name="a"), Property(name="a")])
