from __future__ import annotations

import json

from models.records import DeviceProfile
from services.discovery import discovery_messages, discovery_topic
from settings import VERSION


def test_discovery_topic() -> None:
    assert discovery_topic("room") == "homeassistant/device/room/config"


def test_atc_document_without_pressure() -> None:
    profile = DeviceProfile(address="A4:C1:38:00:00:01", device_type="ATC", name="room")

    [(topic, payload)] = discovery_messages([profile], "ble_sensors")
    document = json.loads(payload)

    assert topic == "homeassistant/device/room/config"
    assert document["state_topic"] == "ble_sensors/room"
    assert document["qos"] == 0
    assert document["dev"] == {
        "ids": "A4:C1:38:00:00:01",
        "name": "room",
        "mdl": "ATC",
        "sw": VERSION,
        "hw": "1.0",
        "sn": "A4:C1:38:00:00:01",
    }
    assert document["o"] == {"name": "ble-sensor-mqtt", "sw": VERSION}
    assert set(document["cmps"]) == {"temperature", "humidity", "battery", "rssi"}

    temperature = document["cmps"]["temperature"]
    assert temperature["p"] == "sensor"
    assert temperature["unit_of_measurement"] == "°C"
    assert temperature["value_template"] == "{{ value_json.T }}"
    assert temperature["suggested_display_precision"] == 2
    assert "entity_category" not in temperature
    assert "suggested_display_precision" not in document["cmps"]["humidity"]
    assert document["cmps"]["rssi"]["entity_category"] == "diagnostic"


def test_inode_document_includes_pressure() -> None:
    profile = DeviceProfile(address="D0:F0:18:00:00:02", device_type="inode", name="attic")

    [(_, payload)] = discovery_messages([profile], "home/")
    document = json.loads(payload)

    assert document["state_topic"] == "home/attic"
    pressure = document["cmps"]["pressure"]
    assert pressure["unique_id"] == "attic_pressure"
    assert pressure["unit_of_measurement"] == "hPa"
    assert pressure["suggested_display_precision"] == 1
