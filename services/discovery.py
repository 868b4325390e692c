"""Home Assistant MQTT discovery documents for configured sensors."""

from __future__ import annotations

from typing import Dict, Iterable

from app.schemas import (
    DiscoveryComponent,
    DiscoveryDevice,
    DiscoveryOrigin,
    DiscoveryPayload,
)
from decoders.registry import DeviceType
from models.records import DeviceProfile
from services.aggregator import state_topic
from settings import VERSION

DISCOVERY_PREFIX = "homeassistant/device/"
ORIGIN_NAME = "ble-sensor-mqtt"


def discovery_topic(name: str) -> str:
    return f"{DISCOVERY_PREFIX}{name}/config"


def _components(profile: DeviceProfile) -> Dict[str, DiscoveryComponent]:
    name = profile.name
    components = {
        "temperature": DiscoveryComponent(
            unique_id=f"{name}_temperature",
            device_class="temperature",
            unit_of_measurement="°C",
            value_template="{{ value_json.T }}",
            suggested_display_precision=2,
        ),
        "humidity": DiscoveryComponent(
            unique_id=f"{name}_humidity",
            device_class="humidity",
            unit_of_measurement="%",
            value_template="{{ value_json.H }}",
        ),
        "battery": DiscoveryComponent(
            unique_id=f"{name}_battery",
            device_class="battery",
            unit_of_measurement="%",
            entity_category="diagnostic",
            value_template="{{ value_json.battLvl }}",
        ),
        "rssi": DiscoveryComponent(
            unique_id=f"{name}_rssi",
            device_class="signal_strength",
            unit_of_measurement="dBm",
            entity_category="diagnostic",
            value_template="{{ value_json.RSSI }}",
        ),
    }
    # Only the inode frame carries a pressure reading.
    if profile.device_type == DeviceType.INODE.value:
        components["pressure"] = DiscoveryComponent(
            unique_id=f"{name}_pressure",
            device_class="pressure",
            unit_of_measurement="hPa",
            value_template="{{ value_json.P }}",
            suggested_display_precision=1,
        )
    return components


def build_discovery_payload(profile: DeviceProfile, topic_prefix: str) -> DiscoveryPayload:
    return DiscoveryPayload(
        device=DiscoveryDevice(
            identifiers=profile.address,
            name=profile.name,
            model=profile.device_type,
            sw_version=VERSION,
            hw_version="1.0",
            serial_number=profile.address,
        ),
        origin=DiscoveryOrigin(name=ORIGIN_NAME, sw_version=VERSION),
        components=_components(profile),
        state_topic=state_topic(topic_prefix.rstrip("/"), profile.name),
        qos=0,
    )


def discovery_messages(
    profiles: Iterable[DeviceProfile], topic_prefix: str
) -> list[tuple[str, str]]:
    """Return ``(topic, payload)`` pairs announcing every configured device."""
    return [
        (discovery_topic(profile.name), build_discovery_payload(profile, topic_prefix).to_json())
        for profile in profiles
    ]
