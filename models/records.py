"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


def normalize_address(address: str) -> str:
    """Canonical form used for device table keys and lookups."""

    return address.strip().upper()


def uuid16_from_bytes(raw: bytes) -> int:
    """Decode a two-byte little-endian service identifier."""

    if len(raw) != 2:
        raise ValueError(f"16-bit identifier needs exactly 2 bytes, got {len(raw)}")
    return int.from_bytes(raw, "little")


@dataclass(slots=True, frozen=True)
class ServiceData:
    """A single service-data entry of an advertisement."""

    uuid: int
    data: bytes


@dataclass(slots=True, frozen=True)
class RawAdvertisement:
    """One beacon frame as reported by the scanner."""

    address: str
    rssi: int
    manufacturer_data: bytes = b""
    service_data: Tuple[ServiceData, ...] = ()


@dataclass(slots=True, frozen=True)
class Reading:
    """Normalized physical readings decoded from a frame."""

    temperature: float
    humidity: float
    pressure: float
    battery_level: int
    battery_voltage: float
    count: int


@dataclass(slots=True, frozen=True)
class DeviceProfile:
    address: str
    device_type: str
    name: str


@dataclass(slots=True, frozen=True)
class Message:
    """A reading together with the metadata that is published with it."""

    reading: Reading
    time: str
    timestamp: int
    rssi: int
    name: str
    address: str
