"""Decoder for iNode environmental sensor manufacturer frames."""

from __future__ import annotations

import struct
from typing import Sequence

from decoders.errors import MissingData, TruncatedFrame
from models.records import Reading, ServiceData

VENDOR = "inode"

MIN_FRAME_LENGTH = 16

TEMPERATURE_RANGE = (-30.0, 70.0)
HUMIDITY_RANGE = (1.0, 100.0)

# header(2) battery alarm(2) pressure temperature humidity uptime_high uptime_low
_FRAME = struct.Struct("<2xH2xHHHHH")


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    low, high = bounds
    if value < low:
        return low
    if value > high:
        return high
    return value


def battery_level_from_code(code: int) -> int:
    """Map the 8-bit battery code to a percentage in steps of ten."""

    if code == 1:
        return 100
    return max(0, 10 * (min(code, 11) - 1))


def battery_voltage_from_level(level: int) -> float:
    # Linear fit used by the vendor tooling, not a physical constant.
    return (level - 10) * 1.2 / 100 + 1.8


def decode_inode(manufacturer_data: bytes, service_data: Sequence[ServiceData]) -> Reading:
    if not manufacturer_data:
        raise MissingData(VENDOR, "manufacturer data is empty")
    if len(manufacturer_data) < MIN_FRAME_LENGTH:
        raise TruncatedFrame(
            VENDOR,
            f"manufacturer data has {len(manufacturer_data)} bytes, need {MIN_FRAME_LENGTH}",
        )

    raw_battery, raw_pressure, raw_temp, raw_humidity, uptime_high, uptime_low = (
        _FRAME.unpack_from(manufacturer_data)
    )

    level = battery_level_from_code((raw_battery >> 12) & 0xFF)
    temperature = (175.72 * raw_temp * 4.0 / 65536) - 46.85
    humidity = (125 * raw_humidity * 4.0 / 65536) - 6.0

    return Reading(
        temperature=_clamp(temperature, TEMPERATURE_RANGE),
        humidity=_clamp(humidity, HUMIDITY_RANGE),
        pressure=raw_pressure / 16.0,
        battery_level=level,
        battery_voltage=battery_voltage_from_level(level),
        count=(uptime_high << 16) | uptime_low,
    )
