"""Decoder for sensors running the ATC custom firmware.

Only the 15 byte custom frame advertised under the environmental sensing
service is decoded::

    uint8_t   MAC[6];          // little-endian
    int16_t   temperature;     // x 0.01 degree
    uint16_t  humidity;        // x 0.01 %
    uint16_t  battery_mv;
    uint8_t   battery_level;   // 0..100 %
    uint8_t   counter;         // measurement count
    uint8_t   flags;

The 12 byte big-endian frame of the same service and the native Xiaomi frame
are recognized but not decoded.
"""

from __future__ import annotations

import struct
from typing import Sequence

from decoders.errors import FrameNotFound, MissingData, UnsupportedFormat
from models.records import Reading, ServiceData

VENDOR = "ATC"

UUID_ATC = 0x181A
UUID_XIAOMI = 0xFE95

CUSTOM_FRAME_LENGTH = 15

_CUSTOM_FRAME = struct.Struct("<hHHBB")
_CUSTOM_OFFSET = 6


def _parse_custom_frame(data: bytes) -> Reading:
    raw_temp, raw_humidity, raw_voltage, battery, counter = _CUSTOM_FRAME.unpack_from(
        data, _CUSTOM_OFFSET
    )
    return Reading(
        temperature=raw_temp / 100.0,
        humidity=raw_humidity / 100.0,
        pressure=0.0,
        battery_level=battery,
        battery_voltage=raw_voltage / 1000.0,
        count=counter,
    )


def decode_atc(manufacturer_data: bytes, service_data: Sequence[ServiceData]) -> Reading:
    if not service_data:
        raise MissingData(VENDOR, "service data is empty")

    for entry in service_data:
        if entry.uuid == UUID_ATC:
            if len(entry.data) == CUSTOM_FRAME_LENGTH:
                return _parse_custom_frame(entry.data)
            raise UnsupportedFormat(
                VENDOR, f"frame of {len(entry.data)} bytes is not implemented"
            )
        if entry.uuid == UUID_XIAOMI:
            raise UnsupportedFormat(VENDOR, "native Xiaomi frame is not implemented")

    raise FrameNotFound(VENDOR, "device data not found")
