"""Unit tests for the ATC service-data decoder."""

from __future__ import annotations

import pytest

from decoders.atc import UUID_ATC, UUID_XIAOMI, decode_atc
from decoders.errors import FrameNotFound, MissingData, UnsupportedFormat
from models.records import ServiceData, uuid16_from_bytes

CUSTOM_FRAME = bytes([27, 50, 60, 56, 193, 164, 4, 9, 139, 13, 168, 11, 87, 23, 4])


def test_decode_custom_frame() -> None:
    entries = [ServiceData(uuid=uuid16_from_bytes(b"\x1a\x18"), data=CUSTOM_FRAME)]

    reading = decode_atc(b"", entries)

    assert reading.temperature == pytest.approx(23.08, abs=0.01)
    assert reading.humidity == pytest.approx(34.67)
    assert reading.battery_voltage == pytest.approx(2.984)
    assert reading.battery_level == 87
    assert reading.count == 23
    assert reading.pressure == 0.0


def test_negative_temperature_is_signed() -> None:
    frame = bytearray(CUSTOM_FRAME)
    frame[6:8] = (-512).to_bytes(2, "little", signed=True)

    reading = decode_atc(b"", [ServiceData(uuid=UUID_ATC, data=bytes(frame))])

    assert reading.temperature == pytest.approx(-5.12)


def test_empty_service_data_is_missing() -> None:
    with pytest.raises(MissingData) as excinfo:
        decode_atc(b"\x01\x02", [])

    assert excinfo.value.vendor == "ATC"


def test_short_custom_frame_is_unsupported() -> None:
    with pytest.raises(UnsupportedFormat):
        decode_atc(b"", [ServiceData(uuid=UUID_ATC, data=bytes(12))])


def test_xiaomi_frame_is_unsupported() -> None:
    with pytest.raises(UnsupportedFormat):
        decode_atc(b"", [ServiceData(uuid=UUID_XIAOMI, data=bytes(17))])


def test_unrecognized_entries_are_skipped() -> None:
    entries = [
        ServiceData(uuid=0xFEAA, data=b"\x00\x01"),
        ServiceData(uuid=UUID_ATC, data=CUSTOM_FRAME),
    ]

    reading = decode_atc(b"", entries)

    assert reading.battery_level == 87


def test_no_recognized_entry_is_not_found() -> None:
    with pytest.raises(FrameNotFound):
        decode_atc(b"", [ServiceData(uuid=0xFEAA, data=CUSTOM_FRAME)])


def test_decoding_twice_is_identical() -> None:
    entries = [ServiceData(uuid=UUID_ATC, data=CUSTOM_FRAME)]

    assert decode_atc(b"", entries) == decode_atc(b"", entries)
