from __future__ import annotations

from types import SimpleNamespace

import pytest

from models.records import RawAdvertisement, ServiceData
from transport.scanner import (
    BleScanner,
    manufacturer_payload,
    to_raw_advertisement,
    uuid16_from_str,
)


@pytest.mark.parametrize(
    ("uuid", "expected"),
    [
        ("0000181a-0000-1000-8000-00805f9b34fb", 0x181A),
        ("0000FE95-0000-1000-8000-00805F9B34FB", 0xFE95),
        ("181a", 0x181A),
        ("6e400001-b5a3-f393-e0a9-e50e24dcca9e", None),
    ],
)
def test_uuid16_from_str(uuid: str, expected: int | None) -> None:
    assert uuid16_from_str(uuid) == expected


def test_manufacturer_payload_prefixes_company_id() -> None:
    assert manufacturer_payload({0x9D90: b"\x01\xa0"}) == b"\x90\x9d\x01\xa0"
    assert manufacturer_payload({}) == b""


def test_to_raw_advertisement() -> None:
    device = SimpleNamespace(address="A4:C1:38:00:00:01")
    advertisement = SimpleNamespace(
        rssi=-67,
        manufacturer_data={},
        service_data={
            "0000181a-0000-1000-8000-00805f9b34fb": bytearray(b"\x01\x02"),
            "6e400001-b5a3-f393-e0a9-e50e24dcca9e": b"\xff",
        },
    )

    raw = to_raw_advertisement(device, advertisement)

    assert raw == RawAdvertisement(
        address="A4:C1:38:00:00:01",
        rssi=-67,
        manufacturer_data=b"",
        service_data=(ServiceData(uuid=0x181A, data=b"\x01\x02"),),
    )


def test_detection_callback_forwards_advertisement() -> None:
    received = []
    scanner = BleScanner(received.append, active=False)
    device = SimpleNamespace(address="D0:F0:18:00:00:02")
    advertisement = SimpleNamespace(rssi=-80, manufacturer_data={0x9D90: b"\x01"}, service_data=None)

    scanner._on_detection(device, advertisement)  # type: ignore[attr-defined]

    assert received == [
        RawAdvertisement(address="D0:F0:18:00:00:02", rssi=-80, manufacturer_data=b"\x90\x9d\x01")
    ]
