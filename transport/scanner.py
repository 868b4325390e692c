"""Bleak based scanner feeding advertisements to the dispatcher."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Mapping, Optional

from bleak import BleakScanner

from models.records import RawAdvertisement, ServiceData

logger = logging.getLogger(__name__)

BASE_UUID_SUFFIX = "-0000-1000-8000-00805f9b34fb"

AdvertisementCallback = Callable[[RawAdvertisement], object]


def uuid16_from_str(uuid: str) -> Optional[int]:
    """Return the 16-bit form of a Bluetooth base UUID, ``None`` otherwise."""
    candidate = uuid.strip().lower()
    if len(candidate) == 4:
        return int(candidate, 16)
    if not candidate.endswith(BASE_UUID_SUFFIX) or not candidate.startswith("0000"):
        return None
    return int(candidate[4:8], 16)


def manufacturer_payload(manufacturer_data: Mapping[int, bytes]) -> bytes:
    """Rebuild the raw manufacturer AD payload (company id first, little-endian)."""
    for company_id, data in manufacturer_data.items():
        return company_id.to_bytes(2, "little") + bytes(data)
    return b""


def to_raw_advertisement(device, advertisement) -> RawAdvertisement:
    entries = []
    for uuid, data in (advertisement.service_data or {}).items():
        short = uuid16_from_str(uuid)
        if short is None:
            continue
        entries.append(ServiceData(uuid=short, data=bytes(data)))
    return RawAdvertisement(
        address=device.address,
        rssi=advertisement.rssi,
        manufacturer_data=manufacturer_payload(advertisement.manufacturer_data or {}),
        service_data=tuple(entries),
    )


class BleScanner:
    def __init__(self, callback: AdvertisementCallback, active: bool = True) -> None:
        self._callback = callback
        self.active = active

    def _on_detection(self, device, advertisement) -> None:
        self._callback(to_raw_advertisement(device, advertisement))

    async def run(self, stop_event: asyncio.Event) -> None:
        mode = "active" if self.active else "passive"
        logger.info("Starting %s BLE scan", mode)
        async with BleakScanner(detection_callback=self._on_detection, scanning_mode=mode):
            await stop_event.wait()
        logger.info("BLE scan stopped")
