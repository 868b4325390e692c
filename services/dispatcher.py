"""Turns raw advertisements from configured devices into messages."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional, Protocol

from datastore.device_table import DeviceTable
from decoders.errors import DecodeError
from decoders.registry import decode
from models.records import Message, RawAdvertisement

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class MessageConsumer(Protocol):
    def submit(self, message: Message) -> None:
        ...


def _local_now() -> datetime:
    return datetime.now().astimezone()


class EventDispatcher:
    """Called by the scanner once per advertisement; never blocks."""

    def __init__(
        self,
        devices: DeviceTable,
        consumer: MessageConsumer,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self.devices = devices
        self.consumer = consumer
        self._clock = clock

    def handle(self, advertisement: RawAdvertisement) -> Optional[Message]:
        profile = self.devices.get(advertisement.address)
        if profile is None:
            return None

        observed_at = self._clock()
        try:
            reading = decode(
                profile.device_type,
                advertisement.manufacturer_data,
                advertisement.service_data,
            )
        except DecodeError as exc:
            logger.warning(
                "Dropping undecodable advertisement",
                extra={
                    "address": profile.address,
                    "device_name": profile.name,
                    "device_type": exc.vendor,
                    "reason": exc.reason,
                },
            )
            return None

        message = Message(
            reading=reading,
            time=observed_at.strftime(TIME_FORMAT),
            timestamp=int(observed_at.timestamp()),
            rssi=advertisement.rssi,
            name=profile.name,
            address=profile.address,
        )
        logger.debug(
            "B = %d%% (%.1fV), T = %.3fC, P = %.2fhPa, H = %.1f%%, count = %d",
            reading.battery_level,
            reading.battery_voltage,
            reading.temperature,
            reading.pressure,
            reading.humidity,
            reading.count,
            extra={
                "address": profile.address,
                "device_name": profile.name,
                "rssi": advertisement.rssi,
            },
        )
        self.consumer.submit(message)
        return message

    __call__ = handle
