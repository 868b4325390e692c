from __future__ import annotations

import asyncio
import logging
import signal
from contextlib import suppress
from typing import Callable, Optional, Protocol

from cli.config import BridgeConfig
from models.records import RawAdvertisement
from services.aggregator import AggregationPipeline, PublishSink
from services.discovery import discovery_messages
from services.dispatcher import EventDispatcher
from transport.mqtt import LoggingSink, MqttSink
from transport.scanner import BleScanner

logger = logging.getLogger(__name__)


class ManagedSink(PublishSink, Protocol):
    def start(self) -> None:
        ...

    def close(self) -> None:
        ...


class Scanner(Protocol):
    async def run(self, stop_event: asyncio.Event) -> None:
        ...


ScannerFactory = Callable[[Callable[[RawAdvertisement], object]], Scanner]


class Bridge:
    """Owns the device table, dispatcher, pipeline and sink for one run."""

    def __init__(
        self,
        config: BridgeConfig,
        sink: ManagedSink,
        scanner_factory: ScannerFactory,
    ) -> None:
        self.config = config
        self.sink = sink
        self.pipeline = AggregationPipeline(
            sink=sink,
            topic_prefix=config.topic_prefix,
            flush_interval=config.flush_interval,
        )
        self.dispatcher = EventDispatcher(devices=config.devices, consumer=self.pipeline)
        self.scanner = scanner_factory(self.dispatcher.handle)

    async def run(self, stop_event: Optional[asyncio.Event] = None) -> None:
        """Scan and publish until ``stop_event`` is set."""
        stop = stop_event or asyncio.Event()
        self.sink.start()
        self.pipeline.start()
        try:
            await self.scanner.run(stop)
        finally:
            self.pipeline.stop()
            self.sink.close()


def create_bridge(config: BridgeConfig) -> Bridge:
    sink: ManagedSink
    if config.mqtt_url:
        announcements = (
            discovery_messages(config.devices, config.topic_prefix) if config.discovery else []
        )
        sink = MqttSink(
            url=config.mqtt_url,
            username=config.mqtt_user,
            password=config.mqtt_password,
            announcements=announcements,
        )
    else:
        sink = LoggingSink()

    def scanner_factory(callback: Callable[[RawAdvertisement], object]) -> Scanner:
        return BleScanner(callback, active=config.active_scan)

    return Bridge(config=config, sink=sink, scanner_factory=scanner_factory)


async def run_until_signalled(bridge: Bridge) -> None:
    """Run the bridge, stopping cleanly on SIGINT or SIGTERM."""
    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        with suppress(NotImplementedError):
            loop.add_signal_handler(sig, stop.set)
    await bridge.run(stop)
    logger.info("Bridge stopped")
