from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from datastore.device_table import DeviceTable, load_device_table
from settings import get_settings


@dataclass(frozen=True)
class BridgeConfig:
    devices: DeviceTable
    mqtt_url: Optional[str] = None
    mqtt_user: Optional[str] = None
    mqtt_password: Optional[str] = None
    topic_prefix: str = "ble_sensors"
    flush_interval: float = 0.0
    active_scan: bool = True
    discovery: bool = True


def load_config(
    devices_file: Optional[Path] = None,
    mqtt_url: Optional[str] = None,
    mqtt_user: Optional[str] = None,
    mqtt_password: Optional[str] = None,
    topic_prefix: Optional[str] = None,
    flush_interval: Optional[float] = None,
    active_scan: Optional[bool] = None,
    discovery: Optional[bool] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> BridgeConfig:
    """Merge command-line overrides over the environment settings.

    Raises ``ConfigurationError`` when the resulting device table is unusable.
    """
    settings = get_settings()
    if flush_interval is not None and flush_interval < 0:
        raise ValueError("Flush interval must not be negative.")

    path = devices_file if devices_file is not None else Path(settings.devices_file)
    devices = load_device_table(path, os.environ if environ is None else environ)

    prefix = topic_prefix if topic_prefix else settings.topic_prefix
    return BridgeConfig(
        devices=devices,
        mqtt_url=mqtt_url or settings.mqtt_url,
        mqtt_user=mqtt_user or settings.mqtt_user,
        mqtt_password=mqtt_password or settings.mqtt_password,
        topic_prefix=prefix.rstrip("/"),
        flush_interval=settings.flush_interval if flush_interval is None else flush_interval,
        active_scan=settings.active_scan if active_scan is None else active_scan,
        discovery=settings.discovery if discovery is None else discovery,
    )
