from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

VERSION = "0.1.0"

_DEVICES_FILE_ENV = "BLE_DEVICES_FILE"
_MQTT_URL_ENV = "BLE_MQTT_URL"
_MQTT_USER_ENV = "BLE_MQTT_USER"
_MQTT_PASS_ENV = "BLE_MQTT_PASS"
_TOPIC_PREFIX_ENV = "BLE_TOPIC_PREFIX"
_FLUSH_INTERVAL_ENV = "BLE_FLUSH_INTERVAL"
_ACTIVE_SCAN_ENV = "BLE_ACTIVE_SCAN"
_DISCOVERY_ENV = "BLE_DISCOVERY"
_LOG_LEVEL_ENV = "LOG_LEVEL"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    devices_file: str
    mqtt_url: Optional[str]
    mqtt_user: Optional[str]
    mqtt_password: Optional[str]
    topic_prefix: str
    flush_interval: float
    active_scan: bool
    discovery: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_flush_interval(default: float) -> float:
    value = os.getenv(_FLUSH_INTERVAL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUE_VALUES:
        return True
    if candidate in _FALSE_VALUES:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        devices_file=_read_str_env(_DEVICES_FILE_ENV, "devices.yml"),
        mqtt_url=_read_optional_env(_MQTT_URL_ENV, None),
        mqtt_user=_read_optional_env(_MQTT_USER_ENV, None),
        mqtt_password=_read_optional_env(_MQTT_PASS_ENV, None),
        topic_prefix=_read_str_env(_TOPIC_PREFIX_ENV, "ble_sensors").rstrip("/"),
        flush_interval=_read_flush_interval(0.0),
        active_scan=_read_bool_env(_ACTIVE_SCAN_ENV, True),
        discovery=_read_bool_env(_DISCOVERY_ENV, True),
        log_level=_read_log_level("INFO"),
    )
