from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Iterable, Iterator, Mapping, Optional

import yaml
from pydantic import ValidationError

from app.schemas import DevicesDocument
from decoders.errors import UnsupportedDeviceType
from decoders.registry import resolve_device_type, supported_device_types
from models.records import DeviceProfile, normalize_address

logger = logging.getLogger(__name__)

DEVICE_ENV_PREFIX = "BLE_DEVICE_"


class ConfigurationError(Exception):
    """The device configuration cannot be used to start the bridge."""


class DeviceTable:
    """Immutable address -> profile mapping built at startup."""

    def __init__(self, profiles: Iterable[DeviceProfile]) -> None:
        self._profiles: Dict[str, DeviceProfile] = {}
        for profile in profiles:
            address = normalize_address(profile.address)
            self._profiles[address] = DeviceProfile(
                address=address, device_type=profile.device_type, name=profile.name
            )

    def get(self, address: str) -> Optional[DeviceProfile]:
        return self._profiles.get(normalize_address(address))

    def __contains__(self, address: object) -> bool:
        return isinstance(address, str) and normalize_address(address) in self._profiles

    def __iter__(self) -> Iterator[DeviceProfile]:
        return iter(self._profiles.values())

    def __len__(self) -> int:
        return len(self._profiles)

    @property
    def addresses(self) -> list[str]:
        return list(self._profiles)

    def validate(self) -> None:
        """Reject tables the bridge cannot run with."""
        if not self._profiles:
            raise ConfigurationError("No devices configured.")
        for profile in self._profiles.values():
            try:
                resolve_device_type(profile.device_type)
            except UnsupportedDeviceType as exc:
                raise ConfigurationError(
                    f"Device {profile.address} ({profile.name}) has unsupported type "
                    f"{profile.device_type!r}; expected one of "
                    f"{', '.join(supported_device_types())}."
                ) from exc


def read_devices_file(path: Path) -> list[DeviceProfile]:
    """Parse the devices YAML document; a missing file yields no devices."""
    if not path.exists():
        logger.warning("Devices file %s not found", path)
        return []

    try:
        # Every field is a string; BaseLoader keeps addresses such as 11:22:33:44:55:16
        # from being resolved as base-60 integers.
        raw = yaml.load(path.read_text(), Loader=yaml.BaseLoader) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read devices file {path}: {exc}") from exc

    try:
        document = DevicesDocument.model_validate(raw)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid devices file {path}: {exc}") from exc

    return [
        DeviceProfile(address=address, device_type=entry.type, name=entry.name)
        for address, entry in document.devices.items()
    ]


def read_device_env(environ: Mapping[str, str]) -> list[DeviceProfile]:
    """Collect ``BLE_DEVICE_*=<address>,<type>,<name>`` entries."""
    profiles: list[DeviceProfile] = []
    for key in sorted(environ):
        if not key.startswith(DEVICE_ENV_PREFIX):
            continue
        parts = [part.strip() for part in environ[key].split(",", 2)]
        if len(parts) != 3 or not all(parts):
            logger.warning("Ignoring malformed device entry %s", key)
            continue
        address, device_type, name = parts
        profiles.append(DeviceProfile(address=address, device_type=device_type, name=name))
    return profiles


def load_device_table(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> DeviceTable:
    """Build and validate the device table; environment entries win over the file."""
    profiles: list[DeviceProfile] = []
    if path is not None:
        profiles.extend(read_devices_file(path))
    profiles.extend(read_device_env(os.environ if environ is None else environ))

    table = DeviceTable(profiles)
    table.validate()
    return table
