"""Lookup from configured device type tags to frame decoders."""

from __future__ import annotations

from enum import Enum
from typing import Callable, Dict, Sequence

from decoders.atc import decode_atc
from decoders.errors import UnsupportedDeviceType
from decoders.inode import decode_inode
from models.records import Reading, ServiceData

Decoder = Callable[[bytes, Sequence[ServiceData]], Reading]


class DeviceType(str, Enum):
    """Sensor vendors with a known frame layout."""

    ATC = "ATC"
    INODE = "inode"


_DECODERS: Dict[DeviceType, Decoder] = {
    DeviceType.ATC: decode_atc,
    DeviceType.INODE: decode_inode,
}


def resolve_device_type(tag: str) -> DeviceType:
    """Return the vendor for ``tag``; the match is exact and case-sensitive."""
    try:
        return DeviceType(tag)
    except ValueError as exc:
        raise UnsupportedDeviceType(tag) from exc


def supported_device_types() -> list[str]:
    return [member.value for member in DeviceType]


def decode(
    tag: str,
    manufacturer_data: bytes,
    service_data: Sequence[ServiceData] = (),
) -> Reading:
    """Decode a frame with the decoder registered for ``tag``.

    Raises ``UnsupportedDeviceType`` for an unknown tag and a ``DecodeError``
    subclass when the payload cannot be decoded.
    """
    decoder = _DECODERS[resolve_device_type(tag)]
    return decoder(manufacturer_data or b"", service_data or ())
