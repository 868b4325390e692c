"""Errors raised while decoding beacon frames."""

from __future__ import annotations


class DecodeError(Exception):
    """A single frame could not be turned into a reading."""

    def __init__(self, vendor: str, reason: str) -> None:
        super().__init__(f"{vendor}: {reason}")
        self.vendor = vendor
        self.reason = reason


class MissingData(DecodeError):
    pass


class TruncatedFrame(DecodeError):
    pass


class FrameNotFound(DecodeError):
    pass


class UnsupportedFormat(DecodeError):
    pass


class UnsupportedDeviceType(LookupError):
    """No decoder is registered for the configured type tag."""

    def __init__(self, tag: str) -> None:
        super().__init__(f"Unsupported device type {tag!r}.")
        self.tag = tag
