"""Pydantic schemas for published messages and configuration documents."""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import Message


class MessagePayload(BaseModel):
    """JSON document published on a device state topic."""

    model_config = ConfigDict(populate_by_name=True)

    time: str = Field(..., description="Local wall-clock time, YYYY-MM-DD HH:MM:SS.")
    timestamp: int = Field(..., description="Epoch seconds.")
    rssi: int = Field(..., alias="RSSI")
    name: str
    address: str
    temperature: float = Field(..., alias="T")
    humidity: float = Field(..., alias="H")
    pressure: float = Field(..., alias="P")
    battery_level: int = Field(..., alias="battLvl", ge=0, le=0xFFFF)
    battery_voltage: float = Field(..., alias="battVolt")
    count: int = Field(..., ge=0, le=0xFFFFFFFF)

    @classmethod
    def from_message(cls, message: Message) -> "MessagePayload":
        reading = message.reading
        return cls(
            time=message.time,
            timestamp=message.timestamp,
            rssi=message.rssi,
            name=message.name,
            address=message.address,
            temperature=reading.temperature,
            humidity=reading.humidity,
            pressure=reading.pressure,
            battery_level=reading.battery_level,
            battery_voltage=reading.battery_voltage,
            count=reading.count,
        )

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class DeviceEntry(BaseModel):
    """One device in the devices YAML document."""

    type: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class DevicesDocument(BaseModel):
    devices: Dict[str, DeviceEntry] = Field(default_factory=dict)


class DiscoveryDevice(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    identifiers: str = Field(..., alias="ids")
    name: str
    model: Optional[str] = Field(default=None, alias="mdl")
    sw_version: Optional[str] = Field(default=None, alias="sw")
    hw_version: Optional[str] = Field(default=None, alias="hw")
    serial_number: Optional[str] = Field(default=None, alias="sn")


class DiscoveryOrigin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str
    sw_version: Optional[str] = Field(default=None, alias="sw")


class DiscoveryComponent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    unique_id: str
    platform: str = Field(default="sensor", alias="p")
    device_class: str
    unit_of_measurement: str
    value_template: str
    entity_category: Optional[str] = None
    suggested_display_precision: Optional[int] = None


class DiscoveryPayload(BaseModel):
    """Home Assistant device discovery document."""

    model_config = ConfigDict(populate_by_name=True)

    device: DiscoveryDevice = Field(..., alias="dev")
    origin: DiscoveryOrigin = Field(..., alias="o")
    components: Dict[str, DiscoveryComponent] = Field(..., alias="cmps")
    state_topic: str
    qos: int = 0

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)
