from __future__ import annotations

from typing import Any, Iterable

import typer

from datastore.device_table import DeviceTable
from models.records import Reading
from services.aggregator import state_topic
from settings import VERSION


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_banner() -> None:
    echo_heading(f"ble-sensor-mqtt v{VERSION}. Scanning for devices:")


def render_devices(devices: DeviceTable, topic_prefix: str) -> None:
    for profile in devices:
        typer.echo(
            f"{profile.address}: {profile.name} - {profile.device_type}"
            f" -> {state_topic(topic_prefix, profile.name)}"
        )


def render_reading(reading: Reading) -> None:
    echo_heading("Reading")
    echo_key_values(
        [
            ("temperature", f"{reading.temperature:.3f} C"),
            ("humidity", f"{reading.humidity:.1f} %"),
            ("pressure", f"{reading.pressure:.2f} hPa"),
            ("battery", f"{reading.battery_level} % ({reading.battery_voltage:.3f} V)"),
            ("count", reading.count),
        ]
    )
