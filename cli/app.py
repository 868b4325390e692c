from __future__ import annotations

import asyncio
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from app.main import create_bridge, run_until_signalled
from cli.config import BridgeConfig, load_config
from cli.render import render_banner, render_devices, render_reading
from datastore.device_table import ConfigurationError
from decoders.errors import DecodeError, UnsupportedDeviceType
from decoders.registry import decode
from logging_config import configure_logging
from models.records import ServiceData

app = typer.Typer(
    help="Bridge BLE environmental sensor beacons to an MQTT broker.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _load_or_exit(**overrides) -> BridgeConfig:
    try:
        return load_config(**overrides)
    except (ConfigurationError, ValueError) as exc:
        _fail(f"Configuration error: {exc}")


def _parse_hex(value: str, label: str) -> bytes:
    try:
        return bytes.fromhex(value.replace(":", "").replace(" ", ""))
    except ValueError as exc:
        raise typer.BadParameter(f"{label} is not valid hex: {value!r}") from exc


def _parse_service_entry(value: str) -> ServiceData:
    uuid_raw, sep, data_raw = value.partition("=")
    if not sep:
        raise typer.BadParameter(f"Service data must look like UUID=HEX, got {value!r}")
    try:
        uuid = int(uuid_raw.strip(), 16)
    except ValueError as exc:
        raise typer.BadParameter(f"Service UUID is not hex: {uuid_raw!r}") from exc
    if not 0 <= uuid <= 0xFFFF:
        raise typer.BadParameter(f"Service UUID must be 16-bit: {uuid_raw!r}")
    return ServiceData(uuid=uuid, data=_parse_hex(data_raw, "Service data"))


@app.command("run")
def run_command(
    devices: Optional[Path] = typer.Option(
        None, "--devices", "-d", help="Devices YAML file (defaults to BLE_DEVICES_FILE or devices.yml)."
    ),
    url: Optional[str] = typer.Option(
        None, "--url", help="MQTT broker URL, e.g. ssl://host.com:8883."
    ),
    user: Optional[str] = typer.Option(None, "--user", help="MQTT user name."),
    password: Optional[str] = typer.Option(None, "--pass", help="MQTT password."),
    topic_prefix: Optional[str] = typer.Option(
        None, "--topic-prefix", help="Prefix of the per-device state topics."
    ),
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between batched publishes; 0 publishes every reading immediately.",
    ),
    active_scan: Optional[bool] = typer.Option(
        None, "--active-scan/--passive-scan", help="BLE scanning mode."
    ),
    discovery: Optional[bool] = typer.Option(
        None, "--discovery/--no-discovery", help="Publish Home Assistant discovery documents."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-V", help="Log every decoded advertisement."
    ),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level."),
) -> None:
    """Scan for configured sensors and publish their readings."""
    configure_logging("DEBUG" if verbose else (log_level.upper() if log_level else None))
    config = _load_or_exit(
        devices_file=devices,
        mqtt_url=url,
        mqtt_user=user,
        mqtt_password=password,
        topic_prefix=topic_prefix,
        flush_interval=interval,
        active_scan=active_scan,
        discovery=discovery,
    )

    render_banner()
    render_devices(config.devices, config.topic_prefix)
    typer.echo()

    bridge = create_bridge(config)
    asyncio.run(run_until_signalled(bridge))


@app.command("devices")
def devices_command(
    devices: Optional[Path] = typer.Option(None, "--devices", "-d", help="Devices YAML file."),
    topic_prefix: Optional[str] = typer.Option(None, "--topic-prefix"),
) -> None:
    """List configured devices and their state topics."""
    config = _load_or_exit(devices_file=devices, topic_prefix=topic_prefix)
    render_devices(config.devices, config.topic_prefix)


@app.command("decode")
def decode_command(
    device_type: str = typer.Argument(..., help="Device type tag, e.g. ATC or inode."),
    manufacturer: str = typer.Option(
        "", "--manufacturer", "-m", help="Manufacturer data as hex."
    ),
    service: List[str] = typer.Option(
        [], "--service", "-s", help="Service data entry as UUID=HEX; repeatable."
    ),
) -> None:
    """Decode a captured frame without scanning."""
    manufacturer_data = _parse_hex(manufacturer, "Manufacturer data")
    service_data = [_parse_service_entry(entry) for entry in service]
    try:
        reading = decode(device_type, manufacturer_data, service_data)
    except UnsupportedDeviceType as exc:
        _fail(str(exc))
    except DecodeError as exc:
        _fail(f"Decode failed: {exc}")
    render_reading(reading)
