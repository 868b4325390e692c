from __future__ import annotations

from types import SimpleNamespace
from typing import Any, List

import paho.mqtt.client as mqtt
import pytest

from transport.mqtt import CLIENT_ID_PREFIX, BrokerAddress, LoggingSink, MqttSink


class FakeClient:
    def __init__(self, client_id: str) -> None:
        self.client_id = client_id
        self.connected = False
        self.published: List[tuple[str, str, int, bool]] = []
        self.credentials: tuple[str, Any] | None = None
        self.tls = False
        self.connect_args: tuple | None = None
        self.loop_running = False
        self.on_connect = None
        self.on_disconnect = None

    def username_pw_set(self, username: str, password: Any = None) -> None:
        self.credentials = (username, password)

    def tls_set(self) -> None:
        self.tls = True

    def reconnect_delay_set(self, min_delay: int, max_delay: int) -> None:
        pass

    def connect_async(self, host: str, port: int, keepalive: int) -> None:
        self.connect_args = (host, port, keepalive)

    def loop_start(self) -> None:
        self.loop_running = True

    def loop_stop(self) -> None:
        self.loop_running = False

    def disconnect(self) -> None:
        self.connected = False

    def is_connected(self) -> bool:
        return self.connected

    def publish(self, topic: str, payload: str, qos: int = 0, retain: bool = False):
        self.published.append((topic, payload, qos, retain))
        return SimpleNamespace(rc=mqtt.MQTT_ERR_SUCCESS)


def _sink(url: str = "tcp://broker.local", **kwargs: Any) -> tuple[MqttSink, FakeClient]:
    clients: List[FakeClient] = []

    def factory(client_id: str) -> FakeClient:
        client = FakeClient(client_id)
        clients.append(client)
        return client

    sink = MqttSink(url, client_factory=factory, **kwargs)  # type: ignore[arg-type]
    return sink, clients[0]


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        ("tcp://broker.local", BrokerAddress("broker.local", 1883, False)),
        ("mqtt://broker.local:1884", BrokerAddress("broker.local", 1884, False)),
        ("ssl://host.com:8883", BrokerAddress("host.com", 8883, True)),
        ("mqtts://host.com", BrokerAddress("host.com", 8883, True)),
        ("broker.local", BrokerAddress("broker.local", 1883, False)),
    ],
)
def test_broker_address_from_url(url: str, expected: BrokerAddress) -> None:
    assert BrokerAddress.from_url(url) == expected


@pytest.mark.parametrize("url", ["http://broker", "tcp://"])
def test_broker_address_rejects_bad_urls(url: str) -> None:
    with pytest.raises(ValueError):
        BrokerAddress.from_url(url)


def test_client_configuration() -> None:
    sink, client = _sink("ssl://host.com:8883", username="user", password="secret")

    assert client.client_id.startswith(CLIENT_ID_PREFIX)
    assert len(client.client_id) == len(CLIENT_ID_PREFIX) + 5
    assert client.credentials == ("user", "secret")
    assert client.tls is True

    sink.start()
    assert client.connect_args == ("host.com", 8883, 60)
    assert client.loop_running is True

    sink.close()
    assert client.loop_running is False


def test_publish_is_noop_while_disconnected() -> None:
    sink, client = _sink()

    sink.publish("ble_sensors/room", "{}")

    assert client.published == []


def test_publish_is_retained_qos0_when_connected() -> None:
    sink, client = _sink()
    client.connected = True

    sink.publish("ble_sensors/room", '{"T": 1.0}')
    sink.publish("", "{}")

    assert client.published == [("ble_sensors/room", '{"T": 1.0}', 0, True)]


def test_announcements_published_on_connect() -> None:
    sink, client = _sink(announcements=[("homeassistant/device/room/config", "{}")])
    client.connected = True

    sink._on_connect(client, None, None, 0)  # type: ignore[attr-defined]

    assert client.published == [("homeassistant/device/room/config", "{}", 0, True)]


def test_failed_connect_does_not_announce() -> None:
    sink, client = _sink(announcements=[("homeassistant/device/room/config", "{}")])

    sink._on_connect(client, None, None, 5)  # type: ignore[attr-defined]

    assert client.published == []


def test_logging_sink_logs_payload(caplog) -> None:
    sink = LoggingSink()

    with caplog.at_level("INFO"):
        sink.publish("ble_sensors/room", '{"T": 1.0}')

    records = [record for record in caplog.records if record.name == "transport.mqtt"]
    assert records[-1].getMessage() == '{"T": 1.0}'
    assert getattr(records[-1], "topic") == "ble_sensors/room"
