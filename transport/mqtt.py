"""Publish sinks: the MQTT broker connection and a console fallback."""

from __future__ import annotations

import logging
import secrets
import string
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Optional, Sequence
from urllib.parse import urlparse

import paho.mqtt.client as mqtt

logger = logging.getLogger(__name__)

CLIENT_ID_PREFIX = "ble-sensor-mqtt-"
_CLIENT_ID_CHARSET = string.ascii_letters + string.digits

_TLS_SCHEMES = {"ssl", "mqtts", "tls"}
_PLAIN_SCHEMES = {"tcp", "mqtt"}
DEFAULT_PORT = 1883
DEFAULT_TLS_PORT = 8883


def _is_success(reason_code: object) -> bool:
    if hasattr(reason_code, "is_failure"):
        return not reason_code.is_failure  # type: ignore[union-attr]
    return getattr(reason_code, "value", reason_code) == 0


def random_client_id(length: int = 5) -> str:
    return CLIENT_ID_PREFIX + "".join(
        secrets.choice(_CLIENT_ID_CHARSET) for _ in range(length)
    )


@dataclass(frozen=True)
class BrokerAddress:
    host: str
    port: int
    tls: bool

    @classmethod
    def from_url(cls, url: str) -> "BrokerAddress":
        parsed = urlparse(url if "://" in url else f"tcp://{url}")
        scheme = parsed.scheme.lower()
        if scheme not in _TLS_SCHEMES | _PLAIN_SCHEMES:
            raise ValueError(f"Unsupported MQTT URL scheme {scheme!r}")
        if not parsed.hostname:
            raise ValueError(f"MQTT URL {url!r} is missing a host")
        tls = scheme in _TLS_SCHEMES
        port = parsed.port or (DEFAULT_TLS_PORT if tls else DEFAULT_PORT)
        return cls(host=parsed.hostname, port=port, tls=tls)


def _default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(
        callback_api_version=mqtt.CallbackAPIVersion.VERSION2,
        client_id=client_id,
        protocol=mqtt.MQTTv311,
    )


class MqttSink:
    """Fire-and-forget, retained QoS 0 publisher.

    The paho network loop runs in its own thread and keeps reconnecting in
    the background. Publishing while disconnected is a silent no-op.
    """

    def __init__(
        self,
        url: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        announcements: Sequence[tuple[str, str]] = (),
        keepalive: int = 60,
        client_factory: Callable[[str], mqtt.Client] = _default_client_factory,
    ) -> None:
        self.broker = BrokerAddress.from_url(url)
        self.client_id = random_client_id()
        self._announcements = list(announcements)
        self._keepalive = keepalive
        self._lock = Lock()
        self._started = False

        self._client = client_factory(self.client_id)
        if username:
            self._client.username_pw_set(username, password)
        if self.broker.tls:
            self._client.tls_set()
        self._client.reconnect_delay_set(min_delay=1, max_delay=120)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect

    def start(self) -> None:
        with self._lock:
            if self._started:
                return
            self._client.connect_async(self.broker.host, self.broker.port, self._keepalive)
            self._client.loop_start()
            self._started = True
        logger.info("Connecting to MQTT broker", extra={"broker": self.broker.host})

    def close(self) -> None:
        with self._lock:
            if not self._started:
                return
            self._started = False
        self._client.disconnect()
        self._client.loop_stop()

    @property
    def connected(self) -> bool:
        return self._client.is_connected()

    def publish(self, topic: str, payload: str) -> None:
        if not topic:
            return
        if not self._client.is_connected():
            logger.debug("MQTT not connected; dropping publish", extra={"topic": topic})
            return
        info = self._client.publish(topic, payload, qos=0, retain=True)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(
                "MQTT publish failed; rc=%s", info.rc, extra={"topic": topic}
            )

    def _on_connect(self, client, userdata, flags, reason_code, properties=None) -> None:
        if not _is_success(reason_code):
            code = getattr(reason_code, "value", reason_code)
            logger.warning("MQTT connect failed; code=%s", code, extra={"broker": self.broker.host})
            return
        logger.info("MQTT connected to broker", extra={"broker": self.broker.host})
        for topic, payload in self._announcements:
            client.publish(topic, payload, qos=0, retain=True)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None) -> None:
        code = getattr(reason_code, "value", reason_code)
        logger.info("MQTT connection lost; code=%s", code, extra={"broker": self.broker.host})


class LoggingSink:
    """Used without a broker: every publish is written to the log."""

    def start(self) -> None:
        logger.info("No MQTT broker configured; publishing to the log only")

    def close(self) -> None:
        return None

    def publish(self, topic: str, payload: str) -> None:
        if not topic:
            return
        logger.info("%s", payload, extra={"topic": topic})
