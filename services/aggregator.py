"""Aggregation pipeline between the dispatcher and the publish sink."""

from __future__ import annotations

import logging
import queue
import threading
import time
from enum import Enum
from typing import Callable, Dict, Optional, Protocol

from app.schemas import MessagePayload
from models.records import Message

logger = logging.getLogger(__name__)


class PublishSink(Protocol):
    def publish(self, topic: str, payload: str) -> None:
        ...


class PipelineMode(str, Enum):
    immediate = "immediate"
    batched = "batched"


_STOP = object()


def state_topic(prefix: str, name: str) -> str:
    return f"{prefix}/{name}"


class AggregationPipeline:
    """Single consumer that forwards messages to the sink.

    With a zero ``flush_interval`` every message is published on arrival.
    Otherwise the latest message per address is kept and the whole buffer is
    published on every tick. Entries are never evicted, so a silent sensor is
    republished with its last message until a newer one replaces it.
    """

    def __init__(
        self,
        sink: PublishSink,
        topic_prefix: str,
        flush_interval: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if flush_interval < 0:
            raise ValueError("Flush interval must not be negative.")
        self.sink = sink
        self.topic_prefix = topic_prefix.rstrip("/")
        self.flush_interval = flush_interval
        self._clock = clock
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._buffer: Dict[str, Message] = {}
        self._thread: Optional[threading.Thread] = None
        self._closed = threading.Event()
        self._state_lock = threading.Lock()

    @property
    def mode(self) -> PipelineMode:
        return PipelineMode.batched if self.flush_interval > 0 else PipelineMode.immediate

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("Pipeline already started.")
        self._thread = threading.Thread(
            target=self._run, name="aggregation-pipeline", daemon=True
        )
        self._thread.start()
        logger.info(
            "Aggregation pipeline started",
            extra={"mode": self.mode.value, "interval": self.flush_interval},
        )

    def submit(self, message: Message) -> None:
        """Hand a message to the consumer without blocking the caller."""
        # Atomic with stop(): nothing may be queued behind the stop marker.
        with self._state_lock:
            if not self._closed.is_set():
                self._queue.put_nowait(message)
                return
        logger.debug(
            "Dropping message submitted after shutdown",
            extra={"address": message.address},
        )

    def stop(self, timeout: Optional[float] = None) -> None:
        """Close the queue, let the consumer drain it and wait for it to exit."""
        with self._state_lock:
            if self._closed.is_set():
                return
            self._closed.set()
            self._queue.put_nowait(_STOP)
        if self._thread is not None:
            self._thread.join(timeout)
        logger.info("Aggregation pipeline stopped")

    def _run(self) -> None:
        if self.mode is PipelineMode.immediate:
            self._run_immediate()
        else:
            self._run_batched()

    def _run_immediate(self) -> None:
        while True:
            item = self._queue.get()
            if item is _STOP:
                return
            self._handle_message(item)  # type: ignore[arg-type]

    def _run_batched(self) -> None:
        next_tick = self._clock() + self.flush_interval
        while True:
            remaining = next_tick - self._clock()
            if remaining <= 0:
                self._flush()
                next_tick += self.flush_interval
                if next_tick <= self._clock():
                    # Publishing overran one or more ticks; do not burst to catch up.
                    next_tick = self._clock() + self.flush_interval
                continue
            try:
                item = self._queue.get(timeout=remaining)
            except queue.Empty:
                continue
            if item is _STOP:
                return
            self._handle_message(item)  # type: ignore[arg-type]

    def _handle_message(self, message: Message) -> None:
        if self.mode is PipelineMode.immediate:
            self._publish(message)
            return
        self._buffer[message.address] = message

    def _flush(self) -> None:
        for message in list(self._buffer.values()):
            self._publish(message)

    def _publish(self, message: Message) -> None:
        topic = state_topic(self.topic_prefix, message.name)
        payload = MessagePayload.from_message(message).to_json()
        try:
            self.sink.publish(topic, payload)
        except Exception:  # noqa: BLE001 - a failing sink must not stop the consumer
            logger.exception(
                "Publish sink raised", extra={"topic": topic, "address": message.address}
            )
