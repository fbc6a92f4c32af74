# SPDX-License-Identifier: Apache-2.0
"""Simulated edge node: builds, encodes and publishes one payload per tick."""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Callable, Optional, Protocol

import numpy as np
from asyncio_mqtt import MqttError

from .config import SimulatorConfig
from .encoding import EncodeError, encode_payload
from .metrics import NODES_RUNNING, PAYLOADS_DROPPED, PAYLOADS_PUBLISHED
from .payload import build_event_payload, build_metric_payload
from .proto import Payload

log = logging.getLogger(__name__)

TOPIC_PREFIX = "spBv1.0"
DEVICE_DATA = "DDATA"
SEQ_MODULUS = 256


def device_data_topic(namespace: str, edge_id: int, device: str) -> str:
    return f"{TOPIC_PREFIX}/{namespace}/{DEVICE_DATA}/{edge_id}/{device}"


def wall_clock_ms() -> int:
    return time.time_ns() // 1_000_000


class NodeState(str, Enum):
    IDLE = "idle"
    PUBLISHING = "publishing"
    STOPPED = "stopped"


class PayloadShape(str, Enum):
    METRIC = "metric"
    EVENT = "event"


class Publisher(Protocol):
    async def publish(self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False) -> None:
        ...


class Transport(Publisher, Protocol):
    """Publisher whose connection lifetime the orchestrator owns."""

    async def connect(self) -> None:
        ...

    async def close(self) -> None:
        ...


@dataclass(slots=True)
class TickResult:
    shape: PayloadShape
    timestamp: int
    seq: Optional[int]
    published: bool


class EdgeNodeSimulator:
    def __init__(
        self,
        edge_id: int,
        config: SimulatorConfig,
        publisher: Publisher,
        *,
        rng: Optional[np.random.Generator] = None,
        clock: Callable[[], int] = wall_clock_ms,
        encoder: Optional[Callable[[Payload], bytes]] = None,
    ):
        self.edge_id = edge_id
        self.device = config.device
        self.sequence = 0
        self.state = NodeState.IDLE
        self.topic = device_data_topic(config.namespace, edge_id, config.device)
        self.interval_s = config.interval_s
        self.metric_percent = config.metric_percent
        self._publisher = publisher
        self._rng = rng if rng is not None else np.random.default_rng()
        self._clock = clock
        self._encode = encoder or partial(encode_payload, mode=config.encoding)

    def choose_shape(self) -> PayloadShape:
        draw = int(self._rng.integers(0, 100))
        return PayloadShape.METRIC if draw < self.metric_percent else PayloadShape.EVENT

    async def tick(self) -> TickResult:
        """Run one publish cycle.

        The sequence number advances once the payload encodes, whether or not
        the broker accepts it. An encode failure drops the tick and leaves
        the sequence untouched.
        """
        timestamp = self._clock()
        shape = self.choose_shape()
        if shape is PayloadShape.METRIC:
            payload = build_metric_payload(timestamp, self.sequence)
        else:
            payload = build_event_payload(timestamp, self.sequence)
        try:
            data = self._encode(payload)
        except EncodeError as exc:
            PAYLOADS_DROPPED.labels("encode").inc()
            log.error("node %d: err while marshalling %s payload: %s", self.edge_id, shape.value, exc)
            return TickResult(shape=shape, timestamp=timestamp, seq=None, published=False)

        seq = self.sequence
        published = True
        try:
            await self._publisher.publish(self.topic, data, qos=0, retain=False)
            PAYLOADS_PUBLISHED.labels(shape.value).inc()
            log.debug("node %d: published %s seq=%d (%d bytes) to %s", self.edge_id, shape.value, seq, len(data), self.topic)
        except MqttError as exc:
            published = False
            PAYLOADS_DROPPED.labels("publish").inc()
            log.error("node %d: publish of seq %d to %s failed: %s", self.edge_id, seq, self.topic, exc)
        self.sequence = (seq + 1) % SEQ_MODULUS
        return TickResult(shape=shape, timestamp=timestamp, seq=seq, published=published)

    async def run(self, stop_event: asyncio.Event) -> None:
        """Tick every ``interval_s`` from this node's own start until ``stop_event`` is set."""
        loop = asyncio.get_running_loop()
        next_at = loop.time() + self.interval_s
        NODES_RUNNING.inc()
        log.info("node %d publishing to %s every %.1fs", self.edge_id, self.topic, self.interval_s)
        try:
            while not await _stopped_within(stop_event, next_at - loop.time()):
                self.state = NodeState.PUBLISHING
                await self.tick()
                next_at += self.interval_s
                now = loop.time()
                if next_at <= now:
                    # A slow publish overran one or more boundaries; those ticks are lost.
                    missed = int((now - next_at) // self.interval_s) + 1
                    next_at += missed * self.interval_s
                    log.warning("node %d skipped %d tick(s) behind a slow publish", self.edge_id, missed)
        finally:
            self.state = NodeState.STOPPED
            NODES_RUNNING.dec()


async def _stopped_within(stop_event: asyncio.Event, timeout: float) -> bool:
    if stop_event.is_set():
        return True
    if timeout <= 0:
        return False
    try:
        await asyncio.wait_for(stop_event.wait(), timeout)
    except asyncio.TimeoutError:
        return False
    return True
