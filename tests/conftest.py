# SPDX-License-Identifier: Apache-2.0
"""Shared fixtures for simulator tests."""
from __future__ import annotations

from typing import List, Tuple

import pytest
from asyncio_mqtt import MqttError

from sparkplug_mock.config import SimulatorConfig


class RecordingTransport:
    """Stands in for the MQTT client and records every publish."""

    def __init__(self, fail_on: Tuple[int, ...] = ()):
        self.published: List[dict] = []
        self.attempts = 0
        self.fail_on = set(fail_on)
        self.connected = False
        self.closed = False

    async def connect(self) -> None:
        self.connected = True

    async def publish(self, topic: str, payload: bytes, *, qos: int = 0, retain: bool = False) -> None:
        self.attempts += 1
        if self.attempts in self.fail_on:
            raise MqttError("broker unreachable")
        self.published.append({"topic": topic, "payload": payload, "qos": qos, "retain": retain})

    async def close(self) -> None:
        self.closed = True


class StepClock:
    """Millisecond clock advancing by a fixed step on every read."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 10_000):
        self.now = start - step
        self.step = step

    def __call__(self) -> int:
        self.now += self.step
        return self.now


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def clock() -> StepClock:
    return StepClock()


@pytest.fixture
def config() -> SimulatorConfig:
    return SimulatorConfig(nodes=2, device="press", namespace="Plant1", metric_percent=100, interval_s=0.01)


@pytest.fixture
def make_transport():
    return RecordingTransport
