# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

import asyncio
import dataclasses
import json

import numpy as np
import pytest

from sparkplug_mock.encoding import EncodeError, decode_payload, encode_payload
from sparkplug_mock.node import EdgeNodeSimulator, NodeState, PayloadShape, device_data_topic


def _node(config, transport, clock, **kwargs):
    kwargs.setdefault("rng", np.random.default_rng(1234))
    return EdgeNodeSimulator(3, config, transport, clock=clock, **kwargs)


def test_topic_shape():
    assert device_data_topic("MyGroupId", 4, "device") == "spBv1.0/MyGroupId/DDATA/4/device"


@pytest.mark.asyncio
async def test_two_metric_ticks(config, transport, clock):
    node = _node(config, transport, clock)
    assert node.state is NodeState.IDLE
    first = await node.tick()
    second = await node.tick()
    assert (first.seq, second.seq) == (0, 1)
    assert second.timestamp - first.timestamp == 10_000
    assert [p["topic"] for p in transport.published] == ["spBv1.0/Plant1/DDATA/3/press"] * 2
    assert all(p["qos"] == 0 and p["retain"] is False for p in transport.published)
    payloads = [decode_payload(p["payload"]) for p in transport.published]
    assert [p.seq for p in payloads] == [0, 1]
    assert [p.timestamp for p in payloads] == [first.timestamp, second.timestamp]
    for payload in payloads:
        assert len(payload.metrics) == 11
        assert payload.metrics[0].name == "Device Control/Scan Rate ms"
        assert payload.metrics[0].int_value == 6000
        assert [m.name for m in payload.metrics[1:]] == [f"metric{i}" for i in range(1, 11)]


@pytest.mark.asyncio
async def test_sequence_counts_up_and_wraps(config, transport, clock):
    node = _node(config, transport, clock)
    for _ in range(300):
        await node.tick()
    seqs = [decode_payload(p["payload"]).seq for p in transport.published]
    assert seqs == [i % 256 for i in range(300)]
    assert node.sequence == 300 % 256


@pytest.mark.asyncio
async def test_wraparound_from_255(config, transport, clock):
    node = _node(config, transport, clock)
    node.sequence = 255
    result = await node.tick()
    assert result.seq == 255
    assert node.sequence == 0


@pytest.mark.asyncio
async def test_encode_failure_skips_tick_without_consuming_sequence(config, transport, clock):
    calls = {"n": 0}

    def flaky_encoder(payload):
        calls["n"] += 1
        if calls["n"] == 3:
            raise EncodeError("injected")
        return encode_payload(payload)

    node = _node(config, transport, clock, encoder=flaky_encoder)
    results = [await node.tick() for _ in range(5)]
    assert [r.seq for r in results] == [0, 1, None, 2, 3]
    assert [r.published for r in results] == [True, True, False, True, True]
    assert [decode_payload(p["payload"]).seq for p in transport.published] == [0, 1, 2, 3]
    assert node.sequence == 4


@pytest.mark.asyncio
async def test_publish_failure_still_advances(config, make_transport, clock):
    transport = make_transport(fail_on=(2,))
    node = _node(config, transport, clock)
    results = [await node.tick() for _ in range(3)]
    assert [r.seq for r in results] == [0, 1, 2]
    assert [r.published for r in results] == [True, False, True]
    assert [decode_payload(p["payload"]).seq for p in transport.published] == [0, 2]
    assert node.sequence == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("percent,expected", [(0, {PayloadShape.EVENT}), (100, {PayloadShape.METRIC})])
async def test_threshold_extremes(config, transport, clock, percent, expected):
    node = _node(dataclasses.replace(config, metric_percent=percent), transport, clock)
    shapes = {(await node.tick()).shape for _ in range(500)}
    assert shapes == expected
    sizes = {len(decode_payload(p["payload"]).metrics) for p in transport.published}
    assert sizes == ({1} if percent == 0 else {11})


def test_threshold_half_converges(config, transport, clock):
    node = _node(dataclasses.replace(config, metric_percent=50), transport, clock)
    draws = [node.choose_shape() for _ in range(4000)]
    fraction = draws.count(PayloadShape.METRIC) / len(draws)
    assert 0.45 < fraction < 0.55


@pytest.mark.asyncio
async def test_event_payload_shape(config, transport, clock):
    node = _node(dataclasses.replace(config, metric_percent=0), transport, clock)
    await node.tick()
    payload = decode_payload(transport.published[0]["payload"])
    assert len(payload.metrics) == 1
    assert payload.metrics[0].name == "event"
    assert payload.metrics[0].datatype == 11


@pytest.mark.asyncio
async def test_readable_mode_publishes_json(config, transport, clock):
    node = _node(dataclasses.replace(config, readable=True), transport, clock)
    await node.tick()
    doc = json.loads(transport.published[0]["payload"])
    assert doc["seq"] == "0"
    assert doc["metrics"][0]["name"] == "Device Control/Scan Rate ms"


@pytest.mark.asyncio
async def test_run_ticks_until_stopped(config, transport):
    node = EdgeNodeSimulator(1, config, transport, rng=np.random.default_rng(0))
    stop = asyncio.Event()
    task = asyncio.create_task(node.run(stop))
    await asyncio.sleep(0.2)
    assert node.state is NodeState.PUBLISHING
    stop.set()
    await asyncio.wait_for(task, 1.0)
    assert node.state is NodeState.STOPPED
    seqs = [decode_payload(p["payload"]).seq for p in transport.published]
    assert len(seqs) >= 2
    assert seqs == list(range(len(seqs)))


@pytest.mark.asyncio
async def test_run_waits_a_full_interval_before_first_tick(config, transport):
    node = EdgeNodeSimulator(1, dataclasses.replace(config, interval_s=30.0), transport)
    stop = asyncio.Event()
    task = asyncio.create_task(node.run(stop))
    await asyncio.sleep(0.05)
    assert node.state is NodeState.IDLE
    stop.set()
    await asyncio.wait_for(task, 1.0)
    assert transport.published == []
