# SPDX-License-Identifier: Apache-2.0
"""Builders for metric and event payloads."""
from __future__ import annotations

from typing import Sequence

import numpy as np

from .datatypes import DataType, value_field
from .proto import Metric, Payload
from .samples import EVENT_SAMPLES, METRIC_SAMPLES, SCAN_RATE, SampleDefinition

_UINT32_MASK = 0xFFFFFFFF


def wire_value(sample: SampleDefinition):
    """Convert a sample value to what its oneof field carries on the wire.

    Integer categories of any width or signedness are truncated to 32 bits;
    Int64/UInt64 values above 2**32 and negative values do not survive.
    """
    if sample.datatype == DataType.Float:
        return np.float32(sample.value).item()
    if value_field(sample.datatype) == "int_value":
        return int(sample.value) & _UINT32_MASK
    return sample.value


def payload_metric(timestamp: int, sample: SampleDefinition) -> Metric:
    metric = Metric(name=sample.name, timestamp=timestamp, datatype=int(sample.datatype))
    setattr(metric, value_field(sample.datatype), wire_value(sample))
    return metric


def scan_rate_metric(timestamp: int) -> Metric:
    return payload_metric(timestamp, SCAN_RATE)


def build_metric_payload(timestamp: int, seq: int, samples: Sequence[SampleDefinition] = METRIC_SAMPLES) -> Payload:
    """Scan rate first, then one metric per catalog sample in catalog order."""
    payload = Payload(timestamp=timestamp, seq=seq)
    payload.metrics.append(scan_rate_metric(timestamp))
    payload.metrics.extend(payload_metric(timestamp, sample) for sample in samples)
    return payload


def build_event_payload(timestamp: int, seq: int, samples: Sequence[SampleDefinition] = EVENT_SAMPLES) -> Payload:
    payload = Payload(timestamp=timestamp, seq=seq)
    payload.metrics.append(payload_metric(timestamp, samples[0]))
    return payload
