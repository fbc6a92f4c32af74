# SPDX-License-Identifier: Apache-2.0
"""Wire encodings for simulator payloads."""
from __future__ import annotations

from enum import Enum

from google.protobuf import json_format
from google.protobuf.message import DecodeError, EncodeError as ProtoEncodeError

from .datatypes import DataType, value_field
from .errors import ConfigurationError
from .proto import Payload

READABLE_INDENT = 2


class EncodingMode(str, Enum):
    COMPACT = "compact"
    READABLE = "readable"


class EncodeError(RuntimeError):
    """A payload could not be serialized; the caller drops it."""


def check_payload(payload: Payload) -> None:
    if not payload.metrics:
        raise EncodeError("payload has no metrics")
    for idx, metric in enumerate(payload.metrics):
        try:
            expected = value_field(DataType(metric.datatype))
        except (ValueError, ConfigurationError) as exc:
            raise EncodeError(f"metric {idx} ({metric.name!r}) has unusable datatype {metric.datatype}") from exc
        actual = metric.WhichOneof("value")
        if actual != expected:
            raise EncodeError(
                f"metric {idx} ({metric.name!r}) declares {DataType(metric.datatype).name} but carries {actual}"
            )


def encode_payload(payload: Payload, mode: EncodingMode = EncodingMode.COMPACT) -> bytes:
    check_payload(payload)
    try:
        if mode == EncodingMode.READABLE:
            return json_format.MessageToJson(payload, indent=READABLE_INDENT).encode("utf-8")
        return payload.SerializeToString()
    except (ProtoEncodeError, json_format.Error, TypeError, ValueError) as exc:
        raise EncodeError(str(exc)) from exc


def decode_payload(data: bytes, mode: EncodingMode = EncodingMode.COMPACT) -> Payload:
    """Parse bytes produced by :func:`encode_payload`. Raises ``ValueError`` on garbage."""
    try:
        if mode == EncodingMode.READABLE:
            return json_format.Parse(data.decode("utf-8"), Payload())
        return Payload.FromString(data)
    except (DecodeError, json_format.ParseError, UnicodeDecodeError) as exc:
        raise ValueError(f"cannot decode {mode.value} payload: {exc}") from exc
