# SPDX-License-Identifier: Apache-2.0
"""Sparkplug B metric data types and their wire tags."""
from __future__ import annotations

from enum import IntEnum
from typing import Dict

from .errors import ConfigurationError


class DataType(IntEnum):
    Unknown = 0
    Int8 = 1
    Int16 = 2
    Int32 = 3
    Int64 = 4
    UInt8 = 5
    UInt16 = 6
    UInt32 = 7
    UInt64 = 8
    Float = 9
    Double = 10
    Boolean = 11
    String = 12
    DateTime = 13
    Text = 14
    UUID = 15
    DataSet = 16
    Bytes = 17
    File = 18
    Template = 19
    PropertySet = 20
    PropertySetList = 21
    Int8Array = 22
    Int16Array = 23
    Int32Array = 24
    Int64Array = 25
    UInt8Array = 26
    UInt16Array = 27
    UInt32Array = 28
    UInt64Array = 29
    FloatArray = 30
    DoubleArray = 31
    BooleanArray = 32
    StringArray = 33
    DateTimeArray = 34


INTEGER_TYPES = frozenset(
    {
        DataType.Int8,
        DataType.Int16,
        DataType.Int32,
        DataType.Int64,
        DataType.UInt8,
        DataType.UInt16,
        DataType.UInt32,
        DataType.UInt64,
    }
)

# Every integer category shares the uint32 slot, whatever its declared width.
_VALUE_FIELDS: Dict[DataType, str] = {
    DataType.Boolean: "boolean_value",
    DataType.String: "string_value",
    DataType.Text: "string_value",
    DataType.Float: "float_value",
    DataType.Double: "double_value",
    **{dtype: "int_value" for dtype in INTEGER_TYPES},
}


def tag_of(name: str) -> int:
    """Return the wire tag for a data type name such as ``"Int32"``."""
    try:
        return int(DataType[name])
    except KeyError as exc:
        raise ConfigurationError(f"unknown data type '{name}'") from exc


def name_of(tag: int) -> str:
    try:
        return DataType(tag).name
    except ValueError as exc:
        raise ConfigurationError(f"unknown data type tag {tag}") from exc


def value_field(datatype: DataType) -> str:
    """Name of the ``Payload.Metric`` oneof field carrying values of ``datatype``."""
    try:
        return _VALUE_FIELDS[datatype]
    except KeyError as exc:
        raise ConfigurationError(f"data type {DataType(datatype).name} is not supported by sample catalogs") from exc
