# SPDX-License-Identifier: Apache-2.0
"""Sparkplug B protobuf schema.

The schema lives in the bundled ``sparkplug_b.proto`` (a subset of the Eclipse
Tahu definition: no DataSet, Template, PropertySet or MetaData submessages).
The message classes are built at import time from the equivalent
``FileDescriptorProto`` so installing the package needs no ``protoc`` step.
"""
from __future__ import annotations

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "org.eclipse.tahu.protobuf"

_FD = descriptor_pb2.FieldDescriptorProto


def _field(message, name: str, number: int, ftype: int, *, label: int = _FD.LABEL_OPTIONAL,
           type_name: str | None = None, oneof_index: int | None = None) -> None:
    field = message.field.add(name=name, number=number, type=ftype, label=label)
    if type_name is not None:
        field.type_name = type_name
    if oneof_index is not None:
        field.oneof_index = oneof_index


def _file_descriptor() -> descriptor_pb2.FileDescriptorProto:
    fdp = descriptor_pb2.FileDescriptorProto(name="sparkplug_b.proto", package=PACKAGE, syntax="proto2")

    payload = fdp.message_type.add(name="Payload")
    metric = payload.nested_type.add(name="Metric")
    metric.oneof_decl.add(name="value")
    _field(metric, "name", 1, _FD.TYPE_STRING)
    _field(metric, "alias", 2, _FD.TYPE_UINT64)
    _field(metric, "timestamp", 3, _FD.TYPE_UINT64)
    _field(metric, "datatype", 4, _FD.TYPE_UINT32)
    _field(metric, "is_historical", 5, _FD.TYPE_BOOL)
    _field(metric, "is_transient", 6, _FD.TYPE_BOOL)
    _field(metric, "is_null", 7, _FD.TYPE_BOOL)
    _field(metric, "int_value", 10, _FD.TYPE_UINT32, oneof_index=0)
    _field(metric, "long_value", 11, _FD.TYPE_UINT64, oneof_index=0)
    _field(metric, "float_value", 12, _FD.TYPE_FLOAT, oneof_index=0)
    _field(metric, "double_value", 13, _FD.TYPE_DOUBLE, oneof_index=0)
    _field(metric, "boolean_value", 14, _FD.TYPE_BOOL, oneof_index=0)
    _field(metric, "string_value", 15, _FD.TYPE_STRING, oneof_index=0)
    _field(metric, "bytes_value", 16, _FD.TYPE_BYTES, oneof_index=0)

    _field(payload, "timestamp", 1, _FD.TYPE_UINT64)
    _field(payload, "metrics", 2, _FD.TYPE_MESSAGE, label=_FD.LABEL_REPEATED, type_name=f".{PACKAGE}.Payload.Metric")
    _field(payload, "seq", 3, _FD.TYPE_UINT64)
    _field(payload, "uuid", 4, _FD.TYPE_STRING)
    _field(payload, "body", 5, _FD.TYPE_BYTES)
    return fdp


_POOL = descriptor_pool.DescriptorPool()
_POOL.AddSerializedFile(_file_descriptor().SerializeToString())

Payload = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.Payload"))
Metric = message_factory.GetMessageClass(_POOL.FindMessageTypeByName(f"{PACKAGE}.Payload.Metric"))
