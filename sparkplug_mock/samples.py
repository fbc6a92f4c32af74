# SPDX-License-Identifier: Apache-2.0
"""Static sample catalogs used to fill metric and event payloads."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence, Tuple, Union

from .datatypes import INTEGER_TYPES, DataType, tag_of, value_field
from .errors import ConfigurationError

SampleValue = Union[bool, int, float, str]


@dataclass(frozen=True, slots=True)
class SampleDefinition:
    """A named, typed sample value.

    The value is checked against the data type on construction so a catalog
    that loads at all can always be turned into payloads.
    """

    name: str
    datatype: DataType
    value: SampleValue

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigurationError("sample name must not be empty")
        datatype = self.datatype
        if isinstance(datatype, str):
            datatype = DataType(tag_of(datatype))
        elif not isinstance(datatype, DataType):
            raise ConfigurationError(f"sample '{self.name}' has invalid data type {datatype!r}")
        if datatype == DataType.Unknown:
            raise ConfigurationError(f"sample '{self.name}' uses the reserved Unknown data type")
        value_field(datatype)
        object.__setattr__(self, "datatype", datatype)
        object.__setattr__(self, "value", _checked_value(self.name, datatype, self.value))


def _checked_value(name: str, datatype: DataType, value) -> SampleValue:
    if datatype == DataType.Boolean:
        if isinstance(value, bool):
            return value
    elif datatype in (DataType.String, DataType.Text):
        if isinstance(value, str):
            return value
    elif datatype in (DataType.Float, DataType.Double):
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif datatype in INTEGER_TYPES:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    raise ConfigurationError(
        f"sample '{name}' declares {datatype.name} but holds {type(value).__name__} value {value!r}"
    )


def validate_catalog(samples: Iterable[SampleDefinition]) -> Tuple[SampleDefinition, ...]:
    catalog = tuple(samples)
    if not catalog:
        raise ConfigurationError("sample catalog must not be empty")
    seen = set()
    for sample in catalog:
        if not isinstance(sample, SampleDefinition):
            raise ConfigurationError(f"catalog entry {sample!r} is not a SampleDefinition")
        if sample.name in seen:
            raise ConfigurationError(f"duplicate sample name '{sample.name}'")
        seen.add(sample.name)
    return catalog


SCAN_RATE = SampleDefinition("Device Control/Scan Rate ms", DataType.Int32, 6000)

METRIC_SAMPLES: Sequence[SampleDefinition] = validate_catalog(
    [
        SampleDefinition("metric1", DataType.Boolean, False),
        SampleDefinition("metric2", DataType.Int8, 34),
        SampleDefinition("metric3", DataType.Int8, 100),
        SampleDefinition("metric4", DataType.Float, 24.0),
        SampleDefinition("metric5", DataType.Int32, 84692),
        SampleDefinition("metric6", DataType.UInt8, 99),
        SampleDefinition("metric7", DataType.UInt16, 118),
        SampleDefinition("metric8", DataType.UInt8, 0),
        SampleDefinition("metric9", DataType.UInt32, 5),
        SampleDefinition("metric10", DataType.Int16, 36),
    ]
)

# Boolean samples stand in for discrete events; only the first one is sent.
EVENT_SAMPLES: Sequence[SampleDefinition] = validate_catalog(
    [
        SampleDefinition("event", DataType.Boolean, False),
    ]
)
