# SPDX-License-Identifier: Apache-2.0
"""Configuration for a simulator run."""
from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple
from urllib.parse import urlsplit

import yaml

from .encoding import EncodingMode
from .errors import ConfigurationError

_SCHEMES = {"tcp": 1883, "mqtt": 1883}


@dataclass(frozen=True, slots=True)
class SimulatorConfig:
    readable: bool = False
    nodes: int = 4
    device: str = "device"
    namespace: str = "MyGroupId"
    metric_percent: int = 80
    server: str = "tcp://localhost:1883"
    client_id: str = "sparkplugbmock"
    keepalive_s: int = 60
    username: Optional[str] = None
    password: Optional[str] = None
    interval_s: float = 10.0
    log_incoming: bool = False
    metrics_port: Optional[int] = None
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.nodes < 1:
            raise ConfigurationError(f"nodes must be at least 1, got {self.nodes}")
        if not 0 <= self.metric_percent <= 100:
            raise ConfigurationError(f"metric_percent must be within 0..100, got {self.metric_percent}")
        if self.interval_s <= 0:
            raise ConfigurationError(f"interval_s must be positive, got {self.interval_s}")
        for name in ("device", "namespace"):
            value = getattr(self, name)
            if not value or "/" in value or "+" in value or "#" in value:
                raise ConfigurationError(f"{name} must be a single non-empty topic level, got {value!r}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigurationError(f"unknown log level {self.log_level!r}")
        self.broker_address()

    @property
    def encoding(self) -> EncodingMode:
        return EncodingMode.READABLE if self.readable else EncodingMode.COMPACT

    def broker_address(self) -> Tuple[str, int]:
        """Split ``server`` (``tcp://host:port``) into host and port."""
        parts = urlsplit(self.server if "://" in self.server else f"tcp://{self.server}")
        if parts.scheme not in _SCHEMES or not parts.hostname:
            raise ConfigurationError(f"unsupported server address '{self.server}'")
        try:
            port = parts.port or _SCHEMES[parts.scheme]
        except ValueError as exc:
            raise ConfigurationError(f"invalid port in server address '{self.server}'") from exc
        return parts.hostname, port

    def with_overrides(self, overrides: Mapping[str, Any]) -> "SimulatorConfig":
        changes = {k: v for k, v in overrides.items() if v is not None}
        return _build(replace, self, data=changes)


_INT_KEYS = {"nodes", "metric_percent", "keepalive_s", "metrics_port"}
_BOOL_KEYS = {"readable", "log_incoming"}
_BOOL_WORDS = {"true": True, "false": False}


def _as_int(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be an integer, got {value!r}")
    if isinstance(value, float):
        if not value.is_integer():
            raise ConfigurationError(f"{key} must be a whole number, got {value!r}")
        return int(value)
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be an integer, got {value!r}") from exc


def _as_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _BOOL_WORDS:
        return _BOOL_WORDS[value.strip().lower()]
    raise ConfigurationError(f"{key} must be true or false, got {value!r}")


def _coerce(data: Mapping[str, Any]) -> Dict[str, Any]:
    known = {f.name: f for f in fields(SimulatorConfig)}
    unknown = sorted(set(data) - set(known))
    if unknown:
        raise ConfigurationError(f"unknown configuration keys: {', '.join(unknown)}")
    out: Dict[str, Any] = {}
    for key, value in data.items():
        if value is None:
            out[key] = None
        elif key in _INT_KEYS:
            out[key] = _as_int(key, value)
        elif key == "interval_s":
            if isinstance(value, bool):
                raise ConfigurationError(f"interval_s must be a number, got {value!r}")
            out[key] = float(value)
        elif key in _BOOL_KEYS:
            out[key] = _as_bool(key, value)
        else:
            out[key] = str(value)
    return out


def _build(factory, *args, data: Optional[Mapping[str, Any]] = None) -> SimulatorConfig:
    try:
        return factory(*args, **_coerce(data or {}))
    except ConfigurationError:
        raise
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(str(exc)) from exc


def config_from_mapping(data: Mapping[str, Any]) -> SimulatorConfig:
    return _build(SimulatorConfig, data=data)


def load_config(path: str | Path) -> SimulatorConfig:
    raw = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path}: top level must be a mapping")
    return config_from_mapping(raw)
