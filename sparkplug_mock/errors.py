# SPDX-License-Identifier: Apache-2.0
"""Exceptions shared across the simulator."""
from __future__ import annotations


class ConfigurationError(ValueError):
    """Static configuration (catalogs, type table, CLI/YAML settings) is invalid."""
