# SPDX-License-Identifier: Apache-2.0
"""Sparkplug B edge-node traffic simulator."""

__version__ = "0.1.0"
