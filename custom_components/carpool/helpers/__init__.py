# File: helpers/__init__.py
"""Home Assistant-bound helper functions for Carpool.

This module contains functions that REQUIRE Home Assistant dependencies.

Submodules:
    - entity_helpers: Event signal names and config entry lookups
    - device_helpers: DeviceInfo construction
    - flow_helpers: Config/options flow schemas and validators

Usage:
    from .helpers import entity_helpers
    from .helpers import flow_helpers as fh
"""

from . import device_helpers, entity_helpers, flow_helpers

__all__ = [
    "device_helpers",
    "entity_helpers",
    "flow_helpers",
]
