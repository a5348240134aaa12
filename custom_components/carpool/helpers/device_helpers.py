# File: helpers/device_helpers.py
"""Device registry helper functions for Carpool.

Functions that construct DeviceInfo objects for Home Assistant's device registry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.device_registry import DeviceEntryType, DeviceInfo

from .. import const

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry


def create_participant_device_info(
    participant: str, config_entry: ConfigEntry
) -> DeviceInfo:
    """Create device info for a participant.

    Args:
        participant: Configured participant name
        config_entry: Config entry for this integration instance

    Returns:
        DeviceInfo dict for the participant device
    """
    return DeviceInfo(
        identifiers={(const.DOMAIN, f"{config_entry.entry_id}_{participant}")},
        name=f"{participant} ({config_entry.title})",
        manufacturer=const.CARPOOL_TITLE,
        model="Participant",
        entry_type=DeviceEntryType.SERVICE,
    )


def create_schedule_device_info(config_entry: ConfigEntry) -> DeviceInfo:
    """Create device info for the shared weekly schedule."""
    return DeviceInfo(
        identifiers={(const.DOMAIN, f"{config_entry.entry_id}_schedule")},
        name=f"Weekly Schedule ({config_entry.title})",
        manufacturer=const.CARPOOL_TITLE,
        model="Weekly Schedule",
        entry_type=DeviceEntryType.SERVICE,
    )
