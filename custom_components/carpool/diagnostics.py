"""Diagnostics support for Carpool integration.

Returns the raw store data (both collections plus revisions) and the
projected week for troubleshooting.
"""

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant

from . import const
from .coordinator import CarpoolDataCoordinator


async def async_get_config_entry_diagnostics(
    hass: HomeAssistant, entry: ConfigEntry
) -> dict[str, Any]:
    """Return diagnostics for a config entry."""
    coordinator: CarpoolDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]
    return {
        const.CONF_PARTICIPANTS: coordinator.participants,
        "storage_path": coordinator.store.get_storage_path(),
        "storage": coordinator.store.data,
        "schedule": coordinator.schedule,
    }
