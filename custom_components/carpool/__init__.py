# File: __init__.py
"""Initialization file for the Carpool integration.

Handles setting up the integration: loading the record store, creating the
coordinator that keeps the weekly schedule live, registering services, and
forwarding to the sensor platform.
"""

from __future__ import annotations

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from . import const
from .coordinator import CarpoolDataCoordinator
from .services import async_setup_services, async_unload_services
from .store import CarpoolStore, StoreUnavailableError


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up the integration from a config entry."""
    const.LOGGER.info("INFO: Starting setup for Carpool entry: %s", entry.entry_id)

    store = CarpoolStore(hass, entry.entry_id, const.STORAGE_KEY)
    try:
        await store.async_initialize()
    except StoreUnavailableError as err:
        raise ConfigEntryNotReady(f"Carpool storage unavailable: {err}") from err

    coordinator = CarpoolDataCoordinator(hass, entry, store)
    await coordinator.async_initialize()
    await coordinator.async_config_entry_first_refresh()

    hass.data.setdefault(const.DOMAIN, {})[entry.entry_id] = {
        const.COORDINATOR: coordinator,
        const.STORE: store,
    }

    async_setup_services(hass)

    await hass.config_entries.async_forward_entry_setups(entry, const.PLATFORMS)

    # Participant or notification option changes rebuild entities
    entry.async_on_unload(entry.add_update_listener(async_reload_entry))

    const.LOGGER.info("INFO: Carpool setup complete for entry: %s", entry.entry_id)
    return True


async def async_reload_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Reload the entry after its options change."""
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    const.LOGGER.info("INFO: Unloading Carpool entry: %s", entry.entry_id)

    unload_ok = await hass.config_entries.async_unload_platforms(entry, const.PLATFORMS)

    if unload_ok:
        hass.data[const.DOMAIN].pop(entry.entry_id)
        if not hass.data[const.DOMAIN]:
            await async_unload_services(hass)

    return unload_ok


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Handle removal of a config entry by deleting its storage file."""
    const.LOGGER.info("INFO: Removing Carpool entry: %s", entry.entry_id)
    store = CarpoolStore(hass, entry.entry_id, const.STORAGE_KEY)
    await store.async_delete_storage()
    const.LOGGER.info("INFO: Carpool entry data cleared: %s", entry.entry_id)
