# File: helpers/entity_helpers.py
"""Entity and instance lookup helpers for Carpool.

All functions here require a `hass` object or build names scoped to a
config entry.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import CarpoolDataCoordinator


# ==============================================================================
# Event Signal Helpers (Manager Communication)
# ==============================================================================


def get_event_signal(entry_id: str, suffix: str) -> str:
    """Build instance-scoped event signal name for dispatcher.

    Format: 'carpool_{entry_id}_{suffix}'

    Args:
        entry_id: ConfigEntry.entry_id of the integration instance
        suffix: Signal suffix constant from const.py

    Returns:
        Fully qualified signal name scoped to this integration instance

    Example:
        >>> get_event_signal("abc123", const.SIGNAL_SUFFIX_CLAIMS_COMMITTED)
        'carpool_abc123_claims_committed'
    """
    return f"{const.DOMAIN}_{entry_id}_{suffix}"


def get_collection_signal(entry_id: str, collection: str) -> str:
    """Build the dispatcher signal carrying snapshots of one store collection."""
    return get_event_signal(
        entry_id, f"{const.SIGNAL_SUFFIX_COLLECTION_CHANGED}_{collection}"
    )


# ==============================================================================
# Instance Lookups
# ==============================================================================


def get_first_carpool_entry(hass: HomeAssistant) -> str | None:
    """Retrieve the first Carpool config entry ID."""
    domain_entries = hass.data.get(const.DOMAIN)
    if not domain_entries:
        return None
    return next(iter(domain_entries.keys()), None)


def get_coordinator(hass: HomeAssistant, entry_id: str) -> CarpoolDataCoordinator:
    """Return the coordinator stored for a config entry."""
    return hass.data[const.DOMAIN][entry_id][const.COORDINATOR]
