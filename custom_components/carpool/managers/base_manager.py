"""Shared plumbing for Carpool managers.

Managers talk to each other only through dispatcher signals scoped to the
config entry, so two carpool entries never see each other's events. Signal
names come from get_event_signal(entry_id, suffix).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)

from .. import const
from ..helpers.entity_helpers import get_event_signal

if TYPE_CHECKING:
    from collections.abc import Callable

    from homeassistant.core import HomeAssistant

    from ..coordinator import CarpoolDataCoordinator


class BaseManager(ABC):
    """Base for the reconciliation and notification managers.

    Subclasses implement async_setup(), which the coordinator awaits once
    before it subscribes to the store.
    """

    def __init__(self, hass: HomeAssistant, coordinator: CarpoolDataCoordinator) -> None:
        """Initialize manager."""
        self.hass = hass
        self.coordinator = coordinator
        self.entry_id = coordinator.config_entry.entry_id

    def option(self, key: str, default: Any) -> Any:
        """Read an entry option, falling back to entry data, then default."""
        entry = self.coordinator.config_entry
        return entry.options.get(key, entry.data.get(key, default))

    def emit(self, suffix: str, **payload: Any) -> None:
        """Send a carpool event to this entry's listeners.

        The keyword arguments arrive at listeners as one dict, e.g.
        emit(SIGNAL_SUFFIX_HOLIDAY_TOGGLED, day="monday", is_holiday=True).
        """
        const.LOGGER.debug(
            "DEBUG: %s emitting '%s' (%s) for entry %s",
            self.__class__.__name__,
            suffix,
            ", ".join(payload),
            self.entry_id,
        )
        async_dispatcher_send(self.hass, get_event_signal(self.entry_id, suffix), payload)

    def listen(self, suffix: str, handler: Callable[[dict[str, Any]], Any]) -> None:
        """Receive this entry's events until the entry unloads."""
        self.coordinator.config_entry.async_on_unload(
            async_dispatcher_connect(
                self.hass, get_event_signal(self.entry_id, suffix), handler
            )
        )

    @abstractmethod
    async def async_setup(self) -> None:
        """Subscribe to events; called once by the coordinator."""
