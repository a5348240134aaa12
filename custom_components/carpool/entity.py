"""Base entity for Carpool sensors."""

from __future__ import annotations

from typing import TYPE_CHECKING

from homeassistant.helpers.update_coordinator import CoordinatorEntity

from .coordinator import CarpoolDataCoordinator

if TYPE_CHECKING:
    from homeassistant.config_entries import ConfigEntry

    from .type_defs import DaySchedule


class CarpoolCoordinatorEntity(CoordinatorEntity[CarpoolDataCoordinator]):
    """Entity about one subject of the week: a weekday or a participant.

    Unique ids are "<entry_id>_<subject><suffix>". They do not depend on the
    entry title, and removing a participant orphans only that participant's
    entities.
    """

    _attr_has_entity_name = True

    def __init__(
        self,
        coordinator: CarpoolDataCoordinator,
        entry: ConfigEntry,
        subject: str,
        suffix: str,
    ) -> None:
        """Initialize the entity."""
        super().__init__(coordinator)
        self._attr_unique_id = f"{entry.entry_id}_{subject}{suffix}"

    @property
    def coordinator(self) -> CarpoolDataCoordinator:
        """Return typed coordinator."""
        return object.__getattribute__(self, "_coordinator")

    @coordinator.setter
    def coordinator(self, value: CarpoolDataCoordinator) -> None:
        object.__setattr__(self, "_coordinator", value)

    def schedule_row(self, day: str) -> DaySchedule:
        """Return the projected row for a weekday."""
        return self.coordinator.schedule[day]
