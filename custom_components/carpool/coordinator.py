# File: coordinator.py
"""Coordinator for the Carpool integration.

Keeps the live weekly schedule in sync with the store. The coordinator does
not poll: it subscribes to both store collections and re-projects the week on
every snapshot, pushing the result to all entities.
"""

from __future__ import annotations

from typing import Any

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.update_coordinator import DataUpdateCoordinator

from . import const
from .engines.schedule_engine import ScheduleProjector
from .managers.notification_manager import NotificationManager
from .managers.reconciliation_manager import ReconciliationManager
from .store import CarpoolStore
from .type_defs import HolidayMarkData, SlotClaimData, WeekSchedule


class CarpoolDataCoordinator(DataUpdateCoordinator[WeekSchedule]):
    """Coordinator holding the projected week for one Carpool instance."""

    def __init__(
        self,
        hass: HomeAssistant,
        config_entry: ConfigEntry,
        store: CarpoolStore,
    ) -> None:
        """Initialize the CarpoolDataCoordinator."""
        super().__init__(
            hass,
            const.LOGGER,
            config_entry=config_entry,
            name=f"{const.DOMAIN}{const.COORDINATOR_SUFFIX}",
            update_interval=None,
        )
        self.config_entry = config_entry
        self.store = store
        self._claims: list[SlotClaimData] = []
        self._holidays: list[HolidayMarkData] = []

        self.reconciliation_manager = ReconciliationManager(hass, self, store)
        self.notification_manager = NotificationManager(hass, self)

    # -------------------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------------------

    async def async_initialize(self) -> None:
        """Set up managers and subscribe to the store's change streams."""
        await self.reconciliation_manager.async_setup()
        await self.notification_manager.async_setup()

        self.config_entry.async_on_unload(
            self.store.subscribe(
                const.COLLECTION_SELECTIONS,
                self._handle_claims_snapshot,
                order_by=const.DATA_RECORD_CREATED_AT,
            )
        )
        self.config_entry.async_on_unload(
            self.store.subscribe(
                const.COLLECTION_HOLIDAYS,
                self._handle_holidays_snapshot,
                order_by=const.DATA_RECORD_CREATED_AT,
            )
        )

    async def _async_update_data(self) -> WeekSchedule:
        """Project the current store contents (first refresh and manual refresh)."""
        self._claims = self.store.records(  # type: ignore[assignment]
            const.COLLECTION_SELECTIONS, order_by=const.DATA_RECORD_CREATED_AT
        )
        self._holidays = self.store.records(  # type: ignore[assignment]
            const.COLLECTION_HOLIDAYS, order_by=const.DATA_RECORD_CREATED_AT
        )
        return ScheduleProjector.project(self._claims, self._holidays)

    @callback
    def _handle_claims_snapshot(self, records: list[dict[str, Any]]) -> None:
        self._claims = records  # type: ignore[assignment]
        self._reproject()

    @callback
    def _handle_holidays_snapshot(self, records: list[dict[str, Any]]) -> None:
        self._holidays = records  # type: ignore[assignment]
        self._reproject()

    @callback
    def _reproject(self) -> None:
        schedule = ScheduleProjector.project(self._claims, self._holidays)
        const.LOGGER.debug(
            "DEBUG: Re-projected week from %s claim(s) and %s holiday(s)",
            len(self._claims),
            len(self._holidays),
        )
        self.async_set_updated_data(schedule)

    # -------------------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------------------

    @property
    def participants(self) -> list[str]:
        """Return the configured participants."""
        return list(
            self.config_entry.options.get(
                const.CONF_PARTICIPANTS,
                self.config_entry.data.get(const.CONF_PARTICIPANTS, []),
            )
        )

    @property
    def claims(self) -> list[SlotClaimData]:
        """Return the latest claim snapshot in creation order."""
        return self._claims

    @property
    def holidays(self) -> list[HolidayMarkData]:
        """Return the latest holiday snapshot."""
        return self._holidays

    @property
    def schedule(self) -> WeekSchedule:
        """Return the projected week (empty week before the first refresh)."""
        if self.data is None:
            return ScheduleProjector.project([], [])
        return self.data

    def own_claims(self, participant: str) -> list[SlotClaimData]:
        """Return a participant's claims from the latest snapshot."""
        return ScheduleProjector.own_claims(participant, self._claims)
