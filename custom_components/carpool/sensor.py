# File: sensor.py
"""Sensors for the Carpool integration.

Sensors Defined in This File (2):
01. DayScheduleSensor - one per weekday, state open/partial/covered/holiday
02. ParticipantClaimsSensor - one per participant, state = slots owned

Both update from the coordinator, which re-projects the week on every
store change.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from . import const
from .coordinator import CarpoolDataCoordinator
from .engines.schedule_engine import ScheduleProjector
from .entity import CarpoolCoordinatorEntity
from .helpers.device_helpers import (
    create_participant_device_info,
    create_schedule_device_info,
)


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    """Set up sensors for Carpool integration."""
    coordinator: CarpoolDataCoordinator = hass.data[const.DOMAIN][entry.entry_id][
        const.COORDINATOR
    ]

    entities: list[SensorEntity] = [
        DayScheduleSensor(coordinator, entry, day) for day in const.WEEKDAYS
    ]
    entities.extend(
        ParticipantClaimsSensor(coordinator, entry, participant)
        for participant in coordinator.participants
    )
    async_add_entities(entities)


# ------------------------------------------------------------------------------------------
class DayScheduleSensor(CarpoolCoordinatorEntity, SensorEntity):
    """Who drives on one weekday, and whether school is out."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = const.DAY_STATES
    _attr_translation_key = const.TRANS_KEY_SENSOR_DAY_SCHEDULE

    def __init__(
        self, coordinator: CarpoolDataCoordinator, entry: ConfigEntry, day: str
    ) -> None:
        """Initialize the sensor."""
        super().__init__(coordinator, entry, day, const.SENSOR_SUFFIX_DAY_SCHEDULE)
        self._day = day
        self._attr_translation_placeholders = {"day": const.LABEL_DAY[day]}
        self._attr_device_info = create_schedule_device_info(entry)

    @property
    def native_value(self) -> str:
        """Return open, partial, covered or holiday."""
        return ScheduleProjector.day_state(self.schedule_row(self._day))

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the owners of both slots."""
        row = self.schedule_row(self._day)
        return {
            const.ATTR_DAY: self._day,
            const.ATTR_DROP_OFF: row[const.SCHEDULE_DROP_OFF_OWNER],
            const.ATTR_PICK_UP: row[const.SCHEDULE_PICK_UP_OWNER],
            const.ATTR_IS_HOLIDAY: row[const.SCHEDULE_IS_HOLIDAY],
        }


# ------------------------------------------------------------------------------------------
class ParticipantClaimsSensor(CarpoolCoordinatorEntity, SensorEntity):
    """Number of slots a participant effectively owns this week."""

    _attr_translation_key = const.TRANS_KEY_SENSOR_PARTICIPANT_CLAIMS
    _attr_icon = "mdi:car-child-seat"

    def __init__(
        self,
        coordinator: CarpoolDataCoordinator,
        entry: ConfigEntry,
        participant: str,
    ) -> None:
        """Initialize the sensor."""
        super().__init__(
            coordinator, entry, participant, const.SENSOR_SUFFIX_PARTICIPANT_CLAIMS
        )
        self._participant = participant
        self._attr_translation_placeholders = {"participant": participant}
        self._attr_device_info = create_participant_device_info(participant, entry)

    @property
    def native_value(self) -> int:
        """Count drop-offs and pick-ups shown under this participant."""
        return sum(
            1
            for day in const.WEEKDAYS
            for key in (const.SCHEDULE_DROP_OFF_OWNER, const.SCHEDULE_PICK_UP_OWNER)
            if self.schedule_row(day)[key] == self._participant
        )

    @property
    def extra_state_attributes(self) -> dict[str, Any]:
        """Return the participant's stored claims in week order."""
        return {
            const.ATTR_PARTICIPANT: self._participant,
            const.ATTR_CLAIMS: [
                {
                    const.DATA_RECORD_ID: claim[const.DATA_RECORD_ID],
                    const.ATTR_DAY: claim[const.DATA_CLAIM_DAY],
                    const.ATTR_DROP_OFF: claim[const.DATA_CLAIM_DROP_OFF],
                    const.ATTR_PICK_UP: claim[const.DATA_CLAIM_PICK_UP],
                }
                for claim in self.coordinator.own_claims(self._participant)
            ],
        }
