"""Tests for NotificationManager.

Drives real operations through ReconciliationManager and checks the
persistent notifications and notify-service messages that follow.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
from pytest_homeassistant_custom_component.common import (
    MockConfigEntry,
    async_mock_service,
)

from custom_components.carpool import const
from custom_components.carpool.helpers.entity_helpers import get_coordinator
from custom_components.carpool.managers.notification_manager import describe_slots
from tests.helpers import PARTICIPANTS

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant, ServiceCall

PERSISTENT_CREATE = (
    "custom_components.carpool.notification_helper.persistent_notification.async_create"
)


@pytest.fixture
async def notify_calls(hass: HomeAssistant) -> list[ServiceCall]:
    """Register notify.family and capture its calls."""
    return async_mock_service(hass, "notify", "family")


@pytest.fixture
async def init_with_notify(
    hass: HomeAssistant,
    notify_calls: list[ServiceCall],
    mock_storage_data: dict[str, Any],
) -> MockConfigEntry:
    """Set up the integration with a notify service configured."""
    entry = MockConfigEntry(
        domain=const.DOMAIN,
        title="Carpool",
        data={},
        options={
            const.CONF_PARTICIPANTS: list(PARTICIPANTS),
            const.CONF_NOTIFY_SERVICE: "notify.family",
            const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS: True,
        },
        entry_id="test_entry_id",
    )
    entry.add_to_hass(hass)
    with patch(
        "homeassistant.helpers.storage.Store.async_load",
        return_value=mock_storage_data,
    ):
        assert await hass.config_entries.async_setup(entry.entry_id)
        await hass.async_block_till_done()
    return entry


def test_describe_slots() -> None:
    """Slots render with day and slot labels."""
    assert (
        describe_slots(
            [
                {const.FIELD_DAY: const.DAY_MONDAY, const.RESPONSE_SLOT_TYPE: "drop_off"},
                {const.FIELD_DAY: const.DAY_FRIDAY, const.RESPONSE_SLOT_TYPE: "pick_up"},
            ]
        )
        == "Monday drop-off, Friday pick-up"
    )


async def test_failure_creates_persistent_notification(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Each failed operation is named in a persistent notification."""
    manager = get_coordinator(hass, init_integration.entry_id).reconciliation_manager

    with patch(PERSISTENT_CREATE) as mock_create:
        await manager.remove_one("no-such-claim")
        await hass.async_block_till_done()

    mock_create.assert_called_once()
    message = mock_create.call_args.args[1]
    kwargs = mock_create.call_args.kwargs
    assert const.FAILURE_NOT_FOUND in message
    assert "remove claim" in kwargs["title"]
    assert kwargs["notification_id"] == "carpool_test_entry_id_failure_remove_claim"


async def test_persistent_notifications_can_be_disabled(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_storage_data: dict[str, Any],
) -> None:
    """With the option off, failures create no persistent notification."""
    mock_config_entry.add_to_hass(hass)
    hass.config_entries.async_update_entry(
        mock_config_entry,
        options={
            **mock_config_entry.options,
            const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS: False,
        },
    )
    with patch(
        "homeassistant.helpers.storage.Store.async_load",
        return_value=mock_storage_data,
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()
    manager = get_coordinator(hass, mock_config_entry.entry_id).reconciliation_manager

    with patch(PERSISTENT_CREATE) as mock_create:
        await manager.toggle_holiday("sunday")
        await hass.async_block_till_done()

    mock_create.assert_not_called()


async def test_superseded_participant_is_told(
    hass: HomeAssistant,
    init_with_notify: MockConfigEntry,
    notify_calls: list[ServiceCall],
) -> None:
    """An override notifies the displaced participant and announces the commit."""
    manager = get_coordinator(hass, init_with_notify.entry_id).reconciliation_manager
    await manager.commit(
        "Alex", {const.DAY_MONDAY: {const.SLOT_DROP_OFF: True, const.SLOT_PICK_UP: False}}
    )
    await hass.async_block_till_done()
    notify_calls.clear()

    with patch(PERSISTENT_CREATE) as mock_create:
        await manager.commit(
            "Blair",
            {const.DAY_MONDAY: {const.SLOT_DROP_OFF: True, const.SLOT_PICK_UP: False}},
            allow_override=True,
        )
        await hass.async_block_till_done()

    messages = [call.data[const.NOTIFY_MESSAGE] for call in notify_calls]
    assert "Alex, Blair took over: Monday drop-off" in messages
    assert "Blair signed up for Monday" in messages
    mock_create.assert_called_once()
    assert mock_create.call_args.kwargs["notification_id"] == (
        "carpool_test_entry_id_superseded_Alex"
    )


async def test_holiday_and_removal_announcements(
    hass: HomeAssistant,
    init_with_notify: MockConfigEntry,
    notify_calls: list[ServiceCall],
) -> None:
    """Holiday toggles and removals are announced; empty removals are not."""
    manager = get_coordinator(hass, init_with_notify.entry_id).reconciliation_manager

    await manager.toggle_holiday(const.DAY_THURSDAY)
    await manager.clear_claims()
    await hass.async_block_till_done()

    messages = [call.data[const.NOTIFY_MESSAGE] for call in notify_calls]
    assert messages == ["Thursday is now a school holiday"]
    assert notify_calls[0].data[const.NOTIFY_TITLE] == const.NOTIFICATION_TITLE
    assert notify_calls[0].data[const.NOTIFY_DATA] == {
        const.NOTIFY_TAG: "carpool_holiday_thursday"
    }


async def test_missing_notify_service_is_skipped(
    hass: HomeAssistant, init_with_notify: MockConfigEntry
) -> None:
    """If the notify service disappears, the commit still succeeds."""
    hass.services.async_remove("notify", "family")
    manager = get_coordinator(hass, init_with_notify.entry_id).reconciliation_manager

    result = await manager.commit(
        "Casey", {const.DAY_FRIDAY: {const.SLOT_DROP_OFF: False, const.SLOT_PICK_UP: True}}
    )
    await hass.async_block_till_done()

    assert result.success


async def test_option_lookup(
    hass: HomeAssistant, init_integration: MockConfigEntry
) -> None:
    """Configured options win over the default; missing keys use it."""
    manager = get_coordinator(hass, init_integration.entry_id).notification_manager

    assert manager.option(const.CONF_NOTIFY_SERVICE, "notify.default") == ""
    assert manager.option("missing_option", "fallback") == "fallback"
