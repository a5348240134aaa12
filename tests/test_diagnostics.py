"""Tests for Carpool diagnostics.

Diagnostics export the raw store document alongside the projected week.
"""

from typing import Any
from unittest.mock import patch

from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.carpool import const
from custom_components.carpool.diagnostics import async_get_config_entry_diagnostics
from tests.helpers import PARTICIPANTS, create_mock_claim


async def test_config_entry_diagnostics(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,
    mock_storage_data: dict[str, Any],
) -> None:
    """Store contents and schedule are both exported."""
    claim = create_mock_claim("c1", "Alex", const.DAY_MONDAY, pick_up=True)
    mock_storage_data[const.DATA_COLLECTIONS][const.COLLECTION_SELECTIONS] = {
        "c1": claim
    }
    mock_config_entry.add_to_hass(hass)
    with patch(
        "homeassistant.helpers.storage.Store.async_load",
        return_value=mock_storage_data,
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    result = await async_get_config_entry_diagnostics(hass, mock_config_entry)

    assert result[const.CONF_PARTICIPANTS] == PARTICIPANTS
    assert result["storage_path"].endswith(const.STORAGE_KEY)
    assert result["storage"][const.DATA_COLLECTIONS][const.COLLECTION_SELECTIONS] == {
        "c1": claim
    }
    monday = result["schedule"][const.DAY_MONDAY]
    assert monday[const.SCHEDULE_PICK_UP_OWNER] == "Alex"
    assert monday[const.SCHEDULE_DROP_OFF_OWNER] is None
