"""Shared fixtures for Carpool tests."""

from typing import Any
from unittest.mock import patch

import pytest
from homeassistant.core import HomeAssistant
from pytest_homeassistant_custom_component.common import MockConfigEntry

from custom_components.carpool.const import (
    COLLECTION_HOLIDAYS,
    COLLECTION_SELECTIONS,
    CONF_ENABLE_PERSISTENT_NOTIFICATIONS,
    CONF_NOTIFY_SERVICE,
    CONF_PARTICIPANTS,
    DATA_COLLECTIONS,
    DATA_META,
    DATA_META_REVISIONS,
    DOMAIN,
)
from tests.helpers import PARTICIPANTS

# pylint: disable=invalid-name
pytest_plugins = "pytest_homeassistant_custom_component"
# pylint: enable=invalid-name


@pytest.fixture(autouse=True)
def auto_enable_custom_integrations(enable_custom_integrations: Any) -> Any:
    """Enable custom integrations in tests."""
    # pylint: disable=unused-argument
    yield


@pytest.fixture
def mock_config_entry() -> MockConfigEntry:
    """Return a mock config entry."""
    return MockConfigEntry(
        domain=DOMAIN,
        title="Carpool",
        data={},
        options={
            CONF_PARTICIPANTS: list(PARTICIPANTS),
            CONF_NOTIFY_SERVICE: "",
            CONF_ENABLE_PERSISTENT_NOTIFICATIONS: True,
        },
        entry_id="test_entry_id",
        unique_id="test_unique_id",
    )


@pytest.fixture
def mock_storage_data() -> dict[str, Any]:
    """Return an empty storage document."""
    return {
        DATA_META: {
            DATA_META_REVISIONS: {COLLECTION_SELECTIONS: 0, COLLECTION_HOLIDAYS: 0}
        },
        DATA_COLLECTIONS: {COLLECTION_SELECTIONS: {}, COLLECTION_HOLIDAYS: {}},
    }


@pytest.fixture
async def init_integration(
    hass: HomeAssistant,
    mock_config_entry: MockConfigEntry,  # pylint: disable=redefined-outer-name
    mock_storage_data: dict[str, Any],  # pylint: disable=redefined-outer-name
) -> MockConfigEntry:
    """Set up the Carpool integration for testing with mocked storage."""
    mock_config_entry.add_to_hass(hass)

    with patch(
        "homeassistant.helpers.storage.Store.async_load",
        return_value=mock_storage_data,
    ):
        assert await hass.config_entries.async_setup(mock_config_entry.entry_id)
        await hass.async_block_till_done()

    return mock_config_entry
