# File: options_flow.py
"""Options Flow for the Carpool integration.

Edits the participant list and notification settings. Saving the options
triggers the entry's update listener, which reloads the integration so
sensors follow the new participant list.
"""

from typing import Any, Optional

from homeassistant import config_entries

from . import const
from .helpers import flow_helpers as fh


class CarpoolOptionsFlowHandler(config_entries.OptionsFlow):
    """Options Flow for participants and notifications."""

    def __init__(self, _config_entry: config_entries.ConfigEntry):
        """Initialize the options flow."""
        self._errors: dict[str, str] = {}

    async def async_step_init(self, user_input: Optional[dict[str, Any]] = None):
        """Show and save the options form."""
        self._errors = {}
        if user_input is not None:
            self._errors = fh.validate_options_inputs(self.hass, user_input)
            if not self._errors:
                options = fh.build_options_data(user_input)
                const.LOGGER.debug("DEBUG: Saving Carpool options: %s", options)
                return self.async_create_entry(title="", data=options)

        current = dict(self.config_entry.options)
        if user_input is not None:
            current.update(fh.build_options_data(user_input))
        return self.async_show_form(
            step_id=const.OPTIONS_FLOW_STEP_INIT,
            data_schema=fh.build_options_schema(current),
            errors=self._errors,
        )
