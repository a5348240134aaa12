# File: config_flow.py
"""Config flow for the Carpool integration.

A single instance is allowed. Setup asks for a title and the comma-separated
list of participants; everything else lives in the options flow.
"""

from typing import Any, Optional

from homeassistant import config_entries
from homeassistant.core import callback

from . import const
from .helpers import flow_helpers as fh
from .options_flow import CarpoolOptionsFlowHandler


class CarpoolConfigFlow(config_entries.ConfigFlow, domain=const.DOMAIN):
    """Config Flow for Carpool."""

    VERSION = 1

    async def async_step_user(self, user_input: Optional[dict[str, Any]] = None):
        """Collect the title and participant list."""
        if any(self._async_current_entries()):
            return self.async_abort(reason=const.TRANS_KEY_ERROR_SINGLE_INSTANCE)

        errors: dict[str, str] = {}
        if user_input is not None:
            errors = fh.validate_participants_inputs(user_input)
            if not errors:
                participants = fh.parse_participants(
                    user_input[const.CFOF_INPUT_PARTICIPANTS]
                )
                const.LOGGER.debug(
                    "DEBUG: Creating Carpool entry with participants: %s", participants
                )
                return self.async_create_entry(
                    title=user_input[const.CFOF_INPUT_TITLE].strip()
                    or const.CARPOOL_TITLE,
                    data={},
                    options={
                        const.CONF_PARTICIPANTS: participants,
                        const.CONF_NOTIFY_SERVICE: const.DEFAULT_NOTIFY_SERVICE,
                        const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS: (
                            const.DEFAULT_ENABLE_PERSISTENT_NOTIFICATIONS
                        ),
                    },
                )

        defaults = user_input or {}
        return self.async_show_form(
            step_id=const.CONFIG_FLOW_STEP_USER,
            data_schema=fh.build_user_schema(
                defaults.get(const.CFOF_INPUT_TITLE, const.CARPOOL_TITLE),
                defaults.get(const.CFOF_INPUT_PARTICIPANTS, ""),
            ),
            errors=errors,
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Return the Options Flow."""
        return CarpoolOptionsFlowHandler(config_entry)
