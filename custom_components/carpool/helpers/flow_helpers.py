# File: helpers/flow_helpers.py
"""Config and options flow helpers for Carpool.

Schema builders and validators shared by config_flow.py and options_flow.py.
Validators return an errors dict keyed by form field (or "base"), empty when
the input is acceptable.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.helpers import selector

from .. import const

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant


def parse_participants(raw: str | list[str]) -> list[str]:
    """Split a comma-separated participant list, trimming blanks.

    Order is preserved; duplicates are kept so validation can report them.
    """
    if isinstance(raw, list):
        items = raw
    else:
        items = raw.split(const.PARTICIPANT_SEPARATOR)
    return [item.strip() for item in items if item and item.strip()]


def format_participants(participants: list[str]) -> str:
    """Join participants back into the form's text representation."""
    return f"{const.PARTICIPANT_SEPARATOR} ".join(participants)


def build_user_schema(
    default_title: str = const.CARPOOL_TITLE, default_participants: str = ""
) -> vol.Schema:
    """Build the initial setup schema (title and participant list)."""
    return vol.Schema(
        {
            vol.Required(const.CFOF_INPUT_TITLE, default=default_title): str,
            vol.Required(
                const.CFOF_INPUT_PARTICIPANTS, default=default_participants
            ): str,
        }
    )


def validate_participants_inputs(user_input: dict[str, Any]) -> dict[str, str]:
    """Validate the participant list field.

    Args:
        user_input: Form input containing CFOF_INPUT_PARTICIPANTS.

    Returns:
        Errors dict; empty when valid.
    """
    errors: dict[str, str] = {}
    participants = parse_participants(
        user_input.get(const.CFOF_INPUT_PARTICIPANTS, "")
    )
    if not participants:
        errors[const.CFOF_INPUT_PARTICIPANTS] = const.TRANS_KEY_ERROR_NO_PARTICIPANTS
    elif len({name.casefold() for name in participants}) != len(participants):
        errors[const.CFOF_INPUT_PARTICIPANTS] = (
            const.TRANS_KEY_ERROR_DUPLICATE_PARTICIPANTS
        )
    return errors


def build_options_schema(options: dict[str, Any]) -> vol.Schema:
    """Build the options schema pre-filled from the current options."""
    return vol.Schema(
        {
            vol.Required(
                const.CFOF_INPUT_PARTICIPANTS,
                default=format_participants(options.get(const.CONF_PARTICIPANTS, [])),
            ): str,
            vol.Optional(
                const.CONF_NOTIFY_SERVICE,
                default=options.get(
                    const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE
                ),
            ): str,
            vol.Required(
                const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS,
                default=options.get(
                    const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS,
                    const.DEFAULT_ENABLE_PERSISTENT_NOTIFICATIONS,
                ),
            ): selector.BooleanSelector(),
        }
    )


def validate_options_inputs(
    hass: HomeAssistant, user_input: dict[str, Any]
) -> dict[str, str]:
    """Validate the options form: participants and an optional notify service."""
    errors = validate_participants_inputs(user_input)

    notify_service = (user_input.get(const.CONF_NOTIFY_SERVICE) or "").strip()
    if notify_service:
        if const.DISPLAY_DOT in notify_service:
            domain, service = notify_service.split(const.DISPLAY_DOT, 1)
        else:
            domain, service = const.NOTIFY_DOMAIN, notify_service
        if domain != const.NOTIFY_DOMAIN or not hass.services.has_service(
            domain, service
        ):
            errors[const.CONF_NOTIFY_SERVICE] = (
                const.TRANS_KEY_ERROR_INVALID_NOTIFY_SERVICE
            )
    return errors


def build_options_data(user_input: dict[str, Any]) -> dict[str, Any]:
    """Convert options form input into stored entry options."""
    return {
        const.CONF_PARTICIPANTS: parse_participants(
            user_input[const.CFOF_INPUT_PARTICIPANTS]
        ),
        const.CONF_NOTIFY_SERVICE: (
            user_input.get(const.CONF_NOTIFY_SERVICE) or ""
        ).strip(),
        const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS: user_input.get(
            const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS,
            const.DEFAULT_ENABLE_PERSISTENT_NOTIFICATIONS,
        ),
    }
