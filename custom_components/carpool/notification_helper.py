# File: notification_helper.py
"""Sends notifications using Home Assistant's notify services.

Supports a configured notify service (e.g. a companion app) and persistent
notifications in the Home Assistant UI. All texts and labels are referenced
from constants.
"""

from __future__ import annotations

from typing import Any

from homeassistant.components import persistent_notification
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError

from . import const


async def async_send_notification(
    hass: HomeAssistant,
    notify_service: str,
    title: str,
    message: str,
    extra_data: dict[str, str] | None = None,
) -> None:
    """Send a notification using the specified notify service.

    Gracefully handles missing notification services (the companion app may
    not be set up yet). If the service doesn't exist, logs a warning and
    returns without raising an exception.
    """

    # Parse service name into domain and service components
    if const.DISPLAY_DOT not in notify_service:
        domain = const.NOTIFY_DOMAIN
        service = notify_service
    else:
        domain, service = notify_service.split(const.DISPLAY_DOT, 1)

    if not hass.services.has_service(domain, service):
        const.LOGGER.warning(
            "Notification service '%s.%s' not available - skipping notification",
            domain,
            service,
        )
        return

    payload: dict[str, Any] = {const.NOTIFY_TITLE: title, const.NOTIFY_MESSAGE: message}
    if extra_data:
        payload[const.NOTIFY_DATA] = dict(extra_data)

    try:
        await hass.services.async_call(domain, service, payload, blocking=True)
        const.LOGGER.debug("DEBUG: Notification sent via '%s.%s'", domain, service)
    except HomeAssistantError as err:
        # Runs as a fire-and-forget task; log instead of leaving the task
        # exception unretrieved.
        const.LOGGER.error(
            "ERROR: Error sending notification via '%s.%s': %s. Payload: %s",
            domain,
            service,
            err,
            payload,
        )


def create_persistent_notification(
    hass: HomeAssistant, title: str, message: str, notification_id: str
) -> None:
    """Show (or replace) a persistent notification in the Home Assistant UI."""
    persistent_notification.async_create(
        hass, message, title=title, notification_id=notification_id
    )
    const.LOGGER.debug("DEBUG: Persistent notification '%s' created", notification_id)
