# File: notification_manager.py
"""Notification Manager for Carpool integration.

Event-driven: ReconciliationManager emits domain events, this manager turns
them into user-facing notices.
- Failures -> persistent notification naming the failed operation
- Superseded claims -> the displaced participant is told who took the slot
- Commits, removals, holiday toggles -> notify service announcement

Persistent notifications are controlled by the entry option
CONF_ENABLE_PERSISTENT_NOTIFICATIONS; the notify service by CONF_NOTIFY_SERVICE.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from homeassistant.core import callback

from .. import const
from ..notification_helper import (
    async_send_notification,
    create_persistent_notification,
)
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import CarpoolDataCoordinator


def describe_slots(slots: list[dict[str, str]]) -> str:
    """Render [{"day": ..., "slot_type": ...}] as 'Monday drop-off, Tuesday pick-up'."""
    return ", ".join(
        f"{const.LABEL_DAY.get(slot[const.FIELD_DAY], slot[const.FIELD_DAY])} "
        f"{const.LABEL_SLOT.get(slot[const.RESPONSE_SLOT_TYPE], slot[const.RESPONSE_SLOT_TYPE])}"
        for slot in slots
    )


class NotificationManager(BaseManager):
    """Manager for outgoing carpool notices."""

    def __init__(self, hass: HomeAssistant, coordinator: CarpoolDataCoordinator) -> None:
        """Initialize notification manager."""
        super().__init__(hass, coordinator)

    async def async_setup(self) -> None:
        """Subscribe to the events that produce notices."""
        self.listen(const.SIGNAL_SUFFIX_OPERATION_FAILED, self._handle_operation_failed)
        self.listen(const.SIGNAL_SUFFIX_CLAIMS_SUPERSEDED, self._handle_claims_superseded)
        self.listen(const.SIGNAL_SUFFIX_CLAIMS_COMMITTED, self._handle_claims_committed)
        self.listen(const.SIGNAL_SUFFIX_CLAIMS_REMOVED, self._handle_claims_removed)
        self.listen(const.SIGNAL_SUFFIX_HOLIDAY_TOGGLED, self._handle_holiday_toggled)

    # =========================================================================
    # Options
    # =========================================================================

    @property
    def _notify_service(self) -> str:
        return self.option(const.CONF_NOTIFY_SERVICE, const.DEFAULT_NOTIFY_SERVICE)

    @property
    def _persistent_enabled(self) -> bool:
        return self.option(
            const.CONF_ENABLE_PERSISTENT_NOTIFICATIONS,
            const.DEFAULT_ENABLE_PERSISTENT_NOTIFICATIONS,
        )

    # =========================================================================
    # Delivery
    # =========================================================================

    def _announce(self, message: str, tag: str) -> None:
        """Send a message through the configured notify service, if any."""
        if not self._notify_service:
            return
        self.hass.async_create_task(
            async_send_notification(
                self.hass,
                self._notify_service,
                const.NOTIFICATION_TITLE,
                message,
                extra_data={const.NOTIFY_TAG: f"{const.NOTIFICATION_ID_PREFIX}{tag}"},
            )
        )

    def _persist(self, title: str, message: str, notification_id: str) -> None:
        if not self._persistent_enabled:
            return
        create_persistent_notification(
            self.hass,
            title,
            message,
            f"{const.NOTIFICATION_ID_PREFIX}{self.entry_id}_{notification_id}",
        )

    # =========================================================================
    # Event Handlers
    # =========================================================================

    @callback
    def _handle_operation_failed(self, payload: dict[str, Any]) -> None:
        operation = payload.get("operation", "")
        reason = payload.get("reason", "")
        message = payload.get("message", "")
        participant = payload.get("participant")
        title = f"{const.NOTIFICATION_TITLE}: {operation.replace('_', ' ')} failed"
        body = f"[{reason}] {message}"
        if participant:
            body = f"{participant}: {body}"
        self._persist(title, body, f"failure_{operation}")

    @callback
    def _handle_claims_superseded(self, payload: dict[str, Any]) -> None:
        participant = payload.get("participant", "")
        superseded_by = payload.get("superseded_by", "")
        slots = describe_slots(payload.get("slots", []))
        message = f"{participant}, {superseded_by} took over: {slots}"
        self._persist(
            f"{const.NOTIFICATION_TITLE}: slots taken over",
            message,
            f"superseded_{participant}",
        )
        self._announce(message, f"superseded_{participant}")

    @callback
    def _handle_claims_committed(self, payload: dict[str, Any]) -> None:
        participant = payload.get("participant", "")
        days = ", ".join(
            const.LABEL_DAY.get(day, day) for day in payload.get("days", [])
        )
        self._announce(f"{participant} signed up for {days}", "committed")

    @callback
    def _handle_claims_removed(self, payload: dict[str, Any]) -> None:
        count = len(payload.get("deleted_ids", []))
        if not count:
            return
        who = ", ".join(payload.get("participants", [])) or "unknown"
        self._announce(f"{count} claim(s) removed ({who})", "removed")

    @callback
    def _handle_holiday_toggled(self, payload: dict[str, Any]) -> None:
        day = const.LABEL_DAY.get(payload.get("day", ""), payload.get("day", ""))
        if payload.get("is_holiday"):
            message = f"{day} is now a school holiday"
        else:
            message = f"{day} is no longer a school holiday"
        self._announce(message, f"holiday_{payload.get('day')}")
