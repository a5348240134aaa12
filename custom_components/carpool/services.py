# File: services.py
"""Defines custom services for the Carpool integration.

These services allow participants (through dashboards, scripts or
automations) to preview and submit slot claims, remove claims, and toggle
school holidays. Writes go through the ReconciliationManager; failed
operations surface as translated service errors.
"""

from __future__ import annotations

from typing import Any

import voluptuous as vol
from homeassistant.core import (
    HomeAssistant,
    ServiceCall,
    ServiceResponse,
    SupportsResponse,
)
from homeassistant.exceptions import HomeAssistantError, ServiceValidationError
from homeassistant.helpers import config_validation as cv

from . import const
from .engines.conflict_engine import InvalidProposalError
from .helpers.entity_helpers import get_coordinator, get_first_carpool_entry
from .managers.reconciliation_manager import CommitResult, ReconciliationManager
from .type_defs import ProposalByDay

# --- Service Schemas ---
CLAIM_ITEM_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_DAY): vol.All(cv.string, vol.Lower),
        vol.Optional(const.FIELD_DROP_OFF, default=False): cv.boolean,
        vol.Optional(const.FIELD_PICK_UP, default=False): cv.boolean,
    }
)

PREVIEW_CLAIMS_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_PARTICIPANT): cv.string,
        vol.Required(const.FIELD_CLAIMS): vol.All(cv.ensure_list, [CLAIM_ITEM_SCHEMA]),
    }
)

SUBMIT_CLAIMS_SCHEMA = PREVIEW_CLAIMS_SCHEMA.extend(
    {
        vol.Optional(const.FIELD_ALLOW_OVERRIDE, default=False): cv.boolean,
    }
)

REMOVE_CLAIM_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_CLAIM_ID): cv.string,
    }
)

CLEAR_CLAIMS_SCHEMA = vol.Schema(
    {
        vol.Optional(const.FIELD_PARTICIPANT): cv.string,
    }
)

TOGGLE_HOLIDAY_SCHEMA = vol.Schema(
    {
        vol.Required(const.FIELD_DAY): vol.All(cv.string, vol.Lower),
    }
)

SERVICES = [
    const.SERVICE_PREVIEW_CLAIMS,
    const.SERVICE_SUBMIT_CLAIMS,
    const.SERVICE_REMOVE_CLAIM,
    const.SERVICE_CLEAR_CLAIMS,
    const.SERVICE_TOGGLE_HOLIDAY,
]


def build_proposal(items: list[dict[str, Any]]) -> ProposalByDay:
    """Merge the service's claim list into one request per day.

    Listing a day twice combines its flags.
    """
    proposal: ProposalByDay = {}
    for item in items:
        day = item[const.FIELD_DAY]
        current = proposal.setdefault(
            day, {const.SLOT_DROP_OFF: False, const.SLOT_PICK_UP: False}
        )
        current[const.SLOT_DROP_OFF] = current[const.SLOT_DROP_OFF] or bool(
            item.get(const.FIELD_DROP_OFF)
        )
        current[const.SLOT_PICK_UP] = current[const.SLOT_PICK_UP] or bool(
            item.get(const.FIELD_PICK_UP)
        )
    return proposal


def raise_for_failure(result: CommitResult) -> None:
    """Turn a failed CommitResult into a translated service error."""
    if result.success:
        return
    reason = result.reason or const.FAILURE_STORE_UNAVAILABLE
    error_cls = (
        HomeAssistantError
        if reason == const.FAILURE_STORE_UNAVAILABLE
        else ServiceValidationError
    )
    raise error_cls(
        result.message,
        translation_domain=const.DOMAIN,
        translation_key=const.TRANS_KEY_BY_FAILURE[reason],
        translation_placeholders={
            "operation": result.operation,
            "message": result.message,
        },
    )


def _get_manager(hass: HomeAssistant, service: str) -> ReconciliationManager:
    entry_id = get_first_carpool_entry(hass)
    if not entry_id:
        const.LOGGER.warning("WARNING: %s: no Carpool entry loaded", service)
        raise HomeAssistantError(
            translation_domain=const.DOMAIN,
            translation_key=const.TRANS_KEY_ERROR_NO_ENTRY,
        )
    return get_coordinator(hass, entry_id).reconciliation_manager


def async_setup_services(hass: HomeAssistant) -> None:
    """Register Carpool services."""
    if hass.services.has_service(const.DOMAIN, const.SERVICE_SUBMIT_CLAIMS):
        return

    async def handle_preview_claims(call: ServiceCall) -> ServiceResponse:
        """Report which requested slots are clean and which conflict."""
        manager = _get_manager(hass, const.SERVICE_PREVIEW_CLAIMS)
        participant = call.data[const.FIELD_PARTICIPANT]
        proposal = build_proposal(call.data[const.FIELD_CLAIMS])
        try:
            report = manager.preview(participant, proposal)
        except InvalidProposalError as err:
            raise ServiceValidationError(
                err.detail,
                translation_domain=const.DOMAIN,
                translation_key=const.TRANS_KEY_ERROR_INVALID_PROPOSAL,
                translation_placeholders={
                    "operation": const.SERVICE_PREVIEW_CLAIMS,
                    "message": err.detail,
                },
            ) from err
        return report.as_dict()

    async def handle_submit_claims(call: ServiceCall) -> ServiceResponse:
        """Commit a participant's claims, optionally overriding others."""
        manager = _get_manager(hass, const.SERVICE_SUBMIT_CLAIMS)
        participant = call.data[const.FIELD_PARTICIPANT]
        proposal = build_proposal(call.data[const.FIELD_CLAIMS])
        result = await manager.commit(
            participant, proposal, allow_override=call.data[const.FIELD_ALLOW_OVERRIDE]
        )
        raise_for_failure(result)
        return {
            const.RESPONSE_CREATED_IDS: result.created_ids,
            const.RESPONSE_DELETED_IDS: result.deleted_ids,
            const.RESPONSE_CONFLICTS: [item.as_dict() for item in result.conflicts],
        }

    async def handle_remove_claim(call: ServiceCall) -> ServiceResponse:
        """Delete one claim by id."""
        manager = _get_manager(hass, const.SERVICE_REMOVE_CLAIM)
        result = await manager.remove_one(call.data[const.FIELD_CLAIM_ID])
        raise_for_failure(result)
        return {const.RESPONSE_DELETED_IDS: result.deleted_ids}

    async def handle_clear_claims(call: ServiceCall) -> ServiceResponse:
        """Delete all claims, or all claims of one participant."""
        manager = _get_manager(hass, const.SERVICE_CLEAR_CLAIMS)
        result = await manager.clear_claims(call.data.get(const.FIELD_PARTICIPANT))
        raise_for_failure(result)
        return {const.RESPONSE_DELETED_IDS: result.deleted_ids}

    async def handle_toggle_holiday(call: ServiceCall) -> ServiceResponse:
        """Flip a weekday's holiday mark."""
        manager = _get_manager(hass, const.SERVICE_TOGGLE_HOLIDAY)
        day = call.data[const.FIELD_DAY]
        result = await manager.toggle_holiday(day)
        raise_for_failure(result)
        return {
            const.FIELD_DAY: day,
            const.RESPONSE_IS_HOLIDAY: bool(result.created_ids),
        }

    # --- Register Services ---
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_PREVIEW_CLAIMS,
        handle_preview_claims,
        schema=PREVIEW_CLAIMS_SCHEMA,
        supports_response=SupportsResponse.ONLY,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_SUBMIT_CLAIMS,
        handle_submit_claims,
        schema=SUBMIT_CLAIMS_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_REMOVE_CLAIM,
        handle_remove_claim,
        schema=REMOVE_CLAIM_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_CLEAR_CLAIMS,
        handle_clear_claims,
        schema=CLEAR_CLAIMS_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )
    hass.services.async_register(
        const.DOMAIN,
        const.SERVICE_TOGGLE_HOLIDAY,
        handle_toggle_holiday,
        schema=TOGGLE_HOLIDAY_SCHEMA,
        supports_response=SupportsResponse.OPTIONAL,
    )

    const.LOGGER.info("INFO: Carpool services have been registered successfully")


async def async_unload_services(hass: HomeAssistant) -> None:
    """Unregister Carpool services when unloading the integration."""
    for service in SERVICES:
        if hass.services.has_service(const.DOMAIN, service):
            hass.services.async_remove(const.DOMAIN, service)

    const.LOGGER.info("INFO: Carpool services have been unregistered")
