"""Test helpers for Carpool integration tests.

Record builders shared by the engine, store and manager tests:

    from tests.helpers import PARTICIPANTS, create_mock_claim, create_mock_holiday
"""

from typing import Any

from custom_components.carpool.const import (
    DATA_CLAIM_DAY,
    DATA_CLAIM_DROP_OFF,
    DATA_CLAIM_PARTICIPANT,
    DATA_CLAIM_PICK_UP,
    DATA_HOLIDAY_DAY,
    DATA_RECORD_CREATED_AT,
    DATA_RECORD_ID,
)

PARTICIPANTS = ["Alex", "Blair", "Casey"]


def create_mock_claim(
    claim_id: str,
    participant: str,
    day: str,
    drop_off: bool = False,
    pick_up: bool = False,
    created_at: str = "2026-01-05T08:00:00+00:00",
) -> dict[str, Any]:
    """Create a stored slot claim record."""
    return {
        DATA_RECORD_ID: claim_id,
        DATA_CLAIM_PARTICIPANT: participant,
        DATA_CLAIM_DAY: day,
        DATA_CLAIM_DROP_OFF: drop_off,
        DATA_CLAIM_PICK_UP: pick_up,
        DATA_RECORD_CREATED_AT: created_at,
    }


def create_mock_holiday(
    holiday_id: str, day: str, created_at: str = "2026-01-05T08:00:00+00:00"
) -> dict[str, Any]:
    """Create a stored holiday mark record."""
    return {
        DATA_RECORD_ID: holiday_id,
        DATA_HOLIDAY_DAY: day,
        DATA_RECORD_CREATED_AT: created_at,
    }
