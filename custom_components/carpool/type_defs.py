"""Type definitions for Carpool data structures.

TypedDicts describe the fixed record shapes kept in the two store
collections and the derived weekly schedule. Runtime validation of stored
records happens in store.py (voluptuous schemas); these types are for static
analysis only.

IMPORTANT: This file must NOT import from coordinator.py or any manager to
avoid circular dependencies. Only const.py and typing are allowed.
"""

from typing import Any, TypedDict

# =============================================================================
# Type Aliases (for readability)
# =============================================================================

ClaimId = str  # UUID string
HolidayId = str  # UUID string
Participant = str  # One of the configured participant names
Day = str  # One of const.WEEKDAYS
SlotType = str  # const.SLOT_DROP_OFF | const.SLOT_PICK_UP
ISODatetime = str  # ISO 8601 datetime string "2026-01-18T12:30:00+00:00"


# =============================================================================
# Stored Records
# =============================================================================


class SlotClaimData(TypedDict):
    """A participant's claim on one weekday.

    Immutable once stored; at least one of drop_off/pick_up is True.
    """

    id: ClaimId
    participant: Participant
    day: Day
    drop_off: bool
    pick_up: bool
    created_at: ISODatetime


class HolidayMarkData(TypedDict):
    """A blackout weekday. At most one per day."""

    id: HolidayId
    day: Day
    created_at: ISODatetime


# =============================================================================
# Proposals and Projection
# =============================================================================


class SlotRequest(TypedDict):
    """Requested slots for a single day of a proposal."""

    drop_off: bool
    pick_up: bool


# day -> requested slots
ProposalByDay = dict[Day, SlotRequest]


class DaySchedule(TypedDict):
    """One row of the projected week."""

    drop_off_owner: Participant | None
    pick_up_owner: Participant | None
    is_holiday: bool


# day -> projected row, always all five weekdays
WeekSchedule = dict[Day, DaySchedule]

# Batch operation as accepted by CarpoolStore.async_batch_write
BatchOperation = dict[str, Any]
