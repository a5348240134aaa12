"""Schedule Engine - Pure projection of claims and holidays into a week view.

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
State management belongs in the coordinator and ReconciliationManager.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from .. import const

if TYPE_CHECKING:
    from ..type_defs import (
        DaySchedule,
        HolidayMarkData,
        Participant,
        SlotClaimData,
        WeekSchedule,
    )


class ScheduleProjector:
    """Build the authoritative weekly view from live records.

    All methods are static - no instance state.

    Ownership rule: claims are scanned in the order given and the last claim
    covering a (day, slot type) wins. The store hands records over in
    creation order, so a later claim shadows an earlier one if the store ever
    holds two owners for the same slot.
    """

    @staticmethod
    def empty_day() -> DaySchedule:
        """Return an unowned, non-holiday schedule row."""
        return {
            const.SCHEDULE_DROP_OFF_OWNER: None,
            const.SCHEDULE_PICK_UP_OWNER: None,
            const.SCHEDULE_IS_HOLIDAY: False,
        }

    @staticmethod
    def project(
        claims: Iterable[SlotClaimData],
        holidays: Iterable[HolidayMarkData],
    ) -> WeekSchedule:
        """Project claims and holiday marks into a five-day schedule.

        Args:
            claims: Live slot claims in store scan order
            holidays: Live holiday marks

        Returns:
            Mapping of every weekday to its owners and holiday flag. Claims
            with neither flag set, or for an unknown day, contribute nothing.
        """
        schedule: WeekSchedule = {
            day: ScheduleProjector.empty_day() for day in const.WEEKDAYS
        }

        for mark in holidays:
            row = schedule.get(mark.get(const.DATA_HOLIDAY_DAY, ""))
            if row is not None:
                row[const.SCHEDULE_IS_HOLIDAY] = True

        for claim in claims:
            row = schedule.get(claim.get(const.DATA_CLAIM_DAY, ""))
            if row is None:
                continue
            participant = claim.get(const.DATA_CLAIM_PARTICIPANT)
            if claim.get(const.DATA_CLAIM_DROP_OFF):
                row[const.SCHEDULE_DROP_OFF_OWNER] = participant
            if claim.get(const.DATA_CLAIM_PICK_UP):
                row[const.SCHEDULE_PICK_UP_OWNER] = participant

        return schedule

    @staticmethod
    def owner_of(schedule: WeekSchedule, day: str, slot_type: str) -> str | None:
        """Return the effective owner of a slot, or None when open."""
        row = schedule.get(day)
        if row is None:
            return None
        if slot_type == const.SLOT_DROP_OFF:
            return row[const.SCHEDULE_DROP_OFF_OWNER]
        return row[const.SCHEDULE_PICK_UP_OWNER]

    @staticmethod
    def holiday_days(schedule: WeekSchedule) -> list[str]:
        """Return the weekdays currently marked as holidays, in week order."""
        return [day for day in const.WEEKDAYS if schedule[day][const.SCHEDULE_IS_HOLIDAY]]

    @staticmethod
    def own_claims(
        participant: Participant, claims: Iterable[SlotClaimData]
    ) -> list[SlotClaimData]:
        """Return a participant's claims ordered by weekday, then creation."""
        day_index = {day: index for index, day in enumerate(const.WEEKDAYS)}
        owned = [
            claim
            for claim in claims
            if claim.get(const.DATA_CLAIM_PARTICIPANT) == participant
        ]
        # sorted() is stable, so creation order is kept within a day
        return sorted(
            owned,
            key=lambda claim: day_index.get(claim[const.DATA_CLAIM_DAY], len(day_index)),
        )

    @staticmethod
    def day_state(row: DaySchedule) -> str:
        """Summarize a schedule row as open / partial / covered / holiday."""
        if row[const.SCHEDULE_IS_HOLIDAY]:
            return const.DAY_STATE_HOLIDAY
        owned = sum(
            1
            for key in (const.SCHEDULE_DROP_OFF_OWNER, const.SCHEDULE_PICK_UP_OWNER)
            if row[key]
        )
        if owned == 2:
            return const.DAY_STATE_COVERED
        if owned == 1:
            return const.DAY_STATE_PARTIAL
        return const.DAY_STATE_OPEN
