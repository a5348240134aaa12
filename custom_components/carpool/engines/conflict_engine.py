"""Conflict Engine - Pure logic for evaluating slot-claim proposals.

This engine provides stateless, pure Python functions for:
- Proposal validation (empty proposals, unknown days/participants, holidays)
- Per-slot conflict detection against a projected week
- Supersession planning when a proposer overrides other participants

ARCHITECTURE: This is a pure logic engine with NO Home Assistant dependencies.
All functions are static methods that operate on passed-in data.
Store access belongs in ReconciliationManager.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .. import const
from .schedule_engine import ScheduleProjector

if TYPE_CHECKING:
    from ..type_defs import (
        Participant,
        ProposalByDay,
        SlotClaimData,
        WeekSchedule,
    )


class InvalidProposalError(Exception):
    """Raised when a proposal cannot be evaluated.

    Attributes:
        participant: The proposing participant
        detail: Human-readable reason the proposal was rejected
    """

    def __init__(self, participant: str, detail: str) -> None:
        """Initialize InvalidProposalError.

        Args:
            participant: The proposing participant
            detail: Human-readable reason the proposal was rejected
        """
        self.participant = participant
        self.detail = detail
        super().__init__(f"Invalid proposal from '{participant}': {detail}")


@dataclass(frozen=True)
class SlotRef:
    """A single (day, slot type) pair."""

    day: str
    slot_type: str

    def as_dict(self) -> dict[str, str]:
        """Return a JSON-friendly representation."""
        return {const.FIELD_DAY: self.day, const.RESPONSE_SLOT_TYPE: self.slot_type}


@dataclass(frozen=True)
class SlotConflict:
    """A requested slot already owned by someone else."""

    day: str
    slot_type: str
    current_owner: str

    def as_dict(self) -> dict[str, str]:
        """Return a JSON-friendly representation."""
        return {
            const.FIELD_DAY: self.day,
            const.RESPONSE_SLOT_TYPE: self.slot_type,
            const.RESPONSE_CURRENT_OWNER: self.current_owner,
        }

    def describe(self) -> str:
        """Return e.g. 'Monday drop-off (Alex)'."""
        return (
            f"{const.LABEL_DAY.get(self.day, self.day)} "
            f"{const.LABEL_SLOT.get(self.slot_type, self.slot_type)} "
            f"({self.current_owner})"
        )


@dataclass
class ConflictReport:
    """Outcome of evaluating a proposal against the current week.

    Attributes:
        clean: Requested slots that are open or already owned by the proposer
        conflicts: Requested slots owned by a different participant
    """

    clean: list[SlotRef] = field(default_factory=list)
    conflicts: list[SlotConflict] = field(default_factory=list)

    @property
    def has_conflicts(self) -> bool:
        """Return True when override confirmation is required."""
        return bool(self.conflicts)

    def as_dict(self) -> dict[str, Any]:
        """Return a JSON-friendly representation (service responses)."""
        return {
            const.RESPONSE_CLEAN: [slot.as_dict() for slot in self.clean],
            const.RESPONSE_CONFLICTS: [item.as_dict() for item in self.conflicts],
        }


@dataclass
class SupersessionPlan:
    """Store changes needed to take over conflicting slots.

    Attributes:
        delete_ids: Claims owned by other participants covering a conflicting slot
        residual_claims: Replacement (participant, day, drop_off, pick_up) tuples
            for superseded claims that also covered a slot left untouched
        superseded: Superseded claims grouped by their owner
    """

    delete_ids: list[str] = field(default_factory=list)
    residual_claims: list[tuple[str, str, bool, bool]] = field(default_factory=list)
    superseded: dict[str, list[SlotClaimData]] = field(default_factory=dict)


class ConflictResolver:
    """Pure logic engine for proposal evaluation.

    All methods are static - no instance state. This enables easy unit testing
    without any Home Assistant mocking.
    """

    @staticmethod
    def requested_slots(proposed_by_day: Mapping[str, Mapping[str, Any]]) -> list[SlotRef]:
        """Flatten a proposal into (day, slot type) pairs in week order.

        Days with neither flag set are skipped. Unknown days are kept at the
        end in the order given so validation can report them.
        """
        ordered_days = [day for day in const.WEEKDAYS if day in proposed_by_day]
        ordered_days += [day for day in proposed_by_day if day not in const.WEEKDAYS]

        slots: list[SlotRef] = []
        for day in ordered_days:
            request = proposed_by_day[day]
            for slot_type in const.SLOT_TYPES:
                if request.get(slot_type):
                    slots.append(SlotRef(day, slot_type))
        return slots

    @staticmethod
    def validate_proposal(
        proposer: Participant,
        proposed_by_day: ProposalByDay,
        participants: Iterable[str],
        schedule: WeekSchedule,
    ) -> None:
        """Reject proposals the resolver must never see.

        Raises:
            InvalidProposalError: Unknown participant, empty proposal, unknown
                day, or a day currently marked as a holiday.
        """
        if proposer not in set(participants):
            raise InvalidProposalError(proposer, "unknown participant")

        slots = ConflictResolver.requested_slots(proposed_by_day)
        if not slots:
            raise InvalidProposalError(proposer, "no slots requested")

        for slot in slots:
            if slot.day not in const.WEEKDAYS:
                raise InvalidProposalError(proposer, f"unknown day '{slot.day}'")

        holidays = [
            day
            for day in ScheduleProjector.holiday_days(schedule)
            if any(slot.day == day for slot in slots)
        ]
        if holidays:
            raise InvalidProposalError(
                proposer,
                "holiday selected: "
                + ", ".join(const.LABEL_DAY[day] for day in holidays),
            )

    @staticmethod
    def evaluate(
        proposer: Participant,
        proposed_by_day: ProposalByDay,
        schedule: WeekSchedule,
    ) -> ConflictReport:
        """Split a proposal into clean slots and conflicts.

        Each (day, slot type) pair is judged on its own: one day may yield a
        clean drop-off and a conflicting pick-up. Re-claiming one's own slot
        is clean. Holidays are not inspected; callers validate first.
        """
        report = ConflictReport()
        for slot in ConflictResolver.requested_slots(proposed_by_day):
            owner = ScheduleProjector.owner_of(schedule, slot.day, slot.slot_type)
            if owner and owner != proposer:
                report.conflicts.append(SlotConflict(slot.day, slot.slot_type, owner))
            else:
                report.clean.append(slot)
        return report

    @staticmethod
    def plan_supersession(
        proposer: Participant,
        conflicts: Iterable[SlotConflict],
        claims: Iterable[SlotClaimData],
    ) -> SupersessionPlan:
        """Work out which claims an override deletes.

        Every claim by another participant that covers a conflicting slot is
        deleted, not only the effective owner's. A deleted claim that also
        covered a slot outside the conflict set is re-created for its owner
        with just that slot.
        """
        contested = {(item.day, item.slot_type) for item in conflicts}
        plan = SupersessionPlan()
        if not contested:
            return plan

        for claim in claims:
            owner = claim[const.DATA_CLAIM_PARTICIPANT]
            if owner == proposer:
                continue
            day = claim[const.DATA_CLAIM_DAY]
            covered = {
                slot_type for slot_type in const.SLOT_TYPES if claim.get(slot_type)
            }
            taken = {slot_type for slot_type in covered if (day, slot_type) in contested}
            if not taken:
                continue

            plan.delete_ids.append(claim[const.DATA_RECORD_ID])
            plan.superseded.setdefault(owner, []).append(claim)

            kept = covered - taken
            if kept:
                plan.residual_claims.append(
                    (
                        owner,
                        day,
                        const.SLOT_DROP_OFF in kept,
                        const.SLOT_PICK_UP in kept,
                    )
                )
        return plan
