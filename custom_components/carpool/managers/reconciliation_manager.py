"""Reconciliation Manager - applies slot claims to the shared store.

Orchestrates every write the integration makes:
- commit(): validate, re-check conflicts against the live store, then insert
  (and on override, supersede) claims in one atomic batch
- remove_one() / remove_all() / clear_claims(): claim deletions
- toggle_holiday(): read-check-then-write on the holiday collection

Conflict detection and supersession planning are delegated to the pure
engines. Each write carries the collection revision it was decided on; if
another writer got in first the decision is re-made against a fresh read.

Failures are returned as CommitResult values, never raised, and are not
retried beyond the stale-revision re-check.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from .. import const
from ..engines.conflict_engine import (
    ConflictResolver,
    InvalidProposalError,
    SlotConflict,
    SupersessionPlan,
)
from ..engines.schedule_engine import ScheduleProjector
from ..store import (
    InvalidRecordError,
    RecordNotFoundError,
    StaleRevisionError,
    StoreUnavailableError,
)
from .base_manager import BaseManager

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from ..coordinator import CarpoolDataCoordinator
    from ..engines.conflict_engine import ConflictReport
    from ..store import CarpoolStore
    from ..type_defs import ProposalByDay, SlotClaimData


@dataclass
class CommitResult:
    """Outcome of a store write requested by a participant.

    Attributes:
        operation: const.OPERATION_* name of the requested action
        success: True when the batch was committed (or nothing needed doing)
        reason: const.FAILURE_* code when success is False
        message: Human-readable detail for the failure or success
        created_ids: Ids of the records created for the requester
        deleted_ids: Ids of the records removed by the batch
        residual_ids: Ids of claims re-created for superseded owners
        conflicts: Conflicts found (failure) or overridden (success)
        own_claims_before: Requester's claims before the batch
        own_claims_after: Requester's claims after the batch
    """

    operation: str
    success: bool
    reason: str | None = None
    message: str = ""
    created_ids: list[str] = field(default_factory=list)
    deleted_ids: list[str] = field(default_factory=list)
    residual_ids: list[str] = field(default_factory=list)
    conflicts: list[SlotConflict] = field(default_factory=list)
    own_claims_before: list[SlotClaimData] = field(default_factory=list)
    own_claims_after: list[SlotClaimData] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        """Return True for a success that changed nothing."""
        return self.success and not self.created_ids and not self.deleted_ids

    @classmethod
    def failure(
        cls,
        operation: str,
        reason: str,
        message: str,
        conflicts: list[SlotConflict] | None = None,
    ) -> CommitResult:
        """Build a failed result."""
        return cls(
            operation=operation,
            success=False,
            reason=reason,
            message=message,
            conflicts=list(conflicts or []),
        )


class ReconciliationManager(BaseManager):
    """Apply claim proposals, removals and holiday toggles to the store.

    The store is injected explicitly; the manager keeps no copy of the
    records and reads the live collections at decision time.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        coordinator: CarpoolDataCoordinator,
        store: CarpoolStore,
    ) -> None:
        """Initialize the reconciliation manager.

        Args:
            hass: Home Assistant instance
            coordinator: Parent coordinator (participants, config entry)
            store: Record store receiving all writes
        """
        super().__init__(hass, coordinator)
        self._store = store

    async def async_setup(self) -> None:
        """Set up the manager. Nothing to subscribe to; writes are on demand."""
        const.LOGGER.debug("DEBUG: ReconciliationManager ready for %s", self.entry_id)

    # -------------------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------------------

    def _live_claims(self) -> list[SlotClaimData]:
        return self._store.records(  # type: ignore[return-value]
            const.COLLECTION_SELECTIONS, order_by=const.DATA_RECORD_CREATED_AT
        )

    def _live_schedule(self, claims: list[SlotClaimData]) -> dict[str, Any]:
        holidays = self._store.records(
            const.COLLECTION_HOLIDAYS, order_by=const.DATA_RECORD_CREATED_AT
        )
        return ScheduleProjector.project(claims, holidays)  # type: ignore[arg-type]

    def own_claims(self, participant: str) -> list[SlotClaimData]:
        """Return the participant's current claims from the live store."""
        return ScheduleProjector.own_claims(participant, self._live_claims())

    def preview(self, proposer: str, proposed_by_day: ProposalByDay) -> ConflictReport:
        """Evaluate a proposal against the live week without writing.

        Raises:
            InvalidProposalError: The proposal must not reach the resolver.
        """
        claims = self._live_claims()
        schedule = self._live_schedule(claims)
        ConflictResolver.validate_proposal(
            proposer, proposed_by_day, self.coordinator.participants, schedule
        )
        return ConflictResolver.evaluate(proposer, proposed_by_day, schedule)

    # -------------------------------------------------------------------------------------
    # Claims
    # -------------------------------------------------------------------------------------

    async def commit(
        self,
        proposer: str,
        proposed_by_day: ProposalByDay,
        allow_override: bool = False,
    ) -> CommitResult:
        """Commit a participant's proposal as one atomic batch.

        Conflicts are recomputed from the live store on every attempt. With
        conflicts and no override the commit fails with the fresh conflict
        list. With override, every other participant's claim covering a
        conflicting slot is deleted in the same batch that inserts one claim
        per proposed day.

        Args:
            proposer: Participant submitting the claims
            proposed_by_day: day -> {"drop_off": bool, "pick_up": bool}
            allow_override: Caller obtained confirmation to supersede others

        Returns:
            CommitResult with the created claim ids, or a failure reason.
        """
        operation = const.OPERATION_SUBMIT_CLAIMS
        own_before = self.own_claims(proposer)

        for attempt in range(1, const.COMMIT_MAX_ATTEMPTS + 1):
            revision = self._store.revision(const.COLLECTION_SELECTIONS)
            holiday_revision = self._store.revision(const.COLLECTION_HOLIDAYS)
            claims = self._live_claims()
            schedule = self._live_schedule(claims)

            try:
                ConflictResolver.validate_proposal(
                    proposer, proposed_by_day, self.coordinator.participants, schedule
                )
            except InvalidProposalError as err:
                return self._fail(
                    operation, const.FAILURE_INVALID_PROPOSAL, err.detail, proposer
                )

            report = ConflictResolver.evaluate(proposer, proposed_by_day, schedule)
            if report.has_conflicts and not allow_override:
                const.LOGGER.info(
                    "INFO: Commit by '%s' blocked by %s conflict(s): %s",
                    proposer,
                    len(report.conflicts),
                    ", ".join(item.describe() for item in report.conflicts),
                )
                return self._fail(
                    operation,
                    const.FAILURE_CONFLICT,
                    "slots already taken: "
                    + ", ".join(item.describe() for item in report.conflicts),
                    proposer,
                    report.conflicts,
                )

            plan = ConflictResolver.plan_supersession(proposer, report.conflicts, claims)
            operations = self._build_commit_operations(proposer, proposed_by_day, plan)

            try:
                created = await self._store.async_batch_write(
                    const.COLLECTION_SELECTIONS,
                    operations,
                    expected_revision=revision,
                    guard_revisions={const.COLLECTION_HOLIDAYS: holiday_revision},
                )
            except StaleRevisionError as err:
                const.LOGGER.debug(
                    "DEBUG: Commit attempt %s by '%s' raced another writer: %s",
                    attempt,
                    proposer,
                    err,
                )
                continue
            except StoreUnavailableError as err:
                return self._fail(
                    operation, const.FAILURE_STORE_UNAVAILABLE, str(err), proposer
                )
            except (InvalidRecordError, RecordNotFoundError) as err:
                return self._fail(
                    operation, const.FAILURE_INVALID_PROPOSAL, str(err), proposer
                )

            residual_ids = created[: len(plan.residual_claims)]
            created_ids = created[len(plan.residual_claims) :]
            result = CommitResult(
                operation=operation,
                success=True,
                message=f"{len(created_ids)} claim(s) saved",
                created_ids=created_ids,
                deleted_ids=list(plan.delete_ids),
                residual_ids=residual_ids,
                conflicts=list(report.conflicts),
                own_claims_before=own_before,
                own_claims_after=self.own_claims(proposer),
            )
            self._announce_commit(proposer, proposed_by_day, result, plan)
            return result

        return self._fail(
            operation,
            const.FAILURE_STORE_UNAVAILABLE,
            f"schedule kept changing after {const.COMMIT_MAX_ATTEMPTS} attempts",
            proposer,
        )

    @staticmethod
    def _build_commit_operations(
        proposer: str, proposed_by_day: ProposalByDay, plan: SupersessionPlan
    ) -> list[dict[str, Any]]:
        """Deletes first, then residual re-creations, then the new claims."""
        operations: list[dict[str, Any]] = [
            {const.BATCH_OP: const.BATCH_OP_DELETE, const.BATCH_ID: claim_id}
            for claim_id in plan.delete_ids
        ]
        for owner, day, drop_off, pick_up in plan.residual_claims:
            operations.append(
                {
                    const.BATCH_OP: const.BATCH_OP_INSERT,
                    const.BATCH_RECORD: {
                        const.DATA_CLAIM_PARTICIPANT: owner,
                        const.DATA_CLAIM_DAY: day,
                        const.DATA_CLAIM_DROP_OFF: drop_off,
                        const.DATA_CLAIM_PICK_UP: pick_up,
                    },
                }
            )
        for day in const.WEEKDAYS:
            request = proposed_by_day.get(day)
            if not request:
                continue
            drop_off = bool(request.get(const.SLOT_DROP_OFF))
            pick_up = bool(request.get(const.SLOT_PICK_UP))
            if not (drop_off or pick_up):
                continue
            operations.append(
                {
                    const.BATCH_OP: const.BATCH_OP_INSERT,
                    const.BATCH_RECORD: {
                        const.DATA_CLAIM_PARTICIPANT: proposer,
                        const.DATA_CLAIM_DAY: day,
                        const.DATA_CLAIM_DROP_OFF: drop_off,
                        const.DATA_CLAIM_PICK_UP: pick_up,
                    },
                }
            )
        return operations

    def _announce_commit(
        self,
        proposer: str,
        proposed_by_day: ProposalByDay,
        result: CommitResult,
        plan: SupersessionPlan,
    ) -> None:
        const.LOGGER.info(
            "INFO: '%s' committed %s claim(s), superseding %s",
            proposer,
            len(result.created_ids),
            len(plan.delete_ids),
        )
        self.emit(
            const.SIGNAL_SUFFIX_CLAIMS_COMMITTED,
            participant=proposer,
            days=[day for day in const.WEEKDAYS if day in proposed_by_day],
            created_ids=result.created_ids,
            overridden=[item.as_dict() for item in result.conflicts],
        )
        contested = {(item.day, item.slot_type) for item in result.conflicts}
        for owner, superseded in plan.superseded.items():
            slots = [
                {const.FIELD_DAY: claim[const.DATA_CLAIM_DAY], const.RESPONSE_SLOT_TYPE: slot}
                for claim in superseded
                for slot in const.SLOT_TYPES
                if claim.get(slot) and (claim[const.DATA_CLAIM_DAY], slot) in contested
            ]
            self.emit(
                const.SIGNAL_SUFFIX_CLAIMS_SUPERSEDED,
                participant=owner,
                superseded_by=proposer,
                slots=slots,
            )

    async def remove_one(self, claim_id: str) -> CommitResult:
        """Delete a single claim by id."""
        operation = const.OPERATION_REMOVE_CLAIM
        claim = self._store.get_record(const.COLLECTION_SELECTIONS, claim_id)
        try:
            await self._store.async_delete_one(const.COLLECTION_SELECTIONS, claim_id)
        except RecordNotFoundError as err:
            return self._fail(operation, const.FAILURE_NOT_FOUND, str(err))
        except StoreUnavailableError as err:
            return self._fail(operation, const.FAILURE_STORE_UNAVAILABLE, str(err))

        result = CommitResult(
            operation=operation,
            success=True,
            message="1 claim removed",
            deleted_ids=[claim_id],
        )
        self._announce_removal(result, [claim] if claim else [])
        return result

    async def remove_all(
        self, claim_ids: list[str], operation: str = const.OPERATION_CLEAR_CLAIMS
    ) -> CommitResult:
        """Delete several claims atomically; any missing id rejects the batch."""
        unique_ids = list(dict.fromkeys(claim_ids))
        if not unique_ids:
            return CommitResult(
                operation=operation, success=True, message="nothing to remove"
            )

        removed = [
            claim
            for claim_id in unique_ids
            if (claim := self._store.get_record(const.COLLECTION_SELECTIONS, claim_id))
        ]
        operations = [
            {const.BATCH_OP: const.BATCH_OP_DELETE, const.BATCH_ID: claim_id}
            for claim_id in unique_ids
        ]
        try:
            await self._store.async_batch_write(const.COLLECTION_SELECTIONS, operations)
        except RecordNotFoundError as err:
            return self._fail(operation, const.FAILURE_NOT_FOUND, str(err))
        except StoreUnavailableError as err:
            return self._fail(operation, const.FAILURE_STORE_UNAVAILABLE, str(err))

        result = CommitResult(
            operation=operation,
            success=True,
            message=f"{len(unique_ids)} claim(s) removed",
            deleted_ids=unique_ids,
        )
        self._announce_removal(result, removed)
        return result

    async def clear_claims(self, participant: str | None = None) -> CommitResult:
        """Delete every claim, or every claim of one participant."""
        if participant is not None and participant not in self.coordinator.participants:
            return self._fail(
                const.OPERATION_CLEAR_CLAIMS,
                const.FAILURE_INVALID_PROPOSAL,
                f"unknown participant '{participant}'",
                participant,
            )
        claim_ids = [
            claim[const.DATA_RECORD_ID]
            for claim in self._live_claims()
            if participant is None or claim[const.DATA_CLAIM_PARTICIPANT] == participant
        ]
        return await self.remove_all(claim_ids, const.OPERATION_CLEAR_CLAIMS)

    def _announce_removal(
        self, result: CommitResult, removed: list[dict[str, Any]]
    ) -> None:
        const.LOGGER.info(
            "INFO: %s removed %s claim(s)", result.operation, len(result.deleted_ids)
        )
        self.emit(
            const.SIGNAL_SUFFIX_CLAIMS_REMOVED,
            operation=result.operation,
            deleted_ids=result.deleted_ids,
            participants=sorted(
                {claim[const.DATA_CLAIM_PARTICIPANT] for claim in removed}
            ),
        )

    # -------------------------------------------------------------------------------------
    # Holidays
    # -------------------------------------------------------------------------------------

    async def toggle_holiday(self, day: str) -> CommitResult:
        """Mark a weekday as a holiday, or unmark it if already marked.

        Claims on the day are left untouched, so unmarking restores the
        previous ownership.
        """
        operation = const.OPERATION_TOGGLE_HOLIDAY
        if day not in const.WEEKDAYS:
            return self._fail(
                operation, const.FAILURE_INVALID_PROPOSAL, f"unknown day '{day}'"
            )

        for _attempt in range(const.COMMIT_MAX_ATTEMPTS):
            revision = self._store.revision(const.COLLECTION_HOLIDAYS)
            existing = [
                mark
                for mark in self._store.records(const.COLLECTION_HOLIDAYS)
                if mark[const.DATA_HOLIDAY_DAY] == day
            ]
            if existing:
                operations = [
                    {const.BATCH_OP: const.BATCH_OP_DELETE, const.BATCH_ID: mark[const.DATA_RECORD_ID]}
                    for mark in existing
                ]
            else:
                operations = [
                    {
                        const.BATCH_OP: const.BATCH_OP_INSERT,
                        const.BATCH_RECORD: {const.DATA_HOLIDAY_DAY: day},
                    }
                ]

            try:
                created = await self._store.async_batch_write(
                    const.COLLECTION_HOLIDAYS, operations, expected_revision=revision
                )
            except StaleRevisionError:
                continue
            except StoreUnavailableError as err:
                return self._fail(operation, const.FAILURE_STORE_UNAVAILABLE, str(err))
            except (InvalidRecordError, RecordNotFoundError) as err:
                return self._fail(operation, const.FAILURE_INVALID_PROPOSAL, str(err))

            is_holiday = not existing
            const.LOGGER.info(
                "INFO: %s %s as a holiday",
                "Marked" if is_holiday else "Unmarked",
                const.LABEL_DAY[day],
            )
            self.emit(const.SIGNAL_SUFFIX_HOLIDAY_TOGGLED, day=day, is_holiday=is_holiday)
            return CommitResult(
                operation=operation,
                success=True,
                message=f"{const.LABEL_DAY[day]} is {'now' if is_holiday else 'no longer'} a holiday",
                created_ids=created,
                deleted_ids=[mark[const.DATA_RECORD_ID] for mark in existing],
            )

        return self._fail(
            operation,
            const.FAILURE_STORE_UNAVAILABLE,
            f"holidays kept changing after {const.COMMIT_MAX_ATTEMPTS} attempts",
        )

    # -------------------------------------------------------------------------------------
    # Failures
    # -------------------------------------------------------------------------------------

    def _fail(
        self,
        operation: str,
        reason: str,
        message: str,
        participant: str | None = None,
        conflicts: list[SlotConflict] | None = None,
    ) -> CommitResult:
        const.LOGGER.warning(
            "WARNING: %s failed (%s): %s", operation, reason, message
        )
        self.emit(
            const.SIGNAL_SUFFIX_OPERATION_FAILED,
            operation=operation,
            reason=reason,
            message=message,
            participant=participant,
        )
        return CommitResult.failure(operation, reason, message, conflicts)
