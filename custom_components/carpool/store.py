# File: store.py
"""Subscribable document store for the Carpool integration.

Uses Home Assistant's Storage helper to persist two record collections
(slot claims and holiday marks) for the current week. Every write is applied
as one atomic batch: the batch is staged on a copy of the collection, saved,
and only then swapped in. Subscribers receive the full, ordered record list
of a collection through an instance-scoped dispatcher signal after each
committed change.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Callable, Iterable, Mapping
from typing import TYPE_CHECKING, Any

import voluptuous as vol
from homeassistant.core import callback
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import (
    async_dispatcher_connect,
    async_dispatcher_send,
)
from homeassistant.helpers.storage import Store
from homeassistant.util import dt as dt_util
from homeassistant.util.file import WriteError
from homeassistant.util.json import SerializationError

from . import const
from .helpers.entity_helpers import get_collection_signal

if TYPE_CHECKING:
    from homeassistant.core import HomeAssistant

    from .type_defs import BatchOperation


class CarpoolStoreError(Exception):
    """Base class for store failures."""


class StoreUnavailableError(CarpoolStoreError):
    """Raised when the storage backend rejects a load or save."""


class RecordNotFoundError(CarpoolStoreError):
    """Raised when a delete targets a record id that does not exist.

    Attributes:
        collection: Collection that was searched
        record_id: The missing id
    """

    def __init__(self, collection: str, record_id: str) -> None:
        """Initialize RecordNotFoundError."""
        self.collection = collection
        self.record_id = record_id
        super().__init__(f"Record '{record_id}' not found in '{collection}'")


class InvalidRecordError(CarpoolStoreError):
    """Raised when a record fails schema or uniqueness validation."""


class StaleRevisionError(CarpoolStoreError):
    """Raised when a batch was prepared against an outdated revision.

    Attributes:
        collection: Collection the batch targeted
        expected: Revision the caller read
        actual: Revision currently stored
    """

    def __init__(self, collection: str, expected: int, actual: int) -> None:
        """Initialize StaleRevisionError."""
        self.collection = collection
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Collection '{collection}' is at revision {actual}, expected {expected}"
        )


def _require_a_slot(record: dict[str, Any]) -> dict[str, Any]:
    """Reject claims that cover neither drop-off nor pick-up."""
    if not (record[const.DATA_CLAIM_DROP_OFF] or record[const.DATA_CLAIM_PICK_UP]):
        raise vol.Invalid("claim must cover drop_off or pick_up")
    return record


SLOT_CLAIM_SCHEMA = vol.All(
    vol.Schema(
        {
            vol.Required(const.DATA_RECORD_ID): vol.All(str, vol.Length(min=1)),
            vol.Required(const.DATA_CLAIM_PARTICIPANT): vol.All(
                str, vol.Length(min=1)
            ),
            vol.Required(const.DATA_CLAIM_DAY): vol.In(const.WEEKDAYS),
            vol.Required(const.DATA_CLAIM_DROP_OFF): bool,
            vol.Required(const.DATA_CLAIM_PICK_UP): bool,
            vol.Required(const.DATA_RECORD_CREATED_AT): str,
        }
    ),
    _require_a_slot,
)

HOLIDAY_MARK_SCHEMA = vol.Schema(
    {
        vol.Required(const.DATA_RECORD_ID): vol.All(str, vol.Length(min=1)),
        vol.Required(const.DATA_HOLIDAY_DAY): vol.In(const.WEEKDAYS),
        vol.Required(const.DATA_RECORD_CREATED_AT): str,
    }
)

RECORD_SCHEMAS = {
    const.COLLECTION_SELECTIONS: SLOT_CLAIM_SCHEMA,
    const.COLLECTION_HOLIDAYS: HOLIDAY_MARK_SCHEMA,
}

# Fields whose value may appear on at most one record per collection
UNIQUE_FIELDS = {
    const.COLLECTION_HOLIDAYS: const.DATA_HOLIDAY_DAY,
}


class CarpoolStore:
    """Subscribable record store backed by Home Assistant's Store API.

    Records are keyed by a store-assigned UUID and kept in insertion order.
    Each collection has a revision counter that increases by one per
    committed batch, so callers can detect interleaved writers.
    """

    def __init__(
        self,
        hass: HomeAssistant,
        entry_id: str,
        storage_key: str = const.STORAGE_KEY,
    ) -> None:
        """Initialize the store.

        Args:
            hass: Home Assistant core object.
            entry_id: Config entry the store belongs to (scopes the signals).
            storage_key: Key to identify storage location.
        """
        self.hass = hass
        self.entry_id = entry_id
        self._storage_key = storage_key
        self._store: Store = Store(hass, const.STORAGE_VERSION, storage_key)
        self._data: dict[str, Any] = self.get_default_structure()
        self._write_lock = asyncio.Lock()

    @staticmethod
    def get_default_structure() -> dict[str, Any]:
        """Return the canonical empty data structure."""
        return {
            const.DATA_META: {
                const.DATA_META_REVISIONS: {
                    collection: 0 for collection in const.COLLECTIONS
                },
            },
            const.DATA_COLLECTIONS: {collection: {} for collection in const.COLLECTIONS},
        }

    async def async_initialize(self) -> None:
        """Load data from storage during startup.

        Malformed records are dropped with a warning so they never reach the
        projector.

        Raises:
            StoreUnavailableError: When the storage file cannot be read.
        """
        const.LOGGER.debug("DEBUG: CarpoolStore: Loading data from storage")
        try:
            existing_data = await self._store.async_load()
        except (OSError, ValueError, HomeAssistantError) as err:
            const.LOGGER.error("ERROR: Failed to load carpool storage: %s", err)
            raise StoreUnavailableError(str(err)) from err

        if existing_data is None:
            const.LOGGER.info("INFO: No existing storage found. Initializing new data")
            self._data = self.get_default_structure()
            return

        self._data = self._sanitize(existing_data)
        const.LOGGER.debug(
            "DEBUG: Loaded existing data from storage: %s",
            {
                collection: len(records)
                for collection, records in self._data[const.DATA_COLLECTIONS].items()
            },
        )

    def _sanitize(self, raw: dict[str, Any]) -> dict[str, Any]:
        """Rebuild loaded data, keeping only records that pass validation."""
        data = self.get_default_structure()
        stored_revisions = raw.get(const.DATA_META, {}).get(
            const.DATA_META_REVISIONS, {}
        )
        stored_collections = raw.get(const.DATA_COLLECTIONS, {})

        for collection in const.COLLECTIONS:
            revision = stored_revisions.get(collection, 0)
            if isinstance(revision, int):
                data[const.DATA_META][const.DATA_META_REVISIONS][collection] = revision

            kept: dict[str, dict[str, Any]] = data[const.DATA_COLLECTIONS][collection]
            records = stored_collections.get(collection, {})
            if not isinstance(records, dict):
                const.LOGGER.warning(
                    "WARNING: Ignoring malformed collection '%s' in storage", collection
                )
                continue

            for record_id, record in records.items():
                try:
                    valid = RECORD_SCHEMAS[collection](record)
                    self._check_unique(collection, kept, valid)
                except (vol.Invalid, InvalidRecordError, TypeError) as err:
                    const.LOGGER.warning(
                        "WARNING: Dropping malformed %s record '%s': %s",
                        collection,
                        record_id,
                        err,
                    )
                    continue
                kept[valid[const.DATA_RECORD_ID]] = valid
        return data

    @property
    def data(self) -> dict[str, Any]:
        """Retrieve the in-memory data (diagnostics)."""
        return self._data

    def get_storage_path(self) -> str:
        """Get the storage file path."""
        return self._store.path

    def revision(self, collection: str) -> int:
        """Return the current revision of a collection."""
        self._require_collection(collection)
        return self._data[const.DATA_META][const.DATA_META_REVISIONS][collection]

    def records(
        self, collection: str, order_by: str | None = None
    ) -> list[dict[str, Any]]:
        """Return a snapshot of a collection.

        Args:
            collection: Collection name.
            order_by: Optional record field to sort by; ties keep insertion order.

        Returns:
            Copies of the records, in insertion order unless order_by is given.
        """
        self._require_collection(collection)
        snapshot = [
            dict(record)
            for record in self._data[const.DATA_COLLECTIONS][collection].values()
        ]
        if order_by:
            snapshot.sort(key=lambda record: str(record.get(order_by) or ""))
        return snapshot

    def get_record(self, collection: str, record_id: str) -> dict[str, Any] | None:
        """Return a copy of one record, or None."""
        self._require_collection(collection)
        record = self._data[const.DATA_COLLECTIONS][collection].get(record_id)
        return dict(record) if record is not None else None

    # -------------------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------------------

    def subscribe(
        self,
        collection: str,
        on_snapshot: Callable[[list[dict[str, Any]]], None],
        order_by: str | None = None,
    ) -> Callable[[], None]:
        """Stream full snapshots of a collection until unsubscribed.

        The callback runs once immediately with the current records and again
        after every committed change.

        Returns:
            Callable that cancels the subscription.
        """
        self._require_collection(collection)

        @callback
        def _forward() -> None:
            on_snapshot(self.records(collection, order_by))

        unsub = async_dispatcher_connect(
            self.hass, get_collection_signal(self.entry_id, collection), _forward
        )
        _forward()
        return unsub

    def _notify(self, collection: str) -> None:
        async_dispatcher_send(
            self.hass, get_collection_signal(self.entry_id, collection)
        )

    # -------------------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------------------

    async def async_insert_one(self, collection: str, record: dict[str, Any]) -> str:
        """Insert a single record and return its store-assigned id."""
        created = await self.async_batch_write(
            collection, [{const.BATCH_OP: const.BATCH_OP_INSERT, const.BATCH_RECORD: record}]
        )
        return created[0]

    async def async_delete_one(self, collection: str, record_id: str) -> None:
        """Delete a single record.

        Raises:
            RecordNotFoundError: When no record has this id.
        """
        await self.async_batch_write(
            collection, [{const.BATCH_OP: const.BATCH_OP_DELETE, const.BATCH_ID: record_id}]
        )

    async def async_batch_write(
        self,
        collection: str,
        operations: Iterable[BatchOperation],
        expected_revision: int | None = None,
        guard_revisions: Mapping[str, int] | None = None,
    ) -> list[str]:
        """Apply inserts and deletes to one collection as a single unit.

        Operations run in the order given against a staged copy. Nothing is
        visible to readers or subscribers unless every operation validates
        and the save succeeds.

        Args:
            collection: Target collection.
            operations: {"op": "insert", "record": {...}} or {"op": "delete", "id": ...}.
            expected_revision: When set, the batch is rejected unless the
                collection is still at this revision.
            guard_revisions: Other collections the batch was decided against,
                mapped to the revision read; any that moved rejects the batch.

        Returns:
            Ids of the inserted records, in operation order.

        Raises:
            StaleRevisionError: The collection, or a guarded one, changed since read.
            RecordNotFoundError: A delete targets a missing id.
            InvalidRecordError: An insert fails validation or uniqueness.
            StoreUnavailableError: The storage backend rejected the save.
        """
        self._require_collection(collection)
        async with self._write_lock:
            current_revision = self.revision(collection)
            if expected_revision is not None and expected_revision != current_revision:
                raise StaleRevisionError(collection, expected_revision, current_revision)
            for guarded, guarded_revision in (guard_revisions or {}).items():
                actual = self.revision(guarded)
                if actual != guarded_revision:
                    raise StaleRevisionError(guarded, guarded_revision, actual)

            staged = dict(self._data[const.DATA_COLLECTIONS][collection])
            created_ids: list[str] = []
            for operation in operations:
                kind = operation.get(const.BATCH_OP)
                if kind == const.BATCH_OP_INSERT:
                    record = self._build_record(
                        collection, operation.get(const.BATCH_RECORD) or {}
                    )
                    self._check_unique(collection, staged, record)
                    staged[record[const.DATA_RECORD_ID]] = record
                    created_ids.append(record[const.DATA_RECORD_ID])
                elif kind == const.BATCH_OP_DELETE:
                    record_id = operation.get(const.BATCH_ID)
                    if record_id not in staged:
                        raise RecordNotFoundError(collection, str(record_id))
                    del staged[record_id]
                else:
                    raise InvalidRecordError(f"Unknown batch operation '{kind}'")

            new_data = {
                const.DATA_META: {
                    const.DATA_META_REVISIONS: {
                        **self._data[const.DATA_META][const.DATA_META_REVISIONS],
                        collection: current_revision + 1,
                    },
                },
                const.DATA_COLLECTIONS: {
                    **self._data[const.DATA_COLLECTIONS],
                    collection: staged,
                },
            }
            await self._async_persist(new_data)
            self._data = new_data

        const.LOGGER.debug(
            "DEBUG: Committed batch to '%s' (revision %s, %s inserted)",
            collection,
            current_revision + 1,
            len(created_ids),
        )
        self._notify(collection)
        return created_ids

    def _build_record(self, collection: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Assign id and timestamp to an insert and validate it."""
        record = {
            **fields,
            const.DATA_RECORD_ID: str(uuid.uuid4()),
            const.DATA_RECORD_CREATED_AT: dt_util.utcnow().isoformat(),
        }
        try:
            return RECORD_SCHEMAS[collection](record)
        except vol.Invalid as err:
            raise InvalidRecordError(f"Invalid {collection} record: {err}") from err

    @staticmethod
    def _check_unique(
        collection: str, records: dict[str, dict[str, Any]], record: dict[str, Any]
    ) -> None:
        unique_field = UNIQUE_FIELDS.get(collection)
        if unique_field is None:
            return
        value = record[unique_field]
        for existing in records.values():
            if (
                existing[unique_field] == value
                and existing[const.DATA_RECORD_ID] != record[const.DATA_RECORD_ID]
            ):
                raise InvalidRecordError(
                    f"{collection} already has a record with {unique_field}={value}"
                )

    @staticmethod
    def _require_collection(collection: str) -> None:
        if collection not in const.COLLECTIONS:
            raise InvalidRecordError(f"Unknown collection '{collection}'")

    async def _async_persist(self, data: dict[str, Any]) -> None:
        """Save data, translating backend failures into StoreUnavailableError.

        Store.async_save logs write errors instead of raising them, so the
        wrapped document is written through the helper's write step directly
        and a failed write rejects the batch.
        """
        document = {
            "version": self._store.version,
            "minor_version": self._store.minor_version,
            "key": self._store.key,
            "data": data,
        }
        try:
            # pylint: disable-next=protected-access
            await self._store._async_write_data(self._store.path, document)
        except (WriteError, SerializationError) as err:
            const.LOGGER.error(
                "ERROR: Failed to write storage file %s: %s. "
                "Check disk space and file permissions",
                self._store.path,
                err,
            )
            raise StoreUnavailableError(str(err)) from err
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to file system error: %s. "
                "Check disk space and file permissions for %s",
                err,
                self._store.path,
            )
            raise StoreUnavailableError(str(err)) from err
        except (TypeError, ValueError) as err:
            const.LOGGER.error(
                "ERROR: Failed to save storage due to non-serializable data: %s", err
            )
            raise StoreUnavailableError(str(err)) from err
        except HomeAssistantError as err:
            const.LOGGER.error("ERROR: Storage helper rejected save: %s", err)
            raise StoreUnavailableError(str(err)) from err

    # -------------------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------------------

    async def async_delete_storage(self) -> None:
        """Delete the storage file completely from disk."""
        self._data = self.get_default_structure()
        try:
            await self._store.async_remove()
            const.LOGGER.info(
                "INFO: Storage file removed successfully: %s", self._store.path
            )
        except OSError as err:
            const.LOGGER.error(
                "ERROR: Failed to remove storage file %s: %s. Check file permissions",
                self._store.path,
                err,
            )
