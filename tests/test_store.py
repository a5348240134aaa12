"""Tests for CarpoolStore.

Covers loading and sanitizing stored data, atomic batch writes, revision
checks, record validation and snapshot subscriptions.
"""

from __future__ import annotations

from typing import Any
from unittest.mock import patch

import pytest
from freezegun import freeze_time
from homeassistant.core import HomeAssistant
from homeassistant.util.file import WriteError

from custom_components.carpool import const
from custom_components.carpool.store import (
    CarpoolStore,
    InvalidRecordError,
    RecordNotFoundError,
    StaleRevisionError,
    StoreUnavailableError,
)
from tests.helpers import create_mock_claim, create_mock_holiday


def _claim_fields(participant: str, day: str, drop_off=False, pick_up=False):
    return {
        const.DATA_CLAIM_PARTICIPANT: participant,
        const.DATA_CLAIM_DAY: day,
        const.DATA_CLAIM_DROP_OFF: drop_off,
        const.DATA_CLAIM_PICK_UP: pick_up,
    }


@pytest.fixture
async def store(hass: HomeAssistant) -> CarpoolStore:
    """Return an initialized, empty store."""
    carpool_store = CarpoolStore(hass, "test_entry_id", "carpool_test_data")
    with patch.object(carpool_store._store, "async_load", return_value=None):
        await carpool_store.async_initialize()
    return carpool_store


# =============================================================================
# Loading
# =============================================================================


async def test_initialize_without_file_uses_default_structure(
    store: CarpoolStore,
) -> None:
    """No stored file gives empty collections at revision 0."""
    assert store.data == CarpoolStore.get_default_structure()
    for collection in const.COLLECTIONS:
        assert store.records(collection) == []
        assert store.revision(collection) == 0


async def test_initialize_drops_malformed_records(hass: HomeAssistant) -> None:
    """Records failing validation never reach readers."""
    stored: dict[str, Any] = {
        const.DATA_META: {
            const.DATA_META_REVISIONS: {
                const.COLLECTION_SELECTIONS: 4,
                const.COLLECTION_HOLIDAYS: 2,
            }
        },
        const.DATA_COLLECTIONS: {
            const.COLLECTION_SELECTIONS: {
                "good": create_mock_claim(
                    "good", "Alex", const.DAY_MONDAY, drop_off=True
                ),
                "no_flags": create_mock_claim("no_flags", "Alex", const.DAY_MONDAY),
                "weekend": create_mock_claim(
                    "weekend", "Alex", "saturday", drop_off=True
                ),
                "missing": {const.DATA_RECORD_ID: "missing"},
            },
            const.COLLECTION_HOLIDAYS: {
                "h1": create_mock_holiday("h1", const.DAY_FRIDAY),
                "h2": create_mock_holiday("h2", const.DAY_FRIDAY),
            },
        },
    }
    carpool_store = CarpoolStore(hass, "test_entry_id", "carpool_test_data")
    with patch.object(carpool_store._store, "async_load", return_value=stored):
        await carpool_store.async_initialize()

    claims = carpool_store.records(const.COLLECTION_SELECTIONS)
    assert [claim[const.DATA_RECORD_ID] for claim in claims] == ["good"]
    holidays = carpool_store.records(const.COLLECTION_HOLIDAYS)
    assert [mark[const.DATA_RECORD_ID] for mark in holidays] == ["h1"]
    assert carpool_store.revision(const.COLLECTION_SELECTIONS) == 4
    assert carpool_store.revision(const.COLLECTION_HOLIDAYS) == 2


async def test_initialize_load_failure_raises(hass: HomeAssistant) -> None:
    """A storage read error surfaces as StoreUnavailableError."""
    carpool_store = CarpoolStore(hass, "test_entry_id", "carpool_test_data")
    with (
        patch.object(
            carpool_store._store, "async_load", side_effect=OSError("unreadable")
        ),
        pytest.raises(StoreUnavailableError),
    ):
        await carpool_store.async_initialize()


async def test_data_survives_reload(hass: HomeAssistant, store: CarpoolStore) -> None:
    """Saved records are read back by a fresh store on the same key."""
    claim_id = await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )

    reloaded = CarpoolStore(hass, "test_entry_id", "carpool_test_data")
    await reloaded.async_initialize()

    assert reloaded.get_record(const.COLLECTION_SELECTIONS, claim_id) is not None
    assert reloaded.revision(const.COLLECTION_SELECTIONS) == 1


# =============================================================================
# Writes
# =============================================================================


@freeze_time("2026-03-02 07:30:00", tz_offset=0)
async def test_insert_one_assigns_id_and_timestamp(store: CarpoolStore) -> None:
    """Inserted records get a store id, a creation time and a new revision."""
    claim_id = await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )

    record = store.get_record(const.COLLECTION_SELECTIONS, claim_id)
    assert record is not None
    assert record[const.DATA_RECORD_ID] == claim_id
    assert record[const.DATA_RECORD_CREATED_AT] == "2026-03-02T07:30:00+00:00"
    assert store.revision(const.COLLECTION_SELECTIONS) == 1
    assert store.revision(const.COLLECTION_HOLIDAYS) == 0


async def test_records_are_copies(store: CarpoolStore) -> None:
    """Mutating a snapshot does not touch the store."""
    await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )

    snapshot = store.records(const.COLLECTION_SELECTIONS)
    snapshot[0][const.DATA_CLAIM_PARTICIPANT] = "Mallory"

    assert store.records(const.COLLECTION_SELECTIONS)[0][
        const.DATA_CLAIM_PARTICIPANT
    ] == "Alex"


async def test_insert_rejects_claim_without_slot(store: CarpoolStore) -> None:
    """A claim with neither flag fails validation and writes nothing."""
    with pytest.raises(InvalidRecordError):
        await store.async_insert_one(
            const.COLLECTION_SELECTIONS, _claim_fields("Alex", const.DAY_MONDAY)
        )

    assert store.records(const.COLLECTION_SELECTIONS) == []
    assert store.revision(const.COLLECTION_SELECTIONS) == 0


async def test_holiday_day_is_unique(store: CarpoolStore) -> None:
    """A second mark for the same day is rejected."""
    await store.async_insert_one(
        const.COLLECTION_HOLIDAYS, {const.DATA_HOLIDAY_DAY: const.DAY_MONDAY}
    )

    with pytest.raises(InvalidRecordError):
        await store.async_insert_one(
            const.COLLECTION_HOLIDAYS, {const.DATA_HOLIDAY_DAY: const.DAY_MONDAY}
        )

    assert len(store.records(const.COLLECTION_HOLIDAYS)) == 1


async def test_delete_one_missing_id(store: CarpoolStore) -> None:
    """Deleting an unknown id raises and leaves the collection alone."""
    await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )

    with pytest.raises(RecordNotFoundError) as exc_info:
        await store.async_delete_one(const.COLLECTION_SELECTIONS, "nope")

    assert exc_info.value.record_id == "nope"
    assert len(store.records(const.COLLECTION_SELECTIONS)) == 1
    assert store.revision(const.COLLECTION_SELECTIONS) == 1


async def test_batch_is_all_or_nothing_on_bad_operation(store: CarpoolStore) -> None:
    """A failing delete rejects the inserts staged before it."""
    existing = await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )
    operations = [
        {const.BATCH_OP: const.BATCH_OP_DELETE, const.BATCH_ID: existing},
        {
            const.BATCH_OP: const.BATCH_OP_INSERT,
            const.BATCH_RECORD: _claim_fields("Blair", const.DAY_MONDAY, drop_off=True),
        },
        {const.BATCH_OP: const.BATCH_OP_DELETE, const.BATCH_ID: "missing"},
    ]

    with pytest.raises(RecordNotFoundError):
        await store.async_batch_write(const.COLLECTION_SELECTIONS, operations)

    claims = store.records(const.COLLECTION_SELECTIONS)
    assert [claim[const.DATA_RECORD_ID] for claim in claims] == [existing]
    assert store.revision(const.COLLECTION_SELECTIONS) == 1


async def test_batch_is_all_or_nothing_on_save_failure(store: CarpoolStore) -> None:
    """A rejected save leaves memory unchanged and no snapshot is sent."""
    existing = await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )
    snapshots: list[list[dict[str, Any]]] = []
    unsub = store.subscribe(const.COLLECTION_SELECTIONS, snapshots.append)
    operations = [
        {const.BATCH_OP: const.BATCH_OP_DELETE, const.BATCH_ID: existing},
        {
            const.BATCH_OP: const.BATCH_OP_INSERT,
            const.BATCH_RECORD: _claim_fields("Blair", const.DAY_MONDAY, drop_off=True),
        },
    ]

    with (
        patch.object(
            store._store,
            "_async_write_data",
            side_effect=WriteError("No space left on device"),
        ),
        pytest.raises(StoreUnavailableError),
    ):
        await store.async_batch_write(const.COLLECTION_SELECTIONS, operations)

    claims = store.records(const.COLLECTION_SELECTIONS)
    assert [claim[const.DATA_RECORD_ID] for claim in claims] == [existing]
    assert store.revision(const.COLLECTION_SELECTIONS) == 1
    assert len(snapshots) == 1
    unsub()


async def test_batch_returns_created_ids_in_order(store: CarpoolStore) -> None:
    """Created ids follow the insert order of the batch."""
    operations = [
        {
            const.BATCH_OP: const.BATCH_OP_INSERT,
            const.BATCH_RECORD: _claim_fields("Alex", day, drop_off=True),
        }
        for day in (const.DAY_MONDAY, const.DAY_TUESDAY)
    ]

    created = await store.async_batch_write(const.COLLECTION_SELECTIONS, operations)

    assert len(created) == 2
    assert [
        store.get_record(const.COLLECTION_SELECTIONS, claim_id)[const.DATA_CLAIM_DAY]
        for claim_id in created
    ] == [const.DAY_MONDAY, const.DAY_TUESDAY]
    assert store.revision(const.COLLECTION_SELECTIONS) == 1


async def test_stale_revision_is_rejected(store: CarpoolStore) -> None:
    """A batch prepared on an older revision does not apply."""
    revision = store.revision(const.COLLECTION_SELECTIONS)
    await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )

    with pytest.raises(StaleRevisionError) as exc_info:
        await store.async_batch_write(
            const.COLLECTION_SELECTIONS,
            [
                {
                    const.BATCH_OP: const.BATCH_OP_INSERT,
                    const.BATCH_RECORD: _claim_fields(
                        "Blair", const.DAY_MONDAY, drop_off=True
                    ),
                }
            ],
            expected_revision=revision,
        )

    assert exc_info.value.expected == 0
    assert exc_info.value.actual == 1
    assert len(store.records(const.COLLECTION_SELECTIONS)) == 1


async def test_guarded_collection_revision_is_checked(store: CarpoolStore) -> None:
    """A write to another collection since the read rejects the batch."""
    holiday_revision = store.revision(const.COLLECTION_HOLIDAYS)
    await store.async_insert_one(
        const.COLLECTION_HOLIDAYS, {const.DATA_HOLIDAY_DAY: const.DAY_MONDAY}
    )

    with pytest.raises(StaleRevisionError) as exc_info:
        await store.async_batch_write(
            const.COLLECTION_SELECTIONS,
            [
                {
                    const.BATCH_OP: const.BATCH_OP_INSERT,
                    const.BATCH_RECORD: _claim_fields(
                        "Alex", const.DAY_MONDAY, drop_off=True
                    ),
                }
            ],
            expected_revision=store.revision(const.COLLECTION_SELECTIONS),
            guard_revisions={const.COLLECTION_HOLIDAYS: holiday_revision},
        )

    assert exc_info.value.collection == const.COLLECTION_HOLIDAYS
    assert store.records(const.COLLECTION_SELECTIONS) == []
    assert store.revision(const.COLLECTION_SELECTIONS) == 0


async def test_write_error_is_reported(store: CarpoolStore) -> None:
    """A failed file write raises instead of committing in memory only."""
    snapshots: list[list[dict[str, Any]]] = []
    unsub = store.subscribe(const.COLLECTION_SELECTIONS, snapshots.append)

    with (
        patch.object(
            store._store,
            "_async_write_data",
            side_effect=WriteError("No space left on device"),
        ),
        pytest.raises(StoreUnavailableError),
    ):
        await store.async_insert_one(
            const.COLLECTION_SELECTIONS,
            _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
        )

    assert store.records(const.COLLECTION_SELECTIONS) == []
    assert store.revision(const.COLLECTION_SELECTIONS) == 0
    assert len(snapshots) == 1
    unsub()


async def test_unknown_collection(store: CarpoolStore) -> None:
    """Only the two carpool collections exist."""
    with pytest.raises(InvalidRecordError):
        store.records("carpoolSnacks")


# =============================================================================
# Ordering and subscriptions
# =============================================================================


async def test_records_order_by_created_at(hass: HomeAssistant) -> None:
    """order_by sorts on the field; ties keep insertion order."""
    stored = CarpoolStore.get_default_structure()
    stored[const.DATA_COLLECTIONS][const.COLLECTION_SELECTIONS] = {
        "late": create_mock_claim(
            "late",
            "Alex",
            const.DAY_MONDAY,
            drop_off=True,
            created_at="2026-01-06T08:00:00+00:00",
        ),
        "early": create_mock_claim(
            "early",
            "Blair",
            const.DAY_MONDAY,
            drop_off=True,
            created_at="2026-01-05T08:00:00+00:00",
        ),
    }
    carpool_store = CarpoolStore(hass, "test_entry_id", "carpool_test_data")
    with patch.object(carpool_store._store, "async_load", return_value=stored):
        await carpool_store.async_initialize()

    unordered = carpool_store.records(const.COLLECTION_SELECTIONS)
    ordered = carpool_store.records(
        const.COLLECTION_SELECTIONS, order_by=const.DATA_RECORD_CREATED_AT
    )

    assert [record[const.DATA_RECORD_ID] for record in unordered] == ["late", "early"]
    assert [record[const.DATA_RECORD_ID] for record in ordered] == ["early", "late"]


async def test_subscribe_streams_full_snapshots(store: CarpoolStore) -> None:
    """Subscribers get the current set at once and after every change."""
    snapshots: list[list[dict[str, Any]]] = []
    unsub = store.subscribe(
        const.COLLECTION_SELECTIONS,
        snapshots.append,
        order_by=const.DATA_RECORD_CREATED_AT,
    )
    assert snapshots == [[]]

    first = await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Alex", const.DAY_MONDAY, drop_off=True),
    )
    await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Blair", const.DAY_TUESDAY, pick_up=True),
    )
    await store.async_delete_one(const.COLLECTION_SELECTIONS, first)

    assert [len(snapshot) for snapshot in snapshots] == [0, 1, 2, 1]

    unsub()
    await store.async_insert_one(
        const.COLLECTION_SELECTIONS,
        _claim_fields("Casey", const.DAY_FRIDAY, pick_up=True),
    )
    assert len(snapshots) == 4


async def test_subscribe_is_per_collection(store: CarpoolStore) -> None:
    """Holiday writes do not notify claim subscribers."""
    snapshots: list[list[dict[str, Any]]] = []
    unsub = store.subscribe(const.COLLECTION_SELECTIONS, snapshots.append)

    await store.async_insert_one(
        const.COLLECTION_HOLIDAYS, {const.DATA_HOLIDAY_DAY: const.DAY_MONDAY}
    )

    assert snapshots == [[]]
    unsub()

