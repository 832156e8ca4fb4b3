"""
Tests for the trip store.

Covers CRUD against the trips table and the live list / single-trip queries.
"""

import pytest
from pydantic import ValidationError

from inventory.app.core.exceptions import StorageError, StoreClosedError
from inventory.app.schemas.trip import MAX_COST, TripRecord
from inventory.app.services.trip_store import TripStore

# Note: store fixtures and sample trips are in conftest.py


@pytest.mark.asyncio
async def test_insert_trip_into_db(store, trip1):
    """An inserted trip shows up in the trip list."""
    await store.insert(trip1)

    all_trips = await store.get_all().first()
    assert all_trips[0] == trip1


@pytest.mark.asyncio
async def test_get_all_returns_inserted_trips(store, trip1, trip2):
    await store.insert(trip1)
    await store.insert(trip2)

    all_trips = await store.get_all().first()
    assert all_trips == [trip1, trip2]


@pytest.mark.asyncio
async def test_get_all_orders_by_id_not_by_insertion(store, trip1, trip2):
    await store.insert(trip2)
    await store.insert(trip1)

    assert await store.get_all().first() == [trip1, trip2]
    assert await store.list_trips() == [trip1, trip2]


@pytest.mark.asyncio
async def test_get_by_id_returns_trip(store, trip1):
    await store.insert(trip1)

    trip = await store.get_by_id(1).first()
    assert trip == trip1


@pytest.mark.asyncio
async def test_get_by_id_missing_emits_none(store):
    assert await store.get_by_id(42).first() is None


@pytest.mark.asyncio
async def test_delete_trips_empties_db(store, trip1, trip2):
    await store.insert(trip1)
    await store.insert(trip2)

    await store.delete(trip1)
    await store.delete(trip2)

    assert await store.get_all().first() == []


@pytest.mark.asyncio
async def test_update_trips_replaces_fields(store, trip1, trip2):
    await store.insert(trip1)
    await store.insert(trip2)

    changed = TripRecord(id=1, origin="Quito", destination="Lima", fare_class="Turista", cost=90)
    assert await store.update(changed) == 1
    assert await store.update(trip2) == 1

    all_trips = await store.get_all().first()
    assert all_trips == [changed, trip2]


@pytest.mark.asyncio
async def test_repeated_update_is_idempotent(store, trip1):
    await store.insert(trip1)
    changed = trip1.model_copy(update={"cost": 750})

    await store.update(changed)
    first_state = await store.get_all().first()
    await store.update(changed)
    second_state = await store.get_all().first()

    assert first_state == second_state == [changed]


@pytest.mark.asyncio
async def test_update_missing_trip_is_noop(store, trip1):
    await store.insert(trip1)

    affected = await store.update(TripRecord(id=99, origin="A", destination="B", fare_class="C", cost=1))

    assert affected == 0
    assert await store.get_all().first() == [trip1]


@pytest.mark.asyncio
async def test_delete_by_id_removes_only_that_trip(store, trip1, trip2):
    await store.insert(trip1)
    await store.insert(trip2)

    assert await store.delete(1) == 1

    assert await store.get_all().first() == [trip2]


@pytest.mark.asyncio
async def test_delete_missing_trip_is_noop(store, trip1):
    await store.insert(trip1)

    assert await store.delete(7) == 0
    assert await store.get_all().first() == [trip1]


@pytest.mark.asyncio
async def test_insert_assigns_id_when_zero(store, trip1):
    await store.insert(trip1)

    saved = await store.insert(TripRecord(origin="Lima", destination="Cusco", fare_class="Economica", cost=80))

    assert saved.id == 2
    assert await store.fetch(2) == saved


@pytest.mark.asyncio
async def test_duplicate_id_raises_storage_error_and_store_stays_usable(store, trip1, trip2):
    await store.insert(trip1)

    with pytest.raises(StorageError) as exc_info:
        await store.insert(trip1.model_copy(update={"origin": "Honduras"}))

    assert exc_info.value.operation == "insert"
    assert exc_info.value.error_code == "ERR_STORAGE_001"

    # The failure is confined to that insert
    await store.insert(trip2)
    assert await store.get_all().first() == [trip1, trip2]


@pytest.mark.asyncio
async def test_oversized_cost_raises_storage_error_and_store_stays_usable(store, trip1):
    # Bypasses validation the way a caller building records by hand could
    oversized = TripRecord.model_construct(
        id=5, origin="Guatemala", destination="Pimocha", fare_class="Premium", cost=2**63
    )

    with pytest.raises(StorageError) as exc_info:
        await store.insert(oversized)
    assert exc_info.value.operation == "insert"

    await store.insert(trip1)
    with pytest.raises(StorageError) as exc_info:
        await store.update(trip1.model_copy(update={"cost": 2**63}))
    assert exc_info.value.operation == "update"

    assert await store.get_all().first() == [trip1]


def test_record_rejects_cost_beyond_integer_column():
    with pytest.raises(ValidationError):
        TripRecord(id=1, origin="Guatemala", destination="Pimocha", fare_class="Premium", cost=MAX_COST + 1)


@pytest.mark.asyncio
async def test_live_list_emits_snapshot_per_change(store, trip1, trip2):
    """Subscribers see [], then [R1], then [R1, R2], and [] once both are deleted."""
    subscription = await store.get_all().subscribe()

    assert await subscription.next(timeout=1) == []

    await store.insert(trip1)
    assert await subscription.next(timeout=1) == [trip1]

    await store.insert(trip2)
    assert await subscription.next(timeout=1) == [trip1, trip2]

    await store.delete(trip1)
    await store.delete(trip2)
    assert await subscription.next(timeout=1) == [trip2]
    assert await subscription.next(timeout=1) == []

    subscription.unsubscribe()


@pytest.mark.asyncio
async def test_live_list_skips_noop_writes(store, trip1):
    await store.insert(trip1)
    subscription = await store.get_all().subscribe()
    assert await subscription.next(timeout=1) == [trip1]

    await store.update(trip1)  # same values
    await store.delete(99)     # nothing to delete

    assert subscription.pending() == []
    subscription.unsubscribe()


@pytest.mark.asyncio
async def test_subscribers_observe_same_ordered_snapshots(store, trip1, trip2):
    live = store.get_all()
    first = await live.subscribe()
    second = await live.subscribe()

    await store.insert(trip1)
    await store.insert(trip2)

    assert first.pending() == [[], [trip1], [trip1, trip2]]
    assert second.pending() == [[], [trip1], [trip1, trip2]]


@pytest.mark.asyncio
async def test_unsubscribed_listener_gets_nothing_more(store, trip1):
    subscription = await store.get_all().subscribe()
    assert await subscription.next(timeout=1) == []

    subscription.unsubscribe()
    await store.insert(trip1)

    received = [snapshot async for snapshot in subscription]
    assert received == []
    assert not subscription.active


@pytest.mark.asyncio
async def test_live_trip_stops_emitting_after_delete(store, trip1):
    await store.insert(trip1)
    subscription = await store.get_by_id(1).subscribe()
    assert await subscription.next(timeout=1) == trip1

    changed = trip1.model_copy(update={"cost": 600})
    await store.update(changed)
    assert await subscription.next(timeout=1) == changed

    await store.delete(1)
    assert subscription.pending() == []
    subscription.unsubscribe()


@pytest.mark.asyncio
async def test_live_trip_emits_once_inserted(store, trip1):
    subscription = await store.get_by_id(1).subscribe()
    assert await subscription.next(timeout=1) is None

    await store.insert(trip1)
    assert await subscription.next(timeout=1) == trip1
    subscription.unsubscribe()


@pytest.mark.asyncio
async def test_close_ends_subscriptions_and_rejects_calls(trip1):
    store = TripStore("sqlite+aiosqlite:///:memory:")
    async with store:
        subscription = await store.get_all().subscribe()
        assert await subscription.next(timeout=1) == []

    assert not store.is_open
    assert [snapshot async for snapshot in subscription] == []

    with pytest.raises(StoreClosedError):
        await store.insert(trip1)
    with pytest.raises(StoreClosedError):
        store.get_all()


@pytest.mark.asyncio
async def test_file_store_persists_across_reopen(tmp_path, trip1):
    url = f"sqlite+aiosqlite:///{tmp_path / 'trips.db'}"

    async with TripStore(url) as store:
        await store.insert(trip1)

    async with TripStore(url) as reopened:
        assert await reopened.list_trips() == [trip1]
