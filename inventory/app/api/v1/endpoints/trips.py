"""
Trip API Endpoints.

List, inspect, replace and remove trips, and stream the live trip list.
"""

import json
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, Response, status
from fastapi.responses import StreamingResponse

from inventory.app.core.dependencies import get_repository, get_store
from inventory.app.core.exceptions import ResourceNotFoundError
from inventory.app.schemas.trip import TripCreate, TripListResponse, TripRecord, TripUpdate
from inventory.app.services.trip_repository import TripRepository
from inventory.app.services.trip_store import TripStore

router = APIRouter(prefix="/trips", tags=["Trips"])


@router.get("", response_model=TripListResponse)
async def list_trips(store: TripStore = Depends(get_store)):
    """
    List all trips in id (rowid) order.
    """
    trips = await store.list_trips()
    return TripListResponse(trips=trips, total=len(trips))


@router.post("", response_model=TripRecord, status_code=status.HTTP_201_CREATED)
async def create_trip(
    trip_data: TripCreate,
    repository: TripRepository = Depends(get_repository)
):
    """
    Create a trip directly.

    The id is assigned by the store unless one is supplied.
    A duplicate id is reported as a storage conflict.
    """
    record = TripRecord(
        id=trip_data.id or 0,
        origin=trip_data.origin,
        destination=trip_data.destination,
        fare_class=trip_data.fare_class,
        cost=trip_data.cost,
    )
    return await repository.insert(record)


@router.get("/stream")
async def stream_trips(
    limit: Optional[int] = Query(None, ge=1, description="Stop after this many snapshots"),
    repository: TripRepository = Depends(get_repository)
):
    """
    Stream the live trip list as newline-delimited JSON.

    The current list is sent first, then a new list after every change.
    """
    subscription = await repository.get_all().subscribe()

    async def snapshots():
        sent = 0
        try:
            async for trips in subscription:
                payload = [trip.model_dump(by_alias=True) for trip in trips]
                yield json.dumps(payload) + "\n"
                sent += 1
                if limit is not None and sent >= limit:
                    break
        finally:
            subscription.unsubscribe()

    return StreamingResponse(snapshots(), media_type="application/x-ndjson")


@router.get("/{trip_id}", response_model=TripRecord)
async def get_trip(
    trip_id: int = Path(..., description="Trip ID"),
    store: TripStore = Depends(get_store)
):
    """
    Get one trip.
    """
    trip = await store.fetch(trip_id)
    if trip is None:
        raise ResourceNotFoundError("Trip", trip_id)
    return trip


@router.put("/{trip_id}", response_model=TripRecord)
async def replace_trip(
    trip_data: TripUpdate,
    trip_id: int = Path(..., description="Trip ID"),
    repository: TripRepository = Depends(get_repository)
):
    """
    Replace every field of a trip.

    The store treats an unknown id as a no-op; here that becomes a 404.
    """
    record = TripRecord(
        id=trip_id,
        origin=trip_data.origin,
        destination=trip_data.destination,
        fare_class=trip_data.fare_class,
        cost=trip_data.cost,
    )
    if not await repository.update(record):
        raise ResourceNotFoundError("Trip", trip_id)
    return record


@router.delete("/{trip_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_trip(
    trip_id: int = Path(..., description="Trip ID"),
    repository: TripRepository = Depends(get_repository)
):
    """
    Delete a trip.
    """
    if not await repository.delete(trip_id):
        raise ResourceNotFoundError("Trip", trip_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
