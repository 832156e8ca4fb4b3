"""
Trip repository.

Callers depend on the ``TripRepository`` interface rather than on the
storage technology; ``OfflineTripRepository`` forwards to the local store.
"""

from abc import ABC, abstractmethod
from typing import Union

from inventory.app.schemas.trip import TripRecord
from inventory.app.services.live_query import LiveQuery
from inventory.app.services.trip_store import TripStore


class TripRepository(ABC):
    """Insert, update, delete and observe trips."""

    @abstractmethod
    async def insert(self, record: TripRecord) -> TripRecord:
        ...

    @abstractmethod
    async def update(self, record: TripRecord) -> int:
        ...

    @abstractmethod
    async def delete(self, record: Union[TripRecord, int]) -> int:
        ...

    @abstractmethod
    def get_all(self) -> LiveQuery:
        ...

    @abstractmethod
    def get_by_id(self, trip_id: int) -> LiveQuery:
        ...


class OfflineTripRepository(TripRepository):
    """Pass-through to a ``TripStore``; adds no logic of its own."""

    def __init__(self, store: TripStore):
        self._store = store

    async def insert(self, record: TripRecord) -> TripRecord:
        return await self._store.insert(record)

    async def update(self, record: TripRecord) -> int:
        return await self._store.update(record)

    async def delete(self, record: Union[TripRecord, int]) -> int:
        return await self._store.delete(record)

    def get_all(self) -> LiveQuery:
        return self._store.get_all()

    def get_by_id(self, trip_id: int) -> LiveQuery:
        return self._store.get_by_id(trip_id)
