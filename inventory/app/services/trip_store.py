"""
Trip store.

Owns the on-disk ``trips`` table: insert, update and delete trips, and
publish live "all trips" / "one trip" queries that re-emit after every
committed change.
"""

import asyncio
import logging
import weakref
from typing import List, Optional, Union

from sqlalchemy import select, update, delete
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker

from inventory.app.core.exceptions import StorageError, StoreClosedError
from inventory.app.db.session import Base, build_engine, build_session_factory
from inventory.app.models.trip import Trip
from inventory.app.schemas.trip import TripRecord
from inventory.app.services.live_query import LiveQuery

logger = logging.getLogger(__name__)


def _to_record(row: Trip) -> TripRecord:
    return TripRecord(
        id=row.id,
        origin=row.origin,
        destination=row.destination,
        fare_class=row.fare_class,
        cost=row.cost,
    )


class TripStore:
    """
    Durable storage of trips with CRUD and live queries.

    The store has a scoped lifecycle: ``open()`` once, ``close()`` when done
    (or use it as an async context manager). One owner at a time; it is not
    meant for multi-process writers.
    """

    def __init__(self, database_url: str = None, engine: AsyncEngine = None):
        self._database_url = database_url
        self._engine: Optional[AsyncEngine] = engine
        self._owns_engine = engine is None
        self._sessions: Optional[async_sessionmaker] = None
        self._refresh_lock = asyncio.Lock()
        self._queries: "weakref.WeakSet[LiveQuery]" = weakref.WeakSet()

    @property
    def is_open(self) -> bool:
        return self._sessions is not None

    async def open(self) -> "TripStore":
        """Acquire the engine and create the trips table if missing."""
        if self.is_open:
            return self
        if self._engine is None:
            self._engine = build_engine(self._database_url)
        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        self._sessions = build_session_factory(self._engine)
        logger.info("Trip store opened (%s)", self._engine.url.render_as_string(hide_password=True))
        return self

    async def close(self) -> None:
        """Close every live subscription and release the engine."""
        if not self.is_open:
            return
        for query in list(self._queries):
            query.close()
        self._sessions = None
        if self._owns_engine and self._engine is not None:
            await self._engine.dispose()
            self._engine = None
        logger.info("Trip store closed")

    async def __aenter__(self) -> "TripStore":
        return await self.open()

    async def __aexit__(self, *args) -> None:
        await self.close()

    def _require_sessions(self) -> async_sessionmaker:
        if self._sessions is None:
            raise StoreClosedError()
        return self._sessions

    # -------- Writes --------

    async def insert(self, record: TripRecord) -> TripRecord:
        """
        Add a new trip.

        An ``id`` of 0 lets the database assign one.

        Returns:
            The persisted record, carrying its id

        Raises:
            StorageError: If the id already exists or the write fails
        """
        sessions = self._require_sessions()
        row = Trip(
            origin=record.origin,
            destination=record.destination,
            fare_class=record.fare_class,
            cost=record.cost,
        )
        if record.id:
            row.id = record.id

        async with sessions() as db:
            try:
                db.add(row)
                await db.commit()
            except (SQLAlchemyError, OverflowError) as e:
                await db.rollback()
                logger.error("Insert of trip id=%s failed: %s", record.id, e)
                raise StorageError(f"Could not insert trip: {e}", operation="insert", details={"id": record.id}) from e
            saved = _to_record(row)

        logger.debug("Inserted trip id=%s", saved.id)
        await self._notify()
        return saved

    async def update(self, record: TripRecord) -> int:
        """
        Replace every field of the trip with ``record.id``.

        Returns:
            Rows affected (0 when no such trip; that is not an error)
        """
        sessions = self._require_sessions()
        statement = (
            update(Trip)
            .where(Trip.id == record.id)
            .values({
                Trip.origin: record.origin,
                Trip.destination: record.destination,
                Trip.fare_class: record.fare_class,
                Trip.cost: record.cost,
            })
        )
        affected = await self._execute_write(sessions, statement, "update", record.id)
        if affected:
            await self._notify()
        return affected

    async def delete(self, record: Union[TripRecord, int]) -> int:
        """
        Remove the trip matching the record's id (or the given id).

        Returns:
            Rows affected (0 when no such trip; that is not an error)
        """
        sessions = self._require_sessions()
        trip_id = record.id if isinstance(record, TripRecord) else int(record)
        affected = await self._execute_write(sessions, delete(Trip).where(Trip.id == trip_id), "delete", trip_id)
        if affected:
            await self._notify()
        return affected

    async def _execute_write(self, sessions: async_sessionmaker, statement, operation: str, trip_id: int) -> int:
        async with sessions() as db:
            try:
                result = await db.execute(statement)
                await db.commit()
            except (SQLAlchemyError, OverflowError) as e:
                await db.rollback()
                logger.error("%s of trip id=%s failed: %s", operation.capitalize(), trip_id, e)
                raise StorageError(f"Could not {operation} trip: {e}", operation=operation, details={"id": trip_id}) from e
            affected = result.rowcount
        logger.debug("%s trip id=%s affected %d row(s)", operation.capitalize(), trip_id, affected)
        return affected

    # -------- Reads --------

    async def list_trips(self) -> List[TripRecord]:
        """All trips in rowid order (the INTEGER PRIMARY KEY is the rowid)."""
        sessions = self._require_sessions()
        async with sessions() as db:
            result = await db.execute(select(Trip).order_by(Trip.id))
            return [_to_record(row) for row in result.scalars().all()]

    async def fetch(self, trip_id: int) -> Optional[TripRecord]:
        """One trip by id, or None."""
        sessions = self._require_sessions()
        async with sessions() as db:
            row = await db.get(Trip, trip_id)
            return _to_record(row) if row is not None else None

    def get_all(self) -> LiveQuery:
        """Live query of every trip, in id (rowid) order."""
        self._require_sessions()
        return self._register(LiveQuery(self.list_trips, self._refresh_lock, name="trips"))

    def get_by_id(self, trip_id: int) -> LiveQuery:
        """Live query of one trip; emits None only if it is absent at subscription time."""
        self._require_sessions()

        async def load() -> Optional[TripRecord]:
            return await self.fetch(trip_id)

        return self._register(LiveQuery(load, self._refresh_lock, skip_missing=True, name=f"trip:{trip_id}"))

    def _register(self, query: LiveQuery) -> LiveQuery:
        self._queries.add(query)
        return query

    async def _notify(self) -> None:
        async with self._refresh_lock:
            for query in list(self._queries):
                try:
                    await query.refresh()
                except SQLAlchemyError:
                    logger.exception("Live query %s failed to refresh", query.name)
