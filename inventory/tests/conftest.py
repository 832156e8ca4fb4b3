"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport

from inventory.app.main import app, build_services
from inventory.app.schemas.trip import TripRecord
from inventory.app.services.trip_repository import OfflineTripRepository
from inventory.app.services.trip_store import TripStore

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

VIAJE_1 = TripRecord(id=1, origin="Guatemala", destination="Pimocha", fare_class="Premium", cost=500)
VIAJE_2 = TripRecord(id=2, origin="Colombia", destination="Australia", fare_class="Economica", cost=250)


@pytest.fixture
async def store():
    """Open a fresh in-memory trip store per test and close it afterwards."""
    trip_store = TripStore(TEST_DATABASE_URL)
    await trip_store.open()
    yield trip_store
    await trip_store.close()


@pytest.fixture
def repository(store):
    return OfflineTripRepository(store)


@pytest.fixture
def trip1():
    return VIAJE_1


@pytest.fixture
def trip2():
    return VIAJE_2


@pytest.fixture
async def client(store):
    """Async client for testing, wired to the per-test store."""
    build_services(app, store)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
