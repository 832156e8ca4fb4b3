"""
Service dependencies for FastAPI.

The trip store, repository and entry controller are created once by the
application lifespan and kept on ``app.state``.
"""

from fastapi import Request

from inventory.app.services.trip_entry import TripEntryController
from inventory.app.services.trip_repository import TripRepository
from inventory.app.services.trip_store import TripStore


def get_store(request: Request) -> TripStore:
    """FastAPI dependency returning the open trip store."""
    return request.app.state.trip_store


def get_repository(request: Request) -> TripRepository:
    """FastAPI dependency returning the trip repository."""
    return request.app.state.trip_repository


def get_entry_controller(request: Request) -> TripEntryController:
    """FastAPI dependency returning the shared trip entry form."""
    return request.app.state.trip_entry
