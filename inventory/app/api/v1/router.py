"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from inventory.app.api.v1.endpoints import trips, trip_entry

router = APIRouter()

# Trip list / detail / live stream
router.include_router(trips.router)

# Trip entry form
router.include_router(trip_entry.router)
