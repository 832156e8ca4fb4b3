"""
Trip Entry API Endpoints.

Backs the "add trip" form: read and edit the draft, then save it.
"""

from fastapi import APIRouter, Depends, status

from inventory.app.core.dependencies import get_entry_controller
from inventory.app.core.exceptions import EntryInvalidError
from inventory.app.schemas.trip import TripDraftUpdate, TripEntryState, TripRecord
from inventory.app.services.trip_entry import TripEntryController, missing_fields

router = APIRouter(prefix="/trip-entry", tags=["Trip Entry"])


@router.get("", response_model=TripEntryState)
async def get_entry_state(controller: TripEntryController = Depends(get_entry_controller)):
    """Current draft and whether it can be saved."""
    return controller.state


@router.patch("", response_model=TripEntryState)
async def update_entry(
    changes: TripDraftUpdate,
    controller: TripEntryController = Depends(get_entry_controller)
):
    """
    Merge field values into the draft.

    A cost that is not a non-negative integer is ignored and the previous
    cost kept.
    """
    return controller.update_draft(**changes.model_dump(exclude_unset=True))


@router.post("/save", response_model=TripRecord, status_code=status.HTTP_201_CREATED)
async def save_entry(controller: TripEntryController = Depends(get_entry_controller)):
    """
    Save the draft as a new trip.

    Returns 422 without writing anything if the draft is incomplete.
    """
    saved = await controller.save()
    if saved is None:
        raise EntryInvalidError(missing_fields(controller.details))
    return saved


@router.delete("", response_model=TripEntryState)
async def reset_entry(controller: TripEntryController = Depends(get_entry_controller)):
    """Discard the draft."""
    return controller.reset()
