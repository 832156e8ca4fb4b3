"""
Trip entry service.

Holds the draft trip behind the entry form, validates it and saves it
through the repository.
"""

import logging
from typing import Any, List, Optional, Union

from inventory.app.core.config import settings
from inventory.app.schemas.trip import MAX_COST, TripDetails, TripDraftUpdate, TripEntryState, TripRecord
from inventory.app.services.trip_repository import TripRepository

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("origin", "destination", "fare_class")


def parse_cost(value: Any, previous: int) -> int:
    """
    Accept a cost typed into a form.

    Anything that is not an integer in ``0..MAX_COST`` (an int or ASCII
    digit text) is rejected and ``previous`` is kept.
    """
    if isinstance(value, bool):
        return previous
    if isinstance(value, str):
        text = value.strip()
        if not (text.isascii() and text.isdigit()) or len(text) > len(str(MAX_COST)):
            return previous
        value = int(text)
    if isinstance(value, int) and 0 <= value <= MAX_COST:
        return value
    return previous


def missing_fields(details: TripDetails) -> List[str]:
    """Names of required draft fields that are blank."""
    return [name for name in REQUIRED_FIELDS if not getattr(details, name).strip()]


def validate_input(details: TripDetails) -> bool:
    """A draft is savable when origin, destination and class are all non-blank."""
    return not missing_fields(details)


def format_cost(cost: Union[int, TripRecord], currency_symbol: str = None) -> str:
    """Render a cost as currency, e.g. ``$1,250.00``."""
    amount = cost.cost if isinstance(cost, TripRecord) else cost
    symbol = settings.currency_symbol if currency_symbol is None else currency_symbol
    return f"{symbol}{amount:,.2f}"


class TripEntryController:
    """
    Form state for creating one trip.

    Two states: invalid and valid, switched only by ``update_draft``.
    ``save`` has an effect only while valid. The draft is kept after a save;
    clearing it is up to the caller (``reset``).
    """

    def __init__(self, repository: TripRepository):
        self._repository = repository
        self.state = TripEntryState()

    @property
    def details(self) -> TripDetails:
        return self.state.details

    @property
    def is_entry_valid(self) -> bool:
        return self.state.is_entry_valid

    def update_draft(self, details: Optional[TripDetails] = None, **values: Any) -> TripEntryState:
        """
        Merge new values over the draft and recompute validity.

        Args:
            details: A full replacement draft (optional)
            **values: Partial field values (origin, destination, fare_class, cost);
                ``cost`` may be raw form text

        Returns:
            The new entry state
        """
        current = details if details is not None else self.state.details
        changes = TripDraftUpdate(**values).model_dump(exclude_unset=True)

        if "cost" in changes:
            changes["cost"] = parse_cost(changes["cost"], current.cost)
        changes = {key: value for key, value in changes.items() if value is not None}

        draft = current.model_copy(update=changes)
        self.state = TripEntryState(details=draft, is_entry_valid=validate_input(draft))
        return self.state

    def load(self, record: TripRecord) -> TripEntryState:
        """Seed the draft from an existing trip."""
        draft = TripDetails.from_record(record)
        self.state = TripEntryState(details=draft, is_entry_valid=validate_input(draft))
        return self.state

    def reset(self) -> TripEntryState:
        self.state = TripEntryState()
        return self.state

    async def save(self) -> Optional[TripRecord]:
        """
        Persist the draft if it is valid.

        Returns:
            The stored trip, or None when the draft is invalid (nothing is written)

        Raises:
            StorageError: If the repository rejects the write
        """
        draft = self.state.details
        if not validate_input(draft):
            logger.debug("Save skipped; missing %s", ", ".join(missing_fields(draft)))
            return None
        saved = await self._repository.insert(draft.to_record())
        logger.info("Saved trip id=%s (%s -> %s)", saved.id, saved.origin, saved.destination)
        return saved
