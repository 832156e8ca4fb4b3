"""
Trip schemas.

Value objects for persisted trips, request bodies for the HTTP surface and
the draft/form state used by trip entry.
"""

from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional

# SQLite INTEGER is a signed 64-bit value
MAX_COST = 2**63 - 1


class TripRecord(BaseModel):
    """
    A persisted trip (value object, compared by value).

    ``id`` of 0 means "not assigned yet"; the store assigns one on insert.
    """
    id: int = Field(0, ge=0)
    origin: str = Field(..., min_length=1)
    destination: str = Field(..., min_length=1)
    fare_class: str = Field(..., min_length=1, alias="class", description="Fare class label")
    cost: int = Field(..., ge=0, le=MAX_COST)

    class Config:
        from_attributes = True
        populate_by_name = True
        frozen = True


class TripCreate(BaseModel):
    """Schema for creating a trip directly (bypassing the entry form)."""
    id: Optional[int] = Field(None, ge=1, description="Explicit primary key; assigned when omitted")
    origin: str = Field(..., min_length=1, max_length=200)
    destination: str = Field(..., min_length=1, max_length=200)
    fare_class: str = Field(..., min_length=1, max_length=100, alias="class")
    cost: int = Field(..., ge=0, le=MAX_COST)

    class Config:
        populate_by_name = True

    @field_validator("origin", "destination", "fare_class")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value


class TripUpdate(TripCreate):
    """Schema for replacing every field of an existing trip."""
    id: Optional[int] = Field(None, description="Ignored; the path id wins")


class TripListResponse(BaseModel):
    """Schema for a trip list snapshot."""
    trips: List[TripRecord]
    total: int


class TripDetails(BaseModel):
    """
    In-progress draft of a trip held by the entry form.

    Has no identity in the store until it is saved.
    """
    id: int = 0
    origin: str = ""
    destination: str = ""
    fare_class: str = Field("", alias="class")
    cost: int = Field(0, ge=0, le=MAX_COST)

    class Config:
        populate_by_name = True

    def to_record(self) -> TripRecord:
        """Convert the draft to the persisted-record shape."""
        return TripRecord(
            id=self.id,
            origin=self.origin,
            destination=self.destination,
            fare_class=self.fare_class,
            cost=self.cost,
        )

    @classmethod
    def from_record(cls, record: TripRecord) -> "TripDetails":
        return cls(
            id=record.id,
            origin=record.origin,
            destination=record.destination,
            fare_class=record.fare_class,
            cost=record.cost,
        )


class TripDraftUpdate(BaseModel):
    """Partial draft values sent by a form; cost may arrive as raw text."""
    origin: Optional[str] = None
    destination: Optional[str] = None
    fare_class: Optional[str] = Field(None, alias="class")
    cost: Any = None

    class Config:
        populate_by_name = True


class TripEntryState(BaseModel):
    """Form state: the current draft and whether it can be saved."""
    details: TripDetails = Field(default_factory=TripDetails)
    is_entry_valid: bool = False

    @classmethod
    def from_record(cls, record: TripRecord, is_entry_valid: bool = False) -> "TripEntryState":
        return cls(details=TripDetails.from_record(record), is_entry_valid=is_entry_valid)
