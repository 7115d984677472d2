"""
StayBook Backend — Booking Schemas
====================================

The client may send a price; it is ignored. The stored price is always
computed server-side from the listing's nightly price. Date-range and
guest-cap rules are enforced by BookingService (400 with the offending field).
"""

import uuid
from datetime import date, datetime

from pydantic import AliasChoices, BaseModel, Field

from app.schemas.listing import CAMEL_CONFIG, ListingResponse


class BookingCreate(BaseModel):
    listing_id: uuid.UUID = Field(validation_alias=AliasChoices("listingId", "listing_id", "place"))
    check_in: date
    check_out: date
    guests: int = Field(default=1, ge=1, validation_alias=AliasChoices("guests", "numberOfGuests"))
    name: str = Field(min_length=1, max_length=120)
    phone: str = Field(min_length=1, max_length=40)

    model_config = CAMEL_CONFIG


class BookingResponse(BaseModel):
    id: uuid.UUID
    listing: ListingResponse
    user: uuid.UUID = Field(description="Identity that made the booking")
    check_in: date
    check_out: date
    nights: int
    guests: int
    name: str
    phone: str
    price: int
    created_at: datetime

    model_config = CAMEL_CONFIG
