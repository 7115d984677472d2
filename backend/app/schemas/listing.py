"""
StayBook Backend — Listing Schemas
====================================

What:  Request/response models for /places and /user-places.
How:   Fields are snake_case in Python and camelCase on the wire
       (extraInfo, checkIn, maxGuests, ...) to match the web client.

Update Contract (PUT /places/{id}):
    Full replacement. Every updatable field below is required; there is no
    "leave unchanged if missing" behaviour. `id` and `owner` are not part of
    the request and can never be changed. `version` is optional: when sent,
    the update is rejected with 409 unless it matches the stored version.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

CAMEL_CONFIG = {
    "alias_generator": to_camel,
    "populate_by_name": True,
}

# The web client sends photos as "addedPhotos"
PHOTOS_ALIASES = AliasChoices("photos", "addedPhotos")

UPDATABLE_FIELDS = (
    "title",
    "address",
    "photos",
    "description",
    "perks",
    "extra_info",
    "check_in",
    "check_out",
    "max_guests",
    "price",
)


def _clean_list(values: List[str]) -> List[str]:
    return [v.strip() for v in values if v and v.strip()]


class ListingCreate(BaseModel):
    """Body of POST /places. Only the title is mandatory."""
    title: str = Field(min_length=1, max_length=200)
    address: str = Field(default="", max_length=500)
    photos: List[str] = Field(default_factory=list, validation_alias=PHOTOS_ALIASES)
    description: str = Field(default="", max_length=10_000)
    perks: List[str] = Field(default_factory=list)
    extra_info: str = Field(default="", max_length=10_000)
    check_in: str = Field(default="", max_length=20)
    check_out: str = Field(default="", max_length=20)
    max_guests: int = Field(default=1, ge=1, le=100)
    price: int = Field(default=0, ge=0, le=1_000_000)

    model_config = CAMEL_CONFIG

    @field_validator("photos", "perks")
    @classmethod
    def strip_entries(cls, v: List[str]) -> List[str]:
        return _clean_list(v)


class ListingUpdate(BaseModel):
    """Body of PUT /places/{id}. All fields required (full replacement)."""
    title: str = Field(min_length=1, max_length=200)
    address: str = Field(max_length=500)
    photos: List[str] = Field(validation_alias=PHOTOS_ALIASES)
    description: str = Field(max_length=10_000)
    perks: List[str]
    extra_info: str = Field(max_length=10_000)
    check_in: str = Field(max_length=20)
    check_out: str = Field(max_length=20)
    max_guests: int = Field(ge=1, le=100)
    price: int = Field(ge=0, le=1_000_000)
    version: Optional[int] = Field(
        default=None,
        ge=1,
        description="Version the client edited; mismatch → 409",
    )

    model_config = CAMEL_CONFIG

    @field_validator("photos", "perks")
    @classmethod
    def strip_entries(cls, v: List[str]) -> List[str]:
        return _clean_list(v)


class ListingResponse(BaseModel):
    id: uuid.UUID
    owner: uuid.UUID = Field(description="Identity that created the listing")
    title: str
    address: str
    photos: List[str]
    description: str
    perks: List[str]
    extra_info: str
    check_in: str
    check_out: str
    max_guests: int
    price: int
    version: int
    created_at: datetime
    updated_at: datetime

    model_config = CAMEL_CONFIG
