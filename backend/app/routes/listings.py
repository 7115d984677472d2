"""
StayBook Backend — Listing Route Handlers
===========================================

What:  POST /places, PUT /places/{id}, GET /places, GET /places/{id},
       GET /user-places.
How:   Identity comes from the authorization gate; the owner is always the
       caller and never read from the body. Reads of /places are public or
       session-only depending on PUBLIC_LISTING_READS.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.listing import ListingCreate, ListingResponse, ListingUpdate
from app.services.auth_gate import Identity, listing_reader, require_identity
from app.services.registry import ServiceRegistry, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Listings"])


@router.post(
    "/places",
    response_model=ListingResponse,
    responses={401: {"description": "Not logged in", "model": ErrorResponse}},
    summary="Create a listing owned by the caller",
)
async def create_place(
    body: ListingCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> ListingResponse:
    return await services.listings.create_listing(db, identity, body)


@router.put(
    "/places/{listing_id}",
    response_model=ListingResponse,
    responses={
        401: {"description": "Not logged in", "model": ErrorResponse},
        403: {"description": "Caller does not own the listing", "model": ErrorResponse},
        404: {"description": "Listing not found", "model": ErrorResponse},
        409: {"description": "Listing changed since it was read", "model": ErrorResponse},
    },
    summary="Replace a listing's editable fields",
)
async def update_place(
    listing_id: str,
    body: ListingUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> ListingResponse:
    return await services.listings.update_listing(db, identity, listing_id, body)


@router.get(
    "/user-places",
    response_model=List[ListingResponse],
    summary="Listings owned by the caller",
)
async def list_user_places(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> List[ListingResponse]:
    return await services.listings.list_owned(db, identity)


@router.get(
    "/places",
    response_model=List[ListingResponse],
    summary="All listings",
)
async def list_places(
    _reader: Optional[Identity] = Depends(listing_reader),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> List[ListingResponse]:
    return await services.listings.list_listings(db)


@router.get(
    "/places/{listing_id}",
    response_model=ListingResponse,
    responses={404: {"description": "Listing not found", "model": ErrorResponse}},
    summary="One listing",
)
async def get_place(
    listing_id: str,
    _reader: Optional[Identity] = Depends(listing_reader),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> ListingResponse:
    return await services.listings.get_listing(db, listing_id)
