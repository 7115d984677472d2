"""
StayBook Backend — Booking Route Handlers
===========================================

What:  POST /bookings, GET /bookings, GET /bookings/{id}.
How:   Every route requires a session; the booking identity is always the
       caller. Reads are scoped to the caller's own bookings.
"""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db_session
from app.schemas.booking import BookingCreate, BookingResponse
from app.schemas.common import ErrorResponse
from app.services.auth_gate import Identity, require_identity
from app.services.registry import ServiceRegistry, get_services

router = APIRouter(tags=["Bookings"])


@router.post(
    "/bookings",
    response_model=BookingResponse,
    responses={
        400: {"description": "Invalid dates or too many guests", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        404: {"description": "Listing not found", "model": ErrorResponse},
    },
    summary="Book a listing",
)
async def create_booking(
    body: BookingCreate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> BookingResponse:
    return await services.bookings.create_booking(db, identity, body)


@router.get(
    "/bookings",
    response_model=List[BookingResponse],
    summary="The caller's bookings, listing included",
)
async def list_bookings(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> List[BookingResponse]:
    return await services.bookings.list_bookings(db, identity)


@router.get(
    "/bookings/{booking_id}",
    response_model=BookingResponse,
    responses={404: {"description": "Booking not found", "model": ErrorResponse}},
    summary="One of the caller's bookings",
)
async def get_booking(
    booking_id: str,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> BookingResponse:
    return await services.bookings.get_booking(db, identity, booking_id)
