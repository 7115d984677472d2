"""
StayBook Backend — Booking Service
====================================

What:  Creates bookings for the authenticated identity and reads them back.
Who:   /bookings route handlers.

Rules:
    - check_out must be strictly after check_in      → 400 (field check_out)
    - guests must not exceed the listing's max_guests → 400 (field guests)
    - the listing must exist                          → 404
    - price = nights * listing.price, computed here; any client value is ignored
    - a booking is only ever visible to the identity that made it; another
      user's booking id answers 404, not 403, so ids cannot be enumerated
"""

import logging
import uuid
from datetime import date
from typing import List, Union

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import DatabaseError, NotFoundError, ValidationError
from app.models.booking import Booking
from app.schemas.booking import BookingCreate, BookingResponse
from app.services.auth_gate import Identity
from app.services.listing_service import ListingService, listing_to_response

logger = logging.getLogger(__name__)


def nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        listing=listing_to_response(booking.listing),
        user=booking.user_id,
        check_in=booking.check_in,
        check_out=booking.check_out,
        nights=nights(booking.check_in, booking.check_out),
        guests=booking.guests,
        name=booking.name,
        phone=booking.phone,
        price=booking.price,
        created_at=booking.created_at,
    )


class BookingService:
    def __init__(self, listings: ListingService):
        self.listings = listings

    async def create_booking(
        self,
        db: AsyncSession,
        identity: Identity,
        data: BookingCreate,
    ) -> BookingResponse:
        stay = nights(data.check_in, data.check_out)
        if stay < 1:
            raise ValidationError(
                message="Check-out date must be after the check-in date",
                field="check_out",
                context={"check_in": data.check_in.isoformat(), "check_out": data.check_out.isoformat()},
            )

        listing = await self.listings.get_listing_model(db, data.listing_id)
        if data.guests > listing.max_guests:
            raise ValidationError(
                message=f"This place accepts at most {listing.max_guests} guests",
                field="guests",
                context={"max_guests": listing.max_guests},
            )

        booking = Booking(
            listing_id=listing.id,
            user_id=identity.uuid,
            check_in=data.check_in,
            check_out=data.check_out,
            guests=data.guests,
            name=data.name.strip(),
            phone=data.phone.strip(),
            price=stay * listing.price,
        )
        booking.listing = listing
        try:
            db.add(booking)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating booking: %s", str(e))
            raise DatabaseError(
                message="Could not save the booking. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Booking %s created: listing=%s nights=%d price=%d",
            booking.id,
            listing.id,
            stay,
            booking.price,
        )
        return booking_to_response(booking)

    async def list_bookings(self, db: AsyncSession, identity: Identity) -> List[BookingResponse]:
        """Caller's bookings, newest first."""
        query = (
            select(Booking)
            .where(Booking.user_id == identity.uuid)
            .order_by(desc(Booking.created_at))
        )
        try:
            result = await db.execute(query)
            return [booking_to_response(b) for b in result.scalars().all()]
        except SQLAlchemyError as e:
            logger.error("Database error listing bookings: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve bookings. Please try again.",
                context={"error_type": type(e).__name__},
            )

    async def get_booking(
        self,
        db: AsyncSession,
        identity: Identity,
        booking_id: Union[str, uuid.UUID],
    ) -> BookingResponse:
        try:
            bid = booking_id if isinstance(booking_id, uuid.UUID) else uuid.UUID(str(booking_id))
        except ValueError:
            raise NotFoundError(resource="booking", resource_id=str(booking_id))

        try:
            booking = await db.get(Booking, bid)
        except SQLAlchemyError as e:
            logger.error("Database error fetching booking %s: %s", bid, str(e))
            raise DatabaseError(
                message="Could not retrieve the booking. Please try again.",
                context={"booking_id": str(bid)},
            )

        if booking is None or booking.user_id != identity.uuid:
            raise NotFoundError(resource="booking", resource_id=str(bid))
        return booking_to_response(booking)
