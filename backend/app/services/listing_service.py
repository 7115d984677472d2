"""
StayBook Backend — Listing Service
====================================

What:  Create, update and read listings ("places").
How:   Plain SQLAlchemy operations; updates go through the ownership policy
       and SQLAlchemy's version counter.
Who:   /places and /user-places route handlers; BookingService reuses
       `listing_to_response()` and `get_listing_model()`.

Update Flow (PUT /places/{id}):
    1. Fetch the listing               → NotFoundError (404)
    2. ensure_can_mutate()             → AuthorizationError (403)
    3. Compare client version, if sent → ConflictError (409)
    4. Assign every updatable field
    5. Flush: UPDATE ... WHERE version = :loaded
       another writer got there first  → ConflictError (409)

    Steps 1–3 run before any attribute is assigned, so a rejected request
    leaves the stored row and the session untouched.
"""

import logging
import uuid
from typing import List, Union

from sqlalchemy import desc, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.exceptions import ConflictError, DatabaseError, NotFoundError, StayBookError
from app.models.listing import Listing
from app.schemas.listing import (
    UPDATABLE_FIELDS,
    ListingCreate,
    ListingResponse,
    ListingUpdate,
)
from app.services.auth_gate import Identity
from app.services.ownership import ensure_can_mutate

logger = logging.getLogger(__name__)


def listing_to_response(listing: Listing) -> ListingResponse:
    return ListingResponse(
        id=listing.id,
        owner=listing.owner_id,
        title=listing.title,
        address=listing.address,
        photos=list(listing.photos or []),
        description=listing.description,
        perks=list(listing.perks or []),
        extra_info=listing.extra_info,
        check_in=listing.check_in,
        check_out=listing.check_out,
        max_guests=listing.max_guests,
        price=listing.price,
        version=listing.version,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
    )


def _parse_id(listing_id: Union[str, uuid.UUID]) -> uuid.UUID:
    if isinstance(listing_id, uuid.UUID):
        return listing_id
    try:
        return uuid.UUID(str(listing_id))
    except ValueError:
        raise NotFoundError(resource="listing", resource_id=str(listing_id))


class ListingService:
    """Stateless; every method receives the request's session."""

    async def get_listing_model(
        self,
        db: AsyncSession,
        listing_id: Union[str, uuid.UUID],
    ) -> Listing:
        lid = _parse_id(listing_id)
        try:
            listing = await db.get(Listing, lid)
        except SQLAlchemyError as e:
            logger.error("Database error fetching listing %s: %s", lid, str(e))
            raise DatabaseError(
                message="Could not retrieve the listing. Please try again.",
                context={"listing_id": str(lid)},
            )
        if listing is None:
            raise NotFoundError(resource="listing", resource_id=str(lid))
        return listing

    async def create_listing(
        self,
        db: AsyncSession,
        identity: Identity,
        data: ListingCreate,
    ) -> ListingResponse:
        listing = Listing(
            owner_id=identity.uuid,
            title=data.title,
            address=data.address,
            photos=data.photos,
            description=data.description,
            perks=data.perks,
            extra_info=data.extra_info,
            check_in=data.check_in,
            check_out=data.check_out,
            max_guests=data.max_guests,
            price=data.price,
        )
        try:
            db.add(listing)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Database error creating listing: %s", str(e))
            raise DatabaseError(
                message="Could not save the listing. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("Listing %s created by %s", listing.id, identity.id)
        return listing_to_response(listing)

    async def update_listing(
        self,
        db: AsyncSession,
        identity: Identity,
        listing_id: Union[str, uuid.UUID],
        data: ListingUpdate,
    ) -> ListingResponse:
        listing = await self.get_listing_model(db, listing_id)

        # Nothing below this line may run for a non-owner
        ensure_can_mutate(identity, listing, resource_name="listing")

        if data.version is not None and data.version != listing.version:
            raise ConflictError(
                context={
                    "listing_id": str(listing.id),
                    "expected_version": data.version,
                    "current_version": listing.version,
                }
            )

        for field in UPDATABLE_FIELDS:
            setattr(listing, field, getattr(data, field))

        try:
            await db.flush()
        except StaleDataError:
            logger.warning("Lost-update prevented on listing %s", listing.id)
            raise ConflictError(context={"listing_id": str(listing.id)})
        except SQLAlchemyError as e:
            logger.error("Database error updating listing %s: %s", listing.id, str(e))
            raise DatabaseError(
                message="Could not update the listing. Please try again.",
                context={"listing_id": str(listing.id)},
            )

        logger.info("Listing %s updated by owner (version=%d)", listing.id, listing.version)
        return listing_to_response(listing)

    async def get_listing(
        self,
        db: AsyncSession,
        listing_id: Union[str, uuid.UUID],
    ) -> ListingResponse:
        return listing_to_response(await self.get_listing_model(db, listing_id))

    async def list_listings(self, db: AsyncSession) -> List[ListingResponse]:
        """All listings, newest first."""
        return await self._select(db, select(Listing).order_by(desc(Listing.created_at)))

    async def list_owned(self, db: AsyncSession, identity: Identity) -> List[ListingResponse]:
        """Listings created by `identity`, newest first."""
        query = (
            select(Listing)
            .where(Listing.owner_id == identity.uuid)
            .order_by(desc(Listing.created_at))
        )
        return await self._select(db, query)

    async def _select(self, db: AsyncSession, query) -> List[ListingResponse]:
        try:
            result = await db.execute(query)
            return [listing_to_response(listing) for listing in result.scalars().all()]
        except StayBookError:
            raise
        except SQLAlchemyError as e:
            logger.error("Database error listing listings: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve listings. Please try again.",
                context={"error_type": type(e).__name__},
            )
