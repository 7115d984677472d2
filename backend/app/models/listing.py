"""
StayBook Backend — Listing SQLAlchemy Model
=============================================

What:  ORM model for the `listings` table (bookable places).
Who:   ListingService for CRUD; BookingService reads price and guest cap.

Ownership:
    owner_id is set from the authenticated identity at creation and is never
    assigned again. Updates are gated by the ownership policy.

Optimistic Concurrency:
    `version` is SQLAlchemy's version_id_col. Every UPDATE is issued as
    `... WHERE id = :id AND version = :loaded_version`; if another request
    updated the row first, SQLAlchemy raises StaleDataError on flush and the
    service answers 409 instead of silently overwriting.
"""

import uuid
from datetime import datetime, timezone
from typing import List

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Listing(Base):
    """A property that can be booked."""

    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[str] = mapped_column(String(500), nullable=False, default="")

    # Stored filenames relative to STORAGE_ROOT, in display order
    photos: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    perks: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    extra_info: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Time-of-day text as entered by the host, e.g. "14:00"
    check_in: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    check_out: Mapped[str] = mapped_column(String(20), nullable=False, default="")

    max_guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Whole currency units per night
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        Index("idx_listings_owner_id", "owner_id"),
    )

    def __repr__(self) -> str:
        return f"<Listing(id={self.id}, owner_id={self.owner_id}, title='{self.title}')>"
