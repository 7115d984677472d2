"""
StayBook Backend — Booking SQLAlchemy Model
=============================================

What:  ORM model for the `bookings` table.
Who:   BookingService creates rows for the authenticated identity and lists
       them back only to that identity.

The listing is loaded together with the booking (selectin) because every
read path returns the booking with its listing joined in.
"""

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base
from app.models.listing import Listing


class Booking(Base):
    """A reservation of a listing for a date range."""

    __tablename__ = "bookings"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    listing_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("listings.id"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id"),
        nullable=False,
    )

    check_in: Mapped[date] = mapped_column(Date, nullable=False)
    check_out: Mapped[date] = mapped_column(Date, nullable=False)
    guests: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    # Contact details of the guest, may differ from the account name
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)

    # nights * listing.price at booking time
    price: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    listing: Mapped[Listing] = relationship(lazy="selectin")

    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_bookings_date_range"),
        Index("idx_bookings_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<Booking(id={self.id}, listing_id={self.listing_id}, "
            f"{self.check_in}..{self.check_out})>"
        )
