"""
StayBook Backend — User SQLAlchemy Model
==========================================

What:  ORM model for the `users` table (the credential store).
Who:   Written by CredentialStore.register(); read at login and by /profile.

Invariants:
    - email is unique (unique index) and stored exactly as submitted
    - password_hash holds a passlib hash string, never the plaintext
    - rows are never updated or deleted by the API
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class User(Base):
    """A registered account."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(String(120), nullable=False)

    email: Mapped[str] = mapped_column(
        String(320),
        nullable=False,
        unique=True,
        index=True,
    )

    # passlib pbkdf2_sha256 format: $pbkdf2-sha256$<rounds>$<salt>$<checksum>
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        # password_hash intentionally left out
        return f"<User(id={self.id}, email='{self.email}')>"
