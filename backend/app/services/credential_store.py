"""
StayBook Backend — Credential Store
=====================================

What:  Registration, lookup and password check for user identities.
How:   Thin service over the `users` table; passwords go through
       PasswordHasher and only the hash is persisted.
Who:   Auth routes (/register, /login, /profile).

Error Mapping:
    email already registered       → DuplicateEmailError (409)
    unknown email at login         → NotFoundError (404)
    wrong password at login        → InvalidCredentialsError (422)
    any SQLAlchemy failure         → DatabaseError (500), never retried
"""

import logging
import uuid
from typing import Optional, Union

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    DatabaseError,
    DuplicateEmailError,
    InvalidCredentialsError,
    NotFoundError,
    ValidationError,
)
from app.models.user import User
from app.services.password_hasher import PasswordHasher

logger = logging.getLogger(__name__)


class CredentialStore:
    """Persists identities; the only component that sees plaintext passwords."""

    def __init__(self, hasher: PasswordHasher):
        self.hasher = hasher

    async def register(
        self,
        db: AsyncSession,
        name: str,
        email: str,
        password: str,
    ) -> User:
        """
        Create a new identity.

        The email is checked up front for a friendly error, and the unique
        index catches the race where two registrations for the same email
        arrive together.

        Raises:
            ValidationError: blank name, email or password
            DuplicateEmailError: email already registered
            DatabaseError: persistence failed
        """
        if not name or not name.strip():
            raise ValidationError(message="Name must not be blank", field="name")
        if not email or not email.strip():
            raise ValidationError(message="Email must not be blank", field="email")
        if not password:
            raise ValidationError(message="Password must not be blank", field="password")

        if await self.find_by_email(db, email) is not None:
            raise DuplicateEmailError(email)

        user = User(
            name=name.strip(),
            email=email,
            password_hash=self.hasher.hash(password),
        )
        try:
            db.add(user)
            await db.flush()
        except IntegrityError:
            logger.info("Concurrent registration for an existing email rejected")
            raise DuplicateEmailError(email)
        except SQLAlchemyError as e:
            logger.error("Database error registering user: %s", str(e))
            raise DatabaseError(
                message="Could not create the account. Please try again.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User registered: %s", user.id)
        return user

    async def find_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        try:
            result = await db.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error looking up user by email: %s", str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def find_by_id(
        self,
        db: AsyncSession,
        user_id: Union[str, uuid.UUID],
    ) -> Optional[User]:
        """Returns None for unknown or malformed ids."""
        if not isinstance(user_id, uuid.UUID):
            try:
                user_id = uuid.UUID(str(user_id))
            except ValueError:
                return None
        try:
            return await db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error("Database error looking up user %s: %s", user_id, str(e))
            raise DatabaseError(context={"error_type": type(e).__name__})

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Check a login attempt.

        Raises:
            NotFoundError: no identity with this email
            InvalidCredentialsError: password does not match
        """
        user = await self.find_by_email(db, email)
        if user is None:
            raise NotFoundError(resource="user")

        if not self.hasher.verify(password, user.password_hash):
            logger.info("Failed login for user %s", user.id)
            raise InvalidCredentialsError()

        return user
