"""
StayBook Backend — Password Hashing
=====================================

What:  One-way, salted, deliberately slow password hashing.
How:   passlib CryptContext with pbkdf2_sha256. Every call to hash() draws a
       fresh random salt, so equal passwords produce different hashes. The
       work factor (rounds) is fixed when the hasher is constructed.
Who:   CredentialStore (register and login).
"""

import logging

from passlib.context import CryptContext

logger = logging.getLogger(__name__)


class PasswordHasher:
    """
    Hashes and verifies passwords.

    Plaintext is only ever handed to passlib; comparison happens inside
    passlib on the derived keys, never on raw strings.
    """

    def __init__(self, rounds: int = 29_000):
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["pbkdf2_sha256"],
            deprecated="auto",
            pbkdf2_sha256__default_rounds=rounds,
        )

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("password must not be empty")
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """True only when `password` is the plaintext `password_hash` was made from."""
        if not password or not password_hash:
            return False
        try:
            return self._context.verify(password, password_hash)
        except (ValueError, TypeError):
            # Unrecognized or corrupted hash string
            logger.warning("Stored password hash could not be parsed")
            return False
