"""
StayBook Backend — Session Token Service
==========================================

What:  Issues and verifies signed, stateless session tokens.
How:   PyJWT with an HMAC algorithm (HS256 by default) and a server-held
       secret. Claims:
           sub    identity id (canonical UUID string)
           email  identity email
           iat    issued-at (unix seconds)
           exp    expiry, only when a max age is configured
Who:   Issued by the /login route, verified by AuthorizationGate on every
       request that carries the session cookie.

Verification Result:
    verify() never raises for a bad token. It returns a TokenVerification
    that is either ok (with claims) or failed (with an AuthenticationError).
    Every failure carries the same message whatever went wrong (signature,
    format, expiry, missing claim), so the response cannot be used as an
    oracle.

Tokens are not stored anywhere. Changing the secret invalidates all of them
at once; there is no revocation list.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from app.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

INVALID_TOKEN_MESSAGE = "Invalid or expired session. Please log in again."


@dataclass(frozen=True)
class TokenClaims:
    subject: str
    email: str
    issued_at: datetime
    expires_at: Optional[datetime] = None


@dataclass(frozen=True)
class TokenVerification:
    """Outcome of TokenService.verify(): exactly one of claims / error is set."""

    claims: Optional[TokenClaims] = None
    error: Optional[AuthenticationError] = None

    @property
    def ok(self) -> bool:
        return self.claims is not None

    @classmethod
    def success(cls, claims: TokenClaims) -> "TokenVerification":
        return cls(claims=claims)

    @classmethod
    def failure(cls) -> "TokenVerification":
        return cls(error=AuthenticationError(message=INVALID_TOKEN_MESSAGE))

    def unwrap(self) -> TokenClaims:
        """Returns the claims or raises the carried AuthenticationError."""
        if self.claims is None:
            raise self.error or AuthenticationError(message=INVALID_TOKEN_MESSAGE)
        return self.claims


class TokenService:
    """
    Signs and verifies session tokens with one process-wide secret.

    Args:
        secret: HMAC key; must be non-empty
        algorithm: HS256 / HS384 / HS512
        max_age_seconds: token lifetime; 0 issues tokens without `exp`
    """

    def __init__(self, secret: str, algorithm: str = "HS256", max_age_seconds: int = 0):
        if not secret:
            raise ValueError("token secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.max_age_seconds = max_age_seconds

    def issue(self, identity: Any) -> str:
        """Sign a token for anything with `id` and `email` attributes (a User)."""
        now = datetime.now(timezone.utc)
        payload: Dict[str, Any] = {
            "sub": str(identity.id),
            "email": identity.email,
            "iat": int(now.timestamp()),
        }
        if self.max_age_seconds:
            payload["exp"] = int((now + timedelta(seconds=self.max_age_seconds)).timestamp())
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenVerification:
        if not token:
            return TokenVerification.failure()

        required = ["sub", "iat"]
        if self.max_age_seconds:
            required.append("exp")

        try:
            # decode() checks the signature before any claim is read
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": required},
            )
        except jwt.InvalidTokenError as e:
            logger.info("Session token rejected: %s", type(e).__name__)
            return TokenVerification.failure()

        subject = payload.get("sub")
        email = payload.get("email")
        if not isinstance(subject, str) or not isinstance(email, str) or not email:
            logger.info("Session token rejected: missing identity claims")
            return TokenVerification.failure()
        try:
            subject = str(uuid.UUID(subject))
        except ValueError:
            logger.info("Session token rejected: malformed subject")
            return TokenVerification.failure()

        exp = payload.get("exp")
        return TokenVerification.success(
            TokenClaims(
                subject=subject,
                email=email,
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None,
            )
        )
