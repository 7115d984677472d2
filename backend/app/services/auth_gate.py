"""
StayBook Backend — Authorization Gate
=======================================

What:  Turns the session cookie of an incoming request into an
       authenticated Identity, an anonymous context, or a failure.
How:   Reads the `token` cookie and hands it to TokenService.verify().
       The identity comes straight from the verified claims; the database is
       not consulted unless a route needs fresh profile fields.
Who:   Route handlers, through the FastAPI dependencies at the bottom of this
       module.

Outcomes:
    no cookie / empty cookie  → anonymous (not an error; public routes proceed)
    valid token               → authenticated Identity
    invalid token             → failure carrying AuthenticationError

    Protected routes use `require_identity`, which answers a failure or an
    anonymous caller with a 401 response. Nothing here raises out of a
    verification callback or aborts the request abruptly.

The gate keeps no state between requests and is safe to share across
concurrent requests.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Mapping, Optional

from fastapi import Depends, Request

from app.exceptions import AuthenticationError
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller as asserted by a verified session token."""

    id: str
    email: str

    @property
    def uuid(self) -> uuid.UUID:
        return uuid.UUID(self.id)


@dataclass(frozen=True)
class AuthContext:
    identity: Optional[Identity] = None
    failure: Optional[AuthenticationError] = None

    @property
    def is_authenticated(self) -> bool:
        return self.identity is not None

    @property
    def is_anonymous(self) -> bool:
        return self.identity is None and self.failure is None


ANONYMOUS = AuthContext()


class AuthorizationGate:
    def __init__(self, token_service: TokenService, cookie_name: str = "token"):
        self.token_service = token_service
        self.cookie_name = cookie_name

    def authenticate(self, request: Any) -> AuthContext:
        """Accepts anything with a `cookies` mapping (Starlette Request)."""
        cookies: Mapping[str, str] = getattr(request, "cookies", None) or {}
        token = cookies.get(self.cookie_name)
        if not token:
            return ANONYMOUS

        verification = self.token_service.verify(token)
        if not verification.ok:
            return AuthContext(failure=verification.error)

        claims = verification.claims
        return AuthContext(identity=Identity(id=claims.subject, email=claims.email))


# ══════════════════════════════════════════════════════════════════════════
# FastAPI Dependencies
# ══════════════════════════════════════════════════════════════════════════

def get_auth_context(request: Request) -> AuthContext:
    gate: AuthorizationGate = request.app.state.auth_gate
    return gate.authenticate(request)


def optional_identity(ctx: AuthContext = Depends(get_auth_context)) -> Optional[Identity]:
    """Identity or None. A bad token is treated like no token."""
    return ctx.identity


def require_identity(ctx: AuthContext = Depends(get_auth_context)) -> Identity:
    """Identity, or a 401 refusal via AuthenticationError."""
    if ctx.identity is not None:
        return ctx.identity
    if ctx.failure is not None:
        raise ctx.failure
    raise AuthenticationError()


def listing_reader(
    request: Request,
    ctx: AuthContext = Depends(get_auth_context),
) -> Optional[Identity]:
    """
    Gate for listing reads.

    PUBLIC_LISTING_READS=true (default): anyone may read, identity optional.
    PUBLIC_LISTING_READS=false: same as require_identity.
    """
    if request.app.state.settings.public_listing_reads:
        return ctx.identity
    return require_identity(ctx)
