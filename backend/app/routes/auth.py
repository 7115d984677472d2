"""
StayBook Backend — Account Route Handlers
===========================================

What:  POST /register, POST /login, POST /logout, GET /profile.
How:   Thin handlers over CredentialStore and TokenService. Login sets the
       session cookie; logout overwrites it with an empty value.

Cookie:
    name      settings.cookie_name (default "token")
    HttpOnly  always, so page scripts cannot read the session
    SameSite  strict
    Secure    settings.cookie_secure
    Max-Age   settings.session_max_age_seconds, or a browser-session cookie
              when that is 0
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings
from app.database import get_db_session
from app.schemas.common import ErrorResponse
from app.schemas.user import LoginRequest, RegisterRequest, UserResponse
from app.services.auth_gate import Identity, optional_identity
from app.services.registry import ServiceRegistry, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Account"])


def _set_session_cookie(response: Response, settings: Settings, token: str) -> None:
    response.set_cookie(
        key=settings.cookie_name,
        value=token,
        max_age=settings.session_max_age_seconds or None,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )


@router.post(
    "/register",
    response_model=UserResponse,
    responses={
        409: {"description": "Email already registered", "model": ErrorResponse},
        422: {"description": "Invalid input"},
    },
    summary="Create an account",
)
async def register(
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> UserResponse:
    """Creates an identity. Does not log the caller in."""
    user = await services.credentials.register(db, body.name, body.email, body.password)
    return UserResponse.model_validate(user)


@router.post(
    "/login",
    response_model=UserResponse,
    responses={
        404: {"description": "Unknown email", "model": ErrorResponse},
        422: {"description": "Wrong password", "model": ErrorResponse},
    },
    summary="Log in and receive the session cookie",
)
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> UserResponse:
    user = await services.credentials.authenticate(db, body.email, body.password)
    token = services.tokens.issue(user)
    _set_session_cookie(response, request.app.state.settings, token)
    logger.info("User %s logged in", user.id)
    return UserResponse.model_validate(user)


@router.post("/logout", summary="Clear the session cookie")
async def logout(request: Request, response: Response) -> bool:
    # Overwrite rather than delete so clients see an explicit empty value
    settings: Settings = request.app.state.settings
    response.set_cookie(
        key=settings.cookie_name,
        value="",
        max_age=0,
        httponly=True,
        secure=settings.cookie_secure,
        samesite="strict",
    )
    return True


@router.get(
    "/profile",
    response_model=Optional[UserResponse],
    summary="Current user, or null when not logged in",
)
async def profile(
    identity: Optional[Identity] = Depends(optional_identity),
    db: AsyncSession = Depends(get_db_session),
    services: ServiceRegistry = Depends(get_services),
) -> Optional[UserResponse]:
    """
    Reads name and email fresh from the database. A token for an identity
    that no longer exists answers null, like no token at all.
    """
    if identity is None:
        return None
    user = await services.credentials.find_by_id(db, identity.id)
    if user is None:
        return None
    return UserResponse.model_validate(user)
