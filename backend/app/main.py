"""
StayBook Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app(settings)` builds every service from one frozen Settings
       value, stores them on `app.state`, and wires middleware, exception
       handlers and routes.
Who:   uvicorn (`uvicorn app.main:app`) and the test suite, which calls
       `create_app(test_settings)` directly.

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                         FastAPI App                          │
    │                                                              │
    │  Middleware:  Rate Limit → Request ID → Logging → GZip → CORS │
    │                                                              │
    │  app.state:                                                  │
    │    settings      frozen Settings                             │
    │    database      engine + session factory                    │
    │    auth_gate     cookie → Identity / anonymous / failure     │
    │    services      ServiceRegistry (credentials, tokens,       │
    │                  listings, bookings, files, fetcher)         │
    │                                                              │
    │  Routes:  /register /login /logout /profile                  │
    │           /places /user-places /bookings                     │
    │           /upload /upload-by-link /uploads/{path} /health    │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration check, storage directory
    Shutdown: dispose the database engine
"""

import logging
import secrets
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import Settings, get_settings
from app.database import Database
from app.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DatabaseError,
    DuplicateEmailError,
    FileStorageError,
    InvalidCredentialsError,
    NotFoundError,
    RateLimitExceededError,
    RemoteFetchError,
    StayBookError,
    ValidationError,
)
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import auth, bookings, health, listings, uploads
from app.services.auth_gate import AuthorizationGate
from app.services.booking_service import BookingService
from app.services.credential_store import CredentialStore
from app.services.file_service import FileService
from app.services.image_fetcher import RemoteImageFetcher
from app.services.listing_service import ListingService
from app.services.password_hasher import PasswordHasher
from app.services.registry import ServiceRegistry
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str = "INFO") -> None:
    """
    Configures the root logger once per process.

    Format: 2026-03-14T12:00:00 [INFO] app.services.listing_service: ...
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Access lines come from staybook.access instead
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings.log_level)
    logger.info("=" * 60)
    logger.info("StayBook Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: health checks still work and the problem is visible
        logger.error("Configuration error: %s", str(e))

    logger.info("Storage directory: %s", app.state.services.files.storage_root)
    logger.info("Anonymous listing reads: %s", settings.public_listing_reads)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("StayBook Backend shutting down...")
    await app.state.database.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"error": error, "message": message}
    if details:
        body["details"] = details
    body["request_id"] = request_id_var.get("")
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Maps the StayBookError hierarchy to HTTP responses.

        ValidationError          → 400
        AuthenticationError      → 401
        AuthorizationError       → 403
        NotFoundError            → 404
        DuplicateEmailError      → 409
        ConflictError            → 409
        InvalidCredentialsError  → 422
        RateLimitExceededError   → 429
        DatabaseError            → 500 (generic message)
        FileStorageError         → 500 (generic message)
        RemoteFetchError         → 502
        StayBookError / other    → 500

    Bodies never contain stack traces, SQL, file system paths, passwords,
    hashes or tokens. Those go to the server log only.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=400,
            content=_error_body("validation_error", exc.message, exc.context),
        )

    @app.exception_handler(AuthenticationError)
    async def handle_authentication_error(request: Request, exc: AuthenticationError):
        return JSONResponse(
            status_code=401,
            content=_error_body("authentication_required", exc.message),
        )

    @app.exception_handler(AuthorizationError)
    async def handle_authorization_error(request: Request, exc: AuthorizationError):
        return JSONResponse(
            status_code=403,
            content=_error_body("forbidden", exc.message),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=_error_body("not_found", exc.message),
        )

    @app.exception_handler(DuplicateEmailError)
    async def handle_duplicate_email(request: Request, exc: DuplicateEmailError):
        return JSONResponse(
            status_code=409,
            content=_error_body("duplicate_email", exc.message, {"field": "email"}),
        )

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return JSONResponse(
            status_code=409,
            content=_error_body("conflict", exc.message, exc.context),
        )

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return JSONResponse(
            status_code=422,
            content=_error_body("invalid_credentials", exc.message),
        )

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return JSONResponse(
            status_code=429,
            content=_error_body("rate_limit_exceeded", exc.message, exc.context),
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(FileStorageError)
    async def handle_file_storage_error(request: Request, exc: FileStorageError):
        logger.error(
            "[%s] File storage error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(RemoteFetchError)
    async def handle_remote_fetch_error(request: Request, exc: RemoteFetchError):
        logger.warning("[%s] Remote fetch failed: %s", request_id_var.get(""), exc.context)
        return JSONResponse(
            status_code=502,
            content=_error_body("remote_fetch_failed", exc.message),
        )

    @app.exception_handler(StayBookError)
    async def handle_application_error(request: Request, exc: StayBookError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "server_error", "An internal error occurred. Please try again later."
            ),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(
            status_code=500,
            content=_error_body(
                "internal_server_error",
                "An unexpected error occurred. Please try again or contact support.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def _session_secret(settings: Settings) -> str:
    if settings.jwt_secret:
        return settings.jwt_secret
    logger.warning(
        "JWT_SECRET is not set; using an ephemeral secret. "
        "Every session ends when the process restarts."
    )
    return secrets.token_urlsafe(48)


def build_services(settings: Settings) -> ServiceRegistry:
    hasher = PasswordHasher(rounds=settings.password_hash_rounds)
    listings = ListingService()
    return ServiceRegistry(
        credentials=CredentialStore(hasher),
        tokens=TokenService(
            secret=_session_secret(settings),
            algorithm=settings.jwt_algorithm,
            max_age_seconds=settings.session_max_age_seconds,
        ),
        listings=listings,
        bookings=BookingService(listings),
        files=FileService(
            storage_root=settings.storage_root,
            max_file_size=settings.max_file_size,
            max_upload_files=settings.max_upload_files,
        ),
        fetcher=RemoteImageFetcher(
            timeout=settings.remote_fetch_timeout,
            max_attempts=settings.remote_fetch_max_attempts,
            max_bytes=settings.max_file_size,
        ),
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Assembles one application instance.

    Args:
        settings: configuration to use; defaults to the process-wide
                  `get_settings()`. Tests pass their own.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="StayBook API",
        description=(
            "Property booking backend: accounts with cookie sessions, "
            "owner-only listing management, bookings and photo uploads."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    services = build_services(settings)
    Path(settings.storage_root).mkdir(parents=True, exist_ok=True)

    app.state.settings = settings
    app.state.database = Database(settings)
    app.state.services = services
    app.state.auth_gate = AuthorizationGate(services.tokens, cookie_name=settings.cookie_name)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RateLimit → RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window,
    )

    register_exception_handlers(app)

    app.include_router(auth.router)
    app.include_router(listings.router)
    app.include_router(bookings.router)
    app.include_router(uploads.router)
    app.include_router(health.router)

    return app


def __getattr__(name: str):
    # `uvicorn app.main:app` resolves the attribute on first use; importing
    # this module (tests, alembic) builds nothing and touches no directories
    if name == "app":
        default_app = create_app()
        globals()["app"] = default_app
        return default_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
