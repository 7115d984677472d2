"""
StayBook Backend — Pydantic Request/Response Schemas
======================================================

Schemas are the API contract and are kept separate from the ORM models so
internal columns (password_hash, raw foreign keys) never leak into responses.

    - common.py:   ErrorResponse, HealthResponse
    - user.py:     RegisterRequest, LoginRequest, UserResponse
    - listing.py:  ListingCreate, ListingUpdate, ListingResponse
    - booking.py:  BookingCreate, BookingResponse
    - upload.py:   UploadByLinkRequest
"""
