"""
StayBook Backend — Application Package
========================================

Layers:

    ┌─────────────────────────────────────┐
    │  Routes + authorization gate        │  ← HTTP, cookies, identity
    ├─────────────────────────────────────┤
    │  Services                           │  ← credentials, tokens, ownership,
    │                                     │    listings, bookings, files
    ├─────────────────────────────────────┤
    │  Models & Schemas                   │  ← SQLAlchemy ORM + Pydantic
    ├─────────────────────────────────────┤
    │  Database                           │  ← async SQLAlchemy sessions
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
