"""
StayBook Backend — Services Layer
===================================

What:  Business logic between routes (HTTP) and the database (persistence).
How:   Services receive the request's AsyncSession and the caller's Identity
       as arguments; they hold no per-request state.

Service Inventory:
    - PasswordHasher:      pbkdf2_sha256 hashing via passlib
    - CredentialStore:     registration, lookup, password check
    - TokenService:        issues and verifies signed session tokens (PyJWT)
    - AuthorizationGate:   session cookie → Identity / anonymous / failure
    - ownership:           owner-only mutation policy
    - ListingService:      listing CRUD with optimistic concurrency
    - BookingService:      bookings scoped to the booking identity
    - FileService:         photo validation, storage and serving
    - RemoteImageFetcher:  upload-by-link downloads (httpx + tenacity)
    - ServiceRegistry:     per-app container handed to routes
"""
