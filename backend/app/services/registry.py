"""
StayBook Backend — Service Registry
=====================================

One instance per application, built by `create_app()` and stored on
`app.state.services`. Route handlers reach it through `get_services()`;
tests build an app with their own Settings and get an isolated registry.
"""

from dataclasses import dataclass

from fastapi import Request

from app.services.booking_service import BookingService
from app.services.credential_store import CredentialStore
from app.services.file_service import FileService
from app.services.image_fetcher import RemoteImageFetcher
from app.services.listing_service import ListingService
from app.services.token_service import TokenService


@dataclass
class ServiceRegistry:
    credentials: CredentialStore
    tokens: TokenService
    listings: ListingService
    bookings: BookingService
    files: FileService
    fetcher: RemoteImageFetcher


def get_services(request: Request) -> ServiceRegistry:
    return request.app.state.services
