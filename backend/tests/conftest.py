"""
StayBook Backend — Test Configuration (conftest.py)
=====================================================

Fixture Hierarchy (all function-scoped):
    ├── test_settings:    Settings pointing at a temp SQLite file and temp storage
    ├── test_app:         create_app(test_settings) with tables created
    ├── test_client:      httpx AsyncClient over ASGITransport
    ├── mock_db_session:  AsyncMock session for service unit tests
    ├── temp_storage:     temporary upload directory
    └── sample_image_bytes / listing_payload: request data

Helpers:
    register_and_login() returns the session token of a fresh account and
    leaves the client's cookie jar empty, so every request in a test says
    explicitly which identity (if any) it is made as.
"""

from http.cookies import SimpleCookie
from typing import Dict, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.config import Settings
from app.main import create_app

TEST_SECRET = "test-secret-0123456789-abcdefghijklmnop"

# 1x1 transparent PNG; libmagic needs the IHDR chunk to call it image/png
PNG_BYTES = (
    b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01"
    b"\x08\x06\x00\x00\x00\x1f\x15\xc4\x89\x00\x00\x00\nIDATx\x9cc\x00\x01"
    b"\x00\x00\x05\x00\x01\r\n-\xb4\x00\x00\x00\x00IEND\xaeB`\x82"
)


def build_test_settings(tmp_path, **overrides) -> Settings:
    values = {
        "database_url": f"sqlite+aiosqlite:///{tmp_path / 'staybook_test.db'}",
        "jwt_secret": TEST_SECRET,
        "session_max_age_seconds": 3600,
        "password_hash_rounds": 1000,
        "storage_root": str(tmp_path / "uploads"),
        "rate_limit_requests": 10_000,
        "remote_fetch_max_attempts": 1,
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return build_test_settings(tmp_path)


@pytest_asyncio.fixture
async def test_app(test_settings):
    app = create_app(test_settings)
    await app.state.database.create_all()
    yield app
    await app.state.database.dispose()


@pytest_asyncio.fixture
async def test_client(test_app):
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def mock_db_session():
    """
    Mock AsyncSession for service unit tests.

    Usage:
        mock_db_session.execute.return_value = result_with(None)
        mock_db_session.get.return_value = listing
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


def result_with(value) -> MagicMock:
    """A db.execute() result whose scalar_one_or_none() returns `value`."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = value
    return result


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG: SOI + JFIF header + EOI."""
    return (
        b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
        b"\xff\xd9"
    )


@pytest.fixture
def listing_payload() -> Dict:
    return {
        "title": "Sea View Loft",
        "address": "1 Harbour Road",
        "addedPhotos": ["2026/03/14/a.jpg"],
        "description": "Bright loft above the harbour",
        "perks": ["wifi", "parking"],
        "extraInfo": "No parties",
        "checkIn": "14:00",
        "checkOut": "11:00",
        "maxGuests": 4,
        "price": 120,
    }


# ══════════════════════════════════════════════════════════════════════════
# Session Helpers
# ══════════════════════════════════════════════════════════════════════════

def cookie_from(response, name: str = "token") -> Optional[str]:
    """Value of cookie `name` in the response's Set-Cookie headers, or None."""
    for header in response.headers.get_list("set-cookie"):
        jar = SimpleCookie()
        jar.load(header)
        if name in jar:
            return jar[name].value
    return None


def as_user(token: str) -> Dict[str, str]:
    return {"Cookie": f"token={token}"}


async def register_and_login(
    client: AsyncClient,
    name: str = "Jo",
    email: str = "jo@x.io",
    password: str = "pw1",
) -> str:
    response = await client.post(
        "/register", json={"name": name, "email": email, "password": password}
    )
    assert response.status_code == 200, response.text
    response = await client.post("/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = cookie_from(response)
    assert token
    client.cookies.clear()
    return token
