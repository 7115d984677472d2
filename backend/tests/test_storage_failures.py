"""
StayBook Backend — Storage Failure Tests (end to end)
=======================================================

The app's session factory is swapped for one whose session raises
OperationalError, the way a dropped PostgreSQL connection would surface.
Callers must get a generic 500 with nothing from the driver in it, and the
failed statement must not be re-run.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from conftest import as_user, register_and_login

DRIVER_DETAIL = "could not connect to server: Connection refused"
FAILED_SQL = "SELECT users.id, users.password_hash FROM users WHERE users.email = $1"


class FailingSession:
    def __init__(self):
        error = OperationalError(FAILED_SQL, {}, Exception(DRIVER_DETAIL))
        self.execute = AsyncMock(side_effect=error)
        self.get = AsyncMock(side_effect=error)
        self.flush = AsyncMock(side_effect=error)
        self.commit = AsyncMock()
        self.rollback = AsyncMock()
        self.add = MagicMock()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False


@pytest.fixture
def failing_session(test_app, monkeypatch):
    session = FailingSession()
    monkeypatch.setattr(test_app.state.database, "session_factory", lambda: session)
    return session


def assert_generic_server_error(response):
    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "server_error"
    text = response.text
    for leaked in ("SELECT", "password_hash", "OperationalError", DRIVER_DETAIL):
        assert leaked not in text


class TestStorageFailures:
    @pytest.mark.asyncio
    async def test_register_answers_generic_500(self, test_client, failing_session):
        response = await test_client.post(
            "/register",
            json={"name": "Jo", "email": "jo@example.com", "password": "pw123456"},
        )

        assert_generic_server_error(response)
        assert failing_session.execute.await_count == 1
        failing_session.commit.assert_not_awaited()
        failing_session.rollback.assert_awaited()

    @pytest.mark.asyncio
    async def test_create_listing_answers_generic_500(
        self, test_client, test_app, monkeypatch, listing_payload
    ):
        token = await register_and_login(test_client)
        session = FailingSession()
        monkeypatch.setattr(test_app.state.database, "session_factory", lambda: session)

        response = await test_client.post("/places", json=listing_payload, headers=as_user(token))

        assert_generic_server_error(response)
        assert session.flush.await_count == 1
        session.commit.assert_not_awaited()
