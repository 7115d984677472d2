"""
StayBook Backend — Listing Route Tests (end to end)
=====================================================

What we test:
    ✅ create requires a session and records the caller as owner
    ✅ a non-owner update is refused and changes nothing
    ✅ owner updates bump the version; stale versions answer 409
    ✅ /user-places is scoped to the caller
    ✅ anonymous reads follow PUBLIC_LISTING_READS
"""

import uuid

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.main import create_app
from conftest import as_user, build_test_settings, register_and_login


def full_update(payload, **changes):
    body = dict(payload)
    body["photos"] = body.pop("addedPhotos")
    body.update(changes)
    return body


async def create_listing(client, token, payload):
    response = await client.post("/places", json=payload, headers=as_user(token))
    assert response.status_code == 200, response.text
    return response.json()


class TestCreateListing:
    @pytest.mark.asyncio
    async def test_requires_session(self, test_client, listing_payload):
        response = await test_client.post("/places", json=listing_payload)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_owner_is_the_caller(self, test_client, listing_payload):
        token = await register_and_login(test_client)
        me = (await test_client.get("/profile", headers=as_user(token))).json()

        listing = await create_listing(test_client, token, listing_payload)

        assert listing["owner"] == me["id"]
        assert listing["title"] == "Sea View Loft"
        assert listing["photos"] == ["2026/03/14/a.jpg"]
        assert listing["extraInfo"] == "No parties"
        assert listing["maxGuests"] == 4
        assert listing["version"] == 1

    @pytest.mark.asyncio
    async def test_owner_in_body_is_ignored(self, test_client, listing_payload):
        token = await register_and_login(test_client)
        me = (await test_client.get("/profile", headers=as_user(token))).json()

        listing = await create_listing(
            test_client, token, dict(listing_payload, owner=str(uuid.uuid4()))
        )
        assert listing["owner"] == me["id"]


class TestUpdateListing:
    @pytest.mark.asyncio
    async def test_non_owner_cannot_change_listing(self, test_client, listing_payload):
        """A creates L; B's update is refused and L's stored fields stay as they were."""
        token_a = await register_and_login(test_client, "A", "a@x.io", "pw-a")
        token_b = await register_and_login(test_client, "B", "b@x.io", "pw-b")
        listing = await create_listing(test_client, token_a, listing_payload)

        response = await test_client.put(
            f"/places/{listing['id']}",
            json=full_update(listing_payload, title="Hijacked", price=1),
            headers=as_user(token_b),
        )
        assert response.status_code == 403
        assert response.json()["error"] == "forbidden"

        stored = (await test_client.get(f"/places/{listing['id']}")).json()
        assert stored["title"] == "Sea View Loft"
        assert stored["price"] == 120
        assert stored["owner"] == listing["owner"]
        assert stored["version"] == 1

    @pytest.mark.asyncio
    async def test_owner_update(self, test_client, listing_payload):
        token = await register_and_login(test_client)
        listing = await create_listing(test_client, token, listing_payload)

        response = await test_client.put(
            f"/places/{listing['id']}",
            json=full_update(listing_payload, title="Renamed", perks=["pool"], owner=str(uuid.uuid4())),
            headers=as_user(token),
        )

        assert response.status_code == 200
        updated = response.json()
        assert updated["title"] == "Renamed"
        assert updated["perks"] == ["pool"]
        assert updated["owner"] == listing["owner"]
        assert updated["version"] == 2

    @pytest.mark.asyncio
    async def test_stale_version_conflict(self, test_client, listing_payload):
        token = await register_and_login(test_client)
        listing = await create_listing(test_client, token, listing_payload)
        url = f"/places/{listing['id']}"

        first = await test_client.put(
            url, json=full_update(listing_payload, title="First", version=1), headers=as_user(token)
        )
        second = await test_client.put(
            url, json=full_update(listing_payload, title="Second", version=1), headers=as_user(token)
        )

        assert first.status_code == 200
        assert second.status_code == 409
        assert (await test_client.get(url)).json()["title"] == "First"

    @pytest.mark.asyncio
    async def test_update_requires_every_field(self, test_client, listing_payload):
        token = await register_and_login(test_client)
        listing = await create_listing(test_client, token, listing_payload)

        response = await test_client.put(
            f"/places/{listing['id']}", json={"title": "Only title"}, headers=as_user(token)
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_listing(self, test_client, listing_payload):
        token = await register_and_login(test_client)
        response = await test_client.put(
            f"/places/{uuid.uuid4()}", json=full_update(listing_payload), headers=as_user(token)
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_update_without_session(self, test_client, listing_payload):
        response = await test_client.put(
            f"/places/{uuid.uuid4()}", json=full_update(listing_payload)
        )
        assert response.status_code == 401


class TestReadListings:
    @pytest.mark.asyncio
    async def test_user_places_only_lists_own(self, test_client, listing_payload):
        token_a = await register_and_login(test_client, "A", "a@x.io", "pw-a")
        token_b = await register_and_login(test_client, "B", "b@x.io", "pw-b")
        await create_listing(test_client, token_a, listing_payload)
        await create_listing(test_client, token_b, dict(listing_payload, title="B's place"))

        mine = (await test_client.get("/user-places", headers=as_user(token_b))).json()
        everything = (await test_client.get("/places")).json()

        assert [p["title"] for p in mine] == ["B's place"]
        assert len(everything) == 2

    @pytest.mark.asyncio
    async def test_anonymous_get_unknown_listing(self, test_client):
        response = await test_client.get(f"/places/{uuid.uuid4()}")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_anonymous_get_malformed_id(self, test_client):
        response = await test_client.get("/places/not-a-uuid")
        assert response.status_code == 404


class TestPrivateListingReads:
    @pytest_asyncio.fixture
    async def private_client(self, tmp_path):
        app = create_app(build_test_settings(tmp_path, public_listing_reads=False))
        await app.state.database.create_all()
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
        await app.state.database.dispose()

    @pytest.mark.asyncio
    async def test_anonymous_reads_refused(self, private_client, listing_payload):
        token = await register_and_login(private_client)
        listing = await create_listing(private_client, token, listing_payload)

        assert (await private_client.get("/places")).status_code == 401
        assert (await private_client.get(f"/places/{listing['id']}")).status_code == 401

        response = await private_client.get(f"/places/{listing['id']}", headers=as_user(token))
        assert response.status_code == 200
