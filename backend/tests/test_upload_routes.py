"""
StayBook Backend — Upload Route Tests (end to end)
====================================================

The remote host for /upload-by-link is an httpx.MockTransport swapped into
the app's service registry.
"""

from pathlib import Path

import httpx
import pytest

from app.services.image_fetcher import RemoteImageFetcher
from conftest import PNG_BYTES, as_user, register_and_login


def use_remote(app, handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    app.state.services.fetcher = RemoteImageFetcher(client=client, max_attempts=1)


class TestMultipartUpload:
    @pytest.mark.asyncio
    async def test_upload_and_serve(self, test_client, sample_image_bytes):
        token = await register_and_login(test_client)

        response = await test_client.post(
            "/upload",
            files=[
                ("photos", ("front.jpg", sample_image_bytes, "image/jpeg")),
                ("photos", ("back.png", PNG_BYTES, "image/png")),
            ],
            headers=as_user(token),
        )

        assert response.status_code == 200
        paths = response.json()
        assert len(paths) == 2
        assert paths[0].endswith(".jpg")
        assert paths[1].endswith(".png")
        assert "front" not in paths[0]

        served = await test_client.get(f"/uploads/{paths[1]}")
        assert served.status_code == 200
        assert served.content == PNG_BYTES

    @pytest.mark.asyncio
    async def test_upload_requires_session(self, test_client, sample_image_bytes):
        response = await test_client.post(
            "/upload", files=[("photos", ("a.jpg", sample_image_bytes, "image/jpeg"))]
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rejects_disallowed_type(self, test_client):
        token = await register_and_login(test_client)
        response = await test_client.post(
            "/upload",
            files=[("photos", ("script.sh", b"#!/bin/sh", "text/x-sh"))],
            headers=as_user(token),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_rejects_renamed_non_image(self, test_client, test_settings):
        token = await register_and_login(test_client)

        response = await test_client.post(
            "/upload",
            files=[
                ("photos", ("evil.jpg", b"<html><script>alert(1)</script></html>", "image/jpeg")),
            ],
            headers=as_user(token),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        stored = [p for p in Path(test_settings.storage_root).rglob("*") if p.is_file()]
        assert stored == []

    @pytest.mark.asyncio
    async def test_serving_unknown_file(self, test_client):
        response = await test_client.get("/uploads/2026/01/01/missing.jpg")
        assert response.status_code == 404


class TestUploadByLink:
    @pytest.mark.asyncio
    async def test_stores_remote_image(self, test_client, test_app):
        use_remote(
            test_app,
            lambda request: httpx.Response(
                200, content=PNG_BYTES, headers={"content-type": "image/png"}
            ),
        )
        token = await register_and_login(test_client)

        response = await test_client.post(
            "/upload-by-link",
            json={"link": "https://img.example/photo"},
            headers=as_user(token),
        )

        assert response.status_code == 200
        stored = response.json()
        assert stored.endswith(".png")
        assert (await test_client.get(f"/uploads/{stored}")).content == PNG_BYTES

    @pytest.mark.asyncio
    async def test_rejects_remote_body_that_is_not_an_image(self, test_client, test_app):
        use_remote(
            test_app,
            lambda request: httpx.Response(
                200, content=b"<html>not a photo</html>", headers={"content-type": "image/png"}
            ),
        )
        token = await register_and_login(test_client)

        response = await test_client.post(
            "/upload-by-link",
            json={"link": "https://img.example/fake.png"},
            headers=as_user(token),
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_remote_failure_is_502(self, test_client, test_app):
        use_remote(test_app, lambda request: httpx.Response(500))
        token = await register_and_login(test_client)

        response = await test_client.post(
            "/upload-by-link",
            json={"link": "https://img.example/a.png"},
            headers=as_user(token),
        )
        assert response.status_code == 502

    @pytest.mark.asyncio
    async def test_rejects_non_http_link(self, test_client):
        token = await register_and_login(test_client)
        response = await test_client.post(
            "/upload-by-link", json={"link": "file:///etc/passwd"}, headers=as_user(token)
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_requires_session(self, test_client):
        response = await test_client.post(
            "/upload-by-link", json={"link": "https://img.example/a.png"}
        )
        assert response.status_code == 401
