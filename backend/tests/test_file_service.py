"""
StayBook Backend — File Service Unit Tests
============================================

Test Strategy:
    ✅ allowed / rejected extensions, case-insensitive
    ✅ size limits and empty files
    ✅ header bytes must be a real image, whatever the extension says
    ✅ generated names contain nothing from the client filename
    ✅ multi-file upload validates everything before writing anything
    ✅ served paths cannot escape the storage root
"""

import re
from pathlib import Path

import pytest

from app.exceptions import NotFoundError, ValidationError
from app.services.file_service import FileService
from conftest import PNG_BYTES

STORED_NAME = re.compile(r"^\d{4}/\d{2}/\d{2}/[0-9a-f-]{36}\.[a-z]+$")


class TestFileValidation:
    @pytest.fixture(autouse=True)
    def _service(self, temp_storage):
        self.service = FileService(storage_root=temp_storage, max_file_size=2048)

    @pytest.mark.parametrize("name", ["a.jpg", "a.jpeg", "a.png", "a.webp", "a.gif", "A.JPG"])
    def test_allowed_extensions(self, name):
        assert self.service.validate_extension(name) == Path(name).suffix.lower()

    @pytest.mark.parametrize("name", ["doc.pdf", "malware.exe", "noextension", "", "shell.jpg.sh"])
    def test_rejected_extensions(self, name):
        with pytest.raises(ValidationError, match="not supported"):
            self.service.validate_extension(name)

    def test_size_within_limit(self):
        self.service.validate_size(2048)

    def test_size_over_limit(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.service.validate_size(2049)

    def test_empty_file_rejected(self):
        with pytest.raises(ValidationError, match="empty"):
            self.service.validate_size(0)

    def test_content_accepts_real_images(self, sample_image_bytes):
        assert self.service.validate_content(sample_image_bytes, "a.jpg") == "image/jpeg"
        assert self.service.validate_content(PNG_BYTES, "a.png") == "image/png"

    @pytest.mark.parametrize(
        "content",
        [
            b"<html><script>alert(1)</script></html>",
            b"#!/bin/sh\nrm -rf /\n",
            b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n",
        ],
    )
    def test_content_rejects_renamed_files(self, content):
        with pytest.raises(ValidationError, match="not a supported image"):
            self.service.validate_content(content, "holiday.jpg")


class TestStorage:
    @pytest.mark.asyncio
    async def test_store_writes_under_generated_name(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)

        relative = await service.validate_and_store("../../etc/passwd.png", sample_image_bytes)

        assert STORED_NAME.match(relative)
        assert "passwd" not in relative
        assert (Path(temp_storage) / relative).read_bytes() == sample_image_bytes

    @pytest.mark.asyncio
    async def test_store_many_keeps_order_and_extensions(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)

        paths = await service.store_many(
            [("one.png", sample_image_bytes), ("two.jpg", sample_image_bytes)]
        )

        assert len(paths) == 2
        assert paths[0].endswith(".png")
        assert paths[1].endswith(".jpg")
        assert paths[0] != paths[1]

    @pytest.mark.asyncio
    async def test_store_many_rejects_batch_with_one_bad_file(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)

        with pytest.raises(ValidationError):
            await service.store_many(
                [("ok.png", sample_image_bytes), ("bad.exe", sample_image_bytes)]
            )
        assert not any(p.is_file() for p in Path(temp_storage).rglob("*"))

    @pytest.mark.asyncio
    async def test_store_many_rejects_renamed_non_image(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)

        with pytest.raises(ValidationError):
            await service.store_many(
                [("ok.jpg", sample_image_bytes), ("evil.jpg", b"<html></html>")]
            )
        assert not any(p.is_file() for p in Path(temp_storage).rglob("*"))

    @pytest.mark.asyncio
    async def test_store_many_file_count_limit(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage, max_upload_files=2)
        with pytest.raises(ValidationError, match="At most 2"):
            await service.store_many([("a.png", sample_image_bytes)] * 3)

    @pytest.mark.asyncio
    async def test_store_many_requires_files(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(ValidationError):
            await service.store_many([])

    @pytest.mark.asyncio
    async def test_cleanup_removes_file(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)
        relative = await service.store(sample_image_bytes, ".jpg")

        await service.cleanup_file(relative)
        assert not (Path(temp_storage) / relative).exists()

        # second cleanup of a missing file is silent
        await service.cleanup_file(relative)


class TestResolvePath:
    @pytest.mark.asyncio
    async def test_resolves_stored_file(self, temp_storage, sample_image_bytes):
        service = FileService(storage_root=temp_storage)
        relative = await service.store(sample_image_bytes, ".jpg")

        assert service.resolve_path(relative).read_bytes() == sample_image_bytes

    def test_traversal_is_not_found(self, temp_storage, tmp_path):
        (tmp_path / "secret.txt").write_text("nope")
        service = FileService(storage_root=temp_storage)

        with pytest.raises(NotFoundError):
            service.resolve_path("../secret.txt")

    def test_missing_file_is_not_found(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(NotFoundError):
            service.resolve_path("2026/01/01/missing.jpg")

    def test_directory_is_not_found(self, temp_storage):
        service = FileService(storage_root=temp_storage)
        with pytest.raises(NotFoundError):
            service.resolve_path("")
