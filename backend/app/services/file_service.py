"""
StayBook Backend — File Storage Service
=========================================

What:  Validates, stores and resolves listing photos.
How:   Validates extension and size, stores in date-organized directories
       under STORAGE_ROOT, generates unique filenames.
Who:   POST /upload, POST /upload-by-link and GET /uploads/{path}.

Security Model:
    1. Extension check:  only common image types are accepted
    2. Size check:       MAX_FILE_SIZE per file, MAX_UPLOAD_FILES per request
    3. Content check:    libmagic reads the header bytes; renamed non-images are rejected
    4. UUID filename:    no part of the client's filename reaches the disk
    5. Path resolution:  served paths must resolve inside STORAGE_ROOT

Directory Structure:
    uploads/
    └── 2026/
        └── 03/
            └── 14/
                ├── a1b2c3d4-....jpg
                └── e5f6a7b8-....png

The returned relative path ("2026/03/14/a1b2...jpg") is what listings store
in `photos` and what the client requests under /uploads/.
"""

import asyncio
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Sequence, Tuple

import aiofiles
import magic

from app.exceptions import FileStorageError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp", ".gif"}
ALLOWED_MIME_TYPES = {"image/jpeg", "image/png", "image/webp", "image/gif"}


class FileService:
    def __init__(
        self,
        storage_root: str,
        max_file_size: int = 10_485_760,
        max_upload_files: int = 100,
    ):
        self.storage_root = Path(storage_root).resolve()
        self.max_file_size = max_file_size
        self.max_upload_files = max_upload_files
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("FileService initialized with storage_root=%s", self.storage_root)

    def validate_extension(self, filename: str) -> str:
        """Returns the lowercase extension, or raises ValidationError."""
        ext = Path(filename or "").suffix.lower()
        if ext not in ALLOWED_EXTENSIONS:
            raise ValidationError(
                message=(
                    f"File type '{ext or filename}' is not supported. "
                    f"Allowed types: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
                ),
                field="photos",
                context={"extension": ext, "allowed": sorted(ALLOWED_EXTENSIONS)},
            )
        return ext

    def validate_size(self, actual_size: int) -> None:
        max_mb = self.max_file_size / (1024 * 1024)
        if actual_size == 0:
            raise ValidationError(message="Uploaded file is empty", field="photos")
        if actual_size > self.max_file_size:
            raise ValidationError(
                message=(
                    f"File size ({actual_size / (1024 * 1024):.1f}MB) "
                    f"exceeds maximum of {max_mb:.0f}MB."
                ),
                field="photos",
                context={"max_size_mb": max_mb, "actual_size": actual_size},
            )

    def validate_content(self, content: bytes, filename: str = "") -> str:
        """
        Detects the real type from the file's header bytes.

        The extension only says what the client claims; a script renamed to
        .jpg passes validate_extension() but fails here.

        Returns:
            Detected MIME type (e.g. "image/jpeg")

        Raises:
            ValidationError: content is not one of ALLOWED_MIME_TYPES
            FileStorageError: libmagic could not inspect the content
        """
        try:
            mime_type = magic.from_buffer(content, mime=True)
        except magic.MagicException as e:
            logger.error("MIME type detection failed: %s", str(e))
            raise FileStorageError(
                message="Could not verify file type. Please try again.",
                context={"error": str(e)},
            )

        if mime_type not in ALLOWED_MIME_TYPES:
            logger.warning("Rejected upload %r with content type %s", filename, mime_type)
            raise ValidationError(
                message=f"File content type '{mime_type}' is not a supported image",
                field="photos",
                context={"detected_type": mime_type, "allowed": sorted(ALLOWED_MIME_TYPES)},
            )
        return mime_type

    def _generate_storage_path(self, extension: str) -> Tuple[Path, str]:
        now = datetime.now(timezone.utc)
        relative_path = f"{now.strftime('%Y/%m/%d')}/{uuid.uuid4()}{extension}"
        return self.storage_root / relative_path, relative_path

    async def store(self, content: bytes, extension: str) -> str:
        """Writes already-validated bytes; returns the path relative to the root."""
        absolute_path, relative_path = self._generate_storage_path(extension)
        try:
            absolute_path.parent.mkdir(parents=True, exist_ok=True)
            async with aiofiles.open(absolute_path, "wb") as f:
                await f.write(content)
        except OSError as e:
            logger.error("Failed to store file at %s: %s", absolute_path, str(e))
            raise FileStorageError(
                message="Failed to save uploaded image. Please try again.",
                context={"path": str(absolute_path), "os_error": str(e)},
            )

        logger.info("File stored: %s (%d bytes)", relative_path, len(content))
        return relative_path

    async def validate_and_store(self, filename: str, content: bytes) -> str:
        ext = self.validate_extension(filename)
        self.validate_size(len(content))
        self.validate_content(content, filename)
        return await self.store(content, ext)

    async def store_many(self, files: Sequence[Tuple[str, bytes]]) -> List[str]:
        """
        Validates every (filename, content) pair before writing any of them,
        then writes concurrently. Returns paths in input order.
        """
        if not files:
            raise ValidationError(message="No files were uploaded", field="photos")
        if len(files) > self.max_upload_files:
            raise ValidationError(
                message=f"At most {self.max_upload_files} files can be uploaded at once",
                field="photos",
                context={"count": len(files)},
            )

        extensions = []
        for filename, content in files:
            extensions.append(self.validate_extension(filename))
            self.validate_size(len(content))
            self.validate_content(content, filename)

        paths = await asyncio.gather(
            *(self.store(content, ext) for (_, content), ext in zip(files, extensions)),
            return_exceptions=True,
        )
        failures = [p for p in paths if isinstance(p, BaseException)]
        if failures:
            for path in paths:
                if isinstance(path, str):
                    await self.cleanup_file(path)
            raise failures[0]
        return list(paths)

    def resolve_path(self, relative_path: str) -> Path:
        """
        Maps a client-supplied relative path to a stored file.

        Raises NotFoundError for anything outside STORAGE_ROOT or missing, so
        traversal attempts are indistinguishable from unknown files.
        """
        candidate = (self.storage_root / (relative_path or "")).resolve()
        try:
            candidate.relative_to(self.storage_root)
        except ValueError:
            logger.warning("Path traversal attempt blocked: %s", relative_path)
            raise NotFoundError(resource="file")
        if not candidate.is_file():
            raise NotFoundError(resource="file")
        return candidate

    async def cleanup_file(self, relative_path: str) -> None:
        """Best-effort removal of a stored file; failures are only logged."""
        path = self.storage_root / relative_path
        try:
            if path.exists():
                os.remove(path)
                logger.info("Cleaned up file: %s", path.name)
        except OSError as e:
            logger.warning("Failed to clean up file %s: %s", relative_path, str(e))
