"""
StayBook Backend — Photo Upload Route Handlers
================================================

What:  POST /upload-by-link, POST /upload, GET /uploads/{path}.
How:   Uploading requires a session; serving does not, so listing photos can
       be shown to anonymous visitors.

Request Flow (POST /upload):
    1. FastAPI parses multipart/form-data, field `photos` (one or many)
    2. Every file is read and validated (extension, size, header bytes, count)
    3. FileService writes them concurrently
    4. Response: list of stored relative paths, in upload order
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from fastapi.responses import FileResponse

from app.schemas.common import ErrorResponse
from app.schemas.upload import UploadByLinkRequest
from app.services.auth_gate import Identity, require_identity
from app.services.registry import ServiceRegistry, get_services

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Uploads"])


@router.post(
    "/upload-by-link",
    response_model=str,
    responses={
        400: {"description": "Link is not an http(s) URL or not an image", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
        502: {"description": "Remote image could not be fetched", "model": ErrorResponse},
    },
    summary="Download an image from a URL into storage",
)
async def upload_by_link(
    body: UploadByLinkRequest,
    identity: Identity = Depends(require_identity),
    services: ServiceRegistry = Depends(get_services),
) -> str:
    image = await services.fetcher.fetch(body.link)
    services.files.validate_size(len(image.content))
    services.files.validate_content(image.content, body.link)
    stored = await services.files.store(image.content, image.extension)
    logger.info("User %s stored photo %s from link", identity.id, stored)
    return stored


@router.post(
    "/upload",
    response_model=List[str],
    responses={
        400: {"description": "Invalid file type, size or count", "model": ErrorResponse},
        401: {"description": "Not logged in", "model": ErrorResponse},
    },
    summary="Upload one or more photos",
)
async def upload_photos(
    photos: List[UploadFile] = File(..., description="Image files (jpg, png, webp, gif)"),
    identity: Identity = Depends(require_identity),
    services: ServiceRegistry = Depends(get_services),
) -> List[str]:
    files = []
    try:
        for photo in photos:
            files.append((photo.filename or "", await photo.read()))
    finally:
        for photo in photos:
            await photo.close()

    stored = await services.files.store_many(files)
    logger.info("User %s uploaded %d photo(s)", identity.id, len(stored))
    return stored


@router.get(
    "/uploads/{file_path:path}",
    responses={
        200: {"description": "Image file"},
        404: {"description": "File not found", "model": ErrorResponse},
    },
    summary="Serve a stored photo",
)
async def serve_upload(
    file_path: str,
    services: ServiceRegistry = Depends(get_services),
) -> FileResponse:
    path = services.files.resolve_path(file_path)
    # Stored names are never reused, so the content cannot change
    return FileResponse(path=str(path), headers={"Cache-Control": "public, max-age=86400"})
