"""
StayBook Backend — Remote Image Fetcher
=========================================

What:  Downloads an image from a user-supplied URL for POST /upload-by-link.
How:   httpx.AsyncClient with a hard timeout; tenacity retries transport
       failures (connect errors, timeouts) with exponential backoff + jitter.
Who:   The upload routes, which hand the bytes to FileService.store().

Rejected without retry (client's fault, 400):
    - scheme other than http/https, or no host
Rejected while downloading (remote's fault, 502):
    - status 400 or above
    - Content-Type that is not image/*
    - Content-Length, or the bytes read so far, larger than MAX_FILE_SIZE
"""

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlparse

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.exceptions import RemoteFetchError, ValidationError
from app.services.file_service import ALLOWED_EXTENSIONS

logger = logging.getLogger(__name__)

# Content-Type → extension used for the stored file
IMAGE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/jpg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


@dataclass(frozen=True)
class FetchedImage:
    url: str
    content: bytes
    content_type: str

    @property
    def extension(self) -> str:
        """URL suffix if it is a known image type, else the content type, else .jpg."""
        suffix = PurePosixPath(urlparse(self.url).path).suffix.lower()
        if suffix in ALLOWED_EXTENSIONS:
            return suffix
        return IMAGE_EXTENSIONS.get(self.content_type, ".jpg")


class RemoteImageFetcher:
    """
    Fetches one image per call. Holds no connection between calls unless a
    client is injected (tests pass an httpx.MockTransport-backed client).
    """

    def __init__(
        self,
        timeout: float = 10.0,
        max_attempts: int = 3,
        max_bytes: int = 10_485_760,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.max_bytes = max_bytes
        self._client = client

    @staticmethod
    def validate_link(link: str) -> str:
        link = (link or "").strip()
        parsed = urlparse(link)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValidationError(
                message="Link must be an absolute http(s) URL",
                field="link",
            )
        return link

    async def fetch(self, link: str) -> FetchedImage:
        url = self.validate_link(link)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential_jitter(initial=0.5, max=5),
            retry=retry_if_exception_type(httpx.TransportError),
            reraise=False,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    image = await self._get(url)
        except RetryError as e:
            last = e.last_attempt.exception()
            logger.warning(
                "Remote fetch failed after %d attempts: %s (%s)",
                self.max_attempts,
                url,
                type(last).__name__,
            )
            raise RemoteFetchError(context={"url": url, "error_type": type(last).__name__})

        logger.info("Fetched %d bytes (%s) from %s", len(image.content), image.content_type, url)
        return image

    async def _get(self, url: str) -> FetchedImage:
        if self._client is not None:
            return await self._download(self._client, url)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            return await self._download(client, url)

    async def _download(self, client: httpx.AsyncClient, url: str) -> FetchedImage:
        """Streams the body so nothing past max_bytes is ever read."""
        async with client.stream(
            "GET", url, timeout=self.timeout, follow_redirects=True
        ) as response:
            content_type = self._accept_headers(url, response)
            content = await self._read_capped(url, response)
        return FetchedImage(url=url, content=content, content_type=content_type)

    def _accept_headers(self, url: str, response: httpx.Response) -> str:
        if response.status_code >= 400:
            raise RemoteFetchError(
                message=f"The link answered with HTTP {response.status_code}",
                context={"url": url, "status": response.status_code},
            )

        content_type = response.headers.get("content-type", "").split(";")[0].strip().lower()
        if not content_type.startswith("image/"):
            raise RemoteFetchError(
                message="The link does not point to an image",
                context={"url": url, "content_type": content_type},
            )

        declared = response.headers.get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_bytes:
            raise self._too_large(url, int(declared))
        return content_type

    async def _read_capped(self, url: str, response: httpx.Response) -> bytes:
        received = bytearray()
        async for chunk in response.aiter_bytes():
            received.extend(chunk)
            if len(received) > self.max_bytes:
                raise self._too_large(url, len(received))
        return bytes(received)

    def _too_large(self, url: str, size: int) -> RemoteFetchError:
        return RemoteFetchError(
            message=f"The image is larger than {self.max_bytes // (1024 * 1024)}MB",
            context={"url": url, "size": size},
        )
