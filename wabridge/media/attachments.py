"""
Attachment Pipeline for wabridge.

Turns an attachment URL into an uploaded, protocol-ready media
reference: fetch, detect content type, normalize images to JPEG,
upload through the protocol client.
"""
from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

import httpx

from wabridge.errors import FetchFailed, UnsupportedSourceScheme, UploadFailed
from wabridge.outbound.models import AttachmentKind, PreparedMedia

from .imaging import sniff_content_type, to_jpeg

if TYPE_CHECKING:
    from wabridge.client.protocol import ProtocolClient
    from wabridge.outbound.models import AttachmentSpec

logger = logging.getLogger(__name__)

ALLOWED_SCHEMES = ("http", "https")


def check_source(url: str) -> None:
    """
    Accept only absolute HTTP(S) URLs.

    Inline data (data: URIs, base64 blobs) and local paths are refused.

    Raises:
        UnsupportedSourceScheme: For anything else
    """
    parts = urlsplit(url.strip())
    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.netloc:
        raise UnsupportedSourceScheme(url)


class AttachmentPipeline:
    """
    Fetches, normalizes, and uploads outbound attachments.

    Example:
        pipeline = AttachmentPipeline(client, timeout_seconds=30.0)
        media = await pipeline.fetch_and_normalize(spec)
        # media.reference.url, media.mimetype, media.file_length
    """

    def __init__(
        self,
        client: ProtocolClient,
        http_client: httpx.AsyncClient | None = None,
        timeout_seconds: float = 30.0,
        jpeg_quality: int = 85,
    ):
        """
        Initialize the attachment pipeline.

        Args:
            client: Protocol client used for uploads
            http_client: Shared HTTP client (created lazily if not given)
            timeout_seconds: Timeout for attachment downloads
            jpeg_quality: Quality used when re-encoding images
        """
        self._client = client
        self._http = http_client
        self._owns_http = http_client is None
        self._timeout = timeout_seconds
        self._jpeg_quality = jpeg_quality

    def _get_http(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self._timeout, follow_redirects=True)
        return self._http

    async def fetch(self, url: str) -> tuple[bytes, str]:
        """
        Download an attachment.

        Returns:
            (data, content_type), the type taken from the response header
            or sniffed from the bytes when the header is absent

        Raises:
            UnsupportedSourceScheme: For non-HTTP(S) sources (no request made)
            FetchFailed: For non-2xx responses or transport errors
        """
        check_source(url)
        logger.info(f"Downloading attachment: {url[:80]}")

        try:
            response = await self._get_http().get(url)
        except httpx.HTTPError as e:
            logger.error(f"Attachment download failed: {e}")
            raise FetchFailed(url, 0, str(e)) from e

        if not response.is_success:
            logger.error(f"Attachment download HTTP error: {response.status_code}")
            raise FetchFailed(url, response.status_code)

        data = response.content
        header = response.headers.get("content-type", "").split(";", 1)[0].strip()
        if header:
            content_type = header
        else:
            content_type = sniff_content_type(data, url)
            logger.debug(f"Detected content type: {content_type}")

        logger.info(f"Downloaded {len(data)} bytes, type={content_type}")
        return data, content_type

    async def fetch_and_normalize(self, spec: AttachmentSpec) -> PreparedMedia:
        """
        Produce an uploaded media reference for one attachment.

        Images that are not already JPEG are re-encoded as JPEG; other
        kinds are uploaded as fetched.

        Raises:
            UnsupportedSourceScheme, FetchFailed, ImageDecodeFailed, UploadFailed
        """
        data, content_type = await self.fetch(spec.url)

        if spec.type is AttachmentKind.IMAGE:
            loop = asyncio.get_running_loop()
            data = await loop.run_in_executor(
                None, partial(to_jpeg, data, content_type, self._jpeg_quality)
            )
            content_type = "image/jpeg"

        logger.info(f"Uploading {spec.type.value} attachment ({len(data)} bytes)")
        try:
            reference = await self._client.upload(data, spec.type.media_kind)
        except Exception as e:
            logger.error(f"Failed to upload attachment: {e}")
            raise UploadFailed(str(e)) from e

        logger.debug(f"Uploaded: direct_path={reference.direct_path}")
        return PreparedMedia(
            reference=reference,
            mimetype=content_type,
            file_length=len(data),
        )

    async def close(self) -> None:
        """Close the HTTP client if this pipeline created it."""
        if self._http is not None and self._owns_http:
            await self._http.aclose()
        self._http = None
