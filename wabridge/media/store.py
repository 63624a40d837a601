"""
File store for retrieved inbound media.

Files are addressed by message identifier: an image received in message
ABC123 is stored as <root>/ABC123.jpg and served as /images/ABC123.jpg.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from wabridge.errors import InvalidMediaName, MediaNotFound

from .imaging import content_type_for_name

logger = logging.getLogger(__name__)

IMAGE_ROUTE_PREFIX = "/images"
IMAGE_EXTENSION = ".jpg"


def validate_name(name: str) -> str:
    """
    Reject names that could escape the store directory.

    Raises:
        InvalidMediaName: If the name is empty or contains "..", "/" or "\\"
    """
    if not name or ".." in name or "/" in name or "\\" in name or "\x00" in name:
        raise InvalidMediaName(name)
    return name


def image_filename(message_id: str) -> str:
    return f"{message_id}{IMAGE_EXTENSION}"


def image_url(message_id: str) -> str:
    """Relative retrieval path advertised in webhook notifications."""
    return f"{IMAGE_ROUTE_PREFIX}/{image_filename(message_id)}"


class MediaStore:
    """
    Directory-backed store keyed by message identifier.

    Example:
        store = MediaStore(Path("downloads"))
        await store.save_image("ABC123", data)
        data, content_type = await store.read("ABC123.jpg")
    """

    def __init__(self, root: Path):
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def path_for(self, name: str) -> Path:
        return self._root / validate_name(name)

    async def save_image(self, message_id: str, data: bytes) -> Path:
        """Write image bytes for a message, creating the directory if needed."""
        path = self.path_for(image_filename(message_id))

        def write() -> None:
            self._root.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)

        await asyncio.get_running_loop().run_in_executor(None, write)
        logger.info(f"Image saved: {path} ({len(data)} bytes)")
        return path

    async def read(self, name: str) -> tuple[bytes, str]:
        """
        Read a stored file.

        Returns:
            (data, content_type) with the type inferred from the extension

        Raises:
            InvalidMediaName: If the name contains traversal sequences
            MediaNotFound: If nothing is stored under the name
        """
        path = self.path_for(name)
        if not path.is_file():
            raise MediaNotFound(name)

        data = await asyncio.get_running_loop().run_in_executor(None, path.read_bytes)
        return data, content_type_for_name(name)
