"""
Image helpers: content sniffing, JPEG normalization, QR rendering.

All functions here are synchronous and CPU-bound; async callers run
them in the default executor.
"""

from __future__ import annotations

import io
import logging
import mimetypes
import warnings
from urllib.parse import urlsplit

import qrcode
from PIL import Image, UnidentifiedImageError
from qrcode.image.pil import PilImage

from wabridge.errors import ImageDecodeFailed

logger = logging.getLogger(__name__)

DEFAULT_CONTENT_TYPE = "application/octet-stream"
QR_SIZE = 256


def sniff_content_type(data: bytes, source_url: str = "") -> str:
    """
    Detect the content type of downloaded bytes.

    Tries image format detection first, then the extension of the
    source URL's path.
    """
    try:
        with Image.open(io.BytesIO(data)) as img:
            mime = Image.MIME.get(img.format or "")
            if mime:
                return mime
    except (UnidentifiedImageError, OSError):
        pass

    if source_url:
        guessed, _ = mimetypes.guess_type(urlsplit(source_url).path)
        if guessed:
            return guessed

    return DEFAULT_CONTENT_TYPE


def is_jpeg(content_type: str) -> bool:
    lowered = content_type.lower()
    return "jpeg" in lowered or "jpg" in lowered


def to_jpeg(data: bytes, content_type: str, quality: int = 85) -> bytes:
    """
    Re-encode image bytes as JPEG.

    JPEG input is returned unchanged.

    Raises:
        ImageDecodeFailed: If the bytes cannot be decoded as an image
    """
    if is_jpeg(content_type):
        return data

    try:
        with warnings.catch_warnings():
            # Anything past MAX_IMAGE_PIXELS fails instead of warning
            warnings.simplefilter("error", Image.DecompressionBombWarning)
            img = Image.open(io.BytesIO(data))
        with img:
            img.load()
            if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
                rgba = img.convert("RGBA")
                flat = Image.new("RGB", rgba.size, (255, 255, 255))
                flat.paste(rgba, mask=rgba.getchannel("A"))
            else:
                flat = img.convert("RGB")
    except (
        UnidentifiedImageError,
        Image.DecompressionBombError,
        Image.DecompressionBombWarning,
        OSError,
        ValueError,
    ) as e:
        raise ImageDecodeFailed(content_type, str(e)) from e

    buf = io.BytesIO()
    flat.save(buf, format="JPEG", quality=quality)
    logger.info(f"Converted {content_type} to JPEG: {len(data)} -> {buf.tell()} bytes")
    return buf.getvalue()


def render_qr_png(code: str, size: int = QR_SIZE) -> bytes:
    """Render a pairing code as a square PNG, medium error correction."""
    qr = qrcode.QRCode(error_correction=qrcode.constants.ERROR_CORRECT_M, border=4)
    qr.add_data(code)
    qr.make(fit=True)

    raw = io.BytesIO()
    qr.make_image(image_factory=PilImage).save(raw)
    raw.seek(0)

    with Image.open(raw) as img:
        scaled = img.convert("L").resize((size, size), Image.NEAREST)
        out = io.BytesIO()
        scaled.save(out, format="PNG")
    return out.getvalue()


def content_type_for_name(name: str) -> str:
    """Content type served for a stored file, from its extension."""
    ext = name.rsplit(".", 1)[-1].lower() if "." in name else ""
    return {
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "png": "image/png",
        "gif": "image/gif",
        "webp": "image/webp",
    }.get(ext, DEFAULT_CONTENT_TYPE)
