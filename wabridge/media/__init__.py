"""
wabridge media handling.

Outbound attachment preparation, image helpers, and the store for
retrieved inbound images.
"""

from .attachments import AttachmentPipeline, check_source
from .imaging import content_type_for_name, render_qr_png, sniff_content_type, to_jpeg
from .store import MediaStore, image_url, validate_name

__all__ = [
    "AttachmentPipeline",
    "check_source",
    "MediaStore",
    "image_url",
    "validate_name",
    "content_type_for_name",
    "render_qr_png",
    "sniff_content_type",
    "to_jpeg",
]
