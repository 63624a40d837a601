"""
wabridge outbound messaging.

Request schema, message composition, and ordered sending.
"""

from .composer import IMAGE_WITH_CAPTION, OutboundComposer
from .models import (
    MAX_MESSAGE_LENGTH,
    AttachmentKind,
    AttachmentSpec,
    ComposedMessage,
    OutboundRequest,
    PreparedMedia,
    SentMessage,
)

__all__ = [
    "OutboundComposer",
    "IMAGE_WITH_CAPTION",
    "MAX_MESSAGE_LENGTH",
    "AttachmentKind",
    "AttachmentSpec",
    "OutboundRequest",
    "ComposedMessage",
    "PreparedMedia",
    "SentMessage",
]
