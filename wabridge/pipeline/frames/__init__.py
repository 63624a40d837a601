"""
wabridge Pipeline Frames

Frames are immutable data containers that flow through the inbound
pipeline. Each frame type represents a stage of inbound processing.
"""

from .base import ErrorFrame, Frame
from .inbound import (
    INBOUND_CONTENT_TYPES,
    AudioContent,
    ClassifiedMessageFrame,
    ContactContent,
    DocumentContent,
    ImageContent,
    InboundContent,
    InboundMessageFrame,
    LocationContent,
    MediaLocator,
    MessageInfo,
    StickerContent,
    TextContent,
    UnknownContent,
    VideoContent,
)
from .action import WebhookDeliveryFrame

__all__ = [
    # Base
    "Frame",
    "ErrorFrame",
    # Inbound
    "MessageInfo",
    "MediaLocator",
    "InboundContent",
    "INBOUND_CONTENT_TYPES",
    "TextContent",
    "ImageContent",
    "DocumentContent",
    "AudioContent",
    "VideoContent",
    "StickerContent",
    "ContactContent",
    "LocationContent",
    "UnknownContent",
    "InboundMessageFrame",
    "ClassifiedMessageFrame",
    # Action
    "WebhookDeliveryFrame",
]
