"""
Inbound frames for the wabridge pipeline.

An inbound protocol message is a MessageInfo envelope plus exactly one
content variant. The variant set is closed: the protocol client adapter
maps everything it cannot express onto UnknownContent.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Union

from .base import Frame


@dataclass(frozen=True, slots=True)
class MessageInfo:
    """
    Envelope of a received message.

    Attributes:
        message_id: Protocol message identifier
        sender: Sender JID (e.g., "15551234567@s.whatsapp.net")
        chat: Chat JID (sender for direct chats, group JID for groups)
        timestamp: Server timestamp of the message
        push_name: Sender's display name
        is_from_me: True when the paired account itself sent the message
    """

    message_id: str
    sender: str
    chat: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    push_name: str = ""
    is_from_me: bool = False

    @property
    def is_group(self) -> bool:
        return self.chat.endswith("@g.us")


@dataclass(frozen=True, slots=True)
class MediaLocator:
    """Remote location of an encrypted media blob, as needed by download()."""

    url: str | None = None
    direct_path: str | None = None
    media_key: bytes | None = None
    file_enc_sha256: bytes | None = None
    file_sha256: bytes | None = None

    @property
    def is_downloadable(self) -> bool:
        return bool(self.url and self.direct_path)


# =============================================================================
# Content variants
# =============================================================================


@dataclass(frozen=True, slots=True)
class TextContent:
    text: str


@dataclass(frozen=True, slots=True)
class ImageContent:
    caption: str = ""
    mimetype: str | None = None
    file_length: int | None = None
    width: int | None = None
    height: int | None = None
    locator: MediaLocator = field(default_factory=MediaLocator)


@dataclass(frozen=True, slots=True)
class DocumentContent:
    title: str = ""
    mimetype: str | None = None
    file_length: int | None = None
    page_count: int | None = None
    locator: MediaLocator = field(default_factory=MediaLocator)


@dataclass(frozen=True, slots=True)
class AudioContent:
    mimetype: str | None = None
    file_length: int | None = None
    seconds: int | None = None
    locator: MediaLocator = field(default_factory=MediaLocator)


@dataclass(frozen=True, slots=True)
class VideoContent:
    caption: str = ""
    mimetype: str | None = None
    file_length: int | None = None
    seconds: int | None = None
    width: int | None = None
    height: int | None = None
    locator: MediaLocator = field(default_factory=MediaLocator)


@dataclass(frozen=True, slots=True)
class StickerContent:
    mimetype: str | None = None
    file_length: int | None = None
    width: int | None = None
    height: int | None = None
    locator: MediaLocator = field(default_factory=MediaLocator)


@dataclass(frozen=True, slots=True)
class ContactContent:
    display_name: str = ""
    vcard: str = ""


@dataclass(frozen=True, slots=True)
class LocationContent:
    name: str = ""
    address: str = ""
    latitude: float | None = None
    longitude: float | None = None


@dataclass(frozen=True, slots=True)
class UnknownContent:
    """Any payload the adapter could not map (reactions, polls, buttons...)."""

    kind: str = "unknown"


InboundContent = Union[
    TextContent,
    ImageContent,
    DocumentContent,
    AudioContent,
    VideoContent,
    StickerContent,
    ContactContent,
    LocationContent,
    UnknownContent,
]

INBOUND_CONTENT_TYPES: tuple[type, ...] = (
    TextContent,
    ImageContent,
    DocumentContent,
    AudioContent,
    VideoContent,
    StickerContent,
    ContactContent,
    LocationContent,
    UnknownContent,
)


# =============================================================================
# Frames
# =============================================================================


@dataclass(frozen=True, kw_only=True, slots=True)
class InboundMessageFrame(Frame):
    """
    Frame carrying one received message into the pipeline.

    Attributes:
        info: Message envelope
        content: Exactly one content variant
    """

    info: MessageInfo
    content: InboundContent

    @property
    def content_kind(self) -> str:
        return type(self.content).__name__

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base.update({
            "message_id": self.info.message_id,
            "sender": self.info.sender,
            "chat": self.info.chat,
            "is_from_me": self.info.is_from_me,
            "is_group": self.info.is_group,
            "content_kind": self.content_kind,
        })
        return base


@dataclass(frozen=True, kw_only=True, slots=True)
class ClassifiedMessageFrame(Frame):
    """
    Frame produced by the classifier.

    Attributes:
        info: Message envelope, carried over from the inbound frame
        content: Original content variant
        summary: Human-readable one-line description
        attachment: Variant-specific metadata block, or None for text
    """

    info: MessageInfo
    content: InboundContent
    summary: str = ""
    attachment: dict[str, Any] | None = None

    @property
    def is_image(self) -> bool:
        return isinstance(self.content, ImageContent)

    def to_dict(self) -> dict[str, Any]:
        base = Frame.to_dict(self)
        base.update({
            "message_id": self.info.message_id,
            "summary": self.summary[:100] + "..." if len(self.summary) > 100 else self.summary,
            "attachment_type": self.attachment.get("type") if self.attachment else None,
        })
        return base
