"""
Outbound data model.

OutboundRequest and AttachmentSpec are the caller-facing request
schema. PreparedMedia, ComposedMessage and SentMessage are internal to
a single send call and never persisted.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

from wabridge.client.protocol import MediaKind, MediaReference

MAX_MESSAGE_LENGTH = 4096


class AttachmentKind(str, Enum):
    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"

    @property
    def media_kind(self) -> MediaKind:
        return MediaKind(self.value)


class AttachmentSpec(BaseModel):
    """One attachment of an outbound request."""

    type: AttachmentKind = Field(..., description="image, document, audio or video")
    url: str = Field(..., min_length=1, description="Public HTTP/HTTPS link to the file")
    filename: str = Field("", description="Filename shown for documents")
    caption: str = Field("", description="Caption for images and videos")


class OutboundRequest(BaseModel):
    """A send request: a target plus text and/or attachments."""

    number: str = Field(..., min_length=1, description="Phone number with country code, or a full JID")
    message: str = Field("", max_length=MAX_MESSAGE_LENGTH)
    attachments: list[AttachmentSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _require_content(self) -> OutboundRequest:
        if not self.message and not self.attachments:
            raise ValueError("Either message or attachments are required")
        return self

    @property
    def combines_caption(self) -> bool:
        """Text plus exactly one image is sent as a single captioned image."""
        return (
            bool(self.message)
            and len(self.attachments) == 1
            and self.attachments[0].type is AttachmentKind.IMAGE
        )


@dataclass(frozen=True, slots=True)
class PreparedMedia:
    """An uploaded attachment, ready to be referenced by a message."""

    reference: MediaReference
    mimetype: str
    file_length: int


@dataclass(frozen=True, slots=True)
class ComposedMessage:
    """
    One protocol-ready outbound unit.

    Attributes:
        kind: "text" or an attachment kind
        label: Effective type reported to the caller
            ("text", "image_with_caption", or the attachment kind)
        text: Body for text messages
        caption: Caption for image and video messages
        filename: Filename (documents use it as title too)
        media: Uploaded media for non-text messages
    """

    kind: str
    label: str
    text: str = ""
    caption: str = ""
    filename: str = ""
    media: PreparedMedia | None = None

    @property
    def is_text(self) -> bool:
        return self.kind == "text"

    @classmethod
    def text_message(cls, text: str) -> ComposedMessage:
        return cls(kind="text", label="text", text=text)


@dataclass(frozen=True, slots=True)
class SentMessage:
    """Report entry for one delivered message."""

    index: int
    type: str
    content: str | None = None
    filename: str | None = None
    message_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"index": self.index, "type": self.type}
        if self.content is not None:
            data["content"] = self.content
        if self.filename is not None:
            data["filename"] = self.filename
        if self.message_id is not None:
            data["message_id"] = self.message_id
        return data
