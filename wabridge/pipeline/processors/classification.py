"""
Inbound Classification Processor for wabridge.

Turns the content variant of an inbound message into a summary line and
a variant-specific metadata block for the webhook notification.
"""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from wabridge.media.store import image_url

from ..frames import (
    AudioContent,
    ContactContent,
    DocumentContent,
    ImageContent,
    LocationContent,
    MessageInfo,
    StickerContent,
    TextContent,
    UnknownContent,
    VideoContent,
)
from ..processor import Processor

if TYPE_CHECKING:
    from ..context import PipelineContext
    from ..frames import Frame, InboundContent

logger = logging.getLogger(__name__)

NON_TEXT_SUMMARY = "Non-text message received"

Classification = tuple[str, "dict[str, Any] | None"]


def _with_caption(prefix: str, caption: str) -> str:
    return f"{prefix}: {caption}" if caption else prefix


def _text(content: TextContent, info: MessageInfo) -> Classification:
    return content.text, None


def _image(content: ImageContent, info: MessageInfo) -> Classification:
    return _with_caption("Image received", content.caption), {
        "type": "image",
        "caption": content.caption,
        "mimetype": content.mimetype,
        "file_length": content.file_length,
        "width": content.width,
        "height": content.height,
        "url": image_url(info.message_id),
    }


def _document(content: DocumentContent, info: MessageInfo) -> Classification:
    return f"Document received: {content.title}", {
        "type": "document",
        "title": content.title,
        "mimetype": content.mimetype,
        "file_length": content.file_length,
        "page_count": content.page_count,
    }


def _audio(content: AudioContent, info: MessageInfo) -> Classification:
    return "Audio message received", {
        "type": "audio",
        "mimetype": content.mimetype,
        "file_length": content.file_length,
        "seconds": content.seconds,
    }


def _video(content: VideoContent, info: MessageInfo) -> Classification:
    return _with_caption("Video received", content.caption), {
        "type": "video",
        "caption": content.caption,
        "mimetype": content.mimetype,
        "file_length": content.file_length,
        "seconds": content.seconds,
        "width": content.width,
        "height": content.height,
    }


def _sticker(content: StickerContent, info: MessageInfo) -> Classification:
    return "Sticker received", {
        "type": "sticker",
        "mimetype": content.mimetype,
        "file_length": content.file_length,
        "width": content.width,
        "height": content.height,
    }


def _contact(content: ContactContent, info: MessageInfo) -> Classification:
    return f"Contact received: {content.display_name}", {
        "type": "contact",
        "display_name": content.display_name,
        "vcard": content.vcard,
    }


def _location(content: LocationContent, info: MessageInfo) -> Classification:
    return f"Location received: {content.name}", {
        "type": "location",
        "name": content.name,
        "address": content.address,
        "latitude": content.latitude,
        "longitude": content.longitude,
    }


def _unknown(content: UnknownContent, info: MessageInfo) -> Classification:
    return NON_TEXT_SUMMARY, None


# One handler per content variant; tests assert this covers INBOUND_CONTENT_TYPES.
CLASSIFIERS: dict[type, Callable[[Any, MessageInfo], Classification]] = {
    TextContent: _text,
    ImageContent: _image,
    DocumentContent: _document,
    AudioContent: _audio,
    VideoContent: _video,
    StickerContent: _sticker,
    ContactContent: _contact,
    LocationContent: _location,
    UnknownContent: _unknown,
}


def classify(content: InboundContent, info: MessageInfo) -> Classification:
    """
    Classify one content variant.

    Returns:
        (summary, attachment) where attachment is None for text and
        unrecognized content
    """
    handler = CLASSIFIERS.get(type(content))
    if handler is None:
        logger.warning(f"No classifier for {type(content).__name__}, treating as unknown")
        return NON_TEXT_SUMMARY, None
    return handler(content, info)


class ClassificationProcessor(Processor):
    """
    Classifies inbound messages.

    Input: InboundMessageFrame
    Output: ClassifiedMessageFrame with summary and attachment metadata
    """

    @property
    def name(self) -> str:
        return "classification"

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        from ..frames import ClassifiedMessageFrame, InboundMessageFrame

        if not isinstance(frame, InboundMessageFrame):
            return frame

        summary, attachment = classify(frame.content, frame.info)

        logger.info(
            f"Message {frame.info.message_id} from {frame.info.sender}: "
            f"{frame.content_kind} - {summary[:80]}"
        )

        return ClassifiedMessageFrame(
            info=frame.info,
            content=frame.content,
            summary=summary,
            attachment=attachment,
            source_frame_id=frame.id,
            metadata=frame.metadata,
        )
