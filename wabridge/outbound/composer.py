"""
Outbound Composer for wabridge.

Decides how one OutboundRequest becomes an ordered list of protocol
messages, then sends them in order.

Composition policy:
- text + exactly one image -> one image message captioned with the text
  (the attachment's own caption is dropped)
- otherwise -> a text message first (if there is text), then one message
  per attachment in input order, each keeping its own caption/filename

Text plus a single document, audio or video is NOT combined; only images
carry the text as caption.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wabridge.client.protocol import ChatPresence, presence_jid, recipient_jid
from wabridge.errors import InvalidRecipient, SendFailed

from .models import AttachmentKind, ComposedMessage, SentMessage

if TYPE_CHECKING:
    from wabridge.client.protocol import ProtocolClient
    from wabridge.media.attachments import AttachmentPipeline

    from .models import AttachmentSpec, OutboundRequest, PreparedMedia

logger = logging.getLogger(__name__)

IMAGE_WITH_CAPTION = "image_with_caption"


class OutboundComposer:
    """
    Composes and sends outbound requests.

    Attachment preparation happens entirely before the first send, so a
    preparation failure aborts the request with nothing delivered.

    Example:
        composer = OutboundComposer(client, AttachmentPipeline(client))
        sent = await composer.send(request)
    """

    def __init__(
        self,
        client: ProtocolClient,
        attachments: AttachmentPipeline,
        typing_indicator: bool = True,
    ):
        self._client = client
        self._attachments = attachments
        self._typing_indicator = typing_indicator

    async def compose(self, request: OutboundRequest) -> list[ComposedMessage]:
        """
        Build the ordered message list for a request.

        Raises:
            AttachmentError: If any attachment cannot be prepared
        """
        if request.combines_caption:
            spec = request.attachments[0]
            media = await self._attachments.fetch_and_normalize(spec)
            return [
                self._build_media_message(
                    spec,
                    media,
                    caption=request.message,
                    label=IMAGE_WITH_CAPTION,
                )
            ]

        messages: list[ComposedMessage] = []
        if request.message:
            messages.append(ComposedMessage.text_message(request.message))

        for spec in request.attachments:
            media = await self._attachments.fetch_and_normalize(spec)
            messages.append(self._build_media_message(spec, media, caption=spec.caption))

        return messages

    async def send(self, request: OutboundRequest) -> list[SentMessage]:
        """
        Compose a request and send every message to its target, in order.

        Returns:
            One SentMessage per delivered message, mirroring input order

        Raises:
            InvalidRecipient: If the number cannot be addressed
            AttachmentError: If preparation fails (nothing was sent)
            SendFailed: On the first send failure (earlier messages stay sent)
        """
        try:
            jid = recipient_jid(request.number)
        except ValueError as e:
            raise InvalidRecipient(str(e)) from e

        messages = await self.compose(request)

        if self._typing_indicator:
            await self._send_typing(jid)

        sent: list[SentMessage] = []
        for index, message in enumerate(messages, start=1):
            try:
                receipt = await self._client.send_message(jid, message)
            except Exception as e:
                logger.error(f"Send failed at message {index}/{len(messages)} to {jid}: {e}")
                raise SendFailed(index, str(e)) from e

            sent.append(self._report(index, message, receipt.message_id))
            logger.info(f"Sent message {index}/{len(messages)} ({message.label}) to {jid}")

        return sent

    def _build_media_message(
        self,
        spec: AttachmentSpec,
        media: PreparedMedia,
        caption: str,
        label: str | None = None,
    ) -> ComposedMessage:
        kind = spec.type
        filename = spec.filename
        if kind is AttachmentKind.DOCUMENT and not filename:
            filename = "document"

        return ComposedMessage(
            kind=kind.value,
            label=label or kind.value,
            caption=caption if kind in (AttachmentKind.IMAGE, AttachmentKind.VIDEO) else "",
            filename=filename,
            media=media,
        )

    def _report(self, index: int, message: ComposedMessage, message_id: str | None) -> SentMessage:
        if message.is_text:
            return SentMessage(index=index, type="text", content=message.text, message_id=message_id)
        if message.label == IMAGE_WITH_CAPTION:
            return SentMessage(
                index=index,
                type=IMAGE_WITH_CAPTION,
                content=message.caption,
                filename=message.filename,
                message_id=message_id,
            )
        return SentMessage(
            index=index,
            type=message.label,
            filename=message.filename,
            message_id=message_id,
        )

    async def _send_typing(self, jid: str) -> None:
        """Best-effort composing indicator."""
        target = presence_jid(jid)
        try:
            await self._client.send_chat_presence(target, ChatPresence.COMPOSING)
            logger.debug(f"Typing indicator sent to {target}")
        except Exception as e:
            logger.warning(f"Failed to send typing indicator: {e}")
