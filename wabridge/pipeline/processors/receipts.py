"""
Envelope processors: self-message filtering and read receipts.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from ..processor import Processor

if TYPE_CHECKING:
    from ..context import PipelineContext
    from ..frames import Frame

logger = logging.getLogger(__name__)


class SelfMessageFilterProcessor(Processor):
    """
    Drops messages sent by the paired account itself.

    Input: InboundMessageFrame
    Output: the same frame, or None for self-originated messages

    Runs first, so an own message is neither marked read nor relayed.
    """

    @property
    def name(self) -> str:
        return "self_filter"

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame | None:
        from ..frames import InboundMessageFrame

        if not isinstance(frame, InboundMessageFrame):
            return frame

        if frame.info.is_from_me:
            logger.debug(f"Ignoring own message {frame.info.message_id}")
            return None

        return frame


class ReadReceiptProcessor(Processor):
    """
    Marks an inbound message as read.

    Input: InboundMessageFrame
    Output: the same frame

    Best-effort: a failed receipt is logged and processing continues.
    """

    @property
    def name(self) -> str:
        return "read_receipt"

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        from ..frames import InboundMessageFrame

        if not isinstance(frame, InboundMessageFrame) or ctx.client is None:
            return frame

        info = frame.info
        try:
            await ctx.client.mark_read(
                [info.message_id],
                datetime.now(UTC),
                info.chat,
                info.sender,
            )
            logger.debug(f"Message {info.message_id} marked as read")
        except Exception as e:
            logger.warning(f"Failed to mark message {info.message_id} as read: {e}")

        return frame
