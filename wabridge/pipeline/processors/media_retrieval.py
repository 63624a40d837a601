"""
Media Retrieval Processor for wabridge.

Downloads received images in the background and stores them by
message identifier, so webhook dispatch never waits on a large download.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wabridge.client.protocol import MediaKind

from ..processor import Processor

if TYPE_CHECKING:
    from wabridge.client.protocol import ProtocolClient
    from wabridge.jobs import JobTracker
    from wabridge.media.store import MediaStore

    from ..context import PipelineContext
    from ..frames import Frame, ImageContent

logger = logging.getLogger(__name__)


async def retrieve_image(
    client: ProtocolClient,
    store: MediaStore,
    message_id: str,
    content: ImageContent,
) -> None:
    """
    Download one image and write it to the store.

    Failures are logged and swallowed; the retrieval URL advertised in
    the webhook simply stays unresolvable.
    """
    locator = content.locator
    if not locator.is_downloadable:
        logger.error(f"Image {message_id}: URL or direct path missing, not downloading")
        return

    try:
        data = await client.download(locator, MediaKind.IMAGE)
    except Exception as e:
        logger.error(f"Failed to download image {message_id}: {e}")
        return

    try:
        await store.save_image(message_id, data)
    except OSError as e:
        logger.error(f"Failed to save image {message_id}: {e}")
        return

    logger.info(f"Image {message_id} downloaded successfully ({len(data)} bytes)")


class MediaRetrievalProcessor(Processor):
    """
    Starts background retrieval for image messages.

    Input: ClassifiedMessageFrame
    Output: the same frame, unchanged

    Only images are retrieved. The job is started and not awaited.
    """

    def __init__(self, store: MediaStore, jobs: JobTracker):
        self._store = store
        self._jobs = jobs

    @property
    def name(self) -> str:
        return "media_retrieval"

    async def process(
        self,
        frame: Frame,
        ctx: PipelineContext,
    ) -> Frame:
        from ..frames import ClassifiedMessageFrame

        if not isinstance(frame, ClassifiedMessageFrame) or not frame.is_image:
            return frame

        if ctx.client is None:
            logger.warning("No protocol client in context, skipping image retrieval")
            return frame

        message_id = frame.info.message_id
        self._jobs.spawn(
            f"image:{message_id}",
            retrieve_image(ctx.client, self._store, message_id, frame.content),
        )
        return frame
