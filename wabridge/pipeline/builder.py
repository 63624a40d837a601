"""
Pipeline Builder Factory for wabridge.

Creates the inbound message pipeline.

Architecture:
    InboundMessageFrame
        -> SelfMessageFilter (own messages stop here)
        -> ReadReceipt
        -> Classification
        -> MediaRetrieval (images only, background job)
        -> Webhook (only when a URL is configured)
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .executor import Pipeline, PipelineBuilder
from .processors import (
    ClassificationProcessor,
    MediaRetrievalProcessor,
    ReadReceiptProcessor,
    SelfMessageFilterProcessor,
    WebhookProcessor,
)

if TYPE_CHECKING:
    import httpx

    from wabridge.config.schemas import AppSettings
    from wabridge.jobs import JobTracker
    from wabridge.media.store import MediaStore

logger = logging.getLogger(__name__)


class PipelineFactory:
    """
    Factory for the inbound pipeline.

    Collaborators shared with the rest of the process (media store, job
    tracker, webhook HTTP client) are injected here; the protocol client
    travels on the PipelineContext of each run.
    """

    def __init__(
        self,
        settings: AppSettings,
        *,
        store: MediaStore,
        jobs: JobTracker,
        http_client: httpx.AsyncClient | None = None,
    ):
        self._settings = settings
        self._store = store
        self._jobs = jobs
        self._http_client = http_client

    def create_inbound_pipeline(self) -> Pipeline:
        """
        Create the inbound message pipeline.

        Returns:
            Configured Pipeline instance
        """
        webhook_url = self._settings.webhook_url

        builder = (
            PipelineBuilder()
            .add(SelfMessageFilterProcessor())
            .add(ReadReceiptProcessor())
            .add(ClassificationProcessor())
            .add(MediaRetrievalProcessor(store=self._store, jobs=self._jobs))
            .add_if(
                bool(webhook_url),
                WebhookProcessor(
                    webhook_url=webhook_url or "",
                    http_client=self._http_client,
                    timeout_seconds=self._settings.webhook_timeout_seconds,
                ),
            )
        )

        if not webhook_url:
            logger.info("[pipeline_factory] No webhook URL configured, notifications disabled")

        return builder.build()


def create_inbound_pipeline(
    settings: AppSettings,
    *,
    store: MediaStore,
    jobs: JobTracker,
    http_client: httpx.AsyncClient | None = None,
) -> Pipeline:
    """
    Create the inbound message pipeline.

    Args:
        settings: Application settings (webhook URL and timeout)
        store: Where retrieved images are written
        jobs: Tracker for background retrieval jobs
        http_client: Optional shared client for webhook POSTs

    Returns:
        Configured inbound Pipeline
    """
    factory = PipelineFactory(settings, store=store, jobs=jobs, http_client=http_client)
    return factory.create_inbound_pipeline()
