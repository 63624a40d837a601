"""
Dependency Injection for wabridge.

Provides the settings singleton and the service container built at
application startup (protocol client, session, pairing, composer,
inbound pipeline, media store).
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

import httpx

from wabridge.client import ProtocolClient, load_client
from wabridge.config.schemas import AppSettings
from wabridge.errors import ServiceUnavailable
from wabridge.jobs import JobTracker
from wabridge.media import AttachmentPipeline, MediaStore
from wabridge.outbound import OutboundComposer
from wabridge.pipeline import create_inbound_pipeline
from wabridge.session import PairingStateMachine, Session, SessionLifecycleController

logger = logging.getLogger(__name__)


def _env(name: str, default: str = "") -> str:
    return os.getenv(f"WABRIDGE_{name}", default)


@lru_cache()
def get_settings() -> AppSettings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern. The unprefixed WA_WEBHOOK_URL,
    DATABASE_URL and PORT variables are honoured as fallbacks.
    """
    return AppSettings(
        # Service
        service_name=_env("SERVICE_NAME", "wabridge"),
        environment=_env("ENVIRONMENT", "development"),
        debug=_env("DEBUG", "false").lower() == "true",
        log_level=_env("LOG_LEVEL", "INFO"),
        # HTTP facade
        host=_env("HOST", "0.0.0.0"),
        port=int(_env("PORT", os.getenv("PORT", "8080"))),
        # Protocol client
        client_factory=_env("CLIENT_FACTORY"),
        database_url=_env("DATABASE_URL", os.getenv("DATABASE_URL", "")),
        # Inbound relay
        webhook_url=_env("WEBHOOK_URL", os.getenv("WA_WEBHOOK_URL", "")),
        webhook_timeout_seconds=float(_env("WEBHOOK_TIMEOUT_SECONDS", "10")),
        downloads_dir=Path(_env("DOWNLOADS_DIR", "downloads")),
        # Pairing
        pairing_timeout_seconds=float(_env("PAIRING_TIMEOUT_SECONDS", "15")),
        pairing_settle_seconds=float(_env("PAIRING_SETTLE_SECONDS", "2")),
        # Outbound
        fetch_timeout_seconds=float(_env("FETCH_TIMEOUT_SECONDS", "30")),
        jpeg_quality=int(_env("JPEG_QUALITY", "85")),
        typing_indicator=_env("TYPING_INDICATOR", "true").lower() == "true",
        # Shutdown
        shutdown_grace_seconds=float(_env("SHUTDOWN_GRACE_SECONDS", "5")),
    )


@dataclass
class Services:
    """Everything the HTTP routes need, built once per process."""

    settings: AppSettings
    client: ProtocolClient
    session: Session
    jobs: JobTracker
    store: MediaStore
    attachments: AttachmentPipeline
    composer: OutboundComposer
    pairing: PairingStateMachine
    lifecycle: SessionLifecycleController
    webhook_http: httpx.AsyncClient


# Global instance (initialized in the application lifespan)
_services: Optional[Services] = None


def build_services(settings: AppSettings, client: ProtocolClient) -> Services:
    """Wire the components around an already-built protocol client."""
    session = Session()
    jobs = JobTracker()
    store = MediaStore(settings.downloads_dir)
    webhook_http = httpx.AsyncClient(timeout=settings.webhook_timeout_seconds)

    attachments = AttachmentPipeline(
        client,
        timeout_seconds=settings.fetch_timeout_seconds,
        jpeg_quality=settings.jpeg_quality,
    )
    composer = OutboundComposer(
        client,
        attachments,
        typing_indicator=settings.typing_indicator,
    )
    pairing = PairingStateMachine(
        session,
        client,
        jobs,
        timeout_seconds=settings.pairing_timeout_seconds,
        settle_seconds=settings.pairing_settle_seconds,
    )
    pipeline = create_inbound_pipeline(
        settings,
        store=store,
        jobs=jobs,
        http_client=webhook_http,
    )
    lifecycle = SessionLifecycleController(
        settings,
        session,
        client,
        pairing,
        pipeline,
        jobs,
    )

    return Services(
        settings=settings,
        client=client,
        session=session,
        jobs=jobs,
        store=store,
        attachments=attachments,
        composer=composer,
        pairing=pairing,
        lifecycle=lifecycle,
        webhook_http=webhook_http,
    )


async def initialize_services(
    settings: AppSettings | None = None,
    client: ProtocolClient | None = None,
) -> Services:
    """
    Initialize all services on application startup.

    Called from FastAPI lifespan. Tests pass a fake client directly.

    Raises:
        ClientLoadError: If the protocol client cannot be built
    """
    global _services
    settings = settings or get_settings()
    if client is None:
        client = await load_client(settings)

    services = build_services(settings, client)
    if settings.webhook_configured:
        logger.info(f"Webhook URL configured: {settings.webhook_url}")

    await services.lifecycle.startup()
    _services = services
    return services


async def shutdown_services() -> None:
    """
    Cleanup all services on application shutdown.

    Called from FastAPI lifespan.
    """
    global _services
    if _services is None:
        return

    services, _services = _services, None
    await services.lifecycle.shutdown(grace_seconds=services.settings.shutdown_grace_seconds)
    await services.attachments.close()
    await services.webhook_http.aclose()


def get_services() -> Services:
    if _services is None:
        raise ServiceUnavailable("Service is not initialized")
    return _services


# =============================================================================
# FastAPI dependencies
# =============================================================================


def get_lifecycle() -> SessionLifecycleController:
    return get_services().lifecycle


def get_pairing() -> PairingStateMachine:
    return get_services().pairing


def get_composer() -> OutboundComposer:
    return get_services().composer


def get_store() -> MediaStore:
    return get_services().store
