"""
Session lifecycle controller for wabridge.

Process-wide orchestration around the protocol client: reconnecting a
stored identity at startup, routing client events, the manual
disconnect, read-only status, the readiness guard used by outbound
routes, and graceful shutdown.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from wabridge import __version__
from wabridge.client.protocol import (
    ConnectedEvent,
    ConnectFailureEvent,
    DeviceIdentity,
    DisconnectedEvent,
    LoggedOutEvent,
    PairSuccessEvent,
    StreamErrorEvent,
)
from wabridge.errors import NotPaired, ServiceUnavailable
from wabridge.pipeline.context import PipelineContext
from wabridge.pipeline.frames import InboundMessageFrame

if TYPE_CHECKING:
    from wabridge.client.protocol import ProtocolClient
    from wabridge.config.schemas import AppSettings
    from wabridge.jobs import JobTracker
    from wabridge.pipeline.context import PipelineResult
    from wabridge.pipeline.executor import Pipeline

    from .pairing import PairingStateMachine
    from .state import Session

logger = logging.getLogger(__name__)


def identity_from_jid(jid: str) -> DeviceIdentity:
    """Build an identity from a device JID such as "15551234567:12@s.whatsapp.net"."""
    user = jid.split("@", 1)[0].split(":", 1)[0]
    return DeviceIdentity(jid=jid, user=user)


class SessionLifecycleController:
    """
    Owns the process-level session lifecycle.

    Example:
        controller = SessionLifecycleController(
            settings, session, client, pairing, pipeline, jobs
        )
        await controller.startup()
        ...
        await controller.shutdown(grace_seconds=5.0)
    """

    def __init__(
        self,
        settings: AppSettings,
        session: Session,
        client: ProtocolClient,
        pairing: PairingStateMachine,
        pipeline: Pipeline,
        jobs: JobTracker,
    ):
        self._settings = settings
        self._session = session
        self._client = client
        self._pairing = pairing
        self._pipeline = pipeline
        self._jobs = jobs
        self._in_flight = 0
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def session(self) -> Session:
        return self._session

    @property
    def in_flight(self) -> int:
        return self._in_flight

    # -------------------------------------------------------------------------
    # Startup and manual reset
    # -------------------------------------------------------------------------

    async def startup(self) -> None:
        """
        Register the event handler and reconnect a stored identity.

        A failed reconnect leaves the session DISCONNECTED with the
        identity kept; the failure may be transient.
        """
        self._client.add_event_handler(self.handle_event)

        identity = self._client.store.device_identity
        if identity is None:
            logger.info("No existing session found - use /pair endpoint to create one")
            return

        logger.info(f"Found existing session for device {identity.device_id}")
        self._session.mark_paired(identity)

        try:
            await self._client.connect()
        except Exception as e:
            logger.warning(
                f"Failed to connect to existing session: {e}. "
                "The phone may have unlinked this device, the device limit may be "
                "exceeded, or the network is down. Use /pair to create a new session"
            )
            self._session.mark_disconnected()
            return

        if self._client.is_connected():
            self._session.mark_connected()
        logger.info("Connected to WhatsApp with existing session")

    async def disconnect(self) -> None:
        """Disconnect, clear the stored identity and return to UNPAIRED."""
        await self._pairing.cancel()

        if self._client.is_connected():
            try:
                await self._client.disconnect()
                logger.info("Manually disconnected from WhatsApp")
            except Exception as e:
                logger.warning(f"Error disconnecting client, clearing session anyway: {e}")

        if self._client.store.device_identity is not None:
            try:
                await self._client.store.delete()
                logger.info("Session cleared successfully")
            except Exception as e:
                logger.warning(f"Failed to clear session during disconnect: {e}")

        self._session.reset()

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def status(self) -> dict[str, Any]:
        return {
            "version": __version__,
            "paired": self._session.is_paired,
            "connected": self._client.is_connected(),
            "webhook_configured": self._settings.webhook_configured,
            "state": self._session.state.value,
        }

    def device_info(self) -> dict[str, Any]:
        identity = self._client.store.device_identity
        return {
            "connected": self._client.is_connected(),
            "paired": self._session.is_paired,
            "device_id": identity.device_id if identity else None,
            "jid": identity.jid if identity else None,
            "phone": identity.user if identity else None,
        }

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    def require_accepting(self) -> None:
        if not self._session.accepting_work:
            raise ServiceUnavailable()

    def require_ready(self) -> None:
        """
        Guard for outbound actions.

        Raises:
            ServiceUnavailable: Shutdown has begun
            NotPaired: The session is not paired or the client is not connected
        """
        self.require_accepting()
        if not (self._session.is_paired and self._client.is_connected()):
            raise NotPaired()

    @asynccontextmanager
    async def work(self) -> AsyncIterator[None]:
        """
        Track one unit of in-flight work so shutdown can wait for it.

        Raises:
            ServiceUnavailable: Shutdown has begun
        """
        self.require_accepting()
        self._in_flight += 1
        self._idle.clear()
        try:
            yield
        finally:
            self._in_flight -= 1
            if self._in_flight == 0:
                self._idle.set()

    # -------------------------------------------------------------------------
    # Client events
    # -------------------------------------------------------------------------

    async def handle_event(self, event: Any) -> None:
        """Route one event from the protocol client."""
        if isinstance(event, InboundMessageFrame):
            await self._handle_message(event)
        elif isinstance(event, ConnectedEvent):
            logger.info("Connected to WhatsApp")
            self._session.mark_connected()
        elif isinstance(event, DisconnectedEvent):
            logger.info("Disconnected from WhatsApp")
            self._session.mark_disconnected()
        elif isinstance(event, PairSuccessEvent):
            identity = self._client.store.device_identity or identity_from_jid(event.jid)
            logger.info(f"Successfully paired, device {identity.device_id}")
            self._session.mark_paired(identity)
        elif isinstance(event, LoggedOutEvent):
            logger.warning(
                f"Logged out from WhatsApp ({event.reason or 'no reason given'}). "
                "Another device may have connected, or the device was unlinked on the phone"
            )
            self._session.reset()
        elif isinstance(event, StreamErrorEvent):
            logger.warning(f"Stream error {event.code}: connection issue or device limit problem")
        elif isinstance(event, ConnectFailureEvent):
            logger.error(f"Connection failed: {event.reason}. Check connectivity and device limits")
        else:
            logger.debug(f"Ignoring client event {type(event).__name__}")

    async def _handle_message(self, frame: InboundMessageFrame) -> PipelineResult | None:
        info = frame.info
        try:
            async with self.work():
                ctx = PipelineContext(
                    client=self._client,
                    message_id=info.message_id,
                    sender=info.sender,
                    chat=info.chat,
                )
                result = await self._pipeline.execute(frame, ctx)
        except ServiceUnavailable:
            logger.warning(f"Shutting down, dropping inbound message {info.message_id}")
            return None

        if not result.success:
            logger.error(f"Inbound processing failed for {info.message_id}: {result.error}")
        return result

    # -------------------------------------------------------------------------
    # Shutdown
    # -------------------------------------------------------------------------

    async def shutdown(self, grace_seconds: float) -> None:
        """
        Stop accepting work, give in-flight work and background jobs up
        to grace_seconds in total, then disconnect the client.
        """
        self._session.stop_accepting_work()
        loop = asyncio.get_running_loop()
        deadline = loop.time() + grace_seconds

        await self._pairing.cancel()

        if self._in_flight:
            logger.info(f"Waiting for {self._in_flight} in-flight request(s)")
            try:
                await asyncio.wait_for(self._idle.wait(), timeout=grace_seconds)
            except asyncio.TimeoutError:
                logger.warning(f"{self._in_flight} request(s) still running after grace period")

        await self._jobs.drain(timeout=max(0.0, deadline - loop.time()))

        if self._client.is_connected():
            try:
                await self._client.disconnect()
            except Exception as e:
                logger.error(f"Error disconnecting client: {e}", exc_info=True)
        logger.info("Session shut down")
