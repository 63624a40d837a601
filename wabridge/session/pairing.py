"""
Pairing state machine for wabridge.

Drives one pairing attempt: tears down any existing session, opens the
pairing channel, connects, and waits a bounded time for the first event.
A code event is rendered as a QR PNG for the caller; the rest of the
channel is consumed by a background listener that records the outcome
on the Session.

Only one attempt is in flight at a time. Starting a new attempt cancels
the listener of the previous one.
"""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING, Any

from wabridge.client.protocol import PairingEvent, PairingEventType
from wabridge.errors import PairingError, PairingTimeout
from wabridge.media.imaging import render_qr_png

if TYPE_CHECKING:
    from wabridge.client.protocol import ProtocolClient
    from wabridge.jobs import JobTracker

    from .state import Session

logger = logging.getLogger(__name__)

QR_SIZE = 256

# Log lines for terminal pairing failures reported by the listener.
REMEDIATION: dict[str, str] = {
    PairingEventType.TIMEOUT.value: (
        "QR code pairing timed out. Check that WhatsApp is open on the phone and scan again"
    ),
    PairingEventType.ERR_CLIENT_OUTDATED.value: (
        "Client is outdated. Update the protocol client library"
    ),
    PairingEventType.ERR_SCANNED_WITHOUT_MULTIDEVICE.value: (
        "QR code was scanned but multi-device is not enabled on the phone. "
        "Enable it under WhatsApp Settings > Linked Devices"
    ),
    PairingEventType.ERR_DEVICE_LIMIT_EXCEEDED.value: (
        "Device limit exceeded on the account. "
        "Remove unused devices under WhatsApp Settings > Linked Devices"
    ),
    PairingEventType.ERR_ALREADY_CONNECTED.value: (
        "Device is already connected to another session. Disconnect other devices first"
    ),
}


class PairingStateMachine:
    """
    Runs pairing attempts against the protocol client.

    Example:
        machine = PairingStateMachine(session, client, jobs)
        png = await machine.begin_pairing()
    """

    def __init__(
        self,
        session: Session,
        client: ProtocolClient,
        jobs: JobTracker,
        timeout_seconds: float = 15.0,
        settle_seconds: float = 2.0,
    ):
        self._session = session
        self._client = client
        self._jobs = jobs
        self._timeout = timeout_seconds
        self._settle = settle_seconds
        self._lock = asyncio.Lock()
        self._listener: asyncio.Task[Any] | None = None

    @property
    def listening(self) -> bool:
        return self._listener is not None and not self._listener.done()

    async def begin_pairing(self) -> bytes:
        """
        Start a pairing attempt and return the QR code as PNG bytes.

        Raises:
            PairingTimeout: No pairing event arrived within the timeout
            PairingError: The first event was an error, or the channel or
                connection could not be opened
        """
        async with self._lock:
            logger.info("Pairing request started")
            await self.cancel()

            if await self._teardown() and self._settle > 0:
                await asyncio.sleep(self._settle)

            self._session.begin_pairing()
            try:
                channel, png = await self._open()
            except BaseException:
                # Includes cancellation; no attempt stays in progress without a listener
                self._session.abandon_pairing()
                raise

            self._listener = self._jobs.spawn("pairing-listener", self._listen(channel))
            return png

    async def _open(self) -> tuple[AsyncIterator[PairingEvent], bytes]:
        try:
            # The channel must exist before connect() so no event is missed
            channel = await self._client.get_pairing_channel()
            await self._client.connect()
        except Exception as e:
            logger.error(f"Failed to open pairing channel or connect: {e}", exc_info=True)
            raise PairingError(PairingEventType.ERROR.value, str(e)) from e

        event = await self._first_event(channel)

        if not event.is_code:
            logger.warning(
                f"QR generation error: {event.event}"
                + (f" ({event.error})" if event.error else "")
            )
            raise PairingError(event.event, event.error)

        png = render_qr_png(event.code or "", size=QR_SIZE)
        logger.info(f"QR code generated, payload length {len(event.code or '')}")
        return channel, png

    async def cancel(self) -> None:
        """Cancel the background listener of a previous attempt, if any."""
        listener, self._listener = self._listener, None
        if listener is None or listener.done():
            return
        listener.cancel()
        try:
            await listener
        except asyncio.CancelledError:
            pass
        logger.debug("Previous pairing listener cancelled")

    async def _teardown(self) -> bool:
        """
        Disconnect and delete any stored identity.

        Returns:
            True if anything was torn down
        """
        tore_down = False

        if self._client.is_connected():
            logger.info("Disconnecting existing session")
            try:
                await self._client.disconnect()
            except Exception as e:
                logger.warning(f"Error disconnecting existing session: {e}")
            tore_down = True

        identity = self._client.store.device_identity
        if identity is not None:
            logger.info(f"Clearing existing session for device {identity.jid}")
            try:
                await self._client.store.delete()
            except Exception as e:
                logger.warning(f"Failed to clear existing session: {e}")
            tore_down = True

        return tore_down

    async def _first_event(self, channel: AsyncIterator[PairingEvent]) -> PairingEvent:
        try:
            return await asyncio.wait_for(anext(channel), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning(f"QR code generation timeout after {self._timeout:g} seconds")
            raise PairingTimeout(self._timeout) from None
        except StopAsyncIteration:
            raise PairingError(PairingEventType.ERROR.value, "pairing channel closed") from None

    async def _listen(self, channel: AsyncIterator[PairingEvent]) -> None:
        logger.info("Pairing listener started")
        try:
            async for event in channel:
                self._handle(event)
        finally:
            if self._session.abandon_pairing():
                logger.warning("Pairing channel closed before pairing completed")
            logger.info("Pairing listener ended")

    def _handle(self, event: PairingEvent) -> None:
        kind = event.event

        if kind == PairingEventType.CODE.value:
            # Refreshed codes are not re-served; the caller polls /pair again
            logger.debug("Pairing code refreshed")
            return

        if kind == PairingEventType.SUCCESS.value:
            identity = self._client.store.device_identity
            if identity is None:
                logger.warning("Pairing succeeded but the store has no identity yet")
                return
            self._session.mark_paired(identity)
            logger.info(f"Successfully paired, device {identity.device_id}")
            return

        if kind in REMEDIATION:
            logger.warning(REMEDIATION[kind])
            self._session.abandon_pairing()
            return

        if kind == PairingEventType.ERROR.value:
            logger.error(f"QR pairing error: {event.error}")
            self._session.abandon_pairing()
            return

        logger.warning(f"Unknown QR event: {kind}")
