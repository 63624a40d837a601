"""
Protocol Client Interface for wabridge.

Defines the capability surface wabridge needs from the underlying chat
protocol client. The client owns the wire protocol, the cryptographic
handshake, multi-device session keys, and raw media transfer; wabridge
only calls the methods below and reacts to the events the client emits.

A concrete client is an adapter around a real protocol library. It is
loaded at startup from WABRIDGE_CLIENT_FACTORY (see loader.py).
"""

from __future__ import annotations

import re
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from wabridge.outbound.models import ComposedMessage
    from wabridge.pipeline.frames import MediaLocator

USER_SERVER = "s.whatsapp.net"
GROUP_SERVER = "g.us"


class MediaKind(str, Enum):
    """Media class used by the upload/download primitives."""

    IMAGE = "image"
    DOCUMENT = "document"
    AUDIO = "audio"
    VIDEO = "video"
    STICKER = "sticker"


class ChatPresence(str, Enum):
    """Chat state sent to a peer."""

    COMPOSING = "composing"
    PAUSED = "paused"


class PairingEventType(str, Enum):
    """Event tags emitted on the pairing channel."""

    CODE = "code"
    SUCCESS = "success"
    TIMEOUT = "timeout"
    ERR_CLIENT_OUTDATED = "err-client-outdated"
    ERR_SCANNED_WITHOUT_MULTIDEVICE = "err-scanned-without-multidevice"
    ERR_DEVICE_LIMIT_EXCEEDED = "err-device-limit-exceeded"
    ERR_ALREADY_CONNECTED = "err-already-connected"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class PairingEvent:
    """
    One item from the pairing channel.

    Attributes:
        event: Event tag (see PairingEventType; unknown tags are kept verbatim)
        code: Pairing payload to render as QR, for "code" events
        error: Error detail, for "error" events
    """

    event: str
    code: str | None = None
    error: str | None = None

    @property
    def is_code(self) -> bool:
        return self.event == PairingEventType.CODE.value and bool(self.code)


@dataclass(frozen=True, slots=True)
class MediaReference:
    """
    Descriptor of an uploaded media blob.

    Everything needed to build a typed media message without
    re-sending the bytes.
    """

    url: str
    direct_path: str
    media_key: bytes = b""
    file_enc_sha256: bytes = b""
    file_sha256: bytes = b""
    file_length: int = 0


@dataclass(frozen=True, slots=True)
class SendReceipt:
    """Result of a successful send."""

    message_id: str
    timestamp: datetime | None = None


@dataclass(frozen=True, slots=True)
class DeviceIdentity:
    """
    Persisted identity of a paired device.

    Attributes:
        jid: Full device JID (e.g., "15551234567:12@s.whatsapp.net")
        user: Account phone number part of the JID
    """

    jid: str
    user: str

    @property
    def device_id(self) -> str:
        return self.jid


# =============================================================================
# Connection events
# =============================================================================


@dataclass(frozen=True, slots=True)
class ConnectedEvent:
    pass


@dataclass(frozen=True, slots=True)
class DisconnectedEvent:
    pass


@dataclass(frozen=True, slots=True)
class LoggedOutEvent:
    reason: str = ""


@dataclass(frozen=True, slots=True)
class PairSuccessEvent:
    jid: str = ""


@dataclass(frozen=True, slots=True)
class StreamErrorEvent:
    code: str = ""


@dataclass(frozen=True, slots=True)
class ConnectFailureEvent:
    reason: str = ""


EventHandler = Callable[[Any], Awaitable[None]]


# =============================================================================
# Capability surface
# =============================================================================


@runtime_checkable
class DeviceStore(Protocol):
    """
    Persistent device-credential store.

    Opaque to wabridge: it is only queried for the current identity and
    cleared.
    """

    @property
    def device_identity(self) -> DeviceIdentity | None:
        """Identity of the paired device, or None if never paired."""
        ...

    async def delete(self) -> None:
        """Remove the stored identity and its session keys."""
        ...


@runtime_checkable
class ProtocolClient(Protocol):
    """
    Capability surface of the chat protocol client.

    Implementations must deliver events to the registered handlers as
    coroutines on the application's event loop. Message events are
    InboundMessageFrame instances; connection events are the dataclasses
    defined in this module.
    """

    @property
    def store(self) -> DeviceStore:
        ...

    def is_connected(self) -> bool:
        ...

    def add_event_handler(self, handler: EventHandler) -> None:
        ...

    async def connect(self) -> None:
        ...

    async def disconnect(self) -> None:
        ...

    async def get_pairing_channel(self) -> AsyncIterator[PairingEvent]:
        """
        Open the pairing channel.

        Must be called before connect() so no event is lost.
        """
        ...

    async def send_message(self, jid: str, message: ComposedMessage) -> SendReceipt:
        ...

    async def upload(self, data: bytes, kind: MediaKind) -> MediaReference:
        ...

    async def download(self, locator: MediaLocator, kind: MediaKind) -> bytes:
        ...

    async def mark_read(
        self,
        message_ids: list[str],
        timestamp: datetime,
        chat: str,
        sender: str,
    ) -> None:
        ...

    async def send_chat_presence(self, jid: str, state: ChatPresence) -> None:
        ...


# =============================================================================
# Addressing
# =============================================================================

_NON_DIGITS = re.compile(r"\D")


def recipient_jid(number: str) -> str:
    """
    Resolve a caller-supplied recipient into a JID.

    A value that already contains "@" is treated as a full JID (this is
    how group chats are addressed). Anything else is reduced to digits
    and addressed as a user JID.

    Raises:
        ValueError: If no usable address remains
    """
    value = number.strip()
    if "@" in value:
        user, _, server = value.partition("@")
        if not user or not server:
            raise ValueError(f"Invalid JID: {value}")
        return value

    digits = _NON_DIGITS.sub("", value)
    if not digits:
        raise ValueError(f"Invalid phone number: {number!r}")
    return f"{digits}@{USER_SERVER}"


def presence_jid(jid: str) -> str:
    """Strip the device part of a user JID ("123:4@s.whatsapp.net" -> "123@s.whatsapp.net")."""
    user, _, server = jid.partition("@")
    if server == GROUP_SERVER:
        return jid
    return f"{user.split(':', 1)[0]}@{server}"
