"""
wabridge protocol client surface.

The protocol client itself is external; this package defines what
wabridge needs from it and how it is loaded.
"""

from .loader import load_client, resolve_factory
from .protocol import (
    ChatPresence,
    ConnectedEvent,
    ConnectFailureEvent,
    DeviceIdentity,
    DeviceStore,
    DisconnectedEvent,
    EventHandler,
    LoggedOutEvent,
    MediaKind,
    MediaReference,
    PairingEvent,
    PairingEventType,
    PairSuccessEvent,
    ProtocolClient,
    SendReceipt,
    StreamErrorEvent,
    presence_jid,
    recipient_jid,
)

__all__ = [
    # Protocol
    "ProtocolClient",
    "DeviceStore",
    "EventHandler",
    # Types
    "ChatPresence",
    "DeviceIdentity",
    "MediaKind",
    "MediaReference",
    "PairingEvent",
    "PairingEventType",
    "SendReceipt",
    # Connection events
    "ConnectedEvent",
    "DisconnectedEvent",
    "LoggedOutEvent",
    "PairSuccessEvent",
    "StreamErrorEvent",
    "ConnectFailureEvent",
    # Addressing
    "recipient_jid",
    "presence_jid",
    # Loading
    "load_client",
    "resolve_factory",
]
