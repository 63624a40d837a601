"""
Session state for wabridge.

One Session object represents the process-wide device identity. It is
created at startup and handed by reference to every component; nothing
in wabridge keeps pairing or connection flags anywhere else.

Writers:
    state / device_identity: PairingStateMachine (pairing attempts) and
        SessionLifecycleController (startup, connection events, manual
        disconnect). Other components only read.
    accepting_work: SessionLifecycleController.shutdown() only.

Transitions take a lock because protocol client adapters may deliver
connection events from their own thread.
"""
from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wabridge.client.protocol import DeviceIdentity

logger = logging.getLogger(__name__)


class PairingState(str, Enum):
    """Lifecycle state of the device identity."""

    UNPAIRED = "unpaired"
    PAIRING_IN_PROGRESS = "pairing_in_progress"
    PAIRED = "paired"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class Session:
    """
    Process-wide pairing and connection state.

    Invariants:
    - CONNECTED implies a device identity is present
    - UNPAIRED and PAIRING_IN_PROGRESS imply no device identity
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._state = PairingState.UNPAIRED
        self._identity: DeviceIdentity | None = None
        self._accepting_work = True

    @property
    def state(self) -> PairingState:
        return self._state

    @property
    def device_identity(self) -> DeviceIdentity | None:
        return self._identity

    @property
    def is_paired(self) -> bool:
        return self._state in (PairingState.PAIRED, PairingState.CONNECTED)

    @property
    def is_connected(self) -> bool:
        return self._state is PairingState.CONNECTED

    @property
    def pairing_in_progress(self) -> bool:
        return self._state is PairingState.PAIRING_IN_PROGRESS

    @property
    def accepting_work(self) -> bool:
        return self._accepting_work

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def begin_pairing(self) -> None:
        """Forget any identity and enter PAIRING_IN_PROGRESS."""
        self._transition(PairingState.PAIRING_IN_PROGRESS, identity=None)

    def mark_paired(self, identity: DeviceIdentity) -> None:
        """Record a paired identity (fresh pairing or loaded from the store)."""
        self._transition(PairingState.PAIRED, identity=identity)

    def mark_connected(self) -> bool:
        """
        Enter CONNECTED.

        Ignored while no identity is known (the client also connects
        during pairing, before the identity exists).

        Returns:
            True if the state changed to CONNECTED
        """
        with self._lock:
            if self._identity is None:
                logger.debug(f"Connected while {self._state.value}, no identity yet")
                return False
            self._set(PairingState.CONNECTED)
            return True

    def mark_disconnected(self) -> None:
        """Enter DISCONNECTED, keeping the identity for a later reconnect."""
        with self._lock:
            if self._identity is None:
                if self._state is not PairingState.PAIRING_IN_PROGRESS:
                    self._set(PairingState.UNPAIRED)
                return
            self._set(PairingState.DISCONNECTED)

    def reset(self) -> None:
        """Forget the identity and return to UNPAIRED."""
        self._transition(PairingState.UNPAIRED, identity=None)

    def abandon_pairing(self) -> bool:
        """
        Revert an unresolved pairing attempt to UNPAIRED.

        Returns:
            True if a pairing attempt was in progress
        """
        with self._lock:
            if self._state is not PairingState.PAIRING_IN_PROGRESS:
                return False
            self._set(PairingState.UNPAIRED)
            return True

    def stop_accepting_work(self) -> None:
        self._accepting_work = False

    def _transition(self, state: PairingState, identity: DeviceIdentity | None) -> None:
        with self._lock:
            self._identity = identity
            self._set(state)

    def _set(self, state: PairingState) -> None:
        if state is not self._state:
            logger.info(f"Session state: {self._state.value} -> {state.value}")
        self._state = state

    def __repr__(self) -> str:
        jid = self._identity.jid if self._identity else None
        return f"Session(state={self._state.value}, jid={jid})"
