"""
wabridge session management.

Session holds the pairing/connection state; PairingStateMachine and
SessionLifecycleController are its only writers.
"""

from .lifecycle import SessionLifecycleController, identity_from_jid
from .pairing import REMEDIATION, PairingStateMachine
from .state import PairingState, Session

__all__ = [
    "PairingState",
    "Session",
    "PairingStateMachine",
    "REMEDIATION",
    "SessionLifecycleController",
    "identity_from_jid",
]
