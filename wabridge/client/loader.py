"""
Protocol client loader.

The protocol client is an external collaborator. Deployments point
WABRIDGE_CLIENT_FACTORY at a "module:callable" that builds it; the
callable receives the AppSettings instance and returns an object that
satisfies ProtocolClient.

Usage:
    WABRIDGE_CLIENT_FACTORY=mycompany.wa_adapter:create_client

    # mycompany/wa_adapter.py
    def create_client(settings: AppSettings) -> ProtocolClient:
        ...
"""

from __future__ import annotations

import importlib
import inspect
import logging
from typing import TYPE_CHECKING, Any

from wabridge.errors import ClientLoadError

from .protocol import ProtocolClient

if TYPE_CHECKING:
    from wabridge.config import AppSettings

logger = logging.getLogger(__name__)


def resolve_factory(path: str) -> Any:
    """
    Import the object referenced by a "module:attribute" path.

    Raises:
        ClientLoadError: If the path is malformed or cannot be imported
    """
    module_name, sep, attr_path = path.partition(":")
    if not sep or not module_name or not attr_path:
        raise ClientLoadError(f"Client factory must look like 'module:callable', got {path!r}")

    try:
        target: Any = importlib.import_module(module_name)
    except ImportError as e:
        raise ClientLoadError(f"Cannot import client module {module_name!r}: {e}") from e

    for attr in attr_path.split("."):
        try:
            target = getattr(target, attr)
        except AttributeError as e:
            raise ClientLoadError(f"{module_name!r} has no attribute {attr_path!r}") from e

    if not callable(target):
        raise ClientLoadError(f"Client factory {path!r} is not callable")
    return target


async def load_client(settings: AppSettings) -> ProtocolClient:
    """
    Build the protocol client configured in settings.

    The factory may be sync or async.

    Raises:
        ClientLoadError: If no factory is configured, or it does not
            return a ProtocolClient
    """
    if not settings.client_factory:
        raise ClientLoadError(
            "WABRIDGE_CLIENT_FACTORY is not set. Point it at a 'module:callable' "
            "that returns the protocol client."
        )

    factory = resolve_factory(settings.client_factory)
    client = factory(settings)
    if inspect.isawaitable(client):
        client = await client

    if not isinstance(client, ProtocolClient):
        raise ClientLoadError(
            f"Client factory {settings.client_factory!r} returned "
            f"{type(client).__name__}, which does not implement ProtocolClient"
        )

    logger.info(f"Loaded protocol client: {type(client).__name__}")
    return client
