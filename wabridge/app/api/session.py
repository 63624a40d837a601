"""
Session routes for wabridge.

Pairing, status, device information and the manual disconnect.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Response

from wabridge.app.dependencies import get_lifecycle, get_pairing
from wabridge.session import PairingStateMachine, SessionLifecycleController

from .schemas import envelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["session"])

NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}


@router.get(
    "/pair",
    summary="Generate a QR code for pairing",
    response_class=Response,
    responses={
        200: {"content": {"image/png": {}}, "description": "QR code to scan"},
        408: {"description": "No pairing code within the timeout"},
        500: {"description": "Pairing error"},
    },
)
async def pair(
    lifecycle: SessionLifecycleController = Depends(get_lifecycle),
    pairing: PairingStateMachine = Depends(get_pairing),
) -> Response:
    """
    Tear down any existing session and start a new pairing attempt.

    The response is the QR code as a PNG image. Pairing completes in the
    background once the code is scanned; poll /health to see the result.
    """
    lifecycle.require_accepting()
    png = await pairing.begin_pairing()
    return Response(content=png, media_type="image/png", headers=NO_CACHE_HEADERS)


@router.get("/health", summary="Check service status")
async def health(
    lifecycle: SessionLifecycleController = Depends(get_lifecycle),
) -> dict[str, Any]:
    return envelope("WhatsApp service is running", lifecycle.status())


@router.get("/devices", summary="Get device information")
async def devices(
    lifecycle: SessionLifecycleController = Depends(get_lifecycle),
) -> dict[str, Any]:
    return envelope("Device information retrieved", lifecycle.device_info())


@router.post("/disconnect", summary="Disconnect and clear the session")
async def disconnect(
    lifecycle: SessionLifecycleController = Depends(get_lifecycle),
) -> dict[str, Any]:
    await lifecycle.disconnect()
    return envelope("Successfully disconnected and session cleared")
