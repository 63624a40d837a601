"""
Outbound message route for wabridge.
"""
from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends

from wabridge.app.dependencies import get_composer, get_lifecycle
from wabridge.outbound import OutboundComposer, OutboundRequest
from wabridge.session import SessionLifecycleController

from .schemas import envelope

logger = logging.getLogger(__name__)

router = APIRouter(tags=["messages"])


@router.post(
    "/send",
    summary="Send a message with optional attachments",
    responses={
        400: {"description": "Invalid request"},
        409: {"description": "Not paired"},
        422: {"description": "Attachment could not be prepared"},
        502: {"description": "Upload or send failed"},
    },
)
async def send(
    request: OutboundRequest,
    lifecycle: SessionLifecycleController = Depends(get_lifecycle),
    composer: OutboundComposer = Depends(get_composer),
) -> dict[str, Any]:
    """
    Send text and attachments to one recipient, in order.

    Text plus exactly one image is sent as a single captioned image.
    Every other combination is sent as separate messages: the text
    first, then each attachment in the order given.
    """
    lifecycle.require_ready()

    async with lifecycle.work():
        sent = await composer.send(request)

    return envelope(
        f"Successfully sent {len(sent)} message(s)",
        {
            "number": request.number,
            "message": request.message,
            "attachments": [a.model_dump(mode="json") for a in request.attachments],
            "sent": [s.to_dict() for s in sent],
        },
    )
