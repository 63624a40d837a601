"""
Endpoint index for wabridge.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter

from wabridge import __version__

from .schemas import envelope

router = APIRouter(tags=["docs"])

ENDPOINTS = {
    "pair": "GET  /pair   - Generate QR code for pairing",
    "send": "POST /send   - Send message with attachments (requires pairing)",
    "health": "GET  /health - Check service status",
    "devices": "GET  /devices - Get device information",
    "disconnect": "POST /disconnect - Disconnect and clear session",
    "images": "GET  /images/{filename} - Serve downloaded images",
    "swagger": "GET  /swagger - API documentation info",
    "docs": "GET  /docs - Interactive OpenAPI documentation",
}


@router.get("/swagger", summary="API documentation info")
async def swagger() -> dict[str, Any]:
    return envelope(
        "WhatsApp Web API Documentation",
        {
            "title": "WhatsApp Web API",
            "description": "REST API for WhatsApp Web integration",
            "version": __version__,
            "endpoints": ENDPOINTS,
            "documentation": "Full OpenAPI specification available at /openapi.json",
        },
    )
