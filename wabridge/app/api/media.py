"""
Media retrieval route for wabridge.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from wabridge.app.dependencies import get_store
from wabridge.media import MediaStore

router = APIRouter(tags=["media"])

CACHE_HEADERS = {"Cache-Control": "public, max-age=3600"}


@router.get(
    "/images/{filename}",
    summary="Serve a retrieved image",
    response_class=Response,
    responses={
        400: {"description": "Invalid filename"},
        404: {"description": "Image not found"},
    },
)
async def get_image(
    filename: str,
    store: MediaStore = Depends(get_store),
) -> Response:
    data, content_type = await store.read(filename)
    return Response(content=data, media_type=content_type, headers=CACHE_HEADERS)
