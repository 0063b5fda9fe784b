"""
Handscript Backend: Image Route Handlers
==========================================

What:  HTTP surface for generated images.
How:   Extracts path/body data, delegates to ImageService, wraps results in
       the {"message", "result"} envelope.
Who:   Called by the submission form and the image gallery.

Route Inventory:
    GET    /api/images?cursor=...       list images in the folder
    POST   /api/images                  render text and upload it (201)
    GET    /api/images/{id}/download    image bytes as an attachment
    DELETE /api/images/{id}             delete one image

Identifiers may contain slashes (Cloudinary public ids include the folder,
e.g. "handwritten-text-images/x1y2z3"), so {image_id} uses the `path`
converter and the segments are reassembled by ImageService.

Failures are raised, not caught here; the global handlers in main.py turn
them into {"message": "Error", "error": {...}} with the right status.
Unsupported methods on these paths are answered with 405 by the router.
"""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Query, Response

from handscript.schemas.image import (
    DeleteEnvelope,
    ErrorResponse,
    ImageCreate,
    ImageEnvelope,
    ImageListEnvelope,
)
from handscript.services.image_service import image_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Images"])

ERROR_RESPONSES = {
    400: {"description": "Invalid input, render failure or media store failure", "model": ErrorResponse},
    405: {"description": "Method not allowed"},
}


@router.get(
    "/images",
    response_model=ImageListEnvelope,
    responses=ERROR_RESPONSES,
    summary="List generated images",
)
async def list_images(
    cursor: Optional[str] = Query(
        default=None,
        description="next_cursor from a previous listing, to fetch the following batch",
    ),
) -> ImageListEnvelope:
    result = await image_service.list_images(cursor=cursor)
    return ImageListEnvelope(message="Success", result=result)


@router.post(
    "/images",
    status_code=201,
    response_model=ImageEnvelope,
    responses=ERROR_RESPONSES,
    summary="Convert text to a handwritten page image",
    description=(
        "Renders the submitted text as a handwritten page in the chosen ink color, "
        "optionally on ruled paper, uploads it to the media store and returns the "
        "stored resource descriptor."
    ),
)
async def create_image(payload: ImageCreate) -> ImageEnvelope:
    logger.info(
        "Received create request: %d chars, color=%s, ruled=%s",
        len(payload.text),
        payload.color.value,
        payload.ruled,
    )
    resource = await image_service.create_image(payload)
    return ImageEnvelope(message="Success", result=resource)


@router.get(
    "/images/{image_id:path}/download",
    responses={
        200: {"description": "Image file", "content": {"image/png": {}}},
        404: {"description": "Image not found", "model": ErrorResponse},
        **ERROR_RESPONSES,
    },
    summary="Download a generated image",
)
async def download_image(image_id: str) -> Response:
    resource, content = await image_service.download_image(image_id)
    extension = resource.format or "png"
    filename = f"{resource.public_id.rsplit('/', 1)[-1]}.{extension}"
    return Response(
        content=content,
        media_type=f"image/{extension}",
        headers={"Content-Disposition": attachment_disposition(filename)},
    )


def attachment_disposition(filename: str) -> str:
    """
    Content-Disposition value for a download.

    Header values must be latin-1, but public ids may hold any Unicode.
    Names that need escaping get an ASCII `filename` fallback plus an
    RFC 5987 `filename*` carrying the real name.
    """
    quoted = quote(filename)
    if quoted == filename:
        return f'attachment; filename="{filename}"'
    fallback = filename.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("?", "_").replace('"', "_").replace("\\", "_")
    return f"attachment; filename=\"{fallback}\"; filename*=utf-8''{quoted}"


@router.delete(
    "/images/{image_id:path}",
    response_model=DeleteEnvelope,
    responses=ERROR_RESPONSES,
    summary="Delete a generated image",
)
async def delete_image(image_id: str) -> DeleteEnvelope:
    """
    Delete one image by public id.

    An empty id (DELETE /api/images/) is a 400. DELETE /api/images without
    the trailing slash is the collection path, which has no DELETE, so the
    router answers 405.
    """
    result = await image_service.delete_image(image_id)
    return DeleteEnvelope(message="Success", result=result)
