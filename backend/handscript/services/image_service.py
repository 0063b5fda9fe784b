"""
Handscript Backend: Image Service (Workflow Orchestrator)
==========================================================

What:  Coordinates the list / create / delete / download workflows.
How:   Composes the page renderer and the media store adapter, and shapes the
       store's raw dicts into response models.
Who:   Called by the image route handlers.

Create Flow (POST /api/images):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────────┐
    │ Validate │───▶│   Render    │───▶│   Upload     │───▶│  Descriptor  │
    │ (schema) │    │ (Renderer)  │    │ (MediaStore) │    │ (response)   │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────────┘

ImageService holds no state between calls; every operation is a single
remote round trip (plus rendering for create).
"""

import logging
from typing import Optional, Tuple

from handscript.exceptions import ValidationError
from handscript.schemas.image import (
    DeleteResult,
    ImageCreate,
    ImageListResult,
    ImageResource,
)
from handscript.services.media_store import MediaStore, media_store
from handscript.services.renderer import renderer
from handscript.services.renderer_base import PageRenderer

logger = logging.getLogger(__name__)


def normalize_public_id(raw: Optional[str]) -> str:
    """
    Reassemble an identifier captured from one or more path segments.

    "folder//abc/" → "folder/abc". Raises ValidationError when nothing
    is left after dropping empty segments.
    """
    segments = [segment for segment in (raw or "").split("/") if segment.strip()]
    if not segments:
        raise ValidationError(message="An image identifier is required", field="id")
    return "/".join(segments)


class ImageService:
    """
    Business logic for generated images.

    Responsibilities:
        - list_images(): Resources under the configured folder
        - create_image(): Render text and upload the first page
        - delete_image(): Remove one resource by public id
        - download_image(): Resource metadata plus its bytes
    """

    def __init__(
        self,
        page_renderer: Optional[PageRenderer] = None,
        store: Optional[MediaStore] = None,
    ):
        self.renderer = page_renderer or renderer
        self.store = store or media_store

    async def list_images(self, cursor: Optional[str] = None) -> ImageListResult:
        """
        Args:
            cursor: next_cursor of a previous listing; None starts from the top.

        Raises:
            MediaStoreUnavailableError: The list call failed.
        """
        raw = await self.store.list_resources(cursor=cursor)
        resources = [ImageResource.model_validate(item) for item in raw.get("resources", [])]
        logger.info("Listed %d image(s)", len(resources))
        return ImageListResult(resources=resources, next_cursor=raw.get("next_cursor"))

    async def create_image(self, payload: ImageCreate) -> ImageResource:
        """
        Render the first page of the text and upload it into the folder.

        Text that would overflow onto later pages is not drawn; the renderer
        logs how many pages the full text would fill.

        Raises:
            RenderError: The renderer failed.
            MediaStoreUnavailableError: The upload failed.
        """
        pages = await self.renderer.render(payload.text, payload.color, payload.ruled, max_pages=1)

        raw = await self.store.upload(pages[0], folder=True)
        resource = ImageResource.model_validate(raw)
        logger.info(
            "Created image %s (%dx%d)",
            resource.public_id,
            resource.width,
            resource.height,
        )
        return resource

    async def delete_image(self, public_id: str) -> DeleteResult:
        """
        Raises:
            ValidationError: Empty identifier.
            MediaStoreUnavailableError: The delete call failed.
        """
        public_id = normalize_public_id(public_id)
        raw = await self.store.delete_resources([public_id])
        result = DeleteResult(deleted=raw.get("deleted", {}))
        logger.info("Delete %s → %s", public_id, result.deleted.get(public_id, "unknown"))
        return result

    async def download_image(self, public_id: str) -> Tuple[ImageResource, bytes]:
        """
        Raises:
            ValidationError: Empty identifier.
            NotFoundError: No such resource.
            MediaStoreUnavailableError: Lookup or download failed.
        """
        public_id = normalize_public_id(public_id)
        resource = ImageResource.model_validate(await self.store.get_resource(public_id))
        content = await self.store.fetch(resource.secure_url)
        return resource, content


# ── Singleton Instance ────────────────────────────────────────────────────
image_service = ImageService()
