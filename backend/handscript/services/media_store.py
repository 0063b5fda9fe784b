"""
Handscript Backend: Cloudinary Media Store Adapter
====================================================

What:  Thin adapter over the Cloudinary SDK for the three remote operations
       the service needs: list under a folder, upload into the folder, delete
       by public id. Plus lookup/download and a ping for the health check.
How:   Each SDK call is dispatched to a worker thread (the SDK is blocking)
       and any SDK error is translated into MediaStoreUnavailableError.
Who:   Instantiated once at import; called by ImageService and /health.

Contract:
    - No retries, no batching beyond what the caller asks for, no caching.
    - Every resource this service creates lives under settings.cloudinary_folder.
    - Results are returned as the raw dicts the SDK produces; shaping them
      into response models is ImageService's job.
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

import cloudinary
import cloudinary.api
import cloudinary.exceptions
import cloudinary.uploader
import httpx
from starlette.concurrency import run_in_threadpool

from handscript.config import settings
from handscript.exceptions import MediaStoreUnavailableError, NotFoundError
from handscript.services.renderer_base import RenderedPage

logger = logging.getLogger(__name__)

# Errors the SDK surfaces: its own hierarchy, socket errors it does not wrap,
# and ValueError for missing credentials ("Must supply api_key").
SDK_ERRORS = (cloudinary.exceptions.Error, OSError, ValueError)


class MediaStore:
    """
    Cloudinary-backed store for generated page images.

    Operations:
        list_resources()    → resources(type="upload", prefix="<folder>/", next_cursor)
        upload(page)        → uploader.upload(data_uri, folder=<folder>)
        delete_resources()  → api.delete_resources(public_ids)
        get_resource()      → api.resource(public_id)
        fetch()             → HTTPS GET of a resource's secure_url
        ping()              → api.ping()
    """

    def __init__(
        self,
        cloud_name: Optional[str] = None,
        api_key: Optional[str] = None,
        api_secret: Optional[str] = None,
        folder: Optional[str] = None,
        max_results: Optional[int] = None,
    ):
        self.cloud_name = cloud_name if cloud_name is not None else settings.cloudinary_cloud_name
        self.api_key = api_key if api_key is not None else settings.cloudinary_api_key
        self.api_secret = api_secret if api_secret is not None else settings.cloudinary_api_secret
        self.folder = (folder or settings.cloudinary_folder).strip("/")
        self.max_results = max_results or settings.cloudinary_max_results
        self.configure()

    @property
    def configured(self) -> bool:
        return bool(self.cloud_name and self.api_key and self.api_secret)

    def configure(self) -> None:
        """
        Push credentials into the SDK's global configuration.

        The SDK reads credentials from module-level state, so this is applied
        once at construction and again at startup (lifespan).
        """
        if self.configured:
            cloudinary.config(
                cloud_name=self.cloud_name,
                api_key=self.api_key,
                api_secret=self.api_secret,
                secure=True,
            )
            logger.info("MediaStore configured: cloud=%s folder=%s", self.cloud_name, self.folder)
        else:
            logger.warning("MediaStore has no Cloudinary credentials; store calls will fail")

    # ── Remote operations ─────────────────────────────────────────────────

    async def list_resources(self, cursor: Optional[str] = None) -> Dict[str, Any]:
        """
        List image resources under the configured folder.

        The response carries "next_cursor" when more resources exist; pass
        it back as `cursor` to continue the listing.
        """
        options: Dict[str, Any] = {
            "type": "upload",
            "resource_type": "image",
            "prefix": f"{self.folder}/",
            "max_results": self.max_results,
        }
        if cursor:
            options["next_cursor"] = cursor
        return await self._call("list", cloudinary.api.resources, **options)

    async def upload(self, page: RenderedPage, folder: bool = True) -> Dict[str, Any]:
        """
        Upload a rendered page.

        Args:
            page:   The rendered image, sent as a base64 data URI.
            folder: Store under the configured folder (True) or at the root.
        """
        options: Dict[str, Any] = {"resource_type": "image"}
        if folder:
            options["folder"] = self.folder
        return await self._call("upload", cloudinary.uploader.upload, page.to_data_uri(), **options)

    async def delete_resources(self, public_ids: List[str]) -> Dict[str, Any]:
        """Delete resources by public id; unknown ids come back as "not_found"."""
        return await self._call("delete", cloudinary.api.delete_resources, public_ids)

    async def get_resource(self, public_id: str) -> Dict[str, Any]:
        """
        Fetch one resource's metadata.

        Raises:
            NotFoundError: The store has no resource with this public id.
        """
        try:
            return await self._call("get", cloudinary.api.resource, public_id)
        except MediaStoreUnavailableError as e:
            if e.context.get("error_type") == cloudinary.exceptions.NotFound.__name__:
                raise NotFoundError(resource="image", resource_id=public_id)
            raise

    async def fetch(self, url: str) -> bytes:
        """Download the bytes behind a resource URL."""
        try:
            async with httpx.AsyncClient(follow_redirects=True) as client:
                response = await client.get(url)
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.error("Media store download failed for %s: %s", url, str(e))
            raise MediaStoreUnavailableError(
                message="Could not download the image from the media store.",
                operation="download",
                context={"error_type": type(e).__name__},
            )

    async def ping(self) -> bool:
        """Returns True when the Admin API answers with status ok."""
        try:
            result = await self._call("ping", cloudinary.api.ping)
        except MediaStoreUnavailableError:
            return False
        return result.get("status") == "ok"

    # ── Internal ──────────────────────────────────────────────────────────

    async def _call(self, operation: str, func: Callable[..., Any], *args, **kwargs) -> Dict[str, Any]:
        """
        Run one blocking SDK call in the threadpool and translate its errors.

        Raises:
            MediaStoreUnavailableError: Any SDK, socket or configuration error.
        """
        start_time = time.perf_counter()
        try:
            result = await run_in_threadpool(func, *args, **kwargs)
        except SDK_ERRORS as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Media store %s failed after %.0fms: %s: %s",
                operation,
                duration_ms,
                type(e).__name__,
                str(e),
            )
            raise MediaStoreUnavailableError(
                message=f"Media store {operation} failed: {e}",
                operation=operation,
                context={"error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info("Media store %s completed in %.0fms", operation, duration_ms)
        return dict(result)


# ── Singleton Instance ────────────────────────────────────────────────────
media_store = MediaStore()
