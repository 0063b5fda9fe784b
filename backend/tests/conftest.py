"""
Handscript Backend: Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Inventory:
    ├── memory_store: In-memory MediaStore (no Cloudinary calls)
    ├── fake_renderer: PageRenderer mock returning one tiny PNG page
    ├── small_renderer: Real HandwritingRenderer with a small page
    ├── image_service: ImageService wired to the two fakes above
    └── test_client: HTTPX AsyncClient with the app's image_service swapped out
"""

import io
import os
import uuid
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

# Settings are read at import time; set test values before any handscript import
os.environ["CLOUDINARY_CLOUD_NAME"] = "test-cloud"
os.environ["CLOUDINARY_API_KEY"] = "test-key-not-real"
os.environ["CLOUDINARY_API_SECRET"] = "test-secret-not-real"
os.environ["CLOUDINARY_FOLDER"] = "handwritten-test"
os.environ["PAGE_WIDTH"] = "600"
os.environ["PAGE_HEIGHT"] = "800"
os.environ["PAGE_MARGIN"] = "40"
os.environ["FONT_SIZE"] = "24"
os.environ["LINE_SPACING"] = "36"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from PIL import Image

from handscript.exceptions import NotFoundError
from handscript.services.image_service import ImageService
from handscript.services.media_store import MediaStore
from handscript.services.renderer import HandwritingRenderer
from handscript.services.renderer_base import PageRenderer, RenderedPage


def make_png(width: int = 60, height: int = 80) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (width, height), (255, 255, 255)).save(buffer, format="PNG")
    return buffer.getvalue()


class InMemoryMediaStore(MediaStore):
    """
    MediaStore stand-in that keeps resources in a dict.

    Mirrors the shape of Cloudinary's responses closely enough for
    ImageService: upload returns a resource dict, list returns
    {"resources": [...]}, delete returns {"deleted": {id: verdict}}.
    """

    def __init__(self):
        super().__init__(
            cloud_name="test-cloud",
            api_key="test-key",
            api_secret="test-secret",
            folder="handwritten-test",
        )
        self.resources: Dict[str, Dict[str, Any]] = {}
        self.blobs: Dict[str, bytes] = {}

    async def list_resources(self, cursor: Optional[str] = None) -> Dict[str, Any]:
        prefix = f"{self.folder}/"
        return {
            "resources": [
                resource for public_id, resource in self.resources.items()
                if public_id.startswith(prefix)
            ]
        }

    async def upload(self, page: RenderedPage, folder: bool = True) -> Dict[str, Any]:
        name = uuid.uuid4().hex[:12]
        public_id = f"{self.folder}/{name}" if folder else name
        resource = {
            "public_id": public_id,
            "secure_url": f"https://res.cloudinary.com/test-cloud/image/upload/v1/{public_id}.png",
            "width": page.width,
            "height": page.height,
            "format": "png",
            "bytes": len(page.data),
            "created_at": "2024-01-15T12:00:00Z",
            "version": 1,
        }
        self.resources[public_id] = resource
        self.blobs[resource["secure_url"]] = page.data
        return resource

    async def delete_resources(self, public_ids: List[str]) -> Dict[str, Any]:
        deleted = {}
        for public_id in public_ids:
            deleted[public_id] = "deleted" if self.resources.pop(public_id, None) else "not_found"
        return {"deleted": deleted, "partial": False}

    async def get_resource(self, public_id: str) -> Dict[str, Any]:
        if public_id not in self.resources:
            raise NotFoundError(resource="image", resource_id=public_id)
        return self.resources[public_id]

    async def fetch(self, url: str) -> bytes:
        return self.blobs[url]

    async def ping(self) -> bool:
        return True


@pytest.fixture
def sample_png():
    return make_png()


@pytest.fixture
def memory_store():
    return InMemoryMediaStore()


@pytest.fixture
def fake_renderer(sample_png):
    """A PageRenderer whose render() returns one 60x80 PNG page."""
    renderer = MagicMock(spec=PageRenderer)
    renderer.render = AsyncMock(return_value=[RenderedPage(data=sample_png, width=60, height=80)])
    return renderer


@pytest.fixture
def small_renderer():
    """Real renderer on a 600x800 page so tests stay fast."""
    return HandwritingRenderer(
        font_path="",
        page_width=600,
        page_height=800,
        page_margin=40,
        font_size=24,
        line_spacing=36,
    )


@pytest.fixture
def image_service(fake_renderer, memory_store):
    return ImageService(page_renderer=fake_renderer, store=memory_store)


@pytest_asyncio.fixture
async def test_client(image_service):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport,
    with the routes' image_service replaced by the in-memory one.
    """
    from handscript.main import app

    with patch("handscript.routes.images.image_service", image_service):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
