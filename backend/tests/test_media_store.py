"""
Handscript Backend: Media Store Unit Tests (Mocked SDK)
=========================================================

What:  Tests for the Cloudinary adapter with the SDK functions patched.
How:   Patches cloudinary.api / cloudinary.uploader functions so no request
       leaves the process.

What we test:
    ✅ Each operation calls the SDK with the folder/prefix and ids it should
    ✅ SDK, socket and credential errors become MediaStoreUnavailableError
    ✅ A missing resource on lookup becomes NotFoundError
    ✅ ping() reports availability as a bool
    ❌ Real Cloudinary calls
"""

from unittest.mock import AsyncMock, MagicMock, patch

import cloudinary.exceptions
import httpx
import pytest

from handscript.exceptions import MediaStoreUnavailableError, NotFoundError
from handscript.services.media_store import MediaStore
from handscript.services.renderer_base import RenderedPage


@pytest.fixture
def store():
    return MediaStore(
        cloud_name="test-cloud",
        api_key="key",
        api_secret="secret",
        folder="/handwritten-test/",
        max_results=50,
    )


@pytest.fixture
def page(sample_png):
    return RenderedPage(data=sample_png, width=60, height=80)


class TestMediaStoreCalls:
    """The adapter passes requests straight through to the SDK."""

    def test_folder_is_normalized(self, store):
        assert store.folder == "handwritten-test"
        assert store.configured is True

    @pytest.mark.asyncio
    async def test_list_uses_folder_prefix(self, store):
        with patch("cloudinary.api.resources", return_value={"resources": []}) as mock_resources:
            result = await store.list_resources()

        assert result == {"resources": []}
        mock_resources.assert_called_once_with(
            type="upload",
            resource_type="image",
            prefix="handwritten-test/",
            max_results=50,
        )

    @pytest.mark.asyncio
    async def test_list_continues_from_cursor(self, store):
        with patch("cloudinary.api.resources", return_value={"resources": []}) as mock_resources:
            await store.list_resources(cursor="c2f1")

        assert mock_resources.call_args.kwargs["next_cursor"] == "c2f1"
        assert mock_resources.call_args.kwargs["prefix"] == "handwritten-test/"

    @pytest.mark.asyncio
    async def test_upload_into_folder(self, store, page):
        uploaded = {"public_id": "handwritten-test/abc", "secure_url": "https://x/abc.png"}
        with patch("cloudinary.uploader.upload", return_value=uploaded) as mock_upload:
            result = await store.upload(page)

        assert result == uploaded
        args, kwargs = mock_upload.call_args
        assert args[0].startswith("data:image/png;base64,")
        assert kwargs == {"resource_type": "image", "folder": "handwritten-test"}

    @pytest.mark.asyncio
    async def test_upload_without_folder(self, store, page):
        with patch("cloudinary.uploader.upload", return_value={}) as mock_upload:
            await store.upload(page, folder=False)

        assert "folder" not in mock_upload.call_args.kwargs

    @pytest.mark.asyncio
    async def test_delete_passes_ids(self, store):
        response = {"deleted": {"handwritten-test/abc": "deleted"}, "partial": False}
        with patch("cloudinary.api.delete_resources", return_value=response) as mock_delete:
            result = await store.delete_resources(["handwritten-test/abc"])

        assert result["deleted"] == {"handwritten-test/abc": "deleted"}
        mock_delete.assert_called_once_with(["handwritten-test/abc"])


class TestMediaStoreErrors:
    """Every failure mode surfaces as an application exception."""

    @pytest.mark.asyncio
    async def test_sdk_error_becomes_unavailable(self, store):
        with patch("cloudinary.api.resources", side_effect=cloudinary.exceptions.GeneralError("boom")):
            with pytest.raises(MediaStoreUnavailableError) as exc_info:
                await store.list_resources()

        assert exc_info.value.operation == "list"
        assert exc_info.value.context["error_type"] == "GeneralError"

    @pytest.mark.asyncio
    async def test_missing_credentials_become_unavailable(self, store, page):
        with patch("cloudinary.uploader.upload", side_effect=ValueError("Must supply api_key")):
            with pytest.raises(MediaStoreUnavailableError, match="api_key"):
                await store.upload(page)

    @pytest.mark.asyncio
    async def test_socket_error_becomes_unavailable(self, store):
        with patch("cloudinary.api.delete_resources", side_effect=ConnectionResetError("reset")):
            with pytest.raises(MediaStoreUnavailableError):
                await store.delete_resources(["x"])

    @pytest.mark.asyncio
    async def test_lookup_of_missing_resource_is_not_found(self, store):
        with patch("cloudinary.api.resource", side_effect=cloudinary.exceptions.NotFound("nope")):
            with pytest.raises(NotFoundError):
                await store.get_resource("handwritten-test/missing")

    @pytest.mark.asyncio
    async def test_lookup_other_error_is_unavailable(self, store):
        with patch("cloudinary.api.resource", side_effect=cloudinary.exceptions.RateLimited("slow down")):
            with pytest.raises(MediaStoreUnavailableError):
                await store.get_resource("handwritten-test/abc")

    @pytest.mark.asyncio
    async def test_download_http_error_is_unavailable(self, store):
        client = MagicMock()
        client.get = AsyncMock(side_effect=httpx.ConnectError("down"))
        client_cm = MagicMock()
        client_cm.__aenter__ = AsyncMock(return_value=client)
        client_cm.__aexit__ = AsyncMock(return_value=False)

        with patch("httpx.AsyncClient", return_value=client_cm):
            with pytest.raises(MediaStoreUnavailableError) as exc_info:
                await store.fetch("https://res.cloudinary.com/x.png")

        assert exc_info.value.operation == "download"


class TestMediaStorePing:

    @pytest.mark.asyncio
    async def test_ping_ok(self, store):
        with patch("cloudinary.api.ping", return_value={"status": "ok"}):
            assert await store.ping() is True

    @pytest.mark.asyncio
    async def test_ping_failure(self, store):
        with patch("cloudinary.api.ping", side_effect=cloudinary.exceptions.AuthorizationRequired("bad key")):
            assert await store.ping() is False
