"""
Handscript Backend: Abstract Page Renderer Interface
======================================================

What:  Abstract base class defining the contract for text-to-handwriting renderers.
How:   Concrete implementations inherit from PageRenderer and implement render().
Who:   Called by ImageService during the create workflow.
When:  After request validation, before the upload to the media store.

The request layer treats the renderer as an opaque collaborator: text and
style options go in, encoded page images come out.
"""

import base64
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from handscript.schemas.image import InkColor


@dataclass(frozen=True)
class RenderedPage:
    """One rendered page: encoded image bytes plus pixel dimensions."""

    data: bytes
    width: int
    height: int
    mime_type: str = "image/png"

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("ascii")

    def to_data_uri(self) -> str:
        """Data URI form accepted directly by the Cloudinary upload API."""
        return f"data:{self.mime_type};base64,{self.to_base64()}"


class PageRenderer(ABC):
    """
    Abstract interface for turning text into handwritten-looking pages.

    Contract:
        - render() returns at least one page for any non-empty text
        - Pages are returned in reading order
        - All implementation-specific errors are wrapped in RenderError
    """

    @abstractmethod
    async def render(
        self,
        text: str,
        color: InkColor,
        ruled: bool,
        max_pages: Optional[int] = None,
    ) -> List[RenderedPage]:
        """
        Render text as one or more page images.

        Args:
            text:      Non-empty text to write. Newlines start new lines.
            color:     Ink color.
            ruled:     Whether to draw ruled lines on the page.
            max_pages: Stop after this many pages (None = all pages).
                       Text beyond the last drawn page is not rendered.

        Returns:
            List of RenderedPage, first page first. Never empty.

        Raises:
            RenderError: When the page could not be drawn or encoded.
        """
        ...
