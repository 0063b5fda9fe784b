"""
Handscript Backend: Pillow Handwriting Renderer
=================================================

What:  Concrete PageRenderer that draws text onto paper-like pages with Pillow.
How:   Wraps text to the writable width, splits it into pages, then draws each
       glyph with small size/baseline/ink variations so the result reads as
       handwriting rather than type.
Who:   Instantiated once; called by ImageService for every create request.
When:  After request validation, before the upload.

Page Layout (defaults, A4 at 300 dpi):
    ┌──┬──────────────────────────────┐
    │  │                              │  ← top margin
    │  │ The quick brown fox jumps    │  ← baseline 1 (rule line if ruled)
    │  │ over the lazy dog.           │  ← baseline 2
    │  │                              │
    └──┴──────────────────────────────┘
     ↑ red margin line (ruled pages only)

Determinism:
    The jitter generator is seeded from a hash of (text, color, ruled), so the
    same request always produces byte-identical pages.
"""

import hashlib
import io
import logging
import random
from typing import List, Optional, Tuple

from PIL import Image, ImageDraw, ImageFont
from starlette.concurrency import run_in_threadpool

from handscript.config import settings
from handscript.exceptions import HandscriptError, RenderError
from handscript.schemas.image import InkColor
from handscript.services.renderer_base import PageRenderer, RenderedPage

logger = logging.getLogger(__name__)

# ── Colors ────────────────────────────────────────────────────────────────
INK_COLORS = {
    InkColor.BLACK: (20, 20, 20),
    InkColor.RED: (190, 30, 45),
    InkColor.BLUE: (20, 50, 160),
}
PAPER_COLOR = (255, 255, 252)
RULE_COLOR = (173, 206, 225)
MARGIN_COLOR = (205, 80, 80)

# ── Handwriting variation ─────────────────────────────────────────────────
SIZE_STEPS = (-2, 0, 2)           # font size offsets a glyph is drawn with
BASELINE_JITTER = 0.04            # fraction of line spacing
ADVANCE_JITTER = 0.04             # fraction of glyph advance
INK_JITTER = 14                   # per-channel color variation
TAB_WIDTH = 4


class HandwritingRenderer(PageRenderer):
    """
    Draws text onto ruled or plain pages using a handwriting font.

    Args default to the values in settings; tests pass explicit values to
    render small pages quickly.
    """

    def __init__(
        self,
        font_path: Optional[str] = None,
        page_width: Optional[int] = None,
        page_height: Optional[int] = None,
        page_margin: Optional[int] = None,
        font_size: Optional[int] = None,
        line_spacing: Optional[int] = None,
    ):
        self.font_path = font_path if font_path is not None else settings.handwriting_font_path
        self.page_width = page_width or settings.page_width
        self.page_height = page_height or settings.page_height
        self.page_margin = page_margin if page_margin is not None else settings.page_margin
        self.font_size = font_size or settings.font_size
        self.line_spacing = line_spacing or settings.line_spacing

        if self.line_spacing * 2 > self.page_height - 2 * self.page_margin:
            raise ValueError("Page is too short to hold two lines at the configured spacing")

        logger.info(
            "HandwritingRenderer initialized: page=%dx%d font=%s size=%d",
            self.page_width,
            self.page_height,
            self.font_path or "<default>",
            self.font_size,
        )

    # ── Geometry ──────────────────────────────────────────────────────────

    @property
    def text_left(self) -> int:
        return self.page_margin + self.font_size // 2

    @property
    def text_right(self) -> int:
        return self.page_width - self.page_margin // 2

    @property
    def first_baseline(self) -> int:
        return self.page_margin + self.line_spacing

    @property
    def lines_per_page(self) -> int:
        usable = self.page_height - self.page_margin - self.first_baseline
        return usable // self.line_spacing + 1

    # ── Public API ────────────────────────────────────────────────────────

    async def render(
        self,
        text: str,
        color: InkColor,
        ruled: bool,
        max_pages: Optional[int] = None,
    ) -> List[RenderedPage]:
        """
        Render text as PNG pages without blocking the event loop.

        Raises:
            RenderError: Font could not be loaded or Pillow failed.
        """
        return await run_in_threadpool(self.render_pages, text, color, ruled, max_pages)

    def render_pages(
        self,
        text: str,
        color: InkColor,
        ruled: bool,
        max_pages: Optional[int] = None,
    ) -> List[RenderedPage]:
        """
        Synchronous rendering entry point (runs in a worker thread).

        Only the first `max_pages` pages are drawn and encoded; the rest of
        the text is laid out but never painted.
        """
        try:
            fonts = self._load_fonts()
            lines = self.wrap_text(text, fonts[len(fonts) // 2])
            rng = random.Random(self._seed(text, color, ruled))

            per_page = self.lines_per_page
            total_pages = self.count_pages(lines)
            page_count = total_pages if max_pages is None else max(1, min(max_pages, total_pages))

            pages = []
            for index in range(page_count):
                page_lines = lines[index * per_page:(index + 1) * per_page]
                pages.append(self._draw_page(page_lines, fonts, INK_COLORS[color], ruled, rng))

            logger.info(
                "Rendered %d chars into %d of %d page(s) (color=%s, ruled=%s)",
                len(text),
                len(pages),
                total_pages,
                color.value,
                ruled,
            )
            return pages

        except HandscriptError:
            raise
        except (OSError, ValueError) as e:
            logger.error("Rendering failed: %s", str(e), exc_info=True)
            raise RenderError(
                message="Could not render the text as a handwritten page.",
                context={"error_type": type(e).__name__, "error": str(e)},
            )

    # ── Text layout ───────────────────────────────────────────────────────

    def count_pages(self, lines: List[str]) -> int:
        """Pages needed for already-wrapped lines (at least one)."""
        return max(1, -(-len(lines) // self.lines_per_page))

    def wrap_text(self, text: str, font: ImageFont.FreeTypeFont) -> List[str]:
        """
        Break text into lines that fit the writable width.

        Explicit newlines are preserved (blank lines included). Words wider
        than a whole line are split across lines character by character.
        Measurements include a small allowance for advance jitter.
        """
        max_width = (self.text_right - self.text_left) / (1 + ADVANCE_JITTER)
        normalized = text.replace("\r\n", "\n").replace("\r", "\n").replace("\t", " " * TAB_WIDTH)

        lines: List[str] = []
        for paragraph in normalized.split("\n"):
            words = paragraph.split(" ")
            current = ""
            for word in words:
                candidate = f"{current} {word}" if current else word
                if font.getlength(candidate) <= max_width:
                    current = candidate
                    continue
                if current:
                    lines.append(current)
                    current = ""
                # Word alone is too wide: hard-split it
                while font.getlength(word) > max_width:
                    cut = self._fit_prefix(word, font, max_width)
                    lines.append(word[:cut])
                    word = word[cut:]
                current = word
            lines.append(current)

        # Trailing blank lines would only produce empty pages
        while len(lines) > 1 and not lines[-1].strip():
            lines.pop()
        return lines

    @staticmethod
    def _fit_prefix(word: str, font: ImageFont.FreeTypeFont, max_width: float) -> int:
        cut = 1
        while cut < len(word) and font.getlength(word[:cut + 1]) <= max_width:
            cut += 1
        return cut

    # ── Drawing ───────────────────────────────────────────────────────────

    def _load_fonts(self) -> List[ImageFont.FreeTypeFont]:
        """Loads the handwriting font at each size step, smallest first."""
        sizes = [max(6, self.font_size + step) for step in SIZE_STEPS]
        if not self.font_path:
            return [ImageFont.load_default(size=size) for size in sizes]
        try:
            return [ImageFont.truetype(self.font_path, size) for size in sizes]
        except OSError as e:
            raise RenderError(
                message="The configured handwriting font could not be loaded.",
                context={"font_path": self.font_path, "error": str(e)},
            )

    def _draw_page(
        self,
        lines: List[str],
        fonts: List[ImageFont.FreeTypeFont],
        ink: Tuple[int, int, int],
        ruled: bool,
        rng: random.Random,
    ) -> RenderedPage:
        page = Image.new("RGB", (self.page_width, self.page_height), PAPER_COLOR)
        draw = ImageDraw.Draw(page)

        if ruled:
            self._draw_rules(draw)

        max_dy = self.line_spacing * BASELINE_JITTER
        for index, line in enumerate(lines):
            baseline = self.first_baseline + index * self.line_spacing
            # Baseline sits just above the rule so descenders cross it
            y = baseline - max(2, self.line_spacing // 12)
            x = float(self.text_left)
            for char in line:
                font = rng.choice(fonts)
                advance = font.getlength(char)
                if not char.isspace():
                    draw.text(
                        (x, y + rng.uniform(-max_dy, max_dy)),
                        char,
                        font=font,
                        fill=self._vary_ink(ink, rng),
                        anchor="ls",
                    )
                x += advance * (1 + rng.uniform(-ADVANCE_JITTER, ADVANCE_JITTER))

        buffer = io.BytesIO()
        page.save(buffer, format="PNG")
        return RenderedPage(data=buffer.getvalue(), width=self.page_width, height=self.page_height)

    def _draw_rules(self, draw: ImageDraw.ImageDraw) -> None:
        y = self.first_baseline
        while y < self.page_height - self.page_margin // 2:
            draw.line([(0, y), (self.page_width, y)], fill=RULE_COLOR, width=2)
            y += self.line_spacing
        draw.line(
            [(self.page_margin, 0), (self.page_margin, self.page_height)],
            fill=MARGIN_COLOR,
            width=3,
        )

    @staticmethod
    def _vary_ink(ink: Tuple[int, int, int], rng: random.Random) -> Tuple[int, int, int]:
        delta = rng.randint(-INK_JITTER, INK_JITTER // 2)
        return tuple(max(0, min(255, channel + delta)) for channel in ink)

    @staticmethod
    def _seed(text: str, color: InkColor, ruled: bool) -> int:
        digest = hashlib.sha256(f"{color.value}|{int(ruled)}|{text}".encode("utf-8")).digest()
        return int.from_bytes(digest[:8], "big")


# ── Singleton Instance ────────────────────────────────────────────────────
renderer = HandwritingRenderer()
