from __future__ import annotations

import asyncio
import functools
import logging
import warnings
from pathlib import Path
from typing import Any, Callable

import pdfplumber
from PIL import Image, ImageDraw

from pdf_extract import chars_to_text_items
from pdf_geometry import Viewport
from pdf_models import CanvasSize, PageHighlight

logging.getLogger("pdfminer").setLevel(logging.ERROR)
warnings.filterwarnings("ignore", module="pdfminer")

logger = logging.getLogger(__name__)

# rgba(255, 255, 0, 0.3)
HIGHLIGHT_FILL = (255, 255, 0, 77)


class PlumberDocument:
    """Rendering collaborator backed by pdfplumber and Pillow.

    pdfplumber calls block, so each one runs in the default executor. Calls are
    awaited one at a time by the search controller and never overlap.
    """

    def __init__(self, pdf: pdfplumber.PDF):
        self._pdf = pdf
        self._images: dict[int, Image.Image] = {}

    @classmethod
    def open(cls, path: str | Path) -> PlumberDocument:
        return cls(pdfplumber.open(path))

    def close(self) -> None:
        self._pdf.close()

    async def __aenter__(self) -> PlumberDocument:
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def page_count(self) -> int:
        return len(self._pdf.pages)

    def _page(self, page_index: int) -> pdfplumber.page.Page:
        return self._pdf.pages[page_index - 1]

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    def _text_items(self, page_index: int) -> list[dict]:
        return chars_to_text_items(self._page(page_index).chars)

    async def get_text_content(self, page_index: int) -> list[dict]:
        return await self._run(self._text_items, page_index)

    async def get_viewport(self, page_index: int, scale: float) -> Viewport:
        page = self._page(page_index)
        # pdfminer has already moved char matrices into the page's own frame
        # (media box origin at 0,0, /Rotate applied), so no rotation here.
        return Viewport(view_box=(0.0, 0.0, float(page.width), float(page.height)), scale=scale)

    def _render_sync(self, page_index: int, scale: float) -> Image.Image:
        page_image = self._page(page_index).to_image(resolution=72 * scale)
        return page_image.original

    async def render(self, page_index: int, viewport: Viewport) -> CanvasSize:
        image = await self._run(self._render_sync, page_index, viewport.scale)
        self._images[page_index] = image
        width, height = image.size
        return CanvasSize(width, height)

    def draw_highlights(self, highlight: PageHighlight, displayed: CanvasSize) -> Image.Image:
        """Composite translucent highlight boxes over the page at its displayed size."""
        try:
            image = self._images[highlight.page_index]
        except KeyError:
            raise LookupError(f"page {highlight.page_index} has not been rendered") from None

        size = (max(1, round(displayed.width)), max(1, round(displayed.height)))
        base = image.convert("RGBA").resize(size)
        overlay = Image.new("RGBA", base.size, (0, 0, 0, 0))
        draw = ImageDraw.Draw(overlay)
        for rect in highlight.rects:
            draw.rectangle(
                [rect.x, rect.y, rect.x + rect.width, rect.y + rect.height],
                fill=HIGHLIGHT_FILL,
            )
        logger.debug("Drew %d highlight boxes on page %d", len(highlight.rects), highlight.page_index)
        return Image.alpha_composite(base, overlay)
