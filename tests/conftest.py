from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest
from PIL import Image

from pdf_geometry import Viewport
from pdf_models import CanvasSize

LETTER = (0.0, 0.0, 612.0, 792.0)


def text_item(text: str, x: float = 72.0, y: float = 700.0, size: float = 12.0, width: float | None = None) -> dict:
    """A pdf.js-shaped text item with an unrotated font matrix."""
    return {
        "str": text,
        "transform": [size, 0.0, 0.0, size, x, y],
        "width": width if width is not None else len(text) * size * 0.5,
    }


def marked_content(kind: str = "beginMarkedContent") -> dict:
    return {"type": kind, "id": "mc0"}


class FakeDocument:
    """In-memory rendering collaborator; records every call in order."""

    def __init__(self, pages: dict[int, list[dict]], page_count: int | None = None):
        self.pages = pages
        self._page_count = page_count if page_count is not None else max(pages, default=0)
        self.calls: list[tuple[str, int]] = []
        self.fail_text: dict[int, Exception] = {}
        self.fail_render: dict[int, Exception] = {}
        self.unrendered: set[int] = set()

    @property
    def page_count(self) -> int:
        return self._page_count

    async def get_text_content(self, page_index: int) -> list[dict]:
        self.calls.append(("text", page_index))
        # yield so overlapping searches interleave
        await asyncio.sleep(0)
        if page_index in self.fail_text:
            raise self.fail_text[page_index]
        return list(self.pages.get(page_index, []))

    async def get_viewport(self, page_index: int, scale: float) -> Viewport:
        self.calls.append(("viewport", page_index))
        return Viewport(view_box=LETTER, scale=scale)

    async def render(self, page_index: int, viewport: Viewport) -> CanvasSize:
        self.calls.append(("render", page_index))
        if page_index in self.fail_render:
            raise self.fail_render[page_index]
        if page_index in self.unrendered:
            return CanvasSize(0, 0)
        return CanvasSize(viewport.width, viewport.height)


class RecordingScroll:
    def __init__(self) -> None:
        self.pages: list[int] = []

    def scroll_to_page(self, page_index: int) -> None:
        self.pages.append(page_index)


@pytest.fixture
def scroll() -> RecordingScroll:
    return RecordingScroll()


def plumber_chars(text: str, x0: float = 72.0, top: float = 80.0) -> list[dict]:
    """pdfplumber-style ``page.chars`` for one line of 12pt Helvetica, 6pt advance."""
    return [
        {
            "text": ch,
            "x0": x0 + i * 6.0,
            "x1": x0 + (i + 1) * 6.0,
            "top": top,
            "size": 12.0,
            "fontname": "Helvetica",
            "matrix": (12.0, 0.0, 0.0, 12.0, x0 + i * 6.0, 792.0 - top - 12.0),
        }
        for i, ch in enumerate(text)
    ]


def plumber_page(chars: list[dict], width: float = 612.0, height: float = 792.0) -> MagicMock:
    page = MagicMock()
    page.chars = chars
    page.width = width
    page.height = height
    image_size = (round(width * 1.5), round(height * 1.5))
    page.to_image.return_value.original = Image.new("RGB", image_size, "white")
    return page
