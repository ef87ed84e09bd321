from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping, Sequence
from typing import Protocol

from pdf_extract import runs_from_text_content
from pdf_geometry import DEFAULT_RENDER_SCALE, Viewport, to_pixel_rect
from pdf_match import match_runs
from pdf_models import CanvasSize, HighlightRect, PageHighlight, PageRetrievalError, PageState, TextRun

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Rendering collaborator: page text, viewports and rasterization."""

    @property
    def page_count(self) -> int: ...

    async def get_text_content(self, page_index: int) -> Sequence[Mapping]: ...

    async def get_viewport(self, page_index: int, scale: float) -> Viewport: ...

    async def render(self, page_index: int, viewport: Viewport) -> CanvasSize: ...


class ScrollController(Protocol):
    def scroll_to_page(self, page_index: int) -> None: ...


class PageCanvasTable:
    """Fixed-size table of per-page render state, indexed by 1-based page number."""

    def __init__(self, page_count: int):
        self._states: list[PageState | None] = [None] * page_count

    def __len__(self) -> int:
        return len(self._states)

    def _slot(self, page_index: int) -> int:
        if not 1 <= page_index <= len(self._states):
            raise IndexError(f"page {page_index} out of range 1..{len(self._states)}")
        return page_index - 1

    def get(self, page_index: int) -> PageState | None:
        return self._states[self._slot(page_index)]

    def put(self, page_index: int, state: PageState) -> None:
        self._states[self._slot(page_index)] = state


def highlight_page(
    runs: Sequence[TextRun],
    target: str,
    viewport: Viewport,
    state: PageState | None,
) -> list[HighlightRect] | None:
    """Match *target* on one page and map the span to rectangles.

    Returns None when the page holds no match. A matched page without a
    rendered canvas yields an empty rectangle list.
    """
    span = match_runs(runs, target)
    if not span:
        return None

    intrinsic = state.intrinsic if state is not None else None
    displayed = state.displayed if state is not None else None

    rects: list[HighlightRect] = []
    for run in span:
        rect = to_pixel_rect(run, viewport, intrinsic, displayed)
        if rect is not None:
            rects.append(rect)
    return rects


class HighlightSearch:
    """Owns the page table and the current highlight state for one document."""

    def __init__(
        self,
        document: DocumentSource,
        scroll: ScrollController | None = None,
        scale: float = DEFAULT_RENDER_SCALE,
        display_width: float | None = None,
    ):
        self.document = document
        self.scroll = scroll
        self.scale = scale
        self.display_width = display_width
        self.pages = PageCanvasTable(document.page_count)
        self.highlights: list[PageHighlight] = []
        self.search_text = ""
        self._busy = 0
        self._loaded = False
        self._load_task: asyncio.Future[int] | None = None

    @property
    def page_count(self) -> int:
        return len(self.pages)

    @property
    def is_loading(self) -> bool:
        """True while a load or any search is still in flight."""
        return self._busy > 0

    def _displayed_size(self, intrinsic: CanvasSize) -> CanvasSize:
        if self.display_width is None:
            return intrinsic
        ratio = self.display_width / intrinsic.width if intrinsic.width else 1.0
        return CanvasSize(self.display_width, intrinsic.height * ratio)

    async def load(self) -> int:
        """Render every page into the page table. Safe to call more than once."""
        if self._load_task is None:
            self._load_task = asyncio.ensure_future(self._load())
        return await self._load_task

    async def _load(self) -> int:
        self._busy += 1
        try:
            for page_index in range(1, self.page_count + 1):
                try:
                    viewport = await self.document.get_viewport(page_index, self.scale)
                    intrinsic = await self.document.render(page_index, viewport)
                except Exception as exc:
                    raise PageRetrievalError(page_index, exc) from exc
                self.pages.put(
                    page_index,
                    PageState(viewport=viewport, intrinsic=intrinsic, displayed=self._displayed_size(intrinsic)),
                )
                logger.debug("Rendered page %d at %sx%s", page_index, intrinsic.width, intrinsic.height)
        finally:
            self._busy -= 1
        self._loaded = True
        logger.info("Loaded %d pages", self.page_count)
        return self.page_count

    def set_displayed_size(self, page_index: int, displayed: CanvasSize) -> None:
        """Record the on-screen size of a rendered page canvas."""
        state = self.pages.get(page_index)
        if state is None:
            raise LookupError(f"page {page_index} has not been rendered")
        self.pages.put(page_index, PageState(state.viewport, state.intrinsic, displayed))

    async def _page_runs(self, page_index: int) -> tuple[list[TextRun], Viewport]:
        try:
            items = await self.document.get_text_content(page_index)
            viewport = await self.document.get_viewport(page_index, self.scale)
            return runs_from_text_content(items), viewport
        except Exception as exc:
            raise PageRetrievalError(page_index, exc) from exc

    async def search(self, target: str) -> list[PageHighlight]:
        """Highlight the first page, in page order, whose runs reconstruct *target*.

        Returns zero or one PageHighlight and stores it as the current highlight
        state. On PageRetrievalError or GeometryError the previous state is left
        untouched.
        """
        if not target:
            raise ValueError("search target must be a non-empty string")
        if not self._loaded:
            raise RuntimeError("load() must complete before search()")

        self._busy += 1
        try:
            found: list[PageHighlight] = []
            for page_index in range(1, self.page_count + 1):
                runs, viewport = await self._page_runs(page_index)
                rects = highlight_page(runs, target, viewport, self.pages.get(page_index))
                if rects is None:
                    continue
                found.append(PageHighlight(page_index=page_index, rects=rects))
                logger.info("Match on page %d (%d rects)", page_index, len(rects))
                if self.scroll is not None:
                    self.scroll.scroll_to_page(page_index)
                break
            else:
                logger.info("No match for %r", target[:50])

            self.search_text = target
            self.highlights = found
            return found
        finally:
            self._busy -= 1
