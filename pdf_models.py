from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pdf_geometry import Viewport


@dataclass(frozen=True)
class TextRun:
    """A contiguous span of extracted text sharing one transform."""

    text: str
    transform: tuple[float, float, float, float, float, float]
    width: float

    @property
    def font_size(self) -> float:
        return math.hypot(self.transform[0], self.transform[1])


@dataclass(frozen=True)
class CanvasSize:
    width: float
    height: float


@dataclass
class HighlightRect:
    """Highlight box in displayed-pixel space, top-left anchored."""

    x: float
    y: float
    width: float
    height: float


@dataclass
class PageHighlight:
    page_index: int
    rects: list[HighlightRect] = field(default_factory=list)


@dataclass
class PageState:
    """Render-time record for one page: viewport, backing size, displayed size."""

    viewport: Viewport
    intrinsic: CanvasSize
    displayed: CanvasSize


@dataclass(frozen=True)
class Reference:
    """A candidate search passage."""

    content: str


class HighlightError(Exception):
    pass


class PageRetrievalError(HighlightError):
    """The rendering collaborator failed to produce a page."""

    def __init__(self, page_index: int, cause: BaseException):
        super().__init__(f"failed to retrieve page {page_index}: {cause}")
        self.page_index = page_index
        self.cause = cause


class GeometryError(HighlightError):
    """A text run carries a transform or width that cannot be mapped to pixels."""
